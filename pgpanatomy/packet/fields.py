""" fields.py
"""

import abc
import collections
import itertools

import collections.abc

from typing import Dict, Iterator, List, Optional, Tuple, Union

from .subpackets import Signature as SignatureSP
from .subpackets import UserAttribute
from .subpackets import Opaque as OpaqueSP

from .subpackets.types import SubPacket

from .types import MPI
from .types import MPIs

from ..constants import EllipticCurveOID
from ..constants import ECPointFormat
from ..constants import HashAlgorithm
from ..constants import PubKeyAlgorithm
from ..constants import SigSubpacketType
from ..constants import SymmetricKeyAlgorithm

from ..decorators import sdproperty

from ..errors import MalformedPacketError

from ..types import Field

__all__ = ['SubPackets',
           'UserAttributeSubPackets',
           'Signature',
           'OpaqueSignature',
           'RSASignature',
           'DSASignature',
           'ECDSASignature',
           'EdDSASignature',
           'NativeEdDSASignature',
           'Ed25519Signature',
           'Ed448Signature',
           'PubKey',
           'OpaquePubKey',
           'RSAPub',
           'DSAPub',
           'ElGPub',
           'ECPoint',
           'ECDSAPub',
           'EdDSAPub',
           'ECDHPub',
           'ECKDF',
           'NativePub',
           'X25519Pub',
           'X448Pub',
           'Ed25519Pub',
           'Ed448Pub', ]


class SubPackets(collections.abc.Mapping, Field):
    """
    The hashed and unhashed subpacket areas of a signature.

    Indexing by subpacket class name returns every subpacket of that class, hashed ones first;
    prefixing the name with ``h_`` restricts the lookup to the hashed area.
    """
    _sproot = SignatureSP

    def __init__(self, width: int = 2) -> None:
        super().__init__()
        self._hashed_sp: collections.OrderedDict = collections.OrderedDict()
        self._unhashed_sp: collections.OrderedDict = collections.OrderedDict()
        # self._width represents how wide the size field is for each area.
        # v4 signatures use a width of 2.  v5 and v6 signatures use a width of 4.
        self._width = width

    def __len__(self) -> int:
        return len(self._hashed_sp) + len(self._unhashed_sp)

    def __iter__(self):
        yield from itertools.chain(self._hashed_sp, self._unhashed_sp)

    def _add(self, sp: SubPacket, hashed: bool) -> None:
        # there can be multiple subpackets of the same type, so they are stored as (<classname>, <seqid>)
        d = self._hashed_sp if hashed else self._unhashed_sp
        key = sp.__class__.__name__
        i = 0
        while (key, i) in d:
            i += 1

        d[(key, i)] = sp

    def __getitem__(self, key):
        if isinstance(key, tuple):  # pragma: no cover
            return self._hashed_sp.get(key, self._unhashed_sp.get(key))

        if key.startswith('h_'):
            return [v for k, v in self._hashed_sp.items() if key[2:] == k[0]]

        else:
            return [v for k, v in itertools.chain(self._hashed_sp.items(), self._unhashed_sp.items()) if key == k[0]]

    def __contains__(self, key):
        if key.startswith('h_'):
            return key[2:] in {k for k, _ in self._hashed_sp}
        return key in {k for k, _ in itertools.chain(self._hashed_sp, self._unhashed_sp)}

    @property
    def hashed(self) -> List[SubPacket]:
        return list(self._hashed_sp.values())

    @property
    def unhashed(self) -> List[SubPacket]:
        return list(self._unhashed_sp.values())

    @property
    def has_unknown_critical(self) -> bool:
        return any(isinstance(sp, OpaqueSP) and sp.header.critical
                   for sp in itertools.chain(self._hashed_sp.values(), self._unhashed_sp.values()))

    @staticmethod
    def _values(sps) -> Dict[Union[SigSubpacketType, int], object]:
        values = collections.OrderedDict()
        for sp in sps:
            typeid = SigSubpacketType(sp.header.typeid)
            if typeid is SigSubpacketType.Unknown:
                typeid = sp.header.typeid
            # the last occurrence of a type wins
            values[typeid] = sp.value
        return values

    def hashed_values(self) -> Dict[Union[SigSubpacketType, int], object]:
        return self._values(self._hashed_sp.values())

    def unhashed_values(self) -> Dict[Union[SigSubpacketType, int], object]:
        return self._values(self._unhashed_sp.values())

    def _parse_area(self, area: bytearray, hashed: bool) -> None:
        while area:
            before = len(area)
            sp = self._sproot(area)
            used = before - len(area)

            if used > sp.header.size:
                raise MalformedPacketError(f"{sp.__class__.__name__} subpacket is shorter than its contents")

            # octets declared past what was understood are skipped
            self.take(area, sp.header.size - used)
            self._add(sp, hashed)

    def parse(self, packet: bytearray) -> None:
        hl = self.bytes_to_int(self.take(packet, self._width, 'hashed area length'))
        self._parse_area(self.take(packet, hl, 'hashed subpacket area'), True)

        uhl = self.bytes_to_int(self.take(packet, self._width, 'unhashed area length'))
        self._parse_area(self.take(packet, uhl, 'unhashed subpacket area'), False)


class UserAttributeSubPackets(SubPackets):
    """
    This is nearly the same as just the unhashed subpackets from above,
    except that there isn't a length specifier; the subpackets fill the whole packet body.
    """
    _sproot = UserAttribute

    def parse(self, packet: bytearray) -> None:
        self._parse_area(packet, False)


class Signature(MPIs):
    def __init__(self) -> None:
        for i in self.__mpis__:
            setattr(self, i, MPI(0))

    def parse(self, packet: bytearray) -> None:
        for i in self.__mpis__:
            setattr(self, i, MPI(packet))


class OpaqueSignature(Signature):
    def __init__(self) -> None:
        super().__init__()
        self.data = b''

    def __len__(self) -> int:
        return len(self.data)

    def parse(self, packet: bytearray) -> None:
        self.data = bytes(packet)
        del packet[:]


class RSASignature(Signature):
    __mpis__ = ('md_mod_n', )


class DSASignature(Signature):
    __mpis__ = ('r', 's')


class ECDSASignature(DSASignature):
    pass


class EdDSASignature(DSASignature):
    pass


class NativeEdDSASignature(Signature):
    """Ed25519 and Ed448 signatures are fixed-size octet strings rather than MPIs"""
    __octets__ = 0

    def __init__(self) -> None:
        super().__init__()
        self.data = b''

    def __len__(self) -> int:
        return len(self.data)

    def parse(self, packet: bytearray) -> None:
        self.data = bytes(self.take(packet, self.__octets__, 'native signature'))


class Ed25519Signature(NativeEdDSASignature):
    __octets__ = 64


class Ed448Signature(NativeEdDSASignature):
    __octets__ = 114


class PubKey(MPIs):
    __pubfields__: Tuple = ()
    __pubkey_algo__: Optional[PubKeyAlgorithm] = None

    @property
    def __mpis__(self):
        yield from self.__pubfields__

    def __init__(self):
        super().__init__()
        for field in self.__pubfields__:
            setattr(self, field, MPI(0))

    @property
    def key_size(self) -> int:
        """The size of the key in bits, or 0 where it cannot be determined"""
        return 0

    @property
    def curve(self) -> Optional[str]:
        """The name of the curve for curve-based keys, otherwise ``None``"""
        return None

    @abc.abstractmethod
    def parse(self, packet: bytearray) -> None:
        """consume the public key material"""


class OpaquePubKey(PubKey):
    def __init__(self):
        super().__init__()
        self.data = b''

    def __iter__(self):
        yield self.data

    def __len__(self) -> int:
        return len(self.data)

    def parse(self, packet: bytearray) -> None:
        # the caller bounds packet to the key material
        self.data = bytes(packet)
        del packet[:]


class RSAPub(PubKey):
    __pubfields__ = ('n', 'e')
    __pubkey_algo__ = PubKeyAlgorithm.RSAEncryptOrSign

    @property
    def key_size(self) -> int:
        return self.n.bits

    def parse(self, packet: bytearray) -> None:
        self.n = MPI(packet)
        self.e = MPI(packet)


class DSAPub(PubKey):
    __pubfields__ = ('p', 'q', 'g', 'y')
    __pubkey_algo__ = PubKeyAlgorithm.DSA

    @property
    def key_size(self) -> int:
        return self.p.bits

    def parse(self, packet: bytearray) -> None:
        self.p = MPI(packet)
        self.q = MPI(packet)
        self.g = MPI(packet)
        self.y = MPI(packet)


class ElGPub(PubKey):
    __pubfields__ = ('p', 'g', 'y')
    __pubkey_algo__ = PubKeyAlgorithm.ElGamal

    @property
    def key_size(self) -> int:
        return self.p.bits

    def parse(self, packet: bytearray) -> None:
        self.p = MPI(packet)
        self.g = MPI(packet)
        self.y = MPI(packet)


class ECPoint:
    def __init__(self, packet=None):
        if packet is None:
            return
        xy = bytearray(MPI(packet).to_bytes_declared())
        if not xy:
            raise MalformedPacketError("empty EC point")
        self.format = ECPointFormat(xy[0])
        del xy[0]
        if self.format == ECPointFormat.Standard:
            xylen = len(xy)
            if xylen % 2 != 0:
                raise MalformedPacketError("malformed EC point")
            self.bytelen = xylen // 2
            self.x = MPI(MPIs.bytes_to_int(xy[:self.bytelen]))
            self.y = MPI(MPIs.bytes_to_int(xy[self.bytelen:]))
        else:
            # native and compressed points are kept as their raw octets
            self.bytelen = len(xy)
            self.x = bytes(xy)
            self.y = None

    def __len__(self) -> int:
        """ Returns length of MPI encoded point """
        return 2 * self.bytelen + 3 if self.format == ECPointFormat.Standard else self.bytelen + 3


class ECDSAPub(PubKey):
    __pubfields__ = ('p',)
    __pubkey_algo__ = PubKeyAlgorithm.ECDSA
    __pointformats__ = frozenset({ECPointFormat.Standard})

    def __init__(self) -> None:
        super().__init__()
        self.oid: Union[bytes, EllipticCurveOID] = EllipticCurveOID.NIST_P256

    def __len__(self) -> int:
        return len(self.p) + len(self.oid)

    @property
    def key_size(self) -> int:
        if isinstance(self.oid, EllipticCurveOID):
            return self.oid.key_size
        return 0

    @property
    def curve(self) -> Optional[str]:
        return EllipticCurveOID.describe(self.oid)

    def _parse_point(self, packet: bytearray) -> None:
        if isinstance(self.oid, EllipticCurveOID):
            self.p: Union[ECPoint, MPI] = ECPoint(packet)
            if self.p.format not in self.__pointformats__:
                raise MalformedPacketError(f"{self.p.format.name} point format is not valid for {self.oid.value.name}")
        else:
            self.p = MPI(packet)

    def parse(self, packet: bytearray) -> None:
        self.oid = EllipticCurveOID.parse(packet)
        self._parse_point(packet)


class EdDSAPub(ECDSAPub):
    __pubkey_algo__ = PubKeyAlgorithm.EdDSA
    __pointformats__ = frozenset({ECPointFormat.Native})

    def __init__(self) -> None:
        super().__init__()
        self.oid = EllipticCurveOID.Ed25519


class ECKDF(Field):
    """
    o  a variable-length field containing KDF parameters,
       formatted as follows:

       -  a one-octet size of the following fields; values 0 and
          0xff are reserved for future extensions

       -  a one-octet value 01, reserved for future extensions

       -  a one-octet hash function ID used with a KDF

       -  a one-octet algorithm ID for the symmetric algorithm
          used to wrap the symmetric key used for the message
          encryption; see Section 8 for details
    """
    @sdproperty
    def halg(self):
        return self._halg

    @halg.register(int)
    def halg_int(self, val):
        self._halg = HashAlgorithm(val)

    @sdproperty
    def encalg(self):
        return self._encalg

    @encalg.register(int)
    def encalg_int(self, val):
        self._encalg = SymmetricKeyAlgorithm(val)

    def __init__(self):
        super().__init__()
        self.halg = 0
        self.encalg = 0

    def __len__(self):
        return 4

    def parse(self, packet: bytearray) -> None:
        flen = self.take(packet, 1, 'KDF parameters length')[0]
        if flen in (0x00, 0xFF) or flen < 3:
            raise MalformedPacketError(f"invalid KDF parameters length {flen}")

        params = self.take(packet, flen, 'KDF parameters')
        if params[0] != 0x01:
            raise MalformedPacketError(f"unexpected KDF parameters reserved octet 0x{params[0]:02x}")

        self.halg = params[1]
        self.encalg = params[2]


class ECDHPub(ECDSAPub):
    __pubkey_algo__ = PubKeyAlgorithm.ECDH
    __pointformats__ = frozenset({ECPointFormat.Standard, ECPointFormat.Native})

    def __init__(self) -> None:
        super().__init__()
        self.kdf = ECKDF()

    def __len__(self):
        return len(self.p) + len(self.kdf) + len(self.oid)

    def parse(self, packet: bytearray) -> None:
        """
        Algorithm-Specific Fields for ECDH keys:

          o  a variable-length field containing a curve OID, formatted
             as follows:

             -  a one-octet size of the following field; values 0 and
                0xFF are reserved for future extensions

             -  the octets representing a curve OID, defined in
                Section 11

             -  MPI of an EC point representing a public key

          o  a variable-length field containing KDF parameters
        """
        self.oid = EllipticCurveOID.parse(packet)
        if self.oid in (EllipticCurveOID.Curve25519, EllipticCurveOID.Curve448):
            self.__pointformats__ = frozenset({ECPointFormat.Native})

        elif isinstance(self.oid, EllipticCurveOID):
            self.__pointformats__ = frozenset({ECPointFormat.Standard})

        self._parse_point(packet)
        self.kdf.parse(packet)


class NativePub(PubKey):
    """
    Keys for the X25519, X448, Ed25519, and Ed448 algorithms are fixed-size octet strings, with the curve
    implied by the algorithm.
    """
    __pubfields__ = ('p',)
    __octets__ = 0
    __curve__: EllipticCurveOID = EllipticCurveOID.Curve25519

    def __len__(self) -> int:
        return self.__octets__

    @property
    def key_size(self) -> int:
        return self.__curve__.key_size

    @property
    def curve(self) -> Optional[str]:
        return EllipticCurveOID.describe(self.__curve__)

    def parse(self, packet: bytearray) -> None:
        self.p = bytes(self.take(packet, self.__octets__, f'{self.__pubkey_algo__.name} public key'))


class X25519Pub(NativePub):
    __pubkey_algo__ = PubKeyAlgorithm.X25519
    __octets__ = 32
    __curve__ = EllipticCurveOID.Curve25519


class X448Pub(NativePub):
    __pubkey_algo__ = PubKeyAlgorithm.X448
    __octets__ = 56
    __curve__ = EllipticCurveOID.Curve448


class Ed25519Pub(NativePub):
    __pubkey_algo__ = PubKeyAlgorithm.Ed25519
    __octets__ = 32
    __curve__ = EllipticCurveOID.Ed25519


class Ed448Pub(NativePub):
    __pubkey_algo__ = PubKeyAlgorithm.Ed448
    __octets__ = 57
    __curve__ = EllipticCurveOID.Ed448
