""" packet.py
"""
import abc

from datetime import datetime
from datetime import timedelta
from datetime import timezone

from typing import Optional

from .fields import DSAPub, DSASignature
from .fields import ECDSAPub, ECDSASignature
from .fields import ECDHPub
from .fields import EdDSAPub, EdDSASignature
from .fields import Ed25519Pub, Ed25519Signature
from .fields import Ed448Pub, Ed448Signature
from .fields import ElGPub
from .fields import OpaquePubKey
from .fields import OpaqueSignature
from .fields import RSAPub, RSASignature
from .fields import SubPackets
from .fields import UserAttributeSubPackets
from .fields import X25519Pub
from .fields import X448Pub

from .types import MPI
from .types import Packet
from .types import Primary
from .types import Private
from .types import Public
from .types import Sub
from .types import VersionedPacket

from ..constants import HashAlgorithm
from ..constants import PacketType
from ..constants import PubKeyAlgorithm
from ..constants import SignatureType

from ..decorators import sdproperty

from ..errors import MalformedPacketError

from ..types import Fingerprint
from ..types import KeyID

__all__ = ['Signature',
           'SignatureV2',
           'SignatureV3',
           'SignatureV4',
           'SignatureV5',
           'SignatureV6',
           'PrivKey',
           'PrivKeyV2',
           'PrivKeyV3',
           'PrivKeyV4',
           'PrivKeyV5',
           'PrivKeyV6',
           'PubKey',
           'PubKeyV2',
           'PubKeyV3',
           'PubKeyV4',
           'PubKeyV5',
           'PubKeyV6',
           'PrivSubKey',
           'PrivSubKeyV2',
           'PrivSubKeyV3',
           'PrivSubKeyV4',
           'PrivSubKeyV5',
           'PrivSubKeyV6',
           'PubSubKey',
           'PubSubKeyV2',
           'PubSubKeyV3',
           'PubSubKeyV4',
           'PubSubKeyV5',
           'PubSubKeyV6',
           'Marker',
           'Trust',
           'UserID',
           'UserAttribute']


class Signature(VersionedPacket):
    __typeid__ = PacketType.Signature
    __ver__ = 0


class SignatureV4(Signature):
    """
    Version, signature type, public key algorithm and hash algorithm octets, then the hashed and unhashed
    subpacket areas (each behind a two-octet length), the left 16 bits of the signed hash, and finally the
    algorithm specific signature MPIs. Only the hashed area is covered by the signature.
    """
    __ver__ = 4
    __spwidth__ = 2

    @sdproperty
    def sigtype(self):
        return self._sigtype

    @sigtype.register(int)
    def sigtype_int(self, val):
        self._sigtype = SignatureType(val)
        self._sigtype_id = val

    @sdproperty
    def pubalg(self):
        return self._pubalg

    @pubalg.register(int)
    def pubalg_int(self, val):
        self._pubalg = PubKeyAlgorithm(val)

        sigs = {PubKeyAlgorithm.RSAEncryptOrSign: RSASignature,
                PubKeyAlgorithm.RSAEncrypt: RSASignature,
                PubKeyAlgorithm.RSASign: RSASignature,
                PubKeyAlgorithm.DSA: DSASignature,
                PubKeyAlgorithm.ECDSA: ECDSASignature,
                PubKeyAlgorithm.EdDSA: EdDSASignature,
                PubKeyAlgorithm.Ed25519: Ed25519Signature,
                PubKeyAlgorithm.Ed448: Ed448Signature}

        self.signature = sigs.get(self.pubalg, OpaqueSignature)()

    @sdproperty
    def halg(self):
        return self._halg

    @halg.register(int)
    def halg_int(self, val):
        self._halg = HashAlgorithm(val)

    @property
    def sigtype_id(self) -> int:
        """the raw signature type octet"""
        return self._sigtype_id

    @property
    def created(self) -> Optional[datetime]:
        if 'h_CreationTime' in self.subpackets:
            return self.subpackets['h_CreationTime'][-1].created
        return None

    @property
    def expires_in(self) -> Optional[timedelta]:
        if 'h_SignatureExpirationTime' in self.subpackets:
            return self.subpackets['h_SignatureExpirationTime'][-1].expires
        return None

    @property
    def signer_fingerprint(self) -> Optional[Fingerprint]:
        for sp in self.subpackets['h_IssuerFingerprint'] + self.subpackets['IssuerFingerprint']:
            if sp.issuer_fingerprint is not None:
                return sp.issuer_fingerprint
        return None

    @property
    def signer(self) -> Optional[KeyID]:
        """
        The key ID of the issuer. Hashed subpackets are consulted before unhashed ones, and an issuer key ID
        subpacket before the key ID derived from an issuer fingerprint subpacket.
        """
        for area in ('h_', ''):
            if area + 'Issuer' in self.subpackets:
                return self.subpackets[area + 'Issuer'][-1].issuer
            for sp in self.subpackets[area + 'IssuerFingerprint']:
                if sp.issuer_fingerprint is not None:
                    return sp.issuer_fingerprint.keyid
        return None

    @property
    def has_unknown_critical(self) -> bool:
        return self.subpackets.has_unknown_critical

    def __init__(self):
        super(Signature, self).__init__()
        self._sigtype = SignatureType.Unknown
        self._sigtype_id = -1
        self._pubalg = PubKeyAlgorithm.Invalid
        self._halg = HashAlgorithm.Invalid
        self.subpackets = SubPackets(self.__spwidth__)
        self.hash2 = b'\x00\x00'
        self.signature = None

    def _parse_prefix(self, packet):
        self.sigtype = self.take(packet, 1, 'signature type')[0]
        self.pubalg = self.take(packet, 1, 'public key algorithm')[0]
        self.halg = self.take(packet, 1, 'hash algorithm')[0]

        self.subpackets.parse(packet)

        self.hash2 = bytes(self.take(packet, 2, 'hash prefix'))

    def parse(self, packet):
        super(Signature, self).parse(packet)
        self._parse_prefix(packet)
        self.signature.parse(packet)


class SignatureV5(SignatureV4):
    """
    A version 5 signature has the same layout as a version 4 signature, two-octet subpacket area
    lengths included.
    """
    __ver__ = 5
    __spwidth__ = 2


class SignatureV6(SignatureV5):
    """
    A version 6 signature has four-octet subpacket area lengths, and follows its hash prefix with a one-octet
    salt size and the salt itself.
    """
    __ver__ = 6
    __spwidth__ = 4

    def __init__(self):
        super(SignatureV6, self).__init__()
        self.salt = b''

    def parse(self, packet):
        super(Signature, self).parse(packet)
        self._parse_prefix(packet)

        saltlen = self.take(packet, 1, 'salt size')[0]
        self.salt = bytes(self.take(packet, saltlen, 'salt'))

        self.signature.parse(packet)


class SignatureV3(SignatureV4):
    """
    A version 3 signature hashes only its type and creation time (behind a length octet that must be 5), and
    names its signer with an 8-octet key ID instead of subpackets.
    """
    __ver__ = 3

    @property
    def created(self) -> Optional[datetime]:
        return self._created

    @property
    def signer_fingerprint(self) -> Optional[Fingerprint]:
        return None

    @property
    def signer(self) -> Optional[KeyID]:
        return self._signer

    def __init__(self):
        super(SignatureV3, self).__init__()
        self._created = None
        self._signer = None

    def parse(self, packet):
        super(Signature, self).parse(packet)
        hlen = self.take(packet, 1, 'hashed material length')[0]
        if hlen != 5:
            raise MalformedPacketError(f"version 3 signature hashed material must be 5 octets, not {hlen}")

        self.sigtype = self.take(packet, 1, 'signature type')[0]
        self._created = datetime.fromtimestamp(self.bytes_to_int(self.take(packet, 4, 'creation time')), timezone.utc)
        self._signer = KeyID.parse(packet)
        self.pubalg = self.take(packet, 1, 'public key algorithm')[0]
        self.halg = self.take(packet, 1, 'hash algorithm')[0]
        self.hash2 = bytes(self.take(packet, 2, 'hash prefix'))

        self.signature.parse(packet)


class SignatureV2(SignatureV3):
    __ver__ = 2


class PrivKey(VersionedPacket, Primary, Private):
    __typeid__ = PacketType.SecretKey
    __ver__ = 0


class PubKey(VersionedPacket, Primary, Public):
    __typeid__ = PacketType.PublicKey
    __ver__ = 0

    @abc.abstractproperty
    def fingerprint(self):
        """compute and return the fingerprint of the key"""


class PubKeyV4(PubKey):
    __ver__ = 4

    @sdproperty
    def created(self):
        return self._created

    @created.register(datetime)
    def created_datetime(self, val):
        self._created = val

    @created.register(int)
    def created_int(self, val):
        self.created = datetime.fromtimestamp(val, timezone.utc)

    @created.register(bytes)
    @created.register(bytearray)
    def created_bin(self, val):
        self.created = self.bytes_to_int(val)

    @sdproperty
    def pkalg(self):
        return self._pkalg

    @pkalg.register(int)
    def pkalg_int(self, val):
        self._pkalg = PubKeyAlgorithm(val)
        self._pkalg_id = val

        _c = {
            PubKeyAlgorithm.RSAEncryptOrSign: RSAPub,
            PubKeyAlgorithm.RSAEncrypt: RSAPub,
            PubKeyAlgorithm.RSASign: RSAPub,
            PubKeyAlgorithm.DSA: DSAPub,
            PubKeyAlgorithm.ElGamal: ElGPub,
            PubKeyAlgorithm.FormerlyElGamalEncryptOrSign: ElGPub,
            PubKeyAlgorithm.ECDSA: ECDSAPub,
            PubKeyAlgorithm.ECDH: ECDHPub,
            PubKeyAlgorithm.EdDSA: EdDSAPub,
            PubKeyAlgorithm.X25519: X25519Pub,
            PubKeyAlgorithm.X448: X448Pub,
            PubKeyAlgorithm.Ed25519: Ed25519Pub,
            PubKeyAlgorithm.Ed448: Ed448Pub,
        }

        self.keymaterial = _c.get(self.pkalg, OpaquePubKey)()

    @property
    def pkalg_id(self) -> int:
        """the raw public key algorithm octet, which is kept even when it is not a known algorithm"""
        return self._pkalg_id

    @property
    def secret(self) -> bool:
        return isinstance(self, Private)

    @property
    def is_subkey(self) -> bool:
        return isinstance(self, Sub)

    @property
    def fingerprint(self) -> Fingerprint:
        # A V4 fingerprint is the 160-bit SHA-1 hash of the octet 0x99, followed by the two-octet packet length,
        # followed by the entire Public-Key packet starting with the version field.  For secret key packets,
        # only the public portion is hashed.
        return Fingerprint(HashAlgorithm.SHA1.digest(b'\x99' + self.int_to_bytes(len(self.hashdata), 2) + self.hashdata), 4)

    @property
    def keyid(self) -> KeyID:
        # The Key ID is the low-order 64 bits of the fingerprint.
        return self.fingerprint.keyid

    def __init__(self):
        super(PubKeyV4, self).__init__()
        self.created = 0
        self.pkalg = 0
        self.hashdata = b''

    def _parse_material(self, material):
        before = len(material)
        self.keymaterial.parse(material)
        return before - len(material)

    def parse(self, packet):
        super(PubKeyV4, self).parse(packet)
        start = bytes(packet)

        self.created = self.take(packet, 4, 'creation time')
        self.pkalg = self.take(packet, 1, 'public key algorithm')[0]

        if isinstance(self.keymaterial, OpaquePubKey) and self.secret:
            # the end of unknown public key material cannot be found in front of secret key material
            raise MalformedPacketError(f"cannot separate public key material for algorithm {self.pkalg_id} from secret key material")

        used = self._parse_material(packet)
        self.hashdata = bytes([self.header.version]) + start[:5 + used]

        # the secret portion, if any, is never interpreted
        del packet[:]


class PubKeyV5(PubKeyV4):
    """
    Version 5 and version 6 keys put a four-octet count of the key material octets after the algorithm,
    and are fingerprinted with SHA-256. Their key ID is the high-order 64 bits of the fingerprint.
    """
    __ver__ = 5
    __fprprefix__ = b'\x9A'

    @property
    def fingerprint(self) -> Fingerprint:
        return Fingerprint(HashAlgorithm.SHA256.digest(self.__fprprefix__ + self.int_to_bytes(len(self.hashdata), 4) + self.hashdata),
                           self.header.version)

    def parse(self, packet):
        super(PubKeyV4, self).parse(packet)
        start = bytes(packet)

        self.created = self.take(packet, 4, 'creation time')
        self.pkalg = self.take(packet, 1, 'public key algorithm')[0]
        mlen = self.bytes_to_int(self.take(packet, 4, 'key material length'))

        material = self.take(packet, mlen, 'key material')
        used = self._parse_material(material)
        if used != mlen:
            raise MalformedPacketError(f"key material is {used} octets, but {mlen} were declared")

        self.hashdata = bytes([self.header.version]) + start[:9 + mlen]

        del packet[:]


class PubKeyV6(PubKeyV5):
    __ver__ = 6
    __fprprefix__ = b'\x9B'


class PubKeyV3(PubKeyV4):
    """
    Version 3 (and 2) keys are RSA only. They carry a two-octet validity period in days after the creation
    time, where zero means the key does not expire.
    """
    __ver__ = 3

    @property
    def fingerprint(self) -> Fingerprint:
        # The fingerprint of a V3 key is formed by hashing the body (but not the two-octet length) of the MPIs
        # that form the key material (public modulus n, followed by exponent e) with MD5.
        return Fingerprint(HashAlgorithm.MD5.digest(b''.join(m.to_bytes_declared() for m in self.keymaterial
                                                             if isinstance(m, MPI))), 3)

    @property
    def keyid(self) -> KeyID:
        # The Key ID is the low 64 bits of the public modulus of the RSA key.
        n = next((m for m in self.keymaterial if isinstance(m, MPI)), MPI(0))
        return KeyID(self.int_to_bytes(n & 0xFFFFFFFFFFFFFFFF, 8))

    def __init__(self):
        super(PubKeyV3, self).__init__()
        self.validity_days = 0

    def parse(self, packet):
        super(PubKeyV4, self).parse(packet)
        start = bytes(packet)

        self.created = self.take(packet, 4, 'creation time')
        self.validity_days = self.bytes_to_int(self.take(packet, 2, 'validity period'))
        self.pkalg = self.take(packet, 1, 'public key algorithm')[0]

        if isinstance(self.keymaterial, OpaquePubKey) and self.secret:
            raise MalformedPacketError(f"cannot separate public key material for algorithm {self.pkalg_id} from secret key material")

        used = self._parse_material(packet)
        self.hashdata = bytes([self.header.version]) + start[:7 + used]

        del packet[:]


class PubKeyV2(PubKeyV3):
    __ver__ = 2


class PrivKeyV4(PrivKey, PubKeyV4):
    __ver__ = 4


class PrivKeyV5(PrivKey, PubKeyV5):
    __ver__ = 5


class PrivKeyV6(PrivKey, PubKeyV6):
    __ver__ = 6


class PrivKeyV3(PrivKey, PubKeyV3):
    __ver__ = 3


class PrivKeyV2(PrivKey, PubKeyV2):
    __ver__ = 2


class PrivSubKey(VersionedPacket, Sub, Private):
    __typeid__ = PacketType.SecretSubKey
    __ver__ = 0


class PrivSubKeyV4(PrivSubKey, PrivKeyV4):
    __ver__ = 4


class PrivSubKeyV5(PrivSubKey, PrivKeyV5):
    __ver__ = 5


class PrivSubKeyV6(PrivSubKey, PrivKeyV6):
    __ver__ = 6


class PrivSubKeyV3(PrivSubKey, PrivKeyV3):
    __ver__ = 3


class PrivSubKeyV2(PrivSubKey, PrivKeyV2):
    __ver__ = 2


class PubSubKey(VersionedPacket, Sub, Public):
    __typeid__ = PacketType.PublicSubKey
    __ver__ = 0


class PubSubKeyV4(PubSubKey, PubKeyV4):
    __ver__ = 4


class PubSubKeyV5(PubSubKey, PubKeyV5):
    __ver__ = 5


class PubSubKeyV6(PubSubKey, PubKeyV6):
    __ver__ = 6


class PubSubKeyV3(PubSubKey, PubKeyV3):
    __ver__ = 3


class PubSubKeyV2(PubSubKey, PubKeyV2):
    __ver__ = 2


class Marker(Packet):
    __typeid__ = PacketType.Marker

    def __init__(self):
        super(Marker, self).__init__()
        self.data = b'PGP'

    def parse(self, packet):
        super(Marker, self).parse(packet)
        self.data = bytes(packet)
        del packet[:]


class Trust(Packet):
    """
    Keyring-local trust data. Its format is up to the implementation that wrote it, so it is kept as-is.
    """
    __typeid__ = PacketType.Trust

    def __init__(self):
        super(Trust, self).__init__()
        self.data = b''

    def parse(self, packet):
        super(Trust, self).parse(packet)
        self.data = bytes(packet)
        del packet[:]


class UserID(Packet):
    """
    A User ID, conventionally ``Name (Comment) <email>``. Text that is not valid UTF-8 is decoded with
    replacement characters and flagged with ``invalid_utf8``.
    """
    __typeid__ = PacketType.UserID

    def __init__(self, uid=""):
        super(UserID, self).__init__()
        self.uid = uid
        self.invalid_utf8 = False

    def parse(self, packet):
        super(UserID, self).parse(packet)

        uid_bytes = bytes(packet)
        del packet[:]
        try:
            self.uid = uid_bytes.decode('utf-8')

        except UnicodeDecodeError:
            self.uid = uid_bytes.decode('utf-8', errors='replace')
            self.invalid_utf8 = True


class UserAttribute(Packet):
    """
    A list of attribute subpackets. Only images (type 1) are decoded; other types are kept as opaque.
    """
    __typeid__ = PacketType.UserAttribute

    @property
    def image(self):
        images = self.subpackets['Image']
        return images[0] if images else None

    def __init__(self):
        super(UserAttribute, self).__init__()
        self.subpackets = UserAttributeSubPackets()

    def parse(self, packet):
        super(UserAttribute, self).parse(packet)
        self.subpackets.parse(packet)
