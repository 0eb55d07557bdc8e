""" types.py
"""

import abc

from typing import Iterator, Optional, Tuple, Type, Union

from ..constants import PacketType
from ..constants import PubKeyAlgorithm

from ..decorators import sdproperty

from ..errors import MalformedPacketError
from ..errors import UnsupportedFramingError

from ..types import DispatchGuidance
from ..types import Dispatchable
from ..types import Field
from ..types import Header as _Header

__all__ = ['Header',
           'VersionedHeader',
           'Packet',
           'VersionedPacket',
           'Opaque',
           'Key',
           'Public',
           'Private',
           'Primary',
           'Sub',
           'MPI',
           'MPIs', ]


class Header(_Header):
    @sdproperty
    def typeid(self) -> PacketType:
        return self._typeid

    @typeid.register
    def typeid_int(self, val: int) -> None:
        if isinstance(val, PacketType):
            self._typeid = val
            self._tag = int(val)
            return

        if self._lenfmt == 1:
            type_id = (val & 0x3F)
        else:
            type_id = ((val & 0x3C) >> 2)

        self._tag = type_id
        self._typeid = PacketType(type_id)

    @property
    def tag(self) -> int:
        """The raw packet tag, which is kept even when it is not a known :py:obj:`PacketType`"""
        return self._tag

    @property
    def new_format(self) -> bool:
        return self._lenfmt == 1

    def __init__(self) -> None:
        super().__init__()
        self._typeid = PacketType.Invalid
        self._tag = 0

    def __len__(self) -> int:
        return 1 + self.llen

    def parse(self, packet: bytearray) -> None:
        """
        Consume the tag octet, and the length octets that follow it, from the front of ``packet``.

        Bit 7 of the tag octet is always set and bit 6 selects the format. In the old format bits 5-2 hold the tag
        and bits 1-0 say whether 1, 2 or 4 length octets follow, or (3) that the body runs to the end of the
        data. In the new format bits 5-0 hold the tag, and the length is a 1, 2 or 5 octet encoding that may also
        announce a partial body.

        :param packet: raw packet bytes, starting at the tag octet
        """
        if not packet[0] & 0x80:
            raise UnsupportedFramingError(f"Tag octet 0x{packet[0]:02x} does not have bit 7 set")

        self._lenfmt = 1 if packet[0] & 0x40 else 0
        self.typeid = packet[0]
        if self._lenfmt == 0:
            self.llen = (packet[0] & 0x03)
        del packet[0]

        self.length = packet


class VersionedHeader(Header):
    @sdproperty
    def version(self) -> int:
        return self._version

    @version.register
    def version_int(self, val: int) -> None:
        self._version = val

    def __init__(self) -> None:
        super().__init__()
        self.version = 0

    def parse(self, packet: bytearray) -> None:
        if self.typeid is PacketType.Invalid:
            super().parse(packet)

        if self.version == 0:
            if not packet:
                raise MalformedPacketError(f"{self.typeid.name} packet has no version octet")
            self.version = packet[0]
            del packet[0]


class Packet(Dispatchable):
    __typeid__: Optional[Union[PacketType, DispatchGuidance]] = None
    __headercls__: Type[Header] = Header

    def __init__(self, _=None) -> None:
        super().__init__()
        self.header = self.__headercls__()
        if isinstance(self.__typeid__, int):
            self.header.typeid = self.__typeid__

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} [type {self.header.tag:02}] at 0x{id(self):x}>'

    @abc.abstractmethod
    def parse(self, packet: bytearray) -> None:
        if self.header.typeid is PacketType.Invalid:
            self.header.parse(packet)


class VersionedPacket(Packet):
    __typeid__: Union[PacketType, DispatchGuidance] = DispatchGuidance.NoDispatch
    __headercls__ = VersionedHeader

    def __init__(self) -> None:
        super().__init__()
        if isinstance(self.__ver__, int) and isinstance(self.header, VersionedHeader):
            self.header.version = self.__ver__

    def __repr__(self) -> str:
        if not isinstance(self.header, VersionedHeader):
            raise TypeError(f"VersionedPacket should have VersionedHeader, instead it has {type(self.header)}")
        return f"<{self.__class__.__name__} [type {self.header.tag:02}][v{self.header.version}] at 0x{id(self):x}>"


class Opaque(Packet):
    """
    Any packet whose tag, or whose version for a versioned tag, is not decoded.
    The body is kept as-is so the packet keeps its place in the stream.
    """
    __typeid__ = None

    @sdproperty
    def payload(self) -> bytes:
        return self._payload

    @payload.register(bytes)
    @payload.register(bytearray)
    def payload_bin(self, val) -> None:
        self._payload = bytes(val)

    @property
    def version(self) -> Optional[int]:
        """The version octet of a versioned packet that was not understood, if there was one"""
        return getattr(self.header, 'version', None)

    def __init__(self) -> None:
        super().__init__()
        self.payload = b''

    def parse(self, packet: bytearray) -> None:
        super().parse(packet)
        self.payload = packet
        del packet[:]


# marker classes, tested with isinstance by the assembler
class Key:
    @abc.abstractproperty
    def pkalg(self) -> PubKeyAlgorithm:
        """The public key algorithm of the key"""


class Public(Key):
    pass


class Private(Key):
    pass


class Primary(Key):
    pass


class Sub(Key):
    pass


class MPI(int):
    """
    A multiprecision integer. ``bits`` is the bit count declared on the wire, which is what key sizes are
    reported from; it may be larger than ``bit_length()`` when the value has leading zero bits.
    """
    def __new__(cls, num):
        mpi = num
        bits = None

        if isinstance(num, (bytes, bytearray)):
            if isinstance(num, bytes):  # pragma: no cover
                num = bytearray(num)

            if len(num) < 2:
                raise MalformedPacketError("MPI length field runs past the end of its container")

            bits = MPIs.bytes_to_int(num[:2])
            fl = (bits + 7) // 8
            if fl > len(num) - 2:
                raise MalformedPacketError(f"MPI of {bits} bits is longer than the {len(num) - 2} octets remaining")
            del num[:2]

            mpi = MPIs.bytes_to_int(num[:fl])
            del num[:fl]

        obj = super().__new__(cls, mpi)
        obj.bits = bits if bits is not None else obj.bit_length()
        return obj

    def byte_length(self) -> int:
        return ((self.bits + 7) // 8)

    def to_bytes_declared(self) -> bytes:
        """the magnitude octets, as many as the declared bit count calls for"""
        return MPIs.int_to_bytes(self, self.byte_length())

    def __len__(self) -> int:
        return self.byte_length() + 2


class MPIs(Field):
    # this differs from MPI in that its subclasses hold/parse several MPI fields
    __mpis__: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return sum(len(i) for i in self)

    def __iter__(self) -> Iterator[MPI]:
        for i in self.__mpis__:
            yield getattr(self, i)
