""" subpacket.py
"""
import abc

from typing import Optional, Union

from ...constants import AttributeType
from ...constants import SigSubpacketType

from ...decorators import sdproperty

from ...errors import MalformedPacketError

from ...types import Dispatchable
from ...types import Header as _Header

__all__ = ['Header',
           'SubPacket',
           'Signature',
           'UserAttribute',
           'Opaque']


class Header(_Header):
    @sdproperty
    def critical(self) -> bool:
        return self._critical

    @critical.register(bool)
    def critical_bool(self, val: bool) -> None:
        self._critical = val

    @sdproperty
    def typeid(self) -> int:
        return self._typeid

    @typeid.register(int)
    def typeid_int(self, val: int) -> None:
        self._typeid = val & 0x7f

    @typeid.register(bytes)
    @typeid.register(bytearray)
    def typeid_bin(self, val: Union[bytes, bytearray]) -> None:
        v = self.bytes_to_int(val)
        self.typeid = v
        self.critical = bool(v & 0x80)

    @property
    def size(self) -> int:
        """total octets on the wire: the length field, the type octet, and the body"""
        return self._hlen + self.length

    def __init__(self) -> None:
        super().__init__()
        self._typeid = -1
        self._hlen = 0
        self.critical = False

    def parse(self, packet: bytearray) -> None:
        """
        Subpacket lengths are one, two, or five octets. Unlike packet lengths there is no partial form,
        so every first octet from 192 through 254 starts a two-octet length.
        The length counts the type octet and the body.
        """
        if not packet:
            raise MalformedPacketError("subpacket length runs past the end of its area")

        fo = packet[0]
        if 192 > fo:
            self._hlen = 1
            self.length = fo

        elif 255 > fo:
            self._hlen = 2
            if len(packet) < 2:
                raise MalformedPacketError("two-octet subpacket length runs past the end of its area")
            self.length = ((fo - 192) << 8) + packet[1] + 192

        else:
            self._hlen = 5
            if len(packet) < 5:
                raise MalformedPacketError("five-octet subpacket length runs past the end of its area")
            self.length = self.bytes_to_int(packet[1:5])

        del packet[:self._hlen]

        if self.length == 0:
            raise MalformedPacketError("subpacket has no type octet")

        if self.length > len(packet):
            raise MalformedPacketError(f"subpacket of {self.length} octets is longer than the {len(packet)} octets left in its area")

        self.typeid = packet[:1]
        del packet[:1]

    def __len__(self) -> int:
        return self._hlen + 1


class SubPacket(Dispatchable):
    __headercls__ = Header

    def __init__(self) -> None:
        super().__init__()
        self.header = Header()

        if (
            self.header.typeid == -1
            and (self.__typeid__ is not None)
        ):
            self.header.typeid = self.__typeid__

    @property
    def bodylen(self) -> int:
        return self.header.length - 1

    @abc.abstractproperty
    def value(self):
        """The decoded value carried by this subpacket"""

    def __repr__(self) -> str:
        return "<{} [0x{:02x}] {}at 0x{:x}>".format(self.__class__.__name__, self.header.typeid, 'critical! ' if self.header.critical else '', id(self))

    @abc.abstractmethod
    def parse(self, packet: bytearray) -> None:  # pragma: no cover
        if self.header._typeid == -1:
            self.header.parse(packet)


class Signature(SubPacket):
    __typeid__: Optional[SigSubpacketType] = None

    # allow one parameter for MetaDispatchable initialization:
    def __init__(self, _: Optional[bytes] = None) -> None:
        super().__init__()


class UserAttribute(SubPacket):
    __typeid__: Optional[AttributeType] = None

    # allow one parameter for MetaDispatchable initialization:
    def __init__(self, _: Optional[bytes] = None) -> None:
        super().__init__()


class Opaque(Signature, UserAttribute):
    __typeid__ = None

    @sdproperty
    def payload(self) -> bytes:
        return self._payload

    @payload.register(bytes)
    @payload.register(bytearray)
    def payload_bin(self, val: Union[bytes, bytearray]) -> None:
        self._payload = bytes(val)

    @property
    def value(self) -> bytes:
        return self.payload

    def __init__(self) -> None:
        super().__init__()
        self.payload = b''

    def parse(self, packet: bytearray) -> None:
        super().parse(packet)
        self.payload = self.take(packet, self.bodylen, 'subpacket body')
