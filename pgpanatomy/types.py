""" types.py
"""

import abc
import base64
import binascii
import collections
import re

from enum import IntEnum

from typing import Any, Dict, NamedTuple, Optional, Set, Tuple, Type, Union

from .decorators import sdproperty

from .errors import ArmorError
from .errors import MalformedPacketError
from .errors import TruncatedPacketError

__all__ = ['Armorable',
           'unarmor',
           'PGPObject',
           'Field',
           'Fingerprint',
           'Frame',
           'Header',
           'KeyID',
           'MetaDispatchable',
           'Dispatchable',
           'DispatchGuidance']


class Armorable(object):
    __crc24_init = 0x0B704CE
    __crc24_poly = 0x1864CFB

    # verbose pattern: literal spaces must be escaped
    __armor_regex = re.compile(r"""# armor header line; capture the label, tolerating surrounding whitespace
                         ^[ \t]*-{5}BEGIN\ (?P<magic>[A-Z0-9 ,]+?)-{5}[ \t]*\r?\n
                         # everything up to the first armor tail line
                         (?P<content>(?:.*\n)*?)
                         # the armor tail line; its label is compared to the header's after matching
                         ^[ \t]*-{5}END\ (?P<tail>[A-Z0-9 ,]+?)-{5}[ \t]*\r?$
                         """, flags=re.MULTILINE | re.VERBOSE)

    __header_regex = re.compile(r'^(?P<key>[A-Za-z0-9-]+):[ \t]*(?P<value>.*)$')
    __crc_regex = re.compile(r'^=(?P<crc>[A-Za-z0-9+/]{4})$')

    @staticmethod
    def is_binary(blob: Union[str, bytes, bytearray]) -> bool:
        """Whether ``blob`` looks like a binary OpenPGP packet stream: the first tag octet always has bit 7 set"""
        return isinstance(blob, (bytes, bytearray)) and len(blob) > 0 and bool(blob[0] & 0x80)

    @staticmethod
    def is_armor(text: Union[str, bytes, bytearray]) -> bool:
        """
        ``True`` if ``text`` holds a BEGIN/END armor block somewhere in it. Binary input never does.
        """
        if isinstance(text, (bytes, bytearray)):
            if Armorable.is_binary(text):
                return False
            text = text.decode('latin-1')

        return Armorable.__armor_regex.search(text) is not None

    @staticmethod
    def ascii_unarmor(text: Union[str, bytes, bytearray]) -> Dict[str, Any]:
        """
        Strip the armor from the first block found in ``text``, verifying the checksum line if there is one.

        :param text: armored text, as ``str`` or as ``bytes`` (read as latin-1)
        :raises: :py:exc:`~pgpanatomy.errors.ArmorError` if ``text`` did not contain a well-formed ASCII-armored
                 PGP block, or if its checksum does not match.
        :returns: A ``dict`` with the keys ``magic``, ``headers``, ``body``, and ``crc``.
        """
        if isinstance(text, (bytes, bytearray)):
            text = text.decode('latin-1')

        matcher = Armorable.__armor_regex.search(text)
        if matcher is None:
            raise ArmorError("Expected: ASCII-armored PGP data")

        magic = matcher.group('magic').strip()
        tail = matcher.group('tail').strip()
        if tail != magic:
            raise ArmorError(f"Armor tail line 'END {tail}' does not match 'BEGIN {magic}'")

        lines = [line.strip() for line in matcher.group('content').splitlines()]

        # armor headers run up to the first blank line
        headers = collections.OrderedDict()
        while lines and Armorable.__header_regex.match(lines[0]):
            key, value = Armorable.__header_regex.match(lines[0]).groups()
            headers[key] = value
            del lines[0]

        body = []
        crc = None
        for line in lines:
            if not line:
                continue
            m = Armorable.__crc_regex.match(line)
            if m is not None:
                crc = PGPObject.bytes_to_int(base64.b64decode(m.group('crc')))
                break
            body.append(line)

        if not body:
            raise ArmorError("ASCII-armored block has an empty body")

        try:
            data = bytearray(base64.b64decode(''.join(body), validate=True))

        except (binascii.Error, ValueError) as ex:
            raise ArmorError(f"Invalid base64 in armored body: {ex}") from ex

        if crc is not None and Armorable.crc24(data) != crc:
            raise ArmorError(f"Armor checksum mismatch: expected {crc:06X}, computed {Armorable.crc24(data):06X}")

        return {'magic': magic,
                'headers': headers or None,
                'body': data,
                'crc': crc}

    @staticmethod
    def crc24(data: Union[bytes, bytearray]) -> int:
        # armor checksum: computed over the decoded octets, not over the base64 text
        crc = Armorable.__crc24_init

        for b in data:
            crc ^= b << 16

            for i in range(8):
                crc <<= 1
                if crc & 0x1000000:
                    crc ^= Armorable.__crc24_poly

        return crc & 0xFFFFFF


def unarmor(blob: Union[str, bytes, bytearray]) -> bytearray:
    """
    Produce the binary packet stream held by ``blob``.

    Binary input is passed through unchanged; anything else must contain an ASCII-armored block.
    """
    if Armorable.is_binary(blob):
        return bytearray(blob)

    if not blob:
        raise ArmorError("No data to unarmor")

    if not Armorable.is_armor(blob):
        raise ArmorError("Input has no armor delimiters and is not a binary packet stream")

    return Armorable.ascii_unarmor(blob)['body']


class PGPObject(metaclass=abc.ABCMeta):

    @staticmethod
    def int_byte_len(i):
        return (i.bit_length() + 7) // 8

    @staticmethod
    def bytes_to_int(b, order='big'):  # pragma: no cover
        """convert bytes to integer"""

        return int.from_bytes(b, order)

    @staticmethod
    def int_to_bytes(i, minlen=1, order='big'):  # pragma: no cover
        """convert integer to bytes"""
        blen = max(minlen, PGPObject.int_byte_len(i), 1)

        return i.to_bytes(blen, order)

    @staticmethod
    def take(packet: bytearray, n: int, what: str = 'field') -> bytearray:
        """consume exactly ``n`` octets from the front of ``packet``"""
        if n > len(packet):
            raise MalformedPacketError(f"{what} needs {n} octets but only {len(packet)} remain")
        ret = packet[:n]
        del packet[:n]
        return ret

    @abc.abstractmethod
    def parse(self, packet):
        """consume this object's octets from the front of ``packet``"""


class Field(PGPObject):
    pass


class Header(Field):
    @sdproperty
    def length(self):
        return self._len

    @length.register(int)
    def length_int(self, val):
        self._len = val

    @length.register(bytes)
    @length.register(bytearray)
    def length_bin(self, val):
        def _new_len(b):
            def _parse_len(a, offset=0):
                # (length, octets used by the length field, partial)
                if offset >= len(a):
                    raise TruncatedPacketError("Length field runs past the end of the data")

                fo = a[offset]

                if 192 > fo:
                    return (fo, 1, False)

                elif 224 > fo:  # >= 192 is implied
                    if offset + 2 > len(a):
                        raise TruncatedPacketError("Two-octet length field runs past the end of the data")
                    return (((fo - 192) << 8) + a[offset + 1] + 192, 2, False)

                elif 255 > fo:  # >= 224 is implied
                    # partial body length
                    return (1 << (fo & 0x1f), 1, True)

                else:
                    if offset + 5 > len(a):
                        raise TruncatedPacketError("Five-octet length field runs past the end of the data")
                    return (self.bytes_to_int(a[offset + 1:offset + 5]), 5, False)

            part_len, size, partial = _parse_len(b)
            del b[:size]
            self._partial = partial

            total = part_len
            while partial:
                if total > len(b):
                    raise TruncatedPacketError(f"Partial body chunk of {part_len} octets runs past the end of the data")
                # splice out the next length field so the chunks are left contiguous
                part_len, size, partial = _parse_len(b, total)
                del b[total:total + size]
                total += part_len

            self._len = total

        def _old_len(b):
            if self.llen > 0:
                if self.llen > len(b):
                    raise TruncatedPacketError("Length field runs past the end of the data")
                self._len = self.bytes_to_int(b[:self.llen])
                del b[:self.llen]

            else:
                # indeterminate length; the packet runs to the end of the data
                self._len = len(b)

        _new_len(val) if self._lenfmt == 1 else _old_len(val)

        if self._len > len(val):
            raise TruncatedPacketError(f"Declared length {self._len} exceeds the {len(val)} octets remaining")

    @sdproperty
    def llen(self):
        lf = self._lenfmt

        if lf == 1:
            # new-format length
            if 192 > self.length:
                return 1

            elif 8384 > self.length:  # >= 192 is implied
                return 2

            else:
                return 5

        else:
            # old-format length
            return self._llen

    @llen.register(int)
    def llen_int(self, val):
        if self._lenfmt == 0:
            self._llen = {0: 1, 1: 2, 2: 4, 3: 0}[val]

    @property
    def partial(self) -> bool:
        return self._partial

    def __init__(self):
        super().__init__()
        self._len = 1
        self._llen = 1
        self._lenfmt = 1
        self._partial = False


class Frame(NamedTuple):
    """One framed packet: its raw tag, its body octets, the parsed header, and where it started in the stream"""
    tag: int
    body: bytes
    header: Header
    offset: int


class DispatchGuidance(IntEnum):
    "Identify classes that should be left alone by the internal dispatch mechanism"
    NoDispatch = -1


class MetaDispatchable(abc.ABCMeta):
    """
    Registers every :py:class:`Dispatchable` subclass so that calling a root class with raw data constructs
    the subclass that handles it.
    """

    _roots: Set[Type] = set()
    """
    Root classes: Dispatchable subclasses with a ``__typeid__`` of ``None`` that do not descend from another root.
    """
    _registry: Dict[Union[Tuple[Type, Optional[IntEnum]], Tuple[Type, IntEnum, int]], Type] = {}
    """
    Maps ``(root, None)`` to the root's fallback class, ``(root, typeid)`` to the class for a type, and
    ``(root, typeid, version)`` to the class for one version of a versioned type. A version that is not
    registered falls back to ``(root, None)``.
    """

    def __new__(mcs, name, bases, attrs):  # NOQA
        ncls = super().__new__(mcs, name, bases, attrs)

        if ncls.__typeid__ is not DispatchGuidance.NoDispatch:
            if ncls.__typeid__ is None and not issubclass(ncls, tuple(MetaDispatchable._roots)):
                # this is a root class
                MetaDispatchable._roots.add(ncls)

            elif issubclass(ncls, tuple(MetaDispatchable._roots)):
                for rcls in (root for root in MetaDispatchable._roots if issubclass(ncls, root)):
                    if (rcls, ncls.__typeid__) not in MetaDispatchable._registry:
                        MetaDispatchable._registry[(rcls, ncls.__typeid__)] = ncls

                    if (
                        ncls.__ver__ is not None
                        and ncls.__ver__ > 0
                        and (rcls, ncls.__typeid__, ncls.__ver__) not in MetaDispatchable._registry
                    ):
                        MetaDispatchable._registry[(rcls, ncls.__typeid__, ncls.__ver__)] = ncls

        return ncls

    def __call__(cls, packet=None):  # NOQA
        def _makeobj(cls):
            obj = object.__new__(cls)
            obj.__init__()
            return obj

        if packet is None:
            return _makeobj(cls)

        if cls in MetaDispatchable._roots:
            rcls = cls

        else:
            rcls = next(root for root in MetaDispatchable._roots if issubclass(cls, root))

        try:
            if isinstance(packet, Frame):
                # the framer has already parsed the header and bounded the body
                header = packet.header
                packet = bytearray(packet.body)

            else:
                header = rcls.__headercls__()
                header.parse(packet)

            ncls = None
            if (rcls, header.typeid) in MetaDispatchable._registry:
                ncls = MetaDispatchable._registry[(rcls, header.typeid)]

                if ncls.__ver__ == 0:
                    if header.__class__ != ncls.__headercls__:
                        nh = ncls.__headercls__()
                        nh.__dict__.update(header.__dict__)
                        nh.parse(packet)
                        header = nh

                    ncls = MetaDispatchable._registry.get((rcls, header.typeid, header.version), None)

            if ncls is None:
                ncls = MetaDispatchable._registry[(rcls, None)]

            obj = _makeobj(ncls)
            obj.header = header
            obj.parse(packet)

        except MalformedPacketError:
            raise

        except Exception as ex:
            raise MalformedPacketError(str(ex)) from ex

        return obj


class Dispatchable(PGPObject, metaclass=MetaDispatchable):
    __typeid__: Optional[IntEnum] = DispatchGuidance.NoDispatch

    @abc.abstractproperty
    def __headercls__(self):  # pragma: no cover
        return False

    __ver__: Optional[int] = None


class KeyID(str):
    '''
    This class represents an 8-octet key ID, as carried by issuer subpackets and v3 signatures.
    '''
    def __new__(cls, content: Union[str, bytes, bytearray]) -> "KeyID":
        if isinstance(content, str):
            if not re.match(r'^[0-9A-F]{16}$', content):
                raise ValueError(f'Initializing a KeyID from a string requires it to be 16 uppercase hex digits, not "{content}"')
            return str.__new__(cls, content)
        elif isinstance(content, (bytes, bytearray)):
            if len(content) != 8:
                raise ValueError(f'Initializing a KeyID from a bytes or bytearray requires exactly 8 bytes, not {content!r}')
            return str.__new__(cls, binascii.b2a_hex(content).decode('latin1').upper())
        else:
            raise TypeError(f'cannot initialize a KeyID from {type(content)}')

    @classmethod
    def parse(cls, b: bytearray) -> "KeyID":
        """consume an 8-octet key ID from the front of ``b``"""
        ret = cls(bytes(PGPObject.take(b, 8, 'key ID')))
        return ret

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KeyID):
            return str(self) == str(other)
        if isinstance(other, Fingerprint):
            return other.version != 3 and str(self) == str(other.keyid)
        if isinstance(other, str):
            return str(self) == other.upper().replace(' ', '')
        if isinstance(other, (bytes, bytearray)):
            return bytes(self) == bytes(other)
        return False

    def __ne__(self, other: object) -> bool:
        return not (self == other)

    def __int__(self) -> int:
        return int.from_bytes(bytes(self), byteorder='big', signed=False)

    def __hash__(self) -> int:
        return hash(str(self))

    def __bytes__(self) -> bytes:
        return binascii.a2b_hex(self)

    def __repr__(self) -> str:
        return f"KeyID({self})"


class Fingerprint(str):
    """
    A subclass of ``str``. Can be compared using == and != to ``str``, :py:obj:`KeyID`, and other
    :py:obj:`Fingerprint` instances.

    The number of hex digits is determined by the key version: 32 for v3, 40 for v4, 64 for v5 and v6.
    Spaces are ignored when constructing and comparing.
    """
    _digits = {3: 32, 4: 40, 5: 64, 6: 64}

    @property
    def keyid(self) -> KeyID:
        """
        The key ID derived from this fingerprint. For v4 keys this is the low-order 8 octets;
        for v5 and v6 keys it is the high-order 8 octets (RFC 9580 section 5.5.4.3), which is what the issuer key ID
        subpackets on signatures made by those keys carry, so issuer matching needs the same rule. A v3 key ID is
        taken from the RSA modulus instead, so it cannot be derived here.
        """
        if self._version == 3:
            raise ValueError("the key ID of a v3 key is not derived from its fingerprint")
        if self._version == 4:
            return KeyID(self[-16:])
        return KeyID(self[:16])

    @sdproperty
    def version(self) -> int:
        return self._version

    @version.register
    def version_int(self, version: int) -> None:
        self._version: int = version

    def __new__(cls, content: Union[str, bytes, bytearray], version: Optional[int] = None) -> "Fingerprint":
        if isinstance(content, Fingerprint):
            return content

        if isinstance(content, (bytes, bytearray)):
            if len(content) not in (16, 20, 32):
                raise ValueError(f'binary Fingerprint must be 16, 20, or 32 bytes, not {len(content)}')
            content = binascii.b2a_hex(content).decode('latin-1')

        # validate input before continuing: this should be a string of 32, 40, or 64 hex digits
        content = content.upper().replace(' ', '')
        if not re.match(r'^(?:[0-9A-F]{32}|[0-9A-F]{40}|[0-9A-F]{64})$', content):
            raise ValueError('Fingerprint must be a string of 32, 40, or 64 hex digits')

        if version is None:
            version = {32: 3, 40: 4, 64: 6}[len(content)]

        if Fingerprint._digits.get(version, None) != len(content):
            raise ValueError(f'a v{version} Fingerprint cannot have {len(content)} hex digits')

        ret = str.__new__(cls, content)
        ret.version = version
        return ret

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Fingerprint):
            return str(self) == str(other) and self._version == other._version
        if isinstance(other, KeyID):
            return self._version != 3 and self.keyid == other

        if isinstance(other, (str, bytes, bytearray)):
            if isinstance(other, (bytes, bytearray)):
                return bytes(self) == bytes(other)

            other = other.upper().replace(' ', '')
            return str(self) == other or (self._version != 3 and str(self.keyid) == other)

        return False  # pragma: no cover

    def __ne__(self, other: object) -> bool:
        return not (self == other)

    def __hash__(self) -> int:
        return hash(str(self))

    def __bytes__(self) -> bytes:
        return binascii.a2b_hex(self.encode("latin-1"))

    def __pretty__(self) -> str:
        groups = [self[i:i + 4] for i in range(0, len(self), 4)]
        half = len(groups) // 2
        return '  '.join([' '.join(groups[:half]), ' '.join(groups[half:])])

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}v{self._version}({self.__pretty__()})'
