""" userattribute.py
"""
import struct

from .types import UserAttribute

from ...constants import AttributeType
from ...constants import ImageEncoding

from ...decorators import sdproperty


__all__ = ('Image',)


class Image(UserAttribute):
    """
    An image of the key holder. The image data is preceded by a header whose length is a *little-endian*
    2-octet number; version 1 headers are 16 octets long and carry the encoding (1 for JPEG) in their fourth octet.
    """
    __typeid__ = AttributeType.Image

    @sdproperty
    def version(self):
        return self._version

    @version.register(int)
    def version_int(self, val):
        self._version = val

    @sdproperty
    def iencoding(self):
        return self._iencoding

    @iencoding.register(int)
    def iencoding_int(self, val):
        self._iencoding = ImageEncoding(val)

    @sdproperty
    def image(self):
        return self._image

    @image.register(bytes)
    @image.register(bytearray)
    def image_bin(self, val):
        self._image = bytes(val)

    @property
    def value(self):
        return (self.iencoding, len(self.image))

    def __init__(self):
        super(Image, self).__init__()
        self.version = 1
        self.iencoding = 1
        self.image = b''

    def parse(self, packet):
        super(Image, self).parse(packet)
        body = self.take(packet, self.bodylen, 'image attribute')

        hlen, self.version = struct.unpack_from('<HB', self.take(body, 3, 'image header'))
        if self.version == 1:
            self.iencoding = self.take(body, 1, 'image encoding')[0]
            # the rest of a v1 header is reserved
            self.take(body, max(hlen - 4, 0), 'image header')

        else:
            # unknown header versions are skipped by their declared length
            self.take(body, max(hlen - 3, 0), 'image header')
            self.iencoding = ImageEncoding.encodingof(bytes(body)) if len(body) >= 10 else ImageEncoding.Unknown

        self.image = body
