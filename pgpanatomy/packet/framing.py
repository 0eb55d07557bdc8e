""" framing.py
"""
import logging

from typing import Iterator, Union

from .types import Header

from ..errors import TruncatedPacketError
from ..errors import UnsupportedFramingError

from ..types import Frame

__all__ = ['iter_frames']

log = logging.getLogger(__name__)


def iter_frames(data: Union[bytes, bytearray]) -> Iterator[Frame]:
    """
    Split a binary packet stream into :py:obj:`~pgpanatomy.types.Frame` records, one packet at a time.

    Both old-format and new-format packet headers are understood, including partial body lengths, whose
    chunks are joined into a single body. The generator works on its own copy of ``data``.

    :raises: :py:exc:`~pgpanatomy.errors.TruncatedPacketError` if a length runs past the end of the data
    :raises: :py:exc:`~pgpanatomy.errors.UnsupportedFramingError` if a tag octet does not start a packet
    """
    stream = bytearray(data)
    offset = 0

    while stream:
        before = len(stream)
        header = Header()

        try:
            header.parse(stream)

        except (TruncatedPacketError, UnsupportedFramingError) as ex:
            ex.offset = offset
            raise

        body = bytes(stream[:header.length])
        del stream[:header.length]

        log.debug("framed tag %d (%s format%s) at offset %d, %d octets",
                  header.tag, 'new' if header.new_format else 'old', ', partial' if header.partial else '',
                  offset, len(body))
        yield Frame(header.tag, body, header, offset)

        offset += before - len(stream)
