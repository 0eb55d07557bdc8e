""" errors.py
"""

__all__ = ('PGPError',
           'ArmorError',
           'TruncatedPacketError',
           'UnsupportedFramingError',
           'MalformedPacketError',
           'UnsupportedAlgorithmError',
           'NoPrimaryKeyError',
           'PGPAnatomyWarning',)


class PGPError(Exception):
    """Raised as a general error in pgpanatomy"""
    stage = 'unknown'

    def __init__(self, message, offset=None):
        super().__init__(message)
        self.offset = offset

    def __str__(self):
        return "[{stage:s}] {msg:s}".format(stage=self.stage, msg=super().__str__())


class ArmorError(PGPError):
    """Raised when ASCII armor cannot be located, decoded, or its checksum does not match"""
    stage = 'armor'


class TruncatedPacketError(PGPError):
    """Raised when a declared packet length runs past the end of the data"""
    stage = 'framing'


class UnsupportedFramingError(PGPError):
    """Raised when a packet header uses a framing that cannot be interpreted"""
    stage = 'framing'


class MalformedPacketError(PGPError):
    """Raised when the fields of a packet body are internally inconsistent"""
    stage = 'packet'


class UnsupportedAlgorithmError(PGPError):
    """Raised when key material uses an algorithm that cannot be decoded"""
    stage = 'packet'


class NoPrimaryKeyError(PGPError):
    """Raised when a packet stream contains no primary key"""
    stage = 'assembly'


class PGPAnatomyWarning(UserWarning):
    """Category for recoverable problems found while analyzing a certificate"""
    pass
