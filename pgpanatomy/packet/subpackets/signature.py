""" signature.py

Signature SubPackets
"""
from datetime import datetime
from datetime import timedelta
from datetime import timezone

from .types import Signature

from ...anatomy import Revocation

from ...constants import CompressionAlgorithm
from ...constants import Features as _Features
from ...constants import HashAlgorithm
from ...constants import KeyFlags as _KeyFlags
from ...constants import KeyServerPreferences as _KeyServerPreferences
from ...constants import NotationDataFlags
from ...constants import PacketType
from ...constants import PubKeyAlgorithm
from ...constants import RevocationKeyClass
from ...constants import RevocationReason
from ...constants import SigSubpacketType
from ...constants import SymmetricKeyAlgorithm

from ...decorators import sdproperty

from ...types import Fingerprint
from ...types import Frame
from ...types import KeyID


__all__ = ['URI',
           'FlagList',
           'ByteFlag',
           'Boolean',
           'CreationTime',
           'SignatureExpirationTime',
           'ExportableCertification',
           'TrustSignature',
           'RegularExpression',
           'Revocable',
           'KeyExpirationTime',
           'PreferredSymmetricAlgorithms',
           'RevocationKey',
           'Issuer',
           'NotationData',
           'PreferredHashAlgorithms',
           'PreferredCompressionAlgorithms',
           'KeyServerPreferences',
           'PreferredKeyServer',
           'PrimaryUserID',
           'Policy',
           'KeyFlags',
           'SignersUserID',
           'ReasonForRevocation',
           'Features',
           'EmbeddedSignature',
           'IssuerFingerprint']


class URI(Signature):
    @sdproperty
    def uri(self):
        return self._uri

    @uri.register(str)
    def uri_str(self, val):
        self._uri = val

    @uri.register(bytearray)
    def uri_bytearray(self, val):
        self.uri = val.decode('utf-8', errors='replace')

    @property
    def value(self):
        return self.uri

    def __init__(self):
        super(URI, self).__init__()
        self.uri = ""

    def parse(self, packet):
        super(URI, self).parse(packet)
        self.uri = self.take(packet, self.bodylen)


class FlagList(Signature):
    __flags__ = None

    @sdproperty
    def flags(self):
        return self._flags

    @flags.register(list)
    @flags.register(tuple)
    def flags_list(self, val):
        self._flags = list(val)

    @flags.register(int)
    def flags_int(self, val):
        if self.__flags__ is None:  # pragma: no cover
            raise AttributeError("Error: __flags__ not set!")

        self._flags.append(self.__flags__(val))

    @flags.register(bytearray)
    def flags_bytearray(self, val):
        self.flags = self.bytes_to_int(val)

    @property
    def value(self):
        return tuple(self.flags)

    def __init__(self):
        super(FlagList, self).__init__()
        self.flags = []

    def parse(self, packet):
        super(FlagList, self).parse(packet)
        for i in range(0, self.bodylen):
            self.flags = self.take(packet, 1)


class ByteFlag(Signature):
    """
    A flags subpacket. Only the first octet carries defined bits; any further octets are kept in ``extra``.
    """
    __flags__ = None

    @sdproperty
    def flags(self):
        return self._flags

    @flags.register(int)
    def flags_int(self, val):
        if self.__flags__ is None:  # pragma: no cover
            raise AttributeError("Error: __flags__ not set!")

        self._flags = self.__flags__(val)

    @flags.register(bytearray)
    def flags_bytearray(self, val):
        self.flags = val[0] if val else 0
        self.extra = bytes(val[1:])

    @property
    def value(self):
        return self.flags

    def __init__(self):
        super(ByteFlag, self).__init__()
        self.flags = 0
        self.extra = b''

    def parse(self, packet):
        super(ByteFlag, self).parse(packet)
        self.flags = self.take(packet, self.bodylen)


class Boolean(Signature):
    @sdproperty
    def bflag(self):
        return self._bool

    @bflag.register(bool)
    def bflag_bool(self, val):
        self._bool = val

    @bflag.register(bytearray)
    def bflag_bytearray(self, val):
        self.bflag = bool(self.bytes_to_int(val))

    @property
    def value(self):
        return self.bflag

    def __init__(self):
        super(Boolean, self).__init__()
        self.bflag = False

    def __bool__(self):
        return self.bflag

    def parse(self, packet):
        super(Boolean, self).parse(packet)
        self.bflag = self.take(packet, 1)


class CreationTime(Signature):
    """
    Signature Creation Time: a 4-octet timestamp of when the signature was made.
    A signature without one in its hashed area cannot take part in precedence decisions.
    """
    __typeid__ = SigSubpacketType.CreationTime

    @sdproperty
    def created(self):
        return self._created

    @created.register(datetime)
    def created_datetime(self, val):
        self._created = val

    @created.register(int)
    def created_int(self, val):
        self.created = datetime.fromtimestamp(val, timezone.utc)

    @created.register(bytearray)
    def created_bytearray(self, val):
        self.created = self.bytes_to_int(val)

    @property
    def value(self):
        return self.created

    def __init__(self):
        super(CreationTime, self).__init__()
        self.created = 0

    def parse(self, packet):
        super(CreationTime, self).parse(packet)
        self.created = self.take(packet, 4, 'creation time')


class SignatureExpirationTime(Signature):
    """
    Signature Expiration Time: the number of seconds, counted from the signature's creation time,
    that the signature stays valid. Zero means it does not expire.
    """
    __typeid__ = SigSubpacketType.SigExpirationTime

    @sdproperty
    def expires(self):
        return self._expires

    @expires.register(timedelta)
    def expires_timedelta(self, val):
        self._expires = val

    @expires.register(int)
    def expires_int(self, val):
        self.expires = timedelta(seconds=val)

    @expires.register(bytearray)
    def expires_bytearray(self, val):
        self.expires = self.bytes_to_int(val)

    @property
    def value(self):
        return self.expires

    def __init__(self):
        super(SignatureExpirationTime, self).__init__()
        self.expires = 0

    def parse(self, packet):
        super(SignatureExpirationTime, self).parse(packet)
        self.expires = self.take(packet, 4, 'expiration time')


class ExportableCertification(Boolean):
    """Exportable Certification: whether a certification may be used by anyone but its issuer"""
    __typeid__ = SigSubpacketType.ExportableCertification


class TrustSignature(Signature):
    __typeid__ = SigSubpacketType.TrustSignature

    @property
    def value(self):
        return (self.level, self.amount)

    def __init__(self):
        super(TrustSignature, self).__init__()
        self.level = 0
        self.amount = 0

    def parse(self, packet):
        super(TrustSignature, self).parse(packet)
        self.level, self.amount = self.take(packet, 2, 'trust signature')


class RegularExpression(Signature):
    """Regular Expression: a null-terminated expression limiting the scope of a trust signature"""
    __typeid__ = SigSubpacketType.RegularExpression

    @property
    def value(self):
        return self.regex

    def __init__(self):
        super(RegularExpression, self).__init__()
        self.regex = ""

    def parse(self, packet):
        super(RegularExpression, self).parse(packet)
        self.regex = self.take(packet, self.bodylen).rstrip(b'\x00').decode('utf-8', errors='replace')


class Revocable(Boolean):
    __typeid__ = SigSubpacketType.Revocable


class KeyExpirationTime(SignatureExpirationTime):
    """
    Key Expiration Time: the number of seconds after the *key's* creation time that the key expires.
    Zero means it does not expire. Only meaningful on a self-signature.
    """
    __typeid__ = SigSubpacketType.KeyExpirationTime


class PreferredSymmetricAlgorithms(FlagList):
    __typeid__ = SigSubpacketType.PreferredSymmetricAlgorithms
    __flags__ = SymmetricKeyAlgorithm


class RevocationKey(Signature):
    """
    Revocation Key: a class octet, a public key algorithm, and the fingerprint of a key allowed to
    revoke this one. Bit 0x40 of the class marks the designation as sensitive.
    """
    __typeid__ = SigSubpacketType.RevocationKey

    @sdproperty
    def keyclass(self):
        return self._keyclass

    @keyclass.register(int)
    def keyclass_int(self, val):
        self._keyclass = RevocationKeyClass(val & 0xC0)

    @keyclass.register(bytearray)
    def keyclass_bytearray(self, val):
        self.keyclass = self.bytes_to_int(val)

    @sdproperty
    def algorithm(self):
        return self._algorithm

    @algorithm.register(int)
    def algorithm_int(self, val):
        self._algorithm = PubKeyAlgorithm(val)

    @algorithm.register(bytearray)
    def algorithm_bytearray(self, val):
        self.algorithm = self.bytes_to_int(val)

    @sdproperty
    def fingerprint(self):
        return self._fingerprint

    @fingerprint.register(bytearray)
    def fingerprint_bytearray(self, val):
        self._fingerprint = Fingerprint(val, 4 if len(val) == 20 else 6)

    @property
    def value(self):
        return (self.keyclass, self.algorithm, self.fingerprint)

    def __init__(self):
        super(RevocationKey, self).__init__()
        self.keyclass = 0
        self.algorithm = PubKeyAlgorithm.Invalid
        self._fingerprint = None

    def parse(self, packet):
        super(RevocationKey, self).parse(packet)
        self.keyclass = self.take(packet, 1)
        self.algorithm = self.take(packet, 1)
        self.fingerprint = self.take(packet, self.bodylen - 2, 'revocation key fingerprint')


class Issuer(Signature):
    __typeid__ = SigSubpacketType.IssuerKeyID

    @sdproperty
    def issuer(self):
        return self._issuer

    @issuer.register(bytearray)
    def issuer_bytearray(self, val):
        self._issuer = KeyID(bytes(val))

    @property
    def value(self):
        return self.issuer

    def __init__(self):
        super(Issuer, self).__init__()
        self._issuer = None

    def parse(self, packet):
        super(Issuer, self).parse(packet)
        self.issuer = self.take(packet, 8, 'issuer key ID')


class NotationData(Signature):
    __typeid__ = SigSubpacketType.NotationData

    @sdproperty
    def flags(self):
        return self._flags

    @flags.register(int)
    def flags_int(self, val):
        self._flags = NotationDataFlags(val & 0x80)

    @flags.register(bytearray)
    def flags_bytearray(self, val):
        self.flags = val[0]

    @sdproperty
    def name(self):
        return self._name

    @name.register(str)
    def name_str(self, val):
        self._name = val

    @name.register(bytearray)
    def name_bytearray(self, val):
        self.name = val.decode('utf-8', errors='replace')

    @property
    def value(self):
        return (self.name, self.notation)

    @property
    def notation(self):
        return self._notation

    def __init__(self):
        super(NotationData, self).__init__()
        self.flags = 0
        self.name = ""
        self._notation = ""

    def parse(self, packet):
        super(NotationData, self).parse(packet)
        self.flags = self.take(packet, 4, 'notation flags')
        nlen = self.bytes_to_int(self.take(packet, 2, 'notation name length'))
        vlen = self.bytes_to_int(self.take(packet, 2, 'notation value length'))
        self.name = self.take(packet, nlen, 'notation name')
        val = self.take(packet, vlen, 'notation value')
        if NotationDataFlags.HumanReadable & self.flags:
            self._notation = val.decode('utf-8', errors='replace')

        else:
            self._notation = bytes(val)


class PreferredHashAlgorithms(FlagList):
    __typeid__ = SigSubpacketType.PreferredHashAlgorithms
    __flags__ = HashAlgorithm


class PreferredCompressionAlgorithms(FlagList):
    __typeid__ = SigSubpacketType.PreferredCompressionAlgorithms
    __flags__ = CompressionAlgorithm


class KeyServerPreferences(ByteFlag):
    __typeid__ = SigSubpacketType.KeyServerPreferences
    __flags__ = _KeyServerPreferences


class PreferredKeyServer(URI):
    __typeid__ = SigSubpacketType.PreferredKeyServer


class PrimaryUserID(Signature):
    __typeid__ = SigSubpacketType.PrimaryUserID

    @sdproperty
    def primary(self):
        return self._primary

    @primary.register(bool)
    def primary_bool(self, val):
        self._primary = val

    @primary.register(bytearray)
    def primary_bytearray(self, val):
        self.primary = bool(self.bytes_to_int(val))

    @property
    def value(self):
        return self.primary

    def __init__(self):
        super(PrimaryUserID, self).__init__()
        self.primary = True

    def __bool__(self):
        return self.primary

    def parse(self, packet):
        super(PrimaryUserID, self).parse(packet)
        self.primary = self.take(packet, 1, 'primary user ID flag')


class Policy(URI):
    __typeid__ = SigSubpacketType.PolicyURI


class KeyFlags(ByteFlag):
    __typeid__ = SigSubpacketType.KeyFlags
    __flags__ = _KeyFlags


class SignersUserID(Signature):
    __typeid__ = SigSubpacketType.SignersUserID

    @sdproperty
    def userid(self):
        return self._userid

    @userid.register(str)
    def userid_str(self, val):
        self._userid = val

    @userid.register(bytearray)
    def userid_bytearray(self, val):
        self.userid = val.decode('utf-8', errors='replace')

    @property
    def value(self):
        return self.userid

    def __init__(self):
        super(SignersUserID, self).__init__()
        self.userid = ""

    def parse(self, packet):
        super(SignersUserID, self).parse(packet)
        self.userid = self.take(packet, self.bodylen)


class ReasonForRevocation(Signature):
    __typeid__ = SigSubpacketType.ReasonForRevocation

    @sdproperty
    def code(self):
        return self._code

    @code.register(int)
    def code_int(self, val):
        self._code = RevocationReason(val)

    @code.register(bytearray)
    def code_bytearray(self, val):
        self.code = self.bytes_to_int(val)

    @sdproperty
    def string(self):
        return self._string

    @string.register(str)
    def string_str(self, val):
        self._string = val

    @string.register(bytearray)
    def string_bytearray(self, val):
        self.string = val.decode('utf-8', errors='replace')

    @property
    def value(self):
        return Revocation(self.code, self.string)

    def __init__(self):
        super(ReasonForRevocation, self).__init__()
        self.code = 0x00
        self.string = ""

    def parse(self, packet):
        super(ReasonForRevocation, self).parse(packet)
        self.code = self.take(packet, 1, 'revocation code')
        self.string = self.take(packet, self.bodylen - 1)


class Features(ByteFlag):
    __typeid__ = SigSubpacketType.Features
    __flags__ = _Features


class EmbeddedSignature(Signature):
    """
    Embedded Signature: a whole signature packet body, most often a subkey's back-signature
    (a Primary Key Binding signature) carried in its binding signature.
    """
    __typeid__ = SigSubpacketType.EmbeddedSignature

    @property
    def signature(self):
        return self._sigpkt

    @property
    def value(self):
        return self._sigpkt

    def __init__(self):
        super(EmbeddedSignature, self).__init__()
        self._sigpkt = None

    def parse(self, packet):
        super(EmbeddedSignature, self).parse(packet)
        from ..types import Header as PacketHeader
        from ..types import Packet

        body = self.take(packet, self.bodylen, 'embedded signature')
        header = PacketHeader()
        header.typeid = PacketType.Signature
        header.length = len(body)
        # dispatched by version, exactly as a top-level Signature packet would be
        self._sigpkt = Packet(Frame(int(PacketType.Signature), bytes(body), header, 0))


class IssuerFingerprint(Signature):
    """
    Issuer Fingerprint: a key version octet followed by the issuing key's fingerprint, 20 octets for
    version 4 and 32 octets for versions 5 and 6.
    """
    __typeid__ = SigSubpacketType.IssuerFingerprint

    @sdproperty
    def version(self):
        return self._version

    @version.register(int)
    def version_int(self, val):
        self._version = val

    @version.register(bytearray)
    def version_bytearray(self, val):
        self.version = self.bytes_to_int(val)

    @sdproperty
    def issuer_fingerprint(self):
        return self._issuer_fpr

    @issuer_fingerprint.register(bytearray)
    def issuer_fingerprint_bytearray(self, val):
        self._issuer_fpr = Fingerprint(val, self.version)

    @property
    def value(self):
        return self.issuer_fingerprint

    def __init__(self):
        super(IssuerFingerprint, self).__init__()
        self.version = 4
        self._issuer_fpr = None

    def parse(self, packet):
        super(IssuerFingerprint, self).parse(packet)
        self.version = self.take(packet, 1, 'issuer fingerprint version')

        if self.version not in (4, 5, 6):
            # a key version we cannot interpret; skip the fingerprint octets
            self.take(packet, self.bodylen - 1)
            return

        fpr_len = 20 if self.version == 4 else 32
        self.issuer_fingerprint = self.take(packet, fpr_len, 'issuer fingerprint')
