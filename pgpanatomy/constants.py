""" constants.py
"""
from __future__ import annotations

import binascii
import warnings

from enum import Enum
from enum import IntEnum
from enum import IntFlag

from typing import FrozenSet, NamedTuple, Optional, Type, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, x448, x25519

from .decorators import classproperty

from .errors import PGPAnatomyWarning

__all__ = [
    'ECFields',
    'EllipticCurveOID',
    'ECPointFormat',
    'PacketType',
    'SymmetricKeyAlgorithm',
    'PubKeyAlgorithm',
    'CompressionAlgorithm',
    'HashAlgorithm',
    'RevocationReason',
    'SigSubpacketType',
    'AttributeType',
    'ImageEncoding',
    'SignatureType',
    'KeyServerPreferences',
    'KeyFlags',
    'Features',
    'RevocationKeyClass',
    'NotationDataFlags',
]


class ECPointFormat(IntEnum):
    # prefix octet of an encoded EC point
    Standard = 0x04
    Native = 0x40
    OnlyX = 0x41
    OnlyY = 0x42


class PacketType(IntEnum):
    Unknown = -1
    Invalid = 0
    PublicKeyEncryptedSessionKey = 1
    Signature = 2
    SymmetricKeyEncryptedSessionKey = 3
    OnePassSignature = 4
    SecretKey = 5
    PublicKey = 6
    SecretSubKey = 7
    CompressedData = 8
    SymmetricallyEncryptedData = 9
    Marker = 10
    LiteralData = 11
    Trust = 12
    UserID = 13
    PublicSubKey = 14
    UserAttribute = 17
    SymmetricallyEncryptedIntegrityProtectedData = 18
    ModificationDetectionCode = 19
    Padding = 21

    @classmethod
    def _missing_(cls, val: object) -> PacketType:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up PacketType by non-int {type(val)}")
        return cls.Unknown


class SymmetricKeyAlgorithm(IntEnum):
    """Symmetric key algorithm identifiers, as found in preferences and ECDH KDF parameters."""
    Unknown = -1
    Plaintext = 0x00
    IDEA = 0x01
    TripleDES = 0x02
    CAST5 = 0x03
    Blowfish = 0x04
    AES128 = 0x07
    AES192 = 0x08
    AES256 = 0x09
    Twofish256 = 0x0A
    Camellia128 = 0x0B
    Camellia192 = 0x0C
    Camellia256 = 0x0D

    @classmethod
    def _missing_(cls, val: object) -> SymmetricKeyAlgorithm:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up SymmetricKeyAlgorithm by non-int {type(val)}")
        return cls.Unknown


class PubKeyAlgorithm(IntEnum):
    """Public key algorithm identifiers."""
    Unknown = -1
    Invalid = 0x00
    #: RSA, usable for both signing and encryption
    RSAEncryptOrSign = 0x01
    RSAEncrypt = 0x02  # deprecated
    RSASign = 0x03     # deprecated
    #: ElGamal, encryption only
    ElGamal = 0x10
    #: DSA
    DSA = 0x11
    #: ECDH over a named curve
    ECDH = 0x12
    #: ECDSA over a named curve
    ECDSA = 0x13
    FormerlyElGamalEncryptOrSign = 0x14  # deprecated - do not generate
    DiffieHellman = 0x15  # X9.42
    #: EdDSA with a curve OID (legacy form, superseded by Ed25519/Ed448)
    EdDSA = 0x16
    X25519 = 0x19
    X448 = 0x1A
    Ed25519 = 0x1B
    Ed448 = 0x1C

    @classmethod
    def _missing_(cls, val: object) -> PubKeyAlgorithm:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up PubKeyAlgorithm by non-int {type(val)}")
        return cls.Unknown

    @property
    def display_name(self) -> str:
        names = {PubKeyAlgorithm.RSAEncryptOrSign: 'RSA',
                 PubKeyAlgorithm.RSAEncrypt: 'RSA',
                 PubKeyAlgorithm.RSASign: 'RSA',
                 PubKeyAlgorithm.ElGamal: 'ElGamal',
                 PubKeyAlgorithm.FormerlyElGamalEncryptOrSign: 'ElGamal',
                 PubKeyAlgorithm.DSA: 'DSA',
                 PubKeyAlgorithm.ECDH: 'ECDH',
                 PubKeyAlgorithm.ECDSA: 'ECDSA',
                 PubKeyAlgorithm.EdDSA: 'EdDSA',
                 PubKeyAlgorithm.Ed25519: 'EdDSA',
                 PubKeyAlgorithm.Ed448: 'EdDSA',
                 PubKeyAlgorithm.X25519: 'X25519',
                 PubKeyAlgorithm.X448: 'X448'}
        return names.get(self, 'Unknown')

    @property
    def can_encrypt(self) -> bool:
        return self in {PubKeyAlgorithm.RSAEncryptOrSign,
                        PubKeyAlgorithm.RSAEncrypt,
                        PubKeyAlgorithm.ElGamal,
                        PubKeyAlgorithm.FormerlyElGamalEncryptOrSign,
                        PubKeyAlgorithm.ECDH,
                        PubKeyAlgorithm.X25519,
                        PubKeyAlgorithm.X448}

    @property
    def can_sign(self) -> bool:
        return self in {PubKeyAlgorithm.RSAEncryptOrSign,
                        PubKeyAlgorithm.RSASign,
                        PubKeyAlgorithm.DSA,
                        PubKeyAlgorithm.ECDSA,
                        PubKeyAlgorithm.EdDSA,
                        PubKeyAlgorithm.Ed25519,
                        PubKeyAlgorithm.Ed448}

    @property
    def default_usage(self) -> FrozenSet[KeyFlags]:
        """
        The capabilities implied by this algorithm alone, for keys whose binding signature carries no key flags.
        """
        usage = set()
        if self.can_sign:
            usage |= {KeyFlags.Sign, KeyFlags.Certify}
        if self.can_encrypt:
            usage |= {KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage}
        return frozenset(usage)


class CompressionAlgorithm(IntEnum):
    """Compression algorithm identifiers."""
    Unknown = -1
    #: No compression
    Uncompressed = 0x00
    #: ZIP DEFLATE
    ZIP = 0x01
    #: zlib (DEFLATE with a zlib wrapper)
    ZLIB = 0x02
    #: Bzip2
    BZ2 = 0x03

    @classmethod
    def _missing_(cls, val: object) -> CompressionAlgorithm:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up CompressionAlgorithm by non-int {type(val)}")
        return cls.Unknown


class HashAlgorithm(IntEnum):
    """Hash algorithm identifiers."""
    Unknown = -1
    Invalid = 0x00
    MD5 = 0x01
    SHA1 = 0x02
    RIPEMD160 = 0x03
    _reserved_1 = 0x04
    _reserved_2 = 0x05
    _reserved_3 = 0x06
    _reserved_4 = 0x07
    SHA256 = 0x08
    SHA384 = 0x09
    SHA512 = 0x0A
    SHA224 = 0x0B
    SHA3_256 = 12
    _reserved_5 = 13
    SHA3_512 = 14

    @classmethod
    def _missing_(cls, val: object) -> HashAlgorithm:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up HashAlgorithm by non-int {type(val)}")
        return cls.Unknown

    def digest(self, data: bytes) -> bytes:
        """hash ``data`` in one go"""
        ctx = hashes.Hash(getattr(hashes, self.name)())
        ctx.update(data)
        return ctx.finalize()


class ECFields(NamedTuple):
    name: str
    OID: str
    OID_der: bytes
    key_size: int  # in bits
    curve: Type

    def __repr__(self) -> str:
        return f'<Elliptic Curve {self.name} ({self.OID})>'


class EllipticCurveOID(Enum):
    """Elliptic curves that can appear in key material."""

    #: Curve25519, for X25519 key agreement
    Curve25519 = (x25519, '1.3.6.1.4.1.3029.1.5.1',
                  b'\x2b\x06\x01\x04\x01\x97\x55\x01\x05\x01',
                  'X25519', 256)
    #: Edwards form of Curve25519, for Ed25519 signatures
    Ed25519 = (ed25519, '1.3.6.1.4.1.11591.15.1',
               b'\x2b\x06\x01\x04\x01\xda\x47\x0f\x01',
               'Ed25519', 256)
    #: Curve448, for X448 key agreement
    Curve448 = (x448, '1.3.101.111',
                b'\x2b\x65\x6f',
                'X448', 448)
    #: Edwards variant of Curve448
    Ed448 = (ed448, '1.3.101.113',
             b'\x2b\x65\x71',
             'Ed448', 448)
    #: NIST P-256 (secp256r1)
    NIST_P256 = (ec.SECP256R1, '1.2.840.10045.3.1.7',
                 b'\x2a\x86\x48\xce\x3d\x03\x01\x07')
    #: NIST P-384 (secp384r1)
    NIST_P384 = (ec.SECP384R1, '1.3.132.0.34',
                 b'\x2b\x81\x04\x00\x22')
    #: NIST P-521 (secp521r1)
    NIST_P521 = (ec.SECP521R1, '1.3.132.0.35',
                 b'\x2b\x81\x04\x00\x23')
    #: brainpoolP256r1
    Brainpool_P256 = (ec.BrainpoolP256R1, '1.3.36.3.3.2.8.1.1.7',
                      b'\x2b\x24\x03\x03\x02\x08\x01\x01\x07')
    #: brainpoolP384r1
    Brainpool_P384 = (ec.BrainpoolP384R1, '1.3.36.3.3.2.8.1.1.11',
                      b'\x2b\x24\x03\x03\x02\x08\x01\x01\x0b')
    #: brainpoolP512r1
    Brainpool_P512 = (ec.BrainpoolP512R1, '1.3.36.3.3.2.8.1.1.13',
                      b'\x2b\x24\x03\x03\x02\x08\x01\x01\x0d')
    #: SECG curve secp256k1
    SECP256K1 = (ec.SECP256K1, '1.3.132.0.10',
                 b'\x2b\x81\x04\x00\x0a')

    def __new__(cls, impl_cls: Type, oid: str, oid_der: bytes, name: Optional[str] = None, key_size_bits: Optional[int] = None) -> EllipticCurveOID:
        # the short Weierstrass curves take their name and size from the cryptography curve class;
        # the others have no such attributes, so they are spelled out above
        obj = object.__new__(cls)
        if name is None:
            newname = impl_cls.name
            if not isinstance(newname, str):
                raise TypeError(f"{impl_cls}.name is not string!")
            name = newname
        if key_size_bits is None:
            newks = impl_cls.key_size
            if not isinstance(newks, int):
                raise TypeError(f"{impl_cls}.key_size is not an integer!")
            key_size_bits = newks

        obj._value_ = ECFields(name, oid, oid_der, key_size_bits, impl_cls)

        return obj

    @classmethod
    def from_OID(cls, oid: bytes) -> Union["EllipticCurveOID", bytes]:
        for c in EllipticCurveOID:
            if c.value.OID_der == oid:
                return c
        warnings.warn(f"Unknown Elliptic curve OID: {oid!r}", PGPAnatomyWarning, stacklevel=3)
        return oid

    @classmethod
    def parse(cls, packet: bytearray) -> Union["EllipticCurveOID", bytes]:
        oidlen = packet[0]
        if oidlen in (0x00, 0xFF) or oidlen > len(packet) - 1:
            raise ValueError(f"invalid curve OID length {oidlen}")
        del packet[0]
        ret = EllipticCurveOID.from_OID(bytes(packet[:oidlen]))
        del packet[:oidlen]
        return ret

    @staticmethod
    def describe(oid: Union["EllipticCurveOID", bytes, None]) -> Optional[str]:
        """The display name of a curve, or ``Unknown(<hex>)`` for an OID that is not recognized"""
        if oid is None:
            return None
        if isinstance(oid, EllipticCurveOID):
            return oid.value.name
        return 'Unknown({:s})'.format(binascii.hexlify(oid).decode('latin-1'))

    @property
    def key_size(self) -> int:
        return self.value.key_size

    @property
    def oid(self) -> str:
        return self.value.OID

    @property
    def curve(self) -> Type:
        return self.value.curve

    def __bytes__(self) -> bytes:
        return bytes([len(self.value.OID_der)]) + self.value.OID_der

    def __len__(self) -> int:
        return len(self.value.OID_der) + 1


class RevocationReason(IntEnum):
    """Reason for Revocation codes."""
    Unknown = -1
    #: no reason given
    NotSpecified = 0x00
    #: the key has been replaced by another key
    Superseded = 0x01
    #: the secret key material may be known to someone else
    Compromised = 0x02
    #: the key is no longer in use
    Retired = 0x03
    #: the user ID no longer applies to the key holder
    UserID = 0x20

    @classmethod
    def _missing_(cls, val: object) -> RevocationReason:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up RevocationReason by non-int {type(val)}")
        return cls.Unknown

    @property
    def is_soft(self) -> bool:
        """Soft revocations are overridden by a binding made after them"""
        return self in {RevocationReason.Superseded, RevocationReason.Retired}


class SigSubpacketType(IntEnum):
    Unknown = -1
    CreationTime = 2
    SigExpirationTime = 3
    ExportableCertification = 4
    TrustSignature = 5
    RegularExpression = 6
    Revocable = 7
    KeyExpirationTime = 9
    PreferredSymmetricAlgorithms = 11
    RevocationKey = 12
    IssuerKeyID = 16
    NotationData = 20
    PreferredHashAlgorithms = 21
    PreferredCompressionAlgorithms = 22
    KeyServerPreferences = 23
    PreferredKeyServer = 24
    PrimaryUserID = 25
    PolicyURI = 26
    KeyFlags = 27
    SignersUserID = 28
    ReasonForRevocation = 29
    Features = 30
    SignatureTarget = 31
    EmbeddedSignature = 32
    IssuerFingerprint = 33
    IntendedRecipientFingerprint = 35
    AttestedCertifications = 37

    @classmethod
    def _missing_(cls, val: object) -> SigSubpacketType:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up SigSubpacketType by non-int {type(val)}")
        return cls.Unknown


class AttributeType(IntEnum):
    Unknown = -1
    Image = 1

    @classmethod
    def _missing_(cls, val: object) -> AttributeType:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up AttributeType by non-int {type(val)}")
        return cls.Unknown


class ImageEncoding(IntEnum):
    Unknown = -1
    Invalid = 0x00
    JPEG = 0x01

    @classmethod
    def encodingof(cls, imagebytes: bytes) -> ImageEncoding:
        if imagebytes[6:10] in (b'JFIF', b'Exif') or imagebytes[:4] == b'\xff\xd8\xff\xdb':
            return ImageEncoding.JPEG
        return ImageEncoding.Unknown  # pragma: no cover

    @classmethod
    def _missing_(cls, val: object) -> ImageEncoding:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up ImageEncoding by non-int {type(val)}")
        return cls.Unknown


class SignatureType(IntEnum):
    """Signature type octets."""
    Unknown = -1

    #: over the octets of a document
    BinaryDocument = 0x00

    #: The signature is calculated over the text data with its line endings converted to ``<CR><LF>``.
    CanonicalDocument = 0x01

    #: over nothing but its own subpackets
    Standalone = 0x02

    #: certifies a user ID, without saying how well it was checked
    Generic_Cert = 0x10

    #: certifies a user ID that was not checked at all
    Persona_Cert = 0x11

    #: certifies a user ID after a casual check
    Casual_Cert = 0x12

    #: certifies a user ID after a thorough check
    Positive_Cert = 0x13

    #: attests to third-party certifications of a user ID
    Attestation = 0x16

    #: made by the primary key over a subkey it claims
    Subkey_Binding = 0x18

    #: made by a signing subkey to accept its primary key (back-signature)
    PrimaryKey_Binding = 0x19

    #: made over the primary key alone; its subpackets describe the key itself
    DirectlyOnKey = 0x1F

    #: revokes the primary key
    KeyRevocation = 0x20

    #: revokes a subkey binding
    SubkeyRevocation = 0x28

    #: revokes a user ID or user attribute certification
    CertRevocation = 0x30

    #: a timestamp and nothing more
    Timestamp = 0x40

    #: This signature is a signature over some other OpenPGP Signature packet(s).
    ThirdParty_Confirmation = 0x50

    @classmethod
    def _missing_(cls, val: object) -> SignatureType:
        if not isinstance(val, int):
            raise TypeError(f"cannot look up SignatureType by non-int {type(val)}")
        return cls.Unknown

    @classproperty
    def certifications(cls) -> FrozenSet[SignatureType]:
        return frozenset({cls.Generic_Cert, cls.Persona_Cert, cls.Casual_Cert, cls.Positive_Cert})

    @classproperty
    def revocations(cls) -> FrozenSet[SignatureType]:
        return frozenset({cls.KeyRevocation, cls.SubkeyRevocation, cls.CertRevocation})

    @property
    def is_certification(self) -> bool:
        return self in SignatureType.certifications

    @property
    def is_revocation(self) -> bool:
        return self in SignatureType.revocations


class KeyServerPreferences(IntFlag):
    NoModify = 0x80


class KeyFlags(IntFlag):
    """Key Flags bits, both usage and how the secret is held."""
    #: may certify keys and user IDs
    Certify = 0x01
    #: may sign data
    Sign = 0x02
    #: may encrypt communications
    EncryptCommunications = 0x04
    #: may encrypt storage
    EncryptStorage = 0x08
    #: the secret key may have been split among several holders
    Split = 0x10
    #: may authenticate
    Authentication = 0x20
    #: the secret key may be held by more than one person
    MultiPerson = 0x80

    @classproperty
    def capabilities(cls) -> FrozenSet[KeyFlags]:
        """The flags that describe what a key can be used for, as opposed to how its secret is held"""
        return frozenset({cls.Certify, cls.Sign, cls.EncryptCommunications, cls.EncryptStorage, cls.Authentication})

    @property
    def usage(self) -> FrozenSet[KeyFlags]:
        return frozenset(flag for flag in KeyFlags.capabilities if flag & self)


class Features(IntFlag):
    SEIPDv1 = 0x01
    # older name for SEIPDv1
    ModificationDetection = 0x01
    UnknownFeature02 = 0x02
    UnknownFeature04 = 0x04
    SEIPDv2 = 0x08
    UnknownFeature10 = 0x10
    UnknownFeature20 = 0x20
    UnknownFeature40 = 0x40
    UnknownFeature80 = 0x80


class RevocationKeyClass(IntFlag):
    Sensitive = 0x40
    Normal = 0x80


class NotationDataFlags(IntFlag):
    HumanReadable = 0x80
