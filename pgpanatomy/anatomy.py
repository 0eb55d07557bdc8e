""" anatomy.py

The immutable records a certificate analysis produces.
"""
import re

from datetime import datetime
from datetime import timedelta

from typing import Any, Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Tuple, Union

from .constants import HashAlgorithm
from .constants import KeyFlags
from .constants import PubKeyAlgorithm
from .constants import RevocationReason
from .constants import SignatureType
from .constants import SigSubpacketType

from .errors import PGPError

from .types import Fingerprint
from .types import KeyID

__all__ = ['Revocation',
           'KeyMaterial',
           'Signature',
           'Identity',
           'UserAttribute',
           'PrimaryKey',
           'Subkey',
           'Problem',
           'Certificate',
           'split_userid']


_userid_regex = re.compile(r"""^
                           # name is everything up to an optional comment and an optional email
                           (?P<name>.*?)
                           # comment *optionally* matches text in parens following name
                           # it must be followed immediately by either the email field, or the end of the string
                           (?:\ ?\((?P<comment>[^()]*)\)(?=\ ?<|$))?
                           # email *optionally* matches text in angle brackets following name or comment
                           (?:\ ?<(?P<email>[^<>]*)>)?
                           $
                           """, flags=re.VERBOSE | re.DOTALL)


def split_userid(userid: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Split a User ID into ``(name, comment, email)`` following the ``Name (Comment) <email>`` convention.

    This is a heuristic, not a grammar: a part that cannot be found is ``None``, and text that does not follow
    the convention (unbalanced brackets, for example) is left in ``name``. A bare address with no brackets
    is taken as the email.
    """
    m = _userid_regex.match(userid)
    name, comment, email = m.group('name').strip(), m.group('comment'), m.group('email')

    if email is None and comment is None and ' ' not in name and '@' in name:
        name, email = '', name

    return (name or None,
            comment.strip() or None if comment is not None else None,
            email.strip() or None if email is not None else None)


class Revocation(NamedTuple):
    """The decoded Reason for Revocation subpacket"""
    code: RevocationReason
    reason: str

    @property
    def is_soft(self) -> bool:
        return self.code.is_soft


class KeyMaterial(NamedTuple):
    version: int
    created: datetime
    algorithm: PubKeyAlgorithm
    algorithm_id: int
    bit_length: int
    curve: Optional[str]
    key_id: KeyID
    fingerprint: Fingerprint
    secret: bool

    @property
    def algorithm_name(self) -> str:
        name = self.algorithm.display_name
        if name == 'Unknown':
            return f'Unknown({self.algorithm_id})'
        return name


class Signature(NamedTuple):
    """
    A decoded signature, reduced to the metadata that precedence decisions are made from.

    ``hashed_subpackets`` and ``unhashed_subpackets`` map each :py:obj:`~pgpanatomy.constants.SigSubpacketType`
    (or the raw type number, for types that are not known) to its decoded value; the last occurrence of a type wins.
    The convenience properties read the hashed area only.
    """
    version: int
    signature_type: SignatureType
    signature_type_id: int
    pubalg: PubKeyAlgorithm
    halg: HashAlgorithm
    created: Optional[datetime]
    issuer_key_id: Optional[KeyID]
    issuer_fingerprint: Optional[Fingerprint]
    hashed_subpackets: Mapping[Union[SigSubpacketType, int], Any]
    unhashed_subpackets: Mapping[Union[SigSubpacketType, int], Any]
    expires_at: Optional[datetime]
    is_expired: bool
    has_unknown_critical: bool
    position: int

    @property
    def key_flags(self) -> Optional[KeyFlags]:
        return self.hashed_subpackets.get(SigSubpacketType.KeyFlags, None)

    @property
    def key_expiration(self) -> Optional[timedelta]:
        return self.hashed_subpackets.get(SigSubpacketType.KeyExpirationTime, None)

    @property
    def is_primary_user_id(self) -> bool:
        return bool(self.hashed_subpackets.get(SigSubpacketType.PrimaryUserID, False))

    @property
    def revocation(self) -> Optional[Revocation]:
        return self.hashed_subpackets.get(SigSubpacketType.ReasonForRevocation, None)

    @property
    def is_revocation(self) -> bool:
        return self.signature_type.is_revocation

    @property
    def embedded(self) -> Optional["Signature"]:
        """The embedded signature, such as a subkey's back-signature. Either area is searched, hashed first."""
        for area in (self.hashed_subpackets, self.unhashed_subpackets):
            if isinstance(area.get(SigSubpacketType.EmbeddedSignature, None), Signature):
                return area[SigSubpacketType.EmbeddedSignature]
        return None


class Identity(NamedTuple):
    userid: str
    name: Optional[str]
    email: Optional[str]
    comment: Optional[str]
    is_primary_marked: bool
    is_primary: bool
    is_revoked: bool
    revocation: Optional[Signature]
    binding: Optional[Signature]
    signatures: Tuple[Signature, ...]
    invalid_utf8: bool


class UserAttribute(NamedTuple):
    attributes: Tuple[Tuple[Any, Any, int], ...]
    is_primary_marked: bool
    is_revoked: bool
    revocation: Optional[Signature]
    binding: Optional[Signature]
    signatures: Tuple[Signature, ...]


class PrimaryKey(NamedTuple):
    material: KeyMaterial
    binding: Optional[Signature]
    key_flags: Optional[KeyFlags]
    usage: FrozenSet[KeyFlags]
    expires_at: Optional[datetime]
    is_expired: bool
    is_revoked: bool
    revocation: Optional[Signature]
    signatures: Tuple[Signature, ...]


class Subkey(NamedTuple):
    material: KeyMaterial
    binding: Optional[Signature]
    primary_key_binding: Optional[Signature]
    key_flags: Optional[KeyFlags]
    usage: FrozenSet[KeyFlags]
    expires_at: Optional[datetime]
    is_expired: bool
    is_revoked: bool
    revocation: Optional[Signature]
    signatures: Tuple[Signature, ...]


class Problem(NamedTuple):
    """Something that could not be interpreted, and was skipped or degraded instead of ending the analysis"""
    stage: str
    kind: str
    message: str
    offset: Optional[int] = None

    @classmethod
    def from_error(cls, error: Exception, kind: Optional[str] = None, offset: Optional[int] = None) -> "Problem":
        message = str(error.args[0]) if error.args else str(error)
        if offset is None:
            offset = getattr(error, 'offset', None)
        return cls(error.stage if isinstance(error, PGPError) else 'unknown',
                   kind or error.__class__.__name__,
                   message,
                   offset)


def _usage_labels(usage: FrozenSet[KeyFlags]) -> List[str]:
    labels = {'Sign': {KeyFlags.Sign},
              'Encrypt': {KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage},
              'Certify': {KeyFlags.Certify},
              'Authenticate': {KeyFlags.Authentication}}
    return [label for label, flags in labels.items() if flags & usage]


def _isoformat(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt is not None else None


def _revocation_reason(revocation: Optional[Signature]) -> Optional[str]:
    if revocation is None:
        return None

    reason = revocation.revocation
    if reason is None:
        return RevocationReason.NotSpecified.name
    return reason.reason or reason.code.name


def _key_dict(key: Union[PrimaryKey, Subkey]) -> Dict[str, Any]:
    material = key.material
    return {'fingerprint': material.fingerprint.__pretty__(),
            'key_id': str(material.key_id),
            'algorithm': material.algorithm_name,
            'bit_length': material.bit_length,
            'curve': material.curve,
            'version': material.version,
            'creation_time': _isoformat(material.created),
            'expiration_time': _isoformat(key.expires_at),
            'is_expired': key.is_expired,
            'is_revoked': key.is_revoked,
            'usage': _usage_labels(key.usage),
            'revocation_reason': _revocation_reason(key.revocation)}


class Certificate(NamedTuple):
    """
    The anatomy of one OpenPGP certificate: its primary key, the identities and attributes bound to it,
    and its subkeys, with the signatures that decided each of their states.

    ``problems`` lists everything that was skipped or degraded along the way, in stream order.
    """
    primary_key: PrimaryKey
    identities: Tuple[Identity, ...]
    user_attributes: Tuple[UserAttribute, ...]
    subkeys: Tuple[Subkey, ...]
    problems: Tuple[Problem, ...]

    @property
    def fingerprint(self) -> Fingerprint:
        return self.primary_key.material.fingerprint

    @property
    def key_id(self) -> KeyID:
        return self.primary_key.material.key_id

    @property
    def primary_identity(self) -> Optional[Identity]:
        return next((i for i in self.identities if i.is_primary), None)

    @property
    def is_revoked(self) -> bool:
        return self.primary_key.is_revoked

    @property
    def is_expired(self) -> bool:
        return self.primary_key.is_expired

    @property
    def expires_at(self) -> Optional[datetime]:
        return self.primary_key.expires_at

    def as_dict(self) -> Dict[str, Any]:
        """
        The analysis as plain data (``str``, ``int``, ``bool``, ``None``, ``list`` and ``dict`` only),
        suitable for serializing to JSON.
        """
        ret = _key_dict(self.primary_key)
        ret['user_ids'] = [{'user_id': uid.userid,
                            'name': uid.name,
                            'email': uid.email,
                            'comment': uid.comment,
                            'is_primary': uid.is_primary,
                            'is_revoked': uid.is_revoked} for uid in self.identities]
        ret['subkeys'] = [_key_dict(sk) for sk in self.subkeys]
        ret['problems'] = [dict(p._asdict()) for p in self.problems]
        return ret

