""" precedence.py

Decides which of the signatures on a subject are authoritative.
"""
import logging

from datetime import datetime

from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from .anatomy import KeyMaterial
from .anatomy import Signature

from .constants import KeyFlags
from .constants import PubKeyAlgorithm
from .constants import SignatureType

__all__ = ['issued_by',
           'rejection',
           'select_binding',
           'select_revocation',
           'select_primary_identity',
           'subpacket_value',
           'resolve_usage',
           'resolve_expiration']

log = logging.getLogger(__name__)

IDENTITY_BINDINGS = SignatureType.certifications
IDENTITY_REVOCATIONS = frozenset({SignatureType.CertRevocation})
KEY_BINDINGS = frozenset({SignatureType.DirectlyOnKey})
KEY_REVOCATIONS = frozenset({SignatureType.KeyRevocation})
SUBKEY_BINDINGS = frozenset({SignatureType.Subkey_Binding})
SUBKEY_REVOCATIONS = frozenset({SignatureType.SubkeyRevocation})


def issued_by(sig: Signature, primary: KeyMaterial) -> bool:
    """
    Whether ``sig`` names ``primary`` as its issuer. An issuer fingerprint is preferred over an issuer key ID
    when the signature carries one.
    """
    if sig.issuer_fingerprint is not None:
        return sig.issuer_fingerprint == primary.fingerprint

    if sig.issuer_key_id is not None:
        return sig.issuer_key_id == primary.key_id

    return False


def rejection(sig: Signature, primary: KeyMaterial, created: datetime, types: Set[SignatureType]) -> Optional[str]:
    """
    The reason ``sig`` cannot take part in precedence for a subject created at ``created``,
    or ``None`` if it can.
    """
    if sig.signature_type not in types:
        return f"type {sig.signature_type.name} is not relevant"

    if not issued_by(sig, primary):
        return f"issued by {sig.issuer_fingerprint or sig.issuer_key_id}, not the primary key"

    if sig.created is None:
        return "it has no creation time"

    if sig.created < created:
        return f"it was created at {sig.created.isoformat()}, before the key it applies to"

    if sig.has_unknown_critical:
        return "it has an unknown critical subpacket"

    return None


def _candidates(signatures: Iterable[Signature], primary: KeyMaterial, created: datetime,
                types: Set[SignatureType]) -> List[Signature]:
    ret = []
    for sig in signatures:
        reason = rejection(sig, primary, created, types)
        if reason is None:
            ret.append(sig)

        elif sig.signature_type in types:
            log.debug("ignoring %s signature at position %d: %s", sig.signature_type.name, sig.position, reason)

    return ret


def _latest(sigs: Sequence[Signature]) -> Optional[Signature]:
    # ties on creation time go to the signature later in the stream
    return max(sigs, key=lambda s: (s.created, s.position), default=None)


def select_binding(signatures: Iterable[Signature], primary: KeyMaterial, created: datetime,
                   types: Set[SignatureType]) -> Optional[Signature]:
    """
    Choose the authoritative binding among ``signatures``: the most recent candidate of one of ``types``
    that has not itself expired. Earlier bindings are superseded, not merged.
    """
    candidates = []
    for sig in _candidates(signatures, primary, created, types):
        if sig.is_expired:
            log.debug("ignoring binding at position %d: it expired at %s", sig.position, sig.expires_at.isoformat())
            continue
        candidates.append(sig)

    binding = _latest(candidates)
    for sig in candidates:
        if sig is not binding:
            log.debug("binding at position %d supersedes the binding at position %d", binding.position, sig.position)

    return binding


def select_revocation(signatures: Iterable[Signature], primary: KeyMaterial, created: datetime,
                      types: Set[SignatureType], binding: Optional[Signature]) -> Optional[Signature]:
    """
    Choose the revocation in effect among ``signatures``, or ``None`` if the subject is not revoked.

    A revocation with a hard reason (or none at all) is always in effect. A soft one (superseded, retired,
    or user ID no longer valid) only revokes a binding that is not newer than it.
    """
    effective = []
    for sig in _candidates(signatures, primary, created, types):
        reason = sig.revocation
        if reason is None or not reason.is_soft or binding is None or sig.created >= binding.created:
            effective.append(sig)

        else:
            log.debug("soft revocation at position %d predates the binding at position %d", sig.position, binding.position)

    return _latest(effective)


def select_primary_identity(bindings: Sequence[Optional[Signature]]) -> Optional[int]:
    """
    Given the authoritative binding of each identity in stream order, return the index of the primary identity.

    Among identities whose binding is marked primary, the most recent binding wins, and the earlier identity wins a tie.
    With none marked, the first identity is primary. ``None`` is returned for an empty sequence.
    """
    if not bindings:
        return None

    marked = [(i, b) for i, b in enumerate(bindings) if b is not None and b.is_primary_user_id]
    if not marked:
        return 0

    index, _ = max(marked, key=lambda ib: (ib[1].created, -ib[0]))
    return index


def subpacket_value(name: str, *sigs: Optional[Signature]) -> Any:
    """``getattr(sig, name)`` for the first of ``sigs`` that carries the subpacket, else ``None``"""
    for sig in sigs:
        if sig is not None and getattr(sig, name) is not None:
            return getattr(sig, name)
    return None


def resolve_usage(key_flags: Optional[KeyFlags], algorithm: PubKeyAlgorithm) -> FrozenSet[KeyFlags]:
    """
    The capabilities of a key. Key flags decide when there are any; otherwise the algorithm's default
    capabilities are used.
    """
    if key_flags is not None:
        return key_flags.usage

    return algorithm.default_usage


def resolve_expiration(created: datetime, binding: Optional[Signature],
                       at: datetime, fallback: Optional[Signature] = None) -> Tuple[Optional[datetime], bool]:
    """
    Returns ``(expires_at, is_expired)`` for a key created at ``created`` whose authoritative binding is ``binding``.
    The key expiration is read from ``fallback`` when ``binding`` does not carry one.
    A key expiration of zero, or none, means the key does not expire.
    """
    expiration = subpacket_value('key_expiration', binding, fallback)
    if not expiration:
        return None, False

    expires_at = created + expiration
    return expires_at, expires_at < at
