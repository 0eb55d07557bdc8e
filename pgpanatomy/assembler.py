""" assembler.py
"""
import itertools
import logging
import warnings

from datetime import datetime
from datetime import timezone

from types import MappingProxyType

from typing import Any, List, NamedTuple, Optional, Union

from .anatomy import Certificate
from .anatomy import Identity
from .anatomy import KeyMaterial
from .anatomy import PrimaryKey
from .anatomy import Problem
from .anatomy import Signature
from .anatomy import Subkey
from .anatomy import UserAttribute
from .anatomy import split_userid

from .constants import AttributeType
from .constants import PacketType
from .constants import SignatureType

from .errors import MalformedPacketError
from .errors import NoPrimaryKeyError
from .errors import PGPAnatomyWarning
from .errors import TruncatedPacketError
from .errors import UnsupportedAlgorithmError
from .errors import UnsupportedFramingError

from .packet import Opaque
from .packet import Packet
from .packet import Sub
from .packet import iter_frames
from .packet.fields import OpaquePubKey
from .packet.packets import Signature as SignaturePacket
from .packet.packets import UserAttribute as UserAttributePacket
from .packet.packets import UserID as UserIDPacket
from .packet.subpackets import Opaque as OpaqueSubPacket

from .precedence import IDENTITY_BINDINGS
from .precedence import IDENTITY_REVOCATIONS
from .precedence import KEY_BINDINGS
from .precedence import KEY_REVOCATIONS
from .precedence import SUBKEY_BINDINGS
from .precedence import SUBKEY_REVOCATIONS
from .precedence import issued_by
from .precedence import resolve_expiration
from .precedence import resolve_usage
from .precedence import select_binding
from .precedence import select_primary_identity
from .precedence import select_revocation
from .precedence import subpacket_value

from .types import unarmor

__all__ = ['analyze']

log = logging.getLogger(__name__)

_primary_tags = {PacketType.PublicKey, PacketType.SecretKey}
_transparent_tags = {PacketType.Trust, PacketType.Marker}


class _Item(NamedTuple):
    """one framed packet; ``packet`` is None if its body could not be decoded"""
    position: int
    offset: int
    tag: int
    packet: Optional[Packet]


def _instant(at: datetime) -> datetime:
    if not isinstance(at, datetime):
        raise TypeError(f"the evaluation instant must be a datetime, not {type(at)}")

    if at.tzinfo is None:
        return at.replace(tzinfo=timezone.utc)
    return at.astimezone(timezone.utc)


class _Analysis(object):
    """The state of a single call to :py:func:`analyze`"""

    def __init__(self, at: datetime) -> None:
        self.at = at
        self.problems: List[Problem] = []

    def problem(self, problem: Problem) -> None:
        self.problems.append(problem)
        warnings.warn(f"{problem.kind}: {problem.message}", PGPAnatomyWarning, stacklevel=2)

    def decode(self, data: bytearray) -> List[_Item]:
        """
        Frame and decode every packet, up to the end of the first certificate.

        Framing errors, and decoding errors in the primary key packet, are fatal until the primary key has been read.
        After that they are recorded and the rest of the stream is abandoned (framing) or the packet is skipped (decoding).
        """
        items = []
        primary_seen = False
        frames = iter_frames(data)

        for position in itertools.count():
            try:
                frame = next(frames)

            except StopIteration:
                break

            except (TruncatedPacketError, UnsupportedFramingError) as ex:
                if not primary_seen:
                    raise
                self.problem(Problem.from_error(ex))
                break

            if frame.tag in _primary_tags and primary_seen:
                self.problem(Problem('assembly', 'OrphanedPacket',
                                     "a second primary key begins another certificate; analysis stops here",
                                     frame.offset))
                break

            is_primary = frame.tag in _primary_tags

            try:
                pkt = Packet(frame)

            except MalformedPacketError as ex:
                ex.offset = frame.offset
                if is_primary:
                    raise
                self.problem(Problem.from_error(ex))
                pkt = None

            if isinstance(pkt, Opaque) and pkt.version is not None:
                if is_primary:
                    raise MalformedPacketError(f"primary key version {pkt.version} is not supported", frame.offset)
                self.problem(Problem('packet', 'UnsupportedVersion',
                                     f"{PacketType(frame.tag).name} packet version {pkt.version} is not supported",
                                     frame.offset))

            primary_seen = primary_seen or is_primary
            items.append(_Item(position, frame.offset, frame.tag, pkt))

        return items

    def signature(self, pkt: SignaturePacket, position: int) -> Signature:
        def _record(value: Any) -> Any:
            if isinstance(value, SignaturePacket):
                return self.signature(value, position)
            if isinstance(value, Opaque):
                return value.payload
            return value

        hashed = {k: _record(v) for k, v in pkt.subpackets.hashed_values().items()}
        unhashed = {k: _record(v) for k, v in pkt.subpackets.unhashed_values().items()}

        created = pkt.created
        expires_at = None
        if created is not None and pkt.expires_in:
            expires_at = created + pkt.expires_in

        return Signature(version=pkt.header.version,
                         signature_type=pkt.sigtype,
                         signature_type_id=pkt.sigtype_id,
                         pubalg=pkt.pubalg,
                         halg=pkt.halg,
                         created=created,
                         issuer_key_id=pkt.signer,
                         issuer_fingerprint=pkt.signer_fingerprint,
                         hashed_subpackets=MappingProxyType(hashed),
                         unhashed_subpackets=MappingProxyType(unhashed),
                         expires_at=expires_at,
                         is_expired=expires_at is not None and expires_at < self.at,
                         has_unknown_critical=pkt.has_unknown_critical,
                         position=position)

    def material(self, item: _Item) -> KeyMaterial:
        pkt = item.packet

        if isinstance(pkt.keymaterial, OpaquePubKey):
            self.problem(Problem.from_error(UnsupportedAlgorithmError(
                f"public key algorithm {pkt.pkalg_id} is not supported; its key material was not decoded", item.offset)))

        return KeyMaterial(version=pkt.header.version,
                           created=pkt.created,
                           algorithm=pkt.pkalg,
                           algorithm_id=pkt.pkalg_id,
                           bit_length=pkt.keymaterial.key_size,
                           curve=pkt.keymaterial.curve,
                           key_id=pkt.keyid,
                           fingerprint=pkt.fingerprint,
                           secret=pkt.secret)

    def groups(self, items: List[_Item]):
        """
        Yield ``(item, signatures)`` for each non-signature packet, with the signatures that follow it.
        Trust and Marker packets are skipped, and so are signature packets that could not be decoded
        (their problem has already been recorded).
        """
        def pktgrouper():
            class PktGrouper(object):
                def __init__(self):
                    self.last = None

                def __call__(self, item):
                    if item.tag != PacketType.Signature:
                        self.last = item.position
                    return self.last
            return PktGrouper()

        kept = (item for item in items
                if item.tag not in _transparent_tags
                and (item.tag != PacketType.Signature or isinstance(item.packet, SignaturePacket)))

        for _, group in itertools.groupby(kept, key=pktgrouper()):
            group = list(group)
            if group[0].tag == PacketType.Signature:
                # signatures ahead of any other packet
                yield None, [self.signature(i.packet, i.position) for i in group]
            else:
                yield group[0], [self.signature(i.packet, i.position) for i in group[1:]]

    def orphan(self, what: str, count: int, offset: Optional[int], why: str) -> None:
        self.problem(Problem('assembly', 'OrphanedPacket', f"{count} packet(s) starting with {what} {why}", offset))

    def identity_state(self, sigs: List[Signature], primary: KeyMaterial):
        binding = select_binding(sigs, primary, primary.created, IDENTITY_BINDINGS)
        revocation = select_revocation(sigs, primary, primary.created, IDENTITY_REVOCATIONS, binding)
        return binding, revocation

    def subkey(self, item: _Item, sigs: List[Signature], primary: KeyMaterial) -> Subkey:
        material = self.material(item)

        for sig in sigs:
            if sig.signature_type not in SUBKEY_BINDINGS | SUBKEY_REVOCATIONS:
                self.problem(Problem('assembly', 'MalformedBinding',
                                     f"{sig.signature_type.name} signature (type 0x{sig.signature_type_id:02X}) cannot "
                                     f"bind subkey {material.key_id}", item.offset))

            elif sig.signature_type in SUBKEY_BINDINGS and not issued_by(sig, primary):
                self.problem(Problem('assembly', 'MalformedBinding',
                                     f"binding signature for subkey {material.key_id} was issued by "
                                     f"{sig.issuer_fingerprint or sig.issuer_key_id}, not the primary key", item.offset))

        binding = select_binding(sigs, primary, material.created, SUBKEY_BINDINGS)
        revocation = select_revocation(sigs, primary, material.created, SUBKEY_REVOCATIONS, binding)

        backsig = binding.embedded if binding is not None else None
        if backsig is not None and backsig.signature_type is not SignatureType.PrimaryKey_Binding:
            backsig = None

        key_flags = binding.key_flags if binding is not None else None
        expires_at, is_expired = resolve_expiration(material.created, binding, self.at)

        return Subkey(material=material,
                      binding=binding,
                      primary_key_binding=backsig,
                      key_flags=key_flags,
                      usage=resolve_usage(key_flags, material.algorithm),
                      expires_at=expires_at,
                      is_expired=is_expired,
                      is_revoked=revocation is not None,
                      revocation=revocation,
                      signatures=tuple(sigs))

    def run(self, items: List[_Item]) -> Certificate:
        primary_item = None
        primary = None
        primary_sigs: List[Signature] = []
        uids = []
        uats = []
        subkeys = []

        for item, sigs in self.groups(items):
            if item is None:
                self.orphan('Signature', len(sigs), None, "precede every key")
                continue

            pkt = item.packet

            if primary_item is None:
                if item.tag not in _primary_tags:
                    self.orphan(PacketType(item.tag).name, len(sigs) + 1, item.offset, "precede the primary key")
                    continue

                primary_item, primary_sigs = item, sigs
                primary = self.material(item)
                continue

            if pkt is None or isinstance(pkt, Opaque):
                if sigs:
                    self.orphan('Signature', len(sigs), item.offset, f"follow an undecodable {PacketType(item.tag).name} packet")
                continue

            if isinstance(pkt, UserIDPacket):
                uids.append((pkt, sigs))

            elif isinstance(pkt, UserAttributePacket):
                uats.append((pkt, sigs))

            elif isinstance(pkt, Sub):
                subkeys.append(self.subkey(item, sigs, primary))

            else:
                self.orphan(PacketType(item.tag).name, len(sigs) + 1, item.offset, "have no place in a certificate")

        if primary_item is None:
            raise NoPrimaryKeyError("the packet stream contains no primary key")

        # identities
        uid_states = [self.identity_state(sigs, primary) for _, sigs in uids]
        primary_index = select_primary_identity([binding for binding, _ in uid_states])

        identities = []
        for i, ((pkt, sigs), (binding, revocation)) in enumerate(zip(uids, uid_states)):
            name, comment, email = split_userid(pkt.uid)
            identities.append(Identity(userid=pkt.uid,
                                       name=name,
                                       email=email,
                                       comment=comment,
                                       is_primary_marked=binding is not None and binding.is_primary_user_id,
                                       is_primary=i == primary_index,
                                       is_revoked=revocation is not None,
                                       revocation=revocation,
                                       binding=binding,
                                       signatures=tuple(sigs),
                                       invalid_utf8=pkt.invalid_utf8))

        attributes = []
        for pkt, sigs in uats:
            binding, revocation = self.identity_state(sigs, primary)
            attributes.append(UserAttribute(attributes=tuple(_attribute(sp) for sp in pkt.subpackets.unhashed),
                                            is_primary_marked=binding is not None and binding.is_primary_user_id,
                                            is_revoked=revocation is not None,
                                            revocation=revocation,
                                            binding=binding,
                                            signatures=tuple(sigs)))

        # flags and expiration come from the primary identity's binding, field by field falling back to the
        # latest direct-key signature
        direct = select_binding(primary_sigs, primary, primary.created, KEY_BINDINGS)
        binding = identities[primary_index].binding if identities else None
        if binding is None:
            binding = direct
        revocation = select_revocation(primary_sigs, primary, primary.created, KEY_REVOCATIONS, binding)

        key_flags = subpacket_value('key_flags', binding, direct)
        expires_at, is_expired = resolve_expiration(primary.created, binding, self.at, direct)

        primary_key = PrimaryKey(material=primary,
                                 binding=binding,
                                 key_flags=key_flags,
                                 usage=resolve_usage(key_flags, primary.algorithm),
                                 expires_at=expires_at,
                                 is_expired=is_expired,
                                 is_revoked=revocation is not None,
                                 revocation=revocation,
                                 signatures=tuple(primary_sigs))

        log.debug("assembled %s: %d identities, %d attributes, %d subkeys, %d problems", primary.fingerprint,
                  len(identities), len(attributes), len(subkeys), len(self.problems))

        return Certificate(primary_key=primary_key,
                           identities=tuple(identities),
                           user_attributes=tuple(attributes),
                           subkeys=tuple(subkeys),
                           problems=tuple(self.problems))


def _attribute(sp):
    atype = AttributeType(sp.header.typeid)
    if atype is AttributeType.Unknown:
        atype = sp.header.typeid

    if isinstance(sp, OpaqueSubPacket):
        return (atype, None, len(sp.payload))

    iencoding, size = sp.value
    return (atype, iencoding, size)


def analyze(blob: Union[str, bytes, bytearray], at: datetime) -> Certificate:
    """
    Analyze the first OpenPGP certificate in ``blob``.

    :param blob: ASCII-armored text, or a binary packet stream.
    :param at: The instant to evaluate expiration against. A naive ``datetime`` is taken to be UTC.
    :raises: :py:exc:`~pgpanatomy.errors.ArmorError` if ``blob`` is neither armored nor binary, or its armor is damaged.
    :raises: :py:exc:`~pgpanatomy.errors.TruncatedPacketError`,
             :py:exc:`~pgpanatomy.errors.UnsupportedFramingError` if the stream cannot be framed up to the primary key.
    :raises: :py:exc:`~pgpanatomy.errors.MalformedPacketError` if the primary key packet cannot be decoded.
    :raises: :py:exc:`~pgpanatomy.errors.NoPrimaryKeyError` if there is no primary key.
    :returns: The :py:obj:`~pgpanatomy.anatomy.Certificate`. Anything that was skipped along the way is listed
              in its ``problems``, and was also announced as a :py:obj:`~pgpanatomy.errors.PGPAnatomyWarning`.
    """
    analysis = _Analysis(_instant(at))
    data = unarmor(blob)
    return analysis.run(analysis.decode(data))
