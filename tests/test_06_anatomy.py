""" test assembling certificates
"""
import pytest

import glob
import json
import os
import warnings

from datetime import datetime
from datetime import timedelta
from datetime import timezone

from pgpanatomy import analyze
from pgpanatomy.anatomy import Certificate
from pgpanatomy.constants import AttributeType
from pgpanatomy.constants import ImageEncoding
from pgpanatomy.constants import KeyFlags
from pgpanatomy.constants import PubKeyAlgorithm
from pgpanatomy.constants import RevocationReason
from pgpanatomy.constants import SignatureType
from pgpanatomy.errors import ArmorError
from pgpanatomy.errors import MalformedPacketError
from pgpanatomy.errors import NoPrimaryKeyError
from pgpanatomy.errors import PGPAnatomyWarning
from pgpanatomy.errors import TruncatedPacketError

from certbuilder import DAY
from certbuilder import EPOCH
from certbuilder import CertBuilder
from certbuilder import KeyPacket
from certbuilder import armor
from certbuilder import mpi
from certbuilder import new_header
from certbuilder import new_length
from certbuilder import packet
from certbuilder import sig
from certbuilder import sp
from certbuilder import sp_key_expires
from certbuilder import sp_key_flags
from certbuilder import sp_primary_uid
from certbuilder import sp_sig_expires
from certbuilder import ts
from certbuilder import utc


#: mid-2020, after every fixture was created and before any of them expire
AT = utc(EPOCH + 180 * DAY)

keyfiles = sorted(glob.glob('tests/testdata/keys/*.asc'))

SIGN = {KeyFlags.Certify, KeyFlags.Sign}
ENCRYPT = {KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage}


def load(name, at=AT):
    with open(os.path.join('tests', 'testdata', 'keys', name), 'r') as f:
        return analyze(f.read(), at)


def quiet(blob, at=AT):
    # analyze, collecting the warnings for each problem instead of letting them escape
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter('always')
        cert = analyze(blob, at)

    assert len([i for i in w if issubclass(i.category, PGPAnatomyWarning)]) == len(cert.problems)
    return cert


class TestFixtures(object):
    @pytest.mark.parametrize('kf', keyfiles, ids=[os.path.basename(f) for f in keyfiles])
    def test_v4_fingerprint(self, kf):
        cert = load(os.path.basename(kf))

        assert isinstance(cert, Certificate)
        assert cert.problems == ()
        assert len(bytes(cert.fingerprint)) == 20
        assert bytes(cert.key_id) == bytes(cert.fingerprint)[-8:]
        for sk in cert.subkeys:
            assert bytes(sk.material.key_id) == bytes(sk.material.fingerprint)[-8:]

    @pytest.mark.parametrize('kf', keyfiles, ids=[os.path.basename(f) for f in keyfiles])
    def test_deterministic(self, kf):
        first = load(os.path.basename(kf))
        second = load(os.path.basename(kf))

        assert first == second
        assert first.as_dict() == second.as_dict()

    def test_alice(self):
        cert = load('alice.rsa2048.pub.asc')
        pk = cert.primary_key

        assert cert.fingerprint == 'EB675B3ECDCA5B41E811C6C12EC42BC0D6812CDD'
        assert cert.key_id == '2EC42BC0D6812CDD'
        assert pk.material.version == 4
        assert pk.material.created == utc(EPOCH)
        assert pk.material.algorithm is PubKeyAlgorithm.RSAEncryptOrSign
        assert pk.material.algorithm_name == 'RSA'
        assert pk.material.bit_length == 2048
        assert pk.material.curve is None
        assert not pk.material.secret
        assert pk.key_flags == KeyFlags.Certify | KeyFlags.Sign
        assert pk.usage == SIGN
        assert pk.expires_at is None
        assert not cert.is_expired
        assert not cert.is_revoked
        assert cert.subkeys == ()

        assert len(cert.identities) == 1
        uid = cert.identities[0]
        assert uid.userid == 'Alice <alice@example.com>'
        assert (uid.name, uid.comment, uid.email) == ('Alice', None, 'alice@example.com')
        assert uid.is_primary
        assert not uid.is_primary_marked
        assert not uid.is_revoked
        assert uid.binding.signature_type is SignatureType.Positive_Cert
        assert uid.binding is pk.binding
        assert cert.primary_identity is uid

    def test_alice_binary(self):
        with open('tests/testdata/keys/alice.rsa2048.pub.gpg', 'rb') as f:
            binary = analyze(f.read(), AT)

        assert binary == load('alice.rsa2048.pub.asc')

    def test_bob(self):
        cert = load('bob.ed25519.pub.asc')
        pk = cert.primary_key

        assert cert.fingerprint == '2F0CBBDFD6F5E92AACD79225E97248500FEC72A1'
        assert pk.material.algorithm is PubKeyAlgorithm.EdDSA
        assert pk.material.algorithm_name == 'EdDSA'
        assert pk.material.curve == 'Ed25519'
        assert pk.material.bit_length == 256
        assert pk.usage == SIGN

        work, home = cert.identities
        assert (work.name, work.comment, work.email) == ('Bob Example', 'work', 'bob@example.org')
        assert work.is_revoked
        assert work.revocation.signature_type is SignatureType.CertRevocation
        assert work.revocation.revocation.code is RevocationReason.UserID
        assert not work.is_primary

        assert (home.name, home.comment, home.email) == ('Bob Example', None, 'bob@home.example')
        assert home.is_primary_marked
        assert home.is_primary
        assert not home.is_revoked
        assert cert.primary_identity is home
        assert pk.binding is home.binding

    def test_bob_subkey(self):
        cert = load('bob.ed25519.pub.asc')

        assert len(cert.subkeys) == 1
        sk = cert.subkeys[0]
        assert sk.material.key_id == '3D13E8E495A71238'
        assert sk.material.algorithm is PubKeyAlgorithm.ECDH
        assert sk.material.curve == 'X25519'
        assert sk.usage == ENCRYPT
        assert sk.expires_at == utc(1609372800)
        assert not sk.is_expired
        assert not sk.is_revoked
        assert sk.primary_key_binding is None

    def test_bob_subkey_expired(self):
        cert = load('bob.ed25519.pub.asc', at=utc(1609372800 + DAY))

        assert cert.subkeys[0].is_expired
        assert not cert.is_expired

    def test_carol(self):
        cert = load('carol.dsa2048.pub.asc')

        assert cert.primary_key.material.algorithm_name == 'DSA'
        assert cert.primary_key.material.bit_length == 2048
        assert cert.primary_key.usage == SIGN

        sk = cert.subkeys[0]
        assert sk.material.key_id == 'C41EEF6994EFAA7F'
        assert sk.material.algorithm_name == 'ElGamal'
        assert sk.material.bit_length == 2048
        assert sk.usage == ENCRYPT
        assert sk.expires_at is None

    def test_dave(self):
        cert = load('dave.nistp256.pub.asc')
        pk = cert.primary_key

        assert pk.material.algorithm_name == 'ECDSA'
        assert pk.material.curve == 'secp256r1'
        assert pk.material.bit_length == 256
        assert cert.expires_at == utc(1640908800)
        assert not cert.is_expired

        sk = cert.subkeys[0]
        assert sk.material.key_id == 'C791E2C21A58CBA9'
        assert sk.material.curve == 'secp256r1'
        assert sk.binding.created == utc(1583020800)
        assert sk.usage == ENCRYPT
        assert sk.expires_at is None

    def test_dave_expired(self):
        cert = load('dave.nistp256.pub.asc', at=utc(1640908800 + 1))

        assert cert.is_expired
        assert cert.primary_key.is_expired
        assert not cert.subkeys[0].is_expired

    def test_erin(self):
        cert = load('erin.rsa3072.revoked.pub.asc')
        pk = cert.primary_key

        assert cert.fingerprint == 'BB1575C00551D39BF0E5593A92BF2C3E17FA96DE'
        assert pk.material.bit_length == 3072
        assert cert.is_revoked
        assert pk.revocation.signature_type is SignatureType.KeyRevocation
        assert pk.revocation.created == utc(1609459200)
        assert pk.revocation.revocation.code is RevocationReason.Superseded
        assert pk.revocation.revocation.reason == 'key leaked'
        assert cert.as_dict()['revocation_reason'] == 'key leaked'

    def test_as_dict(self):
        d = load('bob.ed25519.pub.asc').as_dict()

        assert json.loads(json.dumps(d)) == d
        assert d['fingerprint'] == '2F0C BBDF D6F5 E92A ACD7  9225 E972 4850 0FEC 72A1'
        assert d['key_id'] == 'E97248500FEC72A1'
        assert d['algorithm'] == 'EdDSA'
        assert d['curve'] == 'Ed25519'
        assert d['creation_time'] == '2020-01-01T00:00:00+00:00'
        assert d['expiration_time'] is None
        assert sorted(d['usage']) == ['Certify', 'Sign']
        assert d['revocation_reason'] is None
        assert [u['user_id'] for u in d['user_ids']] == ['Bob Example (work) <bob@example.org>',
                                                          'Bob Example <bob@home.example>']
        assert [u['is_primary'] for u in d['user_ids']] == [False, True]
        assert [u['is_revoked'] for u in d['user_ids']] == [True, False]
        assert d['subkeys'][0]['usage'] == ['Encrypt']
        assert d['subkeys'][0]['expiration_time'] == '2020-12-31T00:00:00+00:00'
        assert d['problems'] == []


class TestScenarios(object):
    def test_minimal_rsa(self):
        cert = analyze(CertBuilder().add_uid('Alice <alice@example.com>').armored(), AT)
        pk = cert.primary_key

        assert pk.material.algorithm_name == 'RSA'
        assert pk.material.bit_length == 2048
        assert pk.key_flags is None
        assert pk.usage == SIGN | ENCRYPT
        assert not cert.is_expired
        assert not cert.is_revoked
        assert cert.problems == ()

    @pytest.mark.parametrize('code', [None, RevocationReason.NotSpecified, RevocationReason.Compromised],
                             ids=['no-reason', 'not-specified', 'compromised'])
    def test_key_revoked(self, code):
        builder = CertBuilder().add_revocation(0x20, EPOCH + DAY, code)
        builder.add_uid('Alice <alice@example.com>')
        builder.add(sig(0x13, builder.primary, EPOCH + 2 * DAY, sp_key_flags(0x03)))
        cert = analyze(builder.build(), AT)

        assert cert.is_revoked
        assert cert.primary_key.revocation.created == utc(EPOCH + DAY)

    def test_revoked_after_many_bindings(self):
        sub = KeyPacket(alg=18, seed=3)
        builder = CertBuilder().add_uid('Alice <alice@example.com>').add_subkey(sub, flags=0x0C)
        for i in range(1, 4):
            builder.add(sig(0x18, builder.primary, EPOCH + i * DAY, sp_key_flags(0x0C)))
        builder.add_revocation(0x28, EPOCH + 10 * DAY, RevocationReason.Retired)
        cert = analyze(builder.build(), AT)

        sk = cert.subkeys[0]
        assert sk.is_revoked
        assert sk.binding.created == utc(EPOCH + 3 * DAY)
        assert len(sk.signatures) == 5

    def test_ecdh_subkey_expired(self):
        sub = KeyPacket(alg=18, seed=3)
        cert = analyze(CertBuilder().add_uid('Alice <alice@example.com>')
                       .add_subkey(sub, flags=0x04, expires=365 * DAY).build(),
                       utc(EPOCH + 395 * DAY))
        sk = cert.subkeys[0]

        assert sk.is_expired
        assert sk.expires_at == utc(EPOCH + 365 * DAY)
        assert sk.usage == {KeyFlags.EncryptCommunications}
        assert not cert.is_expired

    @pytest.mark.parametrize('reverse', [False, True], ids=['in-order', 'reversed'])
    def test_supersession(self, reverse):
        builder = CertBuilder()
        older = sig(0x13, builder.primary, EPOCH, sp_key_flags(0x01))
        newer = sig(0x13, builder.primary, EPOCH + DAY, sp_key_flags(0x02))
        builder.add(packet(13, b'Alice <alice@example.com>'), *([newer, older] if reverse else [older, newer]))
        cert = analyze(builder.build(), AT)

        assert cert.primary_key.usage == {KeyFlags.Sign}
        assert cert.primary_key.binding.created == utc(EPOCH + DAY)

    def test_subkey_supersession(self):
        sub = KeyPacket(alg=1, seed=5)
        builder = CertBuilder().add_uid('Alice <alice@example.com>').add_subkey(sub, flags=0x02, expires=DAY)
        builder.add(sig(0x18, builder.primary, EPOCH + DAY, sp_key_flags(0x0C)))
        sk = analyze(builder.build(), AT).subkeys[0]

        assert sk.usage == ENCRYPT
        assert sk.expires_at is None

    @pytest.mark.parametrize('at', [EPOCH, EPOCH + 10 * 365 * DAY, 2 ** 32 - 1])
    def test_no_expiration(self, at):
        sub = KeyPacket(alg=25, seed=4)
        cert = analyze(CertBuilder().add_uid('Alice <alice@example.com>').add_subkey(sub).build(), utc(at))

        assert cert.expires_at is None
        assert not cert.is_expired
        assert not cert.subkeys[0].is_expired

    def test_primary_identity_latest_marked(self):
        builder = CertBuilder().add_uid('One <one@example.com>', primary=True)
        builder.add_uid('Two <two@example.com>', created=EPOCH + DAY, primary=True)
        builder.add_uid('Three <three@example.com>')
        cert = analyze(builder.build(), AT)

        assert [uid.is_primary for uid in cert.identities] == [False, True, False]
        assert cert.primary_identity.email == 'two@example.com'

    def test_primary_identity_default(self):
        builder = CertBuilder().add_uid('One <one@example.com>').add_uid('Two <two@example.com>', flags=0x01)
        cert = analyze(builder.build(), AT)

        assert cert.primary_identity.userid == 'One <one@example.com>'
        assert cert.primary_key.key_flags is None

    def test_direct_key_signature(self):
        builder = CertBuilder()
        builder.add(sig(0x1F, builder.primary, EPOCH, sp_key_flags(0x01)))
        cert = analyze(builder.build(), AT)

        assert cert.identities == ()
        assert cert.primary_identity is None
        assert cert.primary_key.binding.signature_type is SignatureType.DirectlyOnKey
        assert cert.primary_key.usage == {KeyFlags.Certify}

    def test_direct_key_fills_in_identity_binding(self):
        builder = CertBuilder()
        builder.add(sig(0x1F, builder.primary, EPOCH, sp_key_flags(0x01) + sp_key_expires(10 * DAY)))
        builder.add_uid('Alice <alice@example.com>')
        cert = analyze(builder.build(), AT)

        assert cert.primary_key.binding.signature_type is SignatureType.Positive_Cert
        assert cert.primary_key.usage == {KeyFlags.Certify}
        assert cert.primary_key.expires_at == utc(EPOCH + 10 * DAY)
        assert cert.primary_key.is_expired

    def test_identity_binding_beats_direct_key(self):
        builder = CertBuilder()
        builder.add(sig(0x1F, builder.primary, EPOCH, sp_key_flags(0x01)))
        builder.add_uid('Alice <alice@example.com>', flags=0x02)
        cert = analyze(builder.build(), AT)

        assert cert.primary_key.usage == {KeyFlags.Sign}

    def test_expired_binding_ignored(self):
        builder = CertBuilder().add_uid('Alice <alice@example.com>', flags=0x01)
        builder.add(sig(0x13, builder.primary, EPOCH + DAY, sp_key_flags(0x02) + sp_sig_expires(DAY)))
        cert = analyze(builder.build(), AT)

        assert cert.primary_key.binding.created == utc(EPOCH)
        assert cert.primary_key.usage == {KeyFlags.Certify}
        assert cert.identities[0].signatures[1].is_expired

    def test_unknown_critical_ignored(self):
        builder = CertBuilder().add_uid('Alice <alice@example.com>', flags=0x01)
        builder.add(sig(0x13, builder.primary, EPOCH + DAY, sp_key_flags(0x02) + sp(100, b'?', critical=True)))
        cert = analyze(builder.build(), AT)

        assert cert.primary_key.usage == {KeyFlags.Certify}
        assert cert.identities[0].signatures[1].has_unknown_critical

    def test_third_party_ignored(self):
        stranger = KeyPacket(seed=9)
        builder = CertBuilder().add_uid('Alice <alice@example.com>', flags=0x01)
        builder.add(sig(0x13, stranger, EPOCH + DAY, sp_key_flags(0x02)))
        builder.add(sig(0x30, stranger, EPOCH + 2 * DAY))
        cert = analyze(builder.build(), AT)
        uid = cert.identities[0]

        assert cert.primary_key.usage == {KeyFlags.Certify}
        assert not uid.is_revoked
        assert len(uid.signatures) == 3

    def test_signature_predating_key(self):
        builder = CertBuilder(KeyPacket(created=EPOCH + DAY)).add_uid('Alice <alice@example.com>', created=EPOCH)
        cert = analyze(builder.build(), AT)

        assert cert.identities[0].binding is None
        assert cert.primary_key.binding is None
        assert len(cert.identities[0].signatures) == 1

    def test_backsig(self):
        sub = KeyPacket(alg=27, seed=6)
        cert = analyze(CertBuilder().add_uid('Alice <alice@example.com>').add_subkey(sub, flags=0x02, backsig=True).build(), AT)
        sk = cert.subkeys[0]

        assert sk.material.algorithm is PubKeyAlgorithm.Ed25519
        assert sk.material.algorithm_name == 'EdDSA'
        assert sk.primary_key_binding.signature_type is SignatureType.PrimaryKey_Binding
        assert sk.primary_key_binding.issuer_fingerprint == sub.fpr_hex
        assert sk.binding.embedded is sk.primary_key_binding
        assert sk.usage == {KeyFlags.Sign}

    @pytest.mark.parametrize('code,revoked', [(RevocationReason.Superseded, False),
                                              (RevocationReason.Retired, False),
                                              (RevocationReason.UserID, True)],
                             ids=['superseded', 'retired', 'userid'])
    def test_identity_revoked_then_recertified(self, code, revoked):
        builder = CertBuilder().add_uid('Alice <alice@example.com>')
        builder.add_revocation(0x30, EPOCH + DAY, code)
        builder.add(sig(0x13, builder.primary, EPOCH + 2 * DAY))
        cert = analyze(builder.build(), AT)

        assert cert.identities[0].is_revoked is revoked

    def test_user_attribute(self):
        jpeg = b'\xff\xd8\xff\xe0\x00\x10JFIF\x00' + b'\x00' * 20
        image = b'\x10\x00\x01\x01' + b'\x00' * 12 + jpeg
        body = new_length(len(image) + 1) + b'\x01' + image + new_length(3) + b'\x65zz'
        builder = CertBuilder().add_uid('Alice <alice@example.com>')
        builder.add(packet(17, body), sig(0x13, builder.primary, EPOCH, sp_primary_uid()))
        cert = analyze(builder.build(), AT)

        assert len(cert.user_attributes) == 1
        ua = cert.user_attributes[0]
        assert ua.attributes == ((AttributeType.Image, ImageEncoding.JPEG, len(jpeg)), (0x65, None, 2))
        assert ua.is_primary_marked
        assert ua.binding is not None
        # user attributes never become the primary identity
        assert cert.primary_identity.userid == 'Alice <alice@example.com>'

    def test_invalid_utf8(self):
        cert = analyze(CertBuilder().add_uid(b'Al\xffce <alice@example.com>').build(), AT)
        uid = cert.identities[0]

        assert uid.invalid_utf8
        assert uid.email == 'alice@example.com'

    def test_trust_and_marker_skipped(self):
        builder = CertBuilder()
        builder.packets.insert(0, packet(10, b'PGP'))
        builder.add(packet(12, b'\x00\x3c'))
        builder.add_uid('Alice <alice@example.com>')
        builder.add(packet(12, b'\x00\x3c'))
        cert = analyze(builder.build(), AT)

        assert cert.problems == ()
        assert cert.identities[0].binding is not None

    def test_secret_key(self):
        key = KeyPacket(tag=5, secret_tail=b'\x00' + b'\x11' * 20)
        sub = KeyPacket(alg=18, seed=3, tag=7, secret_tail=b'\x00' + b'\x22' * 20)
        builder = CertBuilder(key).add_uid('Alice <alice@example.com>')
        builder.add(sub.packet(), sig(0x18, key, EPOCH, sp_key_flags(0x0C)))
        cert = analyze(armor(builder.build(), label='PGP PRIVATE KEY BLOCK'), AT)

        assert cert.primary_key.material.secret
        assert cert.fingerprint == key.fpr_hex
        assert cert.subkeys[0].material.secret
        assert cert.subkeys[0].usage == ENCRYPT

    @pytest.mark.parametrize('version', [5, 6])
    def test_sha256_fingerprints(self, version):
        key = KeyPacket(alg=27, version=version)
        builder = CertBuilder(key)
        builder.add(packet(13, b'Alice <alice@example.com>'),
                    sig(0x13, key, EPOCH, sp_key_flags(0x03), version=version,
                        **({'salt': b'\x01' * 16} if version == 6 else {})))
        cert = analyze(builder.build(), AT)

        assert len(bytes(cert.fingerprint)) == 32
        assert cert.fingerprint.version == version
        assert bytes(cert.key_id) == bytes(cert.fingerprint)[:8]
        assert cert.primary_key.usage == SIGN
        assert cert.identities[0].binding.version == version

    def test_v3_key(self):
        key = KeyPacket(version=3)
        builder = CertBuilder(key)
        builder.add(packet(13, b'Old <old@example.com>'),
                    packet(2, bytes([3, 5, 0x13]) + ts(EPOCH) + key.keyid + b'\x01\x01\xbe\xef' + mpi(0x1234)))
        cert = analyze(builder.build(), AT)

        assert cert.fingerprint.version == 3
        assert cert.key_id == key.keyid_hex
        assert cert.identities[0].binding.version == 3
        assert cert.identities[0].binding.issuer_fingerprint is None
        assert cert.primary_key.usage == SIGN | ENCRYPT

    def test_naive_instant(self):
        blob = CertBuilder().add_uid('Alice <alice@example.com>', expires=DAY).build()

        assert analyze(blob, datetime(2020, 1, 1, 12)) == analyze(blob, utc(EPOCH + DAY // 2))
        assert analyze(blob, datetime(2020, 1, 3)).is_expired

    def test_other_timezone(self):
        blob = CertBuilder().add_uid('Alice <alice@example.com>', expires=DAY).build()
        tz = timezone(timedelta(hours=-5))

        # 2020-01-01T20:00-05:00 is 2020-01-02T01:00Z
        assert analyze(blob, datetime(2020, 1, 1, 20, tzinfo=tz)).is_expired

    def test_instant_required(self):
        with pytest.raises(TypeError):
            analyze(CertBuilder().build(), EPOCH)


class TestProblems(object):
    def test_bad_checksum(self):
        text = CertBuilder().add_uid('Alice <alice@example.com>').armored()
        lines = text.splitlines()
        lines[-2] = '=AAAA' if lines[-2] != '=AAAA' else '=AAAB'

        with pytest.raises(ArmorError):
            analyze('\n'.join(lines), AT)

    def test_no_primary(self):
        with pytest.warns(PGPAnatomyWarning):
            with pytest.raises(NoPrimaryKeyError) as excinfo:
                analyze(packet(13, b'Alice <alice@example.com>'), AT)

        assert excinfo.value.stage == 'assembly'

    def test_truncated_before_primary(self):
        with pytest.raises(TruncatedPacketError):
            analyze(CertBuilder().build()[:-10], AT)

    def test_malformed_primary(self):
        with pytest.raises(MalformedPacketError) as excinfo:
            analyze(CertBuilder(KeyPacket(material=b'\x08\x00\x01')).build(), AT)

        assert excinfo.value.offset == 0

    def test_unsupported_primary_version(self):
        with pytest.raises(MalformedPacketError):
            analyze(packet(6, b'\x07' + ts(EPOCH) + b'\x01' + mpi(65537)), AT)

    def test_truncated_after_primary(self):
        data = CertBuilder().add_uid('Alice <alice@example.com>').build() + new_header(13, 50) + b'short'
        cert = quiet(data)

        assert len(cert.identities) == 1
        assert [(p.stage, p.kind) for p in cert.problems] == [('framing', 'TruncatedPacketError')]
        assert cert.problems[0].offset == len(data) - 7

    def test_malformed_signature(self):
        builder = CertBuilder()
        builder.add(packet(13, b'Alice <alice@example.com>'), packet(2, b'\x04\x13\x01\x08\x00\x10'))
        cert = quiet(builder.build())

        assert [(p.stage, p.kind) for p in cert.problems] == [('packet', 'MalformedPacketError')]
        assert cert.problems[0].offset == len(builder.packets[0]) + len(builder.packets[1])
        assert cert.identities[0].binding is None
        assert cert.identities[0].is_primary

    def test_unknown_packet_skipped(self):
        builder = CertBuilder()
        builder.add(packet(60, b'future'))
        builder.add_uid('Alice <alice@example.com>')
        cert = quiet(builder.build())

        assert cert.problems == ()
        assert len(cert.identities) == 1

    def test_unsupported_subkey_version(self):
        builder = CertBuilder().add_uid('Alice <alice@example.com>')
        builder.add(packet(14, b'\x07' + ts(EPOCH) + b'\x19' + b'\x00' * 32), sig(0x18, builder.primary, EPOCH))
        sub = KeyPacket(alg=25, seed=7)
        builder.add_subkey(sub, flags=0x0C)
        cert = quiet(builder.build())

        assert [p.kind for p in cert.problems] == ['UnsupportedVersion', 'OrphanedPacket']
        assert [sk.material.fingerprint for sk in cert.subkeys] == [sub.fpr_hex]

    def test_unknown_subkey_algorithm(self):
        sub = KeyPacket(alg=99, seed=7)
        cert = quiet(CertBuilder().add_uid('Alice <alice@example.com>').add_subkey(sub, flags=0x0C).build())
        sk = cert.subkeys[0]

        assert [(p.stage, p.kind) for p in cert.problems] == [('packet', 'UnsupportedAlgorithmError')]
        assert sk.material.algorithm is PubKeyAlgorithm.Unknown
        assert sk.material.algorithm_name == 'Unknown(99)'
        assert sk.material.bit_length == 0
        assert sk.material.fingerprint == sub.fpr_hex
        assert sk.usage == ENCRYPT
        assert cert.as_dict()['subkeys'][0]['algorithm'] == 'Unknown(99)'

    def test_second_certificate(self):
        first = CertBuilder().add_uid('Alice <alice@example.com>').build()
        second = CertBuilder(KeyPacket(seed=8)).add_uid('Bob <bob@example.com>').build()
        cert = quiet(first + second)

        assert [p.kind for p in cert.problems] == ['OrphanedPacket']
        assert cert.problems[0].offset == len(first)
        assert [uid.userid for uid in cert.identities] == ['Alice <alice@example.com>']

    def test_signature_before_primary(self):
        key = KeyPacket()
        builder = CertBuilder(key)
        builder.packets.insert(0, sig(0x13, key, EPOCH))
        builder.add_uid('Alice <alice@example.com>')
        cert = quiet(builder.build())

        assert [(p.stage, p.kind) for p in cert.problems] == [('assembly', 'OrphanedPacket')]
        assert cert.identities[0].binding is not None

    @pytest.mark.parametrize('sigtype', [0x13, 0x20], ids=['certification', 'key-revocation'])
    def test_malformed_binding_type(self, sigtype):
        sub = KeyPacket(alg=25, seed=7)
        builder = CertBuilder().add_uid('Alice <alice@example.com>').add_subkey(sub, flags=0x0C)
        builder.add(sig(sigtype, builder.primary, EPOCH + DAY))
        cert = quiet(builder.build())

        assert [p.kind for p in cert.problems] == ['MalformedBinding']
        assert cert.subkeys[0].binding.created == utc(EPOCH)
        assert not cert.subkeys[0].is_revoked

    def test_binding_from_other_issuer(self):
        stranger = KeyPacket(seed=9)
        sub = KeyPacket(alg=25, seed=7)
        builder = CertBuilder().add_uid('Alice <alice@example.com>')
        builder.add(sub.packet(14), sig(0x18, stranger, EPOCH, sp_key_flags(0x01)))
        cert = quiet(builder.build())

        assert [p.kind for p in cert.problems] == ['MalformedBinding']
        assert cert.subkeys[0].binding is None
        assert cert.subkeys[0].usage == ENCRYPT

    def test_problem_warnings(self):
        sub = KeyPacket(alg=99, seed=7)
        with pytest.warns(PGPAnatomyWarning, match='UnsupportedAlgorithmError'):
            analyze(CertBuilder().add_uid('Alice <alice@example.com>').add_subkey(sub).build(), AT)

    def test_problems_in_as_dict(self):
        builder = CertBuilder().add_uid('Alice <alice@example.com>')
        builder.add(packet(2, b'\x04\x13\x01\x08\x00\x10'))
        d = quiet(builder.build()).as_dict()

        assert json.loads(json.dumps(d)) == d
        assert [p['kind'] for p in d['problems']] == ['MalformedPacketError']
        assert d['problems'][0]['stage'] == 'packet'
