"""
Tests for session payload encryption.

Covers both algorithms, the envelope wire format and tamper detection:
any change to the ciphertext or MAC must fail with IntegrityError rather
than decrypt to some other plausible payload.
"""

import hashlib
import hmac
import json

import pytest

PAYLOAD = '{"cookie":{"maxAge":60000},"user":{"id":42,"name":"Zoë"}}'
SECRET = "keyboard cat"


def _flip_hex(text: str, index: int) -> str:
    """Replace the hex digit at index with a different hex digit."""
    replacement = "0" if text[index] != "0" else "1"
    return text[:index] + replacement + text[index + 1:]


@pytest.fixture(params=["aes-256-gcm", "aes-256-ecb"])
def box(request):
    from kvsession.sessions.crypto import CryptoBox

    return CryptoBox(SECRET, request.param)


# =============================================================================
# Construction
# =============================================================================


class TestCryptoBoxConstruction:
    """Tests for CryptoBox configuration."""

    def test_default_algorithm_is_gcm(self) -> None:
        from kvsession.sessions.crypto import CryptoBox

        assert CryptoBox(SECRET).algorithm == "aes-256-gcm"

    def test_empty_secret_rejected(self) -> None:
        from kvsession.core.exceptions import ConfigurationError
        from kvsession.sessions.crypto import CryptoBox

        with pytest.raises(ConfigurationError) as exc_info:
            CryptoBox("")

        assert exc_info.value.option == "secret"

    def test_unknown_algorithm_rejected(self) -> None:
        from kvsession.core.exceptions import ConfigurationError
        from kvsession.sessions.crypto import CryptoBox

        with pytest.raises(ConfigurationError) as exc_info:
            CryptoBox(SECRET, "aes-128-cbc")

        assert exc_info.value.option == "algorithm"


# =============================================================================
# Round Trip
# =============================================================================


class TestSealOpen:
    """seal() then open() recovers the payload for every algorithm."""

    def test_round_trip(self, box) -> None:
        assert box.open(box.seal(PAYLOAD)) == PAYLOAD

    def test_round_trip_through_wire_format(self, box) -> None:
        from kvsession.sessions.crypto import EncryptedEnvelope

        wire = box.seal(PAYLOAD).to_json()
        assert box.open(EncryptedEnvelope.from_json(wire)) == PAYLOAD

    def test_wire_format_keys(self, box) -> None:
        wire = json.loads(box.seal(PAYLOAD).to_json())

        assert set(wire) == {"ct", "mac"}
        int(wire["ct"], 16)
        int(wire["mac"], 16)

    def test_payload_with_control_characters(self, box) -> None:
        payload = '{"note":"line\\nbreak \\"quoted\\""}'

        assert box.open(box.seal(payload)) == payload

    def test_lone_surrogate_payload_rejected(self, box) -> None:
        from kvsession.core.exceptions import SerializationError

        with pytest.raises(SerializationError):
            box.seal('{"name":"\ud800"}')


# =============================================================================
# Tamper Detection
# =============================================================================


class TestTamperDetection:
    """Any modification of the envelope is rejected."""

    @pytest.mark.parametrize("position", [0, 7, -1])
    def test_flipped_ciphertext_rejected(self, box, position) -> None:
        from kvsession.core.exceptions import IntegrityError
        from kvsession.sessions.crypto import EncryptedEnvelope

        envelope = box.seal(PAYLOAD)
        index = position % len(envelope.ciphertext)
        tampered = EncryptedEnvelope(
            ciphertext=_flip_hex(envelope.ciphertext, index), mac=envelope.mac
        )

        with pytest.raises(IntegrityError):
            box.open(tampered)

    @pytest.mark.parametrize("position", [0, 11, -1])
    def test_flipped_mac_rejected(self, box, position) -> None:
        from kvsession.core.exceptions import IntegrityError
        from kvsession.sessions.crypto import EncryptedEnvelope

        envelope = box.seal(PAYLOAD)
        index = position % len(envelope.mac)
        tampered = EncryptedEnvelope(
            ciphertext=envelope.ciphertext, mac=_flip_hex(envelope.mac, index)
        )

        with pytest.raises(IntegrityError):
            box.open(tampered)

    def test_truncated_ciphertext_rejected(self, box) -> None:
        from kvsession.core.exceptions import IntegrityError
        from kvsession.sessions.crypto import EncryptedEnvelope

        envelope = box.seal(PAYLOAD)
        tampered = EncryptedEnvelope(ciphertext=envelope.ciphertext[:-2], mac=envelope.mac)

        with pytest.raises(IntegrityError):
            box.open(tampered)

    def test_non_ascii_mac_rejected(self, box) -> None:
        from kvsession.core.exceptions import IntegrityError
        from kvsession.sessions.crypto import EncryptedEnvelope

        envelope = box.seal(PAYLOAD)

        with pytest.raises(IntegrityError):
            box.open(EncryptedEnvelope(ciphertext=envelope.ciphertext, mac="é" * 8))

    def test_wrong_secret_rejected(self, box) -> None:
        from kvsession.core.exceptions import IntegrityError
        from kvsession.sessions.crypto import CryptoBox

        other = CryptoBox("another secret", box.algorithm)

        with pytest.raises(IntegrityError):
            other.open(box.seal(PAYLOAD))

    def test_algorithm_mismatch_rejected(self) -> None:
        from kvsession.core.exceptions import IntegrityError
        from kvsession.sessions.crypto import CryptoBox

        envelope = CryptoBox(SECRET, "aes-256-gcm").seal(PAYLOAD)

        with pytest.raises(IntegrityError):
            CryptoBox(SECRET, "aes-256-ecb").open(envelope)

    def test_mac_checked_before_decryption(self, box) -> None:
        from unittest.mock import patch

        from kvsession.core.exceptions import IntegrityError
        from kvsession.sessions.crypto import EncryptedEnvelope

        envelope = box.seal(PAYLOAD)
        tampered = EncryptedEnvelope(ciphertext=envelope.ciphertext, mac="00" * 20)

        with patch.object(box._cipher, "decrypt") as decrypt:
            with pytest.raises(IntegrityError):
                box.open(tampered)

        decrypt.assert_not_called()


# =============================================================================
# Envelope Parsing
# =============================================================================


class TestEnvelopeParsing:
    """Stored values that are not envelopes are serialization errors."""

    @pytest.mark.parametrize(
        "text",
        ["", "not json", "[]", '{"ct":"00"}', '{"mac":"00"}', '{"ct":1,"mac":"00"}'],
    )
    def test_malformed_envelope(self, text) -> None:
        from kvsession.core.exceptions import SerializationError
        from kvsession.sessions.crypto import EncryptedEnvelope

        with pytest.raises(SerializationError):
            EncryptedEnvelope.from_json(text, session_id="abc")


# =============================================================================
# Algorithm-Specific Behaviour
# =============================================================================


class TestGcmMode:
    """The default algorithm is randomized."""

    def test_equal_payloads_encrypt_differently(self) -> None:
        from kvsession.sessions.crypto import CryptoBox

        box = CryptoBox(SECRET)

        assert box.seal(PAYLOAD).ciphertext != box.seal(PAYLOAD).ciphertext

    def test_mac_is_hmac_sha256(self) -> None:
        from kvsession.sessions.crypto import CryptoBox

        envelope = CryptoBox(SECRET).seal(PAYLOAD)
        expected = hmac.new(
            SECRET.encode(), envelope.ciphertext.encode(), hashlib.sha256
        ).hexdigest()

        assert envelope.mac == expected


class TestLegacyEcbMode:
    """The legacy algorithm reproduces the Node.js connect-redis wire format."""

    def test_evp_bytes_to_key_first_block_is_md5(self) -> None:
        from kvsession.sessions.crypto import evp_bytes_to_key

        key = evp_bytes_to_key(b"password")

        assert len(key) == 32
        assert key[:16].hex() == "5f4dcc3b5aa765d61d8327deb882cf99"
        assert key[16:] == hashlib.md5(key[:16] + b"password").digest()

    def test_equal_payloads_encrypt_identically(self) -> None:
        from kvsession.sessions.crypto import CryptoBox

        box = CryptoBox(SECRET, "aes-256-ecb")

        assert box.seal(PAYLOAD) == box.seal(PAYLOAD)

    def test_wire_format(self) -> None:
        from cryptography.hazmat.primitives import padding
        from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

        from kvsession.sessions.crypto import CryptoBox, evp_bytes_to_key

        envelope = CryptoBox(SECRET, "aes-256-ecb").seal(PAYLOAD)

        raw = bytes.fromhex(envelope.ciphertext)
        assert len(raw) % 16 == 0

        decryptor = Cipher(
            algorithms.AES(evp_bytes_to_key(SECRET.encode())), modes.ECB()
        ).decryptor()
        unpadder = padding.PKCS7(128).unpadder()
        plaintext = unpadder.update(decryptor.update(raw) + decryptor.finalize())
        plaintext += unpadder.finalize()

        assert json.loads(plaintext.decode("utf-8")) == PAYLOAD
        assert envelope.mac == hmac.new(
            SECRET.encode(), envelope.ciphertext.encode(), hashlib.sha1
        ).hexdigest()
