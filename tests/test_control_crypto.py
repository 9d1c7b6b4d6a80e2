import struct

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from moonlight.control_crypto import (
    AES_GCM_TAG_LENGTH,
    ControlCryptoError,
    control_iv,
    decrypt_control_message,
    encrypt_control_message,
)

aes_key = bytes(range(16))


def _host_packet(seq, packet_type, payload):
    plaintext = struct.pack("<HH", packet_type, len(payload)) + payload
    sealed = AESGCM(aes_key).encrypt(control_iv(seq, True, True), plaintext, None)
    tag, ct = sealed[-16:], sealed[:-16]
    length = 4 + 16 + len(plaintext)
    return struct.pack("<HHI", 1, length, seq) + tag + ct


def test_v2_client_iv_layout():
    iv = control_iv(0x01020304, True, False)
    assert iv == bytes([4, 3, 2, 1, 0, 0, 0, 0, 0, 0]) + b"CC"


def test_v2_host_iv_marker():
    iv = control_iv(7, True, True)
    assert len(iv) == 12
    assert iv[10:12] == b"HC"


def test_legacy_iv_truncates_sequence():
    iv = control_iv(0x1FF, False, False)
    assert len(iv) == 16
    assert iv[0] == 0xFF
    assert iv[1:] == bytes(15)


def test_encrypted_header_fields():
    payload = b"\x00\x00"
    wire = encrypt_control_message(aes_key, 5, 0x0302, payload, True)
    header_type, length, seq = struct.unpack_from("<HHI", wire)
    assert header_type == 1
    assert seq == 5
    assert len(wire) == length + 4
    assert len(wire) == 8 + AES_GCM_TAG_LENGTH + 4 + len(payload)


def test_legacy_round_trip():
    payload = b"hello control"
    wire = encrypt_control_message(aes_key, 3, 0x0206, payload, False)
    assert decrypt_control_message(aes_key, wire, False) == (0x0206, payload)


def test_v2_decrypt_host_packet():
    wire = _host_packet(9, 0x010E, b"\x01\x02")
    assert decrypt_control_message(aes_key, wire, True) == (0x010E, b"\x01\x02")


def test_v2_client_message_not_openable_as_host():
    wire = encrypt_control_message(aes_key, 9, 0x0206, b"data", True)
    with pytest.raises(ControlCryptoError):
        decrypt_control_message(aes_key, wire, True)


def test_tampered_ciphertext_rejected():
    wire = bytearray(encrypt_control_message(aes_key, 1, 0x0206, b"data", False))
    wire[-1] ^= 0x01
    with pytest.raises(ControlCryptoError):
        decrypt_control_message(aes_key, bytes(wire), False)


def test_truncated_packet_rejected():
    wire = encrypt_control_message(aes_key, 1, 0x0206, b"data", False)
    with pytest.raises(ControlCryptoError):
        decrypt_control_message(aes_key, wire[:-1], False)


def test_runt_length_rejected():
    wire = struct.pack("<HHI", 1, 8, 0) + bytes(4)
    with pytest.raises(ControlCryptoError):
        decrypt_control_message(aes_key, wire, False)


def test_wrong_header_type_rejected():
    wire = bytearray(encrypt_control_message(aes_key, 1, 0x0206, b"data", False))
    wire[0] = 2
    with pytest.raises(ControlCryptoError):
        decrypt_control_message(aes_key, bytes(wire), False)


def test_short_header_rejected():
    with pytest.raises(ControlCryptoError):
        decrypt_control_message(aes_key, b"\x01\x00", False)