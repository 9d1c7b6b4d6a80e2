"""AES-GCM sealing of control stream messages."""

from __future__ import annotations

import struct

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

AES_GCM_TAG_LENGTH = 16
ENCRYPTED_HEADER_TYPE = 0x0001

_ENC_HEADER = struct.Struct("<HHI")  # encryptedHeaderType, length, seq
_V2_HEADER = struct.Struct("<HH")  # type, payloadLength


class ControlCryptoError(Exception):
    """Raised when a control message cannot be sealed or opened."""


def control_iv(seq, v2, host_originated):
    """Return the IV for the message with sequence number ``seq``.

    The v2 scheme uses a 12-byte IV with the sequence number in little
    endian and a direction marker; the older scheme uses a 16-byte IV
    holding only the low byte of the sequence number.
    """
    seq &= 0xFFFFFFFF
    if v2:
        iv = bytearray(12)
        iv[0:4] = seq.to_bytes(4, "little")
        iv[10] = ord("H") if host_originated else ord("C")
        iv[11] = ord("C")
        return bytes(iv)
    iv = bytearray(16)
    iv[0] = seq & 0xFF
    return bytes(iv)


def encrypt_control_message(key, seq, packet_type, payload, v2):
    """Seal a client-originated control message into its wire form.

    The result is the encrypted header (type 1, length, sequence number)
    followed by the GCM tag and the ciphertext of the V2 packet.
    """
    payload = bytes(payload)
    plaintext = _V2_HEADER.pack(packet_type & 0xFFFF, len(payload) & 0xFFFF) + payload
    length = 4 + AES_GCM_TAG_LENGTH + len(plaintext)
    if length > 0xFFFF:
        raise ControlCryptoError(f"message of {len(payload)} bytes is too long")
    try:
        sealed = AESGCM(bytes(key)).encrypt(control_iv(seq, v2, False), plaintext, None)
    except ValueError as exc:
        raise ControlCryptoError(str(exc)) from exc
    ciphertext, tag = sealed[:-AES_GCM_TAG_LENGTH], sealed[-AES_GCM_TAG_LENGTH:]
    header = _ENC_HEADER.pack(ENCRYPTED_HEADER_TYPE, length, seq & 0xFFFFFFFF)
    return header + tag + ciphertext


def decrypt_control_message(key, data, v2):
    """Open a host-originated encrypted control message.

    Returns ``(packet_type, payload)``, where the payload is everything
    after the V2 header.
    """
    data = bytes(data)
    if len(data) < _ENC_HEADER.size:
        raise ControlCryptoError(f"runt encrypted packet of {len(data)} bytes")
    header_type, length, seq = _ENC_HEADER.unpack_from(data)
    if header_type != ENCRYPTED_HEADER_TYPE:
        raise ControlCryptoError(f"not an encrypted packet: type {header_type:#06x}")

    expected = length + 4
    if len(data) < expected:
        raise ControlCryptoError(
            f"length exceeds packet boundary (needed {expected}, got {len(data)})"
        )
    if length < 4 + AES_GCM_TAG_LENGTH + _V2_HEADER.size:
        raise ControlCryptoError(f"received runt packet ({length})")

    body = data[_ENC_HEADER.size:expected]
    tag = body[:AES_GCM_TAG_LENGTH]
    ciphertext = body[AES_GCM_TAG_LENGTH:]
    try:
        plaintext = AESGCM(bytes(key)).decrypt(
            control_iv(seq, v2, True), ciphertext + tag, None
        )
    except (InvalidTag, ValueError) as exc:
        raise ControlCryptoError("failed to decrypt control message") from exc

    packet_type = int.from_bytes(plaintext[0:2], "little")
    return packet_type, plaintext[_V2_HEADER.size:]