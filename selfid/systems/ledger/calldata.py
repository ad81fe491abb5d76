"""
SelfID — Calldata Encoding

ABI-style payloads for calls dispatched through the ledger. A payload is a
4-byte function selector followed by 32-byte big-endian words, the same
layout token contracts expect on-chain.

Only the fungible-token transfer is encoded here; any other payload stays
opaque to SelfID and is interpreted solely by its target.
"""

from __future__ import annotations

from selfid.primitives.common import normalise_address

# ─── Function Selectors ──────────────────────────────────────────
# keccak256(signature)[:4]

# transfer(address,uint256) -> bool
TRANSFER_SELECTOR: bytes = bytes.fromhex("a9059cbb")

# balanceOf(address) -> uint256
BALANCE_OF_SELECTOR: bytes = bytes.fromhex("70a08231")

_WORD = 32
_UINT256_MAX = (1 << 256) - 1


def encode_uint(value: int) -> bytes:
    """Encode a non-negative integer as one 32-byte word."""
    if not 0 <= value <= _UINT256_MAX:
        raise ValueError(f"Value out of uint256 range: {value}")
    return value.to_bytes(_WORD, "big")


def encode_address(address: str) -> bytes:
    """Left-pad a 20-byte address to one 32-byte word."""
    return bytes.fromhex(normalise_address(address)[2:]).rjust(_WORD, b"\x00")


def decode_address(word: bytes) -> str:
    if len(word) != _WORD:
        raise ValueError("Address word must be 32 bytes")
    if any(word[:12]):
        raise ValueError("Address word has non-zero padding")
    return "0x" + word[12:].hex()


def encode_transfer(to: str, amount: int) -> bytes:
    """Calldata for transfer(address,uint256)."""
    return TRANSFER_SELECTOR + encode_address(to) + encode_uint(amount)


def encode_balance_of(holder: str) -> bytes:
    """Calldata for balanceOf(address)."""
    return BALANCE_OF_SELECTOR + encode_address(holder)


def decode_call(payload: bytes) -> tuple[bytes, list[bytes]]:
    """
    Split calldata into (selector, words).

    Raises ValueError if the payload is shorter than a selector or its
    argument section is not a whole number of words.
    """
    if len(payload) < 4:
        raise ValueError("Calldata shorter than a function selector")
    body = payload[4:]
    if len(body) % _WORD:
        raise ValueError("Calldata arguments are not 32-byte aligned")
    words = [body[i:i + _WORD] for i in range(0, len(body), _WORD)]
    return payload[:4], words


def decode_transfer(payload: bytes) -> tuple[str, int]:
    """Inverse of encode_transfer. Returns (to, amount)."""
    selector, words = decode_call(payload)
    if selector != TRANSFER_SELECTOR:
        raise ValueError(f"Not a transfer call: selector 0x{selector.hex()}")
    if len(words) != 2:
        raise ValueError(f"transfer expects 2 arguments, got {len(words)}")
    return decode_address(words[0]), int.from_bytes(words[1], "big")
