"""
Unit tests for the calldata codec.
"""

from __future__ import annotations

import pytest

from selfid.systems.ledger.calldata import (
    BALANCE_OF_SELECTOR,
    TRANSFER_SELECTOR,
    decode_address,
    decode_call,
    decode_transfer,
    encode_address,
    encode_balance_of,
    encode_transfer,
    encode_uint,
)

RECIPIENT = "0x" + "ab" * 20


def test_transfer_layout():
    payload = encode_transfer(RECIPIENT, 700)
    assert payload[:4] == TRANSFER_SELECTOR
    assert len(payload) == 4 + 32 + 32
    assert payload[4:16] == b"\x00" * 12
    assert payload[16:36] == bytes.fromhex("ab" * 20)
    assert int.from_bytes(payload[36:], "big") == 700


def test_decode_transfer():
    assert decode_transfer(encode_transfer(RECIPIENT.upper().replace("0X", "0x"), 1)) == (RECIPIENT, 1)


def test_balance_of_layout():
    payload = encode_balance_of(RECIPIENT)
    selector, words = decode_call(payload)
    assert selector == BALANCE_OF_SELECTOR
    assert decode_address(words[0]) == RECIPIENT


def test_decode_call_rejects_short_payload():
    with pytest.raises(ValueError, match="selector"):
        decode_call(b"\x01\x02")


def test_decode_call_rejects_misaligned_arguments():
    with pytest.raises(ValueError, match="aligned"):
        decode_call(TRANSFER_SELECTOR + b"\x00" * 33)


def test_decode_transfer_rejects_other_selector():
    with pytest.raises(ValueError, match="Not a transfer"):
        decode_transfer(encode_balance_of(RECIPIENT))


def test_decode_transfer_rejects_wrong_arity():
    with pytest.raises(ValueError, match="2 arguments"):
        decode_transfer(TRANSFER_SELECTOR + encode_address(RECIPIENT))


def test_address_word_with_dirty_padding_rejected():
    word = b"\x01" + encode_address(RECIPIENT)[1:]
    with pytest.raises(ValueError, match="padding"):
        decode_address(word)


def test_uint_range():
    with pytest.raises(ValueError):
        encode_uint(-1)
    with pytest.raises(ValueError):
        encode_uint(1 << 256)
    assert encode_uint((1 << 256) - 1) == b"\xff" * 32


def test_malformed_address_rejected():
    with pytest.raises(ValueError, match="valid address"):
        encode_transfer("0x1234", 1)
