"""
SelfID — Key Store

Storage and enumeration of an identity's keys.

Layout:
  _keys       key_id -> Key
  _index      insertion-ordered list of key ids, for enumeration
  _positions  key_id -> position in _index

Removal swaps the last id into the vacated slot, so it is O(1) and the
enumeration order is not stable across removals. The three structures are
always mutated together; len(_keys) == len(_index) == len(_positions).

The store itself performs no authorization. Identity gates every mutation
through AccessPolicy before it reaches this layer.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterator

import structlog

from selfid.primitives.common import is_address, normalise_address
from selfid.systems.identity.errors import DuplicateKey, UnknownKey
from selfid.systems.identity.types import Key, KeyAlgorithm, KeyInfo, PurposeKind

logger = structlog.get_logger("selfid.identity.keystore")


def key_id_for_address(address: str) -> str:
    """Deterministic key id for an account address (case-insensitive)."""
    canonical = normalise_address(address)
    return "0x" + hashlib.sha256(bytes.fromhex(canonical[2:])).hexdigest()


class KeyStore:
    """Key records with O(1) insert, lookup, and removal."""

    def __init__(self) -> None:
        self._keys: dict[str, Key] = {}
        self._index: list[str] = []
        self._positions: dict[str, int] = {}
        self._logger = logger.bind(component="keystore")

    # ─── Mutation ────────────────────────────────────────────────────

    def add(
        self,
        key_id: str,
        purpose: PurposeKind,
        algorithm: KeyAlgorithm,
        address: str | None = None,
    ) -> Key:
        """
        Grant `purpose` to `key_id`, creating the key if needed.

        Raises DuplicateKey if the key already holds this purpose. An
        existing key keeps the algorithm it was first registered with.
        """
        if not key_id:
            raise ValueError("Key id must be non-empty")
        purpose = PurposeKind(purpose)
        algorithm = KeyAlgorithm(algorithm)

        key = self._keys.get(key_id)
        if key is not None:
            if purpose in key.purposes:
                raise DuplicateKey(f"Key {key_id} already has purpose {purpose.name}")
            key.purposes.add(purpose)
            self._logger.debug("key_purpose_extended", key_id=key_id, purpose=purpose.name)
            return key

        key = Key(key_id=key_id, purposes={purpose}, algorithm=algorithm, address=address)
        self._keys[key_id] = key
        self._positions[key_id] = len(self._index)
        self._index.append(key_id)
        self._logger.debug(
            "key_stored",
            key_id=key_id,
            purpose=purpose.name,
            algorithm=algorithm.name,
            keys_count=len(self._index),
        )
        return key

    def remove(self, key_id: str) -> Key:
        """Delete a key and every purpose it holds. Raises UnknownKey."""
        key = self._keys.get(key_id)
        if key is None:
            raise UnknownKey(f"No key stored under {key_id}")

        position = self._positions.pop(key_id)
        last_id = self._index.pop()
        if last_id != key_id:
            self._index[position] = last_id
            self._positions[last_id] = position
        del self._keys[key_id]

        self._logger.debug("key_deleted", key_id=key_id, keys_count=len(self._index))
        return key

    # ─── Lookup ──────────────────────────────────────────────────────

    def get(self, key_id: str) -> KeyInfo:
        key = self._keys.get(key_id)
        if key is None:
            raise UnknownKey(f"No key stored under {key_id}")
        return KeyInfo.from_key(key)

    def get_by_address(self, address: str) -> KeyInfo:
        return self.get(key_id_for_address(address))

    def key_has_purpose(self, key_id: str, purpose: PurposeKind) -> bool:
        key = self._keys.get(key_id)
        return key is not None and key.has_purpose(purpose)

    def address_has_purpose(self, address: str, purpose: PurposeKind) -> bool:
        if not is_address(address):
            return False
        return self.key_has_purpose(key_id_for_address(address), purpose)

    def has_purpose(self, id_or_address: str, purpose: PurposeKind) -> bool:
        """
        Purpose check that accepts either an account address or a raw key id.

        Never raises: malformed or unknown inputs simply have no purpose.
        """
        if not isinstance(id_or_address, str):
            return False
        if self.address_has_purpose(id_or_address, purpose):
            return True
        return self.key_has_purpose(id_or_address, purpose)

    # ─── Enumeration ─────────────────────────────────────────────────

    @property
    def keys_count(self) -> int:
        return len(self._index)

    def key_indexes(self, position: int) -> str:
        """Key id at `position` in the current enumeration order."""
        if not 0 <= position < len(self._index):
            raise IndexError(f"Key index {position} out of range (count={len(self._index)})")
        return self._index[position]

    def __contains__(self, key_id: object) -> bool:
        return key_id in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._index))

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"<KeyStore keys={len(self._index)}>"
