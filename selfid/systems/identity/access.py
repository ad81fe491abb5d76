"""
SelfID — Access Policy

Purpose checks over the key store. Every privilege an identity recognises
flows from key state; there is no separate owner flag.

Callers are account addresses and are matched only through their
address-derived key. A key registered from raw key material grants its
purposes to no caller.
"""

from __future__ import annotations

import structlog

from selfid.systems.identity.errors import Unauthorized
from selfid.systems.identity.keystore import KeyStore
from selfid.systems.identity.types import PurposeKind

logger = structlog.get_logger("selfid.identity.access")


class AccessPolicy:
    def __init__(self, keys: KeyStore) -> None:
        self._keys = keys
        self._logger = logger.bind(component="access_policy")

    def is_manager(self, subject: str) -> bool:
        return self._keys.address_has_purpose(subject, PurposeKind.MANAGEMENT)

    def is_action_holder(self, subject: str) -> bool:
        return self._keys.address_has_purpose(subject, PurposeKind.ACTION)

    def can_vote(self, subject: str) -> bool:
        """Management and Action keys may both approve execution requests."""
        return self.is_manager(subject) or self.is_action_holder(subject)

    def require_manager(self, sender: str) -> None:
        if not self.is_manager(sender):
            self._logger.info("access_denied", sender=sender, required="management")
            raise Unauthorized(sender, PurposeKind.MANAGEMENT.name)

    def require_voter(self, sender: str) -> None:
        if not self.can_vote(sender):
            self._logger.info("access_denied", sender=sender, required="management_or_action")
            raise Unauthorized(
                sender, f"{PurposeKind.MANAGEMENT.name} or {PurposeKind.ACTION.name}"
            )
