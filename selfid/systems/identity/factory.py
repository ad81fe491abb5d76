"""
SelfID — Identity Factory

Creates identity instances on a ledger. The caller of create_identity()
becomes the new instance's bootstrap Management key.
"""

from __future__ import annotations

import structlog

from selfid.config import IdentityConfig
from selfid.systems.identity.events import EventBus, IdentityEventType
from selfid.systems.identity.identity import Identity
from selfid.systems.ledger.ledger import Ledger

logger = structlog.get_logger("selfid.identity.factory")


class IdentityFactory:
    def __init__(self, ledger: Ledger, config: IdentityConfig | None = None) -> None:
        self._ledger = ledger
        self._config = config or IdentityConfig()
        self._identities: dict[str, Identity] = {}
        self.events = EventBus(source="factory", buffer_size=self._config.event_buffer_size)
        self._logger = logger.bind(component="identity_factory")

    def create_identity(self, *, sender: str) -> Identity:
        identity = Identity(self._ledger, owner=sender, config=self._config)
        self._identities[identity.address] = identity
        self.events.emit(
            IdentityEventType.IDENTITY_CREATED,
            identity=identity.address,
            owner=sender,
        )
        self._logger.info("identity_created", identity=identity.address, owner=sender)
        return identity

    def get(self, address: str) -> Identity | None:
        return self._identities.get(address.lower())

    @property
    def identities(self) -> list[str]:
        """Addresses of every identity created by this factory, oldest first."""
        return list(self._identities)

    def __len__(self) -> int:
        return len(self._identities)
