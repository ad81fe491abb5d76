"""
SelfID — Service Registry

Service-endpoint metadata published by an identity, keyed by service type
(e.g. "HubService" -> "https://hub.example.com/.identity/did:key:.../").

A removed type keeps an empty slot; `services_count` counts only live
endpoints and lookups of empty slots fail exactly like unknown types.
"""

from __future__ import annotations

import structlog

from selfid.systems.identity.access import AccessPolicy
from selfid.systems.identity.errors import UnknownService
from selfid.systems.identity.events import EventBus, IdentityEventType

logger = structlog.get_logger("selfid.identity.services")


class ServiceRegistry:
    def __init__(self, policy: AccessPolicy, events: EventBus) -> None:
        self._policy = policy
        self._events = events
        self._services: dict[str, str] = {}
        self._services_count: int = 0
        self._logger = logger.bind(component="service_registry")

    @property
    def services_count(self) -> int:
        return self._services_count

    def add_service(self, service_type: str, endpoint: str, *, sender: str) -> None:
        """Create or replace the endpoint for `service_type`. Management only."""
        self._policy.require_manager(sender)
        if not service_type:
            raise ValueError("Service type must be non-empty")
        if not endpoint:
            raise ValueError("Endpoint must be non-empty; use remove_service to clear it")

        is_new = not self._services.get(service_type)
        self._services[service_type] = endpoint
        if is_new:
            self._services_count += 1

        self._events.emit(
            IdentityEventType.SERVICE_ADDED,
            service_type=service_type,
            endpoint=endpoint,
        )
        self._logger.info(
            "service_added" if is_new else "service_updated",
            service_type=service_type,
            endpoint=endpoint,
            services_count=self._services_count,
        )

    def remove_service(self, service_type: str, *, sender: str) -> None:
        """Clear the endpoint for `service_type`. Management only."""
        self._policy.require_manager(sender)
        if not self._services.get(service_type):
            raise UnknownService(f"No service registered for type {service_type!r}")

        self._services[service_type] = ""
        self._services_count -= 1

        self._events.emit(IdentityEventType.SERVICE_REMOVED, service_type=service_type)
        self._logger.info(
            "service_removed",
            service_type=service_type,
            services_count=self._services_count,
        )

    def get_service_by_type(self, service_type: str) -> str:
        endpoint = self._services.get(service_type)
        if not endpoint:
            raise UnknownService(f"No service registered for type {service_type!r}")
        return endpoint

    def service_types(self) -> list[str]:
        """Live service types, sorted."""
        return sorted(t for t, endpoint in self._services.items() if endpoint)
