"""
Unit tests for IdentityFactory.
"""

from __future__ import annotations

from selfid.config import IdentityConfig
from selfid.systems.identity import IdentityEventType, IdentityFactory, PurposeKind


def test_creator_becomes_manager(factory, owner):
    identity = factory.create_identity(sender=owner)
    assert identity.keys_count == 1
    assert identity.address_has_purpose(owner, PurposeKind.MANAGEMENT)
    assert not identity.address_has_purpose(owner, PurposeKind.ACTION)


def test_each_call_creates_a_distinct_instance(factory, owner, accounts):
    first = factory.create_identity(sender=owner)
    second = factory.create_identity(sender=accounts[0])

    assert first.address != second.address
    assert len(factory) == 2
    assert factory.identities == [first.address, second.address]
    assert factory.get(second.address) is second
    assert not first.address_has_purpose(accounts[0], PurposeKind.MANAGEMENT)


def test_creation_is_announced(factory, owner):
    identity = factory.create_identity(sender=owner)
    event = factory.events.last(IdentityEventType.IDENTITY_CREATED)
    assert event.data == {"identity": identity.address, "owner": owner}
    assert event.source == "factory"


def test_instances_are_registered_on_the_ledger(factory, ledger, owner):
    identity = factory.create_identity(sender=owner)
    assert ledger.is_contract(identity.address)
    assert ledger.contract_at(identity.address) is identity


def test_configured_threshold_is_applied(ledger, owner):
    factory = IdentityFactory(ledger, IdentityConfig(approval_threshold=3))
    assert factory.create_identity(sender=owner).approval_threshold == 3


def test_unknown_address_returns_none(factory, ledger):
    assert factory.get(ledger.new_address()) is None
