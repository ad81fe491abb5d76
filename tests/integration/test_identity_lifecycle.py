"""
Integration tests — an identity living on a ledger, driven end to end.

Covers the key/service bookkeeping walk-through, asset withdrawal, and
multi-party approval of calls that move native value and tokens.
"""

from __future__ import annotations

import pytest

from selfid.systems.identity import (
    IdentityEventType,
    KeyAlgorithm,
    PurposeKind,
    RequestState,
    Unauthorized,
    UnknownService,
    key_id_for_address,
)
from selfid.systems.ledger.calldata import encode_transfer

ONE_ETHER = 10**18
HUB = "HubService"
HUB_URL = "https://hub.example.com/.identity/did:key:123/"


# ─── Keys and Services ────────────────────────────────────────────


class TestBookkeeping:
    def test_key_walkthrough(self, identity, owner, accounts):
        assert identity.keys_count == 1

        identity.add_key("THIS-IS-A-KEY", PurposeKind.ACTION, KeyAlgorithm.OTHER, sender=owner)
        identity.add_address_as_key(accounts[0], PurposeKind.ACTION, KeyAlgorithm.ADDRESS_DERIVED, sender=owner)
        identity.add_address_as_key(accounts[1], PurposeKind.CLAIM_SIGNER, KeyAlgorithm.ADDRESS_DERIVED, sender=owner)
        assert identity.keys_count == 4

        with pytest.raises(Unauthorized):
            identity.add_key("SNEAKY", PurposeKind.MANAGEMENT, KeyAlgorithm.OTHER, sender=accounts[0])

        identity.remove_key(key_id_for_address(accounts[0]), sender=owner)
        assert identity.keys_count == 3
        assert not identity.address_has_purpose(accounts[0], PurposeKind.ACTION)

        remaining = {identity.key_indexes(i) for i in range(identity.keys_count)}
        assert remaining == {
            key_id_for_address(owner),
            "THIS-IS-A-KEY",
            key_id_for_address(accounts[1]),
        }
        assert identity.events.count(IdentityEventType.KEY_ADDED) == 3
        assert identity.events.count(IdentityEventType.KEY_REMOVED) == 1

    def test_service_walkthrough(self, identity, owner):
        identity.add_service(HUB, HUB_URL, sender=owner)
        identity.add_service("SocialService", "https://social.example.com/", sender=owner)
        assert identity.services_count == 2

        identity.remove_service("SocialService", sender=owner)
        assert identity.services_count == 1
        assert identity.get_service_by_type(HUB) == HUB_URL
        with pytest.raises(UnknownService):
            identity.get_service_by_type("SocialService")


# ─── Assets ───────────────────────────────────────────────────────


class TestAssets:
    def test_native_deposit_and_withdrawal(self, identity, ledger, owner):
        ledger.transfer(owner, identity.address, 2 * ONE_ETHER)
        assert identity.native_balance == 2 * ONE_ETHER

        identity.withdraw_native(ONE_ETHER, sender=owner)
        assert identity.native_balance == ONE_ETHER
        assert ledger.balance_of(owner) == 9 * ONE_ETHER

    def test_token_deposit_and_withdrawal(self, identity, token, owner):
        token.transfer(owner, identity.address, 1_000)
        identity.withdraw_token(400, token.address, sender=owner)
        assert identity.token_balance(token) == 600
        assert token.balance_of(owner) == 9_400


# ─── Execution Approval ───────────────────────────────────────────


class TestExecution:
    def test_two_party_native_payment(self, identity, ledger, owner, accounts):
        actor, outsider, recipient = accounts[0], accounts[1], accounts[2]
        ledger.transfer(owner, identity.address, ONE_ETHER)
        identity.add_address_as_key(actor, PurposeKind.ACTION, KeyAlgorithm.ADDRESS_DERIVED, sender=owner)
        identity.set_approval_threshold(2, sender=owner)
        before = ledger.balance_of(recipient)

        execution_id = identity.execute(recipient, 700, b"", sender=outsider)
        assert execution_id == 0
        assert identity.get_request(execution_id).state is RequestState.PENDING

        assert identity.approve(execution_id, True, sender=owner) is RequestState.PENDING
        assert ledger.balance_of(recipient) == before

        assert identity.approve(execution_id, True, sender=actor) is RequestState.EXECUTED
        assert ledger.balance_of(recipient) == before + 700
        assert identity.native_balance == ONE_ETHER - 700
        assert identity.events.count(IdentityEventType.EXECUTED) == 1

    def test_two_party_token_transfer(self, identity, token, owner, accounts):
        actor, outsider, recipient = accounts[0], accounts[1], accounts[2]
        token.transfer(owner, identity.address, 1_000)
        identity.add_address_as_key(actor, PurposeKind.ACTION, KeyAlgorithm.ADDRESS_DERIVED, sender=owner)
        identity.set_approval_threshold(2, sender=owner)

        execution_id = identity.execute(token.address, 0, encode_transfer(recipient, 700), sender=outsider)
        request = identity.get_request(execution_id)
        assert execution_id == 0
        assert request.state is RequestState.PENDING
        assert request.votes == {}

        assert identity.approve(execution_id, True, sender=owner) is RequestState.PENDING
        assert identity.get_request(execution_id).approvals == 1
        assert token.balance_of(recipient) == 0

        assert identity.approve(execution_id, True, sender=actor) is RequestState.EXECUTED
        assert identity.get_request(execution_id).approvals == 2
        assert token.balance_of(recipient) == 700
        assert identity.token_balance(token) == 300
        executed = identity.events.last(IdentityEventType.EXECUTED)
        assert executed.data["execution_id"] == execution_id
        assert executed.data["target"] == token.address

    def test_oversized_payment_fails_without_moving_value(self, identity, ledger, owner, accounts):
        recipient = accounts[0]
        ledger.transfer(owner, identity.address, 1_000)
        before = ledger.balance_of(recipient)

        execution_id = identity.execute(recipient, 5_000, b"", sender=owner)

        request = identity.get_request(execution_id)
        assert request.state is RequestState.FAILED
        assert request.error
        assert identity.events.count(IdentityEventType.EXECUTION_FAILED) == 1
        assert identity.events.count(IdentityEventType.EXECUTED) == 0
        assert ledger.balance_of(recipient) == before
        assert identity.native_balance == 1_000

    def test_token_transfer_through_execution(self, identity, token, owner, accounts):
        recipient = accounts[3]
        token.transfer(owner, identity.address, 1_000)

        identity.execute(token.address, 0, encode_transfer(recipient, 250), sender=owner)

        assert token.balance_of(recipient) == 250
        assert identity.token_balance(token) == 750

    def test_rejected_token_call_marks_request_failed(self, identity, token, owner, accounts):
        token.transfer(owner, identity.address, 100)

        execution_id = identity.execute(token.address, 0, encode_transfer(accounts[0], 101), sender=owner)

        assert identity.get_request(execution_id).state is RequestState.FAILED
        assert identity.token_balance(token) == 100
        assert token.balance_of(accounts[0]) == 0

    def test_identity_can_pay_another_identity(self, factory, identity, ledger, owner, accounts):
        other = factory.create_identity(sender=accounts[0])
        ledger.transfer(owner, identity.address, 1_000)

        identity.execute(other.address, 300, b"", sender=owner)

        assert other.native_balance == 300
        assert other.events.last(IdentityEventType.RECEIVED_NATIVE).data == {
            "sender": identity.address,
            "amount": 300,
        }
