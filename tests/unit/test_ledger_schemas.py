"""Tests for acc_ledger request/response schemas."""

import pytest
from pydantic import ValidationError

from src.acc_ledger.application.schemas import (
    AccountResponse,
    DepositRequest,
    MovementResponse,
    SettleRequest,
)
from src.acc_ledger.domain.models import AccountMovement, MovementType, ParticipantAccount


class TestRequests:
    def test_deposit_requires_positive_amount(self) -> None:
        with pytest.raises(ValidationError):
            DepositRequest(uid="tx-1", participant="alice", amount_cents=0)

    def test_deposit_requires_uid(self) -> None:
        with pytest.raises(ValidationError):
            DepositRequest(uid="", participant="alice", amount_cents=1)

    def test_settle_requires_reference(self) -> None:
        with pytest.raises(ValidationError):
            SettleRequest(buyer="a", seller="b", amount_cents=1)  # type: ignore[call-arg]


class TestAccountResponse:
    def test_from_account(self) -> None:
        resp = AccountResponse.from_account(
            ParticipantAccount(participant="alice", available=150000, blocked=6500)
        )
        assert resp.total_cents == 156500
        assert resp.available_display == "$1,500.00"
        assert resp.blocked_display == "$65.00"
        assert resp.last_movement_key is None


class TestMovementResponse:
    def test_enum_type_rendered_as_value(self) -> None:
        resp = MovementResponse.from_movement(
            AccountMovement(
                key="m1",
                participant="bob",
                movement_type=MovementType.SETTLE_CREDIT,
                available_delta=10,
            )
        )
        assert resp.movement_type == "SETTLE_CREDIT"
        assert resp.blocked_delta_cents == 0
