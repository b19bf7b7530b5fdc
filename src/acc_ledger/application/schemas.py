"""Pydantic schemas for the acc_ledger API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.acc_common.cents import cents_to_display
from src.acc_ledger.domain.models import AccountMovement, Deposit, ParticipantAccount

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    uid: str = Field(..., min_length=1, max_length=128, description="External payment reference")
    participant: str = Field(..., min_length=1, max_length=64)
    amount_cents: int = Field(..., gt=0, description="Amount to deposit in cents")
    reference: str | None = Field(None, max_length=255)


class FundsRequest(BaseModel):
    participant: str = Field(..., min_length=1, max_length=64)
    amount_cents: int = Field(..., gt=0, description="Amount to block or unblock in cents")
    reference: str | None = Field(None, max_length=255)


class SettleRequest(BaseModel):
    buyer: str = Field(..., min_length=1, max_length=64)
    seller: str = Field(..., min_length=1, max_length=64)
    amount_cents: int = Field(..., gt=0, description="Trade value in cents")
    reference: str = Field(..., min_length=1, max_length=255, description="Trade id")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    participant: str
    available_cents: int
    available_display: str
    blocked_cents: int
    blocked_display: str
    total_cents: int
    total_display: str
    last_movement_key: str | None = None

    @classmethod
    def from_account(cls, account: ParticipantAccount) -> "AccountResponse":
        return cls(
            participant=account.participant,
            available_cents=account.available,
            available_display=cents_to_display(account.available),
            blocked_cents=account.blocked,
            blocked_display=cents_to_display(account.blocked),
            total_cents=account.total,
            total_display=cents_to_display(account.total),
            last_movement_key=account.last_movement_key,
        )


class MovementResponse(BaseModel):
    key: str
    participant: str
    movement_type: str
    available_delta_cents: int
    blocked_delta_cents: int
    reference: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_movement(cls, movement: AccountMovement) -> "MovementResponse":
        return cls(
            key=movement.key or "",
            participant=movement.participant,
            movement_type=str(getattr(movement.movement_type, "value", movement.movement_type)),
            available_delta_cents=movement.available_delta,
            blocked_delta_cents=movement.blocked_delta,
            reference=movement.reference,
            created_at=movement.created_at,
        )


class DepositResponse(BaseModel):
    uid: str
    participant: str
    deposited_cents: int
    deposited_display: str
    movement_key: str | None = None
    account: AccountResponse

    @classmethod
    def from_result(cls, deposit: Deposit, account: ParticipantAccount) -> "DepositResponse":
        return cls(
            uid=deposit.uid,
            participant=deposit.participant,
            deposited_cents=deposit.amount,
            deposited_display=cents_to_display(deposit.amount),
            movement_key=deposit.movement_key,
            account=AccountResponse.from_account(account),
        )


class SettleResponse(BaseModel):
    reference: str
    buyer: AccountResponse
    seller: AccountResponse
