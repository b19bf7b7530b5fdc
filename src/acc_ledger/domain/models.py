"""Domain models for acc_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MovementType(str, Enum):
    DEPOSIT = "DEPOSIT"
    BLOCK = "BLOCK"
    UNBLOCK = "UNBLOCK"
    SETTLE_DEBIT = "SETTLE_DEBIT"
    SETTLE_CREDIT = "SETTLE_CREDIT"


@dataclass
class ParticipantAccount:
    participant: str
    available: int = 0                   # cents
    blocked: int = 0                     # cents, reserved for pending trades
    last_movement_key: str | None = None
    updated_at: datetime | None = None

    @property
    def total(self) -> int:
        return self.available + self.blocked


@dataclass
class AccountMovement:
    key: str | None                      # None until allocated or read back
    participant: str
    movement_type: str                   # MovementType value
    available_delta: int                 # cents, positive=credit negative=debit
    blocked_delta: int = 0               # cents
    reference: str | None = None         # trade id, deposit uid, ...
    created_at: datetime | None = None


@dataclass
class Deposit:
    uid: str                             # external payment reference, unique
    participant: str
    amount: int                          # cents
    reference: str | None = None
    movement_key: str | None = None
    created_at: datetime | None = None
