"""SqlAccountingDao — PostgreSQL implementation of AccountingDaoProtocol.

Every save is an upsert (INSERT ... ON CONFLICT DO UPDATE) followed by its own
commit. One saved entity is one durable write-back unit. This is what lets
CachedAccountingDao.flush() mark keys clean one by one.

Movement keys come from the account_movement_key_seq sequence, so they are
issued by the server and unique across processes.

Any SQLAlchemyError rolls the session back and surfaces as StoreError, so a
failed read leaves the session usable for the next attempt.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.acc_common.errors import NoSuchObjectError, StoreError
from src.acc_ledger.domain.models import AccountMovement, Deposit, ParticipantAccount

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL: participant accounts
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text("""
    SELECT participant, available, blocked, last_movement_key, updated_at
    FROM participant_accounts
    WHERE participant = :participant
""")

_UPSERT_ACCOUNT_SQL = text("""
    INSERT INTO participant_accounts
        (participant, available, blocked, last_movement_key)
    VALUES
        (:participant, :available, :blocked, :last_movement_key)
    ON CONFLICT (participant) DO UPDATE
        SET available         = EXCLUDED.available,
            blocked           = EXCLUDED.blocked,
            last_movement_key = EXCLUDED.last_movement_key,
            updated_at        = NOW()
""")

# ---------------------------------------------------------------------------
# SQL: account movements
# ---------------------------------------------------------------------------

_GET_MOVEMENT_SQL = text("""
    SELECT key, participant, movement_type, available_delta, blocked_delta,
           reference, created_at
    FROM account_movements
    WHERE key = :key
""")

_UPSERT_MOVEMENT_SQL = text("""
    INSERT INTO account_movements
        (key, participant, movement_type, available_delta, blocked_delta, reference)
    VALUES
        (:key, :participant, :movement_type, :available_delta, :blocked_delta, :reference)
    ON CONFLICT (key) DO UPDATE
        SET participant     = EXCLUDED.participant,
            movement_type   = EXCLUDED.movement_type,
            available_delta = EXCLUDED.available_delta,
            blocked_delta   = EXCLUDED.blocked_delta,
            reference       = EXCLUDED.reference
""")

_NEXT_MOVEMENT_SEQ_SQL = text("SELECT nextval('account_movement_key_seq')")

# ---------------------------------------------------------------------------
# SQL: deposits
# ---------------------------------------------------------------------------

_GET_DEPOSIT_SQL = text("""
    SELECT uid, participant, amount, reference, movement_key, created_at
    FROM deposits
    WHERE uid = :uid
""")

_UPSERT_DEPOSIT_SQL = text("""
    INSERT INTO deposits
        (uid, participant, amount, reference, movement_key)
    VALUES
        (:uid, :participant, :amount, :reference, :movement_key)
    ON CONFLICT (uid) DO UPDATE
        SET participant  = EXCLUDED.participant,
            amount       = EXCLUDED.amount,
            reference    = EXCLUDED.reference,
            movement_key = EXCLUDED.movement_key
""")


def _row_to_account(row: object) -> ParticipantAccount:
    return ParticipantAccount(
        participant=row.participant,  # type: ignore[attr-defined]
        available=row.available,  # type: ignore[attr-defined]
        blocked=row.blocked,  # type: ignore[attr-defined]
        last_movement_key=row.last_movement_key,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_movement(row: object) -> AccountMovement:
    return AccountMovement(
        key=row.key,  # type: ignore[attr-defined]
        participant=row.participant,  # type: ignore[attr-defined]
        movement_type=row.movement_type,  # type: ignore[attr-defined]
        available_delta=row.available_delta,  # type: ignore[attr-defined]
        blocked_delta=row.blocked_delta,  # type: ignore[attr-defined]
        reference=row.reference,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_deposit(row: object) -> Deposit:
    return Deposit(
        uid=row.uid,  # type: ignore[attr-defined]
        participant=row.participant,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        reference=row.reference,  # type: ignore[attr-defined]
        movement_key=row.movement_key,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class SqlAccountingDao:
    """Uncached store bound to one AsyncSession. Owns no transaction beyond a single save."""

    def __init__(self, db: AsyncSession, key_prefix: str | None = None) -> None:
        self._db = db
        self._key_prefix = key_prefix or settings.MOVEMENT_KEY_PREFIX

    async def _fetch_one(self, sql: Any, params: Mapping[str, Any]) -> object | None:
        try:
            result = await self._db.execute(sql, params)
            return result.fetchone()
        except SQLAlchemyError as exc:
            logger.error("Store read failed: %s", exc)
            await self._db.rollback()
            raise StoreError(str(exc)) from exc

    async def _write(self, sql: Any, params: Mapping[str, Any]) -> None:
        try:
            await self._db.execute(sql, params)
            await self._db.commit()
        except SQLAlchemyError as exc:
            logger.error("Store write failed: %s", exc)
            await self._db.rollback()
            raise StoreError(str(exc)) from exc

    async def get_account(self, participant: str) -> ParticipantAccount:
        row = await self._fetch_one(_GET_ACCOUNT_SQL, {"participant": participant})
        if row is None:
            raise NoSuchObjectError("account", participant)
        return _row_to_account(row)

    async def save_account(self, account: ParticipantAccount) -> None:
        await self._write(
            _UPSERT_ACCOUNT_SQL,
            {
                "participant": account.participant,
                "available": account.available,
                "blocked": account.blocked,
                "last_movement_key": account.last_movement_key,
            },
        )

    async def get_movement(self, key: str) -> AccountMovement:
        row = await self._fetch_one(_GET_MOVEMENT_SQL, {"key": key})
        if row is None:
            raise NoSuchObjectError("movement", key)
        return _row_to_movement(row)

    async def save_movement(self, movement: AccountMovement) -> None:
        await self._write(
            _UPSERT_MOVEMENT_SQL,
            {
                "key": movement.key,
                "participant": movement.participant,
                "movement_type": movement.movement_type,
                "available_delta": movement.available_delta,
                "blocked_delta": movement.blocked_delta,
                "reference": movement.reference,
            },
        )

    async def new_account_movement_key(self, participant: str) -> str:
        try:
            result = await self._db.execute(_NEXT_MOVEMENT_SEQ_SQL)
            seq = result.scalar_one()
        except SQLAlchemyError as exc:
            logger.error("Movement key allocation failed: %s", exc)
            await self._db.rollback()
            raise StoreError(str(exc)) from exc
        return f"{self._key_prefix}-{participant}-{seq}"

    async def get_deposit(self, uid: str) -> Deposit:
        row = await self._fetch_one(_GET_DEPOSIT_SQL, {"uid": uid})
        if row is None:
            raise NoSuchObjectError("deposit", uid)
        return _row_to_deposit(row)

    async def save_deposit(self, uid: str, deposit: Deposit) -> None:
        await self._write(
            _UPSERT_DEPOSIT_SQL,
            {
                "uid": uid,
                "participant": deposit.participant,
                "amount": deposit.amount,
                "reference": deposit.reference,
                "movement_key": deposit.movement_key,
            },
        )
