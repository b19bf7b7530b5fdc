"""AccountingService — units of work over a CachedAccountingDao.

Each public operation opens a fresh cached session over a delegate from
``dao_factory``. It reads and mutates balances against that session (seeing
its own writes), then commits it. Commit retries flush() on the same session up
to ``flush_attempts`` times on StoreError; each retry resumes where the last
attempt stopped, so entities already written are not written again. A fresh
unit of work after a failed commit does not resume anything: it starts over
from what the store holds.
"""

import logging
from collections.abc import Callable

from config.settings import settings
from src.acc_common.cents import validate_amount
from src.acc_common.errors import InsufficientBalanceError, NoSuchObjectError, StoreError
from src.acc_ledger.domain.cache import CachedAccountingDao
from src.acc_ledger.domain.models import (
    AccountMovement,
    Deposit,
    MovementType,
    ParticipantAccount,
)
from src.acc_ledger.domain.repository import AccountingDaoProtocol

logger = logging.getLogger(__name__)


class AccountingService:
    def __init__(
        self,
        dao_factory: Callable[[], AccountingDaoProtocol],
        flush_attempts: int | None = None,
    ) -> None:
        self._dao_factory = dao_factory
        self._flush_attempts = max(1, flush_attempts or settings.FLUSH_ATTEMPTS)

    def _session(self) -> CachedAccountingDao:
        return CachedAccountingDao(self._dao_factory())

    async def _commit(self, dao: CachedAccountingDao) -> None:
        """Flush ``dao``, retrying on the same session while the store fails."""
        for attempt in range(1, self._flush_attempts + 1):
            try:
                await dao.flush()
                return
            except StoreError as exc:
                if attempt == self._flush_attempts:
                    logger.error(
                        "Flush failed after %d attempts; %d entries unwritten",
                        attempt,
                        dao.dirty_count,
                    )
                    raise
                logger.warning("Flush attempt %d failed, retrying: %s", attempt, exc.message)

    @staticmethod
    async def _load_account(dao: CachedAccountingDao, participant: str) -> ParticipantAccount:
        """Unknown participants start from a zero balance."""
        try:
            return await dao.get_account(participant)
        except NoSuchObjectError:
            return ParticipantAccount(participant=participant)

    @staticmethod
    async def _book(
        dao: CachedAccountingDao,
        account: ParticipantAccount,
        movement_type: MovementType,
        available_delta: int,
        blocked_delta: int,
        reference: str | None,
    ) -> AccountMovement:
        """Apply one movement to ``account`` and save both to the session."""
        key = await dao.new_account_movement_key(account.participant)
        movement = AccountMovement(
            key=key,
            participant=account.participant,
            movement_type=movement_type,
            available_delta=available_delta,
            blocked_delta=blocked_delta,
            reference=reference,
        )
        account.available += available_delta
        account.blocked += blocked_delta
        account.last_movement_key = key
        await dao.save_movement(movement)
        await dao.save_account(account)
        return movement

    async def get_account(self, participant: str) -> ParticipantAccount:
        return await self._load_account(self._session(), participant)

    async def get_movement(self, key: str) -> AccountMovement:
        return await self._session().get_movement(key)

    async def apply_deposit(
        self,
        uid: str,
        participant: str,
        amount: int,
        reference: str | None = None,
    ) -> tuple[Deposit, ParticipantAccount]:
        """Credit ``amount`` to ``participant`` exactly once per deposit ``uid``."""
        validate_amount(amount)
        dao = self._session()

        try:
            existing = await dao.get_deposit(uid)
        except NoSuchObjectError:
            pass
        else:
            logger.info("Deposit idempotency hit: uid=%s", uid)
            return existing, await self._load_account(dao, existing.participant)

        account = await self._load_account(dao, participant)
        movement = await self._book(dao, account, MovementType.DEPOSIT, amount, 0, uid)
        deposit = Deposit(
            uid=uid,
            participant=participant,
            amount=amount,
            reference=reference,
            movement_key=movement.key,
        )
        await dao.save_deposit(uid, deposit)
        await self._commit(dao)

        logger.info("Deposit applied: uid=%s participant=%s amount=%d", uid, participant, amount)
        return deposit, await dao.get_account(participant)

    async def block_funds(
        self, participant: str, amount: int, reference: str | None = None
    ) -> ParticipantAccount:
        validate_amount(amount)
        dao = self._session()

        account = await self._load_account(dao, participant)
        if account.available < amount:
            raise InsufficientBalanceError(amount, account.available)
        await self._book(dao, account, MovementType.BLOCK, -amount, amount, reference)
        await self._commit(dao)
        return await dao.get_account(participant)

    async def unblock_funds(
        self, participant: str, amount: int, reference: str | None = None
    ) -> ParticipantAccount:
        validate_amount(amount)
        dao = self._session()

        account = await self._load_account(dao, participant)
        if account.blocked < amount:
            raise InsufficientBalanceError(amount, account.blocked)
        await self._book(dao, account, MovementType.UNBLOCK, amount, -amount, reference)
        await self._commit(dao)
        return await dao.get_account(participant)

    async def settle_trade(
        self, buyer: str, seller: str, amount: int, reference: str
    ) -> tuple[ParticipantAccount, ParticipantAccount]:
        """Move ``amount`` from the buyer's blocked funds to the seller's available funds."""
        validate_amount(amount)
        dao = self._session()

        buyer_account = await self._load_account(dao, buyer)
        if buyer_account.blocked < amount:
            raise InsufficientBalanceError(amount, buyer_account.blocked)
        await self._book(dao, buyer_account, MovementType.SETTLE_DEBIT, 0, -amount, reference)

        # Loaded after the debit was saved: buyer == seller sees the debited state
        seller_account = await self._load_account(dao, seller)
        await self._book(dao, seller_account, MovementType.SETTLE_CREDIT, amount, 0, reference)
        await self._commit(dao)

        logger.info(
            "Trade settled: ref=%s buyer=%s seller=%s amount=%d", reference, buyer, seller, amount
        )
        return await dao.get_account(buyer), await dao.get_account(seller)
