"""Write-back accounting cache for stores that don't read their own writes.

One CachedAccountingDao wraps a delegate AccountingDao for the length of a
single unit of work:

  - Reads are served from the session cache once a key has been read or
    saved; only a cache miss reaches the delegate.
  - Saves only touch the cache and mark the key dirty.
  - flush() writes dirty entries back in the fixed order accounts, deposits,
    movements, one delegate save per entry. Each key is marked clean right
    after its own save succeeds, so a failed flush keeps earlier progress and
    a retry picks up where the last attempt stopped.

Delegate errors are never cached and never rewritten. The session is not
safe for concurrent tasks; create one per unit of work and drop it after
flush().
"""

import copy
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Generic, TypeVar

from src.acc_common.errors import InvalidAccountError, KeyNotSetError
from src.acc_ledger.domain.models import AccountMovement, Deposit, ParticipantAccount
from src.acc_ledger.domain.repository import AccountingDaoProtocol

logger = logging.getLogger(__name__)

E = TypeVar("E")


class EntityCache(Generic[E]):
    """Cached values plus dirty markers for one entity kind.

    Values are copied on the way in and on the way out, so callers can't
    change the cached state without going through put().

    Invariant: every dirty key has a cached value.
    """

    def __init__(self, kind: str, loader: Callable[[str], Awaitable[E]]) -> None:
        self.kind = kind
        self._loader = loader
        self._values: dict[str, E] = {}
        # dict as an insertion-ordered set
        self._dirty: dict[str, None] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    @property
    def dirty_count(self) -> int:
        return len(self._dirty)

    def is_dirty(self, key: str) -> bool:
        return key in self._dirty

    async def get(self, key: str) -> E:
        if key in self._values:
            return copy.copy(self._values[key])

        logger.debug("Cache miss: %s %s", self.kind, key)
        value = await self._loader(key)
        self._values[key] = copy.copy(value)
        return value

    def put(self, key: str, value: E) -> None:
        self._values[key] = copy.copy(value)
        self._dirty[key] = None

    def drain_dirty(self) -> Iterator[tuple[str, E]]:
        """Iterate the keys dirty at call time, with a copy of each value."""
        keys = list(self._dirty)
        return ((key, copy.copy(self._values[key])) for key in keys)

    def mark_clean(self, key: str) -> None:
        self._dirty.pop(key, None)


class CachedAccountingDao:
    """AccountingDao that reads its own writes and defers them until flush()."""

    def __init__(self, delegate: AccountingDaoProtocol) -> None:
        self._delegate = delegate
        self._accounts: EntityCache[ParticipantAccount] = EntityCache(
            "account", delegate.get_account
        )
        self._deposits: EntityCache[Deposit] = EntityCache("deposit", delegate.get_deposit)
        self._movements: EntityCache[AccountMovement] = EntityCache(
            "movement", self._load_movement
        )

    @property
    def dirty_count(self) -> int:
        return (
            self._accounts.dirty_count
            + self._deposits.dirty_count
            + self._movements.dirty_count
        )

    # --- accounts ---

    async def get_account(self, participant: str) -> ParticipantAccount:
        return await self._accounts.get(participant)

    async def save_account(self, account: ParticipantAccount | None) -> None:
        if account is None or not account.participant:
            raise InvalidAccountError(account)
        self._accounts.put(account.participant, account)
        logger.debug("Account saved to cache: %s", account.participant)

    # --- movements ---

    async def _load_movement(self, key: str) -> AccountMovement:
        movement = await self._delegate.get_movement(key)
        # The stored record may omit its own key; the cache key is authoritative
        return dataclasses.replace(movement, key=key)

    async def get_movement(self, key: str) -> AccountMovement:
        return await self._movements.get(key)

    async def save_movement(self, movement: AccountMovement) -> None:
        if not movement.key:
            raise KeyNotSetError()
        self._movements.put(movement.key, movement)
        logger.debug("Movement saved to cache: %s", movement.key)

    async def new_account_movement_key(self, participant: str) -> str:
        # Allocation has side effects on the store; never cached
        return await self._delegate.new_account_movement_key(participant)

    # --- deposits ---

    async def get_deposit(self, uid: str) -> Deposit:
        return await self._deposits.get(uid)

    async def save_deposit(self, uid: str, deposit: Deposit) -> None:
        self._deposits.put(uid, deposit)
        logger.debug("Deposit saved to cache: %s", uid)

    # --- write-back ---

    async def flush(self) -> None:
        await self._write_back(
            self._accounts, lambda _key, account: self._delegate.save_account(account)
        )
        await self._write_back(self._deposits, self._delegate.save_deposit)
        await self._write_back(
            self._movements, lambda _key, movement: self._delegate.save_movement(movement)
        )

    async def _write_back(
        self,
        cache: EntityCache[E],
        save: Callable[[str, E], Awaitable[None]],
    ) -> None:
        for key, value in cache.drain_dirty():
            try:
                await save(key, value)
            except Exception:
                logger.warning(
                    "Flush aborted at %s %s; %d entries still dirty",
                    cache.kind,
                    key,
                    self.dirty_count,
                )
                raise
            cache.mark_clean(key)
            logger.debug("Flushed %s %s", cache.kind, key)
