"""Repository Protocols — the accounting store contract.

AccountingDaoProtocol is what a persistent store offers. The store may be
eventually consistent: a write is not guaranteed to be visible to a read in
the same transaction. CachedAccountingDaoProtocol adds flush() on top and is
what units of work talk to.

Errors:
  get_*   -> NoSuchObjectError when nothing is stored under the key,
             StoreError on transport/backend failure
  save_*  -> StoreError on transport/backend failure
"""

from typing import Protocol

from src.acc_ledger.domain.models import AccountMovement, Deposit, ParticipantAccount


class AccountingDaoProtocol(Protocol):
    async def get_account(self, participant: str) -> ParticipantAccount: ...

    async def save_account(self, account: ParticipantAccount) -> None: ...

    async def get_movement(self, key: str) -> AccountMovement: ...

    async def save_movement(self, movement: AccountMovement) -> None: ...

    async def new_account_movement_key(self, participant: str) -> str: ...

    async def get_deposit(self, uid: str) -> Deposit: ...

    async def save_deposit(self, uid: str, deposit: Deposit) -> None: ...


class CachedAccountingDaoProtocol(AccountingDaoProtocol, Protocol):
    async def flush(self) -> None:
        """Write every saved entity back to the delegate.

        Aborts on the first error; already written entities stay written and
        a later call resumes with the rest.
        """
        ...
