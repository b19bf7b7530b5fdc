"""Unified error codes and custom exceptions.

Error code ranges:
  2xxx: Accounting (accounts, movements, deposits)
  9xxx: System (store, resources, contract violations)
"""


class AppError(Exception):
    """Base application error."""

    recoverable: bool = True

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 2xxx: Accounting ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class NoSuchObjectError(AppError):
    """The store holds no entity of ``kind`` under ``key``. Never cached."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(2002, f"No such object: {kind} {key!r}", 404)


class KeyNotSetError(AppError):
    """A movement was saved before a key was allocated for it."""

    def __init__(self) -> None:
        super().__init__(2003, "Key not set", 422)


# --- 9xxx: System ---

class ContractViolationError(AppError):
    """A caller broke a precondition. The current operation must not continue."""

    recoverable = False

    def __init__(self, detail: str) -> None:
        super().__init__(9003, detail, 500)


class InvalidAccountError(ContractViolationError):
    def __init__(self, account: object) -> None:
        super().__init__(f"Can't save account: {account!r}")


class StoreError(AppError):
    """Transport or backend failure in the persistent store. Safe to retry."""

    def __init__(self, detail: str) -> None:
        super().__init__(9004, f"Store error: {detail}", 503)


class ResourceDirNotFoundError(AppError):
    def __init__(self, name: str, version: str) -> None:
        super().__init__(
            9005, f"Resource directory not found: {name} (version {version})", 500
        )


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
