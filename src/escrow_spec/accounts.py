"""Account views and the positional role validator.

Every operation expects its accounts in a fixed order. The role tables below
are the single place those positions are written down; handlers only ever see
the named bindings produced from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .config import SYSTEM_PROGRAM_ID
from .errors import ErrorCode, ProgramError


@dataclass(eq=False)
class AccountInfo:
    """Mutable view of a ledger account for the duration of one instruction."""

    key: bytes
    is_signer: bool = False
    is_writable: bool = False
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: bytes = SYSTEM_PROGRAM_ID
    executable: bool = False


@dataclass(frozen=True)
class AccountRole:
    name: str
    signer: bool = False
    writable: bool = False


INIT_ESCROW_ROLES: tuple[AccountRole, ...] = (
    AccountRole("initializer", signer=True),
    AccountRole("temp_token_account", writable=True),
    AccountRole("initializer_receiving_account"),
    AccountRole("escrow_account", writable=True),
    AccountRole("rent_sysvar"),
    AccountRole("token_program"),
)

EXCHANGE_ROLES: tuple[AccountRole, ...] = (
    AccountRole("taker", signer=True),
    AccountRole("taker_source_account", writable=True),
    AccountRole("taker_destination_account", writable=True),
    AccountRole("temp_token_account", writable=True),
    AccountRole("initializer_main_account", writable=True),
    AccountRole("initializer_receiving_account", writable=True),
    AccountRole("escrow_account", writable=True),
    AccountRole("token_program"),
)

# The account at position 2 receives the refunded balance of the offered asset.
CANCEL_ROLES: tuple[AccountRole, ...] = (
    AccountRole("initializer", signer=True),
    AccountRole("temp_token_account", writable=True),
    AccountRole("initializer_receiving_account"),
    AccountRole("escrow_account", writable=True),
    AccountRole("token_program"),
)

RESET_TIME_LOCK_ROLES: tuple[AccountRole, ...] = (
    AccountRole("initializer", signer=True),
    AccountRole("escrow_account", writable=True),
)


def bind_accounts(
    roles: Sequence[AccountRole], accounts: Sequence[AccountInfo]
) -> dict[str, AccountInfo]:
    """Bind accounts to roles by position, checking signer and writable flags.

    Extra trailing accounts are ignored.
    """
    if len(accounts) < len(roles):
        raise ProgramError(
            ErrorCode.NOT_ENOUGH_ACCOUNT_KEYS,
            f"expected {len(roles)} accounts, got {len(accounts)}",
        )
    bound: dict[str, AccountInfo] = {}
    for role, info in zip(roles, accounts):
        if role.signer and not info.is_signer:
            raise ProgramError(ErrorCode.MISSING_REQUIRED_SIGNATURE, f"{role.name} must sign")
        if role.writable and not info.is_writable:
            raise ProgramError(ErrorCode.ACCOUNT_NOT_WRITABLE, f"{role.name} must be writable")
        bound[role.name] = info
    return bound


@dataclass
class InitEscrowAccounts:
    initializer: AccountInfo
    temp_token_account: AccountInfo
    initializer_receiving_account: AccountInfo
    escrow_account: AccountInfo
    rent_sysvar: AccountInfo
    token_program: AccountInfo


@dataclass
class ExchangeAccounts:
    taker: AccountInfo
    taker_source_account: AccountInfo
    taker_destination_account: AccountInfo
    temp_token_account: AccountInfo
    initializer_main_account: AccountInfo
    initializer_receiving_account: AccountInfo
    escrow_account: AccountInfo
    token_program: AccountInfo


@dataclass
class CancelAccounts:
    initializer: AccountInfo
    temp_token_account: AccountInfo
    initializer_receiving_account: AccountInfo
    escrow_account: AccountInfo
    token_program: AccountInfo


@dataclass
class ResetTimeLockAccounts:
    initializer: AccountInfo
    escrow_account: AccountInfo


def bind_init_escrow(accounts: Sequence[AccountInfo]) -> InitEscrowAccounts:
    return InitEscrowAccounts(**bind_accounts(INIT_ESCROW_ROLES, accounts))


def bind_exchange(accounts: Sequence[AccountInfo]) -> ExchangeAccounts:
    return ExchangeAccounts(**bind_accounts(EXCHANGE_ROLES, accounts))


def bind_cancel(accounts: Sequence[AccountInfo]) -> CancelAccounts:
    return CancelAccounts(**bind_accounts(CANCEL_ROLES, accounts))


def bind_reset_time_lock(accounts: Sequence[AccountInfo]) -> ResetTimeLockAccounts:
    return ResetTimeLockAccounts(**bind_accounts(RESET_TIME_LOCK_ROLES, accounts))


def require_owner(info: AccountInfo, owner: bytes, what: str) -> None:
    if info.owner != owner:
        raise ProgramError(ErrorCode.INCORRECT_PROGRAM_ID, f"{what} has the wrong owner program")


def require_key(info: AccountInfo, key: bytes, code: ErrorCode, what: str) -> None:
    if info.key != key:
        raise ProgramError(code, f"{what} does not match")
