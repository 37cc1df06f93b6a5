"""Core types for the escrow program specs.

The host ledger is modeled only as far as the escrow program needs it:
accounts with lamports/owner/data, instructions with ordered account metas,
and the clock and rent sysvars.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, List, Union

from .config import (
    ACCOUNT_STORAGE_OVERHEAD,
    DEFAULT_EXEMPTION_THRESHOLD_YEARS,
    DEFAULT_LAMPORTS_PER_BYTE_YEAR,
    SYSTEM_PROGRAM_ID,
)

Pubkey = bytes
UnixTimestamp = int


# --- Instructions ---


class EscrowInstructionTag(IntEnum):
    INIT_ESCROW = 0
    EXCHANGE = 1
    CANCEL = 2
    RESET_TIME_LOCK = 3


@dataclass(frozen=True)
class InitEscrow:
    """Open a swap.

    `amount` is the quantity of the counter-asset the initializer expects to
    receive; the window bounds are absolute unix timestamps.
    """

    amount: int
    unlock_time: UnixTimestamp
    timeout: UnixTimestamp
    tag: ClassVar[EscrowInstructionTag] = EscrowInstructionTag.INIT_ESCROW


@dataclass(frozen=True)
class Exchange:
    """Take a swap; `amount` is what the taker expects to pay."""

    amount: int
    tag: ClassVar[EscrowInstructionTag] = EscrowInstructionTag.EXCHANGE


@dataclass(frozen=True)
class Cancel:
    tag: ClassVar[EscrowInstructionTag] = EscrowInstructionTag.CANCEL


@dataclass(frozen=True)
class ResetTimeLock:
    tag: ClassVar[EscrowInstructionTag] = EscrowInstructionTag.RESET_TIME_LOCK


EscrowInstruction = Union[InitEscrow, Exchange, Cancel, ResetTimeLock]


@dataclass
class AccountMeta:
    pubkey: Pubkey
    is_signer: bool = False
    is_writable: bool = False


@dataclass
class Instruction:
    program_id: Pubkey
    accounts: List[AccountMeta]
    data: bytes


# --- Escrow state ---


@dataclass
class EscrowRecord:
    is_initialized: bool
    initializer: Pubkey
    temp_token_account: Pubkey
    initializer_receiving_account: Pubkey
    expected_amount: int
    unlock_time: UnixTimestamp
    timeout: UnixTimestamp


# --- Token accounts ---


class TokenAccountState(IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    FROZEN = 2


@dataclass
class TokenAccount:
    mint: Pubkey
    owner: Pubkey
    amount: int = 0
    state: TokenAccountState = TokenAccountState.INITIALIZED


# --- Ledger ---


@dataclass
class Account:
    address: Pubkey
    lamports: int = 0
    owner: Pubkey = SYSTEM_PROGRAM_ID
    data: bytes = b""
    executable: bool = False


@dataclass
class Clock:
    slot: int = 0
    unix_timestamp: UnixTimestamp = 0


@dataclass
class Rent:
    lamports_per_byte_year: int = DEFAULT_LAMPORTS_PER_BYTE_YEAR
    exemption_threshold_years: int = DEFAULT_EXEMPTION_THRESHOLD_YEARS

    def minimum_balance(self, data_len: int) -> int:
        return (
            (ACCOUNT_STORAGE_OVERHEAD + data_len)
            * self.lamports_per_byte_year
            * self.exemption_threshold_years
        )

    def is_exempt(self, lamports: int, data_len: int) -> bool:
        return lamports >= self.minimum_balance(data_len)


@dataclass
class LedgerState:
    accounts: dict[Pubkey, Account] = field(default_factory=dict)
    clock: Clock = field(default_factory=Clock)
    rent: Rent = field(default_factory=Rent)
