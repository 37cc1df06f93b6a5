"""Escrow program error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    PROGRAM = 0x00
    ACCOUNT = 0x01
    AUTHORIZATION = 0x02
    STATE = 0x03
    TOKEN = 0x04
    RUNTIME = 0x05
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Program (custom error codes returned by the escrow program)
    INVALID_INSTRUCTION = 0x0000
    NOT_RENT_EXEMPT = 0x0001
    EXPECTED_AMOUNT_MISMATCH = 0x0002
    AMOUNT_OVERFLOW = 0x0003
    INVALID_UNLOCK_TIME = 0x0004
    INVALID_TIME_OUT = 0x0005

    # Account structure
    NOT_ENOUGH_ACCOUNT_KEYS = 0x0100
    MISSING_REQUIRED_SIGNATURE = 0x0101
    ACCOUNT_NOT_WRITABLE = 0x0102
    INCORRECT_PROGRAM_ID = 0x0103
    INVALID_ACCOUNT_DATA = 0x0104
    INVALID_ARGUMENT = 0x0105
    INVALID_SEEDS = 0x0106

    # Authorization
    ILLEGAL_OWNER = 0x0200

    # State
    ACCOUNT_ALREADY_INITIALIZED = 0x0300
    UNINITIALIZED_ACCOUNT = 0x0301

    # Token custody primitive
    TOKEN_INSUFFICIENT_FUNDS = 0x0400
    TOKEN_MINT_MISMATCH = 0x0401
    TOKEN_OWNER_MISMATCH = 0x0402
    TOKEN_OVERFLOW = 0x0403
    TOKEN_NON_NATIVE_HAS_BALANCE = 0x0404
    TOKEN_UNINITIALIZED_STATE = 0x0405
    TOKEN_ACCOUNT_FROZEN = 0x0406

    # Host runtime
    READONLY_ACCOUNT_MODIFIED = 0x0500
    UNBALANCED_INSTRUCTION = 0x0501
    EXTERNAL_ACCOUNT_DATA_MODIFIED = 0x0502
    UNSUPPORTED_PROGRAM_ID = 0x0503
    EXTERNAL_ACCOUNT_LAMPORT_SPEND = 0x0504

    # Internal
    UNKNOWN = 0xFFFF

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class ProgramError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__"))
_frozen_setattr = ProgramError.__setattr__


def _program_error_setattr(self: ProgramError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


ProgramError.__setattr__ = _program_error_setattr  # type: ignore[method-assign]
