"""Time-lock policy for escrow exchanges.

Pure functions over an escrow record and the ledger clock. The window is
inclusive on both ends: an exchange is legal for
`unlock_time <= now <= timeout`.
"""

from __future__ import annotations

from .config import I64_MAX, I64_MIN
from .errors import ErrorCode, ProgramError
from .types import EscrowRecord, UnixTimestamp


def validate_window(unlock_time: UnixTimestamp, timeout: UnixTimestamp) -> None:
    for name, value in (("unlock_time", unlock_time), ("timeout", timeout)):
        if not (I64_MIN <= value <= I64_MAX):
            raise ProgramError(ErrorCode.INVALID_INSTRUCTION, f"{name} must fit i64")
    if unlock_time >= timeout:
        raise ProgramError(ErrorCode.INVALID_TIME_OUT, "timeout must be after unlock_time")


def check_exchange_window(record: EscrowRecord, now: UnixTimestamp) -> None:
    if now < record.unlock_time:
        raise ProgramError(ErrorCode.INVALID_UNLOCK_TIME, "cannot exchange before unlock time")
    if now > record.timeout:
        raise ProgramError(ErrorCode.INVALID_TIME_OUT, "cannot exchange after time out")


def is_exchangeable(record: EscrowRecord, now: UnixTimestamp) -> bool:
    return record.is_initialized and record.unlock_time <= now <= record.timeout


def restart_window(record: EscrowRecord, now: UnixTimestamp) -> tuple[UnixTimestamp, UnixTimestamp]:
    """New (unlock_time, timeout) starting at `now` with the record's original duration."""
    duration = record.timeout - record.unlock_time
    timeout = now + duration
    if timeout > I64_MAX:
        raise ProgramError(ErrorCode.AMOUNT_OVERFLOW, "restarted timeout overflows i64")
    return now, timeout
