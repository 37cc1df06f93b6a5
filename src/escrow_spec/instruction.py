"""Instruction builders for escrow clients.

Each builder returns a ready-to-submit instruction with its accounts in the
order the processor binds them.
"""

from __future__ import annotations

from .config import RENT_SYSVAR_ID, TOKEN_PROGRAM_ID
from .encoding import encode_instruction
from .types import (
    AccountMeta,
    Cancel,
    Exchange,
    InitEscrow,
    Instruction,
    ResetTimeLock,
    UnixTimestamp,
)


def init_escrow(
    program_id: bytes,
    initializer: bytes,
    temp_token_account: bytes,
    initializer_receiving_account: bytes,
    escrow_account: bytes,
    amount: int,
    unlock_time: UnixTimestamp,
    timeout: UnixTimestamp,
    token_program_id: bytes = TOKEN_PROGRAM_ID,
) -> Instruction:
    data = encode_instruction(InitEscrow(amount=amount, unlock_time=unlock_time, timeout=timeout))
    accounts = [
        AccountMeta(initializer, is_signer=True, is_writable=True),
        AccountMeta(temp_token_account, is_writable=True),
        AccountMeta(initializer_receiving_account),
        AccountMeta(escrow_account, is_writable=True),
        AccountMeta(RENT_SYSVAR_ID),
        AccountMeta(token_program_id),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=data)


def exchange(
    program_id: bytes,
    taker: bytes,
    taker_source_account: bytes,
    taker_destination_account: bytes,
    temp_token_account: bytes,
    initializer: bytes,
    initializer_receiving_account: bytes,
    escrow_account: bytes,
    amount: int,
    token_program_id: bytes = TOKEN_PROGRAM_ID,
) -> Instruction:
    data = encode_instruction(Exchange(amount=amount))
    accounts = [
        AccountMeta(taker, is_signer=True, is_writable=True),
        AccountMeta(taker_source_account, is_writable=True),
        AccountMeta(taker_destination_account, is_writable=True),
        AccountMeta(temp_token_account, is_writable=True),
        AccountMeta(initializer, is_writable=True),
        AccountMeta(initializer_receiving_account, is_writable=True),
        AccountMeta(escrow_account, is_writable=True),
        AccountMeta(token_program_id),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=data)


def cancel(
    program_id: bytes,
    initializer: bytes,
    temp_token_account: bytes,
    refund_account: bytes,
    escrow_account: bytes,
    token_program_id: bytes = TOKEN_PROGRAM_ID,
) -> Instruction:
    """Cancel an open escrow.

    `refund_account` is the initializer's token account for the offered asset;
    it is credited, so it goes out writable.
    """
    data = encode_instruction(Cancel())
    accounts = [
        AccountMeta(initializer, is_signer=True, is_writable=True),
        AccountMeta(temp_token_account, is_writable=True),
        AccountMeta(refund_account, is_writable=True),
        AccountMeta(escrow_account, is_writable=True),
        AccountMeta(token_program_id),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=data)


def reset_time_lock(program_id: bytes, initializer: bytes, escrow_account: bytes) -> Instruction:
    data = encode_instruction(ResetTimeLock())
    accounts = [
        AccountMeta(initializer, is_signer=True, is_writable=True),
        AccountMeta(escrow_account, is_writable=True),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=data)
