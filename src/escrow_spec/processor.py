"""Escrow program entrypoint and instruction handlers.

Each handler runs every precondition before the first custody transfer. The
host discards all writes of an instruction that raises, so a failure at any
point leaves the ledger untouched.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .accounts import (
    AccountInfo,
    bind_cancel,
    bind_exchange,
    bind_init_escrow,
    bind_reset_time_lock,
    require_key,
    require_owner,
)
from .config import ESCROW_LEN, RENT_SYSVAR_ID, U64_MAX
from .encoding import (
    decode_instruction,
    is_initialized_record,
    pack_escrow_record,
    unpack_escrow_record,
)
from .errors import ErrorCode, ProgramError
from .pda import escrow_authority_seeds, find_escrow_authority
from .time_lock import check_exchange_window, restart_window, validate_window
from .token import TokenProgram
from .types import (
    Cancel,
    Clock,
    EscrowRecord,
    Exchange,
    InitEscrow,
    Rent,
    ResetTimeLock,
)

logger = logging.getLogger(__name__)


def process_instruction(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    data: bytes,
    *,
    clock: Clock,
    rent: Rent,
    token: Optional[TokenProgram] = None,
) -> None:
    token = token or TokenProgram()
    ix = decode_instruction(data)
    if isinstance(ix, InitEscrow):
        logger.info("Instruction: InitEscrow")
        process_init_escrow(program_id, accounts, ix, rent=rent, token=token)
    elif isinstance(ix, Exchange):
        logger.info("Instruction: Exchange")
        process_exchange(program_id, accounts, ix, clock=clock, token=token)
    elif isinstance(ix, Cancel):
        logger.info("Instruction: Cancel")
        process_cancel(program_id, accounts, token=token)
    elif isinstance(ix, ResetTimeLock):
        logger.info("Instruction: ResetTimeLock")
        process_reset_time_lock(program_id, accounts, clock=clock)
    else:
        raise ProgramError(ErrorCode.INVALID_INSTRUCTION, f"unsupported instruction: {ix!r}")


def _load_open_record(escrow: AccountInfo, program_id: bytes) -> EscrowRecord:
    if not is_initialized_record(escrow.data):
        raise ProgramError(ErrorCode.UNINITIALIZED_ACCOUNT, "escrow is not open")
    require_owner(escrow, program_id, "escrow account")
    return unpack_escrow_record(bytes(escrow.data))


def _require_token_program(info: AccountInfo, token: TokenProgram) -> None:
    require_key(info, token.program_id, ErrorCode.INCORRECT_PROGRAM_ID, "token program")


def _require_initializer(signer: AccountInfo, record: EscrowRecord) -> None:
    if signer.key != record.initializer:
        raise ProgramError(ErrorCode.ILLEGAL_OWNER, "only the initializer may do this")


def _checked_sum(*values: int) -> int:
    total = sum(values)
    if total > U64_MAX:
        raise ProgramError(ErrorCode.AMOUNT_OVERFLOW, "amount is too big")
    return total


def _close_record(escrow: AccountInfo, rent_destination: AccountInfo) -> None:
    rent_destination.lamports = _checked_sum(rent_destination.lamports, escrow.lamports)
    escrow.lamports = 0
    escrow.data[:] = bytes(len(escrow.data))


# --- InitEscrow ---


def process_init_escrow(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    ix: InitEscrow,
    *,
    rent: Rent,
    token: TokenProgram,
) -> None:
    acc = bind_init_escrow(accounts)
    _require_token_program(acc.token_program, token)
    require_key(acc.rent_sysvar, RENT_SYSVAR_ID, ErrorCode.INVALID_ARGUMENT, "rent sysvar")

    escrow = acc.escrow_account
    require_owner(escrow, program_id, "escrow account")
    if len(escrow.data) != ESCROW_LEN:
        raise ProgramError(
            ErrorCode.INVALID_ACCOUNT_DATA, f"escrow account must hold {ESCROW_LEN} bytes"
        )
    if not rent.is_exempt(escrow.lamports, ESCROW_LEN):
        raise ProgramError(ErrorCode.NOT_RENT_EXEMPT, "escrow account is not rent exempt")
    if is_initialized_record(escrow.data):
        raise ProgramError(ErrorCode.ACCOUNT_ALREADY_INITIALIZED, "escrow already initialized")

    require_owner(acc.initializer_receiving_account, token.program_id, "receiving account")
    require_owner(acc.temp_token_account, token.program_id, "temp token account")
    validate_window(ix.unlock_time, ix.timeout)

    record = EscrowRecord(
        is_initialized=True,
        initializer=acc.initializer.key,
        temp_token_account=acc.temp_token_account.key,
        initializer_receiving_account=acc.initializer_receiving_account.key,
        expected_amount=ix.amount,
        unlock_time=ix.unlock_time,
        timeout=ix.timeout,
    )
    escrow.data[:] = pack_escrow_record(record)

    pda, _bump = find_escrow_authority(program_id, escrow.key)
    logger.debug("Transferring temp token account authority to %s", pda.hex())
    token.set_authority(acc.temp_token_account, acc.initializer, pda)


# --- Exchange ---


def process_exchange(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    ix: Exchange,
    *,
    clock: Clock,
    token: TokenProgram,
) -> None:
    acc = bind_exchange(accounts)
    _require_token_program(acc.token_program, token)

    escrow = acc.escrow_account
    record = _load_open_record(escrow, program_id)
    require_key(
        acc.temp_token_account, record.temp_token_account,
        ErrorCode.INVALID_ACCOUNT_DATA, "temp token account",
    )
    require_key(
        acc.initializer_main_account, record.initializer,
        ErrorCode.INVALID_ACCOUNT_DATA, "initializer account",
    )
    require_key(
        acc.initializer_receiving_account, record.initializer_receiving_account,
        ErrorCode.INVALID_ACCOUNT_DATA, "initializer receiving account",
    )

    check_exchange_window(record, clock.unix_timestamp)
    if ix.amount != record.expected_amount:
        raise ProgramError(ErrorCode.EXPECTED_AMOUNT_MISMATCH, "invalid amount")

    pda_amount = token.balance(acc.temp_token_account)
    _checked_sum(token.balance(acc.taker_destination_account), pda_amount)
    _checked_sum(token.balance(acc.initializer_receiving_account), ix.amount)
    _checked_sum(
        acc.initializer_main_account.lamports,
        acc.temp_token_account.lamports,
        escrow.lamports,
    )

    pda, bump = find_escrow_authority(program_id, escrow.key)
    seeds = escrow_authority_seeds(escrow.key, bump)

    logger.debug("Sending %d to the initializer", ix.amount)
    token.transfer(
        acc.taker_source_account, acc.initializer_receiving_account, acc.taker, ix.amount
    )
    logger.debug("Sending %d held by the escrow to the taker", pda_amount)
    token.transfer(
        acc.temp_token_account, acc.taker_destination_account, pda, pda_amount,
        signer_seeds=seeds, program_id=program_id,
    )
    logger.debug("Closing the temp token account")
    token.close_account(
        acc.temp_token_account, acc.initializer_main_account, pda,
        signer_seeds=seeds, program_id=program_id,
    )
    logger.debug("Closing the escrow account")
    _close_record(escrow, acc.initializer_main_account)


# --- Cancel ---


def process_cancel(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    *,
    token: TokenProgram,
) -> None:
    acc = bind_cancel(accounts)
    _require_token_program(acc.token_program, token)

    escrow = acc.escrow_account
    record = _load_open_record(escrow, program_id)
    _require_initializer(acc.initializer, record)
    require_key(
        acc.temp_token_account, record.temp_token_account,
        ErrorCode.INVALID_ACCOUNT_DATA, "temp token account",
    )
    _checked_sum(acc.initializer.lamports, acc.temp_token_account.lamports, escrow.lamports)

    pda, bump = find_escrow_authority(program_id, escrow.key)
    seeds = escrow_authority_seeds(escrow.key, bump)
    pda_amount = token.balance(acc.temp_token_account)

    logger.debug("Refunding %d to the initializer", pda_amount)
    token.transfer(
        acc.temp_token_account, acc.initializer_receiving_account, pda, pda_amount,
        signer_seeds=seeds, program_id=program_id,
    )
    token.close_account(
        acc.temp_token_account, acc.initializer, pda,
        signer_seeds=seeds, program_id=program_id,
    )
    _close_record(escrow, acc.initializer)


# --- ResetTimeLock ---


def process_reset_time_lock(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    *,
    clock: Clock,
) -> None:
    acc = bind_reset_time_lock(accounts)
    escrow = acc.escrow_account
    record = _load_open_record(escrow, program_id)
    _require_initializer(acc.initializer, record)

    record.unlock_time, record.timeout = restart_window(record, clock.unix_timestamp)
    logger.debug("Time lock reset to [%d, %d]", record.unlock_time, record.timeout)
    escrow.data[:] = pack_escrow_record(record)
