"""Host ledger model: atomic execution of escrow instructions.

Failed-instruction semantics:
- Any error raised while processing: state unchanged.
- Post-execution rule violations (read-only writes, foreign data writes,
  lamport imbalance): state unchanged.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import replace
from typing import Collection, Optional

from .accounts import AccountInfo
from .config import ESCROW_PROGRAM_ID
from .errors import ErrorCode, ProgramError
from .processor import process_instruction
from .token import TokenProgram
from .types import Account, Instruction, LedgerState

logger = logging.getLogger(__name__)


class TransitionResult:
    """Thin wrapper for execution results."""

    def __init__(self, ok: bool, error: Optional[ProgramError] = None):
        self.ok = ok
        self.error = error

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: ProgramError) -> "TransitionResult":
        return cls(False, error)


def _resolve_accounts(
    state: LedgerState, ix: Instruction, signers: Collection[bytes]
) -> tuple[list[AccountInfo], dict[bytes, AccountInfo]]:
    by_key: dict[bytes, AccountInfo] = {}
    ordered: list[AccountInfo] = []
    for meta in ix.accounts:
        info = by_key.get(meta.pubkey)
        if info is None:
            acct = state.accounts.get(meta.pubkey) or Account(address=meta.pubkey)
            info = AccountInfo(
                key=meta.pubkey,
                lamports=acct.lamports,
                data=bytearray(acct.data),
                owner=acct.owner,
                executable=acct.executable,
            )
            by_key[meta.pubkey] = info
        # Duplicate metas share one view; privileges are the union.
        info.is_signer = info.is_signer or (meta.is_signer and meta.pubkey in signers)
        info.is_writable = info.is_writable or meta.is_writable
        ordered.append(info)
    return ordered, by_key


def _verify_post_state(
    pre: dict[bytes, tuple[int, bytes, bytes]],
    infos: dict[bytes, AccountInfo],
    allowed_owners: Collection[bytes],
) -> None:
    pre_total = 0
    post_total = 0
    for key, info in infos.items():
        lamports, data, owner = pre[key]
        pre_total += lamports
        post_total += info.lamports
        data_changed = bytes(info.data) != data
        lamports_changed = info.lamports != lamports
        if (data_changed or lamports_changed) and not info.is_writable:
            raise ProgramError(
                ErrorCode.READONLY_ACCOUNT_MODIFIED, f"read-only account {key.hex()} modified"
            )
        if data_changed and owner not in allowed_owners:
            raise ProgramError(
                ErrorCode.EXTERNAL_ACCOUNT_DATA_MODIFIED, f"foreign account {key.hex()} data modified"
            )
        if info.lamports < lamports and owner not in allowed_owners:
            raise ProgramError(
                ErrorCode.EXTERNAL_ACCOUNT_LAMPORT_SPEND, f"foreign account {key.hex()} debited"
            )
    if pre_total != post_total:
        raise ProgramError(ErrorCode.UNBALANCED_INSTRUCTION, "lamports not conserved")


def _commit(state: LedgerState, infos: dict[bytes, AccountInfo]) -> None:
    for key, info in infos.items():
        if info.lamports == 0:
            state.accounts.pop(key, None)
            continue
        state.accounts[key] = Account(
            address=key,
            lamports=info.lamports,
            owner=info.owner,
            data=bytes(info.data),
            executable=info.executable,
        )


def execute_instruction(
    state: LedgerState,
    ix: Instruction,
    signers: Collection[bytes] = (),
    token: Optional[TokenProgram] = None,
) -> tuple[LedgerState, TransitionResult]:
    """Execute one instruction; all of its writes commit or none do."""
    token = token or TokenProgram()
    if ix.program_id != ESCROW_PROGRAM_ID:
        return state, TransitionResult.failure(
            ProgramError(ErrorCode.UNSUPPORTED_PROGRAM_ID, "unknown program id")
        )

    ordered, by_key = _resolve_accounts(state, ix, signers)
    pre = {k: (i.lamports, bytes(i.data), i.owner) for k, i in by_key.items()}

    try:
        process_instruction(
            ix.program_id,
            ordered,
            ix.data,
            clock=state.clock,
            rent=state.rent,
            token=token,
        )
        _verify_post_state(pre, by_key, (ix.program_id, token.program_id))
    except ProgramError as exc:
        logger.debug("Instruction failed: %s", exc)
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    _commit(working, by_key)
    return working, TransitionResult.success()


def execute_transaction(
    state: LedgerState,
    instructions: list[Instruction],
    signers: Collection[bytes] = (),
    token: Optional[TokenProgram] = None,
) -> tuple[LedgerState, TransitionResult]:
    """Execute instructions in order (transaction-atomic semantics).

    If any instruction fails, the whole transaction is rejected and the state
    is unchanged.
    """
    working = state
    for ix in instructions:
        working, result = execute_instruction(working, ix, signers, token)
        if not result.ok:
            return state, result
    return working, TransitionResult.success()


def advance_clock(state: LedgerState, seconds: int) -> LedgerState:
    clock = replace(
        state.clock,
        slot=state.clock.slot + 1,
        unix_timestamp=state.clock.unix_timestamp + seconds,
    )
    return replace(deepcopy(state), clock=clock)
