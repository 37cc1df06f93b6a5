"""Cancel fixtures."""

from __future__ import annotations

from escrow_spec.config import ESCROW_PROGRAM_ID
from escrow_spec.encoding import unpack_token_account
from escrow_spec.errors import ErrorCode
from escrow_spec.instruction import cancel, init_escrow
from escrow_spec.state_transition import advance_clock, execute_instruction
from escrow_spec.test_accounts import (
    ALICE,
    ALICE_TEMP_X,
    ALICE_X,
    ALICE_Y,
    ESCROW,
    MALLORY,
    MALLORY_X,
    MINT_X,
    MINT_Y,
    blank_escrow_account,
    system_account,
    token_account,
)
from escrow_spec.types import AccountMeta, Clock, LedgerState

FIXTURE = "escrow/cancel.json"
NOW = 1_700_000_000
DEPOSIT = 1000


def _open_state() -> LedgerState:
    state = LedgerState(clock=Clock(slot=100, unix_timestamp=NOW))
    for acct in (
        system_account(ALICE, 10_000_000_000),
        system_account(MALLORY, 1_000_000_000),
        token_account(ALICE_X, MINT_X, ALICE, 25),
        token_account(ALICE_TEMP_X, MINT_X, ALICE, DEPOSIT),
        token_account(ALICE_Y, MINT_Y, ALICE, 0),
        token_account(MALLORY_X, MINT_X, MALLORY, 0),
        blank_escrow_account(),
    ):
        state.accounts[acct.address] = acct
    ix = init_escrow(
        ESCROW_PROGRAM_ID, ALICE, ALICE_TEMP_X, ALICE_Y, ESCROW,
        amount=500, unlock_time=NOW + 3600, timeout=NOW + 7200,
    )
    state, result = execute_instruction(state, ix, [ALICE])
    assert result.ok, result.error
    return state


def _ix(initializer: bytes = ALICE, temp: bytes = ALICE_TEMP_X, refund: bytes = ALICE_X):
    return cancel(ESCROW_PROGRAM_ID, initializer, temp, refund, ESCROW)


def _balance(state: LedgerState, key: bytes) -> int:
    return unpack_token_account(state.accounts[key].data).amount


def _expect_error(state_test_group, name, state, ix, code, signers=(ALICE,)) -> None:
    post, result = state_test_group(FIXTURE, name, state, ix, signers)
    assert not result.ok
    assert result.error.code == code
    assert post is state


def test_cancel_before_unlock(state_test_group) -> None:
    state = _open_state()
    post, result = state_test_group(FIXTURE, "cancel_before_unlock", state, _ix(), [ALICE])
    assert result.ok
    assert _balance(post, ALICE_X) == 25 + DEPOSIT
    assert ALICE_TEMP_X not in post.accounts
    assert ESCROW not in post.accounts
    assert post.accounts[ALICE].lamports == (
        state.accounts[ALICE].lamports
        + state.accounts[ALICE_TEMP_X].lamports
        + state.accounts[ESCROW].lamports
    )
    # The counter-asset account is never touched.
    assert post.accounts[ALICE_Y] == state.accounts[ALICE_Y]


def test_cancel_after_timeout(state_test_group) -> None:
    state = advance_clock(_open_state(), 10_000)
    _, result = state_test_group(FIXTURE, "cancel_after_timeout", state, _ix(), [ALICE])
    assert result.ok


def test_cancel_by_other_signer(state_test_group) -> None:
    _expect_error(
        state_test_group, "cancel_by_other_signer", _open_state(),
        _ix(initializer=MALLORY, refund=MALLORY_X), ErrorCode.ILLEGAL_OWNER, signers=(MALLORY,),
    )


def test_cancel_not_signed(state_test_group) -> None:
    _expect_error(
        state_test_group, "cancel_not_signed", _open_state(), _ix(),
        ErrorCode.MISSING_REQUIRED_SIGNATURE, signers=(),
    )


def test_cancel_wrong_temp_account(state_test_group) -> None:
    _expect_error(
        state_test_group, "cancel_wrong_temp_account", _open_state(), _ix(temp=MALLORY_X),
        ErrorCode.INVALID_ACCOUNT_DATA,
    )


def test_cancel_refund_wrong_mint(state_test_group) -> None:
    _expect_error(
        state_test_group, "cancel_refund_wrong_mint", _open_state(), _ix(refund=ALICE_Y),
        ErrorCode.TOKEN_MINT_MISMATCH,
    )


def test_cancel_refund_account_read_only(state_test_group) -> None:
    ix = _ix()
    ix.accounts[2] = AccountMeta(ALICE_X)
    _expect_error(
        state_test_group, "cancel_refund_account_read_only", _open_state(), ix,
        ErrorCode.READONLY_ACCOUNT_MODIFIED,
    )


def test_cancel_uninitialized_record(state_test_group) -> None:
    state = _open_state()
    state.accounts[ESCROW] = blank_escrow_account()
    _expect_error(
        state_test_group, "cancel_uninitialized_record", state, _ix(),
        ErrorCode.UNINITIALIZED_ACCOUNT,
    )


def test_cancel_twice(state_test_group) -> None:
    post, result = execute_instruction(_open_state(), _ix(), [ALICE])
    assert result.ok
    _expect_error(state_test_group, "cancel_twice", post, _ix(), ErrorCode.UNINITIALIZED_ACCOUNT)
