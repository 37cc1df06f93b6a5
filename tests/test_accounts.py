"""Positional role binding."""

from __future__ import annotations

import pytest

from escrow_spec.accounts import (
    CANCEL_ROLES,
    EXCHANGE_ROLES,
    INIT_ESCROW_ROLES,
    RESET_TIME_LOCK_ROLES,
    AccountInfo,
    bind_accounts,
    bind_exchange,
    bind_init_escrow,
    bind_reset_time_lock,
    require_owner,
)
from escrow_spec.config import ESCROW_PROGRAM_ID, TOKEN_PROGRAM_ID
from escrow_spec.errors import ErrorCode, ProgramError
from escrow_spec.test_accounts import derive_address


def _infos(roles, **overrides):
    """One AccountInfo per role, flagged exactly as the role demands."""
    infos = []
    for role in roles:
        flags = overrides.get(role.name, {})
        infos.append(
            AccountInfo(
                key=derive_address(role.name),
                is_signer=flags.get("is_signer", role.signer),
                is_writable=flags.get("is_writable", role.writable),
            )
        )
    return infos


def test_role_tables_match_instruction_shapes() -> None:
    assert len(INIT_ESCROW_ROLES) == 6
    assert len(EXCHANGE_ROLES) == 8
    assert len(CANCEL_ROLES) == 5
    assert len(RESET_TIME_LOCK_ROLES) == 2
    for roles in (INIT_ESCROW_ROLES, EXCHANGE_ROLES, CANCEL_ROLES, RESET_TIME_LOCK_ROLES):
        assert roles[0].signer
        assert [r.name for r in roles if r.signer] == [roles[0].name]


def test_bind_names_positions() -> None:
    infos = _infos(EXCHANGE_ROLES)
    bound = bind_exchange(infos)
    assert bound.taker is infos[0]
    assert bound.initializer_main_account is infos[4]
    assert bound.token_program is infos[7]


def test_extra_accounts_ignored() -> None:
    infos = _infos(RESET_TIME_LOCK_ROLES) + [AccountInfo(key=derive_address("extra"))]
    bound = bind_reset_time_lock(infos)
    assert bound.escrow_account is infos[1]


@pytest.mark.parametrize("roles", [INIT_ESCROW_ROLES, EXCHANGE_ROLES, CANCEL_ROLES, RESET_TIME_LOCK_ROLES])
def test_too_few_accounts(roles) -> None:
    with pytest.raises(ProgramError) as exc:
        bind_accounts(roles, _infos(roles)[:-1])
    assert exc.value.code == ErrorCode.NOT_ENOUGH_ACCOUNT_KEYS


def test_missing_signature() -> None:
    infos = _infos(INIT_ESCROW_ROLES, initializer={"is_signer": False})
    with pytest.raises(ProgramError) as exc:
        bind_init_escrow(infos)
    assert exc.value.code == ErrorCode.MISSING_REQUIRED_SIGNATURE


def test_read_only_where_writable_required() -> None:
    infos = _infos(INIT_ESCROW_ROLES, escrow_account={"is_writable": False})
    with pytest.raises(ProgramError) as exc:
        bind_init_escrow(infos)
    assert exc.value.code == ErrorCode.ACCOUNT_NOT_WRITABLE


def test_read_only_role_accepts_writable_account() -> None:
    infos = _infos(INIT_ESCROW_ROLES, initializer_receiving_account={"is_writable": True})
    assert bind_init_escrow(infos).initializer_receiving_account.is_writable


def test_signature_checked_before_writability() -> None:
    infos = _infos(
        RESET_TIME_LOCK_ROLES,
        initializer={"is_signer": False},
        escrow_account={"is_writable": False},
    )
    with pytest.raises(ProgramError) as exc:
        bind_reset_time_lock(infos)
    assert exc.value.code == ErrorCode.MISSING_REQUIRED_SIGNATURE


def test_require_owner() -> None:
    info = AccountInfo(key=derive_address("x"), owner=TOKEN_PROGRAM_ID)
    require_owner(info, TOKEN_PROGRAM_ID, "token account")
    with pytest.raises(ProgramError) as exc:
        require_owner(info, ESCROW_PROGRAM_ID, "escrow account")
    assert exc.value.code == ErrorCode.INCORRECT_PROGRAM_ID
