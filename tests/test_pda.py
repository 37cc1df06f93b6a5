"""Program-derived escrow authority."""

from __future__ import annotations

import pytest
from blake3 import blake3

from escrow_spec.config import ESCROW_AUTHORITY_SEED, ESCROW_PROGRAM_ID, PDA_MARKER, TOKEN_PROGRAM_ID
from escrow_spec.errors import ErrorCode, ProgramError
from escrow_spec.pda import (
    create_program_address,
    escrow_authority_seeds,
    find_escrow_authority,
    find_program_address,
)
from escrow_spec.test_accounts import ESCROW, derive_address


def test_address_is_blake3_of_seeds_program_and_marker() -> None:
    seeds = [b"escrow", ESCROW, b"\xff"]
    expected = blake3(b"escrow" + ESCROW + b"\xff" + ESCROW_PROGRAM_ID + PDA_MARKER).digest()
    assert create_program_address(seeds, ESCROW_PROGRAM_ID) == expected


def test_escrow_authority_is_deterministic() -> None:
    first = find_escrow_authority(ESCROW_PROGRAM_ID, ESCROW)
    assert first == find_escrow_authority(ESCROW_PROGRAM_ID, ESCROW)
    pda, bump = first
    assert bump == 255
    assert create_program_address(escrow_authority_seeds(ESCROW, bump), ESCROW_PROGRAM_ID) == pda
    assert escrow_authority_seeds(ESCROW, bump)[0] == ESCROW_AUTHORITY_SEED


def test_authority_differs_per_escrow_and_program() -> None:
    pda, _ = find_escrow_authority(ESCROW_PROGRAM_ID, ESCROW)
    other_escrow, _ = find_escrow_authority(ESCROW_PROGRAM_ID, derive_address("Escrow2"))
    other_program, _ = find_escrow_authority(TOKEN_PROGRAM_ID, ESCROW)
    assert len({pda, other_escrow, other_program}) == 3


def test_find_program_address_appends_bump() -> None:
    address, bump = find_program_address([b"seed"], ESCROW_PROGRAM_ID)
    assert create_program_address([b"seed", bytes([bump])], ESCROW_PROGRAM_ID) == address


def test_seed_limits() -> None:
    with pytest.raises(ProgramError) as exc:
        create_program_address([b"x" * 33], ESCROW_PROGRAM_ID)
    assert exc.value.code == ErrorCode.INVALID_SEEDS
    with pytest.raises(ProgramError) as exc:
        create_program_address([b"x"] * 17, ESCROW_PROGRAM_ID)
    assert exc.value.code == ErrorCode.INVALID_SEEDS
    create_program_address([b"x" * 32] * 16, ESCROW_PROGRAM_ID)
