"""Wire-format vectors for all escrow instructions and instruction builders."""

from __future__ import annotations

import pytest

from escrow_spec import instruction as builders
from escrow_spec.config import (
    ESCROW_PROGRAM_ID,
    I64_MAX,
    I64_MIN,
    RENT_SYSVAR_ID,
    TOKEN_PROGRAM_ID,
    U64_MAX,
)
from escrow_spec.encoding import decode_instruction, encode_instruction
from escrow_spec.test_accounts import (
    ALICE,
    ALICE_TEMP_X,
    ALICE_X,
    ALICE_Y,
    BOB,
    BOB_X,
    BOB_Y,
    ESCROW,
)
from escrow_spec.types import Cancel, EscrowInstructionTag, Exchange, InitEscrow, ResetTimeLock


def test_init_escrow_wire_vector(wire_vector) -> None:
    ix = InitEscrow(amount=1000, unlock_time=1_700_000_000, timeout=1_700_003_600)
    data = encode_instruction(ix)
    assert data == (
        b"\x00"
        + (1000).to_bytes(8, "little")
        + (1_700_000_000).to_bytes(8, "little")
        + (1_700_003_600).to_bytes(8, "little")
    )
    assert decode_instruction(data) == ix
    wire_vector("init_escrow_basic", data)


def test_exchange_wire_vector(wire_vector) -> None:
    data = encode_instruction(Exchange(amount=500))
    assert data.hex() == "01f401000000000000"
    assert decode_instruction(data) == Exchange(amount=500)
    wire_vector("exchange_basic", data)


def test_cancel_and_reset_carry_no_payload(wire_vector) -> None:
    assert encode_instruction(Cancel()) == b"\x02"
    assert encode_instruction(ResetTimeLock()) == b"\x03"
    assert decode_instruction(b"\x02") == Cancel()
    assert decode_instruction(b"\x03") == ResetTimeLock()
    wire_vector("cancel_basic", b"\x02")
    wire_vector("reset_time_lock_basic", b"\x03")


@pytest.mark.parametrize("amount", [0, 1, U64_MAX])
def test_amount_bounds_round_trip(wire_vector, amount: int) -> None:
    for ix in (Exchange(amount=amount), InitEscrow(amount=amount, unlock_time=0, timeout=1)):
        assert decode_instruction(encode_instruction(ix)) == ix
    wire_vector(f"exchange_amount_{amount}", encode_instruction(Exchange(amount=amount)))


def test_negative_and_extreme_timestamps_round_trip() -> None:
    ix = InitEscrow(amount=7, unlock_time=I64_MIN, timeout=I64_MAX)
    data = encode_instruction(ix)
    assert data[9:17] == bytes([0] * 7 + [0x80])
    assert data[17:25] == bytes([0xFF] * 7 + [0x7F])
    assert decode_instruction(data) == ix


def test_trailing_bytes_are_ignored() -> None:
    assert decode_instruction(b"\x01" + (9).to_bytes(8, "little") + b"\xaa\xbb") == Exchange(9)
    assert decode_instruction(b"\x02\xff") == Cancel()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _shape(ix):
    return [(m.pubkey, m.is_signer, m.is_writable) for m in ix.accounts]


def test_init_escrow_builder_layout() -> None:
    ix = builders.init_escrow(
        ESCROW_PROGRAM_ID, ALICE, ALICE_TEMP_X, ALICE_Y, ESCROW,
        amount=1000, unlock_time=10, timeout=20,
    )
    assert ix.program_id == ESCROW_PROGRAM_ID
    assert ix.data[0] == EscrowInstructionTag.INIT_ESCROW
    assert decode_instruction(ix.data) == InitEscrow(amount=1000, unlock_time=10, timeout=20)
    assert _shape(ix) == [
        (ALICE, True, True),
        (ALICE_TEMP_X, False, True),
        (ALICE_Y, False, False),
        (ESCROW, False, True),
        (RENT_SYSVAR_ID, False, False),
        (TOKEN_PROGRAM_ID, False, False),
    ]


def test_exchange_builder_layout() -> None:
    ix = builders.exchange(
        ESCROW_PROGRAM_ID, BOB, BOB_Y, BOB_X, ALICE_TEMP_X, ALICE, ALICE_Y, ESCROW, amount=1000,
    )
    assert decode_instruction(ix.data) == Exchange(amount=1000)
    assert _shape(ix) == [
        (BOB, True, True),
        (BOB_Y, False, True),
        (BOB_X, False, True),
        (ALICE_TEMP_X, False, True),
        (ALICE, False, True),
        (ALICE_Y, False, True),
        (ESCROW, False, True),
        (TOKEN_PROGRAM_ID, False, False),
    ]


def test_cancel_builder_layout() -> None:
    ix = builders.cancel(ESCROW_PROGRAM_ID, ALICE, ALICE_TEMP_X, ALICE_X, ESCROW)
    assert ix.data == b"\x02"
    assert _shape(ix) == [
        (ALICE, True, True),
        (ALICE_TEMP_X, False, True),
        (ALICE_X, False, True),
        (ESCROW, False, True),
        (TOKEN_PROGRAM_ID, False, False),
    ]


def test_reset_time_lock_builder_packs_its_own_tag() -> None:
    ix = builders.reset_time_lock(ESCROW_PROGRAM_ID, ALICE, ESCROW)
    assert ix.data == bytes([EscrowInstructionTag.RESET_TIME_LOCK])
    assert isinstance(decode_instruction(ix.data), ResetTimeLock)
    assert _shape(ix) == [(ALICE, True, True), (ESCROW, False, True)]
