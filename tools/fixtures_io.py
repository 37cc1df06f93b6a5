"""Helpers to serialize/deserialize escrow fixtures (ledger states and instructions)."""

from __future__ import annotations

from typing import Any

from escrow_spec.encoding import decode_instruction
from escrow_spec.errors import ProgramError
from escrow_spec.test_accounts import ADDRESS_NAMES
from escrow_spec.types import (
    Account,
    AccountMeta,
    Cancel,
    Clock,
    Exchange,
    InitEscrow,
    Instruction,
    LedgerState,
    Rent,
    ResetTimeLock,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def state_to_json(state: LedgerState) -> dict[str, Any]:
    accounts_out: list[dict[str, Any]] = []
    for a in state.accounts.values():
        entry: dict[str, Any] = {
            "address": _bytes_to_hex(a.address),
            "lamports": a.lamports,
            "owner": _bytes_to_hex(a.owner),
            "executable": a.executable,
            "data": _bytes_to_hex(a.data),
        }
        label = ADDRESS_NAMES.get(a.address)
        if label:
            entry["label"] = label
        accounts_out.append(entry)

    return {
        "clock": {
            "slot": state.clock.slot,
            "unix_timestamp": state.clock.unix_timestamp,
        },
        "rent": {
            "lamports_per_byte_year": state.rent.lamports_per_byte_year,
            "exemption_threshold_years": state.rent.exemption_threshold_years,
        },
        "accounts": accounts_out,
    }


def state_from_json(data: dict[str, Any]) -> LedgerState:
    clock = data.get("clock", {})
    rent = data.get("rent", {})
    state = LedgerState(
        clock=Clock(
            slot=clock.get("slot", 0),
            unix_timestamp=clock.get("unix_timestamp", 0),
        ),
        rent=Rent(**rent) if rent else Rent(),
    )
    for a in data.get("accounts", []):
        acct = Account(
            address=_hex_to_bytes(a["address"]),
            lamports=a.get("lamports", 0),
            owner=_hex_to_bytes(a["owner"]),
            data=_hex_to_bytes(a.get("data", "")) if a.get("data") else b"",
            executable=a.get("executable", False),
        )
        state.accounts[acct.address] = acct
    return state


def instruction_data_to_json(data: bytes) -> dict[str, Any] | None:
    """Human-readable view of the instruction data, when it decodes."""
    try:
        ix = decode_instruction(data)
    except ProgramError:
        return None
    if isinstance(ix, InitEscrow):
        return {
            "variant": "init_escrow",
            "amount": ix.amount,
            "unlock_time": ix.unlock_time,
            "timeout": ix.timeout,
        }
    if isinstance(ix, Exchange):
        return {"variant": "exchange", "amount": ix.amount}
    if isinstance(ix, Cancel):
        return {"variant": "cancel"}
    if isinstance(ix, ResetTimeLock):
        return {"variant": "reset_time_lock"}
    return None


def instruction_to_json(ix: Instruction, signers: list[bytes]) -> dict[str, Any]:
    return {
        "program_id": _bytes_to_hex(ix.program_id),
        "accounts": [
            {
                "pubkey": _bytes_to_hex(m.pubkey),
                "is_signer": m.is_signer,
                "is_writable": m.is_writable,
            }
            for m in ix.accounts
        ],
        "data": _bytes_to_hex(ix.data),
        "decoded": instruction_data_to_json(ix.data),
        "signers": [_bytes_to_hex(s) for s in signers],
    }


def instruction_from_json(data: dict[str, Any]) -> tuple[Instruction, list[bytes]]:
    ix = Instruction(
        program_id=_hex_to_bytes(data["program_id"]),
        accounts=[
            AccountMeta(
                pubkey=_hex_to_bytes(m["pubkey"]),
                is_signer=m.get("is_signer", False),
                is_writable=m.get("is_writable", False),
            )
            for m in data.get("accounts", [])
        ],
        data=_hex_to_bytes(data.get("data", "")),
    )
    signers = [_hex_to_bytes(s) for s in data.get("signers", [])]
    return ix, signers
