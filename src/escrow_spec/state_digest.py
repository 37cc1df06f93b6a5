"""Canonical ledger state digest implementation (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_le(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "little", signed=False)


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v1 from a JSON ledger state.

    Fields are encoded in canonical order and hashed with BLAKE3-256.
    """
    clock = post_state.get("clock", {}) if isinstance(post_state, dict) else {}
    buf = bytearray()
    buf += _u64_le(int(clock.get("slot", 0)))
    buf += int(clock.get("unix_timestamp", 0)).to_bytes(8, "little", signed=True)

    accounts = post_state.get("accounts", []) if isinstance(post_state, dict) else []
    sortable = []
    for acc in accounts:
        addr = _hex_to_bytes(acc.get("address", ""))
        if len(addr) != 32:
            raise ValueError(f"address must be 32 bytes, got {len(addr)}")
        sortable.append((addr, acc))
    sortable.sort(key=lambda x: x[0])

    for addr, acc in sortable:
        owner = _hex_to_bytes(acc.get("owner", ""))
        if len(owner) != 32:
            raise ValueError(f"owner must be 32 bytes, got {len(owner)}")
        buf += addr
        buf += _u64_le(int(acc.get("lamports", 0)))
        buf += owner
        buf += b"\x01" if acc.get("executable") else b"\x00"
        data = _hex_to_bytes(acc.get("data", ""))
        buf += _u64_le(len(data))
        buf += data

    return blake3(buf).hexdigest()
