"""Program-derived addresses.

A derived address is a BLAKE3 digest over the seeds, the program id and a
fixed marker. Nobody holds a private key for it; the owning program signs for
it by presenting the seeds to the token primitive.
"""

from __future__ import annotations

from typing import Sequence

from blake3 import blake3

from .config import ESCROW_AUTHORITY_SEED, MAX_SEED_LEN, MAX_SEEDS, PDA_MARKER
from .errors import ErrorCode, ProgramError


def create_program_address(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    if len(seeds) > MAX_SEEDS:
        raise ProgramError(ErrorCode.INVALID_SEEDS, f"at most {MAX_SEEDS} seeds")
    h = blake3()
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ProgramError(ErrorCode.INVALID_SEEDS, f"seed longer than {MAX_SEED_LEN} bytes")
        h.update(seed)
    h.update(program_id)
    h.update(PDA_MARKER)
    return h.digest()


def find_program_address(seeds: Sequence[bytes], program_id: bytes) -> tuple[bytes, int]:
    """Return the derived address and bump for the highest usable bump seed."""
    for bump in range(255, -1, -1):
        address = create_program_address([*seeds, bytes([bump])], program_id)
        if address != program_id and address not in seeds:
            return address, bump
    raise ProgramError(ErrorCode.INVALID_SEEDS, "unable to find a viable bump seed")


def escrow_authority_seeds(escrow_account: bytes, bump: int) -> list[bytes]:
    return [ESCROW_AUTHORITY_SEED, escrow_account, bytes([bump])]


def find_escrow_authority(program_id: bytes, escrow_account: bytes) -> tuple[bytes, int]:
    """Authority PDA holding custody of one escrow's temp token account."""
    return find_program_address([ESCROW_AUTHORITY_SEED, escrow_account], program_id)
