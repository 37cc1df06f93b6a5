"""Wire-format encoding: escrow instructions, escrow record and token accounts.

All integers are little-endian.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import (
    ESCROW_LEN,
    EXCHANGE_PAYLOAD_LEN,
    I64_MAX,
    I64_MIN,
    INIT_ESCROW_PAYLOAD_LEN,
    PUBKEY_LEN,
    TOKEN_ACCOUNT_LEN,
    U64_MAX,
)
from .errors import ErrorCode, ProgramError
from .types import (
    Cancel,
    EscrowInstruction,
    EscrowInstructionTag,
    EscrowRecord,
    Exchange,
    InitEscrow,
    ResetTimeLock,
    TokenAccount,
    TokenAccountState,
)


@dataclass
class Writer:
    buf: bytearray

    def write_u8(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(1, "little", signed=False))

    def write_u64(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(8, "little", signed=False))

    def write_i64(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(8, "little", signed=True))

    def write_bytes(self, b: bytes) -> None:
        self.buf.extend(b)

    def write_bool(self, v: bool) -> None:
        self.write_u8(1 if v else 0)

    def write_zeros(self, n: int) -> None:
        self.buf.extend(bytes(n))


@dataclass
class Reader:
    data: bytes
    pos: int = 0
    code: ErrorCode = ErrorCode.INVALID_ACCOUNT_DATA

    def remaining(self) -> int:
        return len(self.data) - self.pos

    def read_bytes(self, n: int) -> bytes:
        if self.remaining() < n:
            raise ProgramError(self.code, f"need {n} bytes, have {self.remaining()}")
        out = bytes(self.data[self.pos:self.pos + n])
        self.pos += n
        return out

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_u64(self) -> int:
        return int.from_bytes(self.read_bytes(8), "little", signed=False)

    def read_i64(self) -> int:
        return int.from_bytes(self.read_bytes(8), "little", signed=True)

    def read_pubkey(self) -> bytes:
        return self.read_bytes(PUBKEY_LEN)

    def skip(self, n: int) -> None:
        self.read_bytes(n)


def _check_u64(name: str, value: int, code: ErrorCode) -> None:
    if not (0 <= value <= U64_MAX):
        raise ProgramError(code, f"{name} must fit u64")


def _check_i64(name: str, value: int, code: ErrorCode) -> None:
    if not (I64_MIN <= value <= I64_MAX):
        raise ProgramError(code, f"{name} must fit i64")


def _expect_pubkey(name: str, value: bytes) -> None:
    if len(value) != PUBKEY_LEN:
        raise ProgramError(ErrorCode.INVALID_ACCOUNT_DATA, f"{name} must be {PUBKEY_LEN} bytes")


# --- Instructions ---


def encode_instruction(ix: EscrowInstruction) -> bytes:
    w = Writer(bytearray())
    w.write_u8(ix.tag)
    if isinstance(ix, InitEscrow):
        _check_u64("amount", ix.amount, ErrorCode.INVALID_INSTRUCTION)
        _check_i64("unlock_time", ix.unlock_time, ErrorCode.INVALID_INSTRUCTION)
        _check_i64("timeout", ix.timeout, ErrorCode.INVALID_INSTRUCTION)
        w.write_u64(ix.amount)
        w.write_i64(ix.unlock_time)
        w.write_i64(ix.timeout)
    elif isinstance(ix, Exchange):
        _check_u64("amount", ix.amount, ErrorCode.INVALID_INSTRUCTION)
        w.write_u64(ix.amount)
    elif not isinstance(ix, (Cancel, ResetTimeLock)):
        raise ProgramError(ErrorCode.INVALID_INSTRUCTION, f"unknown instruction: {ix!r}")
    return bytes(w.buf)


def decode_instruction(data: bytes) -> EscrowInstruction:
    """Decode an instruction buffer.

    Unknown tags and short payloads fail with INVALID_INSTRUCTION before any
    account is looked at. Bytes past the payload are ignored.
    """
    if not data:
        raise ProgramError(ErrorCode.INVALID_INSTRUCTION, "empty instruction data")
    tag, rest = data[0], bytes(data[1:])
    if tag == EscrowInstructionTag.INIT_ESCROW:
        if len(rest) < INIT_ESCROW_PAYLOAD_LEN:
            raise ProgramError(ErrorCode.INVALID_INSTRUCTION, "init_escrow payload too short")
        r = Reader(rest, code=ErrorCode.INVALID_INSTRUCTION)
        return InitEscrow(amount=r.read_u64(), unlock_time=r.read_i64(), timeout=r.read_i64())
    if tag == EscrowInstructionTag.EXCHANGE:
        if len(rest) < EXCHANGE_PAYLOAD_LEN:
            raise ProgramError(ErrorCode.INVALID_INSTRUCTION, "exchange payload too short")
        return Exchange(amount=Reader(rest, code=ErrorCode.INVALID_INSTRUCTION).read_u64())
    if tag == EscrowInstructionTag.CANCEL:
        return Cancel()
    if tag == EscrowInstructionTag.RESET_TIME_LOCK:
        return ResetTimeLock()
    raise ProgramError(ErrorCode.INVALID_INSTRUCTION, f"unknown instruction tag: {tag}")


# --- Escrow record ---


def pack_escrow_record(record: EscrowRecord) -> bytes:
    _expect_pubkey("initializer", record.initializer)
    _expect_pubkey("temp_token_account", record.temp_token_account)
    _expect_pubkey("initializer_receiving_account", record.initializer_receiving_account)
    _check_u64("expected_amount", record.expected_amount, ErrorCode.INVALID_ACCOUNT_DATA)
    _check_i64("unlock_time", record.unlock_time, ErrorCode.INVALID_ACCOUNT_DATA)
    _check_i64("timeout", record.timeout, ErrorCode.INVALID_ACCOUNT_DATA)

    w = Writer(bytearray())
    w.write_bool(record.is_initialized)
    w.write_bytes(record.initializer)
    w.write_bytes(record.temp_token_account)
    w.write_bytes(record.initializer_receiving_account)
    w.write_u64(record.expected_amount)
    w.write_i64(record.unlock_time)
    w.write_i64(record.timeout)
    return bytes(w.buf)


def unpack_escrow_record(data: bytes) -> EscrowRecord:
    if len(data) != ESCROW_LEN:
        raise ProgramError(
            ErrorCode.INVALID_ACCOUNT_DATA, f"escrow record must be {ESCROW_LEN} bytes"
        )
    r = Reader(bytes(data))
    flag = r.read_u8()
    if flag not in (0, 1):
        raise ProgramError(ErrorCode.INVALID_ACCOUNT_DATA, "invalid is_initialized flag")
    return EscrowRecord(
        is_initialized=flag == 1,
        initializer=r.read_pubkey(),
        temp_token_account=r.read_pubkey(),
        initializer_receiving_account=r.read_pubkey(),
        expected_amount=r.read_u64(),
        unlock_time=r.read_i64(),
        timeout=r.read_i64(),
    )


def is_initialized_record(data: bytes) -> bool:
    return len(data) > 0 and data[0] == 1


# --- Token accounts ---
#   [0..32]    mint
#   [32..64]   owner
#   [64..72]   amount
#   [72..108]  delegate (COption<Pubkey>, unmodeled)
#   [108]      state
#   [109..165] is_native, delegated_amount, close_authority (unmodeled)

_TOKEN_STATE_OFFSET = 108


def pack_token_account(account: TokenAccount) -> bytes:
    _expect_pubkey("mint", account.mint)
    _expect_pubkey("owner", account.owner)
    _check_u64("amount", account.amount, ErrorCode.TOKEN_OVERFLOW)

    w = Writer(bytearray())
    w.write_bytes(account.mint)
    w.write_bytes(account.owner)
    w.write_u64(account.amount)
    w.write_zeros(_TOKEN_STATE_OFFSET - len(w.buf))
    w.write_u8(account.state)
    w.write_zeros(TOKEN_ACCOUNT_LEN - len(w.buf))
    return bytes(w.buf)


def unpack_token_account(data: bytes) -> TokenAccount:
    if len(data) != TOKEN_ACCOUNT_LEN:
        raise ProgramError(
            ErrorCode.INVALID_ACCOUNT_DATA, f"token account must be {TOKEN_ACCOUNT_LEN} bytes"
        )
    r = Reader(bytes(data))
    mint = r.read_pubkey()
    owner = r.read_pubkey()
    amount = r.read_u64()
    r.skip(_TOKEN_STATE_OFFSET - r.pos)
    state = r.read_u8()
    if state not in (s.value for s in TokenAccountState):
        raise ProgramError(ErrorCode.INVALID_ACCOUNT_DATA, "invalid token account state")
    return TokenAccount(mint=mint, owner=owner, amount=amount, state=TokenAccountState(state))
