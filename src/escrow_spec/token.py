"""Token custody primitive.

Model of the host's fungible-token program as far as the escrow program uses
it: balance transfers, authority hand-over and account closing. Token
balances live in 165-byte account data owned by the token program.

An authority is satisfied by a signing account whose key is the token
account's owner, or by seeds that derive the owner address under the
invoking program (a program signing for its derived address).
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

from .accounts import AccountInfo
from .config import TOKEN_PROGRAM_ID, U64_MAX
from .encoding import pack_token_account, unpack_token_account
from .errors import ErrorCode, ProgramError
from .pda import create_program_address
from .types import TokenAccount, TokenAccountState

Authority = Union[AccountInfo, bytes]


class TokenProgram:
    def __init__(self, program_id: bytes = TOKEN_PROGRAM_ID):
        self.program_id = program_id

    def load(self, info: AccountInfo) -> TokenAccount:
        if info.owner != self.program_id:
            raise ProgramError(ErrorCode.INCORRECT_PROGRAM_ID, "not a token account")
        account = unpack_token_account(bytes(info.data))
        if account.state == TokenAccountState.UNINITIALIZED:
            raise ProgramError(ErrorCode.TOKEN_UNINITIALIZED_STATE, "token account not initialized")
        return account

    def balance(self, info: AccountInfo) -> int:
        return self.load(info).amount

    def _store(self, info: AccountInfo, account: TokenAccount) -> None:
        info.data[:] = pack_token_account(account)

    def _authorize(
        self,
        owner: bytes,
        authority: Authority,
        signer_seeds: Optional[Sequence[bytes]],
        program_id: Optional[bytes],
    ) -> None:
        if isinstance(authority, AccountInfo):
            key, signed = authority.key, authority.is_signer
        else:
            key, signed = authority, False
        if key != owner:
            raise ProgramError(ErrorCode.TOKEN_OWNER_MISMATCH, "authority is not the account owner")
        if signed:
            return
        if signer_seeds is not None and program_id is not None:
            if create_program_address(signer_seeds, program_id) == key:
                return
        raise ProgramError(ErrorCode.MISSING_REQUIRED_SIGNATURE, "authority did not sign")

    def transfer(
        self,
        source: AccountInfo,
        destination: AccountInfo,
        authority: Authority,
        amount: int,
        *,
        signer_seeds: Optional[Sequence[bytes]] = None,
        program_id: Optional[bytes] = None,
    ) -> None:
        src = self.load(source)
        dst = self.load(destination)
        if src.state == TokenAccountState.FROZEN or dst.state == TokenAccountState.FROZEN:
            raise ProgramError(ErrorCode.TOKEN_ACCOUNT_FROZEN, "token account frozen")
        if src.mint != dst.mint:
            raise ProgramError(ErrorCode.TOKEN_MINT_MISMATCH, "source and destination mints differ")
        self._authorize(src.owner, authority, signer_seeds, program_id)
        if amount < 0 or src.amount < amount:
            raise ProgramError(ErrorCode.TOKEN_INSUFFICIENT_FUNDS, "insufficient token balance")
        if source is destination:
            return
        if dst.amount + amount > U64_MAX:
            raise ProgramError(ErrorCode.TOKEN_OVERFLOW, "destination balance overflow")
        src.amount -= amount
        dst.amount += amount
        self._store(source, src)
        self._store(destination, dst)

    def set_authority(
        self,
        account: AccountInfo,
        authority: Authority,
        new_authority: bytes,
        *,
        signer_seeds: Optional[Sequence[bytes]] = None,
        program_id: Optional[bytes] = None,
    ) -> None:
        token = self.load(account)
        self._authorize(token.owner, authority, signer_seeds, program_id)
        token.owner = new_authority
        self._store(account, token)

    def close_account(
        self,
        account: AccountInfo,
        destination: AccountInfo,
        authority: Authority,
        *,
        signer_seeds: Optional[Sequence[bytes]] = None,
        program_id: Optional[bytes] = None,
    ) -> None:
        token = self.load(account)
        if token.amount != 0:
            raise ProgramError(
                ErrorCode.TOKEN_NON_NATIVE_HAS_BALANCE, "cannot close a non-empty token account"
            )
        self._authorize(token.owner, authority, signer_seeds, program_id)
        if destination.lamports + account.lamports > U64_MAX:
            raise ProgramError(ErrorCode.TOKEN_OVERFLOW, "destination lamports overflow")
        destination.lamports += account.lamports
        account.lamports = 0
        account.data[:] = bytes(len(account.data))
