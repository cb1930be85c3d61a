"""SPL Token program instructions used for account and authority management"""

from enum import IntEnum
from typing import Optional

from borsh_construct import U8, CStruct, Option

from .encoding import PublicKeyLayout, encode_args
from .instruction import AccountMeta, Instruction
from .publickey import TOKEN_PROGRAM_ID, PublicKey, derive_associated_address

SET_AUTHORITY = 6
FREEZE_ACCOUNT = 10
THAW_ACCOUNT = 11


class AuthorityType(IntEnum):
    MINT_TOKENS = 0
    FREEZE_ACCOUNT = 1
    ACCOUNT_OWNER = 2
    CLOSE_ACCOUNT = 3


SetAuthorityLayout = CStruct('authority_type' / U8, 'new_authority' / Option(PublicKeyLayout))


def _freeze_or_thaw(
    opcode: int,
    owner: PublicKey,
    mint: PublicKey,
    freeze_authority: PublicKey,
    token_program_id: PublicKey,
) -> Instruction:
    token_account = derive_associated_address(owner, mint, token_program_id)
    accounts = [
        AccountMeta.writable(token_account),
        AccountMeta.readonly(mint),
        AccountMeta.readonly(freeze_authority, is_signer=True),
    ]
    return Instruction(program_id=token_program_id, accounts=accounts, data=bytes([opcode]))


def freeze_account(
    owner: PublicKey,
    mint: PublicKey,
    freeze_authority: PublicKey,
    token_program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """Freeze the owner's associated token account for ``mint``"""
    return _freeze_or_thaw(FREEZE_ACCOUNT, owner, mint, freeze_authority, token_program_id)


def thaw_account(
    owner: PublicKey,
    mint: PublicKey,
    freeze_authority: PublicKey,
    token_program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """Unfreeze the owner's associated token account for ``mint``"""
    return _freeze_or_thaw(THAW_ACCOUNT, owner, mint, freeze_authority, token_program_id)


def set_authority(
    account: PublicKey,
    authority_type: AuthorityType,
    current_authority: PublicKey,
    new_authority: Optional[PublicKey] = None,
    token_program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Replace or revoke an authority on a mint or token account

    Passing ``new_authority=None`` revokes the authority permanently.
    """
    data = bytes([SET_AUTHORITY]) + encode_args([(SetAuthorityLayout, {
        'authority_type': AuthorityType(authority_type),
        'new_authority': new_authority,
    })])

    accounts = [
        AccountMeta.writable(account),
        AccountMeta.readonly(current_authority, is_signer=True),
    ]
    return Instruction(program_id=token_program_id, accounts=accounts, data=data)
