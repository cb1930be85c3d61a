"""Supported operations and their dispatch to instruction builders"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from . import bridge, metadata, token_program
from .instruction import Instruction
from .metadata import UpdateMetadataArgs
from .publickey import PublicKey
from .token_program import AuthorityType


@dataclass(frozen=True)
class CreateFungible:
    mint: PublicKey
    authority: PublicKey
    decimals: int
    name: str
    symbol: str
    uri: str
    validate: bool = False


@dataclass(frozen=True)
class MintTo:
    mint: PublicKey
    receiver: PublicKey
    amount: int
    authority: PublicKey


@dataclass(frozen=True)
class Transfer:
    mint: PublicKey
    sender: PublicKey
    receiver: PublicKey
    amount: int


@dataclass(frozen=True)
class FreezeAccount:
    mint: PublicKey
    owner: PublicKey
    freeze_authority: PublicKey


@dataclass(frozen=True)
class ThawAccount:
    mint: PublicKey
    owner: PublicKey
    freeze_authority: PublicKey


@dataclass(frozen=True)
class UpdateMetadata:
    mint: PublicKey
    update_authority: PublicKey
    args: UpdateMetadataArgs
    validate: bool = False


@dataclass(frozen=True)
class UpdateAuthority:
    mint: PublicKey
    authority_type: AuthorityType
    current_authority: PublicKey
    new_authority: Optional[PublicKey] = None


@dataclass(frozen=True)
class AddLiquidity:
    program_id: PublicKey
    depositor: PublicKey
    mint: PublicKey
    amount: int


Operation = Union[
    CreateFungible, MintTo, Transfer, FreezeAccount, ThawAccount,
    UpdateMetadata, UpdateAuthority, AddLiquidity,
]


def build_instruction(operation: Operation) -> Instruction:
    """Build the single instruction that carries out ``operation``"""
    if isinstance(operation, CreateFungible):
        return metadata.create_fungible(
            mint=operation.mint,
            authority=operation.authority,
            decimals=operation.decimals,
            name=operation.name,
            symbol=operation.symbol,
            uri=operation.uri,
            validate=operation.validate,
        )
    if isinstance(operation, MintTo):
        return metadata.mint_to(
            mint=operation.mint,
            receiver=operation.receiver,
            amount=operation.amount,
            authority=operation.authority,
        )
    if isinstance(operation, Transfer):
        return metadata.transfer(
            mint=operation.mint,
            owner=operation.sender,
            receiver=operation.receiver,
            amount=operation.amount,
        )
    if isinstance(operation, FreezeAccount):
        return token_program.freeze_account(operation.owner, operation.mint, operation.freeze_authority)
    if isinstance(operation, ThawAccount):
        return token_program.thaw_account(operation.owner, operation.mint, operation.freeze_authority)
    if isinstance(operation, UpdateMetadata):
        return metadata.update_metadata(
            mint=operation.mint,
            update_authority=operation.update_authority,
            args=operation.args,
            validate=operation.validate,
        )
    if isinstance(operation, UpdateAuthority):
        return token_program.set_authority(
            account=operation.mint,
            authority_type=operation.authority_type,
            current_authority=operation.current_authority,
            new_authority=operation.new_authority,
        )
    if isinstance(operation, AddLiquidity):
        return bridge.add_liquidity(
            program_id=operation.program_id,
            depositor=operation.depositor,
            mint=operation.mint,
            amount=operation.amount,
        )
    raise TypeError(f'Unsupported operation: {type(operation).__name__}')


def additional_signers(operation: Operation) -> Tuple[PublicKey, ...]:
    """Keys other than the fee payer whose signatures the operation needs"""
    if isinstance(operation, CreateFungible):
        return (operation.mint,)
    return ()
