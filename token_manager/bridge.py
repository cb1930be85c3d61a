"""Bridge program instructions for providing token liquidity"""

from dataclasses import dataclass

from borsh_construct import U64, CStruct

from .encoding import discriminator, encode_args
from .instruction import AccountMeta, Instruction
from .publickey import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    PublicKey,
    derive_associated_address,
    derive_program_address,
)

BRIDGE_STATE_SEED = b'bridge_state'
ANCHOR_NAMESPACE = 'global'


@dataclass(frozen=True)
class AddLiquidity:
    """Arguments of the bridge program's add_liquidity handler"""
    amount: int


AddLiquidityLayout = CStruct('amount' / U64)


def find_bridge_state_address(program_id: PublicKey) -> PublicKey:
    address, _ = derive_program_address(program_id, [BRIDGE_STATE_SEED])
    return address


def add_liquidity(
    program_id: PublicKey,
    depositor: PublicKey,
    mint: PublicKey,
    amount: int,
) -> Instruction:
    """
    Deposit ``amount`` of ``mint`` from the depositor into the bridge vault

    Args:
        program_id: Deployed bridge program
        depositor: Wallet that owns the tokens and signs the transfer
        mint: Mint of the token being deposited
        amount: Amount in base units

    Returns:
        Instruction with an 8-account list in handler order
    """
    bridge_state = find_bridge_state_address(program_id)
    data = discriminator(ANCHOR_NAMESPACE, 'add_liquidity') + encode_args(
        [(AddLiquidityLayout, AddLiquidity(amount=amount))]
    )

    accounts = [
        AccountMeta.writable(bridge_state),
        AccountMeta.writable(derive_associated_address(bridge_state, mint)),
        AccountMeta.readonly(depositor, is_signer=True),
        AccountMeta.readonly(mint),
        AccountMeta.writable(derive_associated_address(depositor, mint)),
        AccountMeta.readonly(SYSTEM_PROGRAM_ID),
        AccountMeta.readonly(TOKEN_PROGRAM_ID),
        AccountMeta.readonly(ASSOCIATED_TOKEN_PROGRAM_ID),
    ]
    return Instruction(program_id=program_id, accounts=accounts, data=data)
