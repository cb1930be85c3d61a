"""Sign and submit transactions, plus one helper per supported operation"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import httpx

from . import operations
from .client import SolanaClient
from .errors import BlockhashFetchError, MissingSignerError, RpcError, SubmissionError
from .instruction import Instruction
from .keypair import Keypair
from .metadata import Metadata, MetadataChanges, apply_metadata_changes, find_metadata_address
from .publickey import PublicKey
from .token_program import AuthorityType
from .transaction import Transaction, assemble

logger = logging.getLogger(__name__)


class TransactionSender:
    """
    Turns instructions into a submitted transaction

    Each call to :meth:`send` walks Built -> BlockhashFetched -> Signed ->
    Submitted once. A fresh blockhash is fetched for every call and nothing is
    retried; the returned signature means the node accepted the transaction,
    not that it is finalized.
    """

    def __init__(self, client: SolanaClient, fee_payer: Keypair, skip_preflight: bool = True):
        self.client = client
        self.fee_payer = fee_payer
        self.skip_preflight = skip_preflight

    def fetch_blockhash(self) -> str:
        try:
            latest = self.client.get_latest_blockhash()
        except (httpx.HTTPError, RpcError, KeyError, TypeError, ValueError) as exc:
            raise BlockhashFetchError(f'Unable to get latest blockhash: {exc}') from exc
        logger.debug('Fetched blockhash %s (valid until height %d)',
                     latest.blockhash, latest.last_valid_block_height)
        return latest.blockhash

    def sign(self, instructions: Sequence[Instruction], blockhash: str,
             extra_signers: Iterable[Keypair] = ()) -> Transaction:
        message = assemble(instructions, self.fee_payer.public_key).with_blockhash(blockhash)
        transaction = Transaction(message)
        transaction.sign([self.fee_payer, *extra_signers])
        logger.debug('Signed transaction %s with %d signature(s)',
                     transaction.signature, len(transaction.signatures))
        return transaction

    def submit(self, transaction: Transaction) -> str:
        encoded = transaction.to_base64()
        try:
            signature = self.client.send_transaction(encoded, skip_preflight=self.skip_preflight)
        except RpcError as exc:
            raise SubmissionError(exc.message, code=exc.code, data=exc.data) from exc
        except httpx.HTTPError as exc:
            raise SubmissionError(str(exc)) from exc
        except ValueError as exc:
            raise SubmissionError(f'Malformed response from node: {exc}') from exc
        if not isinstance(signature, str) or not signature:
            raise SubmissionError(f'Node returned no transaction signature: {signature!r}')
        logger.debug('Submitted transaction %s', signature)
        return signature

    def send(self, instructions: Sequence[Instruction], extra_signers: Iterable[Keypair] = ()) -> str:
        """
        Assemble, sign and submit instructions as one transaction

        Args:
            instructions: Instructions in execution order
            extra_signers: Signers besides the fee payer (e.g. a new mint keypair)

        Returns:
            Transaction signature reported by the node
        """
        # Assemble before touching the network so empty input fails fast
        assemble(instructions, self.fee_payer.public_key)
        blockhash = self.fetch_blockhash()
        transaction = self.sign(instructions, blockhash, extra_signers)
        return self.submit(transaction)


@dataclass
class ClientContext:
    """RPC client and default signer shared by one invocation"""
    client: SolanaClient
    signer: Keypair

    @property
    def sender(self) -> TransactionSender:
        return TransactionSender(self.client, self.signer)

    def execute(self, operation: operations.Operation, extra_signers: Iterable[Keypair] = ()) -> str:
        extra_signers = list(extra_signers)
        supplied = {signer.public_key for signer in extra_signers}
        missing = [key for key in operations.additional_signers(operation) if key not in supplied]
        if missing:
            raise MissingSignerError(missing)
        instruction = operations.build_instruction(operation)
        return self.sender.send([instruction], extra_signers)


def process_create_token(
    ctx: ClientContext,
    mint: Keypair,
    decimals: int,
    name: str,
    symbol: str,
    uri: str,
    validate: bool = False,
) -> str:
    operation = operations.CreateFungible(
        mint=mint.public_key,
        authority=ctx.signer.public_key,
        decimals=decimals,
        name=name,
        symbol=symbol,
        uri=uri,
        validate=validate,
    )
    return ctx.execute(operation, extra_signers=[mint])


def process_mint_to(ctx: ClientContext, mint: PublicKey, receiver: PublicKey, amount: int) -> str:
    return ctx.execute(operations.MintTo(
        mint=mint, receiver=receiver, amount=amount, authority=ctx.signer.public_key,
    ))


def process_transfer_to(ctx: ClientContext, mint: PublicKey, receiver: PublicKey, amount: int) -> str:
    return ctx.execute(operations.Transfer(
        mint=mint, sender=ctx.signer.public_key, receiver=receiver, amount=amount,
    ))


def process_freeze_account(ctx: ClientContext, mint: PublicKey, owner: PublicKey) -> str:
    return ctx.execute(operations.FreezeAccount(
        mint=mint, owner=owner, freeze_authority=ctx.signer.public_key,
    ))


def process_unfreeze_account(ctx: ClientContext, mint: PublicKey, owner: PublicKey) -> str:
    return ctx.execute(operations.ThawAccount(
        mint=mint, owner=owner, freeze_authority=ctx.signer.public_key,
    ))


def fetch_metadata(client: SolanaClient, mint: PublicKey) -> Metadata:
    """Read and decode the metadata account of ``mint``"""
    return Metadata.decode(client.get_account_data(find_metadata_address(mint)))


def process_update_metadata(
    ctx: ClientContext,
    mint: PublicKey,
    changes: MetadataChanges,
    current: Optional[Metadata] = None,
    validate: bool = False,
) -> str:
    """Apply ``changes`` on top of the on-chain record and submit the update"""
    if current is None:
        current = fetch_metadata(ctx.client, mint)
    args = apply_metadata_changes(current, changes)
    return ctx.execute(operations.UpdateMetadata(
        mint=mint, update_authority=ctx.signer.public_key, args=args, validate=validate,
    ))


def process_update_authority(
    ctx: ClientContext,
    mint: PublicKey,
    authority_type: AuthorityType,
    new_authority: Optional[PublicKey] = None,
) -> str:
    return ctx.execute(operations.UpdateAuthority(
        mint=mint,
        authority_type=authority_type,
        current_authority=ctx.signer.public_key,
        new_authority=new_authority,
    ))


def process_add_liquidity(ctx: ClientContext, program_id: PublicKey, amount: int, mint: PublicKey) -> str:
    return ctx.execute(operations.AddLiquidity(
        program_id=program_id, depositor=ctx.signer.public_key, mint=mint, amount=amount,
    ))
