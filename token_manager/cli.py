"""Command line interface for creating and managing fungible tokens"""

import argparse
import logging
import sys
from typing import Optional, Sequence

import httpx

from . import __version__
from .client import SolanaClient
from .config import CliConfig, load_cli_config
from .errors import TokenManagerError
from .keypair import Keypair
from .metadata import MetadataChanges, UpdateMetadataArgs, apply_metadata_changes
from .publickey import PublicKey
from .sender import (
    ClientContext,
    fetch_metadata,
    process_add_liquidity,
    process_create_token,
    process_freeze_account,
    process_mint_to,
    process_transfer_to,
    process_unfreeze_account,
    process_update_authority,
    process_update_metadata,
)
from .token_program import AuthorityType

logger = logging.getLogger(__name__)

AUTHORITY_CHOICES = {
    'mint': AuthorityType.MINT_TOKENS,
    'freeze': AuthorityType.FREEZE_ACCOUNT,
}


class CLIError(TokenManagerError):
    """Raised when CLI arguments are invalid."""


def _pubkey(raw: str) -> PublicKey:
    try:
        return PublicKey(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f'invalid public key: {raw}') from exc


def _unsigned(bits: int):
    def parse(raw: str) -> int:
        try:
            value = int(raw)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f'invalid integer: {raw}') from exc
        if not 0 <= value < 1 << bits:
            raise argparse.ArgumentTypeError(f'{raw} is out of range for u{bits}')
        return value
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='token-manager',
        description='Create, mint, transfer and administer SPL tokens with Metaplex metadata',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-C', '--config', dest='config_file', metavar='PATH',
                        help='Configuration file to use')
    parser.add_argument('--keypair', metavar='KEYPAIR',
                        help='Filepath to a keypair [default: client keypair]')
    parser.add_argument('-u', '--url', dest='json_rpc_url', metavar='URL',
                        help='JSON RPC URL or moniker for the cluster [default: value from configuration file]')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show additional information')
    subparsers = parser.add_subparsers(dest='command', required=True)

    create = subparsers.add_parser('createTokenWithMetadata', help='Creates a new token with metadata')
    create.add_argument('decimals', type=_unsigned(8), help='Token decimals')
    create.add_argument('name', help='Name')
    create.add_argument('symbol', help='Symbol')
    create.add_argument('uri', help='URI')
    create.add_argument('mint_keypair', nargs='?', metavar='MINT_KEYPAIR',
                        help='Mint keypair file (leave blank to generate new keypair)')
    create.add_argument('--validate', action='store_true',
                        help='Check name/symbol/URI length limits before submitting')

    mint_to = subparsers.add_parser('mintTo', help='Mints tokens to a specific account')
    mint_to.add_argument('receiver_account', type=_pubkey, help='Receiver account')
    mint_to.add_argument('mint_pubkey', type=_pubkey, help='Mint pubkey')
    mint_to.add_argument('amount', type=_unsigned(64), help='Amount to mint')

    transfer = subparsers.add_parser('transferTo', help='Transfer tokens from signer to receiver')
    transfer.add_argument('receiver_account', type=_pubkey, help='Receiver account')
    transfer.add_argument('mint_pubkey', type=_pubkey, help='Mint pubkey')
    transfer.add_argument('amount', type=_unsigned(64), help='Amount to transfer')

    for command, help_text in (('freeze', 'Freeze an account'), ('unfreeze', 'Unfreeze an account')):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument('account', type=_pubkey, help=f'Account to {command}')
        sub.add_argument('mint_pubkey', type=_pubkey, help='Mint pubkey')

    update = subparsers.add_parser('updateMetadata', help='Updates metadata for a token')
    update.add_argument('mint_pubkey', type=_pubkey, help='Mint pubkey')
    update.add_argument('--name', help='New name')
    update.add_argument('--symbol', help='New symbol')
    update.add_argument('--uri', help='New URI')
    update.add_argument('--seller-fee-basis-points', type=_unsigned(16), help='New seller fee basis points')
    mutability = update.add_mutually_exclusive_group()
    mutability.add_argument('--mutable', dest='is_mutable', action='store_const', const=True,
                            help='Keep the metadata mutable')
    mutability.add_argument('--immutable', dest='is_mutable', action='store_const', const=False,
                            help='Make the metadata immutable (irreversible)')
    update.add_argument('--new-update-authority', type=_pubkey, help='Update authority address')
    update.add_argument('--validate', action='store_true',
                        help='Check name/symbol/URI length limits before submitting')
    update.add_argument('--dry-run', action='store_true', help='Print the new metadata without submitting')

    authorities = subparsers.add_parser('updateAuthorities', help='Updates authorities for a token (Mint, Freeze)')
    authorities.add_argument('mint_pubkey', type=_pubkey, help='Mint pubkey')
    authorities.add_argument('authority', choices=sorted(AUTHORITY_CHOICES), help='Authority to update')
    action = authorities.add_mutually_exclusive_group(required=True)
    action.add_argument('--new-authority', type=_pubkey, help='New authority address')
    action.add_argument('--revoke', action='store_true', help='Revoke the authority permanently')

    liquidity = subparsers.add_parser('addToLiquidity', help='Add token supply to bridge contract as liquidity')
    liquidity.add_argument('amount', type=_unsigned(64), help='Amount to add')
    liquidity.add_argument('mint_of_token_sent', type=_pubkey, help='Mint of token sent')
    liquidity.add_argument('program_id', type=_pubkey, nargs='?',
                           help='Bridge Program ID (leave blank to use the configured default)')

    return parser


def load_context(args: argparse.Namespace) -> tuple:
    overrides = {}
    if args.json_rpc_url:
        overrides['json_rpc_url'] = args.json_rpc_url
    if args.keypair:
        overrides['keypair_path'] = args.keypair
    config = load_cli_config(config_path=args.config_file, overrides=overrides)

    if args.verbose:
        print(f'JSON RPC URL: {config.json_rpc_url}')
        print(f'Websocket URL: {config.websocket_url}')

    client = SolanaClient(config.json_rpc_url, commitment=config.commitment)
    signer = Keypair.from_file(config.keypair_path)
    return config, ClientContext(client=client, signer=signer)


def cmd_create(ctx: ClientContext, args: argparse.Namespace) -> str:
    mint = Keypair.from_file(args.mint_keypair) if args.mint_keypair else Keypair.generate()
    print(f'Mint: {mint.public_key}')
    return process_create_token(
        ctx, mint, args.decimals, args.name, args.symbol, args.uri, validate=args.validate,
    )


def cmd_update_metadata(ctx: ClientContext, args: argparse.Namespace) -> Optional[str]:
    changes = MetadataChanges(
        name=args.name,
        symbol=args.symbol,
        uri=args.uri,
        seller_fee_basis_points=args.seller_fee_basis_points,
        is_mutable=args.is_mutable,
        new_update_authority=args.new_update_authority,
    )
    current = fetch_metadata(ctx.client, args.mint_pubkey)
    print('Current metadata:')
    print(current)

    update = apply_metadata_changes(current, changes)
    print('New metadata:')
    print(update)

    if update == UpdateMetadataArgs():
        raise CLIError('Nothing to update; pass at least one of the update options')
    if args.dry_run:
        return None
    return process_update_metadata(ctx, args.mint_pubkey, changes, current=current, validate=args.validate)


def cmd_add_liquidity(config: CliConfig, ctx: ClientContext, args: argparse.Namespace) -> str:
    program_id = args.program_id or config.bridge_program_id
    if program_id is None:
        raise CLIError(
            'No bridge program id given; pass PROGRAM_ID or set TOKEN_MANAGER_BRIDGE_PROGRAM_ID'
        )
    return process_add_liquidity(ctx, program_id, args.amount, args.mint_of_token_sent)


def run(args: argparse.Namespace) -> Optional[str]:
    config, ctx = load_context(args)

    if args.command == 'createTokenWithMetadata':
        return cmd_create(ctx, args)
    if args.command == 'mintTo':
        return process_mint_to(ctx, args.mint_pubkey, args.receiver_account, args.amount)
    if args.command == 'transferTo':
        return process_transfer_to(ctx, args.mint_pubkey, args.receiver_account, args.amount)
    if args.command == 'freeze':
        return process_freeze_account(ctx, args.mint_pubkey, args.account)
    if args.command == 'unfreeze':
        return process_unfreeze_account(ctx, args.mint_pubkey, args.account)
    if args.command == 'updateMetadata':
        return cmd_update_metadata(ctx, args)
    if args.command == 'updateAuthorities':
        return process_update_authority(
            ctx, args.mint_pubkey, AUTHORITY_CHOICES[args.authority], args.new_authority,
        )
    if args.command == 'addToLiquidity':
        return cmd_add_liquidity(config, ctx, args)
    raise CLIError(f'Unknown command: {args.command}')


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        signature = run(args)
    except KeyboardInterrupt:
        logger.info('Interrupted by user')
        return 1
    except (TokenManagerError, httpx.HTTPError) as exc:
        print(f'error: {exc}', file=sys.stderr)
        return 1

    if signature is not None:
        print(f'Signature: {signature}')
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
