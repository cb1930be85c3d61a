"""Example: Create a fungible token with metadata and mint supply"""

from token_manager import ClientContext, Keypair, SolanaClient
from token_manager.sender import process_create_token, process_mint_to


def main():
    # Initialize client and fee payer
    client = SolanaClient('https://api.devnet.solana.com')
    payer = Keypair.from_file('~/.config/solana/id.json')
    ctx = ClientContext(client=client, signer=payer)

    # The mint account is created by the transaction and must sign it
    mint = Keypair.generate()

    print('Creating token...')
    signature = process_create_token(
        ctx,
        mint,
        decimals=9,
        name='Example Token',
        symbol='EXT',
        uri='https://example.com/token.json',
        validate=True,
    )
    print(f'Mint: {mint.public_key}')
    print(f'Transaction signature: {signature}')

    # Mint 1,000 tokens (9 decimals) to the payer
    print('\nMinting supply...')
    signature = process_mint_to(ctx, mint.public_key, payer.public_key, 1_000 * 10 ** 9)
    print(f'Transaction signature: {signature}')


if __name__ == '__main__':
    main()
