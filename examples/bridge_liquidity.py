"""Example: Add token liquidity to the bridge program"""

from token_manager import ClientContext, Keypair, PublicKey, SolanaClient
from token_manager.bridge import find_bridge_state_address
from token_manager.sender import process_add_liquidity


def main():
    client = SolanaClient('https://api.devnet.solana.com')
    ctx = ClientContext(client=client, signer=Keypair.from_file('~/.config/solana/id.json'))

    program_id = PublicKey('Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS')
    mint = PublicKey('EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v')

    print(f'Bridge state: {find_bridge_state_address(program_id)}')
    print('Adding liquidity...')
    signature = process_add_liquidity(ctx, program_id, amount=1_000_000, mint=mint)
    print(f'Transaction signature: {signature}')


if __name__ == '__main__':
    main()
