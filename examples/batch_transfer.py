"""Example: Send several transfers in a single transaction"""

from token_manager import Keypair, PublicKey, SolanaClient, TransactionSender
from token_manager.metadata import transfer


def main():
    client = SolanaClient('http://localhost:8899', commitment='processed')
    sender = Keypair.from_file('~/.config/solana/id.json')

    mint = PublicKey('So11111111111111111111111111111111111111112')
    payouts = {
        PublicKey('9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin'): 250_000,
        PublicKey('4Nd1mBQtrMJVYVfKf2PJy9NZUZdTAsp7D4xWLs4gDB4T'): 750_000,
    }

    instructions = [
        transfer(mint=mint, owner=sender.public_key, receiver=receiver, amount=amount)
        for receiver, amount in payouts.items()
    ]

    print(f'Sending {len(instructions)} transfers...')
    signature = TransactionSender(client, sender).send(instructions)
    print(f'Transaction signature: {signature}')


if __name__ == '__main__':
    main()
