from __future__ import annotations

import base58
import pytest

from token_manager.client import LatestBlockhash
from token_manager.keypair import Keypair
from token_manager.publickey import PublicKey

BLOCKHASH = base58.b58encode(bytes(range(1, 33))).decode('ascii')


class StubClient:
    """Stands in for SolanaClient; records what the pipeline sends"""

    def __init__(self, blockhash: str = BLOCKHASH, signature: str = 'sig-1', accounts=None) -> None:
        self.blockhash = blockhash
        self.signature = signature
        self.accounts = dict(accounts or {})
        self.blockhash_calls = 0
        self.sent: list[tuple[str, bool]] = []
        self.commitment = 'confirmed'

    def get_latest_blockhash(self) -> LatestBlockhash:
        self.blockhash_calls += 1
        return LatestBlockhash(blockhash=self.blockhash, last_valid_block_height=1000)

    def send_transaction(self, transaction: str, skip_preflight: bool = True) -> str:
        self.sent.append((transaction, skip_preflight))
        return self.signature

    def get_account_data(self, address: PublicKey) -> bytes:
        return self.accounts[address]


def keypair(seed_byte: int) -> Keypair:
    return Keypair.from_seed(bytes([seed_byte]) * 32)


@pytest.fixture
def payer() -> Keypair:
    return keypair(1)


@pytest.fixture
def mint_keypair() -> Keypair:
    return keypair(2)


@pytest.fixture
def receiver() -> PublicKey:
    return keypair(3).public_key


@pytest.fixture
def stub_client() -> StubClient:
    return StubClient()
