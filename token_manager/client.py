"""JSON-RPC client for a Solana node"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .errors import AccountNotFoundError, RpcError
from .publickey import PublicKey

logger = logging.getLogger(__name__)

DEFAULT_COMMITMENT = 'confirmed'


@dataclass(frozen=True)
class LatestBlockhash:
    """Recent blockhash and the last block height at which it is valid"""
    blockhash: str
    last_valid_block_height: int


class SolanaClient:
    """Client for interacting with a Solana RPC node"""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30,
        commitment: str = DEFAULT_COMMITMENT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.commitment = commitment
        self._transport = transport
        self._request_id = 1

    def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make an RPC call"""
        request = {
            'jsonrpc': '2.0',
            'id': self._request_id,
            'method': method,
            'params': params or [],
        }
        self._request_id += 1
        logger.debug('rpc %s -> %s', method, self.rpc_url)

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(self.rpc_url, json=request)
            response.raise_for_status()

            result = response.json()

            if 'error' in result:
                error = result['error']
                raise RpcError(error.get('code', -1), error.get('message', ''), error.get('data'))

            return result.get('result')

    def get_latest_blockhash(self, commitment: Optional[str] = None) -> LatestBlockhash:
        """Get latest blockhash"""
        result = self._call('getLatestBlockhash', [{'commitment': commitment or self.commitment}])
        value = result['value']
        return LatestBlockhash(
            blockhash=value['blockhash'],
            last_valid_block_height=value['lastValidBlockHeight'],
        )

    def send_transaction(
        self,
        transaction: str,
        skip_preflight: bool = True,
        preflight_commitment: Optional[str] = None,
    ) -> str:
        """Send a base64 encoded transaction and return its signature"""
        config = {
            'encoding': 'base64',
            'skipPreflight': skip_preflight,
            'preflightCommitment': preflight_commitment or self.commitment,
        }
        return self._call('sendTransaction', [transaction, config])

    def get_account_info(self, address: PublicKey, commitment: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Get account information, or None if the account does not exist"""
        result = self._call(
            'getAccountInfo',
            [str(address), {'encoding': 'base64', 'commitment': commitment or self.commitment}],
        )
        return result['value']

    def get_account_data(self, address: PublicKey, commitment: Optional[str] = None) -> bytes:
        """Get the raw data stored in an account"""
        info = self.get_account_info(address, commitment)
        if info is None:
            raise AccountNotFoundError(address)
        data, encoding = info['data']
        if encoding != 'base64':
            raise RpcError(-1, f'Unexpected account data encoding {encoding!r}')
        return base64.b64decode(data)
