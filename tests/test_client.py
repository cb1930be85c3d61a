from __future__ import annotations

import base64
import json

import httpx
import pytest

from token_manager.client import LatestBlockhash, SolanaClient
from token_manager.errors import AccountNotFoundError, RpcError

from conftest import BLOCKHASH, keypair


def _client(handler, requests: list) -> SolanaClient:
    def record(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        requests.append(payload)
        return handler(payload)

    return SolanaClient('http://node.test', transport=httpx.MockTransport(record))


def test_get_latest_blockhash_sends_commitment() -> None:
    requests: list = []
    client = _client(
        lambda payload: httpx.Response(200, json={
            'jsonrpc': '2.0',
            'id': payload['id'],
            'result': {'context': {'slot': 1}, 'value': {'blockhash': BLOCKHASH, 'lastValidBlockHeight': 77}},
        }),
        requests,
    )

    latest = client.get_latest_blockhash()

    assert latest == LatestBlockhash(blockhash=BLOCKHASH, last_valid_block_height=77)
    assert requests[0]['method'] == 'getLatestBlockhash'
    assert requests[0]['params'] == [{'commitment': 'confirmed'}]


def test_send_transaction_skips_preflight() -> None:
    requests: list = []
    client = _client(
        lambda payload: httpx.Response(200, json={'jsonrpc': '2.0', 'id': payload['id'], 'result': '5igSig'}),
        requests,
    )

    signature = client.send_transaction('AQID')

    assert signature == '5igSig'
    assert requests[0]['method'] == 'sendTransaction'
    assert requests[0]['params'] == [
        'AQID',
        {'encoding': 'base64', 'skipPreflight': True, 'preflightCommitment': 'confirmed'},
    ]


def test_rpc_error_is_raised_with_details() -> None:
    requests: list = []
    client = _client(
        lambda payload: httpx.Response(200, json={
            'jsonrpc': '2.0',
            'id': payload['id'],
            'error': {'code': -32002, 'message': 'Blockhash not found', 'data': {'logs': []}},
        }),
        requests,
    )

    with pytest.raises(RpcError) as excinfo:
        client.send_transaction('AQID')

    assert excinfo.value.code == -32002
    assert excinfo.value.message == 'Blockhash not found'
    assert excinfo.value.data == {'logs': []}


def test_http_failure_propagates() -> None:
    client = _client(lambda payload: httpx.Response(503, text='unavailable'), [])

    with pytest.raises(httpx.HTTPStatusError):
        client.get_latest_blockhash()


def test_request_ids_increase() -> None:
    requests: list = []
    client = _client(
        lambda payload: httpx.Response(200, json={'jsonrpc': '2.0', 'id': payload['id'], 'result': 'x'}),
        requests,
    )

    client.send_transaction('AQID')
    client.send_transaction('AQID')

    assert [r['id'] for r in requests] == [1, 2]


def test_get_account_data_decodes_base64() -> None:
    address = keypair(1).public_key
    requests: list = []
    client = _client(
        lambda payload: httpx.Response(200, json={
            'jsonrpc': '2.0',
            'id': payload['id'],
            'result': {'context': {'slot': 1}, 'value': {
                'data': [base64.b64encode(b'\x04abc').decode(), 'base64'],
                'executable': False,
                'lamports': 10,
                'owner': '11111111111111111111111111111111',
            }},
        }),
        requests,
    )

    assert client.get_account_data(address) == b'\x04abc'
    assert requests[0]['params'][0] == str(address)
    assert requests[0]['params'][1]['encoding'] == 'base64'


def test_missing_account_raises() -> None:
    client = _client(
        lambda payload: httpx.Response(200, json={
            'jsonrpc': '2.0', 'id': payload['id'], 'result': {'context': {'slot': 1}, 'value': None},
        }),
        [],
    )

    with pytest.raises(AccountNotFoundError):
        client.get_account_data(keypair(1).public_key)
