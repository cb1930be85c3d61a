from __future__ import annotations

import base64
import json

import httpx
import pytest
from nacl.signing import VerifyKey

from token_manager.client import SolanaClient
from token_manager.errors import (
    BlockhashFetchError,
    EmptyInstructionSet,
    MissingSignerError,
    RpcError,
    SubmissionError,
)
from token_manager.metadata import (
    Metadata,
    MetadataChanges,
    create_fungible,
    find_metadata_address,
)
from token_manager.operations import CreateFungible
from token_manager.publickey import PublicKey
from token_manager.sender import (
    ClientContext,
    TransactionSender,
    process_add_liquidity,
    process_create_token,
    process_freeze_account,
    process_update_authority,
    process_update_metadata,
)
from token_manager.token_program import AuthorityType

from conftest import BLOCKHASH, StubClient, keypair
from test_metadata import _metadata_account

PROGRAM_ID = PublicKey('Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS')


def _decode_wire(encoded: str) -> tuple[int, list[bytes], bytes]:
    wire = base64.b64decode(encoded)
    count = wire[0]
    signatures = [wire[1 + 64 * i:1 + 64 * (i + 1)] for i in range(count)]
    return count, signatures, wire[1 + 64 * count:]


def test_send_fetches_blockhash_signs_and_submits(stub_client: StubClient, payer, mint_keypair) -> None:
    instruction = create_fungible(mint_keypair.public_key, payer.public_key, 9, 'Token', 'TKN', 'https://x')

    signature = TransactionSender(stub_client, payer).send([instruction], extra_signers=[mint_keypair])

    assert signature == 'sig-1'
    assert stub_client.blockhash_calls == 1
    encoded, skip_preflight = stub_client.sent[0]
    assert skip_preflight is True
    count, signatures, message = _decode_wire(encoded)
    assert count == 2
    VerifyKey(bytes(payer.public_key)).verify(message, signatures[0])


def test_missing_extra_signer_is_not_submitted(stub_client: StubClient, payer, mint_keypair) -> None:
    instruction = create_fungible(mint_keypair.public_key, payer.public_key, 9, 'Token', 'TKN', 'https://x')

    with pytest.raises(MissingSignerError):
        TransactionSender(stub_client, payer).send([instruction])

    assert stub_client.sent == []


def test_empty_instruction_list_fails_before_network(stub_client: StubClient, payer) -> None:
    with pytest.raises(EmptyInstructionSet):
        TransactionSender(stub_client, payer).send([])

    assert stub_client.blockhash_calls == 0


def test_each_send_fetches_a_fresh_blockhash(stub_client: StubClient, payer) -> None:
    ctx = ClientContext(client=stub_client, signer=payer)

    process_freeze_account(ctx, keypair(2).public_key, keypair(3).public_key)
    process_freeze_account(ctx, keypair(2).public_key, keypair(3).public_key)

    assert stub_client.blockhash_calls == 2
    assert len(stub_client.sent) == 2


class FailingBlockhashClient(StubClient):
    def get_latest_blockhash(self):
        raise httpx.ConnectError('connection refused')


class RejectingClient(StubClient):
    def send_transaction(self, transaction: str, skip_preflight: bool = True) -> str:
        raise RpcError(-32002, 'Transaction simulation failed: insufficient funds', {'err': 'InsufficientFunds'})


def test_blockhash_failure_is_classified(payer) -> None:
    with pytest.raises(BlockhashFetchError) as excinfo:
        process_freeze_account(ClientContext(FailingBlockhashClient(), payer),
                               keypair(2).public_key, keypair(3).public_key)

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_node_rejection_is_classified(payer) -> None:
    with pytest.raises(SubmissionError) as excinfo:
        process_freeze_account(ClientContext(RejectingClient(), payer),
                               keypair(2).public_key, keypair(3).public_key)

    assert excinfo.value.code == -32002
    assert 'insufficient funds' in excinfo.value.reason
    assert excinfo.value.data == {'err': 'InsufficientFunds'}
    assert isinstance(excinfo.value.__cause__, RpcError)


def test_process_create_token_signs_with_mint(stub_client: StubClient, payer, mint_keypair) -> None:
    ctx = ClientContext(client=stub_client, signer=payer)

    assert process_create_token(ctx, mint_keypair, 9, 'Token', 'TKN', 'https://x') == 'sig-1'

    count, signatures, message = _decode_wire(stub_client.sent[0][0])
    assert count == 2
    # header, key count, then fee payer and mint as the two signer keys
    keys = [message[4 + 32 * i:4 + 32 * (i + 1)] for i in range(2)]
    assert keys[0] == bytes(payer.public_key)
    assert keys[1] == bytes(mint_keypair.public_key)
    VerifyKey(keys[1]).verify(message, signatures[1])


def test_process_update_metadata_reads_current_record(payer) -> None:
    mint = keypair(2).public_key
    account = _metadata_account(payer.public_key, mint, keypair(4).public_key)
    client = StubClient(accounts={find_metadata_address(mint): account})
    ctx = ClientContext(client=client, signer=payer)

    assert process_update_metadata(ctx, mint, MetadataChanges(name='Renamed')) == 'sig-1'

    _, _, message = _decode_wire(client.sent[0][0])
    assert b'Renamed' in message
    assert b'TKN' in message
    assert Metadata.decode(account).name == 'Token'


def test_process_update_authority_and_liquidity(stub_client: StubClient, payer) -> None:
    ctx = ClientContext(client=stub_client, signer=payer)

    process_update_authority(ctx, keypair(2).public_key, AuthorityType.MINT_TOKENS)
    process_add_liquidity(ctx, PROGRAM_ID, 1_000_000, keypair(2).public_key)

    assert len(stub_client.sent) == 2
    for encoded, _ in stub_client.sent:
        count, _, _ = _decode_wire(encoded)
        assert count == 1


def _node(send_reply: httpx.Response) -> SolanaClient:
    def handle(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if payload['method'] == 'getLatestBlockhash':
            return httpx.Response(200, json={
                'jsonrpc': '2.0',
                'id': payload['id'],
                'result': {'context': {'slot': 1}, 'value': {'blockhash': BLOCKHASH, 'lastValidBlockHeight': 9}},
            })
        return send_reply

    return SolanaClient('http://node.test', transport=httpx.MockTransport(handle))


@pytest.mark.parametrize('reply', [
    httpx.Response(200, text='<html>gateway</html>'),
    httpx.Response(200, json={'jsonrpc': '2.0', 'id': 2}),
    httpx.Response(200, json={'jsonrpc': '2.0', 'id': 2, 'result': ''}),
    httpx.Response(502, text='bad gateway'),
])
def test_unusable_node_replies_are_submission_errors(payer, reply: httpx.Response) -> None:
    ctx = ClientContext(client=_node(reply), signer=payer)

    with pytest.raises(SubmissionError):
        process_freeze_account(ctx, keypair(2).public_key, keypair(3).public_key)


def test_execute_checks_operation_signers_before_network(stub_client: StubClient, payer, mint_keypair) -> None:
    ctx = ClientContext(client=stub_client, signer=payer)
    operation = CreateFungible(
        mint=mint_keypair.public_key, authority=payer.public_key,
        decimals=9, name='Token', symbol='TKN', uri='https://x',
    )

    with pytest.raises(MissingSignerError) as excinfo:
        ctx.execute(operation, extra_signers=[keypair(6)])

    assert excinfo.value.missing == [mint_keypair.public_key]
    assert stub_client.blockhash_calls == 0
    assert stub_client.sent == []

    assert ctx.execute(operation, extra_signers=[mint_keypair]) == 'sig-1'
