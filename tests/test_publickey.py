from __future__ import annotations

import hashlib

import pytest
from solders.pubkey import Pubkey

from token_manager.errors import AddressDerivationError, NoValidBumpFound
from token_manager.publickey import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    PublicKey,
    create_program_address,
    derive_associated_address,
    derive_program_address,
)

from conftest import keypair

BRIDGE_PROGRAM = PublicKey('Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS')
UPGRADEABLE_LOADER = PublicKey('BPFLoaderUpgradeab1e11111111111111111111111')
METADATA_PROGRAM = PublicKey('metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s')


def test_public_key_base58_round_trip() -> None:
    key = PublicKey('TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA')

    assert str(key) == 'TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA'
    assert PublicKey(bytes(key)) == key
    assert hash(PublicKey(str(key))) == hash(key)
    assert PublicKey(key.to_solders()) == key
    assert PublicKey.default() == PublicKey('11111111111111111111111111111111')


def test_public_key_rejects_wrong_length() -> None:
    with pytest.raises(ValueError):
        PublicKey(b'\x01' * 31)
    with pytest.raises(ValueError):
        PublicKey('0OIl')


@pytest.mark.parametrize('seeds,expected', [
    ([b'', bytes([1])], 'BwqrghZA2htAcqq8dzP1WDAhTXYTYWj7CHxF5j7TDBAe'),
    (['☉'.encode('utf-8'), bytes([0])], '13yWmRpaTR4r5nAktwLqMpRNr28tnVUZw26rTvPSSB19'),
    ([b'Talking', b'Squirrels'], '2fnQrngrQT4SeLcdToJAD96phoEjNL2man2kfRLCASVk'),
])
def test_create_program_address_known_vectors(seeds, expected) -> None:
    address = create_program_address(UPGRADEABLE_LOADER, seeds)

    assert str(address) == expected
    assert not address.is_on_curve()


def test_associated_address_known_vector() -> None:
    owner = PublicKey('B8UwBUUnKwCyKuGMbFKWaG7exYdDk2ozZrPg72NyVbfj')
    mint = PublicKey('7o36UsWR1JQLpZ9PE2gn9L4SQ69CNNiWAXd4Jt7rqz9Z')

    assert str(derive_associated_address(owner, mint)) == 'DShWnroshVbeUp28oopA3Pu7oFPDBtC1DBmPECXXAQ9n'


def test_program_address_is_deterministic() -> None:
    first = derive_program_address(BRIDGE_PROGRAM, [b'bridge_state'])
    second = derive_program_address(BRIDGE_PROGRAM, [b'bridge_state'])

    assert first == second
    address, bump = first
    assert 0 <= bump <= 255
    assert not address.is_on_curve()


def test_program_address_matches_manual_hash() -> None:
    address, bump = derive_program_address(BRIDGE_PROGRAM, [b'bridge_state'])

    digest = hashlib.sha256(
        b'bridge_state' + bytes([bump]) + bytes(BRIDGE_PROGRAM) + b'ProgramDerivedAddress'
    ).digest()
    assert bytes(address) == digest
    assert create_program_address(BRIDGE_PROGRAM, [b'bridge_state', bytes([bump])]) == address


def test_different_seeds_give_different_addresses() -> None:
    a, _ = derive_program_address(BRIDGE_PROGRAM, [b'bridge_state'])
    b, _ = derive_program_address(BRIDGE_PROGRAM, [b'vault'])
    c, _ = derive_program_address(PublicKey(bytes([7]) * 32), [b'bridge_state'])

    assert len({a, b, c}) == 3


def test_real_keys_are_on_curve() -> None:
    for seed in range(1, 6):
        assert keypair(seed).public_key.is_on_curve()
    assert PublicKey(bytes(32)).is_on_curve()


def test_seed_limits_are_enforced() -> None:
    with pytest.raises(AddressDerivationError):
        derive_program_address(BRIDGE_PROGRAM, [b'x' * 33])
    with pytest.raises(AddressDerivationError):
        derive_program_address(BRIDGE_PROGRAM, [b'x'] * 16)

    derive_program_address(BRIDGE_PROGRAM, [b'x' * 32] * 15)


def test_on_curve_results_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(PublicKey, 'is_on_curve', lambda self: True)

    with pytest.raises(AddressDerivationError):
        create_program_address(BRIDGE_PROGRAM, [b'bridge_state', bytes([255])])
    with pytest.raises(NoValidBumpFound):
        derive_program_address(BRIDGE_PROGRAM, [b'bridge_state'])


def test_associated_address_uses_owner_program_mint_seeds() -> None:
    owner = keypair(7).public_key
    mint = keypair(8).public_key

    expected, _ = derive_program_address(
        ASSOCIATED_TOKEN_PROGRAM_ID, [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)]
    )
    assert derive_associated_address(owner, mint) == expected
    assert derive_associated_address(owner, mint) != derive_associated_address(mint, owner)


@pytest.mark.parametrize('program,seeds', [
    (BRIDGE_PROGRAM, [b'bridge_state']),
    (ASSOCIATED_TOKEN_PROGRAM_ID,
     [bytes(keypair(9).public_key), bytes(TOKEN_PROGRAM_ID), bytes(keypair(10).public_key)]),
    (METADATA_PROGRAM, [b'metadata', bytes(METADATA_PROGRAM), bytes(keypair(10).public_key)]),
])
def test_derivation_matches_solders(program, seeds) -> None:
    expected, expected_bump = Pubkey.find_program_address(seeds, program.to_solders())

    address, bump = derive_program_address(program, seeds)

    assert address == PublicKey(expected)
    assert bump == expected_bump
