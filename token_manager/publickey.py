"""Public keys and deterministic address derivation"""

import hashlib
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import base58
from solders.pubkey import Pubkey

from .errors import AddressDerivationError, NoValidBumpFound

PUBLIC_KEY_LENGTH = 32
MAX_SEED_LENGTH = 32
MAX_SEEDS = 16
PDA_MARKER = b'ProgramDerivedAddress'


class PublicKey:
    """32-byte account or program address backed by a solders ``Pubkey``"""

    __slots__ = ('_pubkey',)

    def __init__(self, value: Union[bytes, bytearray, str, Pubkey, 'PublicKey']):
        if isinstance(value, PublicKey):
            self._pubkey = value._pubkey
            return
        if isinstance(value, Pubkey):
            self._pubkey = value
            return

        if isinstance(value, str):
            try:
                key = base58.b58decode(value)
            except ValueError as exc:
                raise ValueError(f'Invalid base58 public key: {value!r}') from exc
        elif isinstance(value, (bytes, bytearray)):
            key = bytes(value)
        else:
            raise TypeError(f'Cannot build a public key from {type(value).__name__}')

        if len(key) != PUBLIC_KEY_LENGTH:
            raise ValueError(f'Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(key)}')
        self._pubkey = Pubkey.from_bytes(key)

    @classmethod
    def from_string(cls, value: str) -> 'PublicKey':
        """Parse a base58 encoded key"""
        return cls(value)

    @classmethod
    def default(cls) -> 'PublicKey':
        """All-zero key (the system program)"""
        return cls(Pubkey.default())

    def to_solders(self) -> Pubkey:
        return self._pubkey

    def is_on_curve(self) -> bool:
        return self._pubkey.is_on_curve()

    def __bytes__(self) -> bytes:
        return bytes(self._pubkey)

    def __str__(self) -> str:
        return str(self._pubkey)

    def __repr__(self) -> str:
        return f'PublicKey({str(self)!r})'

    def __eq__(self, other) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return bytes(self) == bytes(other)

    def __lt__(self, other: 'PublicKey') -> bool:
        return bytes(self) < bytes(other)

    def __hash__(self) -> int:
        return hash(bytes(self))


def _check_seeds(seeds: Sequence[bytes], extra: int = 0) -> List[bytes]:
    seeds = [bytes(seed) for seed in seeds]
    if len(seeds) + extra > MAX_SEEDS:
        raise AddressDerivationError(f'Too many seeds: {len(seeds)} (max {MAX_SEEDS - extra})')
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise AddressDerivationError(
                f'Seed of {len(seed)} bytes exceeds the maximum of {MAX_SEED_LENGTH}'
            )
    return seeds


def _hash_seeds(program_id: PublicKey, seeds: Iterable[bytes]) -> bytes:
    hasher = hashlib.sha256()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(bytes(program_id))
    hasher.update(PDA_MARKER)
    return hasher.digest()


def _off_curve_candidate(program_id: PublicKey, seeds: Iterable[bytes]) -> Optional[PublicKey]:
    candidate = PublicKey(_hash_seeds(program_id, seeds))
    if candidate.is_on_curve():
        return None
    return candidate


def create_program_address(program_id: PublicKey, seeds: Sequence[bytes]) -> PublicKey:
    """Hash seeds into an address, rejecting candidates that lie on the curve"""
    candidate = _off_curve_candidate(program_id, _check_seeds(seeds))
    if candidate is None:
        raise AddressDerivationError('Derived address lies on the ed25519 curve')
    return candidate


def derive_program_address(program_id: PublicKey, seeds: Sequence[bytes]) -> Tuple[PublicKey, int]:
    """
    Find the canonical program-derived address for the given seeds

    Bump seeds are tried from 255 down to 0 and the first off-curve hash wins,
    matching ``Pubkey.find_program_address``. Exhausting every bump raises
    ``NoValidBumpFound``.

    Args:
        program_id: Program that owns the derived address
        seeds: Ordered seed byte strings, each at most 32 bytes

    Returns:
        Tuple of (address, bump)
    """
    seeds = _check_seeds(seeds, extra=1)
    for bump in range(255, -1, -1):
        candidate = _off_curve_candidate(program_id, seeds + [bytes([bump])])
        if candidate is not None:
            return candidate, bump
    raise NoValidBumpFound(program_id)


SYSTEM_PROGRAM_ID = PublicKey('11111111111111111111111111111111')
TOKEN_PROGRAM_ID = PublicKey('TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA')
ASSOCIATED_TOKEN_PROGRAM_ID = PublicKey('ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL')
SYSVAR_INSTRUCTIONS_ID = PublicKey('Sysvar1nstructions1111111111111111111111111')


def derive_associated_address(
    owner: PublicKey,
    mint: PublicKey,
    token_program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> PublicKey:
    """Associated token account address for an (owner, mint) pair"""
    address, _ = derive_program_address(
        ASSOCIATED_TOKEN_PROGRAM_ID,
        [bytes(owner), bytes(token_program_id), bytes(mint)],
    )
    return address
