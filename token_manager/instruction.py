"""Instruction and account reference types"""

from dataclasses import dataclass, field
from typing import Tuple

from solders.instruction import AccountMeta as SoldersAccountMeta
from solders.instruction import Instruction as SoldersInstruction

from .publickey import PublicKey


@dataclass(frozen=True)
class AccountMeta:
    """Account referenced by an instruction"""
    pubkey: PublicKey
    is_signer: bool
    is_writable: bool

    @classmethod
    def writable(cls, pubkey: PublicKey, is_signer: bool = False) -> 'AccountMeta':
        return cls(pubkey=pubkey, is_signer=is_signer, is_writable=True)

    @classmethod
    def readonly(cls, pubkey: PublicKey, is_signer: bool = False) -> 'AccountMeta':
        return cls(pubkey=pubkey, is_signer=is_signer, is_writable=False)

    def to_solders(self) -> SoldersAccountMeta:
        return SoldersAccountMeta(self.pubkey.to_solders(), self.is_signer, self.is_writable)


@dataclass(frozen=True)
class Instruction:
    """Program-addressed operation with an ordered account list and opaque data"""
    program_id: PublicKey
    accounts: Tuple[AccountMeta, ...] = field(default_factory=tuple)
    data: bytes = b''

    def __post_init__(self):
        # normalize lists and bytearrays so instances stay hashable
        object.__setattr__(self, 'accounts', tuple(self.accounts))
        object.__setattr__(self, 'data', bytes(self.data))

    def to_solders(self) -> SoldersInstruction:
        return SoldersInstruction(
            self.program_id.to_solders(),
            self.data,
            [meta.to_solders() for meta in self.accounts],
        )
