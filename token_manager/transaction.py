"""Transaction assembly, serialization and signing"""

import base64
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

import base58
from solders.message import Message as SoldersMessage

from .errors import EmptyInstructionSet, MissingSignerError
from .instruction import Instruction
from .keypair import SIGNATURE_LENGTH
from .publickey import PublicKey

BLOCKHASH_LENGTH = 32
MAX_ACCOUNT_KEYS = 256


@dataclass(frozen=True)
class MessageHeader:
    """Transaction message header"""
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int


@dataclass(frozen=True)
class CompiledInstruction:
    """Compiled instruction"""
    program_id_index: int
    accounts: Tuple[int, ...]
    data: bytes


@dataclass(frozen=True)
class Message:
    """Transaction message"""
    header: MessageHeader
    account_keys: Tuple[PublicKey, ...]
    instructions: Tuple[CompiledInstruction, ...]
    recent_blockhash: Optional[str] = None

    @property
    def fee_payer(self) -> PublicKey:
        return self.account_keys[0]

    @property
    def signer_keys(self) -> Tuple[PublicKey, ...]:
        return self.account_keys[:self.header.num_required_signatures]

    def is_signer(self, index: int) -> bool:
        return index < self.header.num_required_signatures

    def is_writable(self, index: int) -> bool:
        header = self.header
        if index < header.num_required_signatures:
            return index < header.num_required_signatures - header.num_readonly_signed_accounts
        return index < len(self.account_keys) - header.num_readonly_unsigned_accounts

    def with_blockhash(self, blockhash: str) -> 'Message':
        """Copy of this message bound to a recent blockhash"""
        return replace(self, recent_blockhash=blockhash)

    def serialize(self) -> bytes:
        """Serialize message to bytes"""
        if self.recent_blockhash is None:
            raise ValueError('Recent blockhash not set')
        blockhash = base58.b58decode(self.recent_blockhash)
        if len(blockhash) != BLOCKHASH_LENGTH:
            raise ValueError(f'Blockhash must decode to {BLOCKHASH_LENGTH} bytes')

        parts = []

        # Header
        parts.append(bytes([
            self.header.num_required_signatures,
            self.header.num_readonly_signed_accounts,
            self.header.num_readonly_unsigned_accounts,
        ]))

        # Account keys
        parts.append(encode_length(len(self.account_keys)))
        for key in self.account_keys:
            parts.append(bytes(key))

        parts.append(blockhash)

        # Instructions
        parts.append(encode_length(len(self.instructions)))
        for instruction in self.instructions:
            parts.append(bytes([instruction.program_id_index]))
            parts.append(encode_length(len(instruction.accounts)))
            parts.append(bytes(instruction.accounts))
            parts.append(encode_length(len(instruction.data)))
            parts.append(instruction.data)

        return b''.join(parts)


def encode_length(length: int) -> bytes:
    """Encode length as compact-u16"""
    if length < 0 or length > 0xffff:
        raise ValueError(f'Length {length} does not fit in compact-u16')
    result = []
    while length > 0x7f:
        result.append((length & 0x7f) | 0x80)
        length >>= 7
    result.append(length)
    return bytes(result)


def assemble(instructions: Iterable[Instruction], fee_payer: PublicKey) -> Message:
    """
    Compile instructions into an unsigned message paid for by fee_payer

    Compilation is delegated to ``solders.message.Message``: keys referenced
    by several instructions appear once with their signer and writable flags
    OR-ed together, the fee payer is the first writable signer, and the
    remaining keys are grouped (writable signers, readonly signers, writable
    non-signers, readonly non-signers) in byte order. The recent blockhash is
    left unset.
    """
    instructions = list(instructions)
    if not instructions:
        raise EmptyInstructionSet()

    unique_keys = {fee_payer}
    for instruction in instructions:
        unique_keys.add(instruction.program_id)
        unique_keys.update(meta.pubkey for meta in instruction.accounts)
    if len(unique_keys) > MAX_ACCOUNT_KEYS:
        raise ValueError(f'Transaction references {len(unique_keys)} accounts (max {MAX_ACCOUNT_KEYS})')

    compiled = SoldersMessage(
        [instruction.to_solders() for instruction in instructions],
        fee_payer.to_solders(),
    )
    header = MessageHeader(
        num_required_signatures=compiled.header.num_required_signatures,
        num_readonly_signed_accounts=compiled.header.num_readonly_signed_accounts,
        num_readonly_unsigned_accounts=compiled.header.num_readonly_unsigned_accounts,
    )
    return Message(
        header=header,
        account_keys=tuple(PublicKey(key) for key in compiled.account_keys),
        instructions=tuple(
            CompiledInstruction(
                program_id_index=instruction.program_id_index,
                accounts=tuple(instruction.accounts),
                data=bytes(instruction.data),
            )
            for instruction in compiled.instructions
        ),
    )


class Transaction:
    """Transaction object"""

    def __init__(self, message: Message):
        self.message = message
        self.signatures: List[bytes] = [bytes(SIGNATURE_LENGTH)] * message.header.num_required_signatures

    @property
    def signature(self) -> Optional[str]:
        """Transaction id: base58 of the fee payer signature"""
        if not self.is_signed():
            return None
        return base58.b58encode(self.signatures[0]).decode('ascii')

    def is_signed(self) -> bool:
        return all(sig != bytes(SIGNATURE_LENGTH) for sig in self.signatures)

    def sign(self, signers: Iterable) -> 'Transaction':
        """
        Sign the message with every required signer

        Args:
            signers: Objects exposing ``public_key`` and ``sign(message)``;
                signers the message does not require are ignored

        Raises:
            MissingSignerError: if a required signer is not supplied
        """
        by_key = {signer.public_key: signer for signer in signers}
        required = self.message.signer_keys
        missing = [key for key in required if key not in by_key]
        if missing:
            raise MissingSignerError(missing)

        payload = self.message.serialize()
        self.signatures = [by_key[key].sign(payload) for key in required]
        return self

    def serialize(self) -> bytes:
        """Serialize transaction to bytes"""
        if not self.is_signed():
            missing = [
                key for key, sig in zip(self.message.signer_keys, self.signatures)
                if sig == bytes(SIGNATURE_LENGTH)
            ]
            raise MissingSignerError(missing)

        parts = [encode_length(len(self.signatures))]
        parts.extend(self.signatures)
        parts.append(self.message.serialize())
        return b''.join(parts)

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode('ascii')


class TransactionBuilder:
    """Builder for constructing transactions"""

    def __init__(self, fee_payer: PublicKey):
        self.fee_payer = fee_payer
        self.instructions: List[Instruction] = []
        self.recent_blockhash: Optional[str] = None

    def add_instruction(self, instruction: Instruction) -> 'TransactionBuilder':
        """Add an instruction"""
        self.instructions.append(instruction)
        return self

    def set_recent_blockhash(self, blockhash: str) -> 'TransactionBuilder':
        """Set recent blockhash"""
        self.recent_blockhash = blockhash
        return self

    def build(self) -> Transaction:
        """Build the unsigned transaction"""
        if self.recent_blockhash is None:
            raise ValueError('Recent blockhash not set')
        message = assemble(self.instructions, self.fee_payer).with_blockhash(self.recent_blockhash)
        return Transaction(message)
