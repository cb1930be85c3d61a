"""Token manager: build, sign and submit SPL token and Metaplex metadata transactions"""

__version__ = '0.1.0'

from .client import SolanaClient
from .errors import (
    AddressDerivationError,
    BlockhashFetchError,
    EmptyInstructionSet,
    EncodingRangeError,
    MissingSignerError,
    NoValidBumpFound,
    SubmissionError,
    TokenManagerError,
)
from .instruction import AccountMeta, Instruction
from .keypair import Keypair
from .operations import build_instruction
from .publickey import PublicKey, derive_associated_address, derive_program_address
from .sender import ClientContext, TransactionSender
from .transaction import Message, Transaction, TransactionBuilder, assemble

__all__ = [
    'AccountMeta',
    'AddressDerivationError',
    'BlockhashFetchError',
    'ClientContext',
    'EmptyInstructionSet',
    'EncodingRangeError',
    'Instruction',
    'Keypair',
    'Message',
    'MissingSignerError',
    'NoValidBumpFound',
    'PublicKey',
    'SolanaClient',
    'SubmissionError',
    'TokenManagerError',
    'Transaction',
    'TransactionBuilder',
    'TransactionSender',
    'assemble',
    'build_instruction',
    'derive_associated_address',
    'derive_program_address',
]
