"""Error types raised by the token manager pipeline"""

from typing import Any, List, Optional


class TokenManagerError(Exception):
    """Base class for all token manager errors"""


class AddressDerivationError(TokenManagerError):
    """Raised when a program address cannot be derived from the given seeds"""


class NoValidBumpFound(AddressDerivationError):
    """Raised when every bump seed produces an on-curve candidate"""

    def __init__(self, program_id: Any):
        self.program_id = program_id
        super().__init__(f'Unable to find a viable program address bump seed for {program_id}')


class EncodingRangeError(TokenManagerError):
    """Raised when an argument does not fit its declared width or type"""


class DecodingError(TokenManagerError):
    """Raised when account or instruction bytes cannot be decoded"""


class EmptyInstructionSet(TokenManagerError):
    """Raised when a transaction is assembled without instructions"""

    def __init__(self):
        super().__init__('Cannot assemble a transaction without instructions')


class MissingSignerError(TokenManagerError):
    """Raised when a required signer has no signing capability"""

    def __init__(self, missing: List[Any]):
        self.missing = list(missing)
        keys = ', '.join(str(key) for key in self.missing)
        super().__init__(f'Missing signature for required signer(s): {keys}')


class RpcError(TokenManagerError):
    """RPC Error"""

    def __init__(self, code: int, message: str, data: Optional[Any] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f'RPC Error {code}: {message}')


class BlockhashFetchError(TokenManagerError):
    """Raised when the latest blockhash cannot be fetched from the node"""


class SubmissionError(TokenManagerError):
    """Raised when the node rejects or fails to receive a transaction"""

    def __init__(self, reason: str, code: Optional[int] = None, data: Optional[Any] = None):
        self.reason = reason
        self.code = code
        self.data = data
        if code is None:
            super().__init__(f'Failed to send transaction: {reason}')
        else:
            super().__init__(f'Failed to send transaction ({code}): {reason}')


class AccountNotFoundError(TokenManagerError):
    """Raised when an account read returns no data"""

    def __init__(self, address: Any):
        self.address = address
        super().__init__(f'Account {address} not found')


class ConfigurationError(TokenManagerError):
    """Raised when configuration or keypair input is invalid"""
