"""Ed25519 keypairs used as transaction signers"""

import json
import os
from pathlib import Path
from typing import List, Optional, Union

from nacl.signing import SigningKey

from .errors import ConfigurationError
from .publickey import PublicKey

SECRET_KEY_LENGTH = 64
SEED_LENGTH = 32
SIGNATURE_LENGTH = 64
KEYPAIR_FILE_MODE = 0o600


class Keypair:
    """Signing capability backed by an ed25519 secret key"""

    def __init__(self, signing_key: Optional[SigningKey] = None):
        self._signing_key = signing_key or SigningKey.generate()
        self._public_key = PublicKey(bytes(self._signing_key.verify_key))

    @classmethod
    def generate(cls) -> 'Keypair':
        return cls()

    @classmethod
    def from_seed(cls, seed: bytes) -> 'Keypair':
        if len(seed) != SEED_LENGTH:
            raise ValueError(f'Seed must be {SEED_LENGTH} bytes, got {len(seed)}')
        return cls(SigningKey(bytes(seed)))

    @classmethod
    def from_secret_key(cls, secret_key: bytes) -> 'Keypair':
        """Load from the 64-byte seed||public key form written by solana-keygen"""
        if len(secret_key) != SECRET_KEY_LENGTH:
            raise ValueError(f'Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret_key)}')
        keypair = cls.from_seed(secret_key[:SEED_LENGTH])
        if bytes(keypair.public_key) != bytes(secret_key[SEED_LENGTH:]):
            raise ValueError('Secret key does not match its embedded public key')
        return keypair

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'Keypair':
        """Read a JSON array keypair file"""
        path = Path(path).expanduser()
        try:
            raw = json.loads(path.read_text())
        except FileNotFoundError as exc:
            raise ConfigurationError(f'Keypair file not found: {path}') from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f'Keypair file {path} is not valid JSON: {exc}') from exc

        if not isinstance(raw, list) or not all(isinstance(b, int) and 0 <= b < 256 for b in raw):
            raise ConfigurationError(f'Keypair file {path} must contain a JSON array of bytes')
        try:
            return cls.from_secret_key(bytes(raw))
        except ValueError as exc:
            raise ConfigurationError(f'Invalid keypair in {path}: {exc}') from exc

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    @property
    def secret_key(self) -> bytes:
        return bytes(self._signing_key) + bytes(self._public_key)

    def sign(self, message: bytes) -> bytes:
        """Detached signature over the message bytes"""
        return self._signing_key.sign(bytes(message)).signature

    def to_json(self) -> List[int]:
        return list(self.secret_key)

    def write_file(self, path: Union[str, Path]) -> Path:
        """Write the keypair as a JSON array readable only by the owner"""
        path = Path(path).expanduser()
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEYPAIR_FILE_MODE)
        with os.fdopen(fd, 'w') as handle:
            json.dump(self.to_json(), handle)
        os.chmod(path, KEYPAIR_FILE_MODE)
        return path

    def __repr__(self) -> str:
        return f'Keypair({self._public_key})'
