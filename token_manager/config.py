"""Configuration loader compatible with the Solana CLI config file"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlparse

import yaml

from .errors import ConfigurationError
from .publickey import PublicKey

DEFAULT_CONFIG_PATH = Path.home() / '.config' / 'solana' / 'cli' / 'config.yml'
DEFAULT_KEYPAIR_PATH = Path.home() / '.config' / 'solana' / 'id.json'
DEFAULT_RPC_URL = 'https://api.mainnet-beta.solana.com'
DEFAULT_COMMITMENT = 'confirmed'
COMMITMENT_LEVELS = ('processed', 'confirmed', 'finalized')

URL_MONIKERS = {
    'm': 'https://api.mainnet-beta.solana.com',
    'mainnet-beta': 'https://api.mainnet-beta.solana.com',
    't': 'https://api.testnet.solana.com',
    'testnet': 'https://api.testnet.solana.com',
    'd': 'https://api.devnet.solana.com',
    'devnet': 'https://api.devnet.solana.com',
    'l': 'http://localhost:8899',
    'localhost': 'http://localhost:8899',
}


@dataclass
class CliConfig:
    """Resolved connection and signer settings"""
    json_rpc_url: str = DEFAULT_RPC_URL
    websocket_url: str = ''
    keypair_path: str = str(DEFAULT_KEYPAIR_PATH)
    commitment: str = DEFAULT_COMMITMENT
    bridge_program_id: Optional[PublicKey] = None

    def __post_init__(self):
        if not self.websocket_url:
            self.websocket_url = compute_websocket_url(self.json_rpc_url)


def normalize_to_url_if_moniker(url_or_moniker: str) -> str:
    """Expand cluster monikers such as ``devnet`` to their RPC URL"""
    return URL_MONIKERS.get(url_or_moniker, url_or_moniker)


def compute_websocket_url(json_rpc_url: str) -> str:
    """Derive the pubsub URL: ws(s) scheme, and the next port when one is explicit"""
    parsed = urlparse(json_rpc_url)
    if parsed.scheme not in ('http', 'https') or not parsed.hostname:
        return ''
    scheme = 'wss' if parsed.scheme == 'https' else 'ws'
    netloc = parsed.netloc
    if parsed.port is not None:
        netloc = netloc[:netloc.rfind(':')] + f':{parsed.port + 1}'
    return parsed._replace(scheme=scheme, netloc=netloc).geturl()


def _load_config_file(path: Path, *, required: bool) -> Dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f'Config file not found: {path}')
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f'Invalid YAML in config file {path}: {exc}') from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f'Expected {path} to contain a YAML mapping')
    return loaded


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value:
            return value
    return default


def _parse_pubkey(raw: Optional[str], *, source: str) -> Optional[PublicKey]:
    if not raw:
        return None
    try:
        return PublicKey(raw)
    except ValueError as exc:
        raise ConfigurationError(f'Invalid public key in {source}: {raw}') from exc


def load_cli_config(
    *,
    config_path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> CliConfig:
    """
    Resolve settings from the CLI config file, the environment and overrides

    Later sources win: file < environment (``SOLANA_RPC_URL``,
    ``SOLANA_KEYPAIR``, ``SOLANA_COMMITMENT``, ``TOKEN_MANAGER_BRIDGE_PROGRAM_ID``)
    < explicit overrides. A missing default config file is not an error; a
    missing explicit one is.
    """
    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    file_config = _load_config_file(path, required=config_path is not None)
    override_map = dict(overrides or {})

    json_rpc_url = normalize_to_url_if_moniker(_first_value(
        override_map.get('json_rpc_url'),
        env_map.get('SOLANA_RPC_URL'),
        file_config.get('json_rpc_url'),
        default=DEFAULT_RPC_URL,
    ))
    if urlparse(json_rpc_url).scheme not in ('http', 'https'):
        raise ConfigurationError(f'Invalid JSON RPC URL: {json_rpc_url}')

    # an explicit URL invalidates the websocket URL stored next to the old one
    url_overridden = bool(override_map.get('json_rpc_url') or env_map.get('SOLANA_RPC_URL'))
    websocket_url = _first_value(
        override_map.get('websocket_url'),
        None if url_overridden else file_config.get('websocket_url'),
        default=compute_websocket_url(json_rpc_url),
    )

    keypair_path = _first_value(
        override_map.get('keypair_path'),
        env_map.get('SOLANA_KEYPAIR'),
        file_config.get('keypair_path'),
        default=str(DEFAULT_KEYPAIR_PATH),
    )

    commitment = _first_value(
        override_map.get('commitment'),
        env_map.get('SOLANA_COMMITMENT'),
        file_config.get('commitment'),
        default=DEFAULT_COMMITMENT,
    )
    if commitment not in COMMITMENT_LEVELS:
        raise ConfigurationError(
            f'Unknown commitment {commitment!r}; expected one of {", ".join(COMMITMENT_LEVELS)}'
        )

    bridge_program_id = override_map.get('bridge_program_id')
    if not isinstance(bridge_program_id, PublicKey):
        bridge_program_id = _parse_pubkey(
            _first_value(
                bridge_program_id,
                env_map.get('TOKEN_MANAGER_BRIDGE_PROGRAM_ID'),
                file_config.get('bridge_program_id'),
            ),
            source='bridge_program_id',
        )

    return CliConfig(
        json_rpc_url=json_rpc_url,
        websocket_url=websocket_url,
        keypair_path=str(Path(keypair_path).expanduser()),
        commitment=commitment,
        bridge_program_id=bridge_program_id,
    )
