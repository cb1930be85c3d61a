"""Method discriminators and Borsh argument encoding"""

import hashlib
import io
from dataclasses import fields, is_dataclass
from typing import Any, Sequence, Tuple

from borsh_construct import U8
from construct import Construct, ConstructError

from .errors import DecodingError, EncodingRangeError
from .publickey import PublicKey

DISCRIMINATOR_LENGTH = 8

PublicKeyLayout = U8[32]


def discriminator(namespace: str, method: str) -> bytes:
    """First 8 bytes of sha256("<namespace>:<method>")"""
    preimage = f'{namespace}:{method}'.encode('utf-8')
    return hashlib.sha256(preimage).digest()[:DISCRIMINATOR_LENGTH]


def to_fields(value: Any) -> Any:
    """Turn dataclasses and public keys into the dicts and bytes layouts build from"""
    if isinstance(value, PublicKey):
        return bytes(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {field.name: to_fields(getattr(value, field.name)) for field in fields(value)}
    if isinstance(value, dict):
        return {key: to_fields(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_fields(item) for item in value]
    return value


def encode_args(args: Sequence[Tuple[Construct, Any]]) -> bytes:
    """Concatenate the encodings of (layout, value) pairs in declared order"""
    try:
        return b''.join(layout.build(to_fields(value)) for layout, value in args)
    except ConstructError as exc:
        raise EncodingRangeError(str(exc)) from exc


def decode_args(data: bytes, layouts: Sequence[Construct], allow_trailing: bool = False) -> list:
    """Inverse of encode_args; trailing bytes are an error unless allowed"""
    data = bytes(data)
    stream = io.BytesIO(data)
    try:
        values = [layout.parse_stream(stream) for layout in layouts]
    except ConstructError as exc:
        raise DecodingError(f'Malformed data: {exc}') from exc

    trailing = len(data) - stream.tell()
    if trailing and not allow_trailing:
        raise DecodingError(f'{trailing} trailing bytes after decoding')
    return values


def instruction_data(namespace: str, method: str, args: Sequence[Tuple[Construct, Any]] = ()) -> bytes:
    """Discriminator followed by the encoded arguments"""
    return discriminator(namespace, method) + encode_args(args)
