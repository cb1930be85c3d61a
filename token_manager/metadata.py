"""Metaplex Token Metadata program: records and instruction builders

Account orders follow the handlers of the Token Metadata program. Optional
accounts that are not supplied are replaced by the program id itself
(read-only, non-signer), which the program treats as "absent".
"""

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import List, Optional

from borsh_construct import U8, U16, U64, Bool, CStruct, Option, String, Vec

from .encoding import PublicKeyLayout, decode_args, encode_args
from .errors import DecodingError, EncodingRangeError
from .instruction import AccountMeta, Instruction
from .publickey import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    SYSVAR_INSTRUCTIONS_ID,
    TOKEN_PROGRAM_ID,
    PublicKey,
    derive_associated_address,
    derive_program_address,
)

METADATA_PROGRAM_ID = PublicKey('metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s')
METADATA_SEED = b'metadata'

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_SELLER_FEE_BASIS_POINTS = 10000
MAX_CREATOR_LIMIT = 5

# Top-level instruction tags of the Token Metadata program
UPDATE_METADATA_ACCOUNT_V2 = 15
CREATE = 42
MINT = 43
TRANSFER = 49
# Version tag that follows CREATE / MINT / TRANSFER
V1 = 0

METADATA_V1_KEY = 4


class TokenStandard(IntEnum):
    NON_FUNGIBLE = 0
    FUNGIBLE_ASSET = 1
    FUNGIBLE = 2
    NON_FUNGIBLE_EDITION = 3
    PROGRAMMABLE_NON_FUNGIBLE = 4
    PROGRAMMABLE_NON_FUNGIBLE_EDITION = 5


@dataclass(frozen=True)
class Creator:
    address: PublicKey
    verified: bool
    share: int


@dataclass(frozen=True)
class Collection:
    verified: bool
    key: PublicKey


@dataclass(frozen=True)
class Uses:
    use_method: int
    remaining: int
    total: int


CreatorLayout = CStruct('address' / PublicKeyLayout, 'verified' / Bool, 'share' / U8)
CollectionLayout = CStruct('verified' / Bool, 'key' / PublicKeyLayout)
UsesLayout = CStruct('use_method' / U8, 'remaining' / U64, 'total' / U64)


@dataclass(frozen=True)
class DataV2:
    """Mutable metadata fields sent with UpdateMetadataAccountV2"""
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Optional[List[Creator]] = None
    collection: Optional[Collection] = None
    uses: Optional[Uses] = None


DataV2Layout = CStruct(
    'name' / String,
    'symbol' / String,
    'uri' / String,
    'seller_fee_basis_points' / U16,
    'creators' / Option(Vec(CreatorLayout)),
    'collection' / Option(CollectionLayout),
    'uses' / Option(UsesLayout),
)

MetadataLayout = CStruct(
    'key' / U8,
    'update_authority' / PublicKeyLayout,
    'mint' / PublicKeyLayout,
    'data' / CStruct(
        'name' / String,
        'symbol' / String,
        'uri' / String,
        'seller_fee_basis_points' / U16,
        'creators' / Option(Vec(CreatorLayout)),
    ),
    'primary_sale_happened' / Bool,
    'is_mutable' / Bool,
    'edition_nonce' / Option(U8),
    'token_standard' / Option(U8),
    'collection' / Option(CollectionLayout),
    'uses' / Option(UsesLayout),
)
# edition_nonce, token_standard, collection and uses
METADATA_OPTIONAL_TAIL = 4

CreateV1Layout = CStruct(
    'name' / String,
    'symbol' / String,
    'uri' / String,
    'seller_fee_basis_points' / U16,
    'creators' / Option(Vec(CreatorLayout)),
    'primary_sale_happened' / Bool,
    'is_mutable' / Bool,
    'token_standard' / U8,
    'collection' / Option(CollectionLayout),
    'uses' / Option(UsesLayout),
    'collection_details' / Option(U8),
    'rule_set' / Option(PublicKeyLayout),
    'decimals' / Option(U8),
    'print_supply' / Option(U8),
)
MintV1Layout = CStruct('amount' / U64, 'authorization_data' / Option(U8))
TransferV1Layout = CStruct('amount' / U64, 'authorization_data' / Option(U8))
UpdateMetadataAccountV2Layout = CStruct(
    'data' / Option(DataV2Layout),
    'new_update_authority' / Option(PublicKeyLayout),
    'primary_sale_happened' / Option(Bool),
    'is_mutable' / Option(Bool),
)


def _creator(raw) -> Creator:
    return Creator(address=PublicKey(bytes(raw.address)), verified=raw.verified, share=raw.share)


@dataclass(frozen=True)
class Metadata:
    """Decoded metadata account"""
    key: int
    update_authority: PublicKey
    mint: PublicKey
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Optional[List[Creator]]
    primary_sale_happened: bool
    is_mutable: bool
    edition_nonce: Optional[int] = None
    token_standard: Optional[int] = None
    collection: Optional[Collection] = None
    uses: Optional[Uses] = None

    @classmethod
    def decode(cls, data: bytes) -> 'Metadata':
        """
        Decode a metadata account

        Strings are stored padded with NUL bytes up to their maximum length;
        the padding is stripped. Trailing optional fields missing from older
        accounts decode as None.
        """
        data = bytes(data)
        if not data or data[0] != METADATA_V1_KEY:
            raise DecodingError(f'Account is not a metadata account (key {data[:1].hex() or "missing"})')

        # a zero tag reads as None for every optional field the account omits
        record, = decode_args(data + bytes(METADATA_OPTIONAL_TAIL), [MetadataLayout], allow_trailing=True)
        fields = record.data
        return cls(
            key=record.key,
            update_authority=PublicKey(bytes(record.update_authority)),
            mint=PublicKey(bytes(record.mint)),
            name=fields.name.rstrip('\x00'),
            symbol=fields.symbol.rstrip('\x00'),
            uri=fields.uri.rstrip('\x00'),
            seller_fee_basis_points=fields.seller_fee_basis_points,
            creators=None if fields.creators is None else [_creator(raw) for raw in fields.creators],
            primary_sale_happened=record.primary_sale_happened,
            is_mutable=record.is_mutable,
            edition_nonce=record.edition_nonce,
            token_standard=record.token_standard,
            collection=None if record.collection is None else Collection(
                verified=record.collection.verified, key=PublicKey(bytes(record.collection.key)),
            ),
            uses=None if record.uses is None else Uses(
                use_method=record.uses.use_method, remaining=record.uses.remaining, total=record.uses.total,
            ),
        )

    def data(self) -> DataV2:
        return DataV2(
            name=self.name,
            symbol=self.symbol,
            uri=self.uri,
            seller_fee_basis_points=self.seller_fee_basis_points,
            creators=self.creators,
            collection=self.collection,
            uses=self.uses,
        )


@dataclass(frozen=True)
class MetadataChanges:
    """Requested metadata edits; None leaves a field as it is"""
    name: Optional[str] = None
    symbol: Optional[str] = None
    uri: Optional[str] = None
    seller_fee_basis_points: Optional[int] = None
    is_mutable: Optional[bool] = None
    new_update_authority: Optional[PublicKey] = None

    def touches_data(self) -> bool:
        return any(
            value is not None
            for value in (self.name, self.symbol, self.uri, self.seller_fee_basis_points)
        )


@dataclass(frozen=True)
class UpdateMetadataArgs:
    data: Optional[DataV2] = None
    new_update_authority: Optional[PublicKey] = None
    primary_sale_happened: Optional[bool] = None
    is_mutable: Optional[bool] = None


def apply_metadata_changes(record: Metadata, changes: MetadataChanges) -> UpdateMetadataArgs:
    """Compute update arguments from the current record and the requested changes"""
    data = None
    if changes.touches_data():
        data = record.data()
        for attr in ('name', 'symbol', 'uri', 'seller_fee_basis_points'):
            value = getattr(changes, attr)
            if value is not None:
                data = replace(data, **{attr: value})
    return UpdateMetadataArgs(
        data=data,
        new_update_authority=changes.new_update_authority,
        is_mutable=changes.is_mutable,
    )


def validate_data(name: str, symbol: str, uri: str, seller_fee_basis_points: int,
                  creators: Optional[List[Creator]] = None) -> None:
    """Check the length limits enforced by the Token Metadata program"""
    for label, value, limit in (
        ('name', name, MAX_NAME_LENGTH),
        ('symbol', symbol, MAX_SYMBOL_LENGTH),
        ('uri', uri, MAX_URI_LENGTH),
    ):
        size = len(value.encode('utf-8'))
        if size > limit:
            raise EncodingRangeError(f'{label} is {size} bytes, the limit is {limit}')
    if not 0 <= seller_fee_basis_points <= MAX_SELLER_FEE_BASIS_POINTS:
        raise EncodingRangeError(
            f'seller_fee_basis_points must be between 0 and {MAX_SELLER_FEE_BASIS_POINTS}'
        )
    if creators is not None and len(creators) > MAX_CREATOR_LIMIT:
        raise EncodingRangeError(f'At most {MAX_CREATOR_LIMIT} creators are allowed')


def find_metadata_address(mint: PublicKey) -> PublicKey:
    address, _ = derive_program_address(
        METADATA_PROGRAM_ID, [METADATA_SEED, bytes(METADATA_PROGRAM_ID), bytes(mint)]
    )
    return address


def _absent() -> AccountMeta:
    return AccountMeta.readonly(METADATA_PROGRAM_ID)


def create_fungible(
    mint: PublicKey,
    authority: PublicKey,
    decimals: int,
    name: str,
    symbol: str,
    uri: str,
    payer: Optional[PublicKey] = None,
    update_authority: Optional[PublicKey] = None,
    seller_fee_basis_points: int = 0,
    is_mutable: bool = True,
    validate: bool = False,
    token_program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Create a fungible mint and its metadata account in one instruction (CreateV1)

    The new mint account must sign, as must the authority, the payer and the
    update authority (all default to ``authority``).
    """
    payer = payer or authority
    update_authority = update_authority or authority
    if validate:
        validate_data(name, symbol, uri, seller_fee_basis_points)

    data = bytes([CREATE, V1]) + encode_args([(CreateV1Layout, {
        'name': name,
        'symbol': symbol,
        'uri': uri,
        'seller_fee_basis_points': seller_fee_basis_points,
        'creators': None,
        'primary_sale_happened': False,
        'is_mutable': is_mutable,
        'token_standard': TokenStandard.FUNGIBLE,
        'collection': None,
        'uses': None,
        'collection_details': None,
        'rule_set': None,
        'decimals': decimals,
        'print_supply': None,
    })])

    accounts = [
        AccountMeta.writable(find_metadata_address(mint)),
        _absent(),  # master_edition
        AccountMeta.writable(mint, is_signer=True),
        AccountMeta.readonly(authority, is_signer=True),
        AccountMeta.writable(payer, is_signer=True),
        AccountMeta.readonly(update_authority, is_signer=True),
        AccountMeta.readonly(SYSTEM_PROGRAM_ID),
        AccountMeta.readonly(SYSVAR_INSTRUCTIONS_ID),
        AccountMeta.readonly(token_program_id),
    ]
    return Instruction(program_id=METADATA_PROGRAM_ID, accounts=accounts, data=data)


def mint_to(
    mint: PublicKey,
    receiver: PublicKey,
    amount: int,
    authority: PublicKey,
    payer: Optional[PublicKey] = None,
    token_program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """Mint ``amount`` base units into the receiver's associated token account (MintV1)"""
    payer = payer or authority
    data = bytes([MINT, V1]) + encode_args([
        (MintV1Layout, {'amount': amount, 'authorization_data': None}),
    ])

    accounts = [
        AccountMeta.writable(derive_associated_address(receiver, mint, token_program_id)),
        AccountMeta.readonly(receiver),
        AccountMeta.readonly(find_metadata_address(mint)),
        _absent(),  # master_edition
        _absent(),  # token_record
        AccountMeta.writable(mint),
        AccountMeta.readonly(authority, is_signer=True),
        _absent(),  # delegate_record
        AccountMeta.writable(payer, is_signer=True),
        AccountMeta.readonly(SYSTEM_PROGRAM_ID),
        AccountMeta.readonly(SYSVAR_INSTRUCTIONS_ID),
        AccountMeta.readonly(token_program_id),
        AccountMeta.readonly(ASSOCIATED_TOKEN_PROGRAM_ID),
        _absent(),  # authorization_rules_program
        _absent(),  # authorization_rules
    ]
    return Instruction(program_id=METADATA_PROGRAM_ID, accounts=accounts, data=data)


def transfer(
    mint: PublicKey,
    owner: PublicKey,
    receiver: PublicKey,
    amount: int,
    authority: Optional[PublicKey] = None,
    payer: Optional[PublicKey] = None,
    token_program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """Move tokens between the owner's and the receiver's associated accounts (TransferV1)"""
    authority = authority or owner
    payer = payer or authority
    data = bytes([TRANSFER, V1]) + encode_args([
        (TransferV1Layout, {'amount': amount, 'authorization_data': None}),
    ])

    accounts = [
        AccountMeta.writable(derive_associated_address(owner, mint, token_program_id)),
        AccountMeta.readonly(owner),
        AccountMeta.writable(derive_associated_address(receiver, mint, token_program_id)),
        AccountMeta.readonly(receiver),
        AccountMeta.readonly(mint),
        AccountMeta.writable(find_metadata_address(mint)),
        _absent(),  # edition
        _absent(),  # token_record
        _absent(),  # destination_token_record
        AccountMeta.readonly(authority, is_signer=True),
        AccountMeta.writable(payer, is_signer=True),
        AccountMeta.readonly(SYSTEM_PROGRAM_ID),
        AccountMeta.readonly(SYSVAR_INSTRUCTIONS_ID),
        AccountMeta.readonly(token_program_id),
        AccountMeta.readonly(ASSOCIATED_TOKEN_PROGRAM_ID),
        _absent(),  # authorization_rules_program
        _absent(),  # authorization_rules
    ]
    return Instruction(program_id=METADATA_PROGRAM_ID, accounts=accounts, data=data)


def update_metadata(
    mint: PublicKey,
    update_authority: PublicKey,
    args: UpdateMetadataArgs,
    validate: bool = False,
) -> Instruction:
    """Rewrite metadata fields and/or hand over the update authority (UpdateMetadataAccountV2)"""
    if validate and args.data is not None:
        validate_data(
            args.data.name, args.data.symbol, args.data.uri,
            args.data.seller_fee_basis_points, args.data.creators,
        )

    data = bytes([UPDATE_METADATA_ACCOUNT_V2]) + encode_args([(UpdateMetadataAccountV2Layout, args)])

    accounts = [
        AccountMeta.writable(find_metadata_address(mint)),
        AccountMeta.readonly(update_authority, is_signer=True),
    ]
    return Instruction(program_id=METADATA_PROGRAM_ID, accounts=accounts, data=data)
