"""
Data models for the chain dashboard.

Wire-facing types parse the loosely shaped Alchemy JSON on ingress through
``from_dict`` and emit the camelCase shape the front end expects through
``to_dict``. Optional list fields coerce to empty lists when the upstream
shape drifts; required scalar fields raise ``ValueError``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

# Sentinel contract address used for the chain's native asset
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

NFT_TOKEN_TYPES = ("ERC721", "ERC1155")


def _optional_str(value: Any) -> Optional[str]:
    """Coerce a JSON scalar to a string, keeping None and empty values as None."""
    if value is None or value == "":
        return None
    return str(value)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class Transfer:
    """One asset movement as reported by alchemy_getAssetTransfers."""

    hash: Optional[str] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    value: Optional[str] = None  # Decimal string, already unit-adjusted upstream
    asset: Optional[str] = None
    category: Optional[str] = None
    block_num: Optional[str] = None  # Hex block number

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transfer":
        return cls(
            hash=_optional_str(data.get("hash")),
            from_address=_optional_str(data.get("from")),
            to_address=_optional_str(data.get("to")),
            value=_optional_str(data.get("value")),
            asset=_optional_str(data.get("asset")),
            category=_optional_str(data.get("category")),
            block_num=_optional_str(data.get("blockNum")),
        )


@dataclass
class TopEntity:
    """An address ranked by how many transfers it appears in."""

    address: str
    transfers: int

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "transfers": self.transfers}


TopContract = TopEntity
TopWallet = TopEntity


@dataclass
class TransferResults:
    top_contracts: List[TopEntity]
    top_wallets: List[TopEntity]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topContracts": [c.to_dict() for c in self.top_contracts],
            "topWallets": [w.to_dict() for w in self.top_wallets],
        }


@dataclass
class RecentTransaction:
    """Display projection of a Transfer that has both a hash and a block number."""

    hash: str
    from_address: str
    to_address: Optional[str]
    value: str
    block_number: str
    asset: Optional[str] = None
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": self.value,
            "blockNumber": self.block_number,
        }
        if self.asset is not None:
            data["asset"] = self.asset
        if self.category is not None:
            data["category"] = self.category
        return data


@dataclass
class TransactionPage:
    """A page of recent transactions plus the opaque cursor for the next one."""

    transactions: List[RecentTransaction]
    page_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactions": [tx.to_dict() for tx in self.transactions],
            "pageKey": self.page_key,
        }


@dataclass
class AssetTransferParams:
    """Query object for alchemy_getAssetTransfers."""

    from_block: str
    to_block: str
    category: List[str] = field(default_factory=lambda: ["external", "erc20"])
    exclude_zero_value: bool = True
    max_count: Optional[int] = None
    order: Optional[str] = None
    page_key: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        """Build the wire params, omitting unset optional fields."""
        params: Dict[str, Any] = {
            "fromBlock": self.from_block,
            "toBlock": self.to_block,
            "category": list(self.category),
            "excludeZeroValue": self.exclude_zero_value,
        }
        if self.max_count is not None:
            params["maxCount"] = hex(self.max_count)
        if self.order:
            params["order"] = self.order
        if self.page_key:
            params["pageKey"] = self.page_key
        return params


@dataclass
class AssetTransferPage:
    transfers: List[Transfer]
    page_key: Optional[str] = None

    @classmethod
    def from_result(cls, result: Any) -> "AssetTransferPage":
        """Parse an alchemy_getAssetTransfers result, coercing bad shapes to an empty page."""
        if not isinstance(result, dict):
            return cls(transfers=[])
        transfers = [
            Transfer.from_dict(item) for item in _as_list(result.get("transfers")) if isinstance(item, dict)
        ]
        return cls(transfers=transfers, page_key=_optional_str(result.get("pageKey")))


@dataclass
class BlockHeader:
    number: str  # Hex block number
    timestamp: Optional[str] = None

    @classmethod
    def from_result(cls, result: Any) -> "BlockHeader":
        if not isinstance(result, dict) or not isinstance(result.get("number"), str):
            raise ValueError(f"Malformed block header: {result!r}")
        return cls(number=result["number"], timestamp=_optional_str(result.get("timestamp")))

    def to_dict(self) -> Dict[str, Any]:
        return {"number": self.number, "timestamp": self.timestamp}


@dataclass
class TokenBalance:
    """Represents a raw fungible token balance."""

    contract_address: str
    token_balance: str  # Hex (or decimal) integer string in the token's smallest unit


@dataclass
class TokenBalances:
    address: str
    token_balances: List[TokenBalance]

    @classmethod
    def from_result(cls, result: Any, address: str) -> "TokenBalances":
        data = _as_dict(result)
        balances = [
            TokenBalance(
                contract_address=tb.get("contractAddress", ""),
                token_balance=tb.get("tokenBalance") or "0x0",
            )
            for tb in _as_list(data.get("tokenBalances"))
            if isinstance(tb, dict)
        ]
        return cls(address=data.get("address") or address, token_balances=balances)


@dataclass
class TokenMetadata:
    """Represents token metadata from Alchemy."""

    name: Optional[str] = None
    symbol: Optional[str] = None
    logo: Optional[str] = None
    decimals: Optional[int] = None
    token_type: Optional[str] = None

    @classmethod
    def from_result(cls, result: Any) -> "TokenMetadata":
        data = _as_dict(result)
        decimals = data.get("decimals")
        return cls(
            name=data.get("name"),
            symbol=data.get("symbol"),
            logo=data.get("logo"),
            decimals=decimals if isinstance(decimals, int) else None,
            token_type=data.get("tokenType"),
        )


@dataclass
class TokenWithMetadata:
    contract_address: str
    token_balance: str
    metadata: Optional[TokenMetadata] = None


@dataclass
class EnhancedTokenBalances:
    address: str
    tokens: List[TokenWithMetadata]


@dataclass
class FormattedToken:
    contract_address: str
    truncated_address: str
    token_balance: str
    formatted_balance: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    logo: Optional[str] = None
    decimals: Optional[int] = None
    token_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractAddress": self.contract_address,
            "truncatedAddress": self.truncated_address,
            "tokenBalance": self.token_balance,
            "formattedBalance": self.formatted_balance,
            "name": self.name,
            "symbol": self.symbol,
            "logo": self.logo,
            "decimals": self.decimals,
            "tokenType": self.token_type,
        }


@dataclass
class FormattedTokenBalances:
    address: str
    tokens: List[FormattedToken]

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "tokens": [t.to_dict() for t in self.tokens]}


@dataclass
class NFT:
    """Represents an NFT (ERC-721 or ERC-1155)."""

    contract_address: str
    token_id: str
    token_type: str  # ERC721 or ERC1155
    name: Optional[str]
    collection_name: Optional[str]
    image: Optional[str]
    description: Optional[str]
    balance: str  # "1" for ERC721, can be >1 for ERC1155
    is_spam: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NFT":
        contract = _as_dict(data.get("contract"))
        image = _as_dict(data.get("image"))
        return cls(
            contract_address=contract.get("address", ""),
            token_id=data.get("tokenId", ""),
            token_type=data.get("tokenType", contract.get("tokenType", "")),
            name=data.get("name"),
            collection_name=contract.get("name"),
            image=image.get("cachedUrl") or image.get("originalUrl"),
            description=data.get("description"),
            balance=data.get("balance", "1"),
            is_spam=bool(contract.get("isSpam", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractAddress": self.contract_address,
            "tokenId": self.token_id,
            "tokenType": self.token_type,
            "name": self.name,
            "collectionName": self.collection_name,
            "image": self.image,
            "description": self.description,
            "balance": self.balance,
            "isSpam": self.is_spam,
        }


@dataclass
class NFTPage:
    owned_nfts: List[NFT]
    total_count: int = 0
    page_key: Optional[str] = None

    @classmethod
    def from_result(cls, result: Any) -> "NFTPage":
        data = _as_dict(result)
        nfts = [NFT.from_dict(item) for item in _as_list(data.get("ownedNfts")) if isinstance(item, dict)]
        total = data.get("totalCount")
        return cls(
            owned_nfts=nfts,
            total_count=total if isinstance(total, int) else len(nfts),
            page_key=_optional_str(data.get("pageKey")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ownedNfts": [nft.to_dict() for nft in self.owned_nfts],
            "totalCount": self.total_count,
            "pageKey": self.page_key,
        }
