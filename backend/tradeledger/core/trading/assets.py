"""
Heights Ledger - Asset Details

Type-specific optional fields for each asset class, on top of the shared
holding schema. Each AssetType maps to exactly one details class.
"""
from dataclasses import dataclass, asdict, fields
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from tradeledger.db.models.holding import AssetType
from tradeledger.utils.exceptions import InvalidInputError


@dataclass(frozen=True)
class CryptoDetails:
    """Crypto token, optionally held on-chain."""
    blockchain: Optional[str] = None
    token_address: Optional[str] = None


@dataclass(frozen=True)
class StockDetails:
    """Listed equity."""
    exchange: Optional[str] = None
    isin: Optional[str] = None


@dataclass(frozen=True)
class CommodityDetails:
    """Commodity quoted per unit of measure (gram, ounce, barrel)."""
    unit: Optional[str] = None


@dataclass(frozen=True)
class MutualFundDetails:
    """Mutual fund scheme."""
    scheme_code: Optional[str] = None
    fund_house: Optional[str] = None


@dataclass(frozen=True)
class BondDetails:
    """Fixed income instrument."""
    maturity_date: Optional[date] = None
    coupon_rate: Optional[Decimal] = None


AssetDetails = Union[CryptoDetails, StockDetails, CommodityDetails, MutualFundDetails, BondDetails]

ASSET_DETAILS: dict[AssetType, type] = {
    AssetType.CRYPTO: CryptoDetails,
    AssetType.STOCK: StockDetails,
    AssetType.COMMODITY: CommodityDetails,
    AssetType.MUTUAL_FUND: MutualFundDetails,
    AssetType.BOND: BondDetails,
}


def parse_asset_type(value: str | AssetType) -> AssetType:
    """Resolve an asset type, rejecting unknown values."""
    try:
        return AssetType(value)
    except ValueError:
        raise InvalidInputError(
            f"Unknown asset type: {value}",
            details={"allowed": [t.value for t in AssetType]},
        )


def parse_asset_details(asset_type: AssetType, raw: Optional[dict[str, Any]]) -> AssetDetails:
    """
    Build the details object for an asset type.

    Raises:
        InvalidInputError: Unknown fields for the asset type or bad bond values
    """
    details_cls = ASSET_DETAILS[asset_type]
    raw = dict(raw or {})
    allowed = {f.name for f in fields(details_cls)}
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise InvalidInputError(
            f"Unknown {asset_type.value} fields: {', '.join(unknown)}",
            details={"allowed": sorted(allowed)},
        )

    if details_cls is BondDetails:
        try:
            if raw.get("maturity_date") is not None and not isinstance(raw["maturity_date"], date):
                raw["maturity_date"] = date.fromisoformat(str(raw["maturity_date"]))
            if raw.get("coupon_rate") is not None:
                raw["coupon_rate"] = Decimal(str(raw["coupon_rate"]))
        except (ValueError, InvalidOperation):
            raise InvalidInputError("Invalid bond details", details={"details": {k: str(v) for k, v in raw.items()}})

    return details_cls(**raw)


def details_to_dict(details: AssetDetails) -> dict[str, Any]:
    """JSON-safe representation, omitting unset fields."""
    result = {}
    for key, value in asdict(details).items():
        if value is None:
            continue
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = str(value)
        result[key] = value
    return result


def wallet_key(asset_type: AssetType, wallet_address: Optional[str]) -> str:
    """Wallet address component of a holding key; only crypto holdings carry one."""
    if not wallet_address:
        return ""
    if asset_type != AssetType.CRYPTO:
        raise InvalidInputError("Wallet address is only valid for crypto holdings")
    return wallet_address.strip()
