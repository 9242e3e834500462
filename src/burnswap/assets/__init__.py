"""Asset gateways: the token contracts the engine custodies and burns."""

from burnswap.assets.base import AssetGateway
from burnswap.assets.ledger_token import LedgerAssetGateway, register_token
from burnswap.assets.typed_data import build_permit_typed_data, sign_typed_data

__all__ = [
    "AssetGateway",
    "LedgerAssetGateway",
    "register_token",
    "build_permit_typed_data",
    "sign_typed_data",
]
