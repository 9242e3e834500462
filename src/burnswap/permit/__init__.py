"""Permit payload decoding and authorization."""

from burnswap.permit.authorizer import PermitAuthorizer
from burnswap.permit.client import build_permit_payload, build_signed_permit
from burnswap.permit.codec import (
    PERMIT_SELECTOR,
    PermitMessage,
    decode_permit_payload,
    encode_permit_payload,
)

__all__ = [
    "PERMIT_SELECTOR",
    "PermitAuthorizer",
    "PermitMessage",
    "build_permit_payload",
    "build_signed_permit",
    "decode_permit_payload",
    "encode_permit_payload",
]
