"""Client-side construction of signed permit payloads."""

from eth_account import Account

from burnswap.assets.typed_data import build_permit_typed_data, sign_typed_data
from burnswap.permit.codec import PermitMessage, encode_permit_payload
from burnswap.utils.addresses import normalize_address


def build_signed_permit(
    private_key,
    token_name: str,
    chain_id: int,
    token_address: str,
    spender: str,
    amount: int,
    deadline: int,
    nonce: int,
    token_version: str = "1",
) -> PermitMessage:
    """Sign an EIP-2612 permit with private_key and return the decoded message.

    The signer is the address of private_key.
    """
    owner = Account.from_key(private_key).address
    spender = normalize_address(spender, "spender")
    typed_data = build_permit_typed_data(
        token_name=token_name,
        token_version=token_version,
        chain_id=chain_id,
        token_address=normalize_address(token_address, "token address"),
        owner=owner,
        spender=spender,
        value=amount,
        nonce=nonce,
        deadline=deadline,
    )
    v, r, s = sign_typed_data(private_key, typed_data)
    return PermitMessage(
        signer=owner, spender=spender, amount=amount, deadline=deadline, v=v, r=r, s=s
    )


def build_permit_payload(*args, **kwargs) -> bytes:
    """Same as build_signed_permit, encoded as selector-prefixed calldata."""
    return encode_permit_payload(build_signed_permit(*args, **kwargs))
