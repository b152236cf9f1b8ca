"""Permit signing surface; the raw signature is produced by an injected wallet."""

from decimal import Decimal
from typing import Awaitable, Callable, Dict, List, Protocol, Tuple

from execution_adapter.ethereum.adapter import to_raw_amount
from protocol_config.models import NetworkConfig, TokenConfig

from .models import ZERO_BYTES32, PermitSignature, TypedDataDomain

PERMIT_TYPES: Dict[str, List[Dict[str, str]]] = {
    "Permit": [
        {"name": "owner", "type": "address"},
        {"name": "spender", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
}

TypedDataSigner = Callable[
    [Dict[str, object], Dict[str, List[Dict[str, str]]], Dict[str, object]],
    Awaitable[str],
]
TokenReader = Callable[[TokenConfig, str], Awaitable[object]]


class PermitSigner(Protocol):
    async def sign_permit(
        self,
        token: str,
        owner: str,
        amount: Decimal,
        spender: str,
        deadline: int,
    ) -> PermitSignature:
        ...


class TypedDataPermitSigner:
    """Builds the EIP-2612 typed data for a token and asks the wallet to sign it."""

    def __init__(
        self,
        config: NetworkConfig,
        sign_typed_data: TypedDataSigner,
        nonce_reader: TokenReader,
        name_reader: TokenReader,
        domain_version: str = "1",
    ) -> None:
        self._config = config
        self._sign_typed_data = sign_typed_data
        self._nonce_reader = nonce_reader
        self._name_reader = name_reader
        self._domain_version = domain_version

    async def sign_permit(
        self,
        token: str,
        owner: str,
        amount: Decimal,
        spender: str,
        deadline: int,
    ) -> PermitSignature:
        token_config = self._config.token(token)
        if not token_config.supports_permit:
            raise ValueError(f"Token {token} does not support permit signatures.")

        nonce = int(await self._nonce_reader(token_config, owner))
        token_name = str(await self._name_reader(token_config, owner))
        value = to_raw_amount(amount, token_config.decimals)

        domain = TypedDataDomain(
            name=token_name,
            version=self._domain_version,
            chain_id=self._config.chain_id,
            verifying_contract=token_config.address,
        )
        values = {
            "owner": owner,
            "spender": spender,
            "value": value,
            "nonce": nonce,
            "deadline": deadline,
        }
        raw_signature = await self._sign_typed_data(domain.to_dict(), PERMIT_TYPES, values)
        v, r, s = split_signature(raw_signature)
        return PermitSignature(
            token=token_config.address,
            value=value,
            deadline=deadline,
            v=v,
            r=r,
            s=s,
        )


def split_signature(signature: str) -> Tuple[int, str, str]:
    """Split a 65-byte hex signature into ``(v, r, s)``."""

    data = signature[2:] if signature.startswith("0x") else signature
    if len(data) != 130:
        raise ValueError("Signature must be 65 bytes.")
    raw = bytes.fromhex(data)
    v = raw[64]
    if v < 27:
        v += 27
    return v, "0x" + raw[:32].hex(), "0x" + raw[32:64].hex()


class DryRunPermitSigner:
    """Returns placeholder signatures so plans can be previewed without a wallet."""

    def __init__(self, config: NetworkConfig) -> None:
        self._config = config

    async def sign_permit(
        self,
        token: str,
        owner: str,
        amount: Decimal,
        spender: str,
        deadline: int,
    ) -> PermitSignature:
        token_config = self._config.token(token)
        return PermitSignature(
            token=token_config.address,
            value=to_raw_amount(amount, token_config.decimals),
            deadline=deadline,
            v=27,
            r=ZERO_BYTES32,
            s=ZERO_BYTES32,
        )
