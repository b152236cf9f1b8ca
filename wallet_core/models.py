"""Domain models for permit signatures."""

from dataclasses import dataclass
from typing import Dict

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = "0x" + "00" * 32


@dataclass(frozen=True)
class PermitSignature:
    """EIP-2612 permit authorization, usable once for one spender and deadline."""

    token: str
    value: int
    deadline: int
    v: int
    r: str
    s: str

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_PERMIT_SIGNATURE

    def to_dict(self) -> Dict[str, object]:
        return {
            "token": self.token,
            "value": self.value,
            "deadline": self.deadline,
            "v": self.v,
            "r": self.r,
            "s": self.s,
        }

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "PermitSignature":
        return PermitSignature(
            token=str(data["token"]),
            value=int(data["value"]),
            deadline=int(data["deadline"]),
            v=int(data["v"]),
            r=str(data["r"]),
            s=str(data["s"]),
        )


EMPTY_PERMIT_SIGNATURE = PermitSignature(
    token=ZERO_ADDRESS,
    value=0,
    deadline=0,
    v=0,
    r=ZERO_BYTES32,
    s=ZERO_BYTES32,
)


@dataclass(frozen=True)
class TypedDataDomain:
    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }
