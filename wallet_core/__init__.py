from .models import EMPTY_PERMIT_SIGNATURE, PermitSignature, TypedDataDomain
from .signer import (
    PERMIT_TYPES,
    DryRunPermitSigner,
    PermitSigner,
    TypedDataPermitSigner,
    split_signature,
)

__all__ = [
    "DryRunPermitSigner",
    "EMPTY_PERMIT_SIGNATURE",
    "PERMIT_TYPES",
    "PermitSignature",
    "PermitSigner",
    "TypedDataDomain",
    "TypedDataPermitSigner",
    "split_signature",
]
