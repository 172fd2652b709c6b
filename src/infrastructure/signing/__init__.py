"""Signed streaming URLs."""

from src.infrastructure.signing.signed_url import (
    SignatureCheck,
    SignedToken,
    SignedUrlAuthority,
)

__all__ = [
    "SignedUrlAuthority",
    "SignedToken",
    "SignatureCheck",
]
