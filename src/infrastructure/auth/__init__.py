"""Bearer credential verification."""

from src.infrastructure.auth.token_verifier import JWTTokenVerifier

__all__ = [
    "JWTTokenVerifier",
]
