"""Bearer identity token verification."""

from pathlib import Path

from jose import ExpiredSignatureError, JWTError, jwt

from src.domain.exceptions import AuthenticationException


class JWTTokenVerifier:
    """Verifies identity tokens minted by the external credential issuer.

    Only the issuer's public key is held here; tokens are never created.
    """

    def __init__(
        self,
        public_key: str,
        algorithms: list[str] | None = None,
        subject_claim: str = "userId",
    ) -> None:
        """Initialize the verifier.

        Args:
            public_key: PEM encoded public key of the issuer.
            algorithms: Accepted signing algorithms.
            subject_claim: Claim carrying the user id.

        Raises:
            ValueError: If no public key is given.
        """
        if not public_key:
            raise ValueError("Token verification public key is not configured")
        self._public_key = public_key
        self._algorithms = algorithms or ["RS256"]
        self._subject_claim = subject_claim

    @classmethod
    def from_settings(
        cls,
        public_key: str,
        public_key_path: str,
        algorithms: list[str],
        subject_claim: str,
    ) -> "JWTTokenVerifier":
        """Build a verifier from an inline key or a PEM file."""
        key = public_key
        if not key:
            path = Path(public_key_path)
            if not path.is_file():
                raise ValueError(f"Public key file not found: {public_key_path}")
            key = path.read_text(encoding="utf-8")
        return cls(key, algorithms=algorithms, subject_claim=subject_claim)

    def verify(self, token: str) -> str:
        """Verify ``token`` and return its subject id.

        Raises:
            AuthenticationException: TOKEN_EXPIRED for an expired token,
                INVALID_TOKEN for anything else that fails.
        """
        if not token:
            raise AuthenticationException(AuthenticationException.MISSING_TOKEN)
        try:
            claims = jwt.decode(token, self._public_key, algorithms=self._algorithms)
        except ExpiredSignatureError as e:
            raise AuthenticationException(
                AuthenticationException.TOKEN_EXPIRED, "Token has expired"
            ) from e
        except JWTError as e:
            raise AuthenticationException(
                AuthenticationException.INVALID_TOKEN, "Invalid token"
            ) from e

        subject = claims.get(self._subject_claim)
        if subject is None or subject == "":
            raise AuthenticationException(
                AuthenticationException.INVALID_TOKEN,
                f"Token has no '{self._subject_claim}' claim",
            )
        return str(subject)
