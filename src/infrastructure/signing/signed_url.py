"""HMAC-signed, expiring access tokens for streaming URLs."""

import hashlib
import hmac
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlencode

from src.domain.exceptions import SignedUrlException


@dataclass(frozen=True)
class SignedToken:
    """Token pair handed to streaming clients."""

    expires: int  # epoch milliseconds
    signature: str
    subject_id: str

    @property
    def query_params(self) -> dict[str, str]:
        return {
            "expires": str(self.expires),
            "signature": self.signature,
            "uid": self.subject_id,
        }

    @property
    def query_string(self) -> str:
        """Query string including the leading '?'."""
        return "?" + urlencode(self.query_params)


@dataclass(frozen=True)
class SignatureCheck:
    """Result of verifying a signed URL."""

    valid: bool
    reason: str | None = None


class SignedUrlAuthority:
    """Issues and verifies signatures over (resource, subject, expiry).

    The signature is HMAC-SHA256 over ``"{resource}:{subject}:{expires}"``
    with a process-wide secret, hex encoded. ``expires`` is epoch
    milliseconds.
    """

    def __init__(
        self,
        secret: str,
        default_ttl_minutes: int = 15,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the authority.

        Args:
            secret: Server-side signing key. Must be non-empty.
            default_ttl_minutes: Lifetime used when ``issue`` gets no TTL.
            clock: Returns the current time in epoch seconds.

        Raises:
            ValueError: If the secret is empty.
        """
        if not secret:
            raise ValueError("Signing secret is not configured")
        self._key = secret.encode("utf-8")
        self._default_ttl_minutes = default_ttl_minutes
        self._clock = clock

    @property
    def default_ttl_minutes(self) -> int:
        return self._default_ttl_minutes

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _sign(self, resource_id: str, subject_id: str, expires: str) -> str:
        message = f"{resource_id}:{subject_id}:{expires}".encode()
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    def issue(
        self,
        resource_id: str,
        subject_id: str,
        ttl_minutes: int | None = None,
    ) -> SignedToken:
        """Create a token valid for ``ttl_minutes`` from now."""
        ttl = self._default_ttl_minutes if ttl_minutes is None else ttl_minutes
        expires = self.now_ms() + ttl * 60 * 1000
        return SignedToken(
            expires=expires,
            signature=self._sign(resource_id, subject_id, str(expires)),
            subject_id=subject_id,
        )

    def verify(
        self,
        resource_id: str,
        subject_id: str,
        expires: str,
        signature: str,
    ) -> SignatureCheck:
        """Check a token against the resource and subject it claims.

        Checks run in order: expiry parses, expiry not passed, signature matches.
        """
        try:
            expiry_ms = float(expires)
        except (TypeError, ValueError):
            return SignatureCheck(False, SignedUrlException.MALFORMED_EXPIRY)
        if not math.isfinite(expiry_ms):
            return SignatureCheck(False, SignedUrlException.MALFORMED_EXPIRY)

        if self.now_ms() > expiry_ms:
            return SignatureCheck(False, SignedUrlException.EXPIRED)

        expected = self._sign(resource_id, subject_id, expires)
        if not hmac.compare_digest(expected, signature or ""):
            return SignatureCheck(False, SignedUrlException.INVALID_SIGNATURE)

        return SignatureCheck(True)
