"""Request authorization: bearer identity tokens and signed URLs."""

from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.api.dependencies import SignedUrlAuthorityDep, TokenVerifierDep, VideoIdDep
from src.domain.exceptions import AuthenticationException, SignedUrlException

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_subject(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    verifier: TokenVerifierDep,
) -> str:
    """Resolve the requester's subject id from the Authorization header.

    Raises:
        AuthenticationException: If the header is missing or the token is bad.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationException(
            AuthenticationException.MISSING_TOKEN, "Missing token"
        )
    return verifier.verify(credentials.credentials)


def get_signed_subject(
    video_id: VideoIdDep,
    authority: SignedUrlAuthorityDep,
    expires: Annotated[str | None, Query(description="Expiry, epoch milliseconds")] = None,
    signature: Annotated[str | None, Query(description="Hex HMAC signature")] = None,
    uid: Annotated[str | None, Query(description="Subject the URL was issued to")] = None,
) -> str:
    """Resolve the subject id from signed URL query parameters.

    Raises:
        SignedUrlException: If parameters are missing or fail verification.
    """
    if not expires or not signature or not uid:
        raise SignedUrlException(
            SignedUrlException.MISSING_SIGNATURE, "Missing signature parameters"
        )
    check = authority.verify(video_id, uid, expires, signature)
    if not check.valid:
        raise SignedUrlException(check.reason or SignedUrlException.INVALID_SIGNATURE)
    return uid


CurrentSubjectDep = Annotated[str, Depends(get_current_subject)]
SignedSubjectDep = Annotated[str, Depends(get_signed_subject)]
