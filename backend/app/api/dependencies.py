import logging
from dataclasses import dataclass
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from app.core.exceptions import AuthenticationError
from app.core.security import TokenService

logger = logging.getLogger(__name__)

# OAuth2 password bearer scheme - extracts token from Authorization header
# auto_error=False so a missing header reaches get_current_identity and gets our error shape
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity proven by a verified bearer token"""
    user_id: int


def get_token_service(request: Request) -> TokenService:
    """Token service the app was built with - holds the signing secret"""
    return request.app.state.token_service


async def get_current_identity(
    token: str | None = Depends(oauth2_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> AuthenticatedUser:
    """
    Auth gate for every todo route.

    Rejects with AuthenticationError when the Authorization header is absent,
    is not a Bearer header, or carries an empty token. Rejects with
    InvalidTokenError when the signature, expiry or payload does not check out.
    On success the identity is handed to the route as a value; nothing is
    stored on the request.

    Verification is stateless: no database lookup happens here. Handlers still
    check ownership of each todo they touch.
    """
    # OAuth2PasswordBearer returns None for a missing or non-Bearer header and
    # an empty string for "Bearer " with nothing after it
    if not token:
        logger.debug("Request rejected: no bearer token")
        raise AuthenticationError()

    user_id = token_service.verify_access_token(token)
    return AuthenticatedUser(user_id=user_id)
