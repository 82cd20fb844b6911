import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from app.core.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

# CryptContext handles password hashing using bcrypt
# bcrypt is slow by design to prevent brute-force attacks
# 'deprecated="auto"' allows passlib to handle deprecation warnings automatically
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Claim carrying the user id - the mobile client and existing tokens use this name
USER_ID_CLAIM = "userId"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    # bcrypt generates a salt and includes it in the hash
    return pwd_context.hash(password)


def dummy_verify() -> None:
    """Spend the time of a real verify when there is no hash to check against"""
    pwd_context.dummy_verify()


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens.

    The signing secret is handed in once at construction and never read from
    global configuration afterwards. A token is valid only if its signature
    verifies and its exp claim has not passed; there is no revocation list.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_delta = timedelta(minutes=expire_minutes)

    @property
    def expires_delta(self) -> timedelta:
        return self._expires_delta

    def create_access_token(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token carrying the user id"""
        issued_at = datetime.now(timezone.utc)
        expire = issued_at + (expires_delta if expires_delta is not None else self._expires_delta)

        # jose converts datetime values of iat/exp to integer timestamps
        to_encode = {USER_ID_CLAIM: user_id, "iat": issued_at, "exp": expire}
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def verify_access_token(self, token: str) -> int:
        """
        Decode and verify a JWT token, returning the user id it carries.

        Raises InvalidTokenError if the signature does not verify, the token is
        expired, or the payload lacks an integer user id.
        """
        try:
            # Verify signature and expiration automatically
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as e:
            logger.debug(f"Token rejected: {e}")
            raise InvalidTokenError()

        user_id = payload.get(USER_ID_CLAIM)
        # bool is an int subclass - a forged {"userId": true} must not pass
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.debug("Token rejected: missing or non-integer user id claim")
            raise InvalidTokenError()

        if "exp" not in payload:
            # jose only checks exp when present; tokens without it never expire
            logger.debug("Token rejected: missing exp claim")
            raise InvalidTokenError()

        return user_id
