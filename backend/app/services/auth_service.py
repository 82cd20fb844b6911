import logging
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from app.core.exceptions import AuthenticationError, ConflictError
from app.core.security import TokenService, dummy_verify, get_password_hash, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password - prevents user enumeration
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


def normalize_email(email: str) -> str:
    """
    Canonical form used both when storing and when looking up an email.

    Runs the same parsing as EmailStr (display names like "Alice <a@x.com>"
    reduce to the address) and lowercases the result. Input that does not
    parse is only stripped and lowercased, so login with it simply finds no user.
    """
    try:
        _, email = validate_email(email)
    except PydanticCustomError:
        email = email.strip()
    return email.lower()


class AuthService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    @staticmethod
    def signup(db: Session, email: str, password: str) -> User:
        """Register a new user"""
        email = normalize_email(email)
        # Explicit check gives a clean conflict before paying for a bcrypt hash
        if AuthService.get_user_by_email(db, email):
            raise ConflictError()

        db_user = User(email=email, hashed_password=get_password_hash(password))
        db.add(db_user)
        try:
            db.commit()
        except IntegrityError:
            # Two requests registering the same email at once both pass the
            # check above; the unique constraint catches the second one
            db.rollback()
            raise ConflictError()
        db.refresh(db_user)

        logger.info(f"Registered user {db_user.id}")
        return db_user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> User:
        """Return the user for valid credentials, otherwise raise AuthenticationError"""
        user = AuthService.get_user_by_email(db, email)
        if user is None:
            # Keep timing close to the wrong-password path
            dummy_verify()
            logger.info("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        if not verify_password(password, user.hashed_password):
            logger.info("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        return user

    @staticmethod
    def login(db: Session, token_service: TokenService, email: str, password: str) -> str:
        """Check credentials and issue an access token for the user"""
        user = AuthService.authenticate(db, email, password)
        return token_service.create_access_token(user.id)


auth_service = AuthService()
