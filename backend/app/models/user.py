from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class User(Base):
    """
    User model representing application users.

    Created at signup and never modified afterwards.
    Passwords are stored as hashes (never plaintext).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Email is unique and indexed for fast lookups during login
    email = Column(String, unique=True, index=True, nullable=False)
    # Password is hashed using bcrypt - never store plaintext passwords
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
