"""
User model
"""

from datetime import datetime
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime, CheckConstraint

from authflow.core.database import Base


class User(Base):
    """User credentials - email, password hash and TOTP enrollment"""
    __tablename__ = "users"
    __table_args__ = (
        # A secret exists exactly when 2FA is enabled
        CheckConstraint(
            "(totp_enabled AND totp_secret IS NOT NULL) OR "
            "(NOT totp_enabled AND totp_secret IS NULL)",
            name="ck_users_totp_consistent",
        ),
    )

    # BigInteger autoincrement is not supported by SQLite, fall back to INTEGER there
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    totp_secret = Column(String(64), nullable=True)
    totp_enabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', totp_enabled={self.totp_enabled})>"
