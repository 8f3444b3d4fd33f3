"""
User database model.

Holds customers, vehicle owners and admins in one table.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, JSON, CheckConstraint
from sqlalchemy.sql import func
from loadmate.app.db.session import Base
from loadmate.app.models.enums import UserRole, AuthProvider


class User(Base):
    """
    User model for authentication and account management.
    
    A password hash is required unless the account signs in with Google.
    Owner-only fields stay empty for customers and admins.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "hashed_password IS NOT NULL OR google_id IS NOT NULL",
            name="ck_users_credentials_present",
        ),
    )
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    
    # Google sign-in
    google_id = Column(String(255), unique=True, nullable=True)
    profile_picture = Column(String(500), nullable=True)
    auth_provider = Column(Enum(AuthProvider), default=AuthProvider.LOCAL, nullable=False)
    
    role = Column(Enum(UserRole), default=UserRole.CUSTOMER, nullable=False, index=True)
    
    # Vehicle owner details
    business_name = Column(String(200), nullable=True)
    license_number = Column(String(100), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    vehicles_owned = Column(JSON, default=list, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
