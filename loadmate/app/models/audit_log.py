"""
Audit Log Database Model.

Tracks security events, admin actions and booking decisions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from loadmate.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.
    
    Events logged include logins, role changes, user deletions, vehicle
    moderation and every booking lifecycle transition.
    """
    __tablename__ = "audit_logs"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)
    
    # What action was performed
    action = Column(String(100), nullable=False, index=True)
    
    # Target user (for account management actions)
    target_user_id = Column(Integer, index=True, nullable=True)
    
    # Target record (booking / vehicle)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(Integer, nullable=True, index=True)
    
    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)
    
    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)
    
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email})>"
