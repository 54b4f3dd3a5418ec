from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.sql import func
from cerisonet.database import Base

class AccountSQL(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    avatar = Column(String, nullable=True)
    connection_status = Column(Integer, nullable=False, default=0)  # 0 = offline, 1 = online

class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String, primary_key=True, index=True)  # cookie token
    user_id = Column(Integer, index=True, nullable=False)
    session_data = Column(String, nullable=False)  # JSON string for session data
    created_at = Column(DateTime, server_default=func.now())
    expires_at = Column(DateTime, nullable=False)
