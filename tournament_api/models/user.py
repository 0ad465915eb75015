from sqlalchemy import Boolean, Column, DateTime, String

from tournament_api.database import Base
from tournament_api.ids import new_object_id
from tournament_api.models.team import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_object_id)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column("hashed_password", String, nullable=False)
    role = Column(String(16), nullable=False, default="admin", index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_login = Column(DateTime(timezone=True), nullable=True)
