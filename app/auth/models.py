from sqlalchemy import Column, String, Boolean, DateTime, Text, Uuid
from sqlalchemy.sql import func
from app.core.database import Base, generate_uuid


class UserRole:
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"

    ALL = (ADMIN, MANAGER, USER)
    STAFF = (ADMIN, MANAGER)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    password_hash = Column(Text, nullable=False)
    role = Column(String(50), nullable=False, default=UserRole.USER)  # admin, manager, user
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_staff(self) -> bool:
        return self.role in UserRole.STAFF
