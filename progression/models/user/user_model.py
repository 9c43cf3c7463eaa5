from sqlalchemy import Integer, String, Boolean, DateTime, func, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from progression.db.base_class import Base
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum

if TYPE_CHECKING:
    from .user_language_model import UserLanguage

# Rôle fourni par le fournisseur d'identité
class UserRole(str, enum.Enum):
    LEARNER = "learner"
    OPERATOR = "operator"

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    base_language: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="userrole", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=UserRole.LEARNER,
        server_default=UserRole.LEARNER.value
    )

    languages: Mapped[List["UserLanguage"]] = relationship(back_populates="user", cascade="all, delete-orphan")

    @property
    def is_operator(self) -> bool:
        return self.role == UserRole.OPERATOR


__all__ = ["User", "UserRole"]
