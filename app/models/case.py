from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime
import enum


class CaseType(str, enum.Enum):
    CASE = "case"
    MEMORY = "memory"


class CaseStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Case(Base):
    """An archived repression case, or a personal memory about a victim."""

    __tablename__ = "cases"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String, index=True, nullable=False)
    person_name = Column(String, nullable=True)
    type = Column(Enum(CaseType), default=CaseType.CASE, nullable=False)
    description = Column(Text, nullable=False)
    year = Column(Integer, nullable=True)
    status = Column(Enum(CaseStatus), default=CaseStatus.PUBLISHED, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    created_by = relationship("User", back_populates="cases", lazy="selectin")

    __table_args__ = (
        Index("idx_cases_status", "status"),
        Index("idx_cases_type_year", "type", "year"),
    )

    @property
    def display_title(self) -> str:
        # Memories are listed under the remembered person's name
        if self.type == CaseType.MEMORY and self.person_name:
            return self.person_name
        return self.title
