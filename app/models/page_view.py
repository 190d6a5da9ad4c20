"""Page view model: one row per counted, deduplicated visit."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from app.database import Base


class PageView(Base):
    __tablename__ = "page_views"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    path = Column(Text, nullable=False)
    # No foreign key: views of deleted cases still count towards totals
    target_id = Column(Integer, nullable=True)
    target_type = Column(String(16), nullable=True)
    visitor_signature = Column(String(64), nullable=False, default="")
    user_agent = Column(Text, nullable=False, default="")
    occurred_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (Index("idx_page_views_target", "target_id", "target_type"),)
