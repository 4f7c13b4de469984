from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from app.db.session import Base


class Setting(Base):
    """Generic key/value application setting (sync toggles, watermarks, admin password hash)."""

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
