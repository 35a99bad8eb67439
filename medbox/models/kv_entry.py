"""
Modelo de entrada clave-valor
"""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from medbox.core.database import Base


class KeyValueEntry(Base):
    """Documento JSON guardado bajo una clave"""
    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)  # JSON serializado
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<KeyValueEntry(key='{self.key}', size={len(self.value or '')})>"
