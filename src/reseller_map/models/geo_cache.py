"""GeoCacheEntry model: last known coordinates per normalized address."""

from datetime import datetime

from sqlalchemy import DateTime, Double, String
from sqlalchemy.orm import Mapped, mapped_column

from reseller_map.models.base import Base


class GeoCacheEntry(Base):
    """Cached coordinates keyed by normalized address (one row per address)."""

    __tablename__ = "geo_cache"

    address: Mapped[str] = mapped_column(String, primary_key=True)
    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
