"""ORM model registry: import all models so metadata.create_all discovers them."""

from reseller_map.models.base import Base
from reseller_map.models.geo_cache import GeoCacheEntry

__all__ = [
    "Base",
    "GeoCacheEntry",
]
