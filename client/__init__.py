from __future__ import annotations

from .data_client import ClubDataClient
from .local_cache import LocalCache

__all__ = ["ClubDataClient", "LocalCache"]
