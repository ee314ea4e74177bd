from chartmaker.services.bangumi.client import BangumiClient
from chartmaker.services.bangumi.service import TYPE_MAP, BangumiService

__all__ = ["BangumiClient", "BangumiService", "TYPE_MAP"]
