from chartmaker.services.vndb.client import VNDBClient
from chartmaker.services.vndb.service import VNDBService

__all__ = ["VNDBClient", "VNDBService"]
