from chartmaker.services.recommendation.allocator import allocate
from chartmaker.services.recommendation.dispatcher import BoundedDispatcher
from chartmaker.services.recommendation.engine import RecommendationEngine
from chartmaker.services.recommendation.grouping import QueryGroupKey, group_key_of, group_specs

__all__ = [
    "allocate",
    "BoundedDispatcher",
    "RecommendationEngine",
    "QueryGroupKey",
    "group_key_of",
    "group_specs",
]
