"""
Request-serving surface for handlers outside the pipeline.
"""

from .requests import RecommendationService, cache_key

__all__ = ["RecommendationService", "cache_key"]
