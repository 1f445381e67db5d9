"""
Recommendation refresh pipeline.

Runs research → structuring → persist over every (location, interest)
combination, then recomputes trending interests.
"""

from .config import DEFAULT_INTERESTS, DEFAULT_LOCATIONS, PipelineConfig
from .driver import PipelineDriver
from .stats import PipelineRunStats

__all__ = [
    "DEFAULT_INTERESTS",
    "DEFAULT_LOCATIONS",
    "PipelineConfig",
    "PipelineDriver",
    "PipelineRunStats",
]
