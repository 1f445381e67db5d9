"""
Built-in prompt template catalog.
"""

from typing import List

from ..registry import PromptTemplate
from .interests import (
    create_interest_expansion_v1,
    create_interest_generation_v1,
    create_location_analysis_v1,
    create_trend_detection_v1,
)
from .recommendations import (
    create_content_enhancement_v1,
    create_personalization_v1,
    create_recommendation_generation_v1,
    create_seasonal_adjustment_v1,
)
from .spots import create_spot_research_v1, create_spot_structuring_v1


def builtin_templates() -> List[PromptTemplate]:
    """Create every built-in template."""
    return [
        create_interest_generation_v1(),
        create_recommendation_generation_v1(),
        create_interest_expansion_v1(),
        create_location_analysis_v1(),
        create_trend_detection_v1(),
        create_personalization_v1(),
        create_content_enhancement_v1(),
        create_seasonal_adjustment_v1(),
        create_spot_research_v1(),
        create_spot_structuring_v1(),
    ]
