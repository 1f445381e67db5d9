"""
Recommendation templates: generation, personalization, content enhancement
and seasonal adjustment.
"""

from ...core.types import LogCategory, OutputFormat, TemplateType
from ..registry import PromptTemplate, TemplateParameter
from .interests import LIM_PREAMBLE


RECOMMENDATION_GENERATION_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} generate high-quality spot recommendations based on user interests and location.

Your task is to create detailed, personalized spot recommendations that match the user's specified interests in a particular location. Each recommendation should be specific, actionable, and include rich details that help the user understand why this spot would appeal to them."""

RECOMMENDATION_GENERATION_PROMPT = """Generate {{count}} spot recommendations in {{location}} for a user interested in {{interests}}.

For each recommendation, provide:
- id: A unique identifier
- name: The name of the spot
- description: A detailed description (2-3 sentences)
- type: The type of spot (cafe, park, museum, etc.)
- address: A plausible address in {{location}}
- coordinates: [latitude, longitude] coordinates
- tags: 3-5 relevant tags
- bestFor: What this spot is best for
- priceLevel: Price level (1-4, where 1 is least expensive)
- rating: Rating (1-5)
- imagePrompt: A detailed prompt that could be used to generate an image of this spot

The recommendations should be diverse but focused on the user's interests. Include both popular spots and hidden gems."""

RECOMMENDATION_GENERATION_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id", "name", "description", "type", "address", "tags"],
        "properties": {
            "id": {"type": "string"},
            "name": {"type": "string"},
            "description": {"type": "string"},
            "type": {"type": "string"},
            "address": {"type": "string"},
            "coordinates": {
                "type": "array",
                "items": {"type": "number"},
                "minItems": 2,
                "maxItems": 2,
            },
            "tags": {"type": "array", "items": {"type": "string"}},
            "bestFor": {"type": "string"},
            "priceLevel": {"type": "integer", "minimum": 1, "maximum": 4},
            "rating": {"type": "number", "minimum": 1, "maximum": 5},
            "imagePrompt": {"type": "string"},
        },
    },
}


PERSONALIZATION_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} personalize recommendations based on user history and preferences.

Your task is to analyze a user's past interactions and preferences to provide highly personalized recommendations that align with their demonstrated interests while also introducing some novel suggestions they might enjoy."""

PERSONALIZATION_PROMPT = """Personalize recommendations for a user with the following profile:

Explicitly stated interests: {{explicitInterests}}
Past interactions: {{pastInteractions}}
Demographic info: {{demographics}}
Location: {{location}}

Based on this information, provide:
1. A ranked list of interests this user would likely enjoy
2. Specific spot recommendations that match these interests in their location
3. Explanation of why each recommendation matches their profile

Each recommendation should include:
- name: Name of the recommended spot
- interestAlignment: Which of their interests this aligns with
- noveltyFactor: How novel this is compared to their past interactions (1-10)
- personalizedReason: A personalized explanation of why they would enjoy this

Focus on creating a mix of recommendations that reinforce their explicit interests while also introducing some novel options based on patterns in their behavior."""

PERSONALIZATION_SCHEMA = {
    "type": "object",
    "required": ["inferredInterests", "recommendations", "personalizationInsights"],
    "properties": {
        "inferredInterests": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "interest": {"type": "string"},
                    "confidenceScore": {"type": "number", "minimum": 0, "maximum": 1},
                    "derivedFrom": {"type": "string"},
                },
            },
        },
        "recommendations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "interestAlignment": {"type": "string"},
                    "noveltyFactor": {"type": "integer", "minimum": 1, "maximum": 10},
                    "personalizedReason": {"type": "string"},
                },
            },
        },
        "personalizationInsights": {
            "type": "object",
            "properties": {
                "dominantInterestCategory": {"type": "string"},
                "suggestedNewCategories": {"type": "array", "items": {"type": "string"}},
                "personalityInsights": {"type": "string"},
            },
        },
    },
}


CONTENT_ENHANCEMENT_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} enhance content about locations and interests with rich, accurate details.

Your task is to take basic information about a location or interest and enhance it with engaging, informative content that would help users better understand and appreciate it."""

CONTENT_ENHANCEMENT_PROMPT = """Enhance the following basic content about {{subject}}:

Basic content:
{{basicContent}}

Enhance this content by adding:
- richDescription: A more detailed and engaging description
- historicalContext: Relevant historical information
- insiderTips: Tips that locals or enthusiasts might know
- bestTimeToVisit: When is the best time to engage with this
- photographyTips: Tips for capturing this subject well
- relatedInterests: Other interests that connect well with this
- funFacts: 3-5 interesting facts about this subject

The enhanced content should be accurate, engaging, and provide genuine value to someone interested in {{subject}}."""

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

CONTENT_ENHANCEMENT_SCHEMA = {
    "type": "object",
    "required": [
        "richDescription", "historicalContext", "insiderTips", "bestTimeToVisit",
        "photographyTips", "relatedInterests", "funFacts",
    ],
    "properties": {
        "richDescription": {"type": "string"},
        "historicalContext": {"type": "string"},
        "insiderTips": _STRING_LIST,
        "bestTimeToVisit": {"type": "string"},
        "photographyTips": _STRING_LIST,
        "relatedInterests": _STRING_LIST,
        "funFacts": _STRING_LIST,
    },
}


SEASONAL_ADJUSTMENT_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} adjust recommendations based on seasonal factors.

Your task is to take a set of recommendations and adjust them to be more appropriate for a specific season, taking into account weather, seasonal events, and cultural factors."""

SEASONAL_ADJUSTMENT_PROMPT = """Adjust the following recommendations for {{season}} in {{location}}:

Original recommendations:
{{recommendations}}

For each recommendation, provide:
- id: The original recommendation ID
- seasonalRelevance: Score from 1-10 how relevant this is for {{season}}
- seasonalAdjustments: Specific adjustments to make this more appropriate for {{season}}
- alternativeRecommendation: If the original is not suitable for {{season}}, suggest an alternative
- seasonalEvents: Any seasonal events or factors that enhance this recommendation
- weatherConsiderations: Weather-related considerations for {{season}}

Focus on making these recommendations more seasonally appropriate while preserving the core interest they address."""

SEASONAL_ADJUSTMENT_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id", "seasonalRelevance", "seasonalAdjustments"],
        "properties": {
            "id": {"type": "string"},
            "seasonalRelevance": {"type": "integer", "minimum": 1, "maximum": 10},
            "seasonalAdjustments": {"type": "string"},
            "alternativeRecommendation": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "reason": {"type": "string"},
                },
            },
            "seasonalEvents": _STRING_LIST,
            "weatherConsiderations": {"type": "string"},
        },
    },
}


def create_recommendation_generation_v1() -> PromptTemplate:
    return PromptTemplate(
        id="recommendation-generation-v1",
        type=TemplateType.RECOMMENDATION_GENERATION,
        version="1.0.0",
        description="Generate spot recommendations based on user interests and location",
        system_prompt=RECOMMENDATION_GENERATION_SYSTEM_PROMPT,
        user_prompt_template=RECOMMENDATION_GENERATION_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=RECOMMENDATION_GENERATION_SCHEMA,
        tags=("RECOMMENDATION", "LOCATION_BASED", "INTEREST_BASED"),
        category=LogCategory.RECOMMENDATION,
        parameters=(
            TemplateParameter("location", "The city or location to generate recommendations for"),
            TemplateParameter("interests", "Comma-separated list of user interests"),
            TemplateParameter("count", "Number of recommendations to generate", required=False, type="number"),
        ),
    )


def create_personalization_v1() -> PromptTemplate:
    return PromptTemplate(
        id="personalization-v1",
        type=TemplateType.PERSONALIZATION,
        version="1.0.0",
        description="Personalize recommendations based on user history and preferences",
        system_prompt=PERSONALIZATION_SYSTEM_PROMPT,
        user_prompt_template=PERSONALIZATION_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=PERSONALIZATION_SCHEMA,
        tags=("PERSONALIZATION", "USER_MODELING"),
        category=LogCategory.RECOMMENDATION,
        parameters=(
            TemplateParameter("explicitInterests", "Interests explicitly stated by the user"),
            TemplateParameter("pastInteractions", "Description of user's past interactions", required=False),
            TemplateParameter("demographics", "Demographic information about the user", required=False),
            TemplateParameter("location", "User's current location"),
        ),
    )


def create_content_enhancement_v1() -> PromptTemplate:
    return PromptTemplate(
        id="content-enhancement-v1",
        type=TemplateType.CONTENT_ENHANCEMENT,
        version="1.0.0",
        description="Enhance content about a location or interest with rich details",
        system_prompt=CONTENT_ENHANCEMENT_SYSTEM_PROMPT,
        user_prompt_template=CONTENT_ENHANCEMENT_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=CONTENT_ENHANCEMENT_SCHEMA,
        tags=("CONTENT_ENHANCEMENT", "ENRICHMENT"),
        category=LogCategory.RECOMMENDATION,
        parameters=(
            TemplateParameter("subject", "The subject (location or interest) to enhance content for"),
            TemplateParameter("basicContent", "The basic content to enhance"),
        ),
    )


def create_seasonal_adjustment_v1() -> PromptTemplate:
    return PromptTemplate(
        id="seasonal-adjustment-v1",
        type=TemplateType.SEASONAL_ADJUSTMENT,
        version="1.0.0",
        description="Adjust recommendations based on seasonal factors",
        system_prompt=SEASONAL_ADJUSTMENT_SYSTEM_PROMPT,
        user_prompt_template=SEASONAL_ADJUSTMENT_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=SEASONAL_ADJUSTMENT_SCHEMA,
        tags=("SEASONAL_ADJUSTMENT", "WEATHER"),
        category=LogCategory.RECOMMENDATION,
        parameters=(
            TemplateParameter("season", "The season to adjust recommendations for"),
            TemplateParameter("location", "The location of the recommendations"),
            TemplateParameter("recommendations", "The original recommendations to adjust"),
        ),
    )
