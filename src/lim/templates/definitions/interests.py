"""
Interest templates: generation, expansion, location analysis and trend detection.
"""

from ...core.types import LogCategory, OutputFormat, TemplateType
from ..registry import PromptTemplate, TemplateParameter


LIM_PREAMBLE = "You are the Large Interest Model (LIM), a specialized AI designed to"


INTEREST_GENERATION_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} generate relevant interests for users based on their location, current trends, and seasonal factors.

Your task is to create a list of interests that would be relevant and engaging for users in a specific location. Consider:
1. Local culture and attractions
2. Seasonal activities appropriate for the current time of year
3. Popular trends in the area
4. Diverse range of categories (food, outdoor activities, arts, etc.)

Each interest should include an ID, name, emoji, category, and whether it's trending."""

INTEREST_GENERATION_PROMPT = """Generate a list of interests for users in {{location}}.

Current month: {{month}}
Season: {{season}}
Additional context: {{context}}

Return a structured list of interests with the following properties:
- id: A unique identifier (lowercase, hyphenated if multiple words)
- name: Display name for the interest
- emoji: A relevant emoji
- category: The category this interest belongs to
- trending: Boolean indicating if this is currently trending
- color: A hex color code appropriate for this interest (optional)

Focus on interests that would be particularly relevant for {{location}} during {{season}}."""

INTEREST_GENERATION_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id", "name", "emoji", "category", "trending"],
        "properties": {
            "id": {"type": "string"},
            "name": {"type": "string"},
            "emoji": {"type": "string"},
            "category": {"type": "string"},
            "trending": {"type": "boolean"},
            "color": {"type": "string"},
        },
    },
}


INTEREST_EXPANSION_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} expand interests into more specific sub-interests.

Your task is to take a general interest and expand it into more specific, related sub-interests that users might want to explore. These should be more specific than the parent interest but still related."""

INTEREST_EXPANSION_PROMPT = """Expand the interest "{{interest}}" into {{count}} more specific sub-interests.

For each sub-interest, provide:
- id: A unique identifier (lowercase, hyphenated if multiple words)
- name: Display name for the sub-interest
- emoji: A relevant emoji
- parentInterest: "{{interest}}"
- description: A brief description of this sub-interest
- popularity: A score from 1-10 indicating how popular this sub-interest is

The sub-interests should be diverse but clearly related to the parent interest "{{interest}}"."""

INTEREST_EXPANSION_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id", "name", "emoji", "parentInterest", "description", "popularity"],
        "properties": {
            "id": {"type": "string"},
            "name": {"type": "string"},
            "emoji": {"type": "string"},
            "parentInterest": {"type": "string"},
            "description": {"type": "string"},
            "popularity": {"type": "integer", "minimum": 1, "maximum": 10},
        },
    },
}


LOCATION_ANALYSIS_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} analyze locations and identify their key characteristics, popular activities, and unique features.

Your task is to provide a detailed analysis of a specific location, highlighting what makes it unique and what activities or interests are particularly well-suited for this location."""

LOCATION_ANALYSIS_PROMPT = """Analyze {{location}} and provide a detailed breakdown of its key characteristics and popular activities.

Include in your analysis:
- uniqueFeatures: What makes this location special or unique
- popularActivities: Top activities people enjoy here
- bestSeasons: Which seasons are best for visiting and why
- localSpecialties: Food, drinks, or products the area is known for
- culturalHighlights: Important cultural aspects of the location
- hiddenGems: Lesser-known but worthwhile experiences
- demographicAppeal: Which types of visitors this location appeals to most

Focus on specific, actionable insights that would help someone understand what makes {{location}} unique and what they might enjoy doing there."""

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

LOCATION_ANALYSIS_SCHEMA = {
    "type": "object",
    "required": [
        "uniqueFeatures", "popularActivities", "bestSeasons", "localSpecialties",
        "culturalHighlights", "hiddenGems", "demographicAppeal",
    ],
    "properties": {
        "uniqueFeatures": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                },
            },
        },
        "popularActivities": _STRING_LIST,
        "bestSeasons": {
            "type": "object",
            "properties": {
                season: {"type": "string"} for season in ("spring", "summer", "fall", "winter")
            },
        },
        "localSpecialties": _STRING_LIST,
        "culturalHighlights": _STRING_LIST,
        "hiddenGems": _STRING_LIST,
        "demographicAppeal": {
            "type": "object",
            "properties": {
                group: {"type": "string"}
                for group in ("families", "youngAdults", "seniors", "soloTravelers")
            },
        },
    },
}


TREND_DETECTION_SYSTEM_PROMPT = f"""{LIM_PREAMBLE} detect current trends in interests and activities for specific locations.

Your task is to identify what interests and activities are currently trending in a given location, based on the current season, recent events, and cultural factors."""

TREND_DETECTION_PROMPT = """Identify current trending interests and activities in {{location}} for {{season}} {{year}}.

Consider:
- Recent cultural events or phenomena
- Seasonal activities appropriate for {{season}}
- Local festivals or events happening around this time
- Social media trends specific to this location
- New openings or popular destinations

For each trend, provide:
- name: Name of the trending interest/activity
- category: Category it belongs to
- description: Why it's trending right now
- popularityScore: Estimated popularity (1-10)
- demographic: Primary demographic driving this trend
- duration: How long you expect this trend to last ("short", "medium", "long")

Focus on trends that are specific to {{location}} rather than global trends, unless those global trends have a unique local expression."""

TREND_DETECTION_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["name", "category", "description", "popularityScore", "demographic", "duration"],
        "properties": {
            "name": {"type": "string"},
            "category": {"type": "string"},
            "description": {"type": "string"},
            "popularityScore": {"type": "integer", "minimum": 1, "maximum": 10},
            "demographic": {"type": "string"},
            "duration": {"type": "string", "enum": ["short", "medium", "long"]},
        },
    },
}


def create_interest_generation_v1() -> PromptTemplate:
    return PromptTemplate(
        id="interest-generation-v1",
        type=TemplateType.INTEREST_GENERATION,
        version="1.0.0",
        description="Generate relevant interests based on location and user context",
        system_prompt=INTEREST_GENERATION_SYSTEM_PROMPT,
        user_prompt_template=INTEREST_GENERATION_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=INTEREST_GENERATION_SCHEMA,
        tags=("INTEREST_GENERATION", "LOCATION_BASED", "SEASONAL"),
        category=LogCategory.INTEREST,
        parameters=(
            TemplateParameter("location", "The city or location to generate interests for"),
            TemplateParameter("month", "Current month"),
            TemplateParameter("season", "Current season"),
            TemplateParameter("context", "Additional context about the location or user", required=False),
        ),
        examples=(
            (
                {
                    "location": "San Francisco",
                    "month": "June",
                    "season": "Summer",
                    "context": "Tech-focused city with diverse food scene",
                },
                [
                    {"id": "sourdough-bread", "name": "Sourdough Bread", "emoji": "🍞",
                     "category": "food", "trending": True, "color": "#FF6B6B"},
                    {"id": "golden-gate-park", "name": "Golden Gate Park", "emoji": "🌉",
                     "category": "outdoors", "trending": False, "color": "#4ECDC4"},
                ],
            ),
        ),
    )


def create_interest_expansion_v1() -> PromptTemplate:
    return PromptTemplate(
        id="interest-expansion-v1",
        type=TemplateType.INTEREST_EXPANSION,
        version="1.0.0",
        description="Expand a given interest into related sub-interests",
        system_prompt=INTEREST_EXPANSION_SYSTEM_PROMPT,
        user_prompt_template=INTEREST_EXPANSION_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=INTEREST_EXPANSION_SCHEMA,
        tags=("INTEREST_EXPANSION", "TAXONOMY"),
        category=LogCategory.INTEREST,
        parameters=(
            TemplateParameter("interest", "The parent interest to expand"),
            TemplateParameter("count", "Number of sub-interests to generate", required=False, type="number"),
        ),
    )


def create_location_analysis_v1() -> PromptTemplate:
    return PromptTemplate(
        id="location-analysis-v1",
        type=TemplateType.LOCATION_ANALYSIS,
        version="1.0.0",
        description="Analyze a location for its key characteristics and popular activities",
        system_prompt=LOCATION_ANALYSIS_SYSTEM_PROMPT,
        user_prompt_template=LOCATION_ANALYSIS_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=LOCATION_ANALYSIS_SCHEMA,
        tags=("LOCATION_ANALYSIS", "TRAVEL"),
        category=LogCategory.INTEREST,
        parameters=(
            TemplateParameter("location", "The location to analyze"),
        ),
    )


def create_trend_detection_v1() -> PromptTemplate:
    return PromptTemplate(
        id="trend-detection-v1",
        type=TemplateType.TREND_DETECTION,
        version="1.0.0",
        description="Detect current trends in interests for a specific location",
        system_prompt=TREND_DETECTION_SYSTEM_PROMPT,
        user_prompt_template=TREND_DETECTION_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=TREND_DETECTION_SCHEMA,
        tags=("TREND_DETECTION", "SEASONAL"),
        category=LogCategory.INTEREST,
        parameters=(
            TemplateParameter("location", "The location to detect trends for"),
            TemplateParameter("season", "Current season"),
            TemplateParameter("year", "Current year"),
        ),
    )
