"""
Pipeline templates: spot research (prose) and spot structuring (JSON array).

The research stage asks a search-backed model for current, factual notes
about places for one interest in one city. The structuring stage turns those
notes into a fixed-size array of records.
"""

from ...core.types import LogCategory, OutputFormat, TemplateType
from ..registry import PromptTemplate, TemplateParameter


SPOT_RESEARCH_SYSTEM_PROMPT = (
    "You are a knowledgeable local expert with deep knowledge about the places "
    "people go for a given interest in a given city. Provide factual, specific "
    "information about actual places that exist. Be specific and include "
    "important details."
)

SPOT_RESEARCH_PROMPT = """I need detailed, factual information about the best places for {{interest}} in {{location}}.

Please include:
1. Hidden gems and local favorites
2. Well-known destinations that are actually worth visiting
3. Emerging and trending spots
4. Places with unique or special characteristics
5. Information about what makes each place special, distinctive or worth visiting
6. Any relevant details about location, price range, or crowd levels

For each place, please provide:
- Name
- Brief description (what makes it special)
- Location/neighborhood
- Any notable features or specialties

Please ensure information is current and accurate. Focus on places that have genuine appeal to enthusiasts of {{interest}} in {{location}}.

Organize the information clearly."""


SPOT_STRUCTURING_SYSTEM_PROMPT = (
    "You are a helpful assistant that structures data about places into clean "
    "JSON format for a recommendation system. Only return valid, well-structured "
    "JSON without any explanations or extra text."
)

SPOT_STRUCTURING_PROMPT = """Please analyze the following research about {{interest}} places in {{location}} and structure it into a clean, organized JSON format for our recommendation system.

RESEARCH DATA:
{{research}}

For each place, extract or infer:
- name: The name of the place
- description: A concise 1-2 sentence description
- type: The type/category ({{type}})
- neighborhood: The neighborhood or area within {{location}}
- tags: 2-4 relevant tags from: {{tags}}
- priceRange: A number from 1-4 (1 being least expensive, 4 being most)
- popularity: A number from 1-10 representing how popular/busy it is
- coordinates: Approximate [longitude, latitude] if available, otherwise null
- website: The website URL if available, otherwise null
- imageUrl: Leave as null, we'll add images later
- checkIns: A randomly generated number between 5-120 representing user visits

Return ONLY a JSON array of exactly {{count}} recommendations (the very best places). Each recommendation should have all fields listed above. Format as a clean, valid JSON array with no additional text."""

SPOT_STRUCTURING_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["name", "description", "type", "tags"],
        "properties": {
            "name": {"type": "string", "minLength": 1},
            "description": {"type": "string"},
            "type": {"type": "string"},
            "neighborhood": {"type": ["string", "null"]},
            "tags": {"type": "array", "items": {"type": "string"}},
            "priceRange": {"type": "integer", "minimum": 1, "maximum": 4},
            "popularity": {"type": "number", "minimum": 1, "maximum": 10},
            "coordinates": {
                "type": ["array", "null"],
                "items": {"type": "number"},
                "minItems": 2,
                "maxItems": 2,
            },
            "website": {"type": ["string", "null"]},
            "imageUrl": {"type": ["string", "null"]},
            "checkIns": {"type": "integer", "minimum": 0},
        },
    },
}


def create_spot_research_v1() -> PromptTemplate:
    return PromptTemplate(
        id="spot-research-v1",
        type=TemplateType.SPOT_RESEARCH,
        version="1.0.0",
        description="Research notable places for one interest in one city",
        system_prompt=SPOT_RESEARCH_SYSTEM_PROMPT,
        user_prompt_template=SPOT_RESEARCH_PROMPT,
        output_format=OutputFormat.MARKDOWN,
        tags=("PIPELINE", "RESEARCH"),
        category=LogCategory.PIPELINE,
        parameters=(
            TemplateParameter("interest", "Interest name, lowercased"),
            TemplateParameter("location", "City display name"),
        ),
    )


def create_spot_structuring_v1() -> PromptTemplate:
    return PromptTemplate(
        id="spot-structuring-v1",
        type=TemplateType.SPOT_STRUCTURING,
        version="1.0.0",
        description="Structure research notes into a fixed-size array of place records",
        system_prompt=SPOT_STRUCTURING_SYSTEM_PROMPT,
        user_prompt_template=SPOT_STRUCTURING_PROMPT,
        output_format=OutputFormat.JSON,
        output_schema=SPOT_STRUCTURING_SCHEMA,
        tags=("PIPELINE", "ENHANCEMENT"),
        category=LogCategory.PIPELINE,
        parameters=(
            TemplateParameter("interest", "Interest name, lowercased"),
            TemplateParameter("location", "City display name"),
            TemplateParameter("research", "Output of the research stage"),
            TemplateParameter("type", "Place type for this interest"),
            TemplateParameter("tags", "Allowed tags for this interest"),
            TemplateParameter("count", "Number of records to return", type="number"),
        ),
    )
