"""
Deterministic fallback generators.

Used in place of a live provider call when the stage's credential is
missing or the call fails (outside production, unless configured
otherwise). Output depends only on the combination and the record count,
so two runs over the same combination produce identical batches.
"""

import random
from typing import Any, Dict, List

from ..core.models import UnitOfWork
from ..core.utils import stable_seed


TYPE_MAP: Dict[str, str] = {
    "coffee": "cafe",
    "hiking": "park",
    "art": "museum",
    "food": "restaurant",
    "music": "venue",
    "books": "bookstore",
    "shopping": "store",
    "nature": "park",
}

TAG_MAP: Dict[str, List[str]] = {
    "coffee": ["Coffee", "Wifi", "Cozy", "Pastries"],
    "hiking": ["Hiking", "Nature", "Views", "Trails"],
    "art": ["Art", "Exhibits", "Culture", "Modern"],
    "food": ["Food", "Delicious", "Local", "Authentic"],
    "music": ["Music", "Live Shows", "Atmosphere", "Drinks"],
    "books": ["Books", "Reading", "Cozy", "Quiet"],
    "shopping": ["Shopping", "Boutique", "Unique", "Local"],
    "nature": ["Nature", "Peaceful", "Scenic", "Outdoors"],
}

DEFAULT_TAGS = ["Interesting", "Popular", "Recommended", "Local"]

LA_COFFEE_RESEARCH = """Here are the best coffee spots in Los Angeles:

1. Intelligentsia Coffee - Upscale coffeehouse chain known for direct-trade beans & creative drinks. Located at 3922 Sunset Blvd, Los Angeles.

2. Blue Bottle Coffee - Trendy cafe serving specialty coffee in a minimalist space. Located at 8301 Beverly Blvd, Los Angeles.

3. Verve Coffee Roasters - Stylish cafe offering house-roasted coffee, pastries & light fare in a bright, airy space. Located at 833 S Spring St, Los Angeles.

4. Dinosaur Coffee - Hip, compact coffee bar serving espresso drinks & pastries in a modern, minimalist space. Located at 4334 Sunset Blvd, Los Angeles.

5. Maru Coffee - Sleek, minimalist cafe specializing in pour-over coffee & espresso drinks with Japanese influence. Located at 1936 Hillhurst Ave, Los Angeles."""

GENERIC_RESEARCH_LINES = [
    ("A fantastic place for {interest} enthusiasts with unique offerings.", "123 Main St"),
    ("Popular local favorite known for exceptional {interest} experiences.", "456 Oak Ave"),
    ("Historic establishment with authentic {interest} traditions.", "789 Pine Blvd"),
    ("Modern venue offering innovative {interest} concepts.", "101 Cedar St"),
    ("Hidden gem with passionate {interest} culture and community.", "202 Maple Dr"),
]

LA_COFFEE_SPECIALS: List[Dict[str, Any]] = [
    {
        "id": "cl1",
        "name": "Intelligentsia Coffee",
        "description": "Upscale coffeehouse chain known for direct-trade beans & creative drinks.",
        "type": "cafe",
        "address": "3922 Sunset Blvd, Los Angeles",
        "neighborhood": "Silver Lake",
        "tags": ["Coffee", "Hip", "Pour Over"],
        "checkIns": 152,
    },
    {
        "id": "cl2",
        "name": "Blue Bottle Coffee",
        "description": "Trendy cafe serving specialty coffee in a minimalist space.",
        "type": "cafe",
        "address": "8301 Beverly Blvd, Los Angeles",
        "neighborhood": "Beverly Grove",
        "tags": ["Coffee", "Pastries", "Minimalist"],
        "checkIns": 86,
    },
]


def type_for_interest(interest_id: str) -> str:
    return TYPE_MAP.get(interest_id, "venue")


def tags_for_interest(interest_id: str) -> List[str]:
    return list(TAG_MAP.get(interest_id, DEFAULT_TAGS))


def _is_la_coffee(unit: UnitOfWork) -> bool:
    return unit.interest.id == "coffee" and unit.location.id == "la"


def research_text(unit: UnitOfWork) -> str:
    """Synthetic research notes for one combination."""
    if _is_la_coffee(unit):
        return LA_COFFEE_RESEARCH

    interest = unit.interest.name.lower()
    location = unit.location.name
    lines = [f"Here are the best {unit.interest.name} spots in {location}:", ""]
    for i, (description, street) in enumerate(GENERIC_RESEARCH_LINES, start=1):
        lines.append(
            f"{i}. {location} {unit.interest.name} Spot {i} - "
            f"{description.format(interest=interest)} Located at {street}, {location}."
        )
        lines.append("")
    return "\n".join(lines).rstrip()


def structured_items(unit: UnitOfWork, count: int = 5) -> List[Dict[str, Any]]:
    """
    Synthetic structured items for one combination.

    Items use the same camelCase shape the structuring template asks the
    provider for.
    """
    rng = random.Random(stable_seed(unit.location.id, unit.interest.id, count))
    tag_pool = tags_for_interest(unit.interest.id)
    coordinates = list(unit.location.coordinates) if unit.location.coordinates else None

    items = []
    for i in range(1, count + 1):
        if _is_la_coffee(unit) and i <= len(LA_COFFEE_SPECIALS):
            item = dict(LA_COFFEE_SPECIALS[i - 1])
        else:
            item = {
                "id": f"{unit.interest.id}-{unit.location.id}-{i}",
                "name": f"{unit.location.name} {unit.interest.name} Spot {i}",
                "description": (
                    f"A fantastic place for {unit.interest.name.lower()} "
                    f"enthusiasts with unique offerings."
                ),
                "type": type_for_interest(unit.interest.id),
                "address": f"{100 + i} Main St, {unit.location.name}",
                "tags": rng.sample(tag_pool, min(len(tag_pool), 3 + rng.randint(0, 1))),
                "checkIns": rng.randint(50, 499),
            }
        item.setdefault("priceRange", rng.randint(1, 4))
        item.setdefault("popularity", rng.randint(4, 10))
        item.setdefault("coordinates", coordinates)
        items.append(item)
    return items
