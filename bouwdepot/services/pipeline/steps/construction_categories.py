"""Keyword mapping of free-text construction categories."""

from collections import Counter
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class ConstructionCategory(str, Enum):
    STRUCTURAL = "Structural"
    MEP = "MEP"
    INTERIOR_FINISHING = "InteriorFinishing"
    EXTERIOR = "Exterior"
    KITCHEN_BATHROOM = "KitchenBathroom"
    ENERGY_EFFICIENCY = "EnergyEfficiency"
    SECURITY = "Security"
    SMART_HOME = "SmartHome"
    PERMITS_FEES = "PermitsFees"
    OTHER = "Other"


# Checked in order; the first category with a matching keyword wins
CATEGORY_KEYWORDS: List[Tuple[ConstructionCategory, Tuple[str, ...]]] = [
    (ConstructionCategory.STRUCTURAL, ("structural", "foundation", "wall", "roof", "frame")),
    (ConstructionCategory.MEP, ("mep", "mechanical", "electrical", "plumbing", "hvac", "wiring", "piping")),
    (ConstructionCategory.INTERIOR_FINISHING, ("interior", "finishing", "paint", "drywall", "ceiling", "floor")),
    (ConstructionCategory.EXTERIOR, ("exterior", "landscaping", "driveway", "garden", "fence")),
    (
        ConstructionCategory.KITCHEN_BATHROOM,
        ("kitchen", "bathroom", "sink", "toilet", "cabinets", "bathtub", "shower"),
    ),
    (
        ConstructionCategory.ENERGY_EFFICIENCY,
        ("energy", "efficiency", "insulation", "solar", "green", "sustainable"),
    ),
    (ConstructionCategory.SECURITY, ("security", "alarm", "camera", "surveillance", "lock", "safety")),
    (ConstructionCategory.SMART_HOME, ("smart", "automation", "iot", "internet of things", "control system")),
    (
        ConstructionCategory.PERMITS_FEES,
        ("permit", "fee", "inspection", "regulatory", "compliance", "approval"),
    ),
]


def map_category(category: Optional[str]) -> ConstructionCategory:
    """Map a model-supplied category label onto a ConstructionCategory."""
    if not category or not category.strip():
        return ConstructionCategory.OTHER

    text = category.strip().lower()
    for mapped, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return mapped
    return ConstructionCategory.OTHER


def summarize_categories(categories: Iterable[ConstructionCategory]) -> str:
    """One-line-per-category summary, most frequent first."""
    counts = Counter(categories)
    if not counts:
        return "No specific construction activities identified."

    total = sum(counts.values())
    lines = [f"Identified {total} construction-related activities across {len(counts)} categories:"]
    for category, count in counts.most_common():
        lines.append(f"- {category.value} ({count} items)")
    return "\n".join(lines)
