"""Unit tests for construction category mapping."""

import pytest

from bouwdepot.services.pipeline.steps.construction_categories import (
    ConstructionCategory,
    map_category,
    summarize_categories,
)


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Foundation repair", ConstructionCategory.STRUCTURAL),
        ("Roof replacement", ConstructionCategory.STRUCTURAL),
        ("Electrical wiring", ConstructionCategory.MEP),
        ("HVAC", ConstructionCategory.MEP),
        ("Paint", ConstructionCategory.INTERIOR_FINISHING),
        ("Landscaping", ConstructionCategory.EXTERIOR),
        ("Kitchen", ConstructionCategory.KITCHEN_BATHROOM),
        ("New shower", ConstructionCategory.KITCHEN_BATHROOM),
        ("Solar panels", ConstructionCategory.ENERGY_EFFICIENCY),
        ("Alarm system", ConstructionCategory.SECURITY),
        ("Home automation", ConstructionCategory.SMART_HOME),
        ("Building permit", ConstructionCategory.PERMITS_FEES),
        ("Furniture", ConstructionCategory.OTHER),
    ],
)
def test_keyword_mapping(label, expected):
    """Test that labels map case-insensitively by keyword."""
    assert map_category(label) == expected


@pytest.mark.parametrize("label", [None, "", "   "])
def test_blank_label_is_other(label):
    assert map_category(label) == ConstructionCategory.OTHER


def test_first_matching_category_wins():
    """Test that categories are checked in declaration order."""
    assert map_category("structural electrical work") == ConstructionCategory.STRUCTURAL


def test_summary_lists_most_frequent_first():
    summary = summarize_categories(
        [ConstructionCategory.MEP, ConstructionCategory.STRUCTURAL, ConstructionCategory.MEP]
    )

    lines = summary.split("\n")
    assert lines[0] == "Identified 3 construction-related activities across 2 categories:"
    assert lines[1] == "- MEP (2 items)"
    assert lines[2] == "- Structural (1 items)"


def test_empty_summary():
    assert summarize_categories([]) == "No specific construction activities identified."
