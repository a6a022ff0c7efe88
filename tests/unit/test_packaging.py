"""Checks on the project metadata in pyproject.toml."""

import re
from pathlib import Path

from bouwdepot.core.config import DEFAULT_TEMPLATES_DIR

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def project_section() -> str:
    text = (PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r"^\[project\]\n(.*?)(?=^\[)", text, re.MULTILINE | re.DOTALL)
    assert match, "pyproject.toml has no [project] table"
    return match.group(1)


def test_long_description_is_a_readme():
    """Test that a declared long description is a README that exists."""
    readme = re.search(r'^readme\s*=\s*"([^"]+)"', project_section(), re.MULTILINE)
    if readme is not None:
        assert Path(readme.group(1)).name.upper().startswith("README")
        assert (PROJECT_ROOT / readme.group(1)).is_file()


def test_templates_are_shipped_as_package_data():
    text = (PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8")

    assert '"bouwdepot.prompts" = ["templates/*.yaml"' in text
    assert list(DEFAULT_TEMPLATES_DIR.glob("*.yaml"))
