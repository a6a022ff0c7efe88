"""Filesystem-backed store of prompt templates."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from bouwdepot.core.exceptions import TemplateNotFoundError
from bouwdepot.models.prompt_models import PromptTemplate
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

TEMPLATE_SUFFIXES = (".json", ".yaml", ".yml")


class DuplicatePolicy(str, Enum):
    """Which template wins when two files declare the same name."""
    FIRST_WINS = "first_wins"
    LAST_WINS = "last_wins"


class PromptTemplateStore:
    """Loads template documents from a directory tree and indexes them by name.

    Files are visited in sorted path order, so the outcome of a duplicate
    name is deterministic. A file that cannot be parsed is logged and
    skipped without affecting the others.
    """

    def __init__(
        self,
        templates_dir: Union[str, Path],
        duplicate_policy: Union[str, DuplicatePolicy] = DuplicatePolicy.FIRST_WINS,
        autoload: bool = True,
    ):
        self.templates_dir = Path(templates_dir)
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self._templates: Dict[str, PromptTemplate] = {}
        self._sources: Dict[str, Path] = {}
        if autoload:
            self.load()

    def load(self) -> int:
        """Scan the template root and index every parseable template.

        Returns:
            Number of templates in the store after loading
        """
        if not self.templates_dir.is_dir():
            LOGGER.warning(f"Prompt template directory not found: {self.templates_dir}")
            return 0

        paths = sorted(
            p for p in self.templates_dir.rglob("*")
            if p.is_file() and p.suffix.lower() in TEMPLATE_SUFFIXES
        )
        LOGGER.info(f"Found {len(paths)} prompt template files in {self.templates_dir}")

        for path in paths:
            template = self._read_template(path)
            if template is not None:
                self._index(template, path)

        LOGGER.info(f"Loaded {len(self._templates)} prompt templates")
        return len(self._templates)

    def reload(self) -> int:
        """Clear the store and load again from disk."""
        LOGGER.info("Reloading prompt templates")
        self._templates.clear()
        self._sources.clear()
        return self.load()

    def get(self, name: str) -> Optional[PromptTemplate]:
        template = self._templates.get(name)
        if template is None:
            LOGGER.warning(f"Prompt template not found: {name}")
        return template

    def require(self, name: str) -> PromptTemplate:
        """Return the template or raise TemplateNotFoundError."""
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotFoundError(name)
        return template

    def names(self) -> List[str]:
        return sorted(self._templates)

    def source_of(self, name: str) -> Optional[Path]:
        """Path of the file a template was loaded from."""
        return self._sources.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def _index(self, template: PromptTemplate, path: Path) -> None:
        name = template.name
        if name in self._templates:
            if self.duplicate_policy == DuplicatePolicy.FIRST_WINS:
                LOGGER.warning(
                    f"Duplicate prompt template name '{name}' in {path}, keeping {self._sources[name]}"
                )
                return
            LOGGER.warning(
                f"Duplicate prompt template name '{name}' in {path}, replacing {self._sources[name]}"
            )

        self._templates[name] = template
        self._sources[name] = path
        LOGGER.debug(f"Loaded prompt template '{name}' from {path}")

    def _read_template(self, path: Path) -> Optional[PromptTemplate]:
        try:
            raw = self._parse_file(path)
            if not isinstance(raw, dict):
                LOGGER.error(f"Prompt template {path} is not a mapping, skipping")
                return None
            return PromptTemplate.model_validate(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError, ValidationError) as e:
            LOGGER.error(f"Error loading prompt template from {path}: {e}")
            return None

    @staticmethod
    def _parse_file(path: Path) -> Any:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
