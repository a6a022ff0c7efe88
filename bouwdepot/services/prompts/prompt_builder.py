"""Assembles step prompts from a template and a response contract."""

import re
from typing import Any, Dict, List, Mapping, Optional

from bouwdepot.core.exceptions import TemplateNotFoundError
from bouwdepot.models.prompt_models import PromptTemplate
from bouwdepot.services.prompts.prompt_template_store import PromptTemplateStore
from bouwdepot.services.schema.json_schema_generator import JsonSchemaGenerator
from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

JSON_CONSTRAINT = (
    "IMPORTANT: Your response MUST be a valid JSON object with the exact structure "
    "shown in the following JSON schema:"
)
EXAMPLE_LABEL = "Here's an example of a valid response:"

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_.\-]+)\s*\}\}")


def substitute_variables(text: str, variables: Optional[Mapping[str, Any]]) -> str:
    """Replace ``{{key}}`` placeholders; unknown keys are left untouched."""
    if not variables or not text:
        return text

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        return str(variables[key])

    return _PLACEHOLDER.sub(_replace, text)


class PromptBuilder:
    """Builds the full prompt text for a pipeline step.

    The output is, in order: role, task, instruction lines, the JSON
    constraint with the fenced schema, and a labelled fenced example.
    """

    def __init__(self, store: PromptTemplateStore, schema_generator: Optional[JsonSchemaGenerator] = None):
        self.store = store
        self.schema_generator = schema_generator or JsonSchemaGenerator()

    def build(
        self,
        template_name: str,
        contract_type: type,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """Build a prompt, or return None when the template is missing.

        Schema generation errors propagate unchanged.
        """
        template = self.store.get(template_name)
        if template is None:
            return None

        prompt = self._render(template, contract_type, variables)
        LOGGER.debug(
            f"Built prompt from template '{template_name}'",
            extra={"contract": contract_type.__name__, "prompt_length": len(prompt)},
        )
        return prompt

    def build_or_raise(
        self,
        template_name: str,
        contract_type: type,
        variables: Optional[Dict[str, Any]] = None,
    ) -> str:
        prompt = self.build(template_name, contract_type, variables)
        if prompt is None:
            raise TemplateNotFoundError(template_name)
        return prompt

    def _render(
        self,
        template: PromptTemplate,
        contract_type: type,
        variables: Optional[Dict[str, Any]],
    ) -> str:
        content = template.template
        lines: List[str] = []

        if content.role:
            lines.append(substitute_variables(content.role, variables))
            lines.append("")

        if content.task:
            lines.append(substitute_variables(content.task, variables))
            lines.append("")

        if content.instructions:
            for instruction in content.instructions:
                lines.append(substitute_variables(instruction, variables))
            lines.append("")

        schema = self.schema_generator.generate_schema(contract_type)
        example = self.schema_generator.generate_example(contract_type)

        lines.append(JSON_CONSTRAINT)
        lines.append("```json")
        lines.append(schema)
        lines.append("```")
        lines.append("")
        lines.append(EXAMPLE_LABEL)
        lines.append("```json")
        lines.append(example)
        lines.append("```")

        return "\n".join(lines)
