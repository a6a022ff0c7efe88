"""Data models for prompt template documents.

A template document is stored as JSON or YAML and has three sections:
``metadata`` identifying the template, ``template`` holding the prompt text
and an optional list of ``examples``.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TemplateMetadata(BaseModel):
    """Identification of a template document."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1, description="Unique lookup name")
    version: Optional[str] = Field(None, description="Template version")
    description: Optional[str] = Field(None, description="What the template is for")
    last_modified: Optional[str] = Field(None, alias="lastModified", description="Last modification date")
    author: Optional[str] = Field(None, description="Template author")

    @field_validator("version", "last_modified", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # YAML reads 1.0 and 2024-01-01 as float and date
        if value is None or isinstance(value, str):
            return value
        return str(value)


class TemplateContent(BaseModel):
    """Prompt text of a template."""

    role: str = Field("", description="Role statement for the model")
    task: str = Field("", description="Task statement")
    instructions: List[str] = Field(default_factory=list, description="Ordered instruction lines")


class TemplateExample(BaseModel):
    """Input/output pair kept alongside a template."""

    input: Optional[str] = Field(None, description="Example input")
    output: Any = Field(None, description="Example output")


class PromptTemplate(BaseModel):
    """A parsed prompt template document."""

    metadata: TemplateMetadata
    template: TemplateContent = Field(default_factory=TemplateContent)
    examples: List[TemplateExample] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.metadata.name
