"""Models for command-line runner options."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator

from suite_runner.models.base import Model

OutputFormat = Literal["json", "xml", "text"]


class RunnerOptions(Model):
    """Options shared by the in-process and external runners."""

    output_file: Path | None = Field(
        default=None, description="Where to save the report (None means no file)"
    )
    output_format: OutputFormat = Field(
        default="json", description="Report format written to output_file"
    )
    verbose: bool = Field(
        default=False, description="Log every test instead of a summary"
    )

    @field_validator("output_format", mode="before")
    @classmethod
    def _normalize_format(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
