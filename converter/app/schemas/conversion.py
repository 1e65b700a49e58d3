"""
Conversion contracts.

Request options and the results produced by the HTML generator, the
variable replacer and the conversion coordinator.

Options are always passed explicitly. No stage reads ambient state to
decide how to escape, format or treat unresolved placeholders.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from converter.app.schemas.content import DataSchema, VariableInfo


class ConversionModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class ConversionOptions(ConversionModel):
    """Per-request behaviour of the variable replacement stage."""

    model_config = ConfigDict(extra="forbid")

    escape_html: bool = Field(
        True,
        description="HTML-escape substituted values",
    )

    missing_variables: Literal["leave", "remove"] = Field(
        "leave",
        description=(
            "Unresolved placeholders are either left in place or removed. "
            "Ignored when missing_variable_text is set."
        ),
    )

    missing_variable_text: Optional[str] = Field(
        None,
        description="Literal text substituted for unresolved placeholders",
    )

    auto_format: bool = Field(
        True,
        description="Apply name-based formatting (currency, phone, url, area)",
    )

    include_template: bool = Field(
        False,
        description="Return the pre-replacement HTML alongside the result",
    )


# ---------------------------------------------------------------------------
# Generated document
# ---------------------------------------------------------------------------


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    VERY_COMPLEX = "very-complex"


class DocumentMetadata(ConversionModel):
    variables: int = Field(..., description="Number of distinct variables")
    complexity: Complexity
    generation_time: float = Field(..., description="Milliseconds")
    size_bytes: int = Field(..., description="UTF-8 size of the HTML")
    elements: int = Field(..., description="Number of rendered elements")
    content_hash: str = Field(..., description="SHA-256 of the HTML bytes")
    generated_at: datetime


class GeneratedDocument(ConversionModel):
    html: str
    metadata: DocumentMetadata


# ---------------------------------------------------------------------------
# Replacement result
# ---------------------------------------------------------------------------


class WarningType(str, Enum):
    SECURITY_WARNING = "SECURITY_WARNING"
    VALIDATION_WARNING = "VALIDATION_WARNING"
    PERFORMANCE_WARNING = "PERFORMANCE_WARNING"


class ReplacementWarning(ConversionModel):
    type: WarningType
    key: Optional[str] = None
    message: str


class ValueSource(str, Enum):
    DATA = "data"
    DATA_FLAT = "data-flat"
    DEFAULT = "default"


class ReplacementRecord(ConversionModel):
    variable: str
    original: str = Field(..., description="The placeholder token")
    replaced: str = Field(..., description="The substituted text")
    source: ValueSource
    occurrences: int = 1


class ReplacementStatistics(ConversionModel):
    total_variables: int = 0
    replaced_variables: int = 0
    missing_variables: int = 0
    total_occurrences: int = 0
    original_length: int = 0
    replaced_length: int = 0
    warnings_count: int = 0


class ReplacementError(ConversionModel):
    message: str
    code: str = "VARIABLE_REPLACEMENT_ERROR"


class ReplacementResult(ConversionModel):
    success: bool
    html: str
    missing: List[str] = Field(default_factory=list)
    warnings: List[ReplacementWarning] = Field(default_factory=list)
    statistics: ReplacementStatistics = Field(default_factory=ReplacementStatistics)
    replacements: List[ReplacementRecord] = Field(default_factory=list)
    processing_time: float = Field(0, description="Milliseconds")
    error: Optional[ReplacementError] = None


class ReplacementPreview(ConversionModel):
    variable: str
    current: str
    will_become: str
    source: str
    found: bool


class DataAvailability(ConversionModel):
    found_in_data: int = 0
    found_in_defaults: int = 0
    missing: int = 0
    coverage_percent: int = 0


class TemplateAnalysis(ConversionModel):
    total_instances: int = 0
    unique_variables: int = 0
    categories: Dict[str, int] = Field(default_factory=dict)
    data_availability: DataAvailability = Field(default_factory=DataAvailability)
    variable_list: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Coordinator results
# ---------------------------------------------------------------------------


class ProjectSummary(ConversionModel):
    project_name: str
    version: str
    total_elements: int
    element_types: Dict[str, int] = Field(default_factory=dict)
    variables: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ConversionResult(ConversionModel):
    conversion_id: str
    project: ProjectSummary
    metadata: DocumentMetadata
    html: str
    replacement: ReplacementResult
    template_html: Optional[str] = None


class SchemaExtraction(ConversionModel):
    project_name: str
    variables: List[str] = Field(default_factory=list)
    variable_info: Dict[str, VariableInfo] = Field(default_factory=dict)
    data_schema: DataSchema
    sample_data: Dict[str, Any] = Field(default_factory=dict)
