"""
Content analysis schemas.

Describe how text-bearing locations (text element content and table
cell content) split into literal text and ``{{path}}`` placeholders,
the project-wide variable set, and the data schema derived from it.

These models are read-only analysis output. Nothing here feeds back
into the canvas document.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ContentType(str, Enum):
    """
    Classification of a text-bearing location.

    LITERAL   no placeholders at all (includes empty content)
    VARIABLE  exactly one placeholder and nothing else but whitespace
    MIXED     anything else containing at least one placeholder
    """

    LITERAL = "literal"
    VARIABLE = "variable"
    MIXED = "mixed"


class VariableType(str, Enum):
    """Value type inferred from a variable path's wording."""

    CURRENCY = "currency"
    DATE = "date"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    NUMBER = "number"
    ADDRESS = "address"
    TEXT = "text"


# ---------------------------------------------------------------------------
# Per-location analysis
# ---------------------------------------------------------------------------


class ContentSegment(ContentModel):
    kind: Literal["text", "variable"]
    value: str = Field(
        ...,
        description="Literal text, or the full placeholder token for variables",
    )
    path: Optional[str] = Field(
        None,
        description="Variable path (variables only)",
    )


class ContentAnalysis(ContentModel):
    content_type: ContentType
    variables: List[str] = Field(
        default_factory=list,
        description="Distinct variable paths in order of first appearance",
    )
    segments: List[ContentSegment] = Field(default_factory=list)
    has_variables: bool
    has_literal_text: bool
    placeholder_count: int = Field(
        0,
        description="Number of placeholder occurrences, duplicates included",
    )


class ContentLocation(ContentModel):
    """A text element's content, or one table cell's content."""

    element_id: str
    element_name: str
    element_type: Literal["text", "table"]
    row: Optional[int] = None
    column: Optional[int] = None
    is_header: Optional[bool] = None
    content: str
    content_type: ContentType
    has_variables: bool
    has_literal_text: bool
    variables: List[str] = Field(default_factory=list)
    segments: List[ContentSegment] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


class VariableUsage(ContentModel):
    element_id: str
    element_name: str
    element_type: str
    row: Optional[int] = None
    column: Optional[int] = None


class VariableInfo(ContentModel):
    path: str
    type: VariableType
    category: str
    description: str
    default_value: str = Field(
        ...,
        description="Placeholder value used when synthesizing sample data",
    )
    required: bool = True
    usages: List[VariableUsage] = Field(default_factory=list)


class ContentStatistics(ContentModel):
    total_locations: int = 0
    locations_with_variables: int = 0
    locations_with_literal_text: int = 0
    mixed_locations: int = 0
    total_variable_references: int = 0
    unique_variables: int = 0


class ProcessedContent(ContentModel):
    text_elements: List[ContentLocation] = Field(default_factory=list)
    table_cells: List[ContentLocation] = Field(default_factory=list)
    variables: List[str] = Field(
        default_factory=list,
        description="Project-wide distinct variable paths, first-seen order",
    )
    variable_info: Dict[str, VariableInfo] = Field(default_factory=dict)
    statistics: ContentStatistics = Field(default_factory=ContentStatistics)


# ---------------------------------------------------------------------------
# Data schema
# ---------------------------------------------------------------------------


class DataSchema(ContentModel):
    """
    Shape of the runtime data a project expects.

    ``skeleton`` mirrors the dot paths as nested objects with ``None``
    leaves. ``json_schema`` is the same shape expressed as JSON Schema
    for data-entry form scaffolding.
    """

    variables: List[str] = Field(default_factory=list)
    skeleton: Dict[str, Any] = Field(default_factory=dict)
    json_schema: Dict[str, Any] = Field(default_factory=dict)
