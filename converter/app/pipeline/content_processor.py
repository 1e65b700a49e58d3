"""
Content processor.

Read-only analysis of the text-bearing locations of a project: text
element content and table cell content. For each location it decides
whether the text is pure literal copy, a single data placeholder, or a
mix of the two, and it collects the project-wide set of ``{{path}}``
variables together with descriptive metadata.

From the variable list alone it can also derive a DataSchema (the shape
of the runtime data a project expects) and synthesize sample data that
fills every placeholder.

Placeholder grammar: ``{{`` + one or more characters other than ``}``
+ ``}}``. Surrounding whitespace inside the braces is not part of the
path.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from converter.app.schemas.content import (
    ContentAnalysis,
    ContentLocation,
    ContentSegment,
    ContentStatistics,
    ContentType,
    DataSchema,
    ProcessedContent,
    VariableInfo,
    VariableType,
    VariableUsage,
)

logger = logging.getLogger(__name__)


PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")


# ---------------------------------------------------------------------------
# Naming heuristics
# ---------------------------------------------------------------------------

# Checked in order; the first matching rule wins.
_TYPE_RULES = (
    (VariableType.CURRENCY, re.compile(r"price|amount|cost|fee|total|sum|value")),
    (VariableType.DATE, re.compile(r"date|time|year|month|day")),
    (VariableType.EMAIL, re.compile(r"email|mail")),
    (VariableType.PHONE, re.compile(r"phone|tel|mobile|cell")),
    (VariableType.URL, re.compile(r"url|website|link")),
    (
        VariableType.NUMBER,
        re.compile(r"count|number|qty|quantity|bedrooms|bathrooms|sqft|square"),
    ),
    (VariableType.ADDRESS, re.compile(r"address|street|city|state|zip|postal")),
)

_CATEGORIES = {
    "agency": "Business Information",
    "agent": "Agent Details",
    "property": "Property Information",
    "neighborhood": "Location Details",
    "legal": "Legal Information",
    "contact": "Contact Information",
}

_TYPE_DEFAULTS = {
    VariableType.CURRENCY: "$0.00",
    VariableType.DATE: "MM/DD/YYYY",
    VariableType.EMAIL: "example@email.com",
    VariableType.PHONE: "(555) 123-4567",
    VariableType.URL: "https://example.com",
    VariableType.NUMBER: "0",
}

_CONTEXTUAL_DEFAULTS = {
    "agency": {
        "name": "Your Real Estate Agency",
        "tagline": "Your Trusted Real Estate Partner",
        "website": "www.youragency.com",
        "license": "License #12345",
    },
    "agent": {
        "name": "Agent Name",
        "title": "Real Estate Professional",
        "phone": "(555) 123-4567",
        "email": "agent@youragency.com",
    },
    "property": {
        "address": "123 Main Street",
        "city": "Your City",
        "state": "ST",
        "zip": "12345",
        "price": "299,000",
        "bedrooms": "3",
        "bathrooms": "2",
        "sqft": "1,500",
        "description": "Beautiful property with great features...",
    },
    "neighborhood": {
        "school": "Local School District",
        "shopping": "Shopping Center nearby",
        "parks": "Community Parks",
        "walkscore": "75",
    },
}


def infer_variable_type(path: str) -> VariableType:
    name = path.lower()
    for variable_type, pattern in _TYPE_RULES:
        if pattern.search(name):
            return variable_type
    return VariableType.TEXT


def categorize_variable(path: str) -> str:
    return _CATEGORIES.get(path.split(".")[0].lower(), "General")


def describe_variable(path: str) -> str:
    parts = path.split(".")
    if len(parts) == 2:
        return f"{parts[1]} for {parts[0]}"
    return f"Variable: {path}"


def default_value_for(path: str) -> str:
    """Sample value used to fill ``path`` when no real data is supplied."""
    variable_type = infer_variable_type(path)

    if variable_type in _TYPE_DEFAULTS:
        return _TYPE_DEFAULTS[variable_type]

    name = path.lower()
    if variable_type == VariableType.ADDRESS:
        if "city" in name:
            return "Your City"
        if "state" in name:
            return "State"
        if "zip" in name:
            return "12345"
        return "123 Main Street"

    parts = name.split(".")
    if len(parts) >= 2:
        contextual = _CONTEXTUAL_DEFAULTS.get(parts[0], {}).get(parts[1])
        if contextual is not None:
            return contextual

    return f"[{path}]"


# ---------------------------------------------------------------------------
# Per-location analysis
# ---------------------------------------------------------------------------


def extract_variables(text: str) -> List[str]:
    """Distinct placeholder paths in ``text``, in order of first appearance."""
    return analyze_content(text).variables


def analyze_content(text: str) -> ContentAnalysis:
    """
    Split ``text`` into literal and placeholder segments and classify it.

    Empty text is LITERAL. A placeholder whose path is blank after
    stripping (``{{ }}``) is treated as literal text.
    """
    segments: List[ContentSegment] = []
    variables: List[str] = []
    literal_parts: List[str] = []
    placeholder_count = 0
    cursor = 0

    for match in PLACEHOLDER_PATTERN.finditer(text):
        path = match.group(1).strip()
        if not path:
            continue

        if match.start() > cursor:
            literal = text[cursor:match.start()]
            segments.append(ContentSegment(kind="text", value=literal))
            literal_parts.append(literal)

        segments.append(
            ContentSegment(kind="variable", value=match.group(0), path=path)
        )
        placeholder_count += 1
        if path not in variables:
            variables.append(path)
        cursor = match.end()

    if cursor < len(text):
        literal = text[cursor:]
        segments.append(ContentSegment(kind="text", value=literal))
        literal_parts.append(literal)

    has_literal_text = any(part.strip() for part in literal_parts)

    if placeholder_count == 0:
        content_type = ContentType.LITERAL
    elif placeholder_count == 1 and not has_literal_text:
        content_type = ContentType.VARIABLE
    else:
        content_type = ContentType.MIXED

    return ContentAnalysis(
        content_type=content_type,
        variables=variables,
        segments=segments,
        has_variables=placeholder_count > 0,
        has_literal_text=has_literal_text,
        placeholder_count=placeholder_count,
    )


def _location(
    element: Any,
    content: str,
    *,
    row: Optional[int] = None,
    column: Optional[int] = None,
    is_header: Optional[bool] = None,
) -> ContentLocation:
    analysis = analyze_content(content)
    return ContentLocation(
        element_id=element.id,
        element_name=element.name,
        element_type=element.type,
        row=row,
        column=column,
        is_header=is_header,
        content=content,
        content_type=analysis.content_type,
        has_variables=analysis.has_variables,
        has_literal_text=analysis.has_literal_text,
        variables=analysis.variables,
        segments=analysis.segments,
    )


# ---------------------------------------------------------------------------
# Project-wide processing
# ---------------------------------------------------------------------------


def process_content(elements: Iterable[Any]) -> ProcessedContent:
    """
    Analyze every text-bearing location of the given parsed elements.

    Accepts ParsedProject elements in document order. Elements that
    carry no text (rectangles, images) are skipped.
    """
    all_locations: List[ContentLocation] = []

    for element in elements:
        if element.type == "text":
            all_locations.append(_location(element, element.content))
        elif element.type == "table":
            for row_index, row in enumerate(element.table.cells):
                for column_index, cell in enumerate(row):
                    all_locations.append(
                        _location(
                            element,
                            cell.content,
                            row=row_index,
                            column=column_index,
                            is_header=cell.is_header,
                        )
                    )

    variables: List[str] = []
    usages: Dict[str, List[VariableUsage]] = {}
    total_references = 0

    for location in all_locations:
        total_references += sum(
            1 for segment in location.segments if segment.kind == "variable"
        )
        for path in location.variables:
            if path not in usages:
                variables.append(path)
                usages[path] = []
            usages[path].append(
                VariableUsage(
                    element_id=location.element_id,
                    element_name=location.element_name,
                    element_type=location.element_type,
                    row=location.row,
                    column=location.column,
                )
            )

    variable_info = {
        path: VariableInfo(
            path=path,
            type=infer_variable_type(path),
            category=categorize_variable(path),
            description=describe_variable(path),
            default_value=default_value_for(path),
            usages=usages[path],
        )
        for path in variables
    }

    statistics = ContentStatistics(
        total_locations=len(all_locations),
        locations_with_variables=sum(1 for loc in all_locations if loc.has_variables),
        locations_with_literal_text=sum(
            1 for loc in all_locations if loc.has_literal_text
        ),
        mixed_locations=sum(
            1 for loc in all_locations if loc.content_type == ContentType.MIXED
        ),
        total_variable_references=total_references,
        unique_variables=len(variables),
    )

    logger.debug(
        "Processed %s text location(s), %s unique variable(s)",
        statistics.total_locations,
        statistics.unique_variables,
    )

    return ProcessedContent(
        text_elements=[loc for loc in all_locations if loc.element_type == "text"],
        table_cells=[loc for loc in all_locations if loc.element_type == "table"],
        variables=variables,
        variable_info=variable_info,
        statistics=statistics,
    )


# ---------------------------------------------------------------------------
# Data schema and sample data
# ---------------------------------------------------------------------------


def _build_skeleton(variables: Iterable[str]) -> Dict[str, Any]:
    skeleton: Dict[str, Any] = {}

    for path in variables:
        parts = path.split(".")
        node = skeleton
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                # An object always wins over a leaf at the same path.
                child = {}
                node[part] = child
            node = child

        leaf = parts[-1]
        if leaf not in node:
            node[leaf] = None

    return skeleton


def _json_schema_node(node: Any, path: str) -> Dict[str, Any]:
    if isinstance(node, dict):
        return {
            "type": "object",
            "properties": {
                key: _json_schema_node(child, f"{path}.{key}" if path else key)
                for key, child in node.items()
            },
            "required": list(node.keys()),
        }

    if infer_variable_type(path) == VariableType.NUMBER:
        return {
            "type": "number",
            "description": describe_variable(path),
            "default": 0,
        }

    return {
        "type": "string",
        "description": describe_variable(path),
        "default": default_value_for(path),
    }


def build_data_schema(variables: Iterable[str]) -> DataSchema:
    """
    Derive the expected runtime data shape from a variable list.

    Pure function of its input: the same variables always produce the
    same schema.
    """
    ordered: List[str] = []
    for path in variables:
        if path not in ordered:
            ordered.append(path)

    skeleton = _build_skeleton(ordered)
    return DataSchema(
        variables=ordered,
        skeleton=skeleton,
        json_schema=_json_schema_node(skeleton, ""),
    )


def _fill_sample(node: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    sample: Dict[str, Any] = {}
    for key, child in node.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(child, dict):
            sample[key] = _fill_sample(child, path)
        else:
            sample[key] = default_value_for(path)
    return sample


def generate_sample_data(schema: DataSchema) -> Dict[str, Any]:
    """Nested sample data with the schema's shape and placeholder leaves."""
    return _fill_sample(schema.skeleton, "")
