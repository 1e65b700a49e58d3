"""
Document parser.

Turns a raw canvas document (as saved by the designer) into a
ParsedProject. Validation runs as three strictly ordered stages; the
first stage that finds a problem raises DocumentParseError tagged with
its name, and later stages never run:

    structure_validation   top-level fields
    canvas_validation      canvas properties
    element_validation     every element against its type's contract

Element validation reports ALL failing elements, not just the first.

After validation the document is normalized into the internal
representation and the derived views (groups, layout, styles,
statistics, text content) are computed. The input document is never
mutated.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from converter.app.pipeline.content_processor import process_content
from converter.app.pipeline.errors import DocumentParseError
from converter.app.schemas.canvas import (
    ACTIVE_TOOLS,
    ELEMENT_MODELS,
    HEX_COLOR_PATTERN,
    ElementBase,
    ImageElement,
    RectangleElement,
    TableElement,
    TextElement,
)
from converter.app.schemas.project import (
    AverageSize,
    Bounds,
    CanvasProperties,
    Dimensions,
    ElementGroups,
    GridCell,
    ImageStyling,
    LayoutSummary,
    Layer,
    ParsedImageElement,
    ParsedProject,
    ParsedRectangleElement,
    ParsedTableElement,
    ParsedTextElement,
    Point,
    ProjectStatistics,
    RectangleStyling,
    StyleSnapshot,
    StyleSummary,
    TableGrid,
    TableStyling,
    TextContent,
    TextStyling,
    ValidationSummary,
)

logger = logging.getLogger(__name__)


DEFAULT_POSITION = {"x": 0, "y": 0}
DEFAULT_SIZE = {"width": 100, "height": 50}

STRUCTURE_STAGE = "structure_validation"
CANVAS_STAGE = "canvas_validation"
ELEMENT_STAGE = "element_validation"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_number(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value) and value > 0


def _fail(stage: str, errors: List[str]) -> None:
    logger.warning(
        "Document parsing failed at stage '%s' with %s error(s)",
        stage,
        len(errors),
    )
    raise DocumentParseError(
        f"Document failed {stage.replace('_', ' ')}",
        errors=errors,
        stage=stage,
    )


# ---------------------------------------------------------------------------
# Stage 1: structure
# ---------------------------------------------------------------------------


def _validate_structure(document: Any) -> None:
    if not isinstance(document, dict):
        _fail(STRUCTURE_STAGE, ["Document must be a JSON object"])

    errors: List[str] = []

    for field in ("projectName", "version"):
        value = document.get(field)
        if not isinstance(value, str) or not value:
            errors.append(f"{field} must be a non-empty string")

    if not isinstance(document.get("canvasState"), dict):
        errors.append("canvasState must be an object")

    saved_at = document.get("savedAt")
    if saved_at is not None and not isinstance(saved_at, str):
        errors.append("savedAt must be a string")

    if errors:
        _fail(STRUCTURE_STAGE, errors)


# ---------------------------------------------------------------------------
# Stage 2: canvas
# ---------------------------------------------------------------------------


def _validate_canvas(state: Dict[str, Any]) -> None:
    errors: List[str] = []

    if not isinstance(state.get("elements"), list):
        errors.append("elements must be an array")

    canvas_size = state.get("canvasSize")
    if not isinstance(canvas_size, dict):
        errors.append("canvasSize must be an object")
    else:
        for field in ("width", "height"):
            if not _is_positive_number(canvas_size.get(field)):
                errors.append(f"canvasSize.{field} must be a positive number")

    if not _is_positive_number(state.get("zoom")):
        errors.append("zoom must be a positive number")

    if not isinstance(state.get("snapToGrid"), bool):
        errors.append("snapToGrid must be a boolean")

    if not _is_positive_number(state.get("gridSize")):
        errors.append("gridSize must be a positive number")

    if state.get("activeTool") not in ACTIVE_TOOLS:
        errors.append(f"activeTool must be one of: {', '.join(ACTIVE_TOOLS)}")

    if errors:
        _fail(CANVAS_STAGE, errors)


# ---------------------------------------------------------------------------
# Stage 3: elements
# ---------------------------------------------------------------------------


def _merge_coordinates(
    nested: Any,
    element: Dict[str, Any],
    defaults: Dict[str, float],
) -> Dict[str, Any]:
    if not isinstance(nested, dict):
        nested = {}
    merged = dict(nested)
    for key, default in defaults.items():
        if key in nested:
            continue
        merged[key] = element.get(key, default)
    return merged


def normalize_coordinates(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``raw`` with nested ``position`` and ``size``.

    Each of ``x``/``y``/``width``/``height`` is taken from the nested
    object when present there, then from the flattened field, then from
    the defaults (position 0,0 and size 100x50).
    """
    element = dict(raw)

    element["position"] = _merge_coordinates(
        element.get("position"), element, DEFAULT_POSITION
    )
    element["size"] = _merge_coordinates(element.get("size"), element, DEFAULT_SIZE)

    for key in ("x", "y", "width", "height"):
        element.pop(key, None)

    return element


def _format_element_error(error: Dict[str, Any]) -> str:
    if error["type"] == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])

    location = ".".join(str(part) for part in error["loc"])
    if not location:
        return error["msg"]
    return f"{location}: {error['msg']}"


def _element_label(index: int, raw: Any) -> str:
    element_id = raw.get("id") if isinstance(raw, dict) else None
    if not isinstance(element_id, str) or not element_id:
        element_id = "unknown"
    return f"element-{index} ({element_id})"


def _table_warnings(label: str, table: TableElement) -> List[str]:
    if len(table.cells) == table.rows and all(
        len(row) == table.columns for row in table.cells
    ):
        return []
    return [
        f"{label}: cell grid does not match declared "
        f"{table.rows}x{table.columns} dimensions"
    ]


def _validate_elements(
    raw_elements: List[Any],
) -> Tuple[List[ElementBase], List[str]]:
    validated: List[ElementBase] = []
    errors: List[str] = []
    warnings: List[str] = []

    for index, raw in enumerate(raw_elements):
        label = _element_label(index, raw)

        if not isinstance(raw, dict):
            errors.append(f"{label}: element must be an object")
            continue

        normalized = normalize_coordinates(raw)
        model = ELEMENT_MODELS.get(normalized.get("type"), ElementBase)

        try:
            element = model.model_validate(normalized)
        except ValidationError as exc:
            problems = [_format_element_error(e) for e in exc.errors()]
            errors.append(f"{label}: {', '.join(problems)}")
            continue

        if isinstance(element, TableElement):
            warnings.extend(_table_warnings(label, element))

        validated.append(element)

    if errors:
        _fail(ELEMENT_STAGE, errors)

    return validated, warnings


# ---------------------------------------------------------------------------
# Normalization into the internal representation
# ---------------------------------------------------------------------------


def _common_fields(element: ElementBase, render_order: int) -> Dict[str, Any]:
    return {
        "id": element.id,
        "name": element.name,
        "position": Point(x=element.position.x, y=element.position.y),
        "size": Dimensions(width=element.size.width, height=element.size.height),
        "z_index": element.z_index,
        "visible": element.visible,
        "locked": element.locked,
        "render_order": render_order,
    }


def _to_parsed(element: ElementBase, render_order: int):
    common = _common_fields(element, render_order)

    if isinstance(element, TextElement):
        return ParsedTextElement(
            **common,
            content=element.content,
            styling=TextStyling(
                font_size=element.font_size,
                font_family=element.font_family,
                font_weight=element.font_weight,
                font_style=element.font_style,
                text_align=element.text_align,
                color=element.color,
                background_color=element.background_color,
                padding=element.padding,
            ),
        )

    if isinstance(element, RectangleElement):
        return ParsedRectangleElement(
            **common,
            styling=RectangleStyling(
                fill=element.fill,
                stroke=element.stroke,
                stroke_width=element.stroke_width,
                corner_radius=element.corner_radius,
            ),
        )

    if isinstance(element, ImageElement):
        return ParsedImageElement(
            **common,
            src=element.src,
            styling=ImageStyling(opacity=element.opacity, fit=element.fit),
        )

    if isinstance(element, TableElement):
        return ParsedTableElement(
            **common,
            table=TableGrid(
                rows=element.rows,
                columns=element.columns,
                cells=[
                    [
                        GridCell(content=cell.content, is_header=cell.is_header)
                        for cell in row
                    ]
                    for row in element.cells
                ],
            ),
            styling=TableStyling(
                cell_padding=element.cell_padding,
                border_width=element.border_width,
                border_color=element.border_color,
                header_background=element.header_background,
                cell_background=element.cell_background,
                text_color=element.text_color,
                font_size=element.font_size,
                font_family=element.font_family,
            ),
        )

    # Unreachable: element validation only admits the four known variants.
    raise TypeError(f"Unsupported element model: {type(element).__name__}")


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


def _group_elements(elements: List[Any]) -> ElementGroups:
    return ElementGroups(
        rectangles=[e for e in elements if e.type == "rectangle"],
        text=[e for e in elements if e.type == "text"],
        images=[e for e in elements if e.type == "image"],
        tables=[e for e in elements if e.type == "table"],
    )


def calculate_bounds(elements: List[Any]) -> Bounds:
    if not elements:
        return Bounds()

    min_x = min(e.position.x for e in elements)
    min_y = min(e.position.y for e in elements)
    max_x = max(e.position.x + e.size.width for e in elements)
    max_y = max(e.position.y + e.size.height for e in elements)

    return Bounds(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)


def analyze_layers(elements: List[Any]) -> List[Layer]:
    """Layers in ascending zIndex order; ties keep document order."""
    ordered = sorted(elements, key=lambda e: e.z_index)
    last = len(ordered) - 1
    return [
        Layer(
            element_id=element.id,
            z_index=element.z_index,
            layer_order=index,
            is_background=index == 0,
            is_foreground=index == last,
        )
        for index, element in enumerate(ordered)
    ]


def extract_styles(elements: List[Any]) -> StyleSummary:
    fonts: List[str] = []
    colors: List[str] = []
    font_sizes: List[float] = []
    snapshots: List[StyleSnapshot] = []

    for element in elements:
        styles = element.styling.model_dump(by_alias=True, exclude_none=True)

        font_family = styles.get("fontFamily")
        if font_family and font_family not in fonts:
            fonts.append(font_family)

        font_size = styles.get("fontSize")
        if font_size and font_size not in font_sizes:
            font_sizes.append(font_size)

        for value in styles.values():
            if (
                isinstance(value, str)
                and HEX_COLOR_PATTERN.match(value)
                and value not in colors
            ):
                colors.append(value)

        snapshots.append(
            StyleSnapshot(
                element_id=element.id,
                element_type=element.type,
                styles=styles,
            )
        )

    return StyleSummary(
        fonts=fonts,
        colors=colors,
        font_sizes=sorted(font_sizes),
        unique_styles=snapshots,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_statistics(elements: List[Any]) -> ProjectStatistics:
    if not elements:
        return ProjectStatistics()

    element_types: Dict[str, int] = {}
    for element in elements:
        element_types[element.type] = element_types.get(element.type, 0) + 1

    count = len(elements)
    return ProjectStatistics(
        total_elements=count,
        element_types=element_types,
        average_size=AverageSize(
            width=_round_half_up(sum(e.size.width for e in elements) / count),
            height=_round_half_up(sum(e.size.height for e in elements) / count),
        ),
        total_area=sum(e.size.width * e.size.height for e in elements),
    )


# ---------------------------------------------------------------------------
# Public entrypoint
# ---------------------------------------------------------------------------


def parse_document(
    document: Any,
    *,
    parsed_at: Optional[datetime] = None,
) -> ParsedProject:
    """
    Validate and normalize a canvas document.

    Args:
        document:
            The raw canvas document (the ``tb365Data`` object of a
            conversion request).
        parsed_at:
            Timestamp recorded in ``validation.parsedAt``. Defaults to
            the current UTC time.

    Raises:
        DocumentParseError: tagged with the first failing stage.
    """
    _validate_structure(document)

    state = document["canvasState"]
    _validate_canvas(state)

    validated, warnings = _validate_elements(state["elements"])
    elements = [_to_parsed(element, index) for index, element in enumerate(validated)]

    content = process_content(elements)
    canvas_size = state["canvasSize"]

    project = ParsedProject(
        project_name=document["projectName"],
        version=document["version"],
        saved_at=document.get("savedAt"),
        canvas=CanvasProperties(
            size=Dimensions(
                width=canvas_size["width"],
                height=canvas_size["height"],
            ),
            zoom=state["zoom"],
            snap_to_grid=state["snapToGrid"],
            grid_size=state["gridSize"],
            active_tool=state["activeTool"],
        ),
        elements=elements,
        element_groups=_group_elements(elements),
        text_content=TextContent(
            text_elements=content.text_elements,
            table_cells=content.table_cells,
            variables=content.variables,
        ),
        styles=extract_styles(elements),
        layout=LayoutSummary(
            bounds=calculate_bounds(elements),
            layers=analyze_layers(elements),
        ),
        statistics=generate_statistics(elements),
        validation=ValidationSummary(
            is_valid=True,
            warnings=warnings,
            parsed_at=parsed_at or datetime.now(timezone.utc),
        ),
    )

    logger.info(
        "Parsed project '%s' v%s: %s element(s), %s variable(s)",
        project.project_name,
        project.version,
        len(elements),
        len(content.variables),
    )

    return project
