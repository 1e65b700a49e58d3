"""
ParsedProject schema.

The validated, normalized internal representation of a canvas
document. Everything downstream of the document parser (the HTML/CSS
generator in particular) consumes this model and may assume:

- every element satisfies its type's field contract
- coordinates are nested (``position``/``size``), never flattened
- every enumerated field holds one of its known values

Type-specific element fields are grouped under ``styling`` (and under
``table`` for table grids), and every element carries the index it had
in the source document as ``render_order``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from converter.app.schemas.content import ContentLocation


class ProjectModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class Point(ProjectModel):
    x: float
    y: float


class Dimensions(ProjectModel):
    width: float
    height: float


class Bounds(ProjectModel):
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0


# ---------------------------------------------------------------------------
# Element styling
# ---------------------------------------------------------------------------


class TextStyling(ProjectModel):
    font_size: float
    font_family: str
    font_weight: Literal["normal", "bold"]
    font_style: Literal["normal", "italic"]
    text_align: Literal["left", "center", "right"]
    color: str
    background_color: Optional[str] = None
    padding: float


class RectangleStyling(ProjectModel):
    fill: str
    stroke: str
    stroke_width: float
    corner_radius: float


class ImageStyling(ProjectModel):
    opacity: float
    fit: Literal["fill", "contain", "cover", "stretch"]


class TableStyling(ProjectModel):
    cell_padding: float
    border_width: float
    border_color: str
    header_background: str
    cell_background: str
    text_color: str
    font_size: float
    font_family: str


class GridCell(ProjectModel):
    content: str
    is_header: bool = False


class TableGrid(ProjectModel):
    rows: int
    columns: int
    cells: List[List[GridCell]]


# ---------------------------------------------------------------------------
# Parsed elements (tagged union on ``type``)
# ---------------------------------------------------------------------------


class ParsedElementBase(ProjectModel):
    id: str
    name: str
    position: Point
    size: Dimensions
    z_index: int
    visible: bool
    locked: bool
    render_order: int = Field(
        ...,
        description="Index of the element in the source document",
    )


class ParsedTextElement(ParsedElementBase):
    type: Literal["text"] = "text"
    content: str
    styling: TextStyling


class ParsedRectangleElement(ParsedElementBase):
    type: Literal["rectangle"] = "rectangle"
    styling: RectangleStyling


class ParsedImageElement(ParsedElementBase):
    type: Literal["image"] = "image"
    src: str
    styling: ImageStyling


class ParsedTableElement(ParsedElementBase):
    type: Literal["table"] = "table"
    table: TableGrid
    styling: TableStyling


ParsedElement = Annotated[
    Union[
        ParsedTextElement,
        ParsedRectangleElement,
        ParsedImageElement,
        ParsedTableElement,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


class CanvasProperties(ProjectModel):
    size: Dimensions
    zoom: float
    snap_to_grid: bool
    grid_size: float
    active_tool: str


class ElementGroups(ProjectModel):
    rectangles: List[ParsedRectangleElement] = Field(default_factory=list)
    text: List[ParsedTextElement] = Field(default_factory=list)
    images: List[ParsedImageElement] = Field(default_factory=list)
    tables: List[ParsedTableElement] = Field(default_factory=list)


class TextContent(ProjectModel):
    text_elements: List[ContentLocation] = Field(default_factory=list)
    table_cells: List[ContentLocation] = Field(default_factory=list)
    variables: List[str] = Field(default_factory=list)


class StyleSnapshot(ProjectModel):
    element_id: str
    element_type: str
    styles: Dict[str, Any]


class StyleSummary(ProjectModel):
    fonts: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    font_sizes: List[float] = Field(default_factory=list)
    unique_styles: List[StyleSnapshot] = Field(default_factory=list)


class Layer(ProjectModel):
    element_id: str
    z_index: int
    layer_order: int
    is_background: bool
    is_foreground: bool


class LayoutSummary(ProjectModel):
    bounds: Bounds
    layers: List[Layer] = Field(default_factory=list)


class AverageSize(ProjectModel):
    width: int = 0
    height: int = 0


class ProjectStatistics(ProjectModel):
    total_elements: int = 0
    element_types: Dict[str, int] = Field(default_factory=dict)
    average_size: AverageSize = Field(default_factory=AverageSize)
    total_area: float = 0


class ValidationSummary(ProjectModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    parsed_at: datetime


# ---------------------------------------------------------------------------
# Parsed project (IR root)
# ---------------------------------------------------------------------------


class ParsedProject(ProjectModel):
    project_name: str
    version: str
    saved_at: Optional[str] = None
    canvas: CanvasProperties
    elements: List[ParsedElement] = Field(default_factory=list)
    element_groups: ElementGroups = Field(default_factory=ElementGroups)
    text_content: TextContent = Field(default_factory=TextContent)
    styles: StyleSummary = Field(default_factory=StyleSummary)
    layout: LayoutSummary
    statistics: ProjectStatistics = Field(default_factory=ProjectStatistics)
    validation: ValidationSummary
