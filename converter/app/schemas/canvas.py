"""
Canvas document input contract.

Defines the structure of a saved designer project as it arrives from
the document store: canvas properties plus an ordered list of typed,
positioned elements.

Elements form a tagged union on ``type``. Each variant is validated in
strict mode so that a string "12" is never silently accepted where the
designer is expected to have written a number, and a 0/1 is never
accepted where a boolean is required.

Wire names are camelCase (as saved by the designer); attribute names
are snake_case.

Coordinate normalization (flattened ``x``/``y``/``width``/``height``
on the element) happens in the document parser BEFORE these models are
applied. Past that point only the nested form exists.
"""

from __future__ import annotations

import re
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

ELEMENT_TYPES = ("text", "rectangle", "image", "table")
ACTIVE_TOOLS = ("select", "text", "rectangle", "image", "table")

ElementType = Literal["text", "rectangle", "image", "table"]
ActiveTool = Literal["select", "text", "rectangle", "image", "table"]


def require_hex(value: str, field: str, *, allow_transparent: bool = False) -> str:
    if allow_transparent and value == "transparent":
        return value
    if not HEX_COLOR_PATTERN.match(value):
        if allow_transparent:
            raise ValueError(f"{field} must be hex or transparent")
        raise ValueError(f"{field} must be valid hex")
    return value


class CanvasModel(BaseModel):
    """Common configuration for designer-authored input models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="ignore",
        frozen=True,
        allow_inf_nan=False,
    )


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class Position(CanvasModel):
    x: float
    y: float


class Size(CanvasModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Elements (tagged union on ``type``)
# ---------------------------------------------------------------------------


class ElementBase(CanvasModel):
    """
    Fields shared by every element variant.

    Also used on its own to report base-field violations for elements
    whose ``type`` is not one of the known variants.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: ElementType
    position: Position
    size: Size
    z_index: int
    visible: bool
    locked: bool


class TextElement(ElementBase):
    type: Literal["text"]
    content: str
    font_size: float = Field(..., gt=0)
    font_family: str
    font_weight: Literal["normal", "bold"]
    font_style: Literal["normal", "italic"]
    text_align: Literal["left", "center", "right"]
    color: str
    background_color: Optional[str] = None
    padding: float = Field(..., ge=0)

    @field_validator("color")
    @classmethod
    def _color_is_hex(cls, v: str) -> str:
        return require_hex(v, "color")

    @field_validator("background_color")
    @classmethod
    def _background_is_hex(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return require_hex(v, "backgroundColor", allow_transparent=True)


class RectangleElement(ElementBase):
    type: Literal["rectangle"]
    fill: str
    stroke: str
    stroke_width: float = Field(..., ge=0)
    corner_radius: float = Field(..., ge=0)

    @field_validator("fill")
    @classmethod
    def _fill_is_hex(cls, v: str) -> str:
        return require_hex(v, "fill", allow_transparent=True)

    @field_validator("stroke")
    @classmethod
    def _stroke_is_hex(cls, v: str) -> str:
        return require_hex(v, "stroke")


class ImageElement(ElementBase):
    type: Literal["image"]
    src: str
    opacity: float = Field(..., ge=0, le=1)
    fit: Literal["fill", "contain", "cover", "stretch"]


class TableCell(CanvasModel):
    content: str
    is_header: bool = False


class TableElement(ElementBase):
    type: Literal["table"]
    rows: int = Field(..., gt=0)
    columns: int = Field(..., gt=0)
    cells: List[List[TableCell]]
    cell_padding: float = Field(..., ge=0)
    border_width: float = Field(..., ge=0)
    border_color: str
    header_background: str
    cell_background: str
    text_color: str
    font_size: float = Field(..., gt=0)
    font_family: str

    @field_validator(
        "border_color",
        "header_background",
        "cell_background",
        "text_color",
    )
    @classmethod
    def _colors_are_hex(cls, v: str, info: ValidationInfo) -> str:
        return require_hex(v, to_camel(info.field_name))


CanvasElement = Annotated[
    Union[TextElement, RectangleElement, ImageElement, TableElement],
    Field(discriminator="type"),
]

ELEMENT_MODELS = {
    "text": TextElement,
    "rectangle": RectangleElement,
    "image": ImageElement,
    "table": TableElement,
}


# ---------------------------------------------------------------------------
# Canvas and document
# ---------------------------------------------------------------------------


class CanvasState(CanvasModel):
    elements: List[CanvasElement]
    canvas_size: Size
    zoom: float = Field(..., gt=0)
    snap_to_grid: bool
    grid_size: float = Field(..., gt=0)
    active_tool: ActiveTool
    selected_element_id: Optional[str] = None
    editing_element_id: Optional[str] = None


class CanvasDocument(CanvasModel):
    """
    A saved designer project.

    This model documents the complete contract (it backs the published
    JSON schema). The parser applies it stage by stage so that failures
    can be attributed to structure, canvas or element validation.
    """

    project_name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    saved_at: Optional[str] = None
    canvas_state: CanvasState
