"""
CSS generation for the HTML document shell.

Builds the single embedded stylesheet of a generated document: a fixed
base block (page reset and canvas container) followed by one rule per
rendered element, keyed by the element's DOM id.

Every value written into the stylesheet comes from a validated
ParsedProject. Colors are already constrained to hex or ``transparent``
and enumerations to their known values; the only free-form text that
reaches CSS is a font family name, which is reduced to a safe character
set first.

Output is a pure function of its input. Numbers are printed the same
way every time: integral values without a fractional part (``12px``),
everything else at full precision (``12.5px``).
"""

import re
from typing import Any, List

from converter.app.schemas.project import (
    CanvasProperties,
    ParsedImageElement,
    ParsedRectangleElement,
    ParsedTableElement,
    ParsedTextElement,
)


FALLBACK_FONT_FAMILY = "sans-serif"

_UNSAFE_FONT_CHARS = re.compile(r"[\"'`;{}<>\\]")

OBJECT_FIT = {
    "fill": "fill",
    "stretch": "fill",
    "contain": "contain",
    "cover": "cover",
}


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def format_number(value: Any) -> str:
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def px(value: Any) -> str:
    return f"{format_number(value)}px"


def sanitize_font_family(family: str) -> str:
    cleaned = " ".join(_UNSAFE_FONT_CHARS.sub("", family).split())
    return cleaned or FALLBACK_FONT_FAMILY


def dom_id(element: Any) -> str:
    """CSS-safe DOM id for an element, independent of its source id."""
    return f"el-{element.render_order}"


def _rule(selector: str, declarations: List[str]) -> str:
    body = "\n".join(f"  {declaration};" for declaration in declarations)
    return f"{selector} {{\n{body}\n}}"


# ---------------------------------------------------------------------------
# Base rules
# ---------------------------------------------------------------------------


def base_rules(canvas: CanvasProperties) -> List[str]:
    return [
        _rule(
            "*, *::before, *::after",
            ["box-sizing: border-box"],
        ),
        _rule(
            "html, body",
            [
                "margin: 0",
                "padding: 0",
                "background: #ffffff",
            ],
        ),
        _rule(
            ".canvas",
            [
                "position: relative",
                f"width: {px(canvas.size.width)}",
                f"height: {px(canvas.size.height)}",
                "overflow: hidden",
                "background: #ffffff",
            ],
        ),
        _rule(
            ".element",
            [
                "position: absolute",
                "margin: 0",
            ],
        ),
    ]


# ---------------------------------------------------------------------------
# Per-type declarations
# ---------------------------------------------------------------------------


def _geometry(element: Any) -> List[str]:
    return [
        f"left: {px(element.position.x)}",
        f"top: {px(element.position.y)}",
        f"width: {px(element.size.width)}",
        f"height: {px(element.size.height)}",
        f"z-index: {element.z_index}",
    ]


def _text_declarations(element: ParsedTextElement) -> List[str]:
    styling = element.styling
    declarations = [
        "display: block",
        "white-space: pre-line",
        "overflow: hidden",
        "overflow-wrap: break-word",
        f"font-family: {sanitize_font_family(styling.font_family)}",
        f"font-size: {px(styling.font_size)}",
        f"font-weight: {styling.font_weight}",
        f"font-style: {styling.font_style}",
        f"text-align: {styling.text_align}",
        f"color: {styling.color}",
        f"padding: {px(styling.padding)}",
    ]
    if styling.background_color and styling.background_color != "transparent":
        declarations.append(f"background-color: {styling.background_color}")
    return declarations


def _rectangle_declarations(element: ParsedRectangleElement) -> List[str]:
    styling = element.styling
    declarations = [f"background-color: {styling.fill}"]
    if styling.stroke_width > 0:
        declarations.append(
            f"border: {px(styling.stroke_width)} solid {styling.stroke}"
        )
    if styling.corner_radius > 0:
        declarations.append(f"border-radius: {px(styling.corner_radius)}")
    return declarations


def _image_declarations(element: ParsedImageElement) -> List[str]:
    styling = element.styling
    if element.src:
        declarations = [
            "display: block",
            f"object-fit: {OBJECT_FIT[styling.fit]}",
        ]
    else:
        declarations = [
            "display: flex",
            "align-items: center",
            "justify-content: center",
            "background-color: #f3f4f6",
            "border: 1px dashed #9ca3af",
            "color: #6b7280",
            "font-family: sans-serif",
            "font-size: 12px",
        ]
    if styling.opacity < 1:
        declarations.append(f"opacity: {format_number(styling.opacity)}")
    return declarations


def _table_rules(element: ParsedTableElement) -> List[str]:
    styling = element.styling
    selector = f"#{dom_id(element)}"

    cell_declarations = [
        f"padding: {px(styling.cell_padding)}",
        f"background-color: {styling.cell_background}",
        "text-align: left",
        "vertical-align: middle",
        "white-space: pre-line",
    ]
    if styling.border_width > 0:
        cell_declarations.append(
            f"border: {px(styling.border_width)} solid {styling.border_color}"
        )

    return [
        _rule(
            f"{selector} table",
            [
                "width: 100%",
                "height: 100%",
                "border-collapse: collapse",
                "table-layout: fixed",
                f"font-family: {sanitize_font_family(styling.font_family)}",
                f"font-size: {px(styling.font_size)}",
                f"color: {styling.text_color}",
            ],
        ),
        _rule(f"{selector} th, {selector} td", cell_declarations),
        _rule(
            f"{selector} th",
            [
                f"background-color: {styling.header_background}",
                "font-weight: bold",
            ],
        ),
    ]


# ---------------------------------------------------------------------------
# Stylesheet
# ---------------------------------------------------------------------------


def element_rules(element: Any) -> List[str]:
    declarations = _geometry(element)
    extra_rules: List[str] = []

    if element.type == "text":
        declarations.extend(_text_declarations(element))
    elif element.type == "rectangle":
        declarations.extend(_rectangle_declarations(element))
    elif element.type == "image":
        declarations.extend(_image_declarations(element))
    elif element.type == "table":
        extra_rules = _table_rules(element)
    else:
        raise ValueError(f"No CSS rules for element type '{element.type}'")

    return [_rule(f"#{dom_id(element)}", declarations)] + extra_rules


def build_stylesheet(canvas: CanvasProperties, elements: List[Any]) -> str:
    """Embedded stylesheet for the given canvas and rendered elements."""
    rules = base_rules(canvas)
    for element in elements:
        rules.extend(element_rules(element))
    return "\n\n".join(rules)
