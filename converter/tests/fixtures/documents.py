from typing import Any, Dict, List, Optional


# ------------------------------------------------------------------
# Elements
# ------------------------------------------------------------------

def text_element(**overrides: Any) -> Dict[str, Any]:
    element = {
        "id": "text-1",
        "name": "Headline",
        "type": "text",
        "position": {"x": 10, "y": 20},
        "size": {"width": 200, "height": 40},
        "zIndex": 1,
        "visible": True,
        "locked": False,
        "content": "Hello {{name}}",
        "fontSize": 16,
        "fontFamily": "Arial",
        "fontWeight": "normal",
        "fontStyle": "normal",
        "textAlign": "left",
        "color": "#000000",
        "padding": 4,
    }
    element.update(overrides)
    return element


def rectangle_element(**overrides: Any) -> Dict[str, Any]:
    element = {
        "id": "rect-1",
        "name": "Background",
        "type": "rectangle",
        "position": {"x": 0, "y": 0},
        "size": {"width": 300, "height": 150},
        "zIndex": 0,
        "visible": True,
        "locked": False,
        "fill": "#f0f0f0",
        "stroke": "#333333",
        "strokeWidth": 2,
        "cornerRadius": 8,
    }
    element.update(overrides)
    return element


def image_element(**overrides: Any) -> Dict[str, Any]:
    element = {
        "id": "image-1",
        "name": "Photo",
        "type": "image",
        "position": {"x": 50, "y": 60},
        "size": {"width": 120, "height": 90},
        "zIndex": 2,
        "visible": True,
        "locked": False,
        "src": "https://example.com/photo.jpg",
        "opacity": 1,
        "fit": "cover",
    }
    element.update(overrides)
    return element


def table_element(
    rows: Optional[List[List[Dict[str, Any]]]] = None,
    **overrides: Any,
) -> Dict[str, Any]:
    cells = rows or [
        [
            {"content": "A", "isHeader": True},
            {"content": "B", "isHeader": True},
        ],
        [
            {"content": "1", "isHeader": False},
            {"content": "2", "isHeader": False},
        ],
    ]
    element = {
        "id": "table-1",
        "name": "Listing",
        "type": "table",
        "position": {"x": 20, "y": 200},
        "size": {"width": 260, "height": 80},
        "zIndex": 3,
        "visible": True,
        "locked": False,
        "rows": len(cells),
        "columns": len(cells[0]) if cells else 0,
        "cells": cells,
        "cellPadding": 6,
        "borderWidth": 1,
        "borderColor": "#cccccc",
        "headerBackground": "#eeeeee",
        "cellBackground": "#ffffff",
        "textColor": "#111111",
        "fontSize": 12,
        "fontFamily": "Helvetica",
    }
    element.update(overrides)
    return element


# ------------------------------------------------------------------
# Documents and requests
# ------------------------------------------------------------------

def canvas_document(
    elements: Optional[List[Dict[str, Any]]] = None,
    **overrides: Any,
) -> Dict[str, Any]:
    document = {
        "projectName": "Listing Flyer",
        "version": "1.0",
        "savedAt": "2024-05-01T12:00:00Z",
        "canvasState": {
            "elements": [text_element()] if elements is None else elements,
            "canvasSize": {"width": 800, "height": 600},
            "zoom": 1,
            "snapToGrid": False,
            "gridSize": 10,
            "activeTool": "select",
            "selectedElementId": None,
            "editingElementId": None,
        },
    }
    document.update(overrides)
    return document


def conversion_request(
    document: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    options: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "tb365Data": document if document is not None else canvas_document(),
    }
    if data is not None:
        body["data"] = data
    if options is not None:
        body["options"] = options
    return body


def flyer_document() -> Dict[str, Any]:
    """A realistic multi-element flyer with nested placeholders."""
    return canvas_document(
        [
            rectangle_element(),
            text_element(
                id="agency-name",
                name="Agency",
                content="{{agency.name}}",
                fontWeight="bold",
            ),
            text_element(
                id="price",
                name="Price",
                content="Offered at {{property.price}}",
                position={"x": 10, "y": 80},
                zIndex=2,
            ),
            image_element(src=""),
            table_element(
                rows=[
                    [
                        {"content": "Beds", "isHeader": True},
                        {"content": "Baths", "isHeader": True},
                    ],
                    [
                        {"content": "{{property.bedrooms}}", "isHeader": False},
                        {"content": "{{property.bathrooms}}", "isHeader": False},
                    ],
                ]
            ),
        ]
    )
