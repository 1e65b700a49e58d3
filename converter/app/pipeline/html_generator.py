"""
HTML document generator.

Renders a ParsedProject into a complete, self-contained HTML document
that reproduces the canvas layout pixel for pixel.

Design guarantees:
- Deterministic rendering (Jinja2 + StrictUndefined, fixed element order)
- Single embedded stylesheet, no external resources besides image sources
- Every visible element rendered exactly once, absolutely positioned
- Paint order follows ascending zIndex, ties broken by document order
- Text and attribute values escaped by Jinja2 autoescaping

Placeholders (``{{path}}``) in text and table cell content pass through
unchanged; substitution of runtime data is the variable replacer's job.

The generator performs no input validation. Any failure here is a
defect and is raised as GenerationError.
"""

import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from markupsafe import Markup

from converter.app.pipeline.css_generator import (
    build_stylesheet,
    dom_id,
    format_number,
)
from converter.app.pipeline.errors import GenerationError
from converter.app.schemas.conversion import (
    Complexity,
    DocumentMetadata,
    GeneratedDocument,
)
from converter.app.schemas.project import ParsedProject, ParsedTableElement
from converter.app.utils.hashing import hash_html

logger = logging.getLogger(__name__)


TEMPLATE_ROOT = Path(
    os.environ.get(
        "CONVERTER_TEMPLATE_DIR",
        Path(__file__).resolve().parent.parent / "templates",
    )
).resolve()

if not TEMPLATE_ROOT.is_dir():
    raise RuntimeError(f"TEMPLATE_ROOT does not exist: {TEMPLATE_ROOT}")


DOCUMENT_TEMPLATE = "document.html.jinja"

ELEMENT_TEMPLATES = {
    "text": "elements/text.html.jinja",
    "rectangle": "elements/rectangle.html.jinja",
    "image": "elements/image.html.jinja",
    "table": "elements/table.html.jinja",
}

COMPLEXITY_WEIGHTS = {
    "table": 3,
    "image": 2,
    "text": 1,
}
DEFAULT_COMPLEXITY_WEIGHT = 0.5
VARIABLE_COMPLEXITY_WEIGHT = 0.5


_environment = Environment(
    loader=FileSystemLoader(TEMPLATE_ROOT),
    undefined=StrictUndefined,
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


# ---------------------------------------------------------------------------
# Element rendering
# ---------------------------------------------------------------------------


def paint_order(elements: List[Any]) -> List[Any]:
    """Visible elements, ascending zIndex, document order within ties."""
    return sorted(
        (element for element in elements if element.visible),
        key=lambda element: (element.z_index, element.render_order),
    )


def _split_table_rows(element: ParsedTableElement) -> Dict[str, Any]:
    rows = element.table.cells
    header_count = 0
    for row in rows:
        if not row or not all(cell.is_header for cell in row):
            break
        header_count += 1
    return {
        "header_rows": rows[:header_count],
        "body_rows": rows[header_count:],
    }


def render_element(element: Any) -> Markup:
    template_name = ELEMENT_TEMPLATES.get(element.type)
    if template_name is None:
        raise GenerationError(
            f"No template registered for element type '{element.type}'"
        )

    context: Dict[str, Any] = {
        "element": element,
        "dom_id": dom_id(element),
    }
    if element.type == "table":
        context.update(_split_table_rows(element))

    return Markup(_environment.get_template(template_name).render(context))


def render_html(project: ParsedProject) -> str:
    """Render the HTML document for ``project``. Pure and deterministic."""
    elements = paint_order(project.elements)
    stylesheet = build_stylesheet(project.canvas, elements)

    return _environment.get_template(DOCUMENT_TEMPLATE).render(
        title=project.project_name,
        version=project.version,
        canvas_width=format_number(project.canvas.size.width),
        stylesheet=Markup(stylesheet),
        elements=[render_element(element) for element in elements],
    )


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def complexity_score(element_types: List[str], variable_count: int) -> float:
    weights = sum(
        COMPLEXITY_WEIGHTS.get(element_type, DEFAULT_COMPLEXITY_WEIGHT)
        for element_type in element_types
    )
    return len(element_types) + weights + variable_count * VARIABLE_COMPLEXITY_WEIGHT


def rate_complexity(project: ParsedProject) -> Complexity:
    score = complexity_score(
        [element.type for element in project.elements],
        len(project.text_content.variables),
    )
    if score < 5:
        return Complexity.SIMPLE
    if score < 15:
        return Complexity.MODERATE
    if score < 30:
        return Complexity.COMPLEX
    return Complexity.VERY_COMPLEX


# ---------------------------------------------------------------------------
# Public entrypoint
# ---------------------------------------------------------------------------


def generate_document(
    project: ParsedProject,
    *,
    generated_at: Optional[datetime] = None,
) -> GeneratedDocument:
    """
    Generate the HTML document and its metadata.

    Timestamps and timings live in the metadata only; the HTML body is
    identical for identical projects.

    Raises:
        GenerationError: on any internal rendering failure.
    """
    started = time.perf_counter()

    try:
        html = render_html(project)
    except Exception as exc:
        logger.exception(
            "HTML generation failed for project='%s'",
            project.project_name,
        )
        if isinstance(exc, GenerationError):
            raise
        raise GenerationError(f"HTML generation failed: {exc}") from exc

    html_bytes = html.encode("utf-8")
    rendered = sum(1 for element in project.elements if element.visible)
    elapsed_ms = (time.perf_counter() - started) * 1000

    metadata = DocumentMetadata(
        variables=len(project.text_content.variables),
        complexity=rate_complexity(project),
        generation_time=round(elapsed_ms, 3),
        size_bytes=len(html_bytes),
        elements=rendered,
        content_hash=hash_html(html),
        generated_at=generated_at or datetime.now(timezone.utc),
    )

    logger.info(
        "Generated HTML for project '%s': %s element(s), %s bytes, complexity=%s",
        project.project_name,
        rendered,
        metadata.size_bytes,
        metadata.complexity.value,
    )

    return GeneratedDocument(html=html, metadata=metadata)
