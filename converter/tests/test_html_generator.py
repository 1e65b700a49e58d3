import re

from converter.app.pipeline.css_generator import (
    format_number,
    sanitize_font_family,
)
from converter.app.pipeline.document_parser import parse_document
from converter.app.pipeline.html_generator import (
    generate_document,
    rate_complexity,
    render_html,
)
from converter.app.schemas.conversion import Complexity

from converter.tests.fixtures.documents import (
    canvas_document,
    flyer_document,
    image_element,
    rectangle_element,
    table_element,
    text_element,
)


def _render(elements):
    return render_html(parse_document(canvas_document(elements)))


def _rule_for(html: str, dom_id: str) -> str:
    match = re.search(r"#%s \{\n(.*?)\n\}" % re.escape(dom_id), html, re.DOTALL)
    assert match is not None, f"no rule for #{dom_id}"
    return match.group(1)


# ------------------------------------------------------------------
# Document shell
# ------------------------------------------------------------------

def test_document_is_complete_and_self_contained():
    html = _render([text_element()])

    assert html.startswith("<!DOCTYPE html>")
    assert "<head>" in html and "<body>" in html
    assert html.count("<style>") == 1
    assert "<link" not in html
    assert "margin: 0" in html
    assert "width: 800px" in html and "height: 600px" in html


def test_generation_is_deterministic():
    project = parse_document(flyer_document())

    assert render_html(project) == render_html(project)
    first = generate_document(project)
    second = generate_document(project)
    assert first.html == second.html
    assert first.metadata.content_hash == second.metadata.content_hash


# ------------------------------------------------------------------
# Positioning and paint order
# ------------------------------------------------------------------

def test_fractional_positions_are_preserved():
    html = _render(
        [
            text_element(
                position={"x": 10.5, "y": 0.25},
                size={"width": 99.75, "height": 40},
            )
        ]
    )
    rule = _rule_for(html, "el-0")

    assert "left: 10.5px;" in rule
    assert "top: 0.25px;" in rule
    assert "width: 99.75px;" in rule
    assert "height: 40px;" in rule
    assert "z-index: 1;" in rule


def test_flattened_and_nested_coordinates_render_identically():
    nested = text_element(position={"x": 12, "y": 34}, size={"width": 56, "height": 78})
    flattened = text_element()
    del flattened["position"]
    del flattened["size"]
    flattened.update({"x": 12, "y": 34, "width": 56, "height": 78})

    assert _render([nested]) == _render([flattened])


def test_higher_z_index_is_later_in_markup():
    html = _render(
        [
            text_element(id="front", zIndex=2, content="FRONT"),
            text_element(id="back", zIndex=1, content="BACK"),
        ]
    )

    assert html.index('data-element-id="back"') < html.index('data-element-id="front"')


def test_invisible_elements_are_omitted():
    html = _render([text_element(), rectangle_element(id="hidden", visible=False)])

    assert 'data-element-id="hidden"' not in html
    assert html.count('class="element ') == 1


def test_each_visible_element_appears_once():
    project = parse_document(flyer_document())
    html = render_html(project)

    for element in project.elements:
        assert html.count(f'data-element-id="{element.id}"') == 1


# ------------------------------------------------------------------
# Per-type rendering
# ------------------------------------------------------------------

def test_text_styles_and_escaping():
    html = _render(
        [
            text_element(
                content="Line one\n<b>bold</b> {{name}}",
                fontWeight="bold",
                fontStyle="italic",
                textAlign="center",
                backgroundColor="#ffee00",
            )
        ]
    )
    rule = _rule_for(html, "el-0")

    assert "white-space: pre-line;" in rule
    assert "font-weight: bold;" in rule
    assert "font-style: italic;" in rule
    assert "text-align: center;" in rule
    assert "background-color: #ffee00;" in rule
    assert "Line one\n&lt;b&gt;bold&lt;/b&gt; {{name}}" in html


def test_transparent_text_background_is_not_applied():
    html = _render([text_element(backgroundColor="transparent")])

    assert "background-color" not in _rule_for(html, "el-0")


def test_rectangle_border_and_radius_only_when_positive():
    html = _render(
        [
            rectangle_element(),
            rectangle_element(id="flat", strokeWidth=0, cornerRadius=0),
        ]
    )
    styled = _rule_for(html, "el-0")
    flat = _rule_for(html, "el-1")

    assert "border: 2px solid #333333;" in styled
    assert "border-radius: 8px;" in styled
    assert "border" not in flat
    assert "background-color: #f0f0f0;" in flat


def test_image_fit_and_opacity():
    html = _render([image_element(fit="stretch", opacity=0.5)])
    rule = _rule_for(html, "el-0")

    assert "object-fit: fill;" in rule
    assert "opacity: 0.5;" in rule
    assert 'src="https://example.com/photo.jpg"' in html


def test_opaque_image_has_no_opacity_rule():
    html = _render([image_element(fit="contain")])
    rule = _rule_for(html, "el-0")

    assert "object-fit: contain;" in rule
    assert "opacity" not in rule


def test_empty_image_source_renders_placeholder():
    html = _render([image_element(src="")])

    assert 'data-placeholder="image"' in html
    assert "<img" not in html


def test_table_header_row_is_distinguished():
    html = _render([table_element()])

    assert html.count("<thead>") == 1
    assert html.count("<tbody>") == 1
    thead = html[html.index("<thead>"):html.index("</thead>")]
    tbody = html[html.index("<tbody>"):html.index("</tbody>")]
    assert thead.count("<tr>") == 1
    assert "<th>A</th><th>B</th>" in thead
    assert tbody.count("<tr>") == 1
    assert "<td>1</td><td>2</td>" in tbody
    assert "#el-0 th {" in html
    assert "background-color: #eeeeee;" in html


def test_table_without_header_row_has_no_thead():
    rows = [[{"content": "x", "isHeader": False}, {"content": "y", "isHeader": True}]]
    html = _render([table_element(rows=rows)])

    assert "<thead>" not in html
    assert "<td>x</td><th>y</th>" in html


def test_font_family_is_sanitized():
    assert sanitize_font_family("Arial'; } body { color: red") == "Arial body color: red"
    assert sanitize_font_family("\"Times New Roman\"") == "Times New Roman"
    assert sanitize_font_family("';{}") == "sans-serif"


def test_number_formatting():
    assert format_number(12.0) == "12"
    assert format_number(12.5) == "12.5"
    assert format_number(3) == "3"


# ------------------------------------------------------------------
# Metadata
# ------------------------------------------------------------------

def test_metadata():
    project = parse_document(flyer_document())
    generated = generate_document(project)
    metadata = generated.metadata

    assert metadata.variables == 4
    assert metadata.elements == 5
    assert metadata.size_bytes == len(generated.html.encode("utf-8"))
    assert metadata.content_hash.startswith("SHA-256:")
    assert metadata.generation_time >= 0


def test_complexity_rating():
    simple = parse_document(canvas_document([text_element()]))
    assert rate_complexity(simple) == Complexity.SIMPLE

    # 5 elements + weights (0.5 + 1 + 1 + 2 + 3) + 4 variables * 0.5 = 14.5
    flyer = parse_document(flyer_document())
    assert rate_complexity(flyer) == Complexity.MODERATE

    crowded = parse_document(
        canvas_document([table_element(id=f"t{i}") for i in range(8)])
    )
    assert rate_complexity(crowded) == Complexity.VERY_COMPLEX
