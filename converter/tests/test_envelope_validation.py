import math

import pytest

from converter.app.pipeline.envelope import (
    require_valid_envelope,
    validate_envelope,
)
from converter.app.pipeline.errors import EnvelopeValidationError

from converter.tests.fixtures.documents import canvas_document, conversion_request


def test_valid_envelope_has_no_violations():
    assert validate_envelope(conversion_request()) == []


def test_require_valid_envelope_returns_document():
    body = conversion_request()
    assert require_valid_envelope(body) is body["tb365Data"]


def test_missing_canvas_width_is_reported_with_path():
    document = canvas_document()
    del document["canvasState"]["canvasSize"]["width"]

    violations = validate_envelope(conversion_request(document))

    assert violations == [
        "tb365Data.canvasState.canvasSize.width: Field required"
    ]


def test_missing_tb365_data():
    violations = validate_envelope({"data": {}})
    assert len(violations) == 1
    assert violations[0].startswith("tb365Data:")


def test_non_positive_canvas_size_is_rejected():
    document = canvas_document()
    document["canvasState"]["canvasSize"] = {"width": 0, "height": -5}

    violations = validate_envelope(conversion_request(document))

    assert len(violations) == 2
    assert all("greater than 0" in v for v in violations)


def test_non_finite_canvas_size_is_rejected():
    document = canvas_document()
    document["canvasState"]["canvasSize"] = {"width": math.inf, "height": 600}

    violations = validate_envelope(conversion_request(document))

    assert len(violations) == 1
    assert violations[0].startswith("tb365Data.canvasState.canvasSize.width:")


def test_elements_must_be_an_array():
    document = canvas_document()
    document["canvasState"]["elements"] = {"not": "a list"}

    violations = validate_envelope(conversion_request(document))

    assert any(v.startswith("tb365Data.canvasState.elements:") for v in violations)


def test_non_object_body():
    assert validate_envelope(["not", "an", "object"]) == [
        "Request body must be a JSON object"
    ]


def test_envelope_ignores_element_level_problems():
    document = canvas_document([{"type": "circle"}])
    document["canvasState"]["zoom"] = -1

    assert validate_envelope(conversion_request(document)) == []


def test_require_valid_envelope_raises_with_stage():
    document = canvas_document()
    del document["projectName"]

    with pytest.raises(EnvelopeValidationError) as exc_info:
        require_valid_envelope(conversion_request(document))

    assert exc_info.value.stage == "schema_validation"
    assert exc_info.value.errors == ["tb365Data.projectName: Field required"]
