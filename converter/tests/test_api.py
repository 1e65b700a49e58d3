from fastapi.testclient import TestClient

from converter.app.api.dependencies import get_coordinator
from converter.app.config import Settings
from converter.app.coordinator.coordinator import ConversionCoordinator
from converter.app.main import app

from converter.tests.fixtures.documents import (
    canvas_document,
    conversion_request,
    flyer_document,
    rectangle_element,
    text_element,
)


client = TestClient(app)


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "converter"}


# ------------------------------------------------------------------
# POST /convert
# ------------------------------------------------------------------

def test_convert_minimal_document():
    response = client.post(
        "/convert",
        json=conversion_request(data={"name": "World"}),
    )

    assert response.status_code == 200
    body = response.json()
    assert "Hello World" in body["html"]
    assert body["replacement"]["statistics"]["totalVariables"] == 1
    assert body["replacement"]["statistics"]["replacedVariables"] == 1
    assert body["metadata"]["contentHash"].startswith("SHA-256:")
    assert body["project"]["projectName"] == "Listing Flyer"


def test_convert_xss_value_is_neutralized():
    document = canvas_document([text_element(content="{{title}}")])

    response = client.post(
        "/convert",
        json=conversion_request(
            document,
            data={"title": "<script>alert(1)</script>ok"},
        ),
    )

    body = response.json()
    assert "<script" not in body["html"]
    assert "ok" in body["html"]
    assert [w["type"] for w in body["replacement"]["warnings"]] == [
        "SECURITY_WARNING"
    ]


def test_missing_canvas_size_is_rejected_before_parsing():
    document = canvas_document([{"type": "garbage"}])
    del document["canvasState"]["canvasSize"]["width"]

    response = client.post("/convert", json=conversion_request(document))

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["stage"] == "schema_validation"
    assert detail["errors"] == [
        "tb365Data.canvasState.canvasSize.width: Field required"
    ]


def test_non_object_body_is_an_envelope_error():
    for path in ("/convert", "/convert/html", "/schema"):
        response = client.post(path, json=["not", "an", "object"])

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["stage"] == "schema_validation"
        assert detail["errors"] == ["Request body must be a JSON object"]


def test_envelope_is_checked_before_options():
    document = canvas_document()
    del document["version"]

    response = client.post(
        "/convert",
        json=conversion_request(document, options={"unknownOption": True}),
    )

    assert response.status_code == 400


def test_invalid_elements_return_422_with_stage():
    document = canvas_document(
        [rectangle_element(id="r1", fill="red"), text_element(id="t1", color="blue")]
    )

    response = client.post("/convert", json=conversion_request(document))

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["stage"] == "element_validation"
    assert len(detail["errors"]) == 2


def test_invalid_options_return_422():
    response = client.post(
        "/convert",
        json=conversion_request(options={"missingVariables": "explode"}),
    )

    assert response.status_code == 422
    assert response.json()["detail"]["stage"] == "options"


def test_options_are_applied():
    response = client.post(
        "/convert",
        json=conversion_request(
            options={"missingVariables": "remove", "includeTemplate": True},
        ),
    )

    body = response.json()
    assert "{{name}}" not in body["html"]
    assert "{{name}}" in body["templateHtml"]
    assert body["replacement"]["missing"] == ["name"]


def test_element_limit_returns_413():
    app.dependency_overrides[get_coordinator] = lambda: ConversionCoordinator(
        settings=Settings(max_elements=1)
    )
    try:
        response = client.post(
            "/convert",
            json=conversion_request(canvas_document([text_element(), text_element()])),
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 413
    assert response.json()["detail"]["stage"] == "limits"


def test_generation_failure_is_a_generic_500(monkeypatch):
    def explode(project, **kwargs):
        raise RuntimeError("template exploded")

    monkeypatch.setattr(
        "converter.app.pipeline.html_generator.render_html",
        explode,
    )

    response = client.post("/convert", json=conversion_request())

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["stage"] == "generation"
    assert "exploded" not in detail["message"]


# ------------------------------------------------------------------
# POST /convert/html
# ------------------------------------------------------------------

def test_convert_html_returns_document_with_headers():
    response = client.post(
        "/convert/html",
        json=conversion_request(data={"name": "World"}),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert response.text.startswith("<!DOCTYPE html>")
    assert "Hello World" in response.text
    assert response.headers["x-content-hash"].startswith("SHA-256:")
    assert response.headers["x-replaced-variables"] == "1"
    assert response.headers["x-missing-variables"] == "0"


# ------------------------------------------------------------------
# POST /replace
# ------------------------------------------------------------------

def test_replace_endpoint():
    response = client.post(
        "/replace",
        json={
            "html": "<p>{{agent.phone}}</p>",
            "data": {"agent": {"phone": "5551234567"}},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["html"] == "<p>(555) 123-4567</p>"


def test_replace_endpoint_reports_unusable_input():
    response = client.post("/replace", json={"data": {}})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["error"]["message"] == "HTML template must be a string"


# ------------------------------------------------------------------
# Schema endpoints
# ------------------------------------------------------------------

def test_extract_schema_endpoint():
    response = client.post("/schema", json={"tb365Data": flyer_document()})

    assert response.status_code == 200
    body = response.json()
    assert body["variables"][0] == "agency.name"
    assert body["dataSchema"]["skeleton"]["agency"] == {"name": None}
    assert body["sampleData"]["agency"]["name"] == "Your Real Estate Agency"


def test_extract_schema_rejects_bad_envelope():
    response = client.post("/schema", json={"tb365Data": {"projectName": "x"}})

    assert response.status_code == 400


def test_document_schema_endpoint():
    response = client.get("/schema/document")

    assert response.status_code == 200
    schema = response.json()
    assert "projectName" in schema["properties"]
    assert "canvasState" in schema["required"]
