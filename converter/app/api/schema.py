"""
Schema endpoints.

    POST /schema            data schema and sample data for a document
    GET  /schema/document   JSON Schema of the canvas document contract

The extracted data schema describes what runtime data a document
expects. It is derived from the document's placeholders alone and is
intended for scaffolding data-entry forms.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from converter.app.api.dependencies import get_coordinator
from converter.app.api.errors import http_error_from
from converter.app.coordinator.coordinator import ConversionCoordinator
from converter.app.pipeline.errors import PipelineError
from converter.app.schemas.canvas import CanvasDocument

router = APIRouter()


@router.post(
    "",
    summary="Extract the data schema of a canvas document",
)
def extract_document_schema(
    payload: Any = Body(...),
    coordinator: ConversionCoordinator = Depends(get_coordinator),
) -> Dict[str, Any]:
    try:
        document = coordinator.unwrap_request(payload)
        extraction = coordinator.extract_schema(document)
    except PipelineError as exc:
        raise http_error_from(exc) from exc

    return extraction.model_dump(by_alias=True, mode="json")


@router.get(
    "/document",
    summary="Get the JSON schema of the canvas document contract",
)
def get_document_schema() -> Dict[str, Any]:
    return CanvasDocument.model_json_schema(by_alias=True)
