"""
Conversion endpoints.

Clients supply a saved canvas document (``tb365Data``), optional runtime
data and optional replacement options. Validation, HTML generation and
data binding are performed exclusively by this service.

    POST /convert         JSON result: project summary, document
                          metadata, final HTML and replacement report
    POST /convert/html    the final HTML itself (text/html)
    POST /replace         variable replacement on caller-supplied HTML

The envelope check runs before anything else in the request body is
looked at, so a malformed body is always reported as a 400 even when
its options are invalid too.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import HTMLResponse

from converter.app.api.dependencies import get_coordinator
from converter.app.api.errors import (
    GENERATION_FAILURE_DETAIL,
    http_error_from,
    validate_payload_model,
)
from converter.app.coordinator.coordinator import ConversionCoordinator
from converter.app.pipeline.errors import PipelineError
from converter.app.schemas.conversion import ConversionOptions, ConversionResult

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Shared pipeline invocation
# ---------------------------------------------------------------------------


def _run_conversion(
    payload: Any,
    coordinator: ConversionCoordinator,
) -> ConversionResult:
    try:
        document = coordinator.unwrap_request(payload)
    except PipelineError as exc:
        raise http_error_from(exc) from exc

    options = validate_payload_model(
        ConversionOptions,
        payload.get("options"),
        stage="options",
    )

    try:
        return coordinator.convert(
            document,
            data=payload.get("data"),
            options=options,
            default_values=payload.get("defaultValues"),
        )
    except PipelineError as exc:
        raise http_error_from(exc) from exc
    except Exception as exc:
        logger.exception(
            "Conversion failed for project='%s'",
            document.get("projectName"),
        )
        raise HTTPException(
            status_code=500,
            detail=GENERATION_FAILURE_DETAIL,
        ) from exc


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post(
    "/convert",
    summary="Convert a canvas document to HTML and bind runtime data",
)
def convert_document(
    payload: Any = Body(...),
    coordinator: ConversionCoordinator = Depends(get_coordinator),
) -> Dict[str, Any]:
    result = _run_conversion(payload, coordinator)
    return result.model_dump(by_alias=True, mode="json")


@router.post(
    "/convert/html",
    summary="Convert a canvas document and return the final HTML",
    response_class=HTMLResponse,
)
def convert_document_html(
    payload: Any = Body(...),
    coordinator: ConversionCoordinator = Depends(get_coordinator),
) -> HTMLResponse:
    """
    Same pipeline as ``POST /convert``.

    The X-Content-Hash header carries the SHA-256 hash of the generated
    HTML before data binding.
    """
    result = _run_conversion(payload, coordinator)
    statistics = result.replacement.statistics

    return HTMLResponse(
        content=result.html,
        headers={
            "X-Conversion-Id": result.conversion_id,
            "X-Content-Hash": result.metadata.content_hash,
            "X-Replaced-Variables": str(statistics.replaced_variables),
            "X-Missing-Variables": str(statistics.missing_variables),
        },
    )


@router.post(
    "/replace",
    summary="Substitute runtime data into an HTML template",
)
def replace_template_variables(
    payload: Dict[str, Any] = Body(...),
    coordinator: ConversionCoordinator = Depends(get_coordinator),
) -> Dict[str, Any]:
    """
    Stand-alone variable replacement.

    Always answers 200 for well-formed requests. Unusable input (missing
    or oversized template, non-object data) is reported with
    ``success: false`` and an ``error`` object.
    """
    options = validate_payload_model(
        ConversionOptions,
        payload.get("options"),
        stage="options",
    )

    result = coordinator.replace(
        payload.get("html"),
        payload.get("data"),
        options=options,
        default_values=payload.get("defaultValues"),
    )
    return result.model_dump(by_alias=True, mode="json")
