"""
Translation of pipeline failures into HTTP errors.

Structural failures (envelope, limits, parsing) are the caller's fault
and are returned with their stage and itemized messages. Generation
failures are defects: the caller only learns that generation failed,
the details go to the service log.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError

from converter.app.pipeline.errors import (
    DocumentLimitError,
    DocumentParseError,
    EnvelopeValidationError,
    GenerationError,
    PipelineError,
)


GENERATION_FAILURE_DETAIL = {
    "stage": GenerationError.stage,
    "message": "HTML generation failed. See service logs for details.",
    "errors": [],
}

_STATUS_BY_ERROR = (
    (EnvelopeValidationError, 400),
    (DocumentLimitError, 413),
    (DocumentParseError, 422),
)


def http_error_from(exc: PipelineError) -> HTTPException:
    if isinstance(exc, GenerationError):
        return HTTPException(status_code=500, detail=GENERATION_FAILURE_DETAIL)

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.to_detail())

    return HTTPException(status_code=500, detail=GENERATION_FAILURE_DETAIL)


def validate_payload_model(
    model: type,
    value: Optional[Dict[str, Any]],
    *,
    stage: str,
) -> BaseModel:
    """Validate an optional request section, raising 422 on failure."""
    try:
        return model.model_validate(value or {})
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "stage": stage,
                "message": f"Invalid {stage}",
                "errors": [
                    f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                    for error in exc.errors()
                ],
            },
        ) from exc
