"""
Request envelope validation.

The first gate of the conversion pipeline. Confirms only that a request
body has the top-level shape of a conversion request:

    tb365Data.projectName                 string
    tb365Data.version                     string
    tb365Data.canvasState.elements        array
    tb365Data.canvasState.canvasSize      {width > 0, height > 0}

Everything else (element contracts, canvas properties, optional request
fields) is passed through untouched and is the document parser's
concern. The envelope models therefore allow extra fields at every
level.
"""

import logging
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from converter.app.pipeline.errors import EnvelopeValidationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Envelope models (permissive)
# ---------------------------------------------------------------------------


class _EnvelopeModel(BaseModel):
    model_config = ConfigDict(extra="allow", strict=True, allow_inf_nan=False)


class EnvelopeCanvasSize(_EnvelopeModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class EnvelopeCanvasState(_EnvelopeModel):
    elements: List[Any]
    canvasSize: EnvelopeCanvasSize


class EnvelopeDocument(_EnvelopeModel):
    projectName: str
    version: str
    canvasState: EnvelopeCanvasState


class ConversionEnvelope(_EnvelopeModel):
    tb365Data: EnvelopeDocument


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _format_violation(error: dict) -> str:
    location = ".".join(str(part) for part in error["loc"])
    if not location:
        return error["msg"]
    return f"{location}: {error['msg']}"


def validate_envelope(body: Any) -> List[str]:
    """
    Check a request body against the conversion envelope.

    Returns a list of human-readable violations, empty when the body is
    acceptable. Never raises for malformed input.
    """
    if not isinstance(body, dict):
        return ["Request body must be a JSON object"]

    try:
        ConversionEnvelope.model_validate(body)
    except ValidationError as exc:
        return [_format_violation(error) for error in exc.errors()]

    return []


def require_valid_envelope(body: Any) -> dict:
    """
    Validate the envelope and return the embedded canvas document.

    Raises:
        EnvelopeValidationError: if any violation is found.
    """
    violations = validate_envelope(body)
    if violations:
        logger.warning(
            "Envelope validation failed with %s violation(s)",
            len(violations),
        )
        raise EnvelopeValidationError(
            "Request body failed schema validation",
            errors=violations,
        )

    return body["tb365Data"]
