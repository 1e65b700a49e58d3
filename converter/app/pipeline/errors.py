"""
Pipeline error taxonomy.

Structural errors (envelope and parse stages) and generation errors are
fatal to a conversion request. Each carries the name of the stage that
raised it and the itemized messages collected by that stage.

Data problems found while substituting runtime values are NOT errors;
they are reported as warnings on the ReplacementResult.
"""

from typing import List, Optional


class PipelineError(RuntimeError):
    """Base class for stage-tagged pipeline failures."""

    stage: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[List[str]] = None,
        stage: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.errors: List[str] = list(errors or [])
        if stage is not None:
            self.stage = stage

    def to_detail(self) -> dict:
        return {
            "stage": self.stage,
            "message": self.message,
            "errors": self.errors,
        }


class EnvelopeValidationError(PipelineError):
    """Raised when the request body fails the top-level shape check."""

    stage = "schema_validation"


class DocumentParseError(PipelineError):
    """
    Raised by the document parser.

    ``stage`` is one of ``structure_validation``, ``canvas_validation``
    or ``element_validation``.
    """


class GenerationError(PipelineError):
    """Raised when HTML synthesis fails on an already-validated project."""

    stage = "generation"


class DocumentLimitError(PipelineError):
    """Raised when a document exceeds a configured service limit."""

    stage = "limits"
