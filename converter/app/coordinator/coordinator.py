"""
Conversion coordinator.

Runs the template compilation pipeline in its fixed order:

    1. Envelope validation   (request bodies only)
    2. Service limits
    3. Document parsing      (structure, canvas, elements)
    4. HTML generation
    5. Variable replacement

Stages 1 to 4 either return a complete result or raise a stage-tagged
PipelineError, and nothing after a failing stage runs. Stage 5 never
raises for data problems; its outcome is reported on the result.

The coordinator holds configuration only. It keeps no per-request
state, so one instance may serve concurrent requests.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from converter.app.config import Settings, get_settings
from converter.app.pipeline.content_processor import (
    build_data_schema,
    generate_sample_data,
    process_content,
)
from converter.app.pipeline.document_parser import parse_document
from converter.app.pipeline.envelope import require_valid_envelope
from converter.app.pipeline.errors import DocumentLimitError
from converter.app.pipeline.html_generator import generate_document
from converter.app.pipeline.variable_replacer import replace_variables
from converter.app.schemas.conversion import (
    ConversionOptions,
    ConversionResult,
    ProjectSummary,
    ReplacementResult,
    SchemaExtraction,
)

logger = logging.getLogger(__name__)


class ConversionCoordinator:
    """Entry point for Convert and ExtractSchema."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings if settings is not None else get_settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------
    # Request envelope
    # ------------------------------------------------------------------

    def unwrap_request(self, body: Any) -> Dict[str, Any]:
        """Validate a request envelope and return its canvas document."""
        return require_valid_envelope(body)

    # ------------------------------------------------------------------
    # Limits
    # ------------------------------------------------------------------

    def _enforce_limits(self, document: Any) -> None:
        if not isinstance(document, dict):
            return
        state = document.get("canvasState")
        if not isinstance(state, dict):
            return
        elements = state.get("elements")
        if not isinstance(elements, list):
            return

        if len(elements) > self._settings.max_elements:
            raise DocumentLimitError(
                "Document exceeds the maximum number of elements",
                errors=[
                    f"{len(elements)} elements supplied, "
                    f"limit is {self._settings.max_elements}"
                ],
            )

    # ------------------------------------------------------------------
    # Variable replacement
    # ------------------------------------------------------------------

    def replace(
        self,
        html: Any,
        data: Any = None,
        options: Optional[ConversionOptions] = None,
        default_values: Any = None,
    ) -> ReplacementResult:
        return replace_variables(
            html,
            data,
            options=options,
            default_values=default_values,
            max_template_bytes=self._settings.max_template_bytes,
            variable_warning_threshold=self._settings.variable_warning_threshold,
        )

    # ------------------------------------------------------------------
    # Convert
    # ------------------------------------------------------------------

    def convert(
        self,
        document: Any,
        data: Optional[Dict[str, Any]] = None,
        options: Optional[ConversionOptions] = None,
        default_values: Optional[Dict[str, Any]] = None,
    ) -> ConversionResult:
        """
        Compile a canvas document to HTML and bind ``data`` into it.

        Raises:
            DocumentLimitError: the document exceeds a service limit.
            DocumentParseError: the document failed validation.
            GenerationError: HTML synthesis failed.
        """
        options = options or ConversionOptions()
        conversion_id = uuid.uuid4().hex

        self._enforce_limits(document)

        project = parse_document(document)
        generated = generate_document(project)
        replacement = self.replace(
            generated.html,
            data,
            options=options,
            default_values=default_values,
        )

        logger.info(
            "Conversion %s for project '%s': %s/%s variable(s) replaced",
            conversion_id,
            project.project_name,
            replacement.statistics.replaced_variables,
            replacement.statistics.total_variables,
        )

        return ConversionResult(
            conversion_id=conversion_id,
            project=ProjectSummary(
                project_name=project.project_name,
                version=project.version,
                total_elements=project.statistics.total_elements,
                element_types=project.statistics.element_types,
                variables=project.text_content.variables,
                warnings=project.validation.warnings,
            ),
            metadata=generated.metadata,
            html=replacement.html,
            replacement=replacement,
            template_html=generated.html if options.include_template else None,
        )

    # ------------------------------------------------------------------
    # ExtractSchema
    # ------------------------------------------------------------------

    def extract_schema(self, document: Any) -> SchemaExtraction:
        """
        Derive the data schema and sample data for a canvas document.

        Parses the document (with full validation) but skips HTML
        generation and replacement.
        """
        self._enforce_limits(document)

        project = parse_document(document)
        content = process_content(project.elements)
        data_schema = build_data_schema(content.variables)

        logger.info(
            "Extracted schema for project '%s': %s variable(s)",
            project.project_name,
            len(content.variables),
        )

        return SchemaExtraction(
            project_name=project.project_name,
            variables=content.variables,
            variable_info=content.variable_info,
            data_schema=data_schema,
            sample_data=generate_sample_data(data_schema),
        )
