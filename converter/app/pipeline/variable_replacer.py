"""
Variable replacer.

Substitutes runtime business data into ``{{path.to.value}}``
placeholders of a generated document (or any text containing them).

Data problems never raise. Missing values, format violations and unsafe
content are expected runtime conditions: they are reported on the
ReplacementResult (``missing`` and ``warnings``) and the replacement
always completes. Only unusable input (a template that is not a
non-empty string within the size limit, or data that is not an object)
yields ``success=False``, still without raising.

Per resolved value, in order:

    1. resolve    nested walk, then flat key, then default values
    2. stringify  scalars only; booleans as true/false
    3. sanitize   script blocks/tags, javascript: URIs, on*= handlers
    4. validate   phone / email / url shape by field name (warn only)
    5. format     currency, phone, url, area by field name (optional)
    6. escape     HTML-escape (optional, on by default)

The name-based heuristics in steps 4 and 5 are a starting policy, not a
security boundary. HTML escaping in step 6 is what keeps substituted
values inert.

All functions are pure. Each call owns its caches; nothing is shared
between calls beyond the compiled patterns below.
"""

import logging
import re
import time
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple
from urllib.parse import urlsplit

from markupsafe import escape

from converter.app.schemas.conversion import (
    ConversionOptions,
    DataAvailability,
    ReplacementError,
    ReplacementPreview,
    ReplacementRecord,
    ReplacementResult,
    ReplacementStatistics,
    ReplacementWarning,
    TemplateAnalysis,
    ValueSource,
    WarningType,
)

logger = logging.getLogger(__name__)


PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

DEFAULT_MAX_TEMPLATE_BYTES = 10 * 1024 * 1024
DEFAULT_VARIABLE_WARNING_THRESHOLD = 1000

MISSING_PREVIEW = "[MISSING]"

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_SCRIPT_TAG = re.compile(r"</?script\b[^>]*>?", re.IGNORECASE)
_JAVASCRIPT_URI = re.compile(r"javascript\s*:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"\bon\w+\s*=", re.IGNORECASE)

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")
_NON_DIGITS = re.compile(r"\D")


class _Resolution(NamedTuple):
    found: bool
    text: str = ""
    source: Optional[ValueSource] = None


_NOT_FOUND = _Resolution(found=False)
_ABSENT = object()


# ---------------------------------------------------------------------------
# Placeholder scanning
# ---------------------------------------------------------------------------


def find_placeholders(html: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(token, path)`` for every placeholder with a non-blank path."""
    for match in PLACEHOLDER_PATTERN.finditer(html):
        path = match.group(1).strip()
        if path:
            yield match.group(0), path


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _walk(data: Dict[str, Any], path: str) -> Any:
    node: Any = data
    for segment in path.split("."):
        if isinstance(node, dict):
            node = node.get(segment, _ABSENT)
        elif isinstance(node, list) and segment.isdigit():
            index = int(segment)
            node = node[index] if index < len(node) else _ABSENT
        else:
            return _ABSENT
        if node is None or node is _ABSENT:
            return _ABSENT
    return node


def resolve_value(
    path: str,
    data: Dict[str, Any],
    default_values: Dict[str, Any],
) -> Tuple[Any, Optional[ValueSource]]:
    """
    Look ``path`` up in the data, falling back to defaults.

    Returns ``(value, source)``; ``value`` is a sentinel and ``source``
    is None when nothing usable was found.
    """
    value = _walk(data, path)
    if value is not _ABSENT:
        return value, ValueSource.DATA

    value = data.get(path)
    if value is not None:
        return value, ValueSource.DATA_FLAT

    value = default_values.get(path)
    if value is not None:
        return value, ValueSource.DEFAULT

    return _ABSENT, None


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------------
# Sanitization and validation
# ---------------------------------------------------------------------------


def sanitize_value(text: str) -> Tuple[str, bool]:
    """
    Strip dangerous patterns. Returns ``(clean_text, was_modified)``.

    Substitutions repeat until the text is stable, so fragments that
    join into a new pattern once an inner one is removed are caught too.
    """
    cleaned = text
    while True:
        previous = cleaned
        cleaned = _SCRIPT_BLOCK.sub("", cleaned)
        cleaned = _SCRIPT_TAG.sub("", cleaned)
        cleaned = _JAVASCRIPT_URI.sub("", cleaned)
        cleaned = _EVENT_HANDLER.sub("", cleaned)
        if cleaned == previous:
            return cleaned, cleaned != text


def is_valid_phone(value: str) -> bool:
    if not value:
        return True
    digits = _NON_DIGITS.sub("", value)
    return 7 <= len(digits) <= 15


def is_valid_email(value: str) -> bool:
    if not value:
        return True
    return bool(_EMAIL.match(value))


def is_valid_url(value: str) -> bool:
    if not value:
        return True
    candidate = value if "://" in value else f"https://{value}"
    if any(char.isspace() for char in candidate):
        return False
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def _leaf_name(path: str) -> str:
    return path.rsplit(".", 1)[-1].lower()


def _is_phone_field(name: str) -> bool:
    return "phone" in name or name.startswith("tel")


def _is_url_field(name: str) -> bool:
    return "url" in name or "website" in name or "link" in name


def validate_format(path: str, text: str) -> Optional[str]:
    """Message describing a shape violation, or None when acceptable."""
    name = _leaf_name(path)

    if _is_phone_field(name) and not is_valid_phone(text):
        return f"Invalid phone number format: {text}"
    if "email" in name and not is_valid_email(text):
        return f"Invalid email format: {text}"
    if ("url" in name or "website" in name) and not is_valid_url(text):
        return f"Invalid URL format: {text}"
    return None


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _parse_number(text: str) -> Optional[float]:
    candidate = text.replace(",", "").strip()
    if not _NUMERIC.match(candidate):
        return None
    return float(candidate)


def _group_thousands(number: float) -> str:
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.2f}"


def format_currency(text: str) -> str:
    if not text or "$" in text:
        return text
    number = _parse_number(text)
    if number is None:
        return text
    return f"${_group_thousands(number)}"


def format_phone(text: str) -> str:
    digits = _NON_DIGITS.sub("", text)
    if len(digits) != 10:
        return text
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def format_url(text: str) -> str:
    if not text or "://" in text:
        return text
    return f"https://{text}"


def format_area(text: str) -> str:
    number = _parse_number(text)
    if number is None:
        return text
    return f"{_group_thousands(number)} sq ft"


def apply_formatting(path: str, text: str) -> str:
    name = _leaf_name(path)

    if "price" in name or "cost" in name or "amount" in name:
        return format_currency(text)
    if _is_phone_field(name):
        return format_phone(text)
    if _is_url_field(name):
        return format_url(text)
    if "sqft" in name or "square" in name:
        return format_area(text)
    return text


# ---------------------------------------------------------------------------
# Value pipeline
# ---------------------------------------------------------------------------


def _process_value(
    path: str,
    data: Dict[str, Any],
    default_values: Dict[str, Any],
    options: ConversionOptions,
    warnings: List[ReplacementWarning],
) -> _Resolution:
    value, source = resolve_value(path, data, default_values)
    if source is None:
        return _NOT_FOUND

    if isinstance(value, (dict, list, tuple)):
        warnings.append(
            ReplacementWarning(
                type=WarningType.VALIDATION_WARNING,
                key=path,
                message=f"Value for '{path}' is not a scalar and was not substituted",
            )
        )
        return _NOT_FOUND

    text, modified = sanitize_value(stringify(value))
    if modified:
        warnings.append(
            ReplacementWarning(
                type=WarningType.SECURITY_WARNING,
                key=path,
                message="Potential XSS content detected and sanitized",
            )
        )

    problem = validate_format(path, text)
    if problem is not None:
        warnings.append(
            ReplacementWarning(
                type=WarningType.VALIDATION_WARNING,
                key=path,
                message=problem,
            )
        )

    if options.auto_format:
        text = apply_formatting(path, text)

    if options.escape_html:
        text = str(escape(text))

    return _Resolution(found=True, text=text, source=source)


def _missing_replacement(token: str, options: ConversionOptions) -> str:
    if options.missing_variable_text is not None:
        if options.escape_html:
            return str(escape(options.missing_variable_text))
        return options.missing_variable_text
    if options.missing_variables == "remove":
        return ""
    return token


# ---------------------------------------------------------------------------
# Input guards
# ---------------------------------------------------------------------------


def _input_error(html: Any, data: Any, default_values: Any, max_bytes: int) -> Optional[str]:
    if not isinstance(html, str):
        return "HTML template must be a string"
    if not html:
        return "HTML template cannot be empty"
    if len(html.encode("utf-8")) > max_bytes:
        return f"HTML template too large (max {max_bytes} bytes)"
    if data is not None and not isinstance(data, dict):
        return "Data must be an object or null"
    if default_values is not None and not isinstance(default_values, dict):
        return "Default values must be an object or null"
    return None


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


# ---------------------------------------------------------------------------
# Public entrypoints
# ---------------------------------------------------------------------------


def replace_variables(
    html: Any,
    data: Any = None,
    *,
    options: Optional[ConversionOptions] = None,
    default_values: Any = None,
    max_template_bytes: int = DEFAULT_MAX_TEMPLATE_BYTES,
    variable_warning_threshold: int = DEFAULT_VARIABLE_WARNING_THRESHOLD,
) -> ReplacementResult:
    """
    Substitute ``data`` into every placeholder of ``html``.

    Each distinct path is resolved once per call; every occurrence of it
    receives the same substituted text.
    """
    started = time.perf_counter()
    options = options or ConversionOptions()

    error = _input_error(html, data, default_values, max_template_bytes)
    if error is not None:
        logger.warning("Variable replacement rejected input: %s", error)
        template = html if isinstance(html, str) else ""
        return ReplacementResult(
            success=False,
            html=template,
            statistics=ReplacementStatistics(original_length=len(template)),
            processing_time=_elapsed_ms(started),
            error=ReplacementError(message=error),
        )

    data = data or {}
    default_values = default_values or {}
    warnings: List[ReplacementWarning] = []

    occurrences = sum(1 for _ in find_placeholders(html))
    if occurrences > variable_warning_threshold:
        warnings.append(
            ReplacementWarning(
                type=WarningType.PERFORMANCE_WARNING,
                message=(
                    f"Template contains {occurrences} variables, "
                    "may impact performance"
                ),
            )
        )

    resolved: Dict[str, _Resolution] = {}
    tokens: Dict[str, str] = {}
    counts: Dict[str, int] = {}

    def substitute(match: "re.Match[str]") -> str:
        token = match.group(0)
        path = match.group(1).strip()
        if not path:
            return token

        resolution = resolved.get(path)
        if resolution is None:
            resolution = _process_value(path, data, default_values, options, warnings)
            resolved[path] = resolution
            tokens[path] = token
        counts[path] = counts.get(path, 0) + 1

        if resolution.found:
            return resolution.text
        return _missing_replacement(token, options)

    replaced_html = PLACEHOLDER_PATTERN.sub(substitute, html)

    missing = [path for path, resolution in resolved.items() if not resolution.found]
    replacements = [
        ReplacementRecord(
            variable=path,
            original=tokens[path],
            replaced=resolution.text,
            source=resolution.source,
            occurrences=counts[path],
        )
        for path, resolution in resolved.items()
        if resolution.found
    ]

    statistics = ReplacementStatistics(
        total_variables=len(resolved),
        replaced_variables=len(replacements),
        missing_variables=len(missing),
        total_occurrences=occurrences,
        original_length=len(html),
        replaced_length=len(replaced_html),
        warnings_count=len(warnings),
    )

    logger.debug(
        "Replaced %s/%s variable(s), %s missing, %s warning(s)",
        statistics.replaced_variables,
        statistics.total_variables,
        statistics.missing_variables,
        statistics.warnings_count,
    )

    return ReplacementResult(
        success=True,
        html=replaced_html,
        missing=missing,
        warnings=warnings,
        statistics=statistics,
        replacements=replacements,
        processing_time=_elapsed_ms(started),
    )


def preview_replacements(
    html: str,
    data: Optional[Dict[str, Any]] = None,
    default_values: Optional[Dict[str, Any]] = None,
) -> List[ReplacementPreview]:
    """What each placeholder occurrence would become, without escaping."""
    data = data or {}
    default_values = default_values or {}
    options = ConversionOptions(escape_html=False)
    previews: List[ReplacementPreview] = []

    for token, path in find_placeholders(html):
        resolution = _process_value(path, data, default_values, options, [])
        previews.append(
            ReplacementPreview(
                variable=path,
                current=token,
                will_become=resolution.text if resolution.found else MISSING_PREVIEW,
                source=resolution.source.value if resolution.found else "missing",
                found=resolution.found,
            )
        )

    return previews


def analyze_template(
    html: str,
    data: Optional[Dict[str, Any]] = None,
    default_values: Optional[Dict[str, Any]] = None,
) -> TemplateAnalysis:
    """Placeholder counts, categories and data coverage for a template."""
    data = data or {}
    default_values = default_values or {}

    unique: List[str] = []
    categories: Dict[str, int] = {}
    found_in_data = 0
    found_in_defaults = 0
    missing = 0
    total = 0

    for _, path in find_placeholders(html):
        total += 1
        if path not in unique:
            unique.append(path)

        category = path.split(".")[0] or "unknown"
        categories[category] = categories.get(category, 0) + 1

        _, source = resolve_value(path, data, default_values)
        if source is None:
            missing += 1
        elif source == ValueSource.DEFAULT:
            found_in_defaults += 1
        else:
            found_in_data += 1

    coverage = round((found_in_data + found_in_defaults) / total * 100) if total else 0

    return TemplateAnalysis(
        total_instances=total,
        unique_variables=len(unique),
        categories=categories,
        data_availability=DataAvailability(
            found_in_data=found_in_data,
            found_in_defaults=found_in_defaults,
            missing=missing,
            coverage_percent=coverage,
        ),
        variable_list=sorted(unique),
    )
