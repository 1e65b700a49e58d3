"""
Content hash of generated HTML documents.

The hash is taken over the UTF-8 encoding of the document exactly as
generated, before any runtime data is bound into it. Two conversions of
the same canvas document therefore share a hash regardless of the data
supplied, which lets renderers and caches key on the template alone.
"""

import hashlib

HASH_PREFIX = "SHA-256:"


def hash_html(html: str) -> str:
    """Return ``SHA-256:<hex>`` for the UTF-8 bytes of ``html``."""
    if not isinstance(html, str):
        raise TypeError(f"hash_html expects str, got {type(html).__name__}")

    return HASH_PREFIX + hashlib.sha256(html.encode("utf-8")).hexdigest()
