import hashlib

import pytest

from converter.app.pipeline.document_parser import parse_document
from converter.app.pipeline.html_generator import generate_document
from converter.app.utils.hashing import hash_html

from converter.tests.fixtures.documents import canvas_document, text_element


def test_hash_covers_utf8_bytes_with_prefix():
    html = "<p>Café</p>"

    assert hash_html(html) == (
        "SHA-256:" + hashlib.sha256(html.encode("utf-8")).hexdigest()
    )


def test_hash_is_content_sensitive():
    assert hash_html("<p>a</p>") != hash_html("<p>b</p>")


def test_hash_rejects_bytes():
    with pytest.raises(TypeError):
        hash_html(b"<html></html>")


def test_generated_metadata_hashes_the_template_html():
    project = parse_document(canvas_document([text_element(content="{{name}}")]))

    generated = generate_document(project)

    assert generated.metadata.content_hash == hash_html(generated.html)
