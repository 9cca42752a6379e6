"""Tests for the HTTP API."""

import base64
import json

import pytest
from fastapi.testclient import TestClient

import portabletext.app as app_module
from portabletext.app import app


@pytest.fixture
def client():
    return TestClient(app)


def post_json(client, path, payload, **params):
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return client.post(path, content=body, params=params, headers={"Content-Type": "application/json"})


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestParseEndpoint:
    def test_end_to_end(self, client, end_to_end_json):
        response = post_json(client, "/parse", end_to_end_json)
        assert response.status_code == 200

        data = response.json()
        heading, paragraph = data["blocks"]
        assert heading["kind"] == "heading"
        assert heading["level"] == 1
        assert heading["text"] == "Hello"
        assert paragraph["kind"] == "paragraph"
        assert [run["text"] for run in paragraph["runs"]] == ["world ", "bold"]
        assert paragraph["runs"][1]["attributes"]["bold"] is True
        assert data["warnings"] == []

    def test_code_block_language(self, client, rich_document_json):
        blocks = post_json(client, "/parse", rich_document_json).json()["blocks"]
        assert blocks[2]["kind"] == "code"
        assert blocks[2]["language"] == "python"
        assert blocks[1]["runs"][1]["attributes"]["link"] == "https://example.com/docs"

    def test_reports_warnings(self, client):
        payload = {"blocks": [{"_type": "block", "_key": "a", "children": [
            {"_type": "span", "text": ""},
        ]}]}
        warnings = post_json(client, "/parse", payload).json()["warnings"]
        assert warnings == [
            {"block_key": "a", "span_index": 0, "message": "Block 'a' contains span with empty text"},
        ]

    def test_invalid_json(self, client):
        response = post_json(client, "/parse", "{not json")
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "invalid_input"
        assert data["reason"] == "data_corrupted"

    def test_missing_key(self, client):
        response = post_json(client, "/parse", {"blocks": [{"_type": "block"}]})
        assert response.status_code == 400
        assert response.json()["reason"] == "key_not_found"
        assert response.json()["field"] == "blocks[0]._key"

    def test_bad_heading_reports_block_key(self, client):
        payload = {"blocks": [{"_type": "block", "_key": "k9", "style": "h9",
                               "children": [{"_type": "span", "text": "x"}]}]}
        response = post_json(client, "/parse", payload)
        assert response.status_code == 400
        assert response.json()["error"] == "malformed_structure"
        assert response.json()["key"] == "k9"

    def test_unsupported_block(self, client):
        payload = {"blocks": [{"_type": "image", "_key": "img",
                               "children": [{"_type": "span", "text": "x"}]}]}
        response = post_json(client, "/parse", payload)
        assert response.status_code == 400
        assert response.json()["error"] == "unsupported_block_type"

    def test_payload_too_large(self, client, end_to_end_json, monkeypatch):
        monkeypatch.setattr(app_module, "MAX_PAYLOAD_BYTES", 10)
        response = post_json(client, "/parse", end_to_end_json)
        assert response.status_code == 413


class TestRenderEndpoints:
    def test_render_pdf(self, client, end_to_end_json):
        response = post_json(client, "/render", end_to_end_json, title="hello")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="hello.pdf"' in response.headers["content-disposition"]
        assert "x-render-time" in response.headers
        assert response.content.startswith(b"%PDF")

    def test_render_unicode_title(self, client, end_to_end_json):
        response = post_json(client, "/render", end_to_end_json, title="Résumé ✓")
        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert "filename*=UTF-8''R%C3%A9sum%C3%A9%20%E2%9C%93.pdf" in disposition
        assert 'filename="Rsum .pdf"' in disposition

    def test_render_title_with_quote(self, client, end_to_end_json):
        response = post_json(client, "/render", end_to_end_json, title='a"b\\c')
        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert 'filename="abc.pdf"' in disposition
        assert "filename*=UTF-8''a%22b%5Cc.pdf" in disposition

    def test_render_letter(self, client, rich_document_json):
        response = post_json(client, "/render", rich_document_json, page_size="LETTER")
        assert response.status_code == 200

    def test_render_rejects_bad_page_size(self, client, end_to_end_json):
        response = post_json(client, "/render", end_to_end_json, page_size="A3")
        assert response.status_code == 422

    def test_render_invalid_document(self, client):
        response = post_json(client, "/render", {"blocks": []})
        assert response.status_code == 400
        assert response.json()["field"] == "blocks"

    def test_render_base64(self, client, end_to_end_json):
        response = post_json(client, "/render-base64", end_to_end_json)
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["filename"] == "document.pdf"
        pdf = base64.b64decode(data["pdf_base64"])
        assert pdf.startswith(b"%PDF")
        assert data["size_bytes"] == len(pdf)
