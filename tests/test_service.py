"""Tests for the extraction request boundary."""

import pytest

from kingraph.config import KinGraphConfig
from kingraph.exceptions import InvalidRequest, PayloadTooLarge, UnsupportedContent
from kingraph.service import handle_extract, validate_request

SMALL = KinGraphConfig(max_html_bytes=10)


class TestHandleExtract:
    """Tests for handle_extract."""

    def test_extracts_record_and_confidence(self, table_html):
        """Test a valid page yields the record and its scores."""
        response = handle_extract({"html": table_html})
        assert response.status == 200
        assert response.headers == {"content-type": "application/json"}
        record = response.body["record"]
        assert record["strategy"] == "tabular"
        assert record["givenNames"] == ["Elizabeth"]
        assert record["sourceHtml"] == table_html
        assert response.body["confidence"]["givenNames"] == 0.8

    def test_caller_source_url(self):
        """Test the request's sourceUrl is used when the page declares none."""
        response = handle_extract({"html": "<p>Nothing to see</p>", "sourceUrl": "https://example.org/page/1"})
        assert response.status == 200
        assert response.body["record"]["sourceUrl"] == "https://example.org/page/1"

    def test_declared_source_url_wins(self, table_html):
        """Test a canonical link overrides the request's sourceUrl."""
        response = handle_extract({"html": table_html, "sourceUrl": "https://example.org/page/1"})
        assert response.body["record"]["sourceUrl"] == "https://records.example.org/person/carter-1901"

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            ["<p>x</p>"],
            "<p>x</p>",
            {},
            {"html": ""},
            {"html": "<p>x</p>", "sourceUrl": "not a url"},
        ],
    )
    def test_invalid_body(self, payload):
        """Test malformed bodies are rejected with 400."""
        response = handle_extract(payload)
        assert response.status == 400
        assert response.body == {"error": "Invalid request body"}
        assert response.headers == {"content-type": "application/json"}

    def test_payload_too_large(self):
        """Test oversized HTML is rejected with 413."""
        response = handle_extract({"html": "<p>Jean Dupont</p>"}, config=SMALL)
        assert response.status == 413
        assert response.body == {"error": "HTML payload exceeds 10 byte limit"}

    def test_size_checked_before_content(self):
        """Test oversized non-HTML answers 413 rather than 415."""
        response = handle_extract({"html": "plain text that is long"}, config=SMALL)
        assert response.status == 413

    def test_not_html(self):
        """Test text without tags is rejected with 415."""
        response = handle_extract({"html": "Jean Dupont, born 1850"})
        assert response.status == 415
        assert response.body == {"error": "Provided content is not HTML"}


class TestValidateRequest:
    """Tests for validate_request."""

    def test_valid(self):
        """Test a valid body is returned as a request."""
        request = validate_request({"html": "<p>x</p>", "sourceUrl": "https://example.org"}, 100)
        assert request.html == "<p>x</p>"
        assert request.source_url == "https://example.org"

    def test_errors(self):
        """Test each rejection raises its own error."""
        with pytest.raises(InvalidRequest):
            validate_request("nope", 100)
        with pytest.raises(PayloadTooLarge) as exc_info:
            validate_request({"html": "<p>Jean</p>"}, 5)
        assert (exc_info.value.size, exc_info.value.limit, exc_info.value.status) == (11, 5, 413)
        with pytest.raises(UnsupportedContent):
            validate_request({"html": "Jean"}, 100)

    def test_size_counts_bytes(self):
        """Test the limit applies to UTF-8 bytes, not characters."""
        html = "<p>é</p>"
        validate_request({"html": html}, 9)
        with pytest.raises(PayloadTooLarge):
            validate_request({"html": html}, 8)
