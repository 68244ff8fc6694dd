"""Request boundary for the extraction pipeline.

``handle_extract`` takes a decoded JSON body and answers with a status, a
JSON body and headers, so any web framework can mount it. Input is
validated here; the extraction core only ever sees well-formed HTML.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .config import CONFIG, KinGraphConfig
from .exceptions import BoundaryError, InvalidRequest, PayloadTooLarge, UnsupportedContent
from .extraction import extract_individual
from .models.confidence import score_confidence

logger = structlog.get_logger(__name__)

HTML_DETECTION = re.compile(r"</?[a-z][^>]*>", re.IGNORECASE)
JSON_HEADERS = {"content-type": "application/json"}

_URL = TypeAdapter(AnyUrl)


class ExtractRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    html: str = Field(min_length=1)
    source_url: str | None = Field(default=None, alias="sourceUrl")

    @field_validator("source_url")
    @classmethod
    def _check_url(cls, value: str | None) -> str | None:
        if value is not None:
            _URL.validate_python(value)
        return value


@dataclass
class ExtractResponse:
    status: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))


def validate_request(payload: Any, max_bytes: int) -> ExtractRequest:
    """Check a request body; raises the matching :class:`BoundaryError`."""
    if not isinstance(payload, dict):
        raise InvalidRequest("Invalid request body")
    try:
        request = ExtractRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidRequest("Invalid request body") from e

    size = len(request.html.encode("utf-8"))
    if size > max_bytes:
        raise PayloadTooLarge(f"HTML payload exceeds {max_bytes} byte limit", size=size, limit=max_bytes)
    if not HTML_DETECTION.search(request.html):
        raise UnsupportedContent("Provided content is not HTML")
    return request


def handle_extract(payload: Any, config: KinGraphConfig = CONFIG) -> ExtractResponse:
    """Validate, extract and score; rejected input never reaches extraction."""
    try:
        request = validate_request(payload, config.max_html_bytes)
    except BoundaryError as e:
        logger.warning("service.rejected", status=e.status, reason=e.message)
        return ExtractResponse(status=e.status, body={"error": e.message})

    record = extract_individual(request.html, source_url=request.source_url)
    confidence = score_confidence(record)
    logger.info("service.extracted", strategy=record.strategy, fields=len(confidence))
    return ExtractResponse(status=200, body={"record": record.to_wire(), "confidence": confidence})
