# ============================================================================
# src/medication_identification/extractors/remote_extractor.py
# ============================================================================
"""
Remote Extraction Client

Calls POST /api/extract-medication on a running API server, for capture
clients that must not hold model credentials themselves.

Request:  {text, barcode?, language, region, sessionId?}
Response: {success: true, data: MedicationRecord, ...} or {success: false, error, error_kind}

A 200 whose body is not a usable record is handled like unparseable model
output: the caller gets a Degraded record, never a decoding error.
"""

import asyncio
import json
import logging
from dataclasses import replace
from typing import Any, Dict, Optional

import aiohttp

from .ai_extractor import build_degraded_record, record_from_payload
from .base import BaseExtractor
from .response_parser import validate_payload
from ..core.config import PipelineConfig, get_pipeline_config
from ..core.context import MedicationRecord, RawSignal, SourceKind
from ..utils.exceptions import (
    ExtractionError,
    ExtractionTimeoutError,
    InsufficientInputError,
    ParseError,
)

EXTRACT_PATH = "/api/extract-medication"


class RemoteExtractor(BaseExtractor):
    """
    aiohttp client for the extraction endpoint.

    Args:
        base_url: Server root, e.g. http://localhost:8000
        config: Pipeline config (timeout, input sufficiency)
        auth_token: Optional bearer token forwarded to the server
    """

    def __init__(
        self,
        base_url: str,
        config: Optional[PipelineConfig] = None,
        auth_token: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.config = config or get_pipeline_config()
        self.auth_token = auth_token
        self.logger = logging.getLogger(self.__class__.__name__)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def model_version(self) -> str:
        return f"remote:{self.base_url}"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=10)
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def extract(
        self,
        text: Optional[str],
        barcode: Optional[str] = None,
        language: str = "en",
        region: str = "US",
        session_id: Optional[str] = None,
    ) -> MedicationRecord:
        signal = RawSignal(barcode_code=barcode, recognized_text=text)
        if not signal.is_sufficient(self.config.min_text_length):
            raise InsufficientInputError(text_length=signal.text_length)

        body: Dict[str, Any] = {
            "text": text or "",
            "language": language,
            "region": region,
        }
        if barcode:
            body["barcode"] = barcode
        if session_id:
            body["sessionId"] = session_id

        headers = {"Content-Type": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"

        timeout = self.config.ai_timeout_seconds
        session = await self._get_session()

        async def _do_request():
            async with session.post(
                f"{self.base_url}{EXTRACT_PATH}", json=body, headers=headers
            ) as response:
                raw = await response.read()
                return response.status, raw.decode("utf-8", errors="replace")

        try:
            status, raw_body = await asyncio.wait_for(_do_request(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ExtractionTimeoutError(
                f"Extraction endpoint timed out after {timeout}s", timeout=timeout
            ) from e
        except aiohttp.ClientError as e:
            self.logger.error(f"Extraction endpoint unreachable: {e}")
            raise ExtractionError(f"Extraction endpoint unreachable: {e}", cause=e) from e

        payload = _decode_body(raw_body)

        if status == 200:
            try:
                return self._record_from_response(payload, raw_body, barcode, region)
            except ParseError as e:
                self.logger.warning(f"Unusable extraction response, returning degraded record: {e}")
                return build_degraded_record(text, barcode=barcode, region=region, config=self.config)

        if payload is None:
            payload = {"error": raw_body.strip()[:200] or None}

        if payload.get("error_kind") == "insufficient_input":
            raise InsufficientInputError(payload.get("error") or "Insufficient input")

        message = payload.get("error") or f"HTTP {status}"
        # 4xx other than rate limiting will not succeed on retry
        retryable = status >= 500 or status == 429 or bool(payload.get("retryable"))
        self.logger.error(f"Extraction endpoint error ({status}): {message}")
        raise ExtractionError(f"Extraction endpoint error: {message}", retryable=retryable)

    def _record_from_response(
        self,
        payload: Optional[Dict[str, Any]],
        raw_body: str,
        barcode: Optional[str],
        region: str,
    ) -> MedicationRecord:
        """
        Sanitize the server's record the same way as direct model output:
        placeholder brand, confidence coercion, list coercion.

        Raises:
            ParseError: Body is not a successful response carrying a record
        """
        if payload is None:
            raise ParseError("Response body is not a JSON object", raw_text=raw_body)
        data = payload.get("data")
        if not payload.get("success") or not isinstance(data, dict):
            raise ParseError("Response carries no medication record", raw_text=raw_body)

        parsed = validate_payload(data, raw_text=raw_body)
        server_barcode = data.get("barcode")
        record = record_from_payload(
            parsed,
            barcode=server_barcode if isinstance(server_barcode, str) else barcode,
            region=region,
            model_version=self.model_version,
            config=self.config,
        )

        if not parsed.brand_name:
            return record
        try:
            source_kind = SourceKind(data.get("source_kind"))
        except (ValueError, TypeError):
            source_kind = SourceKind.AI_EXTRACTION
        attribution = data.get("attribution")
        return replace(
            record,
            source_kind=source_kind,
            attribution=attribution if isinstance(attribution, str) and attribution else record.attribution,
        )


def _decode_body(raw_body: str) -> Optional[Dict[str, Any]]:
    """JSON object from the body, or None for anything else."""
    try:
        payload = json.loads(raw_body)
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None
