from __future__ import annotations

import json
import logging
from time import perf_counter

from pydantic import ValidationError
import requests

from slotcraft.core.config import get_settings
from slotcraft.core.exceptions import ConfigurationError, GenerationError
from slotcraft.schemas.generator import GenerationRequest
from slotcraft.schemas.timetable import GenerationResult

logger = logging.getLogger(__name__)


def _error_detail(response: requests.Response) -> str:
    text = response.text or ""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return text.strip() or response.reason or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("details") or payload.get("message") or payload.get("detail") or text)
    return text


def parse_generation_body(text: str) -> GenerationResult:
    """Turn the generator's body into a result.

    Accepts ``{"timetable": [...], "unscheduledSessions": [...]}`` or a bare
    array of entries. Only the array shape is checked; entries are coerced
    field by field and are otherwise taken as given.
    """
    if not text or not text.strip():
        raise GenerationError("The generator returned an empty response")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GenerationError("The generator returned a body that is not JSON", details={"raw": text[:2000]}) from exc

    if isinstance(payload, list):
        payload = {"timetable": payload, "unscheduledSessions": []}
    if not isinstance(payload, dict) or not isinstance(payload.get("timetable"), list):
        raise GenerationError("The generator response does not contain a timetable array", details={"raw": text[:2000]})
    unscheduled = payload.get("unscheduledSessions")
    if unscheduled is None:
        unscheduled = []
    if not isinstance(unscheduled, list):
        raise GenerationError("The generator response has a malformed unscheduledSessions list")

    try:
        return GenerationResult.model_validate({"timetable": payload["timetable"], "unscheduledSessions": unscheduled})
    except ValidationError as exc:
        raise GenerationError("The generator returned entries that cannot be read", details={"raw": str(exc)}) from exc


class GeneratorClient:
    """Single-shot client for the external timetable generator. No retries."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 300.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def generate(self, request: GenerationRequest) -> GenerationResult:
        started = perf_counter()
        logger.info(
            "Requesting timetable generation: classes=%s subjects=%s rooms=%s slots=%s",
            len(request.classes),
            len(request.subjects),
            len(request.rooms),
            len(request.constraints.timeSlots),
        )
        try:
            response = self._session.post(
                self.base_url,
                data=request.model_dump_json(),
                headers=self._headers(),
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.Timeout as exc:
            logger.warning("Timetable generator timed out after %.0fs", self.timeout_seconds)
            raise GenerationError(
                f"The generator did not answer within {self.timeout_seconds:.0f} seconds",
                details={"raw": str(exc)},
            ) from exc
        except requests.exceptions.RequestException as exc:
            logger.warning("Timetable generator request failed: %s", exc)
            raise GenerationError(f"Could not reach the generator: {exc}", details={"raw": str(exc)}) from exc

        if not 200 <= response.status_code < 300:
            detail = _error_detail(response)
            logger.warning("Timetable generator returned HTTP %s", response.status_code)
            raise GenerationError(
                f"The generator reported an error: {detail}",
                details={"status_code": response.status_code, "raw": detail},
            )

        result = parse_generation_body(response.text)
        logger.info(
            "Timetable generated in %.0fms: entries=%s unscheduled=%s",
            (perf_counter() - started) * 1000,
            len(result.timetable),
            len(result.unscheduledSessions),
        )
        return result


def get_generator_client() -> GeneratorClient:
    settings = get_settings()
    if not settings.generator_url:
        raise ConfigurationError("The timetable generator URL is not configured (GENERATOR_URL)")
    return GeneratorClient(
        base_url=settings.generator_url,
        api_key=settings.generator_api_key,
        timeout_seconds=settings.generator_timeout_seconds,
    )
