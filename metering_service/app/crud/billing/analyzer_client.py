import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

import requests

from shared.core.config import settings

from ...core.exceptions import AnalysisFailure
from ...schemas.energy_iot.meter_readings_schemas import AnalysisResult

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def strip_data_uri(image: str) -> str:
    return _DATA_URI_PREFIX.sub("", image or "")


def parse_analyzer_body(text: str) -> Dict[str, Any]:
    """Analyzer models sometimes answer with ```json fenced``` output."""
    body = (text or "").strip()
    fenced = _CODE_FENCE.match(body)
    if fenced:
        body = fenced.group(1)

    try:
        parsed = json.loads(body)
    except ValueError:
        raise AnalysisFailure("Analyzer returned an unreadable response")

    if not isinstance(parsed, dict):
        raise AnalysisFailure("Analyzer returned an unreadable response")
    return parsed


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def normalize_confidence(value: Any) -> float:
    confidence = _finite(value)
    if confidence is None:
        return 0.0
    # fractions (0.93) and percentages (93) both show up; exactly 1 counts as a fraction
    if 0 <= confidence <= 1:
        confidence *= 100
    return min(100.0, max(0.0, confidence))


def validate_analysis(raw: Dict[str, Any], max_reading_value: Optional[float] = None) -> AnalysisResult:
    if not isinstance(raw, dict):
        raise AnalysisFailure("Analyzer returned an unreadable response")

    limit = settings.MAX_READING_VALUE if max_reading_value is None else max_reading_value

    reading_raw = raw.get("readingValue", raw.get("reading"))
    reading_value = _finite(reading_raw)
    if reading_value is None:
        raise AnalysisFailure("Analyzer did not return a numeric reading")
    if reading_value < 0 or reading_value > limit:
        raise AnalysisFailure(
            f"Analyzer reading {reading_value} is outside the valid range 0 - {limit}")

    consumed_units = _finite(raw.get("consumedUnits"))
    if consumed_units is not None and consumed_units < 0:
        consumed_units = None

    serial = raw.get("serialNumber") or ""

    return AnalysisResult(
        serial_number=str(serial).strip(),
        reading_value=reading_value,
        consumed_units=consumed_units,
        confidence=normalize_confidence(raw.get("confidence")),
        explanation=raw.get("explanation"),
    )


class AnalyzerClient:
    """HTTP client for the meter image analyzer service."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url or settings.ANALYZER_URL
        self.timeout = timeout or settings.ANALYZER_TIMEOUT_SECONDS

    def analyze(self, image: str, known_serials: List[str]) -> AnalysisResult:
        payload = {
            "base64Image": strip_data_uri(image),
            "knownSerialNumbers": list(known_serials or []),
        }

        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.exception("Analyzer request to %s failed", self.url)
            raise AnalysisFailure() from e

        if not response.ok:
            logger.error("Analyzer responded with HTTP %s", response.status_code)
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("error") if isinstance(body, dict) else None
            raise AnalysisFailure(message)

        raw = parse_analyzer_body(response.text)
        if raw.get("error"):
            logger.error("Analyzer reported an error: %s", raw.get("error"))
            raise AnalysisFailure(str(raw["error"]))

        return validate_analysis(raw)
