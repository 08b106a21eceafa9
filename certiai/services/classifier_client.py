# certiai/services/classifier_client.py
"""
Client voor de externe ML-classifier.

Eén multipart POST naar `<base_url>/verify` met het bestand en het
certificaattype; de classifier antwoordt met
`{"confidence": float, "authenticity": str, "details": {...}}`.

Geen retries hier: de pipeline beslist wat er met een fout gebeurt.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Optional

import httpx

from certiai.core.errors import ClassifierResponseError, ServiceUnavailable
from certiai.core.logging_config import logger
from certiai.core.settings import Settings
from certiai.observability.metrics import classifier_latency_hist


@dataclass(frozen=True)
class ClassifierConfig:
    base_url: str = "http://localhost:5000"
    timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, s: Settings) -> "ClassifierConfig":
        return cls(base_url=s.ML_SERVICE_URL.rstrip("/"), timeout_seconds=s.ML_SERVICE_TIMEOUT_SEC)

    @property
    def verify_url(self) -> str:
        return f"{self.base_url}/verify"


@dataclass
class ClassificationResult:
    confidence: float
    authenticity: str
    details: Any = field(default_factory=dict)


def _parse_confidence(value: Any) -> float:
    # bool is een int-subklasse; strings en NaN/inf zijn geen score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ClassifierResponseError(f"Malformed ML service response: confidence={value!r}")
    confidence = float(value)
    if not math.isfinite(confidence) or not 0 <= confidence <= 100:
        raise ClassifierResponseError(f"ML service returned confidence out of range: {value!r}")
    return confidence


def _parse_result(payload: Any) -> ClassificationResult:
    if not isinstance(payload, dict):
        raise ClassifierResponseError("ML service returned a non-object body")

    try:
        confidence = _parse_confidence(payload["confidence"])
        authenticity = payload["authenticity"]
    except KeyError as e:
        raise ClassifierResponseError(f"Malformed ML service response: missing {e}")

    return ClassificationResult(
        confidence=confidence,
        authenticity=str(authenticity),
        details=payload.get("details"),
    )


class ClassifierGateway:
    """Stateless wrapper rond de ML endpoint; veilig voor gelijktijdig gebruik."""

    def __init__(
        self,
        config: ClassifierConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    async def classify(
        self,
        file: BinaryIO,
        certificate_type: str,
        *,
        filename: str = "certificate",
        content_type: str = "application/octet-stream",
    ) -> ClassificationResult:
        start = time.perf_counter()
        log = logger.bind(url=self.config.verify_url, certificate_type=certificate_type)

        try:
            r = await self._client.post(
                self.config.verify_url,
                files={"file": (filename, file, content_type)},
                data={"certificate_type": certificate_type},
            )
        except httpx.TimeoutException as e:
            log.warning("classifier_timeout", error=repr(e))
            raise ServiceUnavailable("ML service timed out")
        except httpx.TransportError as e:
            log.warning("classifier_unreachable", error=repr(e))
            raise ServiceUnavailable()
        finally:
            classifier_latency_hist.observe(time.perf_counter() - start)

        if not r.is_success:
            log.warning("classifier_bad_status", status_code=r.status_code)
            raise ClassifierResponseError(f"ML service responded with HTTP {r.status_code}")

        try:
            payload = r.json()
        except ValueError:
            raise ClassifierResponseError("ML service returned invalid JSON")

        return _parse_result(payload)

    async def aclose(self) -> None:
        await self._client.aclose()
