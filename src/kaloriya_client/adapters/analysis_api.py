"""Backend client for photo analysis and health endpoints."""

import logging
import time
from dataclasses import dataclass

from kaloriya_client.adapters.http import (
    REQUEST_ID_HEADER,
    HttpxApiTransport,
    decode_json,
    parse_model,
)
from kaloriya_client.domain.models import AnalysisResult, HealthStatus
from kaloriya_client.services.analysis import AnalysisApi

_logger = logging.getLogger(__name__)


@dataclass
class HttpxAnalysisApi(AnalysisApi):
    """Analysis API implemented over the shared HTTPX transport.

    Uploads use their own, longer timeout and report timeouts as 408.
    """

    transport: HttpxApiTransport
    analyze_timeout_seconds: float = 30.0
    health_timeout_seconds: float = 5.0

    async def analyze(
        self,
        image: bytes,
        filename: str,
        content_type: str,
        prompt: str | None = None,
    ) -> AnalysisResult:
        """Upload a photo and return the nutrition estimate."""
        started = time.perf_counter()
        response = await self.transport.request(
            "POST",
            "/analyze-food",
            files={"image": (filename, image, content_type)},
            data={"prompt": prompt} if prompt else None,
            timeout=self.analyze_timeout_seconds,
            report_timeout=True,
        )
        latency_ms = round((time.perf_counter() - started) * 1000)
        _logger.info(
            "Analysis finished in %sms [%s]",
            latency_ms,
            response.headers.get(REQUEST_ID_HEADER, "n/a"),
        )
        return parse_model(AnalysisResult, decode_json(response))

    async def health(self) -> HealthStatus:
        """Check backend health."""
        response = await self.transport.request(
            "GET", "/health", timeout=self.health_timeout_seconds
        )
        return parse_model(HealthStatus, decode_json(response))
