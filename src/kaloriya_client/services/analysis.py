"""Meal photo analysis with client-side compression."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from kaloriya_client.adapters.image_compression import (
    CompressionStats,
    compress_image,
    needs_compression,
)
from kaloriya_client.domain.models import AnalysisResult, HealthStatus

_logger = logging.getLogger(__name__)


class AnalysisApi(Protocol):
    """Backend photo analysis endpoints."""

    async def analyze(
        self,
        image: bytes,
        filename: str,
        content_type: str,
        prompt: str | None = None,
    ) -> AnalysisResult:
        """Upload a photo and return the nutrition estimate."""

    async def health(self) -> HealthStatus:
        """Check backend health."""


@dataclass(frozen=True)
class AnalysisOutcome:
    """Analysis result with the compression applied before upload."""

    result: AnalysisResult
    compression: CompressionStats


@dataclass
class AnalysisService:
    """Compresses large photos off the event loop and uploads them."""

    api: AnalysisApi
    max_width: int = 1024
    quality: int = 75
    threshold_kb: int = 300

    async def analyze(
        self,
        image: bytes,
        filename: str = "photo.jpg",
        content_type: str = "image/jpeg",
        prompt: str | None = None,
    ) -> AnalysisOutcome:
        """Analyze a meal photo, compressing it first when it is large."""
        stats = CompressionStats(
            original_size=len(image), compressed_size=len(image), reduction=0
        )
        if needs_compression(len(image), self.threshold_kb):
            compressed = await asyncio.to_thread(
                compress_image, image, filename, self.max_width, self.quality
            )
            image = compressed.data
            filename = compressed.filename
            content_type = compressed.content_type
            stats = compressed.stats
        result = await self.api.analyze(image, filename, content_type, prompt)
        _logger.info(
            "Analyzed photo as %s (confidence %.2f)", result.food, result.confidence
        )
        return AnalysisOutcome(result=result, compression=stats)

    async def check_health(self) -> HealthStatus:
        """Check backend health."""
        return await self.api.health()
