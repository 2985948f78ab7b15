"""
Combined capture pipeline: orientation normalization followed by
optional document rectification.
"""

import logging
from dataclasses import dataclass

from .capture import NormalizedCapture, encode_for_profile, normalize_capture
from .config import PipelineConfig
from .rectify import RectificationResult, rectify_document
from .runtime import VisionRuntime, default_runtime
from .surface import PixelSurface

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of running a capture through the pipeline."""

    surface: PixelSurface
    data: bytes
    media_type: str
    normalized: NormalizedCapture
    rectification: RectificationResult | None

    @property
    def rectified(self) -> bool:
        """True if a document was found and warped."""
        return self.rectification is not None and self.rectification.success


class PagePipeline:
    """Turns raw captures into upright, cropped page images.

    Usage:
        pipeline = PagePipeline(PipelineConfig(profile="share"))
        result = pipeline.process(photo_bytes, "image/jpeg")
        Path("page.jpg").write_bytes(result.data)
    """

    def __init__(self, config: PipelineConfig | None = None, runtime: VisionRuntime | None = None) -> None:
        """Initialize the pipeline.

        Args:
            config: Pipeline configuration
            runtime: Vision runtime handle (defaults to the shared one)
        """
        self.config = config or PipelineConfig()
        self.runtime = runtime or default_runtime()
        self._setup_logging()

    def _setup_logging(self) -> None:
        """Ensure logging is configured.

        Only sets up a basic config if no handlers are configured,
        allowing the CLI to control logging setup.
        """
        if not logging.root.handlers:
            logging.basicConfig(
                level=logging.INFO,
                format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )

    def normalize(self, data: bytes, media_type: str | None, filename: str | None = None) -> NormalizedCapture:
        """Run orientation normalization only."""
        return normalize_capture(data, media_type, self.config.quality_profile, filename=filename)

    def rectify(self, surface: PixelSurface) -> RectificationResult:
        """Run document rectification only."""
        return rectify_document(surface, runtime=self.runtime, config=self.config.geometry)

    def process(self, data: bytes, media_type: str | None, filename: str | None = None) -> PipelineResult:
        """Normalize a capture, then rectify it if configured.

        The rectified page is re-encoded with the same media type and
        quality as the normalized capture.

        Raises:
            ImageDecodeError: If the capture cannot be decoded
            VisionRuntimeError: If rectification is enabled and OpenCV is unavailable
        """
        normalized = self.normalize(data, media_type, filename=filename)

        if not self.config.rectify:
            return PipelineResult(
                surface=normalized.surface,
                data=normalized.data,
                media_type=normalized.media_type,
                normalized=normalized,
                rectification=None,
            )

        rectification = self.rectify(normalized.surface)
        if not rectification.success:
            logger.info(f"{filename or 'capture'}: {rectification.message}, using normalized image")
            encoded = normalized.data
        else:
            encoded = encode_for_profile(rectification.surface, normalized.media_type, normalized.profile)

        return PipelineResult(
            surface=rectification.surface,
            data=encoded,
            media_type=normalized.media_type,
            normalized=normalized,
            rectification=rectification,
        )
