"""
Configuration for the image geometry pipeline.
"""

from dataclasses import dataclass, field

SUPPORTED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/webp")


@dataclass(frozen=True)
class QualityProfile:
    """Output encoding profile for normalized captures.

    Attributes:
        name: Registry key used to select the profile
        max_edge: Longest output edge in pixels (None keeps source size)
        media_type: Media type written when the source type is not kept
        quality: Lossy encoder quality in (0, 1]
    """

    name: str
    max_edge: int | None
    media_type: str = "image/jpeg"
    quality: float = 0.8

    def __post_init__(self) -> None:
        if self.max_edge is not None and self.max_edge < 1:
            raise ValueError(f"max_edge must be >= 1 or None, got {self.max_edge}")

        if not 0 < self.quality <= 1:
            raise ValueError(f"quality must be in (0, 1], got {self.quality}")

        if self.media_type not in SUPPORTED_MEDIA_TYPES:
            raise ValueError(
                f"Unsupported media type: {self.media_type}. Valid: {SUPPORTED_MEDIA_TYPES}"
            )


DEFAULT_PROFILE = "default"
SHARE_PROFILE = "share"

PROFILES: dict[str, QualityProfile] = {
    DEFAULT_PROFILE: QualityProfile(DEFAULT_PROFILE, max_edge=1800, quality=0.8),
    # Reduced profile for size-constrained transfer
    SHARE_PROFILE: QualityProfile(SHARE_PROFILE, max_edge=1400, quality=0.72),
}


def get_profile(name: str) -> QualityProfile:
    """Look up a quality profile by name.

    Raises:
        ValueError: If no profile with that name exists
    """
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown profile: {name!r}. Valid: {sorted(PROFILES)}") from None


@dataclass
class GeometryConfig:
    """Parameters for document detection and rectification.

    Attributes:
        blur_kernel: Gaussian kernel size (odd, square)
        canny_low: Lower hysteresis threshold for edge detection
        canny_high: Upper hysteresis threshold for edge detection
        canny_aperture: Sobel aperture used for gradients
        approx_epsilon_ratio: Polygon approximation tolerance as a fraction of perimeter
        min_output_edge: Lower bound for each side of the rectified output
        detection_max_edge: Long edge of the detection working copy (None to disable)
    """

    blur_kernel: int = 5
    canny_low: float = 75
    canny_high: float = 200
    canny_aperture: int = 3
    approx_epsilon_ratio: float = 0.02
    min_output_edge: int = 200
    detection_max_edge: int | None = 1000

    def __post_init__(self) -> None:
        """Validate numeric constraints."""
        if self.blur_kernel < 1 or self.blur_kernel % 2 == 0:
            raise ValueError(f"blur_kernel must be a positive odd number, got {self.blur_kernel}")

        if not 0 <= self.canny_low <= self.canny_high:
            raise ValueError(
                f"Canny thresholds must satisfy 0 <= low <= high, got {self.canny_low}/{self.canny_high}"
            )

        if self.canny_aperture not in (3, 5, 7):
            raise ValueError(f"canny_aperture must be 3, 5 or 7, got {self.canny_aperture}")

        if not 0 < self.approx_epsilon_ratio < 1:
            raise ValueError(
                f"approx_epsilon_ratio must be in (0, 1), got {self.approx_epsilon_ratio}"
            )

        if self.min_output_edge < 1:
            raise ValueError(f"min_output_edge must be >= 1, got {self.min_output_edge}")

        if self.detection_max_edge is not None and self.detection_max_edge < 1:
            raise ValueError(
                f"detection_max_edge must be >= 1 or None, got {self.detection_max_edge}"
            )


@dataclass
class PipelineConfig:
    """Configuration for the combined capture pipeline.

    Attributes:
        profile: Name of the quality profile used for encoding
        rectify: Run document rectification after orientation normalization
        geometry: Detection and rectification parameters
    """

    profile: str = DEFAULT_PROFILE
    rectify: bool = True
    geometry: GeometryConfig = field(default_factory=GeometryConfig)

    def __post_init__(self) -> None:
        # Fail early on typos rather than at the first image
        get_profile(self.profile)

    @property
    def quality_profile(self) -> QualityProfile:
        """Resolved quality profile."""
        return get_profile(self.profile)
