"""
pagegeometry - Turn photographed pages into clean, upright page images

Two independent, composable pipelines:
1. Orientation normalization: read the EXIF orientation tag, rotate/mirror
   upright, downscale and re-encode with a named quality profile
2. Document rectification: find the page quadrilateral and warp it onto
   an upright rectangle
"""

__version__ = "1.0.0"
__author__ = "pagegeometry"

from .capture import NormalizedCapture, encode_for_profile, normalize_capture
from .config import GeometryConfig, PipelineConfig, QualityProfile, get_profile
from .errors import ImageDecodeError, PageGeometryError, UnsupportedMediaTypeError, VisionRuntimeError
from .exif import read_exif_orientation
from .orientation import normalize_orientation
from .pipeline import PagePipeline, PipelineResult
from .rectify import RectificationResult, rectify_document
from .runtime import VisionRuntime, default_runtime
from .surface import PixelSurface

__all__ = [
    "GeometryConfig",
    "ImageDecodeError",
    "NormalizedCapture",
    "PagePipeline",
    "PageGeometryError",
    "PipelineConfig",
    "PipelineResult",
    "PixelSurface",
    "QualityProfile",
    "RectificationResult",
    "UnsupportedMediaTypeError",
    "VisionRuntime",
    "VisionRuntimeError",
    "default_runtime",
    "encode_for_profile",
    "get_profile",
    "normalize_capture",
    "normalize_orientation",
    "read_exif_orientation",
    "rectify_document",
]
