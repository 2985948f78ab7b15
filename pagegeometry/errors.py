"""
Exceptions raised by the image geometry pipeline.

Only fatal conditions are exceptions. Soft outcomes such as missing EXIF
data or "no document detected" are reported through return values.
"""


class PageGeometryError(Exception):
    """Base class for all pagegeometry errors."""


class VisionRuntimeError(PageGeometryError):
    """The OpenCV runtime is unavailable or failed to initialize."""


class ImageDecodeError(PageGeometryError):
    """Source bytes could not be decoded into a pixel surface."""


class UnsupportedMediaTypeError(ImageDecodeError):
    """The declared media type is one the pipeline cannot decode."""
