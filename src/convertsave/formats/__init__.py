"""Format tables and the conversion routing function."""

from convertsave.formats.registry import (
    FormatClass,
    classify,
    get_format_color,
    get_format_display_name,
    is_audio_format,
    is_document_format,
    is_image_format,
    is_video_format,
)
from convertsave.formats.routing import (
    ConversionOption,
    get_available_formats,
    normalize_extension,
    requires_raster_engine,
    route,
)

__all__ = [
    "ConversionOption",
    "FormatClass",
    "classify",
    "get_available_formats",
    "get_format_color",
    "get_format_display_name",
    "is_audio_format",
    "is_document_format",
    "is_image_format",
    "is_video_format",
    "normalize_extension",
    "requires_raster_engine",
    "route",
]
