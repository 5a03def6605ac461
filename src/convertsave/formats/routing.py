"""Routing table: which tool converts an (input, output) format pair.

route() is pure and total. Every extension pair maps to exactly one tool or
to None ("unsupported").
"""

from __future__ import annotations

import string
from dataclasses import asdict, dataclass

from convertsave import feature_flags
from convertsave.formats.registry import (
    AUDIO_INPUTS,
    AV_OUTPUTS,
    DOC_INPUTS,
    DOC_OUTPUTS,
    HEIF_FORMATS,
    IMAGE_INPUTS,
    IMAGE_OUTPUTS_FFMPEG,
    IMAGE_OUTPUTS_IMAGEMAGICK,
    OFFICE_INPUTS,
    OFFICE_OUTPUTS,
    RASTER_ENGINE_ONLY_OUTPUTS,
    VIDEO_INPUTS,
    X_WINDOW_FORMATS,
    get_format_color,
    get_format_display_name,
)
from convertsave.tools.models import ToolId

_JPEG_SPELLINGS = frozenset({"jpg", "jpeg"})
_LEADING_JUNK = string.whitespace + "."


def normalize_extension(ext: str) -> str:
    """Strip whitespace and every leading dot, then lowercase.

    Idempotent: normalize_extension(normalize_extension(x)) equals
    normalize_extension(x).
    """
    return ext.lstrip(_LEADING_JUNK).rstrip().lower()


def document_conversion_enabled() -> bool:
    """Whether markup documents are routed to pandoc."""
    return feature_flags.is_enabled(feature_flags.DOCUMENT_CONVERSION)


def route(
    in_ext: str, out_ext: str, *, document_conversion: bool | None = None
) -> ToolId | None:
    """Pick the tool that converts in_ext to out_ext.

    Args:
        in_ext: Input extension, any case, leading dot allowed.
        out_ext: Output extension, any case, leading dot allowed.
        document_conversion: Force pandoc routing on or off. None reads
            the DOCUMENT_CONVERSION feature flag.

    Returns:
        The ToolId to use, or None if the pair is unsupported.
    """
    src = normalize_extension(in_ext)
    dst = normalize_extension(out_ext)

    if src != dst and {src, dst} == _JPEG_SPELLINGS:
        return ToolId.RENAME

    if (src in VIDEO_INPUTS or src in AUDIO_INPUTS) and dst in AV_OUTPUTS:
        return ToolId.FFMPEG

    if src in IMAGE_INPUTS:
        if dst in HEIF_FORMATS or dst in X_WINDOW_FORMATS:
            return ToolId.IMAGEMAGICK
        if dst in IMAGE_OUTPUTS_IMAGEMAGICK:
            return ToolId.IMAGEMAGICK
        if dst in IMAGE_OUTPUTS_FFMPEG:
            return ToolId.FFMPEG

    if document_conversion is None:
        document_conversion = document_conversion_enabled()
    if document_conversion and src in DOC_INPUTS and dst in DOC_OUTPUTS:
        return ToolId.PANDOC

    if src in OFFICE_INPUTS and dst in OFFICE_OUTPUTS:
        return ToolId.LIBREOFFICE

    return None


def requires_raster_engine(out_ext: str) -> bool:
    """True for outputs only ImageMagick can write (HEIC/HEIF, X Window)."""
    return normalize_extension(out_ext) in RASTER_ENGINE_ONLY_OUTPUTS


@dataclass(frozen=True)
class ConversionOption:
    """One suggested output format for an input file."""

    format: str
    tool: str
    display_name: str
    color: str

    def to_dict(self) -> dict:
        return asdict(self)


def _candidate_outputs() -> list[str]:
    ordered: list[str] = []
    for table in (
        AV_OUTPUTS,
        IMAGE_OUTPUTS_IMAGEMAGICK,
        IMAGE_OUTPUTS_FFMPEG,
        DOC_OUTPUTS,
        OFFICE_OUTPUTS,
    ):
        for fmt in sorted(table):
            if fmt not in ordered:
                ordered.append(fmt)
    return ordered


_CANDIDATE_OUTPUTS: tuple[str, ...] = tuple(_candidate_outputs())


def get_available_formats(
    in_ext: str, *, document_conversion: bool | None = None
) -> list[ConversionOption]:
    """List every output format the input can be converted to.

    The input's own format is excluded. Outputs appear grouped by table
    (media, ImageMagick, ffmpeg images, documents, office), each group in
    alphabetical order.
    """
    src = normalize_extension(in_ext)
    if document_conversion is None:
        document_conversion = document_conversion_enabled()

    options: list[ConversionOption] = []
    for fmt in _CANDIDATE_OUTPUTS:
        if fmt == src:
            continue
        tool = route(src, fmt, document_conversion=document_conversion)
        if tool is None:
            continue
        options.append(
            ConversionOption(
                format=fmt,
                tool=tool.value,
                display_name=get_format_display_name(fmt),
                color=get_format_color(fmt),
            )
        )
    return options
