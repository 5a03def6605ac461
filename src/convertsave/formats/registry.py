"""Static format capability tables.

All sets hold lowercase extensions without a leading dot. They are fixed
data: nothing here probes the installed tools.
"""

from __future__ import annotations

from enum import Enum


class FormatClass(Enum):
    """Category of an input extension."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    DOCUMENT = "document"
    OFFICE = "office"


VIDEO_INPUTS: frozenset[str] = frozenset(
    {"mp4", "mov", "avi", "mkv", "webm", "flv", "wmv", "m4v", "mpg", "mpeg", "3gp", "ogv"}
)

AUDIO_INPUTS: frozenset[str] = frozenset(
    {"mp3", "wav", "flac", "ogg", "m4a", "wma", "aac"}
)

IMAGE_INPUTS: frozenset[str] = frozenset(
    {
        # Standard
        "jpg", "jpeg", "png", "gif", "bmp", "tiff", "tif", "webp",
        # Modern
        "heic", "heif", "avif", "jxl",
        # Professional
        "tga", "exr", "hdr", "dpx", "pfm", "psd", "psb",
        # JPEG 2000
        "j2k", "jp2", "jpc", "jpf", "jpx", "jpm",
        # Legacy
        "pcx", "ico", "sgi", "sun", "ras", "pict", "pct",
        # PNM family
        "ppm", "pgm", "pbm", "pam", "pnm",
        # X Window System
        "xbm", "xpm", "xwd",
        # Gaming
        "dds", "vtf",
        # Vector (rasterized on input)
        "svg", "svgz", "ai", "eps", "ps", "pdf",
        # Camera RAW
        "arw", "cr2", "cr3", "crw", "dng", "nef", "nrw", "orf", "raf", "raw",
        "rw2", "rwl", "srw",
        # Animation
        "mng", "apng",
        # Windows
        "cur", "dib", "emf", "wmf",
        # Other
        "fits", "flif", "jbig", "jng", "miff", "otb", "pal", "palm", "pcd",
        "pix", "plasma", "pwp", "rgf", "sfw", "uyvy", "vicar", "viff", "wbmp",
        "xcf", "xv", "yuv",
    }
)

# Video containers, common audio codecs and animated GIF
AV_OUTPUTS: frozenset[str] = frozenset(
    {"mp4", "mov", "avi", "mkv", "webm", "mp3", "wav", "flac", "ogg", "m4a", "aac", "gif"}
)

IMAGE_OUTPUTS_IMAGEMAGICK: frozenset[str] = frozenset(
    {
        "jpg", "jpeg", "png", "gif", "bmp", "tiff", "tif", "webp",
        "heic", "heif", "avif", "jxl",
        "tga", "exr", "hdr", "dpx", "pfm", "psd", "psb",
        "j2k", "jp2", "jpc", "jpf", "jpx", "jpm",
        "pcx", "ico", "sgi", "sun", "ras", "pict", "pct",
        "ppm", "pgm", "pbm", "pam", "pnm",
        "xbm", "xpm", "xwd",
        "dds", "vtf",
        "svg", "svgz", "pdf",
        "mng", "apng",
        "cur", "dib", "emf", "wmf",
        "fits", "jbig", "jng", "miff", "otb", "pal", "palm", "pcd",
        "pix", "plasma", "sfw", "wbmp", "xcf", "xv", "yuv",
    }
)

# ffmpeg image encoders; HEIC/HEIF are not encodable and stay with ImageMagick
IMAGE_OUTPUTS_FFMPEG: frozenset[str] = frozenset(
    {
        "jpg", "jpeg", "png", "gif", "bmp", "tiff", "tif", "webp",
        "avif",
        "tga", "exr", "hdr", "dpx", "pfm",
        "j2k", "jp2",
        "pcx", "ico", "sgi", "sun",
        "ppm", "pgm", "pbm", "pam",
        "dds",
    }
)

DOC_INPUTS: frozenset[str] = frozenset(
    {"md", "markdown", "txt", "html", "htm", "docx", "odt", "rtf", "tex", "latex", "epub", "rst"}
)

DOC_OUTPUTS: frozenset[str] = frozenset(
    {"md", "html", "docx", "odt", "rtf", "tex", "epub", "txt"}
)

OFFICE_INPUTS: frozenset[str] = frozenset(
    {"doc", "docx", "xls", "xlsx", "ppt", "pptx", "odt", "ods", "odp", "rtf"}
)

OFFICE_OUTPUTS: frozenset[str] = frozenset(
    {"pdf", "html", "txt", "docx", "odt", "rtf"}
)

# Sets consulted by the argument planner
ANIMATED_FORMATS: frozenset[str] = frozenset({"gif", "webp", "apng", "mng"})

NO_ALPHA_OUTPUTS: frozenset[str] = frozenset(
    {"jpg", "jpeg", "bmp", "gif", "j2k", "jp2", "jpc", "jpf", "jpx", "jpm",
     "hdr", "pbm", "pgm", "ppm"}
)

JPEG2000_FORMATS: frozenset[str] = frozenset({"j2k", "jp2", "jpc", "jpf", "jpx", "jpm"})

VECTOR_FORMATS: frozenset[str] = frozenset({"svg", "svgz"})

X_WINDOW_FORMATS: frozenset[str] = frozenset({"xbm", "xpm", "xwd"})

HEIF_FORMATS: frozenset[str] = frozenset({"heic", "heif"})

# Only ImageMagick can write these
RASTER_ENGINE_ONLY_OUTPUTS: frozenset[str] = HEIF_FORMATS | X_WINDOW_FORMATS

# Single-frame image outputs for ffmpeg (animated GIF excluded)
STATIC_IMAGE_OUTPUTS: frozenset[str] = IMAGE_OUTPUTS_FFMPEG - {"gif"}

# Video inputs that produce a single still for these outputs
VIDEO_FRAME_SOURCES: frozenset[str] = VIDEO_INPUTS
VIDEO_STILL_OUTPUTS: frozenset[str] = frozenset(
    {"jpg", "jpeg", "png", "webp", "bmp", "tiff", "tif", "ico"}
)

# Precedence for extensions listed in more than one input table
_CLASS_TABLES: tuple[tuple[FormatClass, frozenset[str]], ...] = (
    (FormatClass.VIDEO, VIDEO_INPUTS),
    (FormatClass.AUDIO, AUDIO_INPUTS),
    (FormatClass.IMAGE, IMAGE_INPUTS),
    (FormatClass.OFFICE, OFFICE_INPUTS),
    (FormatClass.DOCUMENT, DOC_INPUTS),
)


def classify(ext: str) -> FormatClass | None:
    """Return the FormatClass of an extension, or None if unknown."""
    ext = ext.lower()
    for format_class, table in _CLASS_TABLES:
        if ext in table:
            return format_class
    return None


def is_video_format(ext: str) -> bool:
    return ext.lower() in VIDEO_INPUTS


def is_audio_format(ext: str) -> bool:
    return ext.lower() in AUDIO_INPUTS


def is_image_format(ext: str) -> bool:
    return ext.lower() in IMAGE_INPUTS


def is_document_format(ext: str) -> bool:
    """True for markup documents and office files."""
    ext = ext.lower()
    return ext in DOC_INPUTS or ext in OFFICE_INPUTS


_DISPLAY_NAMES: dict[str, str] = {
    # Video
    "mp4": "MP4 Video",
    "mov": "QuickTime Video",
    "avi": "AVI Video",
    "mkv": "Matroska Video",
    "webm": "WebM Video",
    "flv": "Flash Video",
    "wmv": "Windows Media Video",
    "m4v": "M4V Video",
    "gif": "Animated GIF",
    # Audio
    "mp3": "MP3 Audio",
    "wav": "WAV Audio",
    "flac": "FLAC Audio (Lossless)",
    "ogg": "OGG Audio",
    "m4a": "M4A Audio",
    "aac": "AAC Audio",
    "wma": "Windows Media Audio",
    # Images
    "jpg": "JPEG Image",
    "jpeg": "JPEG Image",
    "png": "PNG Image",
    "bmp": "BMP Image",
    "tiff": "TIFF Image",
    "tif": "TIFF Image",
    "webp": "WebP Image",
    "heic": "HEIC Image",
    "heif": "HEIC Image",
    "avif": "AVIF Image",
    "ico": "Icon",
    "svg": "SVG Vector",
    "psd": "Photoshop Document",
    # Documents
    "pdf": "PDF Document",
    "docx": "Word Document",
    "doc": "Word Document (Legacy)",
    "txt": "Plain Text",
    "html": "HTML Document",
    "md": "Markdown",
    "epub": "E-Book",
    "rtf": "Rich Text",
    "odt": "OpenDocument Text",
}

_COLORS: dict[str, str] = {
    # Video
    "mp4": "blue",
    "mov": "blue",
    "avi": "blue",
    "mkv": "blue",
    "m4v": "blue",
    "flv": "blue",
    "wmv": "blue",
    "webm": "green",
    # Audio
    "mp3": "green",
    "wav": "green",
    "flac": "aquamarine",
    "ogg": "orange",
    "m4a": "light-purple",
    "aac": "yellow",
    # Images
    "jpg": "light-tan",
    "jpeg": "light-tan",
    "png": "light-tan",
    "bmp": "light-tan",
    "gif": "pink",
    "webp": "green",
    "avif": "green",
    "heic": "green",
    "heif": "green",
    "ico": "blue",
    "svg": "orange",
    "psd": "blue",
    "tiff": "lavender",
    "tif": "lavender",
    # Documents
    "pdf": "pink",
    "docx": "blue",
    "doc": "blue",
    "html": "orange",
    "txt": "lavender",
    "md": "light-tan",
    "epub": "pink",
}


def get_format_display_name(fmt: str) -> str:
    """Human-readable name for an output format."""
    return _DISPLAY_NAMES.get(fmt.lower(), "Unknown Format")


def get_format_color(fmt: str) -> str:
    """Color category used by the UI for an output format."""
    return _COLORS.get(fmt.lower(), "gray")
