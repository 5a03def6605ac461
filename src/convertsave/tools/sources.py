"""Download locations and upstream release discovery.

Each provisionable tool has a DownloadSpec per platform: the URL, the
archive type and the binary name expected inside it. URLs for FFmpeg,
Pandoc and the Windows ImageMagick build depend on the latest upstream
release, which is discovered over HTTP.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from convertsave import __version__
from convertsave.core.platform import Platform
from convertsave.exceptions import DownloadError
from convertsave.tools.models import ToolId

logger = logging.getLogger(__name__)

# Five minutes for a whole download
HTTP_TIMEOUT = 300.0
USER_AGENT = f"ConvertSave/{__version__}"

FFMPEG_RELEASES_URL = "https://api.github.com/repos/BtbN/FFmpeg-Builds/releases"
FFMPEG_LATEST_FALLBACK = (
    "https://github.com/BtbN/FFmpeg-Builds/releases/download/latest/"
    "ffmpeg-master-latest-{target}-gpl.{ext}"
)
FFMPEG_MACOS_URL = "https://evermeet.cx/ffmpeg/getrelease/zip"
PANDOC_LATEST_URL = "https://api.github.com/repos/jgm/pandoc/releases/latest"
PANDOC_DOWNLOAD_URL = "https://github.com/jgm/pandoc/releases/download/{version}/{asset}"
IMAGEMAGICK_INDEX_URL = "https://imagemagick.org/archive/binaries/"
IMAGEMAGICK_LINUX_URL = "https://imagemagick.org/archive/binaries/magick"
IMAGEMAGICK_MACOS_URL = (
    "https://imagemagick.org/archive/binaries/"
    "ImageMagick-x86_64-apple-darwin20.1.0.tar.gz"
)

AUTOBUILD_TAG_RE = re.compile(r"^autobuild-\d{4}-\d{2}-\d{2}-\d{2}-\d{2}$")
IMAGEMAGICK_ARCHIVE_RE = re.compile(
    r"ImageMagick-7\.\d+\.\d+-\d+-portable-Q16-HDRI-x64\.7z"
)
IMAGEMAGICK_VERSION_RE = re.compile(r"ImageMagick-(7\.\d+\.\d+-\d+)")


class ArchiveType(Enum):
    """Container format of a tool download."""

    ZIP = "zip"
    TAR_GZ = "tar.gz"
    TAR_XZ = "tar.xz"
    SEVEN_Z = "7z"
    RAW = "raw"

    @property
    def suffix(self) -> str:
        return "" if self is ArchiveType.RAW else f".{self.value}"


@dataclass(frozen=True)
class DownloadSpec:
    """Where to fetch a tool and how to unpack it.

    Attributes:
        url: Download URL.
        archive: Container format.
        binary_name: Executable file name expected inside the archive.
        hoist_tree: Extract the whole tree (ImageMagick needs its lib/ and
            etc/ siblings) instead of only the binary.
        version: Upstream release identifier, recorded in the .version marker.
    """

    url: str
    archive: ArchiveType
    binary_name: str
    hoist_tree: bool = False
    version: str | None = None


@dataclass(frozen=True)
class FfmpegRelease:
    """An FFmpeg-Builds autobuild release."""

    tag: str
    assets: dict[str, str] = field(default_factory=dict)


def create_http_client(
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the HTTP client used for release discovery and downloads."""
    return httpx.AsyncClient(
        timeout=HTTP_TIMEOUT,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


async def fetch(client: httpx.AsyncClient, url: str) -> httpx.Response:
    """GET a URL and require a 2xx response.

    Raises:
        DownloadError: On timeout, connection failure or non-2xx status.
    """
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        raise DownloadError(url, "timeout", str(e)) from e
    except httpx.ConnectError as e:
        raise DownloadError(url, "connect", str(e)) from e
    except httpx.HTTPStatusError as e:
        raise DownloadError(
            url, "status", str(e), status_code=e.response.status_code
        ) from e
    except httpx.HTTPError as e:
        raise DownloadError(url, "other", str(e)) from e
    return response


async def fetch_bytes(client: httpx.AsyncClient, url: str) -> bytes:
    """Download a URL fully into memory."""
    response = await fetch(client, url)
    logger.debug("Downloaded %d bytes from %s", len(response.content), url)
    return response.content


def pick_autobuild_release(releases: list[dict[str, Any]]) -> FfmpegRelease | None:
    """Return the first release whose tag is autobuild-YYYY-MM-DD-HH-MM.

    The feed is newest first; tags like "latest" are skipped.
    """
    for release in releases:
        tag = release.get("tag_name", "")
        if AUTOBUILD_TAG_RE.match(tag):
            assets = {
                asset["name"]: asset["browser_download_url"]
                for asset in release.get("assets", [])
                if "name" in asset and "browser_download_url" in asset
            }
            return FfmpegRelease(tag=tag, assets=assets)
    return None


def parse_imagemagick_index(html: str) -> list[str]:
    """Extract portable Q16-HDRI x64 archive names, newest first.

    Sorting is lexicographic descending on the file name.
    """
    names = set(IMAGEMAGICK_ARCHIVE_RE.findall(html))
    return sorted(names, reverse=True)


def imagemagick_version_from_filename(filename: str) -> str | None:
    match = IMAGEMAGICK_VERSION_RE.search(filename)
    return match.group(1) if match else None


async def latest_ffmpeg_release(client: httpx.AsyncClient) -> FfmpegRelease:
    """Discover the newest FFmpeg-Builds autobuild.

    Raises:
        DownloadError: If the feed cannot be fetched or has no autobuild tag.
    """
    response = await fetch(client, FFMPEG_RELEASES_URL)
    release = pick_autobuild_release(response.json())
    if release is None:
        raise DownloadError(FFMPEG_RELEASES_URL, "other", "no autobuild release found")
    logger.debug("Latest FFmpeg autobuild: %s", release.tag)
    return release


async def latest_pandoc_version(client: httpx.AsyncClient) -> str:
    """Return the tag_name of the latest Pandoc release."""
    response = await fetch(client, PANDOC_LATEST_URL)
    tag = response.json().get("tag_name")
    if not tag:
        raise DownloadError(PANDOC_LATEST_URL, "other", "release has no tag_name")
    return tag


async def latest_imagemagick_archive(client: httpx.AsyncClient) -> str:
    """Return the newest portable Windows archive name from the index page."""
    response = await fetch(client, IMAGEMAGICK_INDEX_URL)
    names = parse_imagemagick_index(response.text)
    if not names:
        raise DownloadError(
            IMAGEMAGICK_INDEX_URL, "other", "no portable Q16-HDRI x64 archive listed"
        )
    return names[0]


async def latest_version(tool: ToolId, client: httpx.AsyncClient) -> str:
    """Upstream identifier of the newest release of a tool."""
    if tool is ToolId.FFMPEG:
        return (await latest_ffmpeg_release(client)).tag
    if tool is ToolId.PANDOC:
        return await latest_pandoc_version(client)
    if tool is ToolId.IMAGEMAGICK:
        archive = await latest_imagemagick_archive(client)
        return imagemagick_version_from_filename(archive) or archive
    raise ValueError(f"No release feed for {tool.value}")


def _ffmpeg_target(platform: Platform) -> tuple[str, ArchiveType]:
    if platform.is_windows:
        return "win64", ArchiveType.ZIP
    target = "linuxarm64" if platform.is_arm else "linux64"
    return target, ArchiveType.TAR_XZ


def select_ffmpeg_asset(release: FfmpegRelease, platform: Platform) -> str:
    """Pick the static GPL master build for the platform from a release."""
    target, archive = _ffmpeg_target(platform)
    pattern = re.compile(
        rf"^ffmpeg-N-.*-{target}-gpl{re.escape(archive.suffix)}$"
    )
    for name, url in sorted(release.assets.items()):
        if pattern.match(name):
            return url
    return FFMPEG_LATEST_FALLBACK.format(target=target, ext=archive.value)


def pandoc_asset_name(version: str, platform: Platform) -> tuple[str, ArchiveType]:
    if platform.is_windows:
        return f"pandoc-{version}-windows-x86_64.zip", ArchiveType.ZIP
    if platform.is_macos:
        arch = "arm64" if platform.is_arm else "x86_64"
        return f"pandoc-{version}-{arch}-macOS.zip", ArchiveType.ZIP
    arch = "arm64" if platform.is_arm else "amd64"
    return f"pandoc-{version}-linux-{arch}.tar.gz", ArchiveType.TAR_GZ


async def download_spec(
    tool: ToolId, platform: Platform, client: httpx.AsyncClient
) -> DownloadSpec:
    """Build the DownloadSpec for a tool on a platform.

    Raises:
        DownloadError: If release discovery fails.
        ValueError: If the tool cannot be provisioned.
    """
    binary = platform.exe_name(tool.executable)

    if tool is ToolId.FFMPEG:
        if platform.is_macos:
            return DownloadSpec(FFMPEG_MACOS_URL, ArchiveType.ZIP, binary)
        release = await latest_ffmpeg_release(client)
        _target, archive = _ffmpeg_target(platform)
        return DownloadSpec(
            select_ffmpeg_asset(release, platform),
            archive,
            binary,
            version=release.tag,
        )

    if tool is ToolId.PANDOC:
        version = await latest_pandoc_version(client)
        asset, archive = pandoc_asset_name(version, platform)
        url = PANDOC_DOWNLOAD_URL.format(version=version, asset=asset)
        return DownloadSpec(url, archive, binary, version=version)

    if tool is ToolId.IMAGEMAGICK:
        if platform.is_windows:
            filename = await latest_imagemagick_archive(client)
            return DownloadSpec(
                IMAGEMAGICK_INDEX_URL + filename,
                ArchiveType.SEVEN_Z,
                binary,
                hoist_tree=True,
                version=imagemagick_version_from_filename(filename),
            )
        if platform.is_macos:
            return DownloadSpec(
                IMAGEMAGICK_MACOS_URL, ArchiveType.TAR_GZ, binary, hoist_tree=True
            )
        return DownloadSpec(IMAGEMAGICK_LINUX_URL, ArchiveType.RAW, binary)

    raise ValueError(f"{tool.display_name} cannot be downloaded automatically")
