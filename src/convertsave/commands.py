"""Commands exposed to the UI shell.

Each command is an async function taking a CommandContext plus keyword
arguments. Results are typed values with a to_dict() (or plain JSON
values); failures are raised as CommandError, whose text is shown to the
user verbatim.

COMMANDS maps the command names used by the desktop shell to these
functions; the bridge server dispatches through it.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from convertsave.config.env import EnvReader
from convertsave.config.loader import get_settings
from convertsave.config.models import AppSettings
from convertsave.config.paths import AppPaths
from convertsave.config.tool_config import ToolConfigStore
from convertsave.core.file_utils import (
    FileInfo,
    ensure_directory,
    get_file_info as _get_file_info,
    reveal_in_file_manager,
    unique_output_path,
)
from convertsave.core.platform import Platform, current_platform
from convertsave.events import EventBus
from convertsave.exceptions import (
    ConvertSaveError,
    FilesystemError,
    ToolNotFoundError,
    UnsupportedConversionError,
    describe_os_error,
)
from convertsave.executor import raster
from convertsave.executor.models import ConversionPlan
from convertsave.executor.planner import prepare_plan
from convertsave.executor.runner import execute
from convertsave.formats.registry import IMAGE_OUTPUTS_FFMPEG, RASTER_ENGINE_ONLY_OUTPUTS
from convertsave.formats.routing import (
    ConversionOption,
    get_available_formats as _get_available_formats,
    normalize_extension,
    route,
)
from convertsave.license.client import LicenseApiClient
from convertsave.license.gate import LicenseGate
from convertsave.license.models import LicenseStatus
from convertsave.license.storage import LicenseStore
from convertsave.logging.context import task_context
from convertsave.tools.detection import version_banner
from convertsave.tools.models import (
    PROVISIONABLE_TOOLS,
    STATUS_TOOLS,
    ToolId,
    ToolInstallation,
    ToolStatus,
)
from convertsave.tools.provisioner import Provisioner
from convertsave.tools.resolver import ToolResolver
from convertsave.tools.sources import create_http_client
from convertsave.tools.updates import UpdateInfo
from convertsave.tools.updates import check_for_updates as _check_for_updates

logger = logging.getLogger(__name__)

OUTPUT_SUBDIR = ("ConvertSave", "Converted")


class CommandError(Exception):
    """A command failed; str(error) is the message for the user."""


@dataclass
class CommandContext:
    """Services shared by all commands of one app instance."""

    paths: AppPaths
    settings: AppSettings
    platform: Platform
    config_store: ToolConfigStore
    resolver: ToolResolver
    license_gate: LicenseGate
    events: EventBus = field(default_factory=EventBus)
    http_client_factory: Callable[[], httpx.AsyncClient] = create_http_client

    @classmethod
    def create(
        cls,
        settings: AppSettings | None = None,
        env: EnvReader | None = None,
        platform: Platform | None = None,
        paths: AppPaths | None = None,
    ) -> CommandContext:
        reader = env or EnvReader()
        plat = platform or current_platform()
        paths = paths or AppPaths.from_env(reader, plat)
        settings = settings or get_settings(paths.settings_file, env_reader=reader)
        store = ToolConfigStore(paths.config_file)
        api_url = settings.license.api_url
        gate = LicenseGate(
            LicenseStore(paths.license_file),
            client_factory=lambda: LicenseApiClient(api_url),
        )
        return cls(
            paths=paths,
            settings=settings,
            platform=plat,
            config_store=store,
            resolver=ToolResolver(paths, store, platform=plat),
            license_gate=gate,
        )

    def default_output_dir(self) -> Path:
        return self.platform.documents_dir().joinpath(*OUTPUT_SUBDIR)


CommandFunc = Callable[..., Awaitable[Any]]

COMMANDS: dict[str, CommandFunc] = {}


def command(name: str) -> Callable[[CommandFunc], CommandFunc]:
    """Register a command and translate its errors into CommandError.

    The command runs inside a logging task context named after it.
    """

    def decorator(func: CommandFunc) -> CommandFunc:
        @functools.wraps(func)
        async def wrapper(ctx: CommandContext, *args: Any, **kwargs: Any) -> Any:
            with task_context(name):
                try:
                    return await func(ctx, *args, **kwargs)
                except CommandError:
                    raise
                except ConvertSaveError as e:
                    logger.warning("%s failed: %s", name, e)
                    raise CommandError(str(e)) from e

        COMMANDS[name] = wrapper
        return wrapper

    return decorator


def _parse_tool(name: str) -> ToolId:
    try:
        return ToolId.parse(name)
    except ValueError as e:
        raise CommandError(f"Unknown tool: {name}") from e


def _install_hint(tool: ToolId, out_ext: str) -> str:
    if tool is ToolId.IMAGEMAGICK and out_ext in RASTER_ENGINE_ONLY_OUTPUTS:
        return (
            f"{out_ext.upper()} output requires ImageMagick. "
            "Install it from the Tools settings or set a custom path."
        )
    if tool in PROVISIONABLE_TOOLS:
        return "Download it from the Tools settings or set a custom path."
    return "Install it or set a custom path in the Tools settings."


async def _resolve(ctx: CommandContext, tool: ToolId) -> ToolInstallation | None:
    return await asyncio.to_thread(ctx.resolver.find, tool)


async def _resolve_for_output(
    ctx: CommandContext, tool: ToolId, out_ext: str
) -> tuple[ToolId, Path]:
    """Resolve the routed tool, falling back from ImageMagick to ffmpeg.

    ffmpeg can stand in for ImageMagick for every output it writes itself,
    except the formats only ImageMagick can encode.
    """
    installation = await _resolve(ctx, tool)
    if installation is not None:
        return tool, installation.path

    if (
        tool is ToolId.IMAGEMAGICK
        and out_ext in IMAGE_OUTPUTS_FFMPEG
        and out_ext not in RASTER_ENGINE_ONLY_OUTPUTS
    ):
        fallback = await _resolve(ctx, ToolId.FFMPEG)
        if fallback is not None:
            logger.info("ImageMagick not found, converting with FFmpeg")
            return ToolId.FFMPEG, fallback.path

    raise ToolNotFoundError(tool.display_name, _install_hint(tool, out_ext))


def _output_dir(ctx: CommandContext, output_directory: str | None) -> Path:
    directory = Path(output_directory) if output_directory else ctx.default_output_dir()
    return ensure_directory(directory)


def _existing_file(path: str) -> Path:
    p = Path(path)
    if not p.is_file():
        raise FilesystemError(f"Input file not found: {p}", path=p)
    return p


@command("get_available_formats")
async def get_available_formats(
    ctx: CommandContext, input_extension: str
) -> list[ConversionOption]:
    return _get_available_formats(input_extension)


@command("convert_file")
async def convert_file(
    ctx: CommandContext,
    input_path: str,
    output_format: str,
    output_directory: str | None = None,
    advanced_options: str | None = None,
) -> str:
    """Convert one file and return the path of the result.

    The output is named after the input, with " (n)" appended when the
    name is taken.
    """
    in_path = _existing_file(input_path)
    in_ext = normalize_extension(in_path.suffix)
    out_ext = normalize_extension(output_format)

    tool = route(in_ext, out_ext)
    if tool is None:
        raise UnsupportedConversionError(in_ext, out_ext)

    tool_path: Path | None = None
    if tool.is_external:
        tool, tool_path = await _resolve_for_output(ctx, tool, out_ext)

    out_path = unique_output_path(_output_dir(ctx, output_directory), in_path.stem, out_ext)
    logger.info(
        "Converting %s to %s with %s", in_path.name, out_path.name, tool.display_name
    )
    plan = await prepare_plan(
        tool, in_path, out_path, tool_path, advanced_options, platform=ctx.platform
    )
    result = await execute(plan, ctx.platform)
    return str(result.output_path)


@command("convert_images_to_multipage_pdf")
async def convert_images_to_multipage_pdf(
    ctx: CommandContext,
    input_paths: list[str],
    output_directory: str | None = None,
) -> str:
    """Combine images into one PDF named ``{first-stem} combined.pdf``."""
    if not input_paths:
        raise CommandError("No images selected")
    in_paths = [_existing_file(p) for p in input_paths]

    installation = await _resolve(ctx, ToolId.IMAGEMAGICK)
    if installation is None:
        raise ToolNotFoundError(
            ToolId.IMAGEMAGICK.display_name,
            "Combining images into a PDF requires ImageMagick.",
        )

    out_dir = _output_dir(ctx, output_directory)
    out_path = unique_output_path(out_dir, f"{in_paths[0].stem} combined", "pdf")
    plan = ConversionPlan(
        ToolId.IMAGEMAGICK,
        in_paths[0],
        out_path,
        tool_path=installation.path,
        argv=tuple(raster.plan_multipage_pdf_args(in_paths, out_path)),
        env=raster.raster_env(installation.path, ctx.platform),
    )
    logger.info("Combining %d images into %s", len(in_paths), out_path.name)
    result = await execute(plan, ctx.platform)
    return str(result.output_path)


@command("get_file_info")
async def get_file_info(ctx: CommandContext, path: str) -> FileInfo:
    return _get_file_info(Path(path))


@command("open_folder")
async def open_folder(ctx: CommandContext, path: str) -> None:
    """Open a folder, or reveal a file in its folder."""
    reveal_in_file_manager(Path(path), ctx.platform)


@command("download_tool")
async def download_tool(ctx: CommandContext, tool: str) -> str:
    """Download a tool into the app cache, publishing download-progress events."""
    tool_id = _parse_tool(tool)
    if tool_id not in PROVISIONABLE_TOOLS:
        raise CommandError(f"{tool_id.display_name} cannot be downloaded automatically")
    provisioner = Provisioner(ctx.resolver, ctx.http_client_factory)
    try:
        result = await provisioner.provision(tool_id, ctx.events.download_emitter())
    except OSError as e:
        raise describe_os_error(e, ctx.resolver.cache_dir(tool_id), "install into") from e
    return result.message


async def download_ffmpeg(ctx: CommandContext) -> str:
    return await download_tool(ctx, ToolId.FFMPEG.value)


async def download_pandoc(ctx: CommandContext) -> str:
    return await download_tool(ctx, ToolId.PANDOC.value)


async def download_imagemagick(ctx: CommandContext) -> str:
    return await download_tool(ctx, ToolId.IMAGEMAGICK.value)


COMMANDS["download_ffmpeg"] = download_ffmpeg
COMMANDS["download_pandoc"] = download_pandoc
COMMANDS["download_imagemagick"] = download_imagemagick


@command("test_tool")
async def test_tool(ctx: CommandContext, tool_name: str) -> str:
    """Run a tool's version command; returns its first banner line and path."""
    tool = _parse_tool(tool_name)
    installation = await _resolve(ctx, tool)
    if installation is None:
        raise ToolNotFoundError(tool.display_name, _install_hint(tool, ""))
    banner, rc = await asyncio.to_thread(
        version_banner, tool, installation.path, ctx.platform
    )
    if rc != 0:
        raise CommandError(
            f"{tool.display_name} at {installation.path} did not run (exit code {rc}): "
            f"{banner.strip() or 'no output'}"
        )
    first_line = banner.strip().splitlines()[0] if banner.strip() else tool.display_name
    return f"{first_line}\nPath: {installation.path}"


@command("check_tools_status")
async def check_tools_status(ctx: CommandContext) -> dict[str, ToolStatus]:
    status: dict[str, ToolStatus] = {}
    for tool in STATUS_TOOLS:
        installation = await _resolve(ctx, tool)
        status[tool.value] = ToolStatus(
            available=installation is not None,
            path=str(installation.path) if installation else None,
        )
    return status


@command("check_for_updates")
async def check_for_updates(ctx: CommandContext) -> dict[str, UpdateInfo]:
    return await _check_for_updates(ctx.resolver, ctx.http_client_factory)


@command("set_custom_tool_path")
async def set_custom_tool_path(ctx: CommandContext, tool: str, path: str) -> None:
    tool_id = _parse_tool(tool)
    binary = Path(path).expanduser()
    if not binary.is_file():
        raise FilesystemError(f"Not found: {binary}", path=binary)
    try:
        ctx.config_store.set_path(tool_id.value, str(binary.resolve()))
    except KeyError as e:
        raise CommandError(f"{tool_id.display_name} has no custom path setting") from e


@command("clear_custom_tool_path")
async def clear_custom_tool_path(ctx: CommandContext, tool: str) -> None:
    tool_id = _parse_tool(tool)
    try:
        ctx.config_store.clear_path(tool_id.value)
    except KeyError as e:
        raise CommandError(f"{tool_id.display_name} has no custom path setting") from e


@command("check_license_status")
async def check_license_status(ctx: CommandContext) -> LicenseStatus:
    return await ctx.license_gate.check_status()


@command("activate_license")
async def activate_license(ctx: CommandContext, product_key: str) -> LicenseStatus:
    return await ctx.license_gate.activate(product_key)


@command("deactivate_license")
async def deactivate_license(ctx: CommandContext) -> LicenseStatus:
    return await ctx.license_gate.deactivate()


@command("change_product_key")
async def change_product_key(ctx: CommandContext, product_key: str) -> LicenseStatus:
    return await ctx.license_gate.change_product_key(product_key)


@command("get_device_id")
async def get_device_id(ctx: CommandContext) -> str:
    return ctx.license_gate.device_id()


@command("get_current_product_key")
async def get_current_product_key(ctx: CommandContext) -> str | None:
    return ctx.license_gate.current_product_key()
