"""Run a ConversionPlan and report the result.

Conversions are not time-bounded and cannot be cancelled once the child
process is spawned.
"""

from __future__ import annotations

import asyncio
import logging
import shutil

from convertsave.core.platform import Platform, current_platform
from convertsave.core.subprocess_utils import CommandOutput, merged_env, run_command_async
from convertsave.exceptions import ConversionError, describe_os_error
from convertsave.executor import heic
from convertsave.executor.diagnostics import collect_binary_diagnostics
from convertsave.executor.errors import MSG_FAILED_TO_START, classify_failure
from convertsave.executor.models import ConversionPlan, ExecutionResult, PostRename
from convertsave.tools.models import ToolId

logger = logging.getLogger(__name__)


async def _copy(plan: ConversionPlan) -> ExecutionResult:
    try:
        await asyncio.to_thread(shutil.copy2, plan.input_path, plan.output_path)
    except OSError as e:
        raise describe_os_error(e, plan.output_path, "write") from e
    logger.info("Copied %s to %s", plan.input_path.name, plan.output_path.name)
    return ExecutionResult(plan.output_path)


def _finish_rename(post: PostRename) -> None:
    try:
        if not post.source.is_file():
            found = sorted(p.name for p in post.source.parent.iterdir())
            raise ConversionError(
                f"Converter did not produce {post.source.name} (found: {', '.join(found) or 'nothing'})"
            )
        shutil.move(str(post.source), str(post.target))
    except OSError as e:
        raise describe_os_error(e, post.target, "write") from e


def _cleanup_staging(post: PostRename | None) -> None:
    if post is not None and post.staging_dir is not None:
        shutil.rmtree(post.staging_dir, ignore_errors=True)


async def _failure_message(
    plan: ConversionPlan, output: CommandOutput, platform: Platform
) -> str:
    message = classify_failure(
        output.stderr,
        output.stdout,
        output.returncode,
        plan.output_ext,
        plan.tool,
        platform,
    )
    if (
        platform.is_macos
        and plan.tool is ToolId.IMAGEMAGICK
        and output.is_empty
        and plan.tool_path is not None
    ):
        report = await collect_binary_diagnostics(plan.tool_path)
        message = f"{message}\n\n{report}"
    return message


async def execute(plan: ConversionPlan, platform: Platform | None = None) -> ExecutionResult:
    """Run a planned conversion.

    Args:
        plan: Plan produced by the planner.
        platform: Platform override.

    Returns:
        ExecutionResult for the produced file.

    Raises:
        ConversionError: If the converter fails; the message is user-facing.
        FilesystemError: If the output cannot be written or moved.
    """
    plat = platform or current_platform()

    if plan.copy_only:
        return await _copy(plan)

    if plan.heic is not None:
        tool_path = plan.tool_path

        async def run_ffmpeg(args: list[str]) -> CommandOutput:
            return await run_command_async([tool_path, *args], platform=plat)

        try:
            output = await heic.reassemble(plan.heic, run_ffmpeg)
        except OSError as e:
            raise ConversionError(f"{MSG_FAILED_TO_START} ({e})") from e
        logger.info("Converted %s to %s", plan.input_path.name, plan.output_path.name)
        return ExecutionResult(plan.output_path, output.stdout, output.stderr)

    post = plan.post_rename
    if post is not None and post.staging_dir is not None:
        try:
            post.staging_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise describe_os_error(e, post.staging_dir, "create folder") from e

    try:
        try:
            output = await run_command_async(
                plan.command, env=merged_env(plan.env), platform=plat
            )
        except OSError as e:
            logger.error("Could not start %s: %s", plan.tool.display_name, e)
            raise ConversionError(f"{MSG_FAILED_TO_START} ({e})") from e

        if not output.ok:
            message = await _failure_message(plan, output, plat)
            logger.warning(
                "%s failed (rc=%d) converting %s",
                plan.tool.display_name,
                output.returncode,
                plan.input_path.name,
            )
            raise ConversionError(message, returncode=output.returncode, stderr=output.stderr)

        if post is not None:
            await asyncio.to_thread(_finish_rename, post)
    finally:
        _cleanup_staging(post)

    logger.info("Converted %s to %s", plan.input_path.name, plan.output_path.name)
    return ExecutionResult(plan.output_path, output.stdout, output.stderr)

