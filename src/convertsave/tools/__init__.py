"""External converter tools: models, resolution, provisioning and updates."""

from convertsave.tools.models import (
    PROVISIONABLE_TOOLS,
    STATUS_TOOLS,
    ToolId,
    ToolInstallation,
    ToolSource,
    ToolStatus,
)

__all__ = [
    "PROVISIONABLE_TOOLS",
    "STATUS_TOOLS",
    "ToolId",
    "ToolInstallation",
    "ToolSource",
    "ToolStatus",
]
