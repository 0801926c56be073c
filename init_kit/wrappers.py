"""Interface to the wrapper sync collaborator.

The sync script copies skill content from the canonical skills tree into
provider-specific directories. It is an external program; this module only
builds its command line, runs it from the repository root and checks its
exit status.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel

from init_kit.errors import WrapperSyncError
from init_kit.fileio import display_path
from init_kit.observability import log_pipeline_event
from init_kit.settings import InitKitSettings, get_settings

logger = logging.getLogger(__name__)

VALID_PROVIDERS = frozenset({"both", "codex", "claude"})
DEFAULT_PROVIDERS = "both"


class WrapperSyncResult(BaseModel):
    op: Literal["run", "skip"]
    cmd: Optional[str] = None
    path: Optional[str] = None
    mode: Literal["dry-run", "applied", "skip"]
    reason: Optional[str] = None


def validate_providers(providers: Optional[str]) -> str:
    """Normalize a comma-separated provider list.

    Raises:
        ValueError: If any entry is not a known provider.
    """
    if not providers:
        return DEFAULT_PROVIDERS
    parts = [p.strip().lower() for p in providers.split(",") if p.strip()]
    unknown = [p for p in parts if p not in VALID_PROVIDERS]
    if unknown or not parts:
        raise ValueError(
            f"Unknown provider(s): {', '.join(unknown) or providers!r}. "
            f"Expected a comma-separated list of: {', '.join(sorted(VALID_PROVIDERS))}"
        )
    return ",".join(parts)


def build_sync_command(script_path: Path, providers: str, settings: InitKitSettings) -> List[str]:
    return [
        settings.sync_executable,
        str(script_path),
        "--scope",
        "current",
        "--providers",
        providers,
        "--mode",
        "reset",
        "--yes",
    ]


def sync_wrappers(
    repo_root: Path,
    providers: Optional[str],
    apply: bool,
    settings: Optional[InitKitSettings] = None,
) -> WrapperSyncResult:
    """Run (or describe) the wrapper sync.

    Raises:
        WrapperSyncError: If the sync process cannot be started or exits
            non-zero.
    """
    settings = settings or get_settings()
    script_path = settings.sync_script_path(repo_root)
    if not script_path.exists():
        return WrapperSyncResult(
            op="skip",
            path=display_path(repo_root, script_path),
            mode="skip",
            reason=f"{script_path.name} not found",
        )

    cmd = build_sync_command(script_path, validate_providers(providers), settings)
    cmd_text = shlex.join(cmd)

    if not apply:
        return WrapperSyncResult(op="run", cmd=cmd_text, mode="dry-run")

    logger.info(f"Running wrapper sync: {cmd_text}")
    try:
        completed = subprocess.run(
            cmd,
            cwd=repo_root,
            shell=False,
            env=os.environ.copy(),
            check=False,
        )
    except OSError as e:
        raise WrapperSyncError(cmd_text, None, str(e)) from e

    if completed.returncode != 0:
        log_pipeline_event("wrapper_sync_failed", exit_code=completed.returncode)
        raise WrapperSyncError(cmd_text, completed.returncode)

    log_pipeline_event("wrapper_sync_completed", providers=cmd[5])
    return WrapperSyncResult(op="run", cmd=cmd_text, mode="applied")
