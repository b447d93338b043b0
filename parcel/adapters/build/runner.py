"""
Subprocess runner for builder backends.

The single place where build and install commands are executed. Output is
trimmed and returned; nothing here raises.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_TAIL = 2000


def run_command(
    cmd: list[str],
    *,
    cwd: Path | None = None,
    timeout: int = 600,
    env_overrides: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Run *cmd* and report the outcome.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", "stderr": "...", ...}`` on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=str(cwd) if cwd else None,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)"}
    except OSError as e:
        return {"ok": False, "error": f"Could not run {cmd[0]}: {e}"}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-_TAIL:] if result.stdout else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "stderr": result.stderr[-_TAIL:] if result.stderr else "",
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }
