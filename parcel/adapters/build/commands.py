"""
Command-driven builder backends.

A backend is a set of command templates, one per phase. Templates may use
``{python}``, ``{name}`` and ``{workdir}`` placeholders. A phase without a
command succeeds trivially.
"""

from __future__ import annotations

import importlib.util
import logging
from dataclasses import dataclass, field
from typing import Any

from parcel.adapters.base import BuilderBackend
from parcel.adapters.build.runner import run_command
from parcel.core.models.status import Distribution, InstallerKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildCommands:
    """Command templates for each build phase."""

    descriptor: str
    prepare: list[str] = field(default_factory=list)
    create: list[str] = field(default_factory=list)
    test: list[str] = field(default_factory=list)
    install: list[str] = field(default_factory=list)
    requires_module: str = ""   # importable module the backend needs


SETUPTOOLS_COMMANDS = BuildCommands(
    descriptor="setup.py",
    prepare=["{python}", "setup.py", "egg_info"],
    create=["{python}", "setup.py", "build"],
    test=["{python}", "-m", "pytest", "-q"],
    install=["{python}", "-m", "pip", "install", "--no-deps", "--no-build-isolation", "."],
    requires_module="setuptools",
)

PEP517_COMMANDS = BuildCommands(
    descriptor="pyproject.toml",
    create=["{python}", "-m", "build", "--wheel", "--no-isolation", "--outdir", "dist"],
    test=["{python}", "-m", "pytest", "-q"],
    install=[
        "{python}", "-m", "pip", "install", "--no-deps", "--no-index",
        "--find-links", "dist", "{name}",
    ],
    requires_module="build",
)


class CommandBuilder(BuilderBackend):
    """Builder backend that shells out to the configured commands."""

    def __init__(
        self,
        kind: str,
        commands: BuildCommands,
        *,
        python: str,
        timeout: int = 600,
    ):
        self._kind = kind
        self._commands = commands
        self._python = python
        self._timeout = timeout

    @property
    def name(self) -> str:
        return self._kind

    @property
    def descriptor(self) -> str:
        return self._commands.descriptor

    def is_available(self) -> bool:
        module = self._commands.requires_module
        if not module:
            return True
        try:
            return importlib.util.find_spec(module) is not None
        except (ImportError, ValueError):
            return False

    def _run(self, phase: str, template: list[str], dist: Distribution) -> bool:
        if not template:
            return True
        cmd = [
            part.format(python=self._python, name=dist.artifact, workdir=str(dist.directory))
            for part in template
        ]
        result = run_command(cmd, cwd=dist.directory, timeout=self._timeout)
        dist.output = result.get("stdout", "")
        if not result["ok"]:
            logger.error(
                "%s %s failed for '%s': %s\n%s",
                self._kind, phase, dist.artifact, result["error"], result.get("stderr", ""),
            )
            return False
        logger.info("%s %s done for '%s'", self._kind, phase, dist.artifact)
        return True

    def prepare(self, dist: Distribution, args: dict[str, Any]) -> bool:
        if dist.prepared:
            return True
        if not (dist.directory / self.descriptor).is_file():
            logger.error("No %s in %s", self.descriptor, dist.directory)
            return False
        dist.prepared = self._run("prepare", self._commands.prepare, dist)
        return dist.prepared

    def create(self, dist: Distribution, args: dict[str, Any]) -> bool:
        if dist.created:
            return True
        if not self._run("create", self._commands.create, dist):
            return False
        if not args.get("skip_test") and (dist.directory / "tests").is_dir():
            if not self._run("test", self._commands.test, dist):
                return False
        dist.created = True
        return True

    def install_built(self, dist: Distribution, args: dict[str, Any]) -> bool:
        if dist.installed:
            return True
        dist.installed = self._run("install", self._commands.install, dist)
        return dist.installed


def default_builders(python: str, timeout: int = 600) -> list[BuilderBackend]:
    """The setuptools and PEP 517 backends."""
    return [
        CommandBuilder(InstallerKind.SETUPTOOLS, SETUPTOOLS_COMMANDS, python=python, timeout=timeout),
        CommandBuilder(InstallerKind.PEP517, PEP517_COMMANDS, python=python, timeout=timeout),
    ]
