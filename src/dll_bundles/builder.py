"""External DLL bundle build invoker.

The actual bundling is delegated to an external command (typically webpack with
DllPlugin). The command receives a JSON build request describing entries and
output naming through the ``DLL_BUNDLES_BUILD_REQUEST`` environment variable.
"""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from loguru import logger

from dll_bundles.core.exceptions import ConfigError
from dll_bundles.core.models import BundleDefinition

BUILD_REQUEST_FILENAME = "dll-bundles-build.json"
BUILD_REQUEST_ENV = "DLL_BUNDLES_BUILD_REQUEST"


class BundleBuilder(Protocol):
    def build(self, bundles: Sequence[BundleDefinition], entries: dict[str, list[str]]) -> bool:
        """Build bundles. Return True on success."""
        ...


def bundle_entries(bundles: Sequence[BundleDefinition]) -> dict[str, list[str]]:
    """Map every configured bundle name to its entry paths."""
    return {bundle.name: bundle.entry_paths() for bundle in bundles}


def write_build_request(
    dll_dir: Path,
    rebuild: Sequence[BundleDefinition],
    entries: dict[str, list[str]],
) -> Path:
    """Write the build request JSON into ``dll_dir``.

    Args:
        dll_dir: Output directory of the bundles
        rebuild: Bundles that need a rebuild
        entries: Entry paths of all bundles

    Returns:
        Path of the written request file
    """
    request = {
        "entry": entries,
        "rebuild": [bundle.name for bundle in rebuild],
        "output": {
            "path": str(dll_dir),
            "filename": "[name].dll.js",
            "library": "[name]_lib",
        },
        "manifest": str(dll_dir / "[name]-manifest.json"),
    }
    dll_dir.mkdir(parents=True, exist_ok=True)
    request_path = dll_dir / BUILD_REQUEST_FILENAME
    with open(request_path, "w", encoding="utf-8") as f:
        json.dump(request, f, indent=2, ensure_ascii=False)
    return request_path


class CommandBundleBuilder:
    """Runs a build command (e.g. ``npx webpack --config webpack.dll.js``)."""

    def __init__(self, command: Sequence[str], dll_dir: Path | str, cwd: Path | str) -> None:
        if not command:
            raise ConfigError("build_command is not configured")
        self.command = list(command)
        self.dll_dir = Path(dll_dir)
        self.cwd = Path(cwd)

    def build(self, bundles: Sequence[BundleDefinition], entries: dict[str, list[str]]) -> bool:
        request_path = write_build_request(self.dll_dir, bundles, entries)
        env = {**os.environ, BUILD_REQUEST_ENV: str(request_path)}

        logger.info(f"Running build command: {' '.join(self.command)}")
        result = subprocess.run(self.command, cwd=self.cwd, env=env)
        if result.returncode != 0:
            logger.error(f"Build command exited with code {result.returncode}")
            return False
        return True
