"""前回ビルド時のバンドル状態（dll-bundles-state.json）の読み書き.

JSON形式:
    {
        "react": {"bundle": "vendors", "version": "18.2.0"},
        "zone.js": {"bundle": "polyfills", "version": "0.14.2"}
    }

エラーになったパッケージは保存しない。そのため未解決のパッケージは次回以降も
errored となり、修正されるまで毎回そのバンドルがリビルド対象になる。
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from .exceptions import StateFileError
from .models import PackageDescriptor, PersistedState, StateEntry

BUNDLE_STATE_FILENAME = "dll-bundles-state.json"


class BundleStateStore:
    """state_dir 内の状態ファイルを管理するクラス."""

    def __init__(self, state_dir: Path | str) -> None:
        self.state_dir = Path(state_dir)

    @property
    def path(self) -> Path:
        return self.state_dir / BUNDLE_STATE_FILENAME

    def load(self) -> PersistedState:
        """状態ファイルを読み込む.

        Returns:
            パッケージ名 -> StateEntry。ファイルが無い場合（初回）は空の辞書

        Raises:
            StateFileError: JSONとして不正、または形式が不正な場合
        """
        if not self.path.exists():
            logger.info(f"Bundle state not found, treating all packages as added: {self.path}")
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StateFileError(self.path, f"invalid JSON ({e})") from e

        if not isinstance(data, dict):
            raise StateFileError(self.path, f"expected a JSON object, got {type(data).__name__}")

        state: PersistedState = {}
        for name, entry in data.items():
            if not isinstance(entry, dict):
                raise StateFileError(self.path, f"entry '{name}' must be an object")
            bundle = entry.get("bundle")
            version = entry.get("version")
            if not isinstance(bundle, str) or not isinstance(version, str):
                raise StateFileError(self.path, f"entry '{name}' requires string 'bundle' and 'version'")
            state[name] = StateEntry(bundle=bundle, version=version)

        logger.debug(f"Loaded bundle state for {len(state)} packages from {self.path}")
        return state

    def save(self, descriptors: Iterable[PackageDescriptor]) -> dict[str, dict[str, str]]:
        """エラーの無い descriptor から状態を作り、ファイル全体を上書き保存する.

        同名の descriptor が複数ある場合は宣言順で最初のものだけを扱う（最初がエラーなら保存しない）。

        一時ファイルに書いてから置き換えるため、途中で失敗しても既存ファイルは壊れない。
        書き込みエラーはそのまま呼び出し元へ伝播する。

        Args:
            descriptors: 収集済みの descriptor

        Returns:
            保存した内容（パッケージ名 -> {"bundle", "version"}）
        """
        state: dict[str, dict[str, str]] = {}
        seen: set[str] = set()
        for pkg in descriptors:
            # 同名パッケージは差分判定と同じく最初の出現を採用する
            if pkg.name in seen:
                continue
            seen.add(pkg.name)
            if pkg.is_errored or pkg.version is None:
                continue
            state[pkg.name] = {"bundle": pkg.bundle, "version": pkg.version}

        self.state_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.state_dir, prefix=".dll-bundles-state.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Bundle state written to {self.path} ({len(state)} packages)")
        return state
