"""バンドル設定（bundles.yml）の読み込みと正規化.

設定例:
    context: .
    dll_dir: dll
    ignore_package_error: false
    build_command: [npx, webpack, --config, webpack.dll.js]
    bundles:
      polyfills:
        - core-js
        - name: zone.js
          path: zone.js/dist/zone
      vendors: [react, react-dom]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml
from loguru import logger

from dll_bundles.core.exceptions import ConfigError
from dll_bundles.core.models import BundleDefinition, PackageReference


@dataclass(frozen=True)
class DllBundlesOptions:
    """正規化済みの設定.

    Attributes:
        bundles: バンドル定義（設定の記述順）
        dll_dir: 成果物と状態ファイルを置くディレクトリ（絶対パス）
        context: パッケージ解決の起点（絶対パス）
        ignore_package_error: True ならパッケージエラーがあってもチェックを失敗させない
        max_workers: メタデータ収集のスレッド数
        resolve_timeout: 1パッケージあたりの解決タイムアウト（秒）
        build_command: 外部ビルドコマンド
    """

    bundles: tuple[BundleDefinition, ...]
    dll_dir: Path
    context: Path
    ignore_package_error: bool = False
    max_workers: int | None = None
    resolve_timeout: float | None = None
    build_command: tuple[str, ...] = ()

    @property
    def strict(self) -> bool:
        return not self.ignore_package_error


def _parse_bundles(raw_bundles: object) -> tuple[BundleDefinition, ...]:
    if not isinstance(raw_bundles, Mapping) or not raw_bundles:
        raise ConfigError("'bundles' must be a non-empty mapping of bundle name -> packages")

    bundles: list[BundleDefinition] = []
    for name, packages in raw_bundles.items():
        if not isinstance(packages, list) or not packages:
            raise ConfigError(f"Bundle '{name}' must list at least one package")
        refs = tuple(PackageReference.from_config(p) for p in packages)
        bundles.append(BundleDefinition(name=str(name), packages=refs))
    return tuple(bundles)


def _optional_number(raw: Mapping, key: str, kind: type) -> int | float | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"'{key}' must be a positive number, got {value!r}")
    return kind(value)


def build_options(raw: Mapping, base_dir: Path | str | None = None) -> DllBundlesOptions:
    """設定辞書を検証して DllBundlesOptions に変換する.

    Args:
        raw: YAML から読み込んだ設定辞書
        base_dir: 相対 context の基準（省略時はカレントディレクトリ）

    Returns:
        正規化済みの設定

    Raises:
        ConfigError: 設定が不正な場合
    """
    base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    context = Path(raw.get("context") or ".")
    if not context.is_absolute():
        context = base_dir / context
    context = context.resolve()

    raw_dll_dir = raw.get("dll_dir")
    if not raw_dll_dir:
        raise ConfigError("'dll_dir' is required")
    dll_dir = Path(raw_dll_dir)
    if not dll_dir.is_absolute():
        dll_dir = (context / dll_dir).resolve()

    command = raw.get("build_command") or ()
    if isinstance(command, str):
        command = command.split()
    if not isinstance(command, (list, tuple)) or not all(isinstance(c, str) for c in command):
        raise ConfigError("'build_command' must be a list of strings")

    return DllBundlesOptions(
        bundles=_parse_bundles(raw.get("bundles")),
        dll_dir=dll_dir,
        context=context,
        ignore_package_error=bool(raw.get("ignore_package_error", False)),
        max_workers=_optional_number(raw, "max_workers", int),
        resolve_timeout=_optional_number(raw, "resolve_timeout", float),
        build_command=tuple(command),
    )


def load_config(config_path: Path | str) -> DllBundlesOptions:
    """YAML設定ファイルを読み込む.

    相対パスの context は設定ファイルのあるディレクトリを基準に解決する。

    Raises:
        FileNotFoundError: ファイルが存在しない場合
        ConfigError: YAML が不正、または設定内容が不正な場合
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {config_path}") from e

    if not isinstance(raw, Mapping):
        raise ConfigError(f"Config file must contain a mapping, got {type(raw).__name__}")

    options = build_options(raw, base_dir=config_path.resolve().parent)
    logger.info(f"Loaded {len(options.bundles)} bundles from {config_path}")
    return options
