"""パッケージ参照の解決と package.json の読み込み.

場所識別子（bare specifier または相対/絶対パス）を Node 風に解決し、
解決したファイルから親ディレクトリ方向へ package.json を探して name/version を返します。

使用例:
    >>> meta = resolve_package("react", "react", Path("/work/app"))
    >>> meta.version
    '18.2.0'
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from .exceptions import ManifestError, NameMismatchError, ResolutionError
from .models import PackageMetadata

MANIFEST_FILENAME = "package.json"
NODE_MODULES = "node_modules"
RESOLVE_EXTENSIONS = (".js", ".mjs", ".cjs", ".json")


def _is_path_like(path: str) -> bool:
    return path.startswith(("./", "../")) or path in {".", ".."} or Path(path).is_absolute()


def _probe(candidate: Path) -> Path | None:
    if candidate.exists():
        return candidate
    for ext in RESOLVE_EXTENSIONS:
        with_ext = candidate.with_name(candidate.name + ext)
        if with_ext.is_file():
            return with_ext
    return None


def resolve_location(path: str, context: Path | str) -> Path:
    """場所識別子をファイルシステム上のパスに解決する.

    Args:
        path: モジュール名（例: "react", "@angular/core", "rxjs/operators"）またはパス
        context: 解決の起点ディレクトリ

    Returns:
        解決されたファイルまたはディレクトリ

    Raises:
        ResolutionError: どこにも見つからない場合
    """
    if not path:
        raise ResolutionError(path, context, "empty location")
    context = Path(context)

    if _is_path_like(path):
        found = _probe(context / path)
        if found is None:
            raise ResolutionError(path, context, "no such file or directory")
        return found.resolve()

    # bare specifier: context から祖先へ node_modules を探索
    for directory in (context, *context.parents):
        found = _probe(directory / NODE_MODULES / path)
        if found is not None:
            return found.resolve()
    raise ResolutionError(path, context, "module not found")


def find_package_root(location: Path) -> Path:
    """location から親方向へ辿り、package.json を持つ最も近いディレクトリを返す.

    Raises:
        ManifestError: ルートまで辿っても package.json が無い場合
    """
    for directory in (location, *location.parents):
        if (directory / MANIFEST_FILENAME).is_file():
            return directory
    raise ManifestError(f"{MANIFEST_FILENAME} not found in path {location}")


def load_manifest(manifest_path: Path) -> PackageMetadata:
    """package.json を読み込み name/version を取り出す.

    Raises:
        ManifestError: 読めない/JSONとして不正/name・version が欠けている場合
    """
    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ManifestError(str(e), manifest_path) from e

    if not isinstance(data, dict):
        raise ManifestError("expected a JSON object", manifest_path)

    name = data.get("name")
    version = data.get("version")
    if not name or not version:
        raise ManifestError("missing 'name' or 'version'", manifest_path)

    return PackageMetadata(name=str(name), version=str(version))


def resolve_package(path: str, expected_name: str, context: Path | str) -> PackageMetadata:
    """パッケージ参照を検証済みの {name, version} に解決する.

    Args:
        path: 場所識別子
        expected_name: 設定で宣言されたパッケージ名
        context: 解決の起点ディレクトリ

    Returns:
        package.json から読み取ったメタデータ

    Raises:
        ResolutionError: 場所を解決できない場合
        ManifestError: package.json が見つからない/不正な場合
        NameMismatchError: package.json の name が expected_name と異なる場合
    """
    location = resolve_location(path, context)
    manifest_path = find_package_root(location) / MANIFEST_FILENAME
    metadata = load_manifest(manifest_path)

    if metadata.name != expected_name:
        raise NameMismatchError(expected_name, metadata.name, manifest_path)

    logger.debug(f"Resolved {path} -> {metadata.name}@{metadata.version} ({manifest_path})")
    return metadata
