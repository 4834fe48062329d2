"""DLLバンドル管理の例外.

パッケージ解決・マニフェスト読み込み・状態ファイル・ビルド実行で発生する例外を定義します。
パッケージ単位の例外（ResolutionError / ManifestError / NameMismatchError）は
PackageDescriptor.error に格納され、兄弟パッケージの解決を止めません。
"""

from __future__ import annotations

from pathlib import Path


class DllBundlesError(Exception):
    """dll_bundles 全体の基底例外."""


class ResolutionError(DllBundlesError):
    """パッケージの場所（モジュール名/パス）を解決できない場合の例外.

    Attributes:
        path: 解決対象の場所識別子
        context: 解決の起点ディレクトリ
    """

    def __init__(self, path: str, context: Path | str | None = None, detail: str | None = None) -> None:
        self.path = path
        self.context = context
        message = f"Cannot resolve '{path}'"
        if context is not None:
            message += f" from {context}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ManifestError(DllBundlesError):
    """package.json が見つからない/壊れている/必須フィールドが無い場合の例外.

    Attributes:
        manifest_path: 対象マニフェストのパス（見つからない場合は None）
        reason: 失敗理由
    """

    def __init__(self, reason: str, manifest_path: Path | None = None) -> None:
        self.reason = reason
        self.manifest_path = manifest_path
        if manifest_path is None:
            super().__init__(f"Invalid package.json: {reason}")
        else:
            super().__init__(f"Invalid package.json ({manifest_path}): {reason}")


class NameMismatchError(DllBundlesError):
    """マニフェストの name が設定上の name と一致しない場合の例外.

    設定ミス（name に対して誤った path を指定した等）を示します。
    """

    def __init__(self, expected: str, found: str, manifest_path: Path | None = None) -> None:
        self.expected = expected
        self.found = found
        self.manifest_path = manifest_path
        super().__init__(f"Package name mismatch, expected '{expected}' but found '{found}'")


class AggregateCheckError(DllBundlesError):
    """strictモードでエラーパッケージが1件以上ある場合にチェック全体を失敗させる例外.

    Attributes:
        errors: (パッケージ名, 例外) のリスト（宣言順）
    """

    def __init__(self, errors: list[tuple[str, Exception]]) -> None:
        self.errors = errors
        lines = [f"  - {name}: {err}" for name, err in errors]
        message = f"DllBundles: {len(errors)} package(s) have errors:\n" + "\n".join(lines)
        super().__init__(message)

    @property
    def package_names(self) -> list[str]:
        return [name for name, _ in self.errors]


class StateFileError(DllBundlesError, ValueError):
    """永続化された状態ファイルが不正な場合の例外（空状態へのリセットはしない）."""

    def __init__(self, state_path: Path, reason: str) -> None:
        self.state_path = state_path
        self.reason = reason
        super().__init__(f"Invalid bundle state file {state_path}: {reason}")


class BundleBuildError(DllBundlesError):
    """外部ビルドが失敗した場合の例外."""

    def __init__(self, bundle_names: list[str], detail: str | None = None) -> None:
        self.bundle_names = bundle_names
        message = f"Bundle build failed for: {', '.join(bundle_names)}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class ConfigError(DllBundlesError, ValueError):
    """設定が不正な場合の例外."""
