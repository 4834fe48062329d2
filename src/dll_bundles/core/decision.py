"""差分とビルド成果物の有無からリビルド対象バンドルを決定する."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .events import BUNDLE_FLAGGED, BUNDLE_INVALID, PACKAGE_ERRORED, CheckEvent, EventSink, log_event
from .exceptions import AggregateCheckError
from .models import BundleDefinition, DiffResult, PackageDescriptor


def bundle_file_name(name: str) -> str:
    return f"{name}.dll.js"


def manifest_file_name(name: str) -> str:
    return f"{name}-manifest.json"


def artifact_paths(dll_dir: Path | str, name: str) -> tuple[Path, Path]:
    """バンドルの成果物パス（<name>.dll.js, <name>-manifest.json）を返す."""
    dll_dir = Path(dll_dir)
    return dll_dir / bundle_file_name(name), dll_dir / manifest_file_name(name)


def bundle_is_invalid(dll_dir: Path | str, name: str) -> bool:
    """成果物のどちらかが存在しなければ True（浅いチェック、内容は見ない）."""
    bundle_js, manifest = artifact_paths(dll_dir, name)
    return not bundle_js.exists() or not manifest.exists()


@dataclass
class RebuildDecision:
    """リビルド判定結果.

    Attributes:
        bundles: リビルドが必要なバンドル（宣言順、重複なし）
        errored: エラーになったパッケージ
        error: strictモードでエラーがあった場合の集約例外（このとき bundles は空）
    """

    bundles: list[BundleDefinition] = field(default_factory=list)
    errored: list[PackageDescriptor] = field(default_factory=list)
    error: AggregateCheckError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def _stale_with_reason(diff: DiffResult) -> list[tuple[str, PackageDescriptor]]:
    return [
        *(("added", pkg) for pkg in diff.added),
        *(("changed", pkg) for pkg in diff.changed),
        *(("removed", pkg) for pkg in diff.removed),
        *(("errored", pkg) for pkg in diff.errored),
    ]


def decide_rebuild(
    diff: DiffResult,
    bundles: Sequence[BundleDefinition],
    is_invalid: Callable[[str], bool],
    *,
    strict: bool = True,
    emit: EventSink = log_event,
) -> RebuildDecision:
    """リビルドが必要なバンドルを決定する.

    以下のいずれかに該当するバンドルが対象:
        (a) 成果物（.dll.js / -manifest.json）のどちらかが無い
        (b) added/changed/removed/errored のパッケージを1つ以上含む

    Args:
        diff: analyze_state() の結果
        bundles: バンドル定義（宣言順）
        is_invalid: バンドル名 -> 成果物が欠けていれば True
        strict: True の場合、エラーパッケージがあれば判定結果を返さず集約エラーにする
        emit: イベントシンク

    Returns:
        RebuildDecision（strictモードでエラーがあれば error が設定され bundles は空）
    """
    for pkg in diff.errored:
        emit(
            CheckEvent(
                kind=PACKAGE_ERRORED,
                message=f"Package '{pkg.name}' ({pkg.path}) in bundle '{pkg.bundle}' has errors: {pkg.error}",
                bundle=pkg.bundle,
                package=pkg.name,
            )
        )

    if diff.errored and strict:
        return RebuildDecision(
            errored=list(diff.errored),
            error=AggregateCheckError([(pkg.name, pkg.error) for pkg in diff.errored]),
        )

    flagged: set[str] = set()
    for bundle in bundles:
        if is_invalid(bundle.name):
            flagged.add(bundle.name)
            emit(
                CheckEvent(
                    kind=BUNDLE_INVALID,
                    message=f"Bundle '{bundle.name}' artifacts are missing",
                    bundle=bundle.name,
                )
            )

    for reason, pkg in _stale_with_reason(diff):
        if pkg.bundle in flagged:
            continue
        flagged.add(pkg.bundle)
        emit(
            CheckEvent(
                kind=BUNDLE_FLAGGED,
                message=f"Bundle '{pkg.bundle}' requires rebuild: '{pkg.name}' {reason}",
                bundle=pkg.bundle,
                package=pkg.name,
            )
        )

    # 設定から消えたバンドル（removed のみに残る名前）は対象外
    selected = [bundle for bundle in bundles if bundle.name in flagged]
    return RebuildDecision(bundles=selected, errored=list(diff.errored))
