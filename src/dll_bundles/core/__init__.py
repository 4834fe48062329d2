"""DLLバンドルの鮮度判定コア.

- パッケージ解決（参照 → package.json の name/version）
- メタデータ収集（並列、パッケージ単位でエラーを保持）
- 前回ビルド状態との差分（current/changed/added/removed/errored）
- リビルド対象バンドルの決定
"""

from .collector import collect_metadata, flatten_bundles
from .decision import RebuildDecision, artifact_paths, bundle_is_invalid, decide_rebuild
from .diff import analyze_state
from .exceptions import (
    AggregateCheckError,
    DllBundlesError,
    ManifestError,
    NameMismatchError,
    ResolutionError,
    StateFileError,
)
from .models import BundleDefinition, DiffResult, PackageDescriptor, PackageReference, StateEntry
from .resolver import resolve_package
from .state import BUNDLE_STATE_FILENAME, BundleStateStore

__all__ = [
    "collect_metadata",
    "flatten_bundles",
    "resolve_package",
    "analyze_state",
    "decide_rebuild",
    "bundle_is_invalid",
    "artifact_paths",
    "RebuildDecision",
    "BundleStateStore",
    "BUNDLE_STATE_FILENAME",
    "BundleDefinition",
    "PackageReference",
    "PackageDescriptor",
    "StateEntry",
    "DiffResult",
    "DllBundlesError",
    "ResolutionError",
    "ManifestError",
    "NameMismatchError",
    "AggregateCheckError",
    "StateFileError",
]
