"""バンドルの鮮度チェックと状態保存の窓口."""

from __future__ import annotations

from loguru import logger

from dll_bundles.config import DllBundlesOptions
from dll_bundles.core.collector import Resolver, collect_metadata
from dll_bundles.core.decision import RebuildDecision, bundle_is_invalid, decide_rebuild
from dll_bundles.core.diff import analyze_state
from dll_bundles.core.events import EventSink, log_event
from dll_bundles.core.models import BundleDefinition, DiffResult, PackageDescriptor
from dll_bundles.core.resolver import resolve_package
from dll_bundles.core.state import BundleStateStore


class DllBundlesControl:
    """設定されたバンドルのリビルド要否を判定し、ビルド成功後に状態を保存する.

    check_bundles() → (外部ビルド成功) → save_bundle_state() の順で呼び出す。
    load と save が並行して呼ばれることは想定しない。
    """

    def __init__(
        self,
        options: DllBundlesOptions,
        *,
        emit: EventSink = log_event,
        resolver: Resolver = resolve_package,
    ) -> None:
        self.options = options
        self.store = BundleStateStore(options.dll_dir)
        self._emit = emit
        self._resolver = resolver

    @property
    def bundles(self) -> tuple[BundleDefinition, ...]:
        return self.options.bundles

    def get_metadata(self) -> list[PackageDescriptor]:
        """全バンドルのパッケージメタデータを収集する."""
        return collect_metadata(
            self.bundles,
            self.options.context,
            max_workers=self.options.max_workers,
            timeout=self.options.resolve_timeout,
            resolver=self._resolver,
        )

    def analyze_state(self) -> tuple[list[PackageDescriptor], DiffResult]:
        """現在のメタデータと前回ビルド状態の差分を求める.

        Raises:
            StateFileError: 状態ファイルが不正な場合
        """
        descriptors = self.get_metadata()
        return descriptors, analyze_state(descriptors, self.store.load())

    def decide(self) -> RebuildDecision:
        """リビルド判定を行う（strictモードのエラーも例外にせず結果に含める）."""
        _, diff = self.analyze_state()
        return decide_rebuild(
            diff,
            self.bundles,
            lambda name: bundle_is_invalid(self.options.dll_dir, name),
            strict=self.options.strict,
            emit=self._emit,
        )

    def check_bundles(self) -> list[BundleDefinition]:
        """リビルドが必要なバンドルを返す.

        Returns:
            リビルド対象のバンドル定義（宣言順）

        Raises:
            AggregateCheckError: strictモードでエラーパッケージがある場合
        """
        decision = self.decide()
        decision.raise_for_error()
        return decision.bundles

    def save_bundle_state(self, descriptors: list[PackageDescriptor] | None = None) -> dict:
        """メタデータを収集し直して状態ファイルに保存する.

        Args:
            descriptors: 収集済みの descriptor（省略時はここで収集する）

        Returns:
            保存した状態
        """
        if descriptors is None:
            descriptors = self.get_metadata()
        skipped = sum(1 for d in descriptors if d.is_errored)
        if skipped:
            logger.warning(f"{skipped} errored packages are not saved and will be rebuilt on the next check")
        return self.store.save(descriptors)
