"""Unit tests for metadata collection."""

import threading
from pathlib import Path

from dll_bundles.core.collector import collect_metadata, flatten_bundles
from dll_bundles.core.exceptions import ManifestError, ResolutionError
from dll_bundles.core.models import BundleDefinition, PackageMetadata, PackageReference


def _bundles() -> list[BundleDefinition]:
    return [
        BundleDefinition(
            name="polyfills",
            packages=(
                PackageReference("core-js", "core-js"),
                PackageReference("zone.js", "zone.js/dist/zone"),
            ),
        ),
        BundleDefinition(name="vendors", packages=(PackageReference("react", "react"),)),
    ]


class TestFlattenBundles:
    """flatten_bundles関数のテスト."""

    def test_preserves_declaration_order(self) -> None:
        """宣言順・バンドル名・宣言名を保持すること."""
        descriptors = flatten_bundles(_bundles())

        assert [(d.bundle, d.name, d.path) for d in descriptors] == [
            ("polyfills", "core-js", "core-js"),
            ("polyfills", "zone.js", "zone.js/dist/zone"),
            ("vendors", "react", "react"),
        ]
        assert all(d.version is None and d.error is None for d in descriptors)


class TestCollectMetadata:
    """collect_metadata関数のテスト."""

    def test_all_resolved(self, tmp_path: Path) -> None:
        """全件解決できた場合は version が設定されること."""

        def resolver(path: str, name: str, context: Path) -> PackageMetadata:
            assert context == tmp_path
            return PackageMetadata(name=name, version=f"{name}-1.0.0")

        descriptors = collect_metadata(_bundles(), tmp_path, resolver=resolver)

        assert [d.version for d in descriptors] == ["core-js-1.0.0", "zone.js-1.0.0", "react-1.0.0"]
        assert not any(d.is_errored for d in descriptors)

    def test_failure_does_not_abort_siblings(self, tmp_path: Path) -> None:
        """1件の失敗は他の解決を止めず、error に格納されること."""
        failure = ManifestError("missing 'name' or 'version'")

        def resolver(path: str, name: str, context: Path) -> PackageMetadata:
            if name == "zone.js":
                raise failure
            return PackageMetadata(name=name, version="2.0.0")

        descriptors = collect_metadata(_bundles(), tmp_path, resolver=resolver)

        assert len(descriptors) == 3
        assert descriptors[0].version == "2.0.0"
        assert descriptors[1].error is failure
        assert descriptors[1].version is None
        assert descriptors[2].version == "2.0.0"

    def test_unexpected_exception_is_contained(self, tmp_path: Path) -> None:
        """想定外の例外も descriptor 単位で保持されること."""

        def resolver(path: str, name: str, context: Path) -> PackageMetadata:
            raise RuntimeError("boom")

        descriptors = collect_metadata(_bundles(), tmp_path, resolver=resolver)

        assert all(isinstance(d.error, RuntimeError) for d in descriptors)

    def test_resolutions_run_concurrently(self, tmp_path: Path) -> None:
        """全タスクが互いを待たずに同時に起動されること."""
        barrier = threading.Barrier(3, timeout=5)

        def resolver(path: str, name: str, context: Path) -> PackageMetadata:
            # 直列実行なら Barrier が揃わずタイムアウトする
            barrier.wait()
            return PackageMetadata(name=name, version="1.0.0")

        descriptors = collect_metadata(_bundles(), tmp_path, max_workers=3, resolver=resolver)

        assert [d.version for d in descriptors] == ["1.0.0", "1.0.0", "1.0.0"]

    def test_timeout(self, tmp_path: Path) -> None:
        """タイムアウトしたパッケージは ResolutionError になること."""
        release = threading.Event()

        def resolver(path: str, name: str, context: Path) -> PackageMetadata:
            if name == "core-js":
                release.wait(5)
            return PackageMetadata(name=name, version="1.0.0")

        try:
            descriptors = collect_metadata(_bundles(), tmp_path, timeout=0.2, resolver=resolver)
        finally:
            release.set()

        assert isinstance(descriptors[0].error, ResolutionError)
        assert "timed out" in str(descriptors[0].error)
        assert descriptors[0].version is None
        assert descriptors[1].version == "1.0.0"
        assert descriptors[2].version == "1.0.0"

    def test_queued_task_reported_as_not_started(self, tmp_path: Path) -> None:
        """ワーカーが塞がって開始できなかったタスクは not started として報告されること."""
        release = threading.Event()

        def resolver(path: str, name: str, context: Path) -> PackageMetadata:
            if name == "core-js":
                release.wait(5)
            return PackageMetadata(name=name, version="1.0.0")

        try:
            descriptors = collect_metadata(_bundles(), tmp_path, max_workers=1, timeout=0.2, resolver=resolver)
        finally:
            release.set()

        assert "timed out" in str(descriptors[0].error)
        assert all("not started" in str(d.error) for d in descriptors[1:])
        assert all(d.version is None for d in descriptors)

    def test_empty_bundles(self, tmp_path: Path) -> None:
        """バンドルが無ければ空リストを返すこと."""
        assert collect_metadata([], tmp_path) == []
