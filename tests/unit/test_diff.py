"""Unit tests for bundle state comparison."""

from dll_bundles.core.diff import analyze_state
from dll_bundles.core.exceptions import ResolutionError
from dll_bundles.core.models import PackageDescriptor, StateEntry


def _pkg(name: str, version: str | None = "1.0.0", bundle: str = "b", path: str | None = None) -> PackageDescriptor:
    return PackageDescriptor(name=name, path=path or name, bundle=bundle, version=version)


def _errored(name: str, bundle: str = "b") -> PackageDescriptor:
    return PackageDescriptor(name=name, path=name, bundle=bundle, error=ResolutionError(name))


def _names(descriptors: list[PackageDescriptor]) -> list[str]:
    return [d.name for d in descriptors]


class TestAnalyzeState:
    """analyze_state関数のテスト."""

    def test_empty_state_all_added(self) -> None:
        """前回状態が空なら全パッケージが added になること."""
        result = analyze_state([_pkg("react"), _pkg("rxjs", bundle="v")], {})

        assert _names(result.added) == ["react", "rxjs"]
        assert result.current == result.changed == result.removed == result.errored == []

    def test_version_change(self) -> None:
        """version が異なれば changed になること."""
        state = {"pkgA": StateEntry(bundle="b", version="1.0.0")}

        result = analyze_state([_pkg("pkgA", "2.0.0")], state)

        assert _names(result.changed) == ["pkgA"]
        assert result.current == []
        assert result.removed == []

    def test_same_version_is_current(self) -> None:
        """version が同じなら current になること."""
        state = {"pkgA": StateEntry(bundle="b", version="1.0.0")}

        result = analyze_state([_pkg("pkgA", "1.0.0")], state)

        assert _names(result.current) == ["pkgA"]
        assert result.stale() == []

    def test_removed_package(self) -> None:
        """現在の設定に無いパッケージは removed になり bundle を保持すること."""
        state = {
            "pkgA": StateEntry(bundle="a", version="1.0.0"),
            "pkgB": StateEntry(bundle="b", version="1.0.0"),
        }

        result = analyze_state([_pkg("pkgA", bundle="a")], state)

        assert len(result.removed) == 1
        removed = result.removed[0]
        assert (removed.name, removed.bundle) == ("pkgB", "b")
        assert removed.version is None

    def test_errored_package_consumes_state(self) -> None:
        """エラーのパッケージは errored になり、removed にはならないこと."""
        state = {"pkgA": StateEntry(bundle="b", version="1.0.0")}

        result = analyze_state([_errored("pkgA")], state)

        assert _names(result.errored) == ["pkgA"]
        assert result.removed == []
        assert result.current == []

    def test_errored_package_not_in_state(self) -> None:
        """前回状態に無いエラーパッケージも errored のみに分類されること."""
        result = analyze_state([_errored("pkgA")], {})

        assert _names(result.errored) == ["pkgA"]
        assert result.added == []

    def test_duplicate_name_counted_once_when_added(self) -> None:
        """同名パッケージ（別 path）は added として1回だけ数えること."""
        descriptors = [
            _pkg("pkgC", path="pkgC"),
            _pkg("pkgC", path="pkgC/extra"),
        ]

        result = analyze_state(descriptors, {})

        assert _names(result.added) == ["pkgC"]
        assert result.added[0].path == "pkgC"

    def test_duplicate_name_counted_once_when_current(self) -> None:
        """同名の2件目が added と誤判定されないこと."""
        state = {"pkgC": StateEntry(bundle="b", version="1.0.0")}
        descriptors = [
            _pkg("pkgC", path="pkgC"),
            _pkg("pkgC", path="pkgC/operators"),
        ]

        result = analyze_state(descriptors, state)

        assert _names(result.current) == ["pkgC"]
        assert result.added == []
        assert result.stale() == []

    def test_duplicate_with_different_version_first_wins(self) -> None:
        """重複が別 version に解決されても最初の出現の分類が採用されること."""
        state = {"pkgC": StateEntry(bundle="b", version="1.0.0")}
        descriptors = [
            _pkg("pkgC", "1.0.0", path="pkgC"),
            _pkg("pkgC", "9.9.9", path="nested/pkgC"),
        ]

        result = analyze_state(descriptors, state)

        assert _names(result.current) == ["pkgC"]
        assert result.changed == []
        assert result.added == []

    def test_duplicate_after_error_is_suppressed(self) -> None:
        """エラーの後の同名パッケージは added にならないこと."""
        state = {"pkgC": StateEntry(bundle="b", version="1.0.0")}
        descriptors = [_errored("pkgC"), _pkg("pkgC", path="pkgC/sub")]

        result = analyze_state(descriptors, state)

        assert _names(result.errored) == ["pkgC"]
        assert result.added == []
        assert result.current == []

    def test_name_in_each_list_at_most_once(self) -> None:
        """1回の実行でパッケージ名はいずれか1つのリストにのみ現れること."""
        state = {
            "a": StateEntry(bundle="x", version="1"),
            "b": StateEntry(bundle="x", version="1"),
            "gone": StateEntry(bundle="y", version="1"),
        }
        descriptors = [_pkg("a", "1"), _pkg("b", "2"), _pkg("c"), _errored("d"), _pkg("a", "3")]

        result = analyze_state(descriptors, state)

        names = [d.name for d in result.current + result.changed + result.added + result.removed + result.errored]
        assert sorted(names) == ["a", "b", "c", "d", "gone"]

    def test_does_not_mutate_input_state(self) -> None:
        """引数の状態辞書を変更しないこと."""
        state = {"pkgA": StateEntry(bundle="b", version="1.0.0")}

        analyze_state([_pkg("pkgA", "2.0.0")], state)

        assert state == {"pkgA": StateEntry(bundle="b", version="1.0.0")}

    def test_deterministic(self) -> None:
        """同じ入力に対して同じ結果を返すこと."""
        state = {"a": StateEntry(bundle="x", version="1"), "z": StateEntry(bundle="y", version="1")}
        descriptors = [_pkg("a", "2"), _pkg("c")]

        first = analyze_state(descriptors, state)
        second = analyze_state(descriptors, state)

        assert first == second
        assert first.counts() == {"current": 0, "changed": 1, "added": 1, "removed": 1, "errored": 0}
