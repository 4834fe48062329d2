"""バンドル/パッケージのデータモデル."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .exceptions import ConfigError


@dataclass(frozen=True)
class PackageReference:
    """設定上のパッケージ参照.

    path はモジュール名またはファイルの場所。文字列だけで指定された場合は name = path。
    """

    name: str
    path: str

    @classmethod
    def from_config(cls, value: str | Mapping) -> PackageReference:
        """設定値（文字列 or {name, path}）から参照を作る.

        Raises:
            ConfigError: 形式が不正な場合
        """
        if isinstance(value, str):
            if not value:
                raise ConfigError("Package reference must not be empty")
            return cls(name=value, path=value)
        if isinstance(value, Mapping):
            name = value.get("name")
            if not isinstance(name, str) or not name:
                raise ConfigError(f"Package reference requires a 'name': {dict(value)}")
            path = value.get("path") or name
            if not isinstance(path, str):
                raise ConfigError(f"Package reference 'path' must be a string: {dict(value)}")
            return cls(name=name, path=path)
        raise ConfigError(f"Invalid package reference: {value!r}")


@dataclass(frozen=True)
class PackageMetadata:
    name: str
    version: str


@dataclass
class PackageDescriptor:
    """1回のチェックで生成されるパッケージ情報.

    完了時には version か error のどちらか一方だけが設定される。
    """

    name: str
    path: str
    bundle: str
    version: str | None = None
    error: Exception | None = None

    @property
    def is_errored(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class BundleDefinition:
    name: str
    packages: tuple[PackageReference, ...] = ()

    def entry_paths(self) -> list[str]:
        return [p.path for p in self.packages]


@dataclass(frozen=True)
class StateEntry:
    bundle: str
    version: str


PersistedState = dict[str, StateEntry]


@dataclass
class DiffResult:
    """前回ビルド状態との差分（5分類）."""

    current: list[PackageDescriptor] = field(default_factory=list)
    changed: list[PackageDescriptor] = field(default_factory=list)
    added: list[PackageDescriptor] = field(default_factory=list)
    removed: list[PackageDescriptor] = field(default_factory=list)
    errored: list[PackageDescriptor] = field(default_factory=list)

    def stale(self) -> list[PackageDescriptor]:
        """リビルド要因となるパッケージ（added/changed/removed/errored）."""
        return [*self.added, *self.changed, *self.removed, *self.errored]

    def counts(self) -> dict[str, int]:
        return {
            "current": len(self.current),
            "changed": len(self.changed),
            "added": len(self.added),
            "removed": len(self.removed),
            "errored": len(self.errored),
        }
