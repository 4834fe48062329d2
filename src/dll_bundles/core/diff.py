"""現在のパッケージ情報と前回ビルド状態の差分検出."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from loguru import logger

from .models import DiffResult, PackageDescriptor, StateEntry


def analyze_state(
    descriptors: Iterable[PackageDescriptor],
    persisted: Mapping[str, StateEntry],
) -> DiffResult:
    """現在の descriptor（宣言順）と永続化状態を比較して5分類する.

    引数の persisted は変更しない（作業用コピーを使う）。

    分類規則（宣言順に処理）:
        - error あり: errored。永続化状態にあれば取り除く（存在を確認できないため）
        - 永続化状態にある: version が同じなら current、違えば changed。取り除く
        - 永続化状態に無い: 同じ名前を既に処理済みならスキップ、そうでなければ added

    同名パッケージは最初の出現が分類を持ち、以降の重複は数えない。
    最後まで残った永続化エントリは removed（name と bundle のみ）になる。

    Args:
        descriptors: 収集済みの descriptor リスト
        persisted: 前回ビルド時の状態（パッケージ名 -> StateEntry）

    Returns:
        DiffResult
    """
    result = DiffResult()
    remaining = dict(persisted)
    reconciled: set[str] = set()

    for pkg in descriptors:
        if pkg.is_errored:
            result.errored.append(pkg)
            remaining.pop(pkg.name, None)
            reconciled.add(pkg.name)
        elif pkg.name in remaining:
            if remaining[pkg.name].version == pkg.version:
                result.current.append(pkg)
            else:
                result.changed.append(pkg)
            del remaining[pkg.name]
            reconciled.add(pkg.name)
        elif pkg.name not in reconciled:
            # 同じ name を別 path で複数指定した場合、2件目以降は added にしない
            result.added.append(pkg)
            reconciled.add(pkg.name)

    result.removed = [
        PackageDescriptor(name=name, path=name, bundle=entry.bundle) for name, entry in remaining.items()
    ]

    counts = result.counts()
    logger.info(
        f"State comparison: {counts['changed']} changed, {counts['added']} added, "
        f"{counts['removed']} removed, {counts['errored']} errored, {counts['current']} current"
    )
    return result
