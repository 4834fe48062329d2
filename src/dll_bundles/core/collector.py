"""全バンドルのパッケージメタデータ収集.

パッケージ参照ごとに1タスクを並列実行し、全タスクの完了を待つ（join-all）。
1件の失敗は該当 descriptor の error に格納され、他の解決を止めない。
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path

from loguru import logger

from .exceptions import ResolutionError
from .models import BundleDefinition, PackageDescriptor, PackageMetadata
from .resolver import resolve_package

Resolver = Callable[[str, str, Path], PackageMetadata]


def flatten_bundles(bundles: Iterable[BundleDefinition]) -> list[PackageDescriptor]:
    """バンドル定義をパッケージ単位の descriptor リストへ展開する（宣言順を保持）."""
    return [
        PackageDescriptor(name=ref.name, path=ref.path, bundle=bundle.name)
        for bundle in bundles
        for ref in bundle.packages
    ]


def collect_metadata(
    bundles: Iterable[BundleDefinition],
    context: Path | str,
    *,
    max_workers: int | None = None,
    timeout: float | None = None,
    resolver: Resolver = resolve_package,
) -> list[PackageDescriptor]:
    """全パッケージのメタデータを並列に収集する.

    Args:
        bundles: バンドル定義（宣言順）
        context: パッケージ解決の起点ディレクトリ
        max_workers: スレッド数（None の場合は ThreadPoolExecutor の既定値）
        timeout: 1パッケージあたりの待ち時間上限（秒）。None なら無制限
        resolver: 解決関数（テスト用に差し替え可能）

    Returns:
        入力と同じ順序・件数の descriptor リスト。各要素は version か error のどちらかを持つ
    """
    context = Path(context)
    descriptors = flatten_bundles(bundles)
    if not descriptors:
        return descriptors

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dll-resolve")
    try:
        # 全タスクを先に投入してから待つ。タイムアウトは投入時点からの期限で測る
        deadline = time.monotonic() + timeout if timeout is not None else None
        futures: list[Future[PackageMetadata]] = [
            executor.submit(resolver, d.path, d.name, context) for d in descriptors
        ]
        # 結果の書き込みは join 側だけが行う（タイムアウト後に遅れて完了しても上書きしない）
        for descriptor, future in zip(descriptors, futures):
            try:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                descriptor.version = future.result(timeout=remaining).version
            except FutureTimeoutError:
                if future.cancel():
                    detail = f"not started within {timeout}s (all workers busy)"
                else:
                    detail = f"timed out after {timeout}s"
                descriptor.error = ResolutionError(descriptor.path, context, detail)
            except Exception as e:
                descriptor.error = e
    finally:
        # タイムアウトしたタスクの完了は待たない
        executor.shutdown(wait=timeout is None, cancel_futures=True)

    failed = [d for d in descriptors if d.is_errored]
    for d in failed:
        logger.warning(f"Failed to resolve {d.name} ({d.path}) in bundle '{d.bundle}': {d.error}")
    logger.info(f"Collected metadata for {len(descriptors)} packages ({len(failed)} failed)")
    return descriptors
