"""チェック → リビルド → 状態保存の一連の処理."""

from __future__ import annotations

from loguru import logger

from dll_bundles.builder import BundleBuilder, bundle_entries
from dll_bundles.control import DllBundlesControl
from dll_bundles.core.exceptions import BundleBuildError
from dll_bundles.core.models import BundleDefinition


def run_bundles(
    control: DllBundlesControl,
    builder: BundleBuilder,
    *,
    force: bool = False,
) -> list[BundleDefinition]:
    """リビルドが必要なバンドルをビルドし、成功したら状態を保存する.

    ビルドが失敗した場合は状態を保存しないため、次回も同じバンドルがリビルド対象になる。

    Args:
        control: チェック/保存の窓口
        builder: 外部ビルドの実行者
        force: True の場合はチェック結果に関係なく全バンドルをリビルドする

    Returns:
        リビルドしたバンドル（不要だった場合は空リスト）

    Raises:
        AggregateCheckError: strictモードでエラーパッケージがある場合
        BundleBuildError: 外部ビルドが失敗した場合
    """
    if force:
        logger.info("DLL: Force rebuild enabled")
        bundles = list(control.bundles)
    else:
        logger.info("DLL: Checking if DLLs are valid.")
        bundles = control.check_bundles()

    if not bundles:
        logger.info("DLL: All DLLs are valid.")
        return []

    logger.info(f"DLL: Rebuilding {', '.join(b.name for b in bundles)}...")
    if not builder.build(bundles, bundle_entries(control.bundles)):
        raise BundleBuildError([b.name for b in bundles])

    control.save_bundle_state()
    logger.info("DLL: Bundling done, all DLLs are valid.")
    return bundles
