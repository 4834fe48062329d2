"""チェック中に発生するイベント通知.

判定ロジックはイベントを emit するだけで、表示（ログ出力）はシンク側が担当します。
テストでは list.append をシンクとして渡してイベントを収集できます。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

PACKAGE_ERRORED = "package_errored"
BUNDLE_INVALID = "bundle_invalid"
BUNDLE_FLAGGED = "bundle_flagged"


@dataclass(frozen=True)
class CheckEvent:
    kind: str
    message: str
    bundle: str | None = None
    package: str | None = None


EventSink = Callable[[CheckEvent], None]


def log_event(event: CheckEvent) -> None:
    """デフォルトのイベントシンク（loguruへ出力）."""
    if event.kind == PACKAGE_ERRORED:
        logger.error(f"DLL: {event.message}")
    else:
        logger.info(f"DLL: {event.message}")
