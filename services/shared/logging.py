"""Shared — ロギング設定"""

import logging
import sys

from .config import get_settings


def setup_logging() -> None:
    """
    プロセス全体のロギングを設定する。各サービスの lifespan 開始時に1回呼ぶ。
    settings.debug が True なら DEBUG (キャッシュの HIT/MISS も出る)、それ以外は INFO。
    """
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
