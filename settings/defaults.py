"""
기본 설정값 상수.
SettingsManager 에서 임포트하며, settings.json 에 없는 키는 이 값을 사용합니다.
"""

from typing import Any

from core.constants import CLOUDMUSIC_ELOG_PATH, CLOUDMUSIC_WEBDB_PATH, POLL_INTERVAL_MS

DEFAULT_SETTINGS: dict[str, Any] = {
    "elog_path": CLOUDMUSIC_ELOG_PATH,
    "webdb_path": CLOUDMUSIC_WEBDB_PATH,
    "poll_interval_ms": POLL_INTERVAL_MS,
    "use_webdb": False,
    "use_media_session": True,
    "log_level": "INFO",
}
