"""
앱 조립 및 실행 진입점.
설정을 읽어 감지기를 조립하고, 콘솔에 현재 재생 상태를 출력합니다.
"""

import logging
import os
import sys
import time
from typing import Optional

# 프로젝트 루트를 sys.path에 추가 (패키지 임포트 지원)
_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

from core.constants import STATUS_PRINT_INTERVAL_MS
from core.errors import LogNotFoundError
from core.logger import setup_logger
from services.log_tailer import LogTailer
from services.playback_detector import PlaybackDetector
from services.webdb import WebDB
from settings.settings_manager import SettingsManager

# 선택적 모듈 (Windows 전용)
try:
    from services.media_session import get_current_media, is_cloudmusic
    MEDIA_SESSION_AVAILABLE = True
except ImportError:
    MEDIA_SESSION_AVAILABLE = False

logger = logging.getLogger(__name__)


def format_status(detector: PlaybackDetector) -> str:
    """한 줄 상태 문자열"""
    status = detector.status
    if not status.available:
        return "⏹ 재생 정보 없음"

    icon = "▶" if status.playing else "⏸"
    title = f"id={status.id}"
    if status.detail:
        title = f"{status.detail.name} - {', '.join(status.detail.artist_names)}"

    total = int(status.duration)
    return f"{icon} {title} [{status.position_str} / {total // 60:02d}:{total % 60:02d}]"


def _corroborate(detector: PlaybackDetector) -> None:
    """미디어 세션의 재생 상태와 로그 기반 상태 비교 (참고용)"""
    media = get_current_media()
    if media is None or not is_cloudmusic(media):
        return

    status = detector.status
    if status.available and media.playing != status.playing:
        logger.info(
            f"[MediaSession] 재생 상태 불일치: 로그={status.playing} 세션={media.playing}"
        )


def create_and_run(settings_path: Optional[str] = None) -> int:
    """앱 생성 및 실행. 종료 코드 반환"""

    # ── 1. 설정 / 로깅 ─────────────────────────────────────────────────────────
    settings = SettingsManager(settings_path) if settings_path else SettingsManager()
    level = getattr(logging, str(settings.get("log_level", "INFO")).upper(), logging.INFO)
    setup_logger(level=level)
    settings.write_template()
    logger.debug(f"[앱] 설정: {settings.get_all()}")

    # ── 2. 서비스 생성 ─────────────────────────────────────────────────────────
    tailer = LogTailer(settings.get("elog_path"), int(settings.get("poll_interval_ms")))
    webdb = WebDB(settings.get("webdb_path")) if settings.get("use_webdb") else None
    detector = PlaybackDetector(tailer=tailer, webdb=webdb)

    use_media_session = MEDIA_SESSION_AVAILABLE and settings.get("use_media_session", True)

    # ── 3. 콜백 등록 ───────────────────────────────────────────────────────────
    detector.on_track_change(lambda song_id: print(format_status(detector), flush=True))
    detector.on_status_change(lambda playing: print(format_status(detector), flush=True))
    detector.on_position_change(lambda position: print(format_status(detector), flush=True))

    # ── 4. 시작 ────────────────────────────────────────────────────────────────
    try:
        detector.start()
    except LogNotFoundError as e:
        logger.error(f"[앱] {e}")
        return 1

    print(format_status(detector), flush=True)

    # ── 5. 메인 루프 ───────────────────────────────────────────────────────────
    try:
        while True:
            time.sleep(STATUS_PRINT_INTERVAL_MS / 1000)
            print(format_status(detector), flush=True)
            if use_media_session:
                _corroborate(detector)
    except KeyboardInterrupt:
        pass
    finally:
        detector.stop()
        if webdb:
            webdb.close()

    return 0


def main() -> None:
    settings_path = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(create_and_run(settings_path))


if __name__ == "__main__":
    main()
