"""
전역 상수 모음.
경로, 로그 레코드 마커, 폴링 주기 등 여러 모듈에서 공유하는 값을 정의합니다.
"""

import os


def get_local_app_data_path() -> str:
    """%LOCALAPPDATA% 경로 반환 (환경변수가 없으면 홈 디렉터리 기준)"""
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        return local_app_data
    return os.path.join(os.path.expanduser("~"), "AppData", "Local")


# ── 대상 앱 경로 ──────────────────────────────────────────────────────────────

CLOUDMUSIC_DIR = os.path.join(get_local_app_data_path(), "NetEase", "CloudMusic")
CLOUDMUSIC_ELOG_PATH = os.path.join(CLOUDMUSIC_DIR, "cloudmusic.elog")
CLOUDMUSIC_WEBDB_PATH = os.path.join(CLOUDMUSIC_DIR, "Library", "webdb.dat")

# 미디어 세션의 source_app_user_model_id 에 포함되는 문자열
CLOUDMUSIC_APP_IDS = ("cloudmusic", "netease")


# ── 로그 레코드 마커 ──────────────────────────────────────────────────────────

ELOG_EXIT_MARKER = '【app】,{"actionId":"exitApp"}'
ELOG_SET_PLAYING_MARKER = '【playing】,"setPlaying"'
ELOG_SET_PLAYING_POSITION_MARKER = '【playing】,"setPlayingPosition"'
ELOG_SET_PLAYING_STATUS_MARKER = '【playing】,"native播放state"'

# native播放state 상태 코드
STATUS_PLAYING = 1
STATUS_PAUSED = 2


# ── 폴링 / 읽기 ───────────────────────────────────────────────────────────────

POLL_INTERVAL_MS = 300
STATUS_PRINT_INTERVAL_MS = 1000
