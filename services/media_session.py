"""
Windows Media Session API로 현재 재생 중인 미디어 정보를 가져옵니다.
로그 기반 상태를 교차 확인하는 참고용 소스이며, Windows 에서만 동작합니다.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from winsdk.windows.media.control import (
    GlobalSystemMediaTransportControlsSessionManager as MediaManager,
    GlobalSystemMediaTransportControlsSessionPlaybackStatus as PlaybackStatus,
)

from core.constants import CLOUDMUSIC_APP_IDS
from core.models import MediaInfo

logger = logging.getLogger(__name__)

# 이벤트 루프 캐시 (매 호출마다 새 루프 생성 비용 절감)
_cached_loop: Optional[asyncio.AbstractEventLoop] = None


def _get_or_create_loop() -> asyncio.AbstractEventLoop:
    global _cached_loop
    if _cached_loop is None or _cached_loop.is_closed():
        _cached_loop = asyncio.new_event_loop()
    return _cached_loop


def _calculate_position_ms(session, playing: bool) -> int:
    """타임라인 위치 + 재생 중이면 마지막 갱신 이후 경과 시간"""
    timeline = session.get_timeline_properties()
    position = int(timeline.position.total_seconds() * 1000)

    if playing:
        last_updated = getattr(timeline, "last_updated_time", None)
        if last_updated:
            diff = (datetime.now(timezone.utc) - last_updated).total_seconds()
            if diff > 0:
                position += int(diff * 1000)

    return position


async def _get_current_media_async() -> Optional[MediaInfo]:
    manager = await MediaManager.request_async()
    session = manager.get_current_session()
    if session is None:
        return None

    media_props = await session.try_get_media_properties_async()
    if media_props is None:
        return None

    playing = session.get_playback_info().playback_status == PlaybackStatus.PLAYING
    timeline = session.get_timeline_properties()

    return MediaInfo(
        title=media_props.title or "",
        artist=media_props.artist or "",
        album=media_props.album_title or "",
        source_app=session.source_app_user_model_id or "Unknown",
        position_ms=_calculate_position_ms(session, playing),
        duration_ms=int(timeline.end_time.total_seconds() * 1000),
        playing=playing,
    )


def get_current_media() -> Optional[MediaInfo]:
    """현재 미디어 세션 정보 (실패 시 None)"""
    try:
        loop = _get_or_create_loop()
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(_get_current_media_async())
    except Exception as e:
        logger.debug(f"[MediaSession] 조회 실패: {e}")
        return None


def is_cloudmusic(media: MediaInfo) -> bool:
    """CloudMusic 의 세션인지 확인 (앱 ID 기반)"""
    source_lower = media.source_app.lower()
    return any(app_id in source_lower for app_id in CLOUDMUSIC_APP_IDS)
