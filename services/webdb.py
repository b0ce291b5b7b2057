"""
CloudMusic 로컬 DB(webdb.dat) 에서 최근 재생 곡 정보를 조회합니다.
로그에 곡 정보가 부족할 때만 참고용으로 사용하며, 실패해도 상태 복원에는 영향이 없습니다.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from core.constants import CLOUDMUSIC_WEBDB_PATH
from core.models import TrackDetail

logger = logging.getLogger(__name__)


class WebDB:
    """historyTracks 테이블 읽기 전용 조회"""

    _QUERY_LATEST_TRACK = """
        SELECT playtime, jsonStr
        FROM historyTracks
        ORDER BY playtime DESC
        LIMIT 1
    """

    def __init__(self, db_path: str = CLOUDMUSIC_WEBDB_PATH) -> None:
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            # 대상 앱이 쓰는 중에도 읽을 수 있도록 읽기 전용으로 연결
            uri = Path(self._db_path).resolve().as_uri() + "?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        return self._conn

    def get_track_detail(self, song_id: int) -> Optional[TrackDetail]:
        """
        가장 최근 재생 기록의 곡 정보 반환

        Returns:
            기록의 곡 ID 가 song_id 와 같으면 TrackDetail, 다르거나 조회 실패 시 None
        """
        try:
            row = self._connect().execute(self._QUERY_LATEST_TRACK).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"[WebDB] 조회 실패: {e}")
            self.close()
            return None

        if row is None:
            return None

        try:
            detail = TrackDetail.from_dict(json.loads(row[1]))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"[WebDB] 곡 정보 파싱 실패: {e}")
            return None

        if detail.id != song_id:
            logger.debug(f"[WebDB] 최근 기록 불일치 (기대 {song_id}, 기록 {detail.id})")
            return None

        return detail

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.debug(f"[WebDB] 연결 종료 실패: {e}")
            self._conn = None
