"""
디코딩된 로그 한 줄을 레코드로 해석하는 모듈.
헤더(pid, tid, 타임스탬프 등) 추출과 레코드 종류 분류, 종류별 페이로드 파싱을 담당합니다.
"""

import json
import logging
import re
from typing import Callable, Optional

import psutil

from core.constants import (
    ELOG_EXIT_MARKER,
    ELOG_SET_PLAYING_MARKER,
    ELOG_SET_PLAYING_POSITION_MARKER,
    ELOG_SET_PLAYING_STATUS_MARKER,
)
from core.models import LogHeader, LogRecord, RecordKind, RecordPayload, TrackDetail

logger = logging.getLogger(__name__)


def get_boot_time_ms() -> float:
    """OS 부팅 시각 (epoch ms). 현재 시각 - 업타임과 같음"""
    return psutil.boot_time() * 1000


class RecordGrammar:
    """cloudmusic.elog 레코드 문법"""

    # [pid:tid:MMDD/HHMMSS:offset:LEVEL:source(line)] [YYYY-MM-DD HH:MM:SS]
    _HEADER_PATTERN = re.compile(
        r"^\[(\d+):(\d+):(\d{4}/\d{6}:\d+):([A-Z]+):([a-zA-Z0-9._-]+)\((\d+)\)\]"
        r"\s+\[(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\]"
    )

    # 줄 끝에 붙은 JSON 객체
    _JSON_PATTERN = re.compile(r"\{.*\}$")
    _POSITION_PATTERN = re.compile(
        re.escape(ELOG_SET_PLAYING_POSITION_MARKER) + r",(\d+(?:\.\d+)?)"
    )
    _STATUS_PATTERN = re.compile(re.escape(ELOG_SET_PLAYING_STATUS_MARKER) + r",(\d+),")

    def __init__(self, boot_time_fn: Optional[Callable[[], float]] = None) -> None:
        """
        Args:
            boot_time_fn: 부팅 시각(epoch ms)을 반환하는 함수 (테스트에서 고정값 주입)
        """
        self._boot_time_fn = boot_time_fn or get_boot_time_ms

        # 먼저 일치하는 규칙이 우선
        self._rules: list[tuple[RecordKind, str, Callable[[str], RecordPayload]]] = [
            (RecordKind.EXIT, ELOG_EXIT_MARKER, self._parse_exit),
            (RecordKind.SET_PLAYING, ELOG_SET_PLAYING_MARKER, self._parse_track),
            (RecordKind.SET_PLAYING_POSITION, ELOG_SET_PLAYING_POSITION_MARKER, self._parse_position),
            (RecordKind.SET_PLAYING_STATUS, ELOG_SET_PLAYING_STATUS_MARKER, self._parse_status),
        ]

    # ── 공개 API ──────────────────────────────────────────────────────────────

    def parse_header(self, line: str) -> Optional[LogHeader]:
        """로그 헤더 추출. 헤더 형식이 아니면 (줄바꿈된 이어진 텍스트 등) None"""
        match = self._HEADER_PATTERN.match(line)
        if not match:
            return None

        pid, tid, raw_timestamp, level, source, source_line, datetime_str = match.groups()

        # MMDD/HHMMSS:offset 의 offset 은 프로세스 기준 상대값(ms)이라 부팅 시각을 더해 복원
        relative_ms = int(raw_timestamp.split(":")[1])
        timestamp = int(relative_ms + self._boot_time_fn())

        return LogHeader(
            pid=pid,
            tid=tid,
            raw_timestamp=raw_timestamp,
            timestamp=timestamp,
            level=level,
            source=source,
            source_line=source_line,
            datetime=datetime_str,
        )

    def classify(self, line: str) -> Optional[RecordKind]:
        """레코드 종류 판별 (해당 없으면 None)"""
        for kind, marker, _ in self._rules:
            if marker in line:
                return kind
        return None

    def parse(self, line: str) -> Optional[LogRecord]:
        """
        한 줄을 LogRecord 로 변환

        Returns:
            헤더와 종류가 모두 인식된 경우 LogRecord, 아니면 None.
            페이로드 추출에 실패한 레코드는 payload=None 으로 반환됩니다.
        """
        line = line.strip()
        if not line:
            return None

        header = self.parse_header(line)
        if header is None:
            return None

        for kind, marker, parse_payload in self._rules:
            if marker in line:
                return LogRecord(header=header, kind=kind, payload=parse_payload(line))

        return None

    # ── 페이로드 파서 ─────────────────────────────────────────────────────────

    @staticmethod
    def _parse_exit(line: str) -> bool:
        return True

    def _parse_track(self, line: str) -> Optional[TrackDetail]:
        """setPlaying 뒤의 JSON 에서 trackIn.track 추출"""
        match = self._JSON_PATTERN.search(line)
        if not match:
            return None

        try:
            data = json.loads(match.group(0))
            return TrackDetail.from_dict(data["trackIn"]["track"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.debug(f"[Grammar] setPlaying 페이로드 파싱 실패: {e}")
            return None

    def _parse_position(self, line: str) -> Optional[float]:
        match = self._POSITION_PATTERN.search(line)
        return float(match.group(1)) if match else None

    def _parse_status(self, line: str) -> Optional[int]:
        match = self._STATUS_PATTERN.search(line)
        return int(match.group(1)) if match else None
