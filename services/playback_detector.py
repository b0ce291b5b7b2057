"""
cloudmusic.elog 로부터 현재 재생 상태를 복원하는 모듈.

1단계: 시작 시 과거 로그를 역방향으로 훑어 마지막 곡 변경(setPlaying) 지점을 찾고,
       그 이후의 탐색/재생상태 이벤트를 순서대로 적용해 현재 위치를 계산합니다.
2단계: 이후 새로 추가되는 줄을 하나씩 적용하며 상태 변경을 콜백으로 알립니다.
"""

import dataclasses
import logging
import queue
import threading
import time
from typing import Any, Callable, Optional

from core.constants import STATUS_PAUSED, STATUS_PLAYING
from core.models import (
    DetectorStatus,
    LogRecord,
    PlaybackState,
    RecordKind,
    TrackDetail,
)
from services.log_tailer import LogTailer
from services.record_grammar import RecordGrammar
from services.webdb import WebDB

logger = logging.getLogger(__name__)

# (알림 대상 콜백 목록, 전달 값)
_Notification = Optional[tuple[list, Any]]


def _now_ms() -> float:
    return time.time() * 1000


class PlaybackDetector:
    """로그 기반 재생 상태 감지기 (PlaybackState 의 유일한 소유자)"""

    def __init__(
        self,
        tailer: Optional[LogTailer] = None,
        grammar: Optional[RecordGrammar] = None,
        webdb: Optional[WebDB] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """
        Args:
            tailer: 로그 추적기 (기본값: 기본 경로의 LogTailer)
            grammar: 레코드 문법 (기본값: 실제 부팅 시각 사용)
            webdb: 곡 정보 보강용 DB (선택, 참고용)
            clock: 현재 시각(epoch ms)을 반환하는 함수 (테스트에서 주입)
        """
        self._tailer = tailer or LogTailer()
        self._grammar = grammar or RecordGrammar()
        self._webdb = webdb
        self._clock = clock or _now_ms

        self._state = PlaybackState()
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._consumer: Optional[threading.Thread] = None

        self._track_callbacks: list[Callable[[int], None]] = []
        self._status_callbacks: list[Callable[[bool], None]] = []
        self._position_callbacks: list[Callable[[float], None]] = []

    # ── 시작 / 종료 ───────────────────────────────────────────────────────────

    def start(self) -> None:
        """
        과거 로그 재생 후 실시간 추적 시작

        Raises:
            LogNotFoundError: 로그 파일이 없으면 시작하지 않음
        """
        lines = self._tailer.start()
        self._stop_event.clear()

        # 재생이 끝난 뒤에 소비자를 띄워야 초기화 전 상태에 실시간 이벤트가 적용되지 않음
        self.replay(lines)

        self._consumer = threading.Thread(
            target=self._consume, args=(self._tailer.lines,), name="PlaybackDetector", daemon=True
        )
        self._consumer.start()

    def stop(self) -> None:
        """추적 중지. 이후에는 상태가 바뀌지 않음 (여러 번 호출해도 안전)"""
        with self._lock:
            self._stop_event.set()

        self._tailer.stop()

        consumer = self._consumer
        self._consumer = None
        if consumer is not None and consumer is not threading.current_thread():
            consumer.join()
            logger.info("[Detector] 감지 중지")

    def _consume(self, channel: "queue.Queue[Optional[str]]") -> None:
        while not self._stop_event.is_set():
            line = channel.get()
            if line is None:
                break
            try:
                self.handle_line(line)
            except Exception as e:
                # 실패한 줄은 건너뛰고 다음 줄 처리
                logger.warning(f"[Detector] 레코드 처리 실패: {e}")

    # ── 콜백 등록 ─────────────────────────────────────────────────────────────

    def on_track_change(self, callback: Callable[[int], None]) -> None:
        """곡 변경 시 호출될 콜백 등록 (곡 ID, 종료 시 -1)"""
        self._track_callbacks.append(callback)

    def on_status_change(self, callback: Callable[[bool], None]) -> None:
        """재생/일시정지 전환 시 호출될 콜백 등록 (재생 중이면 True)"""
        self._status_callbacks.append(callback)

    def on_position_change(self, callback: Callable[[float], None]) -> None:
        """탐색(seek) 시 호출될 콜백 등록 (새 위치, 초)"""
        self._position_callbacks.append(callback)

    def _notify(self, callbacks: list[Callable[[Any], None]], value: Any) -> None:
        for callback in list(callbacks):
            try:
                callback(value)
            except Exception as e:
                logger.warning(f"[Detector] 콜백 실행 실패: {e}")

    # ── 상태 조회 ─────────────────────────────────────────────────────────────

    @property
    def status(self) -> DetectorStatus:
        """현재 재생 상태 스냅샷"""
        with self._lock:
            state = self._state
            if not state.available:
                return DetectorStatus.unavailable()

            return DetectorStatus(
                available=True,
                id=state.song_id,
                playing=not state.paused,
                position=state.position_at(self._clock()),
                duration=state.duration,
                detail=dataclasses.replace(state.metadata) if state.metadata else None,
            )

    @property
    def state(self) -> PlaybackState:
        """내부 상태의 복사본"""
        with self._lock:
            return dataclasses.replace(self._state)

    @property
    def position(self) -> float:
        with self._lock:
            return self._state.position_at(self._clock())

    # ── 1단계: 과거 로그 재생 ──────────────────────────────────────────────────

    def replay(self, lines: list[str]) -> None:
        """
        시작 시점의 과거 로그로 현재 상태 복원

        Args:
            lines: 오래된 순서의 로그 줄 목록
        """
        now = self._clock()
        anchor: Optional[LogRecord] = None
        records: list[LogRecord] = []

        # 최신 → 과거 순으로 마지막 곡 변경 지점 탐색
        for line in reversed(lines):
            record = self._grammar.parse(line)
            if record is None:
                continue

            if record.kind is RecordKind.EXIT:
                # 앱이 마지막으로 종료된 상태
                with self._lock:
                    self._state.reset()
                logger.info("[Detector] 과거 로그: 앱 종료 상태")
                return

            if record.kind is RecordKind.SET_PLAYING:
                # 가장 최근 곡 변경에서 멈춤. 곡 정보를 읽지 못했으면 아래에서 Unknown
                if record.payload is not None:
                    anchor = record
                break

            records.append(record)

        if anchor is None:
            with self._lock:
                self._state.reset()
            logger.info("[Detector] 과거 로그: 재생 기록 없음")
            return

        # 곡 변경 이후 이벤트를 시간 순으로 적분
        records.reverse()
        position = 0.0
        paused = False
        last_action_time = anchor.timestamp

        for record in records:
            if record.payload is None:
                continue

            if record.kind is RecordKind.SET_PLAYING_POSITION:
                position = record.payload
                last_action_time = record.timestamp

            elif record.kind is RecordKind.SET_PLAYING_STATUS:
                if record.payload not in (STATUS_PLAYING, STATUS_PAUSED):
                    continue
                now_paused = record.payload == STATUS_PAUSED
                if now_paused and not paused:
                    position += (record.timestamp - last_action_time) / 1000
                paused = now_paused
                last_action_time = record.timestamp

        if not paused:
            position += (now - last_action_time) / 1000

        detail = self._enrich_track(anchor.payload)

        with self._lock:
            state = self._state
            state.song_id = detail.id
            if paused:
                state.freeze(position)
            else:
                state.resume(position, now)
            state.duration = detail.duration_ms / 1000
            state.metadata = detail.to_metadata()

        logger.info(
            f"[Detector] 과거 로그 복원: id={detail.id} {'일시정지' if paused else '재생 중'} "
            f"position={position:.1f}s"
        )

    # ── 2단계: 실시간 갱신 ─────────────────────────────────────────────────────

    def handle_line(self, line: str) -> None:
        """새로 추가된 로그 한 줄 처리"""
        record = self._grammar.parse(line)
        if record is None:
            return
        self.apply_record(record)

    def apply_record(self, record: LogRecord) -> None:
        """분류된 레코드를 상태에 반영하고 변경을 알림"""
        with self._lock:
            if self._stop_event.is_set():
                return

            now = self._clock()
            # 기록 시각과 처리 시각의 차이 (초)
            offset = (now - record.timestamp) / 1000

            if record.kind is RecordKind.EXIT:
                notification = self._on_exit()
            elif record.kind is RecordKind.SET_PLAYING:
                notification = self._on_set_playing(record.payload)
            elif record.kind is RecordKind.SET_PLAYING_POSITION:
                notification = self._on_set_position(record.payload, now, offset)
            else:
                notification = self._on_set_status(record.payload, now, offset)

        if notification is not None:
            callbacks, value = notification
            self._notify(callbacks, value)

    def _on_exit(self) -> _Notification:
        self._state.reset()
        logger.info("[Detector] 앱 종료 감지")
        return self._track_callbacks, self._state.song_id

    def _on_set_playing(self, detail: Optional[TrackDetail]) -> _Notification:
        if detail is None:
            return None

        detail = self._enrich_track(detail)
        state = self._state
        state.song_id = detail.id
        # 새 곡은 재생 상태 이벤트가 올 때까지 0초에서 일시정지로 간주
        state.freeze(0.0)
        state.duration = detail.duration_ms / 1000
        state.metadata = detail.to_metadata()

        logger.info(f"[Detector] 곡 변경: {detail.name or '?'} - {', '.join(detail.artist_names)} (id={detail.id})")
        return self._track_callbacks, state.song_id

    def _on_set_position(self, position: Optional[float], now: float, offset: float) -> _Notification:
        state = self._state
        if position is None or not state.available:
            return None

        if state.paused:
            state.position_anchor = position
        else:
            state.resume(position + offset, now)

        logger.debug(f"[Detector] 탐색: {position:.2f}s")
        return self._position_callbacks, state.position_at(now)

    def _on_set_status(self, status: Optional[int], now: float, offset: float) -> _Notification:
        state = self._state
        if status not in (STATUS_PLAYING, STATUS_PAUSED) or not state.available:
            return None

        if status == STATUS_PAUSED and not state.paused:
            state.freeze(state.raw_position_at(now) - offset)
        elif status == STATUS_PLAYING and state.paused:
            state.resume(state.position_anchor + offset, now)

        logger.debug(f"[Detector] 재생 상태: {'재생' if not state.paused else '일시정지'}")
        return self._status_callbacks, not state.paused

    # ── 곡 정보 보강 ──────────────────────────────────────────────────────────

    def _enrich_track(self, detail: TrackDetail) -> TrackDetail:
        """로그의 곡 정보에 이름이 없으면 webdb 의 최근 재생 기록으로 보완 (참고용)"""
        if detail.name or self._webdb is None:
            return detail

        stored = self._webdb.get_track_detail(detail.id)
        if stored is None:
            return detail

        if not stored.duration_ms:
            stored.duration_ms = detail.duration_ms
        return stored
