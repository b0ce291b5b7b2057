"""
cloudmusic.elog 를 계속 따라 읽는 모듈.
시작 시 파일 전체를 읽어 과거 로그를 돌려주고, 이후에는 파일 크기를 폴링하여
새로 추가된 부분만 디코딩해 큐로 전달합니다.
"""

import logging
import os
import queue
import threading
from typing import Optional

from core.constants import CLOUDMUSIC_ELOG_PATH, POLL_INTERVAL_MS
from core.errors import LogNotFoundError
from services.decoding import decode

logger = logging.getLogger(__name__)


def split_lines(text: str) -> list[str]:
    """줄 단위로 나누고 공백을 제거한 뒤 빈 줄은 버림"""
    return [line.strip() for line in text.split("\n") if line.strip()]


class LogTailer:
    """증가하는 로그 파일 추적기 (폴링 스레드 + 순서 보장 큐)"""

    def __init__(
        self,
        file_path: str = CLOUDMUSIC_ELOG_PATH,
        poll_interval_ms: int = POLL_INTERVAL_MS,
    ) -> None:
        self._file_path = file_path
        self._poll_interval = poll_interval_ms / 1000
        self._offset = 0

        # 폴링 스레드 → 소비자 단일 채널. None 은 종료 신호
        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def file_path(self) -> str:
        return self._file_path

    @property
    def offset(self) -> int:
        """지금까지 읽은 바이트 수"""
        return self._offset

    @property
    def lines(self) -> "queue.Queue[Optional[str]]":
        """새로 추가된 줄이 파일 순서대로 들어오는 큐"""
        return self._lines

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ── 시작 / 종료 ───────────────────────────────────────────────────────────

    def start(self) -> list[str]:
        """
        로그 파일 전체를 읽고 폴링 시작

        Returns:
            과거 로그의 줄 목록 (오래된 순, 빈 줄 제외)

        Raises:
            LogNotFoundError: 로그 파일이 없음
        """
        if self.is_running:
            self.stop()

        try:
            with open(self._file_path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            raise LogNotFoundError(self._file_path) from None

        self._offset = len(data)
        lines = split_lines(decode(data))
        logger.info(f"[LogTailer] 로그 로드 완료: {self._file_path} ({self._offset} bytes, {len(lines)}줄)")

        self._lines = queue.Queue()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="LogTailer", daemon=True)
        self._thread.start()

        return lines

    def stop(self) -> None:
        """폴링 중지 (여러 번 호출해도 안전)"""
        self._stop_event.set()

        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join()
            logger.info("[LogTailer] 폴링 중지")

        self._lines.put(None)

    # ── 폴링 ──────────────────────────────────────────────────────────────────

    def _run(self) -> None:
        while not self._stop_event.wait(self._poll_interval):
            self.poll()

    def poll(self) -> list[str]:
        """
        한 번의 폴링 주기. 파일이 커졌으면 늘어난 부분을 읽어 큐에 넣음

        Returns:
            이번 주기에 전달한 줄 목록
        """
        try:
            size = os.path.getsize(self._file_path)
        except OSError as e:
            # 대상 앱이 쓰는 중일 때의 일시적 공유 위반 등은 다음 주기에 재시도
            logger.debug(f"[LogTailer] 크기 확인 실패: {e}")
            return []

        if size < self._offset:
            # 잘리거나 교체된 파일: 처음부터 다시 읽음
            logger.info("[LogTailer] 로그 파일이 줄어듦, 오프셋 초기화")
            self._offset = 0
            return []

        if size == self._offset:
            return []

        try:
            with open(self._file_path, "rb") as f:
                f.seek(self._offset)
                data = f.read(size - self._offset)
        except OSError as e:
            logger.debug(f"[LogTailer] 읽기 실패: {e}")
            return []

        self._offset += len(data)
        lines = split_lines(decode(data))

        for line in lines:
            if self._stop_event.is_set():
                break
            self._lines.put(line)

        return lines
