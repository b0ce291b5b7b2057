"""
도메인 데이터 클래스 통합 모듈.
로그 레코드, 곡 정보, 재생 상태를 한 곳에서 관리합니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


# ── 로그 레코드 ───────────────────────────────────────────────────────────────

class RecordKind(Enum):
    """인식 가능한 로그 레코드 종류 (분류 우선순위 순서)"""
    EXIT = "EXIT"
    SET_PLAYING = "SET_PLAYING"
    SET_PLAYING_POSITION = "SET_PLAYING_POSITION"
    SET_PLAYING_STATUS = "SET_PLAYING_STATUS"


@dataclass(frozen=True)
class LogHeader:
    """[pid:tid:timestamp:level:source(line)] [datetime] 헤더"""
    pid: str
    tid: str
    raw_timestamp: str      # MMDD/HHMMSS:상대 오프셋(ms)
    timestamp: int          # 부팅 시각 기준으로 복원한 절대 시각 (epoch ms)
    level: str
    source: str
    source_line: str
    datetime: str


def _text(value: Any) -> str:
    """문자열이 아닌 JSON 값(null, 숫자 등)은 빈 문자열로"""
    return value if isinstance(value, str) else ""


@dataclass
class TrackDetail:
    """setPlaying 레코드의 trackIn.track 에서 추출한 곡 정보"""
    id: int
    name: str = ""
    duration_ms: int = 0
    album_name: str = ""
    cover: str = ""
    artist_names: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, track: dict[str, Any]) -> "TrackDetail":
        """곡 JSON 객체에서 생성 (id 가 없거나 숫자가 아니면 KeyError/ValueError)"""
        album = track.get("album")
        if not isinstance(album, dict):
            album = {}
        artists = track.get("artists") or []
        return cls(
            id=int(track["id"]),
            name=_text(track.get("name")),
            duration_ms=int(track.get("duration") or 0),
            album_name=_text(album.get("name")),
            cover=_text(album.get("cover")) or _text(album.get("picUrl")),
            # null 이름은 건너뜀
            artist_names=[
                a["name"] for a in artists if isinstance(a, dict) and isinstance(a.get("name"), str)
            ],
        )

    def to_metadata(self) -> "TrackMetadata":
        return TrackMetadata(
            name=self.name,
            cover=self.cover,
            album_name=self.album_name,
            artist_names=list(self.artist_names),
        )


RecordPayload = Union[bool, TrackDetail, float, int, None]


@dataclass(frozen=True)
class LogRecord:
    """디코딩된 로그 한 줄을 분류한 결과 (처리 후 폐기)"""
    header: LogHeader
    kind: RecordKind
    payload: RecordPayload = None

    @property
    def pid(self) -> str:
        return self.header.pid

    @property
    def tid(self) -> str:
        return self.header.tid

    @property
    def timestamp(self) -> int:
        return self.header.timestamp


# ── 재생 상태 ─────────────────────────────────────────────────────────────────

@dataclass
class TrackMetadata:
    """상태 조회 시 함께 전달되는 곡 부가 정보"""
    name: str
    cover: str
    album_name: str
    artist_names: list[str] = field(default_factory=list)


class PlaybackPhase(Enum):
    UNKNOWN = "unknown"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass
class PlaybackState:
    """
    엔진이 유지하는 단일 재생 상태.

    paused 가 True 이면 position_anchor 가, False 이면 play_started_at_ms 가
    유효합니다. 재생 중 위치는 (now - play_started_at_ms) / 1000 입니다.
    """
    song_id: int = -1
    paused: bool = False
    position_anchor: float = 0.0        # 일시정지 시점의 위치 (초)
    play_started_at_ms: float = 0.0     # 재생 위치 외삽 기준 시각 (epoch ms)
    duration: float = 0.0               # 곡 길이 (초), 모르면 0
    metadata: Optional[TrackMetadata] = None

    @property
    def available(self) -> bool:
        return self.song_id != -1

    @property
    def phase(self) -> PlaybackPhase:
        if not self.available:
            return PlaybackPhase.UNKNOWN
        return PlaybackPhase.PAUSED if self.paused else PlaybackPhase.PLAYING

    def reset(self) -> None:
        """모든 값을 알 수 없음 상태로 초기화"""
        self.song_id = -1
        self.paused = False
        self.position_anchor = 0.0
        self.play_started_at_ms = 0.0
        self.duration = 0.0
        self.metadata = None

    def raw_position_at(self, now_ms: float) -> float:
        """now_ms 시점의 외삽 위치 (범위 제한 없음)"""
        if self.paused:
            return self.position_anchor
        return (now_ms - self.play_started_at_ms) / 1000

    def position_at(self, now_ms: float) -> float:
        """now_ms 시점의 재생 위치 (초, [0, duration] 범위로 제한)"""
        if not self.available:
            return 0.0
        position = max(0.0, self.raw_position_at(now_ms))
        if self.duration > 0:
            position = min(position, self.duration)
        return position

    def freeze(self, position: float) -> None:
        """position 에서 일시정지 상태로 고정"""
        self.paused = True
        self.position_anchor = position
        self.play_started_at_ms = 0.0

    def resume(self, position: float, now_ms: float) -> None:
        """now_ms 시점에 position 위치부터 재생 중인 상태로 설정"""
        self.paused = False
        self.position_anchor = 0.0
        self.play_started_at_ms = now_ms - position * 1000


@dataclass
class DetectorStatus:
    """외부에 공개되는 재생 상태 스냅샷"""
    available: bool
    id: int
    playing: bool
    position: float
    duration: float
    detail: Optional[TrackMetadata] = None

    @classmethod
    def unavailable(cls) -> "DetectorStatus":
        return cls(available=False, id=-1, playing=False, position=0.0, duration=0.0)

    @property
    def position_str(self) -> str:
        """재생 위치를 MM:SS 형식으로 반환"""
        total_seconds = int(self.position)
        return f"{total_seconds // 60:02d}:{total_seconds % 60:02d}"


# ── 미디어 세션 ───────────────────────────────────────────────────────────────

@dataclass
class MediaInfo:
    """Windows Media Session에서 가져온 미디어 정보"""
    title: str
    artist: str
    album: str
    source_app: str         # 재생 중인 앱 (cloudmusic.exe 등)
    position_ms: int = 0    # 현재 재생 위치 (밀리초)
    duration_ms: int = 0    # 전체 길이 (밀리초)
    playing: bool = False
