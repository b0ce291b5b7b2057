"""
테스트용 cloudmusic.elog 생성 헬퍼.
디코딩 변환의 역변환으로 평문을 난독화하고, 헤더가 붙은 로그 줄을 만듭니다.
"""

import json
from typing import Any, Optional


def encode_byte(byte: int) -> int:
    """
    디코딩 변환의 역변환
    디코딩: 상위 니블 = hi ^ lo ^ 8, 하위 니블 = hi ^ 3
    """
    out_high = byte >> 4
    out_low = byte & 0x0F
    high = out_low ^ 3
    low = out_high ^ high ^ 8
    return (high << 4) | low


_ENCODE_TABLE = bytes(encode_byte(b) for b in range(256))


def encode(text: str) -> bytes:
    """평문 → 난독화된 바이트열"""
    return text.encode("utf-8").translate(_ENCODE_TABLE)


def header(relative_ms: int, pid: int = 1234, tid: int = 5678) -> str:
    return (
        f"[{pid}:{tid}:0101/120000:{relative_ms}:INFO:native_playing.cc(88)] "
        f"[2024-01-01 12:00:00]"
    )


def track_json(
    song_id: Any = 10,
    duration_ms: int = 200000,
    name: Optional[str] = "晴天",
    artists: tuple = ("周杰伦",),
    album: str = "叶惠美",
) -> str:
    track: dict[str, Any] = {
        "id": song_id,
        "duration": duration_ms,
        "album": {"name": album, "cover": "http://p1.music.126.net/cover.jpg"},
        "artists": [{"id": str(i), "name": artist} for i, artist in enumerate(artists)],
    }
    if name is not None:
        track["name"] = name
    return json.dumps(
        {"trackIn": {"trackId": str(song_id), "track": track}, "playingState": 1},
        ensure_ascii=False,
    )


def set_playing_line(relative_ms: int, **kwargs: Any) -> str:
    return f'{header(relative_ms)} 【playing】,"setPlaying",{track_json(**kwargs)}'


def position_line(relative_ms: int, position: float) -> str:
    return f'{header(relative_ms)} 【playing】,"setPlayingPosition",{position},""'


def status_line(relative_ms: int, status: int) -> str:
    return f'{header(relative_ms)} 【playing】,"native播放state",{status},""'


def exit_line(relative_ms: int) -> str:
    return f'{header(relative_ms)} 【app】,{{"actionId":"exitApp"}}'


class FakeClock:
    """epoch ms 를 반환하는 조작 가능한 시계"""

    def __init__(self, now: float = 0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms
