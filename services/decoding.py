"""
cloudmusic.elog 바이트 난독화 해제.
각 바이트의 상/하위 니블을 섞는 고정 변환을 되돌린 뒤 UTF-8로 해석합니다.
"""


def _transform_byte(byte: int) -> int:
    high = byte >> 4
    low = byte & 0x0F
    hex_digit = (high ^ (low + 8)) % 16
    return hex_digit * 16 + (byte >> 6) * 4 + (~high & 3)


_DECODE_TABLE = bytes(_transform_byte(b) for b in range(256))


def transform_bytes(data: bytes) -> bytes:
    """난독화된 바이트열을 원래 바이트열로 변환 (UTF-8 해석 전 단계)"""
    return bytes(data).translate(_DECODE_TABLE)


def decode(data: bytes) -> str:
    """
    난독화된 바이트 청크를 문자열로 디코딩

    청크가 멀티바이트 문자 중간에서 시작하거나 끝나면 그 잘린 문자의 바이트만
    버립니다. 앞뒤의 완전한 줄은 그대로 남고, 예외를 던지지 않습니다.
    """
    return transform_bytes(data).decode("utf-8", errors="ignore")
