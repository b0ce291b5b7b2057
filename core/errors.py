"""엔진 시작 단계에서 호출자에게 전달되는 예외"""


class LogNotFoundError(FileNotFoundError):
    """대상 앱의 로그 파일이 존재하지 않음"""

    def __init__(self, path: str) -> None:
        super().__init__(f"로그 파일을 찾을 수 없습니다: {path}")
        self.path = path
