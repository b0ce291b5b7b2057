"""
설정 관리 클래스.
JSON 설정 파일을 기본값 위에 덮어써서 로드하고, 파일이 없으면 기본값으로 만들어 둡니다.
기본값은 settings/defaults.py에서 임포트합니다.
"""

import json
import logging
import os
from typing import Any, Dict

from settings.defaults import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class SettingsManager:
    """설정 관리 클래스"""

    def __init__(self, filepath: str = "settings.json") -> None:
        self.filepath = os.path.abspath(filepath)
        self._settings: Dict[str, Any] = DEFAULT_SETTINGS.copy()
        self._load()

    # ── 파일 I/O ──────────────────────────────────────────────────────────────

    @property
    def exists(self) -> bool:
        """설정 파일이 디스크에 있는지 여부"""
        return os.path.exists(self.filepath)

    def _load(self) -> None:
        """설정 파일 로드 (누락된 키는 기본값으로 보완)"""
        if not self.exists:
            return

        try:
            with open(self.filepath, "r", encoding="utf-8") as f:
                loaded: Dict[str, Any] = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"[Settings] 로드 실패, 기본값 사용: {e}")
            return

        if not isinstance(loaded, dict):
            logger.warning("[Settings] 설정 파일 형식 오류, 기본값 사용")
            return

        unknown = sorted(set(loaded) - set(DEFAULT_SETTINGS))
        if unknown:
            logger.warning(f"[Settings] 알 수 없는 설정 키 무시: {', '.join(unknown)}")

        for key in DEFAULT_SETTINGS:
            if key in loaded:
                self._settings[key] = loaded[key]

    def write_template(self) -> bool:
        """
        설정 파일이 없을 때 현재 값(기본값)으로 새로 작성

        Returns:
            파일을 새로 만들었으면 True
        """
        if self.exists:
            return False

        try:
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.warning(f"[Settings] 설정 파일 생성 실패: {e}")
            return False

        logger.info(f"[Settings] 기본 설정 파일 생성: {self.filepath}")
        return True

    # ── 공개 API ──────────────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        """설정값 조회"""
        return self._settings.get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """모든 설정 복사본 반환"""
        return self._settings.copy()
