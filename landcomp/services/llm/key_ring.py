"""API 키 순환 관리

제공자별로 여러 개의 API 키를 설정하면, 인증/쿼터 실패 시 다음 키로
활성 포인터를 넘깁니다. 포인터는 프로세스 전역 상태이므로 락으로 보호합니다.
"""

import logging
import threading
from typing import Sequence

logger = logging.getLogger(__name__)


class ApiKeyRing:
    """API 키 목록과 활성 키 포인터"""

    def __init__(self, keys: Sequence[str], provider: str = "unknown"):
        self._keys = [k for k in keys if k]
        self._index = 0
        self._lock = threading.Lock()
        self.provider = provider

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def current(self) -> str | None:
        """현재 활성 키 (키가 없으면 None)"""
        with self._lock:
            if not self._keys:
                return None
            return self._keys[self._index]

    def rotate(self, failed_key: str | None = None) -> str | None:
        """다음 키로 포인터 이동

        failed_key가 이미 교체된 키라면(다른 요청이 먼저 순환) 포인터를 움직이지 않습니다.

        Args:
            failed_key: 실패한 요청이 사용한 키

        Returns:
            새 활성 키
        """
        with self._lock:
            if len(self._keys) < 2:
                return self._keys[0] if self._keys else None
            if failed_key is not None and self._keys[self._index] != failed_key:
                return self._keys[self._index]
            self._index = (self._index + 1) % len(self._keys)
            logger.warning(
                f"{self.provider} API 키 순환: {self._index + 1}/{len(self._keys)}번 키 사용"
            )
            return self._keys[self._index]
