"""
key_store.py
======================

Nơi lưu API key Gemini của người dùng.

Cấu trúc file JSON (chỉ có một ô):

{
  "gemini_api_key": "AIzaSy..."
}

- get(): key người dùng đã lưu; nếu chưa có thì dùng key mặc định
         (GEMINI_API_KEY), trừ khi đó là giá trị mẫu -> None
- set(): lưu key đã strip, không kiểm tra định dạng (Gemini sẽ kiểm tra)

Không mã hoá, không hết hạn: đây chỉ là bộ nhớ tiện lợi cho key
của chính người dùng.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from .config import is_placeholder_key

STORAGE_KEY = "gemini_api_key"

logger = logging.getLogger(__name__)


class KeyStore:
    """
    Giao diện chung. Lớp con chỉ cần cài đặt _read / _write.
    """

    def __init__(self, default_key: Optional[str] = None):
        self.default_key = default_key

    def get(self) -> Optional[str]:
        stored = self._read()
        if stored:
            return stored

        default = (self.default_key or "").strip()
        if default and not is_placeholder_key(default):
            return default
        return None

    def stored(self) -> Optional[str]:
        """Chỉ key người dùng đã lưu, không tính key mặc định."""
        return self._read()

    def set(self, key: str) -> None:
        self._write(key.strip())

    def has_key(self) -> bool:
        return self.get() is not None

    def _read(self) -> Optional[str]:
        raise NotImplementedError

    def _write(self, value: str) -> None:
        raise NotImplementedError


class MemoryKeyStore(KeyStore):
    """Lưu trong bộ nhớ (dùng cho test)."""

    def __init__(self, default_key: Optional[str] = None, stored: Optional[str] = None):
        super().__init__(default_key)
        self._value = stored

    def _read(self) -> Optional[str]:
        return self._value

    def _write(self, value: str) -> None:
        self._value = value


class FileKeyStore(KeyStore):
    """Lưu vào một file JSON cục bộ."""

    def __init__(self, path: Union[str, Path], default_key: Optional[str] = None):
        super().__init__(default_key)
        self.path = Path(path)

    def _read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning("Không đọc được file key %s, coi như chưa có key", self.path)
            return None

        value = data.get(STORAGE_KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) and value else None

    def _write(self, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump({STORAGE_KEY: value}, f, ensure_ascii=False, indent=2)
        # ghi đè nguyên tử
        os.replace(tmp, self.path)
        logger.info("Đã lưu API key vào %s", self.path)
