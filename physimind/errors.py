"""
errors.py
=========

Phân loại lỗi khi gọi Gemini.

- MissingCredential: không có API key dùng được (hoặc key bị từ chối)
- BackendFailure: lỗi mạng / lỗi dịch vụ / lỗi khác từ Gemini
- MalformedResponse: Gemini trả về nội dung rỗng hoặc sai cấu trúc
"""

from __future__ import annotations


class TutorError(Exception):
    """Lớp gốc cho mọi lỗi đã được phân loại."""


class MissingCredential(TutorError):
    """Chưa có API key, hoặc key không hợp lệ."""


class BackendFailure(TutorError):
    """Lỗi khi gọi Gemini."""


class MalformedResponse(BackendFailure):
    """Phản hồi rỗng hoặc không đúng schema."""
