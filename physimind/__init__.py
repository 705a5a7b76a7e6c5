"""
Gói physimind
======================

Logic bên trong của ứng dụng gia sư Vật lý PhysiMind.

Vai trò chính:
- Thiết lập, logging (config)
- Lưu API key (key_store)
- Gọi Gemini: hỏi đáp / giải bài / sinh đề (tutor)
- Lịch sử hội thoại (chat)
- Máy trạng thái trắc nghiệm (quiz)
- Thành phần giao diện Streamlit (ui)

app.py chỉ lo giao diện Streamlit; mọi logic đều gọi từ gói này.
"""

from .config import AppConfig, configure_logging, load_config
from .errors import BackendFailure, MalformedResponse, MissingCredential, TutorError
from .key_store import FileKeyStore, KeyStore, MemoryKeyStore
from .models import (
    ConversationTurn,
    GenerationResult,
    Outcome,
    PhysicsTopic,
    QuizQuestion,
    Role,
    ViewMode,
)
from .quiz import QuizPhase, QuizSession, run_generation
from .tutor import TutorService

__all__ = [
    "AppConfig",
    "configure_logging",
    "load_config",
    "TutorError",
    "MissingCredential",
    "BackendFailure",
    "MalformedResponse",
    "KeyStore",
    "FileKeyStore",
    "MemoryKeyStore",
    "ConversationTurn",
    "GenerationResult",
    "Outcome",
    "PhysicsTopic",
    "QuizQuestion",
    "Role",
    "ViewMode",
    "QuizPhase",
    "QuizSession",
    "run_generation",
    "TutorService",
]
