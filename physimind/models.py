"""
models.py
======================

Các kiểu dữ liệu dùng chung trong ứng dụng.

- ViewMode: bốn màn hình (home / chat / solver / quiz)
- PhysicsTopic: sáu chủ đề trắc nghiệm
- ConversationTurn: một lượt trong hội thoại
- QuizQuestion: một câu hỏi trắc nghiệm bốn lựa chọn
- GenerationResult: kết quả gọi Gemini có gắn nhãn
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import MalformedResponse

OPTION_COUNT = 4


class ViewMode(str, Enum):
    HOME = "home"
    CHAT = "chat"
    SOLVER = "solver"
    QUIZ = "quiz"


class PhysicsTopic(str, Enum):
    MECHANICS = "Cơ học"
    THERMODYNAMICS = "Nhiệt học"
    ELECTROMAGNETISM = "Điện từ học"
    OPTICS = "Quang học"
    QUANTUM = "Vật lý lượng tử"
    RELATIVITY = "Thuyết tương đối"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Outcome(str, Enum):
    SUCCESS = "success"
    MISSING_CREDENTIAL = "missing_credential"
    BACKEND_FAILURE = "backend_failure"


# ----------------------------------------------------------------------
#  Hội thoại
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    text: str
    is_error: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_content(self) -> Dict[str, Any]:
        """Chuyển sang dạng Content của Gemini (assistant -> "model")."""
        role = "user" if self.role == Role.USER else "model"
        return {"role": role, "parts": [self.text]}


# ----------------------------------------------------------------------
#  Câu hỏi trắc nghiệm
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: Tuple[str, ...]
    correct_index: int
    explanation: str

    @classmethod
    def from_dict(cls, data: Any) -> "QuizQuestion":
        """
        Tạo QuizQuestion từ một phần tử JSON do Gemini trả về.

        Khoá theo schema gửi đi: question / options / correctIndex / explanation.
        Thiếu trường, sai kiểu, số lựa chọn khác 4 hoặc correctIndex
        nằm ngoài phạm vi đều là MalformedResponse.
        """
        if not isinstance(data, dict):
            raise MalformedResponse(f"question must be an object, got {type(data).__name__}")

        missing = [k for k in ("question", "options", "correctIndex", "explanation") if k not in data]
        if missing:
            raise MalformedResponse(f"missing fields: {', '.join(missing)}")

        question = data["question"]
        options = data["options"]
        correct_index = data["correctIndex"]
        explanation = data["explanation"]

        if not isinstance(question, str) or not question.strip():
            raise MalformedResponse("question must be a non-empty string")
        if not isinstance(explanation, str):
            raise MalformedResponse("explanation must be a string")
        if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
            raise MalformedResponse("options must be a list of strings")
        if len(options) != OPTION_COUNT:
            raise MalformedResponse(f"expected {OPTION_COUNT} options, got {len(options)}")
        # bool là lớp con của int
        if isinstance(correct_index, bool) or not isinstance(correct_index, int):
            raise MalformedResponse("correctIndex must be an integer")
        if not 0 <= correct_index < len(options):
            raise MalformedResponse(f"correctIndex {correct_index} out of range")

        return cls(
            question=question.strip(),
            options=tuple(options),
            correct_index=correct_index,
            explanation=explanation.strip(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "explanation": self.explanation,
        }


# ----------------------------------------------------------------------
#  Kết quả gọi Gemini
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class GenerationResult:
    outcome: Outcome
    payload: Any = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.SUCCESS

    @classmethod
    def success(cls, payload: Any) -> "GenerationResult":
        return cls(Outcome.SUCCESS, payload=payload)

    @classmethod
    def missing_credential(cls) -> "GenerationResult":
        return cls(Outcome.MISSING_CREDENTIAL)

    @classmethod
    def backend_failure(cls, message: str) -> "GenerationResult":
        return cls(Outcome.BACKEND_FAILURE, message=message)
