"""
quiz.py
======================

Máy trạng thái của màn hình trắc nghiệm.

    SETUP --start()--> LOADING --loaded()--> ACTIVE --advance() (câu cuối)--> RESULT
                          |                                                   |
                          +--failed()--> SETUP <--------restart()-------------+

Trong ACTIVE có hai trạng thái con:
- chưa trả lời (selected_option is None): chỉ nhận select(i), đúng một lần
- đã trả lời: chỉ nhận advance()

QuizSession là kiểu giá trị bất biến; mỗi phép chuyển trả về một
QuizSession mới. Gọi phép chuyển ở sai pha thì trả về chính nó.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .errors import MissingCredential, TutorError
from .models import PhysicsTopic, QuizQuestion

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Không thể tạo câu hỏi. Vui lòng thử lại sau."
MISSING_KEY_MESSAGE = (
    "⚠️ Bạn chưa nhập API Key. "
    "Vui lòng bấm vào nút Chìa khóa (🔑) ở góc trên để cài đặt."
)


class QuizPhase(str, Enum):
    SETUP = "setup"
    LOADING = "loading"
    ACTIVE = "active"
    RESULT = "result"


@dataclass(frozen=True)
class QuizSession:
    topic: PhysicsTopic = PhysicsTopic.MECHANICS
    phase: QuizPhase = QuizPhase.SETUP
    questions: Tuple[QuizQuestion, ...] = ()
    current_index: int = 0
    score: int = 0
    selected_option: Optional[int] = None
    answers: Tuple[int, ...] = ()
    error: Optional[str] = None

    # ------------------------------------------------------------------
    # Thuộc tính suy ra
    # ------------------------------------------------------------------
    @property
    def is_active(self) -> bool:
        return self.phase in (QuizPhase.ACTIVE, QuizPhase.RESULT)

    @property
    def is_loading(self) -> bool:
        return self.phase == QuizPhase.LOADING

    @property
    def show_result(self) -> bool:
        return self.phase == QuizPhase.RESULT

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def answered(self) -> bool:
        return self.selected_option is not None

    @property
    def is_last_question(self) -> bool:
        return self.current_index == self.total - 1

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self.phase != QuizPhase.ACTIVE:
            return None
        return self.questions[self.current_index]

    @property
    def percentage(self) -> float:
        if not self.total:
            return 0.0
        return self.score / self.total * 100

    # ------------------------------------------------------------------
    # SETUP
    # ------------------------------------------------------------------
    def choose_topic(self, topic: PhysicsTopic) -> "QuizSession":
        if self.phase != QuizPhase.SETUP:
            return self
        return replace(self, topic=PhysicsTopic(topic))

    def start(self) -> "QuizSession":
        if self.phase != QuizPhase.SETUP:
            return self
        return replace(self, phase=QuizPhase.LOADING, error=None)

    # ------------------------------------------------------------------
    # LOADING
    # ------------------------------------------------------------------
    def loaded(self, questions: Sequence[QuizQuestion]) -> "QuizSession":
        if self.phase != QuizPhase.LOADING:
            return self
        if not questions:
            return self.failed(RETRY_MESSAGE)
        return QuizSession(
            topic=self.topic,
            phase=QuizPhase.ACTIVE,
            questions=tuple(questions),
        )

    def failed(self, message: str = RETRY_MESSAGE) -> "QuizSession":
        if self.phase != QuizPhase.LOADING:
            return self
        return QuizSession(topic=self.topic, error=message)

    # ------------------------------------------------------------------
    # ACTIVE
    # ------------------------------------------------------------------
    def select(self, option: int) -> "QuizSession":
        """Chọn đáp án cho câu hiện tại. Đã chọn rồi thì bỏ qua."""
        if self.phase != QuizPhase.ACTIVE or self.answered:
            return self

        question = self.questions[self.current_index]
        if not 0 <= option < len(question.options):
            raise ValueError(f"option {option} out of range")

        correct = option == question.correct_index
        return replace(
            self,
            selected_option=option,
            answers=self.answers + (option,),
            score=self.score + 1 if correct else self.score,
        )

    def advance(self) -> "QuizSession":
        if self.phase != QuizPhase.ACTIVE or not self.answered:
            return self
        if self.is_last_question:
            logger.debug("Quiz finished: %d/%d", self.score, self.total)
            return replace(self, phase=QuizPhase.RESULT)
        return replace(self, current_index=self.current_index + 1, selected_option=None)

    # ------------------------------------------------------------------
    # RESULT
    # ------------------------------------------------------------------
    def restart(self) -> "QuizSession":
        if self.phase != QuizPhase.RESULT:
            return self
        return QuizSession(topic=self.topic)

    def verdict(self) -> str:
        pct = self.percentage
        if pct == 100:
            return "Xuất sắc! Bạn là thiên tài vật lý!"
        if pct >= 80:
            return "Rất tốt! Kiến thức vững vàng."
        if pct >= 50:
            return "Khá tốt, hãy cố gắng thêm nhé."
        return "Cần ôn tập lại kiến thức cơ bản."

    def review_rows(self) -> List[Dict[str, object]]:
        """Bảng xem lại từng câu cho màn hình kết quả."""
        rows: List[Dict[str, object]] = []
        for i, (q, picked) in enumerate(zip(self.questions, self.answers)):
            rows.append(
                {
                    "Câu": i + 1,
                    "Câu hỏi": q.question,
                    "Bạn chọn": q.options[picked],
                    "Đáp án đúng": q.options[q.correct_index],
                    "Kết quả": "✅" if picked == q.correct_index else "❌",
                }
            )
        return rows


def run_generation(
    session: QuizSession,
    generate: Callable[[PhysicsTopic], Sequence[QuizQuestion]],
) -> QuizSession:
    """
    Thực hiện pha LOADING: gọi generate(topic) rồi chuyển sang
    ACTIVE (thành công) hoặc về SETUP kèm thông báo (thất bại).
    """
    if session.phase != QuizPhase.LOADING:
        return session

    try:
        questions = generate(session.topic)
    except MissingCredential:
        return session.failed(MISSING_KEY_MESSAGE)
    except TutorError as e:
        logger.warning("Quiz generation failed for %s: %s", session.topic.value, e)
        return session.failed(RETRY_MESSAGE)

    return session.loaded(questions)
