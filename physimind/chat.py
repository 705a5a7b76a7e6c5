"""
chat.py
======================

Lịch sử hội thoại của màn hình hỏi đáp.

Lịch sử là một tuple chỉ được nối thêm (append-only); mỗi lần thêm
lượt mới sẽ tạo tuple mới, không sửa tại chỗ.
"""

from __future__ import annotations

from typing import Tuple

from .models import ConversationTurn, Outcome, Role
from .tutor import TutorService

Transcript = Tuple[ConversationTurn, ...]

GREETING = (
    "Chào bạn! Mình là trợ lý Vật lý ảo (PhysiMind). "
    "Bạn đang thắc mắc về định luật Newton, thuyết tương đối hay bài tập nào đó? "
    "Hãy hỏi mình nhé!"
)
MISSING_KEY_MESSAGE = (
    "⚠️ Bạn chưa nhập API Key. "
    "Vui lòng bấm vào biểu tượng Chìa khóa (🔑) ở góc trên bên phải màn hình "
    "để nhập mã Key của bạn."
)


def initial_transcript() -> Transcript:
    return (ConversationTurn(role=Role.ASSISTANT, text=GREETING),)


def append_turn(transcript: Transcript, turn: ConversationTurn) -> Transcript:
    return transcript + (turn,)


def add_question(transcript: Transcript, text: str) -> Transcript:
    """Thêm lượt hỏi của người dùng. Câu hỏi rỗng thì trả về nguyên lịch sử."""
    if not text.strip():
        return transcript
    return append_turn(transcript, ConversationTurn(role=Role.USER, text=text))


def add_reply(service: TutorService, transcript: Transcript) -> Transcript:
    """
    Gọi Gemini cho lượt hỏi cuối cùng trong transcript và thêm lượt
    trả lời (hoặc lượt báo lỗi). Lịch sử gửi đi không gồm lượt hỏi đó.
    """
    if not transcript or transcript[-1].role != Role.USER:
        return transcript

    question = transcript[-1]
    result = service.chat(transcript[:-1], question.text)

    if result.outcome == Outcome.SUCCESS:
        reply = ConversationTurn(role=Role.ASSISTANT, text=str(result.payload))
    elif result.outcome == Outcome.MISSING_CREDENTIAL:
        reply = ConversationTurn(role=Role.ASSISTANT, text=MISSING_KEY_MESSAGE, is_error=True)
    else:
        reply = ConversationTurn(role=Role.ASSISTANT, text=result.message or "", is_error=True)

    return append_turn(transcript, reply)


def send_message(service: TutorService, transcript: Transcript, text: str) -> Transcript:
    """
    Gửi câu hỏi text và trả về lịch sử mới gồm lượt của người dùng
    và lượt trả lời (hoặc lượt báo lỗi).
    Câu hỏi rỗng thì trả về nguyên lịch sử cũ.
    """
    updated = add_question(transcript, text)
    if updated is transcript:
        return transcript
    return add_reply(service, updated)
