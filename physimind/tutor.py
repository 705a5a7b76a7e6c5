"""
tutor.py
======================

Lớp điều phối các lời gọi tới Google Gemini.

Ba thao tác:
- chat(): hỏi đáp tự do, gửi kèm tối đa 10 lượt gần nhất
- solve(): giải bài tập từ văn bản và/hoặc ảnh (image/jpeg)
- generate_quiz(): sinh đề trắc nghiệm dạng JSON theo schema

Mọi ngoại lệ từ Gemini đều được phân loại thành MissingCredential
hoặc BackendFailure (xem errors.py) trước khi trả về cho giao diện.
Không tự động thử lại; người dùng tự bấm lại.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, List, Optional, Sequence, Union

import google.generativeai as genai
from google.api_core.exceptions import InvalidArgument, PermissionDenied, Unauthenticated
from google.auth.exceptions import DefaultCredentialsError

from .config import AppConfig
from .errors import BackendFailure, MalformedResponse, MissingCredential, TutorError
from .key_store import KeyStore
from .models import ConversationTurn, GenerationResult, PhysicsTopic, QuizQuestion

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPE = "image/jpeg"

# ----------------------------------------------------------------------
#  System instruction / prompt
# ----------------------------------------------------------------------
CHAT_SYSTEM_INSTRUCTION = (
    "Bạn là một giáo sư Vật lý nhiệt tình, am hiểu sâu rộng và giỏi sư phạm. "
    "Hãy giải thích các khái niệm phức tạp một cách dễ hiểu, sử dụng ví dụ thực tế. "
    "Luôn trả lời bằng tiếng Việt. "
    "Sử dụng định dạng Markdown để làm nổi bật công thức hoặc ý chính."
)

SOLVER_SYSTEM_INSTRUCTION = (
    "Bạn là một trợ lý giải bài tập Vật lý chuyên nghiệp. "
    "Hãy trình bày lời giải rõ ràng, mạch lạc, có tóm tắt đề bài, "
    "công thức sử dụng và đáp án cuối cùng."
)

SOLVE_PROMPT_TEMPLATE = (
    "Hãy giải bài tập vật lý này chi tiết từng bước. "
    "Nếu có hình ảnh, hãy phân tích hình ảnh để lấy dữ liệu. \n\n"
    "Đề bài/Câu hỏi bổ sung: {text}"
)

QUIZ_PROMPT_TEMPLATE = (
    "Tạo {count} câu hỏi trắc nghiệm về chủ đề: {topic}. Độ khó trung bình-khá."
)

QUIZ_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "question": {"type": "STRING"},
            "options": {"type": "ARRAY", "items": {"type": "STRING"}},
            "correctIndex": {
                "type": "INTEGER",
                "description": "Zero-based index of the correct option (0-3)",
            },
            "explanation": {
                "type": "STRING",
                "description": "Short explanation of why the answer is correct",
            },
        },
        "required": ["question", "options", "correctIndex", "explanation"],
    },
}

# ----------------------------------------------------------------------
#  Thông báo cho người dùng
# ----------------------------------------------------------------------
CHAT_EMPTY_FALLBACK = "Xin lỗi, tôi không thể tạo câu trả lời lúc này."
CHAT_FAILURE_MESSAGE = (
    "Có lỗi xảy ra khi kết nối với AI. "
    "Vui lòng kiểm tra kết nối mạng hoặc thử lại sau."
)
SOLVE_EMPTY_FALLBACK = "Không thể giải bài tập này."
SOLVE_MISSING_KEY_MESSAGE = (
    "⚠️ LỖI: Bạn chưa nhập API Key. "
    "Vui lòng bấm vào nút Chìa khóa (🔑) ở góc trên bên phải để nhập Key."
)
SOLVE_FAILURE_MESSAGE = "Không thể xử lý hình ảnh hoặc yêu cầu này."

# reason trong ErrorInfo khi Gemini từ chối chính key
INVALID_KEY_REASONS = frozenset({"API_KEY_INVALID", "API_KEY_EXPIRED", "API_KEY_SERVICE_BLOCKED"})


def topic_label(topic: Union[PhysicsTopic, str]) -> str:
    return topic.value if isinstance(topic, PhysicsTopic) else str(topic)


def classify_error(exc: BaseException) -> TutorError:
    """
    Phân loại ngoại lệ thành MissingCredential hoặc BackendFailure.
    Dựa vào kiểu ngoại lệ của google-api-core, không dò chuỗi thông báo.
    """
    if isinstance(exc, TutorError):
        return exc
    if isinstance(exc, (Unauthenticated, DefaultCredentialsError)):
        return MissingCredential(str(exc))
    # 403 khác (API bị tắt, vùng không hỗ trợ...) không phải lỗi key
    if isinstance(exc, (InvalidArgument, PermissionDenied)) and (
        getattr(exc, "reason", None) in INVALID_KEY_REASONS
    ):
        return MissingCredential(str(exc))
    return BackendFailure(str(exc))


def decode_image(image: str) -> bytes:
    """
    Giải mã ảnh base64. Chấp nhận cả data URL ("data:image/jpeg;base64,...").
    """
    data = image.split(",", 1)[1] if image.startswith("data:") and "," in image else image
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BackendFailure(f"invalid base64 image: {e}") from e


def parse_quiz(text: Optional[str], expected_count: int) -> List[QuizQuestion]:
    """
    Đọc mảng JSON câu hỏi. Đề là "tất cả hoặc không có gì":
    chỉ một phần tử sai cũng làm cả đề thất bại.
    """
    if not text or not text.strip():
        raise MalformedResponse("empty response")

    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedResponse(f"invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise MalformedResponse(f"expected a JSON array, got {type(data).__name__}")
    if len(data) != expected_count:
        raise MalformedResponse(f"expected {expected_count} questions, got {len(data)}")

    return [QuizQuestion.from_dict(item) for item in data]


def _response_text(response: Any) -> str:
    # response.text báo ValueError khi không có candidate (ví dụ bị chặn)
    try:
        text = response.text
    except ValueError:
        return ""
    return text.strip() if isinstance(text, str) else ""


class TutorService:
    """
    Điều phối các lời gọi tới Gemini.

    key_store được truyền từ ngoài vào để test có thể thay bằng
    MemoryKeyStore. Key được đọc lại trước mỗi lời gọi.
    """

    def __init__(self, key_store: KeyStore, config: Optional[AppConfig] = None):
        self.key_store = key_store
        self.config = config or AppConfig()

    # ------------------------------------------------------------
    # Hỏi đáp
    # ------------------------------------------------------------
    def chat(self, history: Sequence[ConversationTurn], new_message: str) -> GenerationResult:
        recent = list(history)[-self.config.history_limit:]
        try:
            model = self._model(CHAT_SYSTEM_INSTRUCTION)
            session = model.start_chat(history=[turn.to_content() for turn in recent])
            response = session.send_message(new_message)
            return GenerationResult.success(_response_text(response) or CHAT_EMPTY_FALLBACK)
        except Exception as exc:
            err = classify_error(exc)
            logger.error("Chat error: %s", err, exc_info=exc)
            if isinstance(err, MissingCredential):
                return GenerationResult.missing_credential()
            return GenerationResult.backend_failure(CHAT_FAILURE_MESSAGE)

    # ------------------------------------------------------------
    # Giải bài tập
    # ------------------------------------------------------------
    def solve(self, text: str, image: Optional[str] = None) -> str:
        """
        Trả về lời giải. Thiếu key thì trả về thông báo SOLVE_MISSING_KEY_MESSAGE;
        các lỗi khác ném BackendFailure.
        """
        try:
            parts: List[Any] = []
            if image:
                parts.append({"mime_type": IMAGE_MIME_TYPE, "data": decode_image(image)})
            parts.append(SOLVE_PROMPT_TEMPLATE.format(text=text))

            model = self._model(SOLVER_SYSTEM_INSTRUCTION)
            response = model.generate_content(parts)
            return _response_text(response) or SOLVE_EMPTY_FALLBACK
        except Exception as exc:
            err = classify_error(exc)
            logger.error("Solver error: %s", err, exc_info=exc)
            if isinstance(err, MissingCredential):
                return SOLVE_MISSING_KEY_MESSAGE
            raise BackendFailure(SOLVE_FAILURE_MESSAGE) from exc

    # ------------------------------------------------------------
    # Sinh đề trắc nghiệm
    # ------------------------------------------------------------
    def generate_quiz(self, topic: Union[PhysicsTopic, str]) -> List[QuizQuestion]:
        """
        Sinh đúng config.quiz_size câu hỏi cho chủ đề topic.
        Ném MissingCredential / BackendFailure / MalformedResponse.
        """
        prompt = QUIZ_PROMPT_TEMPLATE.format(count=self.config.quiz_size, topic=topic_label(topic))
        try:
            model = self._model(
                None,
                generation_config=genai.GenerationConfig(
                    response_mime_type="application/json",
                    response_schema=QUIZ_SCHEMA,
                ),
            )
            response = model.generate_content(prompt)
            questions = parse_quiz(_response_text(response), self.config.quiz_size)
        except Exception as exc:
            err = classify_error(exc)
            logger.error("Quiz generation error: %s", err, exc_info=exc)
            if err is exc:
                raise
            raise err from exc

        logger.info("Generated %d questions for topic %s", len(questions), topic_label(topic))
        return questions

    # ------------------------------------------------------------
    # Nội bộ
    # ------------------------------------------------------------
    def _model(self, system_instruction: Optional[str], **kwargs: Any) -> Any:
        key = self.key_store.get()
        if not key:
            raise MissingCredential("no API key configured")

        genai.configure(api_key=key)
        return genai.GenerativeModel(
            self.config.model_name,
            system_instruction=system_instruction,
            **kwargs,
        )
