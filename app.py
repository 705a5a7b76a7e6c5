"""
app.py
======================

Điểm khởi động ứng dụng gia sư Vật lý PhysiMind (Streamlit).

Đặc điểm:
- Trang chủ + thanh điều hướng (Trang chủ / Hỏi Đáp / Giải Bài / Trắc Nghiệm)
- Hỏi đáp với gia sư AI
- Giải bài tập từ văn bản và/hoặc ảnh chụp đề
- Trắc nghiệm 5 câu do Gemini sinh theo chủ đề
- Hộp thoại nhập API Key (lưu cục bộ, xem physimind/key_store.py)

Điều kiện:
- config.toml ở thư mục gốc (không có thì dùng giá trị mặc định)
- API key: nhập qua nút 🔑, hoặc đặt biến môi trường GEMINI_API_KEY
"""

from __future__ import annotations

import base64
import logging

import streamlit as st

from physimind.chat import add_question, add_reply, initial_transcript
from physimind.config import AppConfig, configure_logging, load_config
from physimind.errors import BackendFailure
from physimind.key_store import FileKeyStore, KeyStore
from physimind.models import ViewMode
from physimind.quiz import QuizPhase, QuizSession, run_generation
from physimind.tutor import SOLVE_MISSING_KEY_MESSAGE, TutorService
from physimind.ui import (
    API_KEY_URL,
    SOLVER_RETRY_MESSAGE,
    inject_css,
    render_home,
    render_nav,
    render_quiz_question,
    render_quiz_result,
    render_quiz_setup,
    render_solution,
    render_transcript,
)

logger = logging.getLogger("physimind.app")


# ----------------------------------------------------------------------
#  Thiết lập / dịch vụ
# ----------------------------------------------------------------------
def load_app_config() -> AppConfig:
    """Đọc config.toml một lần rồi giữ trong session."""
    if "app_config" not in st.session_state:
        cfg = load_config()
        configure_logging(cfg.log_level)
        st.session_state["app_config"] = cfg
    return st.session_state["app_config"]


def get_key_store() -> KeyStore:
    cfg = load_app_config()
    return FileKeyStore(cfg.key_file, default_key=cfg.default_api_key)


def get_service() -> TutorService:
    return TutorService(get_key_store(), load_app_config())


def set_page(page: ViewMode) -> None:
    st.session_state["page"] = page.value


def get_page() -> ViewMode:
    try:
        return ViewMode(st.session_state.get("page", ViewMode.HOME.value))
    except ValueError:
        return ViewMode.HOME


def get_quiz_session() -> QuizSession:
    if "quiz_session" not in st.session_state:
        st.session_state["quiz_session"] = QuizSession()
    return st.session_state["quiz_session"]


def set_quiz_session(session: QuizSession) -> None:
    st.session_state["quiz_session"] = session


# ----------------------------------------------------------------------
#  Hộp thoại API Key
# ----------------------------------------------------------------------
@st.dialog("🔑 Cài đặt API Key")
def key_dialog() -> None:
    store = get_key_store()
    st.write(
        "Để sử dụng AI, bạn cần nhập Google Gemini API Key. "
        "Key này sẽ được lưu trên máy của bạn."
    )
    value = st.text_input(
        "API Key",
        value=store.stored() or "",
        type="password",
        placeholder="AIzaSy...",
    )

    col_close, col_save = st.columns(2)
    with col_close:
        if st.button("Đóng"):
            st.rerun()
    with col_save:
        if st.button("Lưu Key", type="primary"):
            if value.strip():
                store.set(value)
                logger.info("API key updated from dialog")
                st.session_state["key_saved"] = True
                st.rerun()

    st.markdown(f"[Chưa có key? Lấy miễn phí tại đây]({API_KEY_URL})")


# ----------------------------------------------------------------------
#  Trang: Hỏi đáp
# ----------------------------------------------------------------------
def render_chat_page() -> None:
    st.markdown("## 💬 Hỏi Đáp Vật Lý")

    if "chat_transcript" not in st.session_state:
        st.session_state["chat_transcript"] = initial_transcript()

    render_transcript(st.session_state["chat_transcript"])

    pending = st.session_state.get("chat_pending", False)
    text = st.chat_input(
        "Nhập câu hỏi của bạn về vật lý...",
        disabled=pending,
    )
    if text and text.strip() and not pending:
        # lượt hỏi hiện ngay, câu trả lời được lấy ở lần chạy sau
        st.session_state["chat_transcript"] = add_question(
            st.session_state["chat_transcript"], text
        )
        st.session_state["chat_pending"] = True
        st.rerun()

    if pending:
        with st.spinner("Gia sư đang trả lời..."):
            st.session_state["chat_transcript"] = add_reply(
                get_service(), st.session_state["chat_transcript"]
            )
        st.session_state["chat_pending"] = False
        st.rerun()



# ----------------------------------------------------------------------
#  Trang: Giải bài tập
# ----------------------------------------------------------------------
def render_solver_page() -> None:
    st.markdown("## 📸 Giải Bài Tập")

    pending = st.session_state.get("solver_pending", False)

    upload = st.file_uploader(
        "Tải ảnh bài tập lên",
        type=["png", "jpg", "jpeg", "webp"],
        key="solver_image",
    )
    if upload is not None:
        st.image(upload, caption="Đề bài")

    text = st.text_area(
        "Nội dung câu hỏi / Ghi chú thêm",
        placeholder="Nhập đề bài hoặc câu hỏi cụ thể của bạn ở đây...",
        key="solver_text",
    )

    can_solve = bool(text.strip()) or upload is not None
    if st.button(
        "Đang Phân Tích..." if pending else "Giải Bài Tập",
        key="solver_solve",
        type="primary",
        disabled=pending or not can_solve,
    ):
        st.session_state["solver_pending"] = True
        st.rerun()

    if pending:
        image = base64.b64encode(upload.getvalue()).decode("ascii") if upload is not None else None
        with st.spinner("AI đang suy nghĩ và tính toán..."):
            try:
                solution = get_service().solve(text, image)
                is_error = solution == SOLVE_MISSING_KEY_MESSAGE
            except BackendFailure:
                solution, is_error = SOLVER_RETRY_MESSAGE, True
        st.session_state["solver_solution"] = (solution, is_error)
        st.session_state["solver_pending"] = False
        st.rerun()

    solution, is_error = st.session_state.get("solver_solution", (None, False))
    render_solution(solution, is_error)


# ----------------------------------------------------------------------
#  Trang: Trắc nghiệm
# ----------------------------------------------------------------------
def render_quiz_page() -> None:
    session = get_quiz_session()

    if session.phase == QuizPhase.LOADING:
        st.markdown("## Đang Tạo Đề Thi...")
        with st.spinner(f"AI đang biên soạn các câu hỏi về {session.topic.value}"):
            session = run_generation(session, get_service().generate_quiz)
        set_quiz_session(session)
        st.rerun()

    if session.phase == QuizPhase.SETUP:
        ui_result = render_quiz_setup(session)
        session = session.choose_topic(ui_result["topic"])
        if ui_result["start"]:
            session = session.start()
            set_quiz_session(session)
            st.rerun()
        set_quiz_session(session)

    elif session.phase == QuizPhase.RESULT:
        ui_result = render_quiz_result(session)
        if ui_result["restart"]:
            set_quiz_session(session.restart())
            st.rerun()

    else:
        ui_result = render_quiz_question(session)
        if ui_result["selected_option"] is not None:
            set_quiz_session(session.select(ui_result["selected_option"]))
            st.rerun()
        elif ui_result["clicked_next"]:
            set_quiz_session(session.advance())
            st.rerun()


# ----------------------------------------------------------------------
#  Trang chủ
# ----------------------------------------------------------------------
def render_home_page(has_key: bool) -> None:
    ui_result = render_home(has_key)
    if ui_result["topic"] is not None:
        set_quiz_session(get_quiz_session().choose_topic(ui_result["topic"]))
    if ui_result["goto"] is not None:
        set_page(ui_result["goto"])
        st.rerun()


# ----------------------------------------------------------------------
#  Main
# ----------------------------------------------------------------------
def main() -> None:
    cfg = load_app_config()
    st.set_page_config(
        page_title=cfg.app_name,
        page_icon="⚛️",
        layout="centered",
    )
    inject_css()

    if st.session_state.pop("key_saved", False):
        st.toast("Đã lưu API Key thành công!")

    has_key = get_key_store().has_key()
    page = get_page()

    nav = render_nav(page, has_key)
    if nav["open_key_dialog"]:
        key_dialog()
    if nav["goto"] is not None and nav["goto"] != page:
        set_page(nav["goto"])
        st.rerun()

    if page == ViewMode.CHAT:
        render_chat_page()
    elif page == ViewMode.SOLVER:
        render_solver_page()
    elif page == ViewMode.QUIZ:
        render_quiz_page()
    else:
        render_home_page(has_key)


if __name__ == "__main__":
    main()
