"""
ui.py
======================

Các thành phần giao diện Streamlit.

Trách nhiệm:
- Theme và CSS
- Thanh điều hướng, trang chủ
- Hiển thị hội thoại, lời giải
- Các màn hình trắc nghiệm (chọn chủ đề / câu hỏi / kết quả)

Module này chỉ lo "hiển thị" và "thao tác của người dùng";
logic gọi Gemini và chuyển trạng thái nằm ở app.py.

Các hàm render_* trả về dict cho biết người dùng vừa bấm gì.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd
import streamlit as st

from .chat import Transcript
from .models import PhysicsTopic, Role, ViewMode
from .quiz import QuizSession

# ----------------------------------------------------------------------
#  Theme
# ----------------------------------------------------------------------
THEMES: Dict[str, Dict[str, str]] = {
    "dark": {
        "bg": "#0f172a",
        "text": "#e2e8f0",
        "surface": "#1e293b",
        "border": "#334155",
        "primary": "#3b82f6",
        "accent": "#a855f7",
        "correct": "#22c55e",
        "incorrect": "#ef4444",
    },
    "light": {
        "bg": "#ffffff",
        "text": "#1c1c1e",
        "surface": "#f2f2f7",
        "border": "#d1d1d6",
        "primary": "#007aff",
        "accent": "#7c3aed",
        "correct": "#34c759",
        "incorrect": "#ff3b30",
    },
}

NAV_LABELS: Dict[ViewMode, str] = {
    ViewMode.HOME: "Trang chủ",
    ViewMode.CHAT: "Hỏi Đáp",
    ViewMode.SOLVER: "Giải Bài",
    ViewMode.QUIZ: "Trắc Nghiệm",
}

FEATURE_CARDS = (
    (
        ViewMode.CHAT,
        "💬 Hỏi Đáp AI",
        "Trò chuyện với Gia sư AI về bất kỳ chủ đề vật lý nào. Giải thích khái niệm, định luật.",
    ),
    (
        ViewMode.SOLVER,
        "📸 Giải Bài Tập",
        "Chụp ảnh đề bài hoặc nhập nội dung câu hỏi. AI sẽ hướng dẫn giải chi tiết từng bước.",
    ),
    (
        ViewMode.QUIZ,
        "📝 Luyện Thi",
        "Thử thách kiến thức với các bài kiểm tra trắc nghiệm được tạo tự động theo chủ đề.",
    ),
)

API_KEY_URL = "https://aistudio.google.com/app/apikey"

SOLVER_RETRY_MESSAGE = "Xin lỗi, không thể xử lý bài toán này. Vui lòng thử lại."


def _generate_css(theme: Dict[str, str]) -> str:
    """Sinh CSS toàn cục theo theme."""

    return f"""
    <style>
    .pm-title {{
        font-size: 2.4rem;
        font-weight: 900;
        text-align: center;
        background: linear-gradient(90deg, #60a5fa, {theme['accent']}, #ec4899);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
    }}

    .pm-subtitle {{
        text-align: center;
        color: {theme['text']}aa;
        margin-bottom: 1rem;
    }}

    .pm-card {{
        padding: 1rem;
        border-radius: 16px;
        border: 1px solid {theme['border']};
        background: {theme['surface']};
        min-height: 7rem;
        margin-bottom: 0.5rem;
    }}

    .pm-error {{
        padding: 0.75rem 1rem;
        border-radius: 12px;
        border: 1px solid {theme['incorrect']};
        background: {theme['incorrect']}22;
    }}

    .pm-progress-row {{
        display: flex;
        justify-content: space-between;
        font-size: 0.85rem;
        text-transform: uppercase;
        letter-spacing: 0.05em;
        color: {theme['text']}aa;
    }}

    .pm-score {{
        font-size: 5rem;
        font-weight: 900;
        text-align: center;
        color: {theme['accent']};
    }}
    </style>
    """


def _ensure_theme() -> str:
    theme_key = st.session_state.get("theme", "dark")
    if theme_key not in THEMES:
        theme_key = "dark"
    st.session_state["theme"] = theme_key
    return theme_key


def _render_theme_selector(theme_key: str) -> str:
    """Chọn theme ở sidebar, trả về khoá theme đã chọn."""
    options = list(THEMES)
    selected = st.sidebar.radio(
        "Giao diện",
        options,
        index=options.index(theme_key),
        horizontal=True,
        format_func=lambda k: {"dark": "Tối", "light": "Sáng"}.get(k, k),
    )
    st.session_state["theme"] = selected
    return selected


def inject_css() -> None:
    theme_key = _render_theme_selector(_ensure_theme())
    st.markdown(_generate_css(THEMES[theme_key]), unsafe_allow_html=True)


# ----------------------------------------------------------------------
#  Thanh điều hướng
# ----------------------------------------------------------------------
def render_nav(current: ViewMode, has_key: bool) -> Dict[str, Any]:
    """
    Vẽ thanh điều hướng.

    Giá trị trả về:
        {"goto": Optional[ViewMode], "open_key_dialog": bool}
    """
    goto: Optional[ViewMode] = None
    open_key_dialog = False

    cols = st.columns([1, 1, 1, 1, 0.6])
    for col, view in zip(cols, NAV_LABELS):
        with col:
            if st.button(
                NAV_LABELS[view],
                key=f"nav_{view.value}",
                type="primary" if view == current else "secondary",
            ):
                goto = view
    with cols[-1]:
        if st.button(
            "🔑" if has_key else "🔑❗",
            key="nav_key",
            help="Cài đặt API Key",
        ):
            open_key_dialog = True

    st.write("---")
    return {"goto": goto, "open_key_dialog": open_key_dialog}


# ----------------------------------------------------------------------
#  Trang chủ
# ----------------------------------------------------------------------
def render_home(has_key: bool) -> Dict[str, Any]:
    goto: Optional[ViewMode] = None
    topic: Optional[PhysicsTopic] = None

    st.markdown("<div class='pm-title'>Khám Phá Vũ Trụ Vật Lý</div>", unsafe_allow_html=True)
    st.markdown(
        "<div class='pm-subtitle'>Học tập thông minh hơn với trợ lý AI. "
        "Giải bài tập, luyện thi trắc nghiệm và hỏi đáp lý thuyết mọi lúc mọi nơi.</div>",
        unsafe_allow_html=True,
    )
    if not has_key:
        st.warning("⚠️ Bạn chưa nhập API Key. Vui lòng bấm vào nút Chìa khóa (🔑) ở góc trên để cài đặt.")

    cols = st.columns(len(FEATURE_CARDS))
    for col, (view, title, desc) in zip(cols, FEATURE_CARDS):
        with col:
            st.markdown(
                f"<div class='pm-card'><h4>{title}</h4><p>{desc}</p></div>",
                unsafe_allow_html=True,
            )
            if st.button("Mở", key=f"home_{view.value}"):
                goto = view

    st.markdown("### Chủ Đề Phổ Biến")
    topics = list(PhysicsTopic)
    for start in range(0, len(topics), 3):
        row = st.columns(3)
        for col, t in zip(row, topics[start:start + 3]):
            with col:
                if st.button(t.value, key=f"home_topic_{t.name}"):
                    goto = ViewMode.QUIZ
                    topic = t

    return {"goto": goto, "topic": topic}


# ----------------------------------------------------------------------
#  Hỏi đáp
# ----------------------------------------------------------------------
def render_transcript(transcript: Transcript) -> None:
    for turn in transcript:
        role = "user" if turn.role == Role.USER else "assistant"
        with st.chat_message(role):
            if turn.is_error:
                st.markdown(f"<div class='pm-error'>{turn.text}</div>", unsafe_allow_html=True)
            else:
                st.markdown(turn.text)


# ----------------------------------------------------------------------
#  Giải bài tập
# ----------------------------------------------------------------------
def render_solution(solution: Optional[str], is_error: bool = False) -> None:
    st.markdown("#### Lời Giải Chi Tiết")
    if solution is None:
        st.caption("Kết quả sẽ hiển thị ở đây")
    elif is_error:
        st.error(solution)
    else:
        st.markdown(solution)


# ----------------------------------------------------------------------
#  Trắc nghiệm
# ----------------------------------------------------------------------
def render_quiz_setup(session: QuizSession) -> Dict[str, Any]:
    st.markdown("## Thử Thách Kiến Thức")
    st.write("Chọn một chủ đề Vật lý để bắt đầu bài kiểm tra nhanh gồm 5 câu hỏi được tạo bởi AI.")

    if session.error:
        st.error(session.error)

    topics = list(PhysicsTopic)
    topic = st.selectbox(
        "Chủ đề",
        topics,
        index=topics.index(session.topic),
        format_func=lambda t: t.value,
        key="quiz_topic",
    )
    start = st.button("Bắt Đầu Làm Bài", key="quiz_start", type="primary")
    return {"topic": topic, "start": start}


def render_quiz_question(session: QuizSession) -> Dict[str, Any]:
    """
    Vẽ câu hỏi hiện tại.

    Giá trị trả về:
        {"selected_option": Optional[int], "clicked_next": bool}
    """
    selected_option: Optional[int] = None
    clicked_next = False

    q = session.current_question
    if q is None:
        return {"selected_option": None, "clicked_next": False}

    st.markdown(
        "<div class='pm-progress-row'>"
        f"<span>Câu hỏi {session.current_index + 1} / {session.total}</span>"
        f"<span>Điểm: {session.score}</span>"
        "</div>",
        unsafe_allow_html=True,
    )
    st.progress((session.current_index + 1) / session.total)
    st.markdown(f"### {q.question}")

    for idx, option in enumerate(q.options):
        label = f"{chr(65 + idx)}. {option}"
        if session.answered:
            if idx == q.correct_index:
                label = f"✅ {label}"
            elif idx == session.selected_option:
                label = f"❌ {label}"
        if st.button(
            label,
            key=f"quiz_opt_{session.current_index}_{idx}",
            disabled=session.answered,
        ):
            selected_option = idx

    if session.answered:
        feedback = st.success if session.selected_option == q.correct_index else st.info
        feedback(f"**Giải thích:** {q.explanation}")
        next_label = "Xem Kết Quả" if session.is_last_question else "Câu Tiếp Theo"
        clicked_next = st.button(next_label, key="quiz_next", type="primary")

    return {"selected_option": selected_option, "clicked_next": clicked_next}


def render_quiz_result(session: QuizSession) -> Dict[str, Any]:
    st.markdown("## Kết Quả")
    st.markdown(f"<div class='pm-score'>{session.score}/{session.total}</div>", unsafe_allow_html=True)
    st.write(session.verdict())

    rows = session.review_rows()
    if rows:
        df = pd.DataFrame(rows).set_index("Câu")
        st.dataframe(df)

    restart = st.button("Thử lại", key="quiz_restart")
    return {"restart": restart}
