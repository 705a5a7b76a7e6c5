"""
tools/generate_quiz.py
===========================

Sinh một đề trắc nghiệm từ dòng lệnh, không cần mở trình duyệt.
Tiện để kiểm tra API key và model đang cấu hình.

Vai trò chính:
- Đọc config.toml (AppConfig) và key đã lưu (FileKeyStore)
- Gọi TutorService.generate_quiz cho chủ đề đã chọn
- In đề ra stdout (dạng văn bản hoặc JSON)

Ví dụ:
    python tools/generate_quiz.py --topic "Quang học"
    python tools/generate_quiz.py --topic "Cơ học" --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from physimind.config import configure_logging, load_config
from physimind.errors import BackendFailure, MissingCredential
from physimind.key_store import FileKeyStore
from physimind.models import PhysicsTopic, QuizQuestion
from physimind.tutor import TutorService

logger = logging.getLogger("physimind.tools.generate_quiz")


def format_quiz(questions: List[QuizQuestion]) -> str:
    lines: List[str] = []
    for i, q in enumerate(questions, start=1):
        lines.append(f"Câu {i}: {q.question}")
        for idx, option in enumerate(q.options):
            marker = "*" if idx == q.correct_index else " "
            lines.append(f"  {marker} {chr(65 + idx)}. {option}")
        lines.append(f"  Giải thích: {q.explanation}")
        lines.append("")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sinh đề trắc nghiệm Vật lý bằng Gemini",
    )
    parser.add_argument(
        "--topic",
        type=str,
        default=PhysicsTopic.MECHANICS.value,
        choices=[t.value for t in PhysicsTopic],
        help="Chủ đề (mặc định: Cơ học)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="In đề dưới dạng JSON thay vì văn bản",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Đường dẫn config.toml (mặc định: config.toml ở thư mục gốc)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_config(args.config)
    configure_logging(cfg.log_level)

    store = FileKeyStore(cfg.key_file, default_key=cfg.default_api_key)
    service = TutorService(store, cfg)

    try:
        questions = service.generate_quiz(PhysicsTopic(args.topic))
    except MissingCredential:
        print("Chưa có API Key. Hãy đặt GEMINI_API_KEY hoặc lưu key trong ứng dụng.", file=sys.stderr)
        return 2
    except BackendFailure as e:
        print(f"Không thể tạo câu hỏi: {e}", file=sys.stderr)
        return 1

    logger.info("Đã tạo %d câu hỏi cho chủ đề %s", len(questions), args.topic)

    if args.json:
        print(json.dumps([q.to_dict() for q in questions], ensure_ascii=False, indent=2))
    else:
        print(format_quiz(questions))
    return 0


if __name__ == "__main__":
    sys.exit(main())
