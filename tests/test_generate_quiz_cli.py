import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from physimind.errors import MalformedResponse, MissingCredential
from physimind.models import PhysicsTopic, QuizQuestion
from tools import generate_quiz

QUESTIONS = [
    QuizQuestion(
        question="Ánh sáng truyền nhanh nhất trong môi trường nào?",
        options=("Chân không", "Nước", "Thủy tinh", "Kim cương"),
        correct_index=0,
        explanation="Chiết suất của chân không bằng 1.",
    )
]


class TestGenerateQuizCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.config_path = Path(self.tmp.name) / "config.toml"
        self.config_path.write_text(
            f"[storage]\nkey_file = \"{(Path(self.tmp.name) / 'k.json').as_posix()}\"\n",
            encoding="utf-8",
        )
        patcher = patch.object(generate_quiz.TutorService, "generate_quiz")
        self.mock_generate = patcher.start()
        self.addCleanup(patcher.stop)
        logging_patch = patch.object(generate_quiz, "configure_logging")
        logging_patch.start()
        self.addCleanup(logging_patch.stop)

    def run_main(self, *args):
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = generate_quiz.main(["--config", str(self.config_path), *args])
        return code, out.getvalue(), err.getvalue()

    def test_text_output_marks_correct_option(self):
        self.mock_generate.return_value = QUESTIONS

        code, out, _ = self.run_main("--topic", "Quang học")

        self.assertEqual(code, 0)
        self.mock_generate.assert_called_once_with(PhysicsTopic.OPTICS)
        self.assertIn("Câu 1:", out)
        self.assertIn("* A. Chân không", out)

    def test_json_output(self):
        self.mock_generate.return_value = QUESTIONS

        code, out, _ = self.run_main("--json")

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), [QUESTIONS[0].to_dict()])

    def test_missing_key_exit_code(self):
        self.mock_generate.side_effect = MissingCredential()
        code, _, err = self.run_main()
        self.assertEqual(code, 2)
        self.assertIn("API Key", err)

    def test_backend_failure_exit_code(self):
        self.mock_generate.side_effect = MalformedResponse("bad json")
        code, _, err = self.run_main()
        self.assertEqual(code, 1)
        self.assertIn("bad json", err)

    def test_unknown_topic_is_rejected(self):
        with self.assertRaises(SystemExit):
            with redirect_stderr(StringIO()):
                generate_quiz.main(["--topic", "Hóa học"])


if __name__ == "__main__":
    unittest.main()
