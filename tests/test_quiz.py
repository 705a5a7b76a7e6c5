import unittest
from unittest.mock import MagicMock

from physimind.errors import BackendFailure, MalformedResponse, MissingCredential
from physimind.models import PhysicsTopic, QuizQuestion
from physimind.quiz import (
    MISSING_KEY_MESSAGE,
    RETRY_MESSAGE,
    QuizPhase,
    QuizSession,
    run_generation,
)


def make_questions(n=5, correct=0):
    return [
        QuizQuestion(
            question=f"Câu {i}",
            options=("A", "B", "C", "D"),
            correct_index=correct,
            explanation="...",
        )
        for i in range(n)
    ]


def active_session(n=5):
    return QuizSession().start().loaded(make_questions(n))


class TestSetupAndLoading(unittest.TestCase):
    def test_initial_state(self):
        s = QuizSession()
        self.assertEqual(s.phase, QuizPhase.SETUP)
        self.assertFalse(s.is_active)
        self.assertIsNone(s.current_question)

    def test_choose_topic_and_start(self):
        s = QuizSession().choose_topic(PhysicsTopic.QUANTUM).start()
        self.assertEqual(s.phase, QuizPhase.LOADING)
        self.assertEqual(s.topic, PhysicsTopic.QUANTUM)

    def test_choose_topic_ignored_outside_setup(self):
        s = active_session()
        self.assertIs(s.choose_topic(PhysicsTopic.OPTICS), s)

    def test_loaded_enters_active(self):
        s = active_session()
        self.assertEqual(s.phase, QuizPhase.ACTIVE)
        self.assertEqual(s.current_index, 0)
        self.assertEqual(s.score, 0)
        self.assertIsNone(s.selected_option)
        self.assertEqual(s.total, 5)

    def test_run_generation_success(self):
        generate = MagicMock(return_value=make_questions())
        s = run_generation(QuizSession().choose_topic(PhysicsTopic.OPTICS).start(), generate)
        generate.assert_called_once_with(PhysicsTopic.OPTICS)
        self.assertEqual(s.phase, QuizPhase.ACTIVE)

    def test_run_generation_malformed_returns_to_setup(self):
        generate = MagicMock(side_effect=MalformedResponse("bad json"))
        s = run_generation(QuizSession().start(), generate)
        self.assertEqual(s.phase, QuizPhase.SETUP)
        self.assertEqual(s.error, RETRY_MESSAGE)
        self.assertEqual(s.questions, ())
        self.assertFalse(s.is_active)

    def test_run_generation_backend_failure(self):
        generate = MagicMock(side_effect=BackendFailure("down"))
        s = run_generation(QuizSession().start(), generate)
        self.assertEqual(s.phase, QuizPhase.SETUP)
        self.assertEqual(s.error, RETRY_MESSAGE)

    def test_run_generation_missing_key(self):
        generate = MagicMock(side_effect=MissingCredential())
        s = run_generation(QuizSession().start(), generate)
        self.assertEqual(s.phase, QuizPhase.SETUP)
        self.assertEqual(s.error, MISSING_KEY_MESSAGE)

    def test_run_generation_only_in_loading(self):
        generate = MagicMock()
        s = QuizSession()
        self.assertIs(run_generation(s, generate), s)
        generate.assert_not_called()

    def test_start_clears_previous_error(self):
        s = QuizSession().start().failed("x").start()
        self.assertIsNone(s.error)


class TestAnswering(unittest.TestCase):
    def test_correct_answer_scores(self):
        s = active_session().select(0)
        self.assertEqual(s.score, 1)
        self.assertEqual(s.selected_option, 0)
        self.assertTrue(s.answered)

    def test_wrong_answer_does_not_score(self):
        s = active_session().select(2)
        self.assertEqual(s.score, 0)
        self.assertEqual(s.selected_option, 2)

    def test_second_select_is_rejected(self):
        s = active_session().select(2)
        again = s.select(0)
        self.assertIs(again, s)
        self.assertEqual(again.score, 0)
        self.assertEqual(again.selected_option, 2)

    def test_out_of_range_option(self):
        with self.assertRaises(ValueError):
            active_session().select(4)

    def test_advance_requires_answer(self):
        s = active_session()
        self.assertIs(s.advance(), s)

    def test_advance_moves_to_next_question(self):
        s = active_session().select(1).advance()
        self.assertEqual(s.current_index, 1)
        self.assertIsNone(s.selected_option)
        self.assertEqual(s.phase, QuizPhase.ACTIVE)


class TestFullSession(unittest.TestCase):
    def test_scenario_one_correct_out_of_five(self):
        s = active_session()
        s = s.select(0).advance()      # câu 1 đúng
        self.assertEqual(s.score, 1)
        s = s.select(3).advance()      # câu 2 sai
        self.assertEqual(s.score, 1)
        for _ in range(3):
            s = s.select(2).advance()

        self.assertEqual(s.phase, QuizPhase.RESULT)
        self.assertTrue(s.show_result)
        self.assertEqual((s.score, s.total), (1, 5))

    def test_score_matches_recorded_answers(self):
        s = active_session()
        picks = [0, 1, 0, 3, 0]
        scores = []
        for p in picks:
            s = s.select(p)
            scores.append(s.score)
            s = s.advance()

        expected = sum(1 for q, p in zip(s.questions, s.answers) if p == q.correct_index)
        self.assertEqual(s.answers, tuple(picks))
        self.assertEqual(s.score, expected)
        self.assertEqual(scores, sorted(scores))
        self.assertTrue(0 <= s.score <= s.total)

    def test_result_is_terminal_until_restart(self):
        s = active_session(1).select(0).advance()
        self.assertEqual(s.phase, QuizPhase.RESULT)
        self.assertIs(s.advance(), s)
        self.assertIs(s.select(1), s)
        self.assertIs(s.start(), s)

    def test_restart_resets_everything(self):
        s = QuizSession().choose_topic(PhysicsTopic.RELATIVITY).start().loaded(make_questions(1))
        s = s.select(0).advance().restart()

        self.assertEqual(s.phase, QuizPhase.SETUP)
        self.assertFalse(s.is_active)
        self.assertEqual(s.score, 0)
        self.assertEqual(s.current_index, 0)
        self.assertIsNone(s.selected_option)
        self.assertEqual(s.questions, ())
        self.assertEqual(s.topic, PhysicsTopic.RELATIVITY)

    def test_restart_only_from_result(self):
        s = active_session()
        self.assertIs(s.restart(), s)


class TestResultViews(unittest.TestCase):
    def finish(self, correct_count, total=5):
        s = active_session(total)
        for i in range(total):
            s = s.select(0 if i < correct_count else 1).advance()
        return s

    def test_verdict_tiers(self):
        self.assertTrue(self.finish(5).verdict().startswith("Xuất sắc"))
        self.assertTrue(self.finish(4).verdict().startswith("Rất tốt"))
        self.assertTrue(self.finish(3).verdict().startswith("Khá tốt"))
        self.assertTrue(self.finish(1).verdict().startswith("Cần ôn tập"))

    def test_review_rows(self):
        rows = self.finish(1).review_rows()
        self.assertEqual(len(rows), 5)
        self.assertEqual(rows[0]["Kết quả"], "✅")
        self.assertEqual(rows[1]["Bạn chọn"], "B")
        self.assertEqual(rows[1]["Đáp án đúng"], "A")


if __name__ == "__main__":
    unittest.main()
