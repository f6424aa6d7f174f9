import pytest

from examprep.errors import InvalidTransition, ValidationError
from examprep.proctoring import ViolationMonitor
from examprep.session import Active, ExamSession, Frozen, Submitted, Terminated


class RecordingSubmitter:
    def __init__(self, fail_times=0):
        self.calls = []
        self.fail_times = fail_times

    def __call__(self, answers, time_taken, token):
        self.calls.append((answers, time_taken, token))
        if self.fail_times:
            self.fail_times -= 1
            raise RuntimeError("network down")
        return {"resultId": len(self.calls), "score": 0, "totalQuestions": 3, "percentage": "0.00"}


def to_last_question(session):
    while not session.is_last_question:
        session.advance()
    return session


def make_session(submitter=None, count=3, question_time=90, exam_time=150 * 60, monitor=None):
    questions = [{"id": 10 + n, "question_text": f"Q{n}"} for n in range(count)]
    return ExamSession(
        student_id=1,
        fullname="Alice Student",
        questions=questions,
        submission_token="token-1",
        submit=submitter or RecordingSubmitter(),
        question_time_limit=question_time,
        exam_time_limit=exam_time,
        monitor=monitor,
    )


def test_session_starts_active_on_first_question_with_full_timers():
    session = make_session()

    assert session.state == Active(0)
    assert session.current_question["id"] == 10
    assert session.question_remaining == 90
    assert session.exam_remaining == 150 * 60


def test_from_start_payload_uses_server_limits():
    payload = {
        "studentId": 4,
        "fullname": "Guest",
        "questions": [{"id": 1}, {"id": 2}],
        "submissionToken": "abc",
        "examTimeLimit": 600,
        "questionTimeLimit": 30,
    }
    session = ExamSession.from_start_payload(payload, RecordingSubmitter())

    assert session.student_id == 4
    assert session.question_remaining == 30
    assert session.exam_remaining == 600


def test_duplicate_questions_are_rejected():
    with pytest.raises(ValidationError):
        ExamSession(1, "A", [{"id": 1}, {"id": 1}], "t", RecordingSubmitter())


def test_answer_can_change_while_active():
    session = make_session()

    assert session.answer("a") is True
    assert session.answer("C") is True
    assert session.answers == {10: "C"}


def test_invalid_option_is_a_validation_error():
    session = make_session()
    with pytest.raises(ValidationError):
        session.answer("E")


def test_question_timer_expiry_freezes_and_locks_answer():
    session = make_session(question_time=5)
    session.answer("B")

    for _ in range(5):
        session.tick()

    assert session.state == Frozen(0)
    assert session.question_remaining == 0
    assert session.answer("D") is False
    assert session.answers == {10: "B"}


def test_frozen_question_does_not_auto_advance():
    session = make_session(question_time=2)
    session.tick(10)

    assert session.state == Frozen(0)
    session.tick(30)
    assert session.index == 0


def test_advance_resets_question_timer_and_unfreezes():
    session = make_session(question_time=2)
    session.tick(2)
    assert session.is_frozen

    session.advance()

    assert session.state == Active(1)
    assert session.question_remaining == 2
    assert session.answer("A") is True


def test_previous_answers_cannot_be_changed_after_advancing():
    session = make_session()
    session.answer("A")
    session.advance()
    session.answer("B")

    assert session.answers == {10: "A", 11: "B"}


def test_submit_before_last_question_is_disallowed():
    submitter = RecordingSubmitter()
    session = make_session(submitter=submitter)
    session.answer("A")

    with pytest.raises(InvalidTransition):
        session.submit()

    session.advance()
    with pytest.raises(InvalidTransition):
        session.submit()

    assert session.state == Active(1)
    assert submitter.calls == []


def test_frozen_last_question_can_be_submitted():
    session = make_session(question_time=2)
    to_last_question(session)
    session.tick(2)
    assert session.is_frozen

    session.submit()

    assert isinstance(session.state, Submitted)


def test_advance_on_last_question_is_disallowed():
    session = make_session(count=2)
    session.advance()

    with pytest.raises(InvalidTransition):
        session.advance()


def test_submit_hands_partial_answers_and_elapsed_time():
    submitter = RecordingSubmitter()
    session = make_session(submitter=submitter)
    session.answer("A")
    session.tick(42)
    to_last_question(session)

    result = session.submit()

    assert submitter.calls == [({10: "A"}, 42, "token-1")]
    assert session.state.forced is False
    assert result["resultId"] == 1
    assert isinstance(session.state, Submitted)
    assert session.result == result


def test_exam_timer_forces_submit_from_any_question():
    submitter = RecordingSubmitter()
    session = make_session(submitter=submitter, count=5, exam_time=100, question_time=90)
    session.answer("D")
    session.advance()

    session.tick(100)

    assert isinstance(session.state, Submitted)
    assert session.state.forced is True
    assert len(submitter.calls) == 1
    assert submitter.calls[0][1] == 100


def test_exam_timer_forces_submit_while_frozen():
    submitter = RecordingSubmitter()
    session = make_session(submitter=submitter, exam_time=10, question_time=3)
    session.tick(3)
    assert session.is_frozen

    session.tick(7)

    assert isinstance(session.state, Submitted)


def test_exam_timer_wins_when_both_timers_hit_zero():
    session = make_session(exam_time=5, question_time=5)
    session.tick(5)

    assert isinstance(session.state, Submitted)


def test_forced_submit_then_manual_submit_is_a_noop():
    submitter = RecordingSubmitter()
    session = make_session(submitter=submitter, exam_time=1)
    session.tick()

    first = session.result
    second = session.submit()

    assert second is first
    assert len(submitter.calls) == 1


def test_ticks_and_answers_after_submission_are_noops():
    session = make_session()
    to_last_question(session)
    session.submit()

    state = session.state
    session.tick(500)
    assert session.answer("A") is False
    assert session.state is state
    with pytest.raises(InvalidTransition):
        session.advance()


def test_failed_submit_keeps_answers_for_retry():
    submitter = RecordingSubmitter(fail_times=1)
    session = make_session(submitter=submitter)
    session.answer("C")
    to_last_question(session)

    with pytest.raises(RuntimeError):
        session.submit()

    assert session.state == Active(2)
    assert session.answers == {10: "C"}

    session.submit()
    assert isinstance(session.state, Submitted)
    assert submitter.calls[1][0] == {10: "C"}


def test_failed_forced_submit_locks_session_until_retry():
    submitter = RecordingSubmitter(fail_times=1)
    session = make_session(submitter=submitter, exam_time=3)
    session.answer("B")

    with pytest.raises(RuntimeError):
        session.tick(3)

    assert session.exam_expired
    assert session.answer("A") is False
    with pytest.raises(InvalidTransition):
        session.advance()
    session.tick()
    assert len(submitter.calls) == 1

    session.submit()
    assert isinstance(session.state, Submitted)
    assert session.state.forced is True


def test_monitor_is_reset_and_can_terminate_the_session(scheduler):
    monitor = ViolationMonitor(max_violations=2, scheduler=scheduler)
    monitor.minimize()
    assert monitor.violations == 1

    session = make_session(monitor=monitor)
    assert monitor.violations == 0

    monitor.minimize()
    monitor.minimize()
    assert session.state == Active(0)
    monitor.minimize()

    assert session.state == Terminated(3)
    assert session.answer("A") is False
    with pytest.raises(InvalidTransition):
        session.submit()


def test_submit_stops_the_monitor(scheduler):
    monitor = ViolationMonitor(scheduler=scheduler)
    session = make_session(monitor=monitor)
    to_last_question(session)

    session.submit()
    monitor.minimize()

    assert monitor.violations == 0
