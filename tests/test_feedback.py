from datetime import datetime, timedelta, timezone

import pytest

from examprep.errors import NotFound, Unauthorized, ValidationError
from examprep.extensions import db
from examprep.models import Feedback
from examprep.services import ExamService, FeedbackService, PerformanceService, ScoringService


@pytest.fixture
def result_for(question_bank):
    def submit(user):
        started = ExamService.start_test(user_id=user.id)
        summary = ScoringService.submit_test(started["submissionToken"], {}, 30)
        return summary["resultId"]
    return submit


class TestAddFeedback:

    def test_first_flagged_feedback(self, instructor, student):
        FeedbackService.add_feedback(instructor.id, student.id, "Review access controls", needs_reassessment=True)

        history = FeedbackService.history(student.id)
        assert len(history) == 1
        assert history[0].needs_reassessment is True
        assert FeedbackService.needs_reassessment(student.id) is True

    def test_latest_entry_decides_flag(self, instructor, student):
        FeedbackService.add_feedback(instructor.id, student.id, "Retake please", needs_reassessment=True)
        FeedbackService.add_feedback(instructor.id, student.id, "Much better")

        assert FeedbackService.needs_reassessment(student.id) is False
        assert [f.feedback_text for f in FeedbackService.history(student.id)] == [
            "Much better", "Retake please"
        ]

    def test_no_feedback_means_no_flag(self, student):
        assert FeedbackService.needs_reassessment(student.id) is False

    def test_history_is_append_only(self, instructor, student):
        for n in range(3):
            FeedbackService.add_feedback(instructor.id, student.id, f"Note {n}")

        assert Feedback.query.filter_by(student_id=student.id).count() == 3

    def test_requires_text(self, instructor, student):
        with pytest.raises(ValidationError):
            FeedbackService.add_feedback(instructor.id, student.id, "   ")

    @pytest.mark.parametrize("flag", ["false", "true", 1, None])
    def test_flag_must_be_boolean(self, instructor, student, flag):
        with pytest.raises(ValidationError):
            FeedbackService.add_feedback(instructor.id, student.id, "Check this", needs_reassessment=flag)

        assert Feedback.query.count() == 0

    def test_requires_instructor(self, students):
        with pytest.raises(Unauthorized):
            FeedbackService.add_feedback(students[1].id, students[0].id, "Peer review")

    def test_unknown_student(self, instructor):
        with pytest.raises(NotFound):
            FeedbackService.add_feedback(instructor.id, 9999, "Hello?")

    def test_linked_result_must_belong_to_student(self, instructor, students, result_for):
        bobs_result = result_for(students[1])

        with pytest.raises(ValidationError):
            FeedbackService.add_feedback(instructor.id, students[0].id, "Wrong link", test_result_id=bobs_result)
        with pytest.raises(NotFound):
            FeedbackService.add_feedback(instructor.id, students[0].id, "No such result", test_result_id=9999)

        feedback = FeedbackService.add_feedback(
            instructor.id, students[1].id, "Good pacing", test_result_id=bobs_result
        )
        assert feedback.test_result_id == bobs_result


class TestInstructorViews:

    def test_list_students_carries_latest_flag(self, instructor, students, result_for):
        result_for(students[0])
        FeedbackService.add_feedback(instructor.id, students[0].id, "Retake", needs_reassessment=True)
        FeedbackService.add_feedback(instructor.id, students[1].id, "Retake", needs_reassessment=True)
        FeedbackService.add_feedback(instructor.id, students[1].id, "Fine now")

        rows = {row["fullname"]: row for row in PerformanceService.list_students(instructor.id)}

        assert set(rows) == {s.fullname for s in students}
        assert rows["Alice Student"]["needs_reassessment"] is True
        assert rows["Alice Student"]["total_tests"] == 1
        assert rows["Bob Student"]["needs_reassessment"] is False
        assert rows["Carol Student"]["needs_reassessment"] is False
        assert rows["Carol Student"]["total_tests"] == 0
        assert rows["Carol Student"]["avg_score"] is None

    def test_flags_use_latest_row_per_student(self, instructor, students):
        stamp = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
        alice, bob, _ = students
        db.session.add_all([
            Feedback(student_id=alice.id, instructor_id=instructor.id, feedback_text="old",
                     needs_reassessment=False, created_at=stamp - timedelta(days=1)),
            Feedback(student_id=alice.id, instructor_id=instructor.id, feedback_text="new",
                     needs_reassessment=True, created_at=stamp),
            Feedback(student_id=bob.id, instructor_id=instructor.id, feedback_text="first",
                     needs_reassessment=True, created_at=stamp),
            Feedback(student_id=bob.id, instructor_id=instructor.id, feedback_text="same time",
                     needs_reassessment=False, created_at=stamp),
        ])
        db.session.commit()

        assert FeedbackService.reassessment_flags() == {alice.id: True, bob.id: False}

    def test_list_students_requires_instructor(self, student):
        with pytest.raises(Unauthorized):
            PerformanceService.list_students(student.id)

    def test_student_details(self, instructor, student, result_for):
        result_id = result_for(student)
        FeedbackService.add_feedback(
            instructor.id, student.id, "See me", test_result_id=result_id, needs_reassessment=True
        )

        details = PerformanceService.student_details(instructor.id, student.id)

        assert details["student"]["id"] == student.id
        assert [r["id"] for r in details["testResults"]] == [result_id]
        assert details["feedback"][0]["instructor_name"] == instructor.fullname
        assert details["feedback"][0]["test_score"] == 0
        assert details["needsReassessment"] is True

    def test_student_details_unknown(self, instructor, other_instructor):
        with pytest.raises(NotFound):
            PerformanceService.student_details(instructor.id, other_instructor.id)


class TestFeedbackRoutes:

    def test_add_feedback_over_http(self, instructor_client, student):
        response = instructor_client.post("/instructor/feedback", json={
            "studentId": student.id,
            "feedbackText": "Focus on network security",
            "needsReassessment": True,
        })

        assert response.status_code == 201
        assert response.get_json()["feedbackId"]

        listing = instructor_client.get("/instructor/students").get_json()["students"]
        alice = next(row for row in listing if row["id"] == student.id)
        assert alice["needs_reassessment"] is True

    def test_student_sees_own_feedback(self, student_client, instructor, student):
        FeedbackService.add_feedback(instructor.id, student.id, "Nice work")

        perf = student_client.get("/api/user-performance").get_json()

        assert [f["feedback_text"] for f in perf["feedback"]] == ["Nice work"]
        assert perf["needsReassessment"] is False

    def test_students_cannot_leave_feedback(self, student_client, students):
        response = student_client.post("/instructor/feedback", json={
            "studentId": students[1].id, "feedbackText": "hi",
        })

        assert response.status_code == 403

    def test_string_flag_is_rejected(self, instructor_client, student):
        response = instructor_client.post("/instructor/feedback", json={
            "studentId": student.id,
            "feedbackText": "Looks fine",
            "needsReassessment": "false",
        })

        assert response.status_code == 400
        assert Feedback.query.count() == 0
