import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from werkzeug.security import generate_password_hash

from examprep import create_app
from examprep.extensions import db, proctor_monitors, socketio
from examprep.models import Question, User

DOMAINS = (
    "Security Principles",
    "Business Continuity",
    "Access Controls",
    "Network Security",
    "Security Operations",
)
BANK_SIZE = 120
PASSWORD = "Password123!"


def make_question(n):
    return Question(
        question_text=f"Question {n}?",
        option_a=f"Option A for {n}",
        option_b=f"Option B for {n}",
        option_c=f"Option C for {n}",
        option_d=f"Option D for {n}",
        correct_answer="ABCD"[n % 4],
        domain=DOMAINS[n % len(DOMAINS)],
        explanation=f"Explanation {n}",
    )


def make_user(fullname, email=None, role="student"):
    user = User(
        fullname=fullname,
        email=email,
        password=generate_password_hash(PASSWORD) if email else None,
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
    proctor_monitors.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def question_bank(app):
    questions = [make_question(n) for n in range(1, BANK_SIZE + 1)]
    db.session.add_all(questions)
    db.session.commit()
    return questions


@pytest.fixture
def instructor(app):
    return make_user("Ada Instructor", "instructor@example.com", role="instructor")


@pytest.fixture
def other_instructor(app):
    return make_user("Grace Instructor", "grace@example.com", role="instructor")


@pytest.fixture
def students(app):
    return [
        make_user("Alice Student", "alice@example.com"),
        make_user("Bob Student", "bob@example.com"),
        make_user("Carol Student", "carol@example.com"),
    ]


@pytest.fixture
def student(students):
    return students[0]


def login(client, user):
    response = client.post("/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 200
    return response


@pytest.fixture
def login_as(app):
    """Fresh client signed in as the given user"""
    def sign_in(user):
        client = app.test_client()
        login(client, user)
        return client
    return sign_in


@pytest.fixture
def instructor_client(client, instructor):
    login(client, instructor)
    return client


@pytest.fixture
def student_client(client, student):
    login(client, student)
    return client


@pytest.fixture
def socket_client(app):
    client = socketio.test_client(app)
    yield client
    if client.is_connected():
        client.disconnect()


class ManualHandle:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


class ManualScheduler:
    """Collects debounce callbacks so tests decide when they fire"""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        handle = ManualHandle(callback)
        self.pending.append(handle)
        return handle

    def fire_all(self):
        for handle in list(self.pending):
            handle.fire()
        self.pending.clear()


@pytest.fixture
def scheduler():
    return ManualScheduler()
