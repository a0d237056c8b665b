"""Shared fixtures: a testing app on in-memory SQLite, factories and fakes."""

import itertools
from datetime import date

import pytest

from app import create_app, db
from app.models import Contest, PipelineConfig, User
from app.utils.email_service import EmailService
from app.utils.score_feed import GameStatus

# Position = grid index, value = digit
ROW_NUMBERS = [3, 7, 0, 9, 1, 5, 2, 8, 4, 6]
COL_NUMBERS = [8, 2, 5, 0, 6, 1, 9, 3, 7, 4]


class FakeEmailService(EmailService):
    """Records messages instead of calling the email API"""

    def __init__(self, fail_for=()):
        super().__init__(
            api_key="re_test_key",
            from_email="Squares <no-reply@squares.test>",
            api_url="https://email.invalid/emails",
            timeout=1,
        )
        self.fail_for = set(fail_for)
        self.sent = []

    def send_email(self, to_email, template):
        if to_email in self.fail_for:
            return False
        self.sent.append((to_email, template))
        return True

    def sent_to(self, address):
        return [template for to, template in self.sent if to == address]


class FakeScoreFeed:
    """Score feed returning a fixed game status, or raising a fixed error"""

    def __init__(self, status=None, error=None):
        self.status = status
        self.error = error
        self.calls = 0

    def fetch_game_status(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.status


def make_game_status(**overrides):
    values = {
        "period": 1,
        "status_name": "STATUS_END_PERIOD",
        "status_detail": "End of 1st Quarter",
        "completed": False,
        "home_team": "Kansas City Chiefs",
        "away_team": "Philadelphia Eagles",
        "home_score": 17,
        "away_score": 14,
    }
    values.update(overrides)
    return GameStatus(**values)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def email_service(app):
    return FakeEmailService()


@pytest.fixture
def make_email_service(app):
    return FakeEmailService


@pytest.fixture
def make_status():
    return make_game_status


@pytest.fixture
def make_feed():
    return FakeScoreFeed


@pytest.fixture
def owner(app):
    user = User(email="owner@example.com", first_name="Olivia", last_name="Owner")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def pipeline_config(app):
    config = PipelineConfig(enabled=True, game_date=date(2026, 2, 8), check_start_hour=15)
    db.session.add(config)
    db.session.commit()
    return config


@pytest.fixture
def make_contest(app, owner):
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        values = {
            "name": "Big Game Squares",
            "slug": f"big-game-{n}",
            "owner_id": owner.id,
            "row_team_name": "Kansas City Chiefs",
            "col_team_name": "Philadelphia Eagles",
            "row_numbers": list(ROW_NUMBERS),
            "col_numbers": list(COL_NUMBERS),
            "square_price": 10,
            "payout_q1_percent": 25,
            "payout_q2_percent": 25,
            "payout_q3_percent": 25,
            "payout_final_percent": 25,
            "status": "in_progress",
            "is_super_bowl": True,
        }
        values.update(overrides)

        contest = Contest(**values)
        db.session.add(contest)
        db.session.flush()
        contest.create_squares()
        db.session.commit()
        return contest

    return _make


@pytest.fixture
def claim_square():
    def _claim(contest, row, col, first_name="Wendy", last_name="Winner",
               email="wendy@example.com", venmo="@wendy"):
        square = contest.get_square(row, col)
        square.claim(first_name, last_name, email, venmo)
        db.session.commit()
        return square

    return _claim
