import pytest

from app import db
from app.models import QuarterResult, Score, User
from app.services.quarter_processor import QuarterProcessor
from app.services.score_entry import ScoreEntryError, save_scores


def entry(quarter="q1", home_score=17, away_score=14):
    return {"quarter": quarter, "home_score": home_score, "away_score": away_score}


def test_saves_scores_and_reports_winners(make_contest, claim_square):
    contest = make_contest()
    square = claim_square(contest, 1, 9)

    winners = save_scores(contest.id, contest.owner_id, [entry("q1"), entry("q2", 20, 30)])

    assert [w.quarter for w in winners] == ["q1", "q2"]
    assert winners[0].winning_square_id == square.id
    assert winners[0].winner_name == "Wendy Winner"
    assert winners[0].winner_email == "wendy@example.com"
    assert winners[1].winner_name is None
    assert winners[1].to_dict()["winning_square_id"] == contest.get_square(2, 3).id

    assert Score.query.filter_by(contest_id=contest.id).count() == 2


def test_unclaimed_winner_has_no_name(make_contest):
    contest = make_contest()

    [winner] = save_scores(contest.id, contest.owner_id, [entry()])

    assert winner.winning_square_id is not None
    assert winner.winner_name is None
    assert winner.winner_email is None


def test_overwrites_previous_entry(make_contest):
    contest = make_contest()

    save_scores(contest.id, contest.owner_id, [entry("final", 3, 0)])
    save_scores(contest.id, contest.owner_id, [entry("final", 27, 24)])

    [score] = Score.query.filter_by(contest_id=contest.id).all()
    assert (score.home_score, score.away_score) == (27, 24)


def test_unknown_contest(app):
    with pytest.raises(ScoreEntryError) as excinfo:
        save_scores(999, 1, [entry()])
    assert excinfo.value.status_code == 404


def test_only_the_owner_may_enter_scores(make_contest):
    contest = make_contest()
    intruder = User(email="intruder@example.com")
    db.session.add(intruder)
    db.session.commit()

    with pytest.raises(ScoreEntryError) as excinfo:
        save_scores(contest.id, intruder.id, [entry()])

    assert excinfo.value.status_code == 403
    assert excinfo.value.message == "You do not own this contest"


@pytest.mark.parametrize("status", ["open", "locked", "completed"])
def test_contest_must_be_in_progress(make_contest, status):
    contest = make_contest(status=status)

    with pytest.raises(ScoreEntryError) as excinfo:
        save_scores(contest.id, contest.owner_id, [entry()])
    assert excinfo.value.status_code == 400


def test_numbers_must_be_assigned(make_contest):
    contest = make_contest(col_numbers=None)

    with pytest.raises(ScoreEntryError, match="numbers must be assigned"):
        save_scores(contest.id, contest.owner_id, [entry()])


@pytest.mark.parametrize(
    "scores",
    [
        [],
        None,
        [entry(quarter="q5")],
        [entry(home_score=-1)],
        [entry(away_score="7")],
        [entry(home_score=True)],
        [entry(away_score=1.5)],
        ["q1"],
    ],
)
def test_rejects_invalid_entries(make_contest, scores):
    contest = make_contest()

    with pytest.raises(ScoreEntryError) as excinfo:
        save_scores(contest.id, contest.owner_id, scores)

    assert excinfo.value.status_code == 400
    assert Score.query.count() == 0


def test_matches_automated_winner(make_contest, claim_square, email_service):
    contest = make_contest()
    claim_square(contest, 2, 3)

    [manual] = save_scores(contest.id, contest.owner_id, [entry("q3", 40, 10)])
    QuarterProcessor(email_service, "https://squares.test").process_quarter(contest, "q3", 40, 10)

    automated = QuarterResult.get_for(contest.id, "q3")
    assert manual.winning_square_id == automated.winning_square_id
