"""
Manual score entry for contest owners

Owners can record quarter scores themselves while their contest is in
progress. Winners are resolved with the same calculator the automated
pipeline uses.
"""

import logging
from collections import namedtuple

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import Contest, Score
from app.utils.quarters import QUARTERS
from app.utils.scoring import compute_winner

logger = logging.getLogger(__name__)


class ScoreEntryError(Exception):
    """Score entry was rejected"""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class WinnerInfo(
    namedtuple(
        "WinnerInfo",
        [
            "quarter",
            "home_score",
            "away_score",
            "winning_square_id",
            "winner_name",
            "winner_email",
        ],
    )
):
    __slots__ = ()

    def to_dict(self):
        return self._asdict()


def _parse_score_value(entry, key):
    value = entry.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScoreEntryError(f"{key} must be a whole number")
    if value < 0:
        raise ScoreEntryError(f"{key} cannot be negative")
    return value


def _parse_entry(entry):
    if not isinstance(entry, dict):
        raise ScoreEntryError("Each score must be an object")

    quarter = entry.get("quarter")
    if quarter not in QUARTERS:
        raise ScoreEntryError(f"Invalid quarter: {quarter}")

    return (
        quarter,
        _parse_score_value(entry, "home_score"),
        _parse_score_value(entry, "away_score"),
    )


def save_scores(contest_id, owner_id, scores):
    """
    Save one or more quarter scores for a contest

    Args:
        contest_id: Contest to score
        owner_id: User making the entry, must own the contest
        scores: Iterable of {"quarter", "home_score", "away_score"}

    Returns:
        list[WinnerInfo]: One entry per saved score, in input order

    Raises:
        ScoreEntryError: On any validation or storage failure
    """
    contest = db.session.get(Contest, contest_id)
    if contest is None:
        raise ScoreEntryError("Contest not found", 404)

    if contest.owner_id != owner_id:
        raise ScoreEntryError("You do not own this contest", 403)

    if contest.status != "in_progress":
        raise ScoreEntryError("Scores can only be entered when the contest is in progress")

    if not contest.numbers_assigned:
        raise ScoreEntryError("Grid numbers must be assigned before entering scores")

    parsed = [_parse_entry(entry) for entry in scores or []]
    if not parsed:
        raise ScoreEntryError("No scores provided")

    squares = contest.squares.all()
    winners = []

    for quarter, home_score, away_score in parsed:
        square = compute_winner(contest, home_score, away_score, squares=squares).square
        winning_square_id = square.id if square else None

        try:
            Score.upsert(contest.id, quarter, home_score, away_score, winning_square_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to save {quarter} score for contest {contest_id}: {e}")
            raise ScoreEntryError(f"Failed to save score for {quarter}", 500) from e

        winners.append(
            WinnerInfo(
                quarter=quarter,
                home_score=home_score,
                away_score=away_score,
                winning_square_id=winning_square_id,
                winner_name=square.claimant_name if square else None,
                winner_email=square.claimant_email if square else None,
            )
        )

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to commit scores for contest {contest_id}: {e}")
        raise ScoreEntryError("Failed to save scores", 500) from e

    logger.info(f"Saved {len(winners)} score(s) for contest {contest_id}")
    return winners
