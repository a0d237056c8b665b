"""
Per-(contest, quarter) processing for the score pipeline

Resolves the winner for one quarter, writes the result with an atomic upsert
and sends whichever notification emails are still outstanding. Re-running the
same pair is safe: a fully notified pair is a no-op and a partially notified
pair only sends what is missing.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import QuarterResult, Score
from app.socketio_handlers import broadcast_quarter_result
from app.utils.email_templates import (
    NOTIFICATION_OWNER_QUARTER,
    NOTIFICATION_WINNER,
    QuarterResultNotice,
    WinnerNotice,
)
from app.utils.quarters import QUARTER_DISPLAY
from app.utils.scoring import build_winner_name, calculate_prize_amount, compute_winner

logger = logging.getLogger(__name__)


@dataclass
class QuarterOutcome:
    contest_id: int
    quarter: str
    processed: bool
    error: Optional[str] = None
    winner_email_sent: bool = False
    owner_email_sent: bool = False

    def to_dict(self):
        data = asdict(self)
        if data["error"] is None:
            del data["error"]
        return data


def build_contest_url(site_url, slug):
    return f"{site_url.rstrip('/')}/contest/{quote(slug, safe='')}"


class QuarterProcessor:
    """Writes quarter results and dispatches their notifications"""

    def __init__(self, email_service, site_url):
        self.email_service = email_service
        self.site_url = site_url

    def process_quarter(self, contest, quarter, home_score, away_score):
        """
        Process one quarter of one contest

        Args:
            contest: Contest with numbers assigned
            quarter: Quarter key (q1, q2, q3, final)
            home_score: Home team score at the quarter boundary
            away_score: Away team score at the quarter boundary

        Returns:
            QuarterOutcome
        """
        contest_id = contest.id
        quarter_name = QUARTER_DISPLAY.get(quarter, quarter)

        try:
            existing = QuarterResult.get_for(contest_id, quarter)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to read {quarter} result for contest {contest_id}: {e}")
            return QuarterOutcome(
                contest_id, quarter, processed=False, error=f"Failed to read result: {e}"
            )

        winner_already_sent = bool(existing and existing.winner_email_sent)
        owner_already_sent = bool(existing and existing.owner_email_sent)

        if winner_already_sent and owner_already_sent:
            logger.debug(f"Quarter {quarter} already fully processed for contest {contest_id}")
            return QuarterOutcome(
                contest_id,
                quarter,
                processed=False,
                winner_email_sent=True,
                owner_email_sent=True,
            )

        try:
            squares = contest.squares.all()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to fetch squares for contest {contest_id}: {e}")
            return QuarterOutcome(
                contest_id, quarter, processed=False, error=f"Failed to fetch squares: {e}"
            )

        winner = compute_winner(contest, home_score, away_score, squares=squares)
        square = winner.square

        payout_percent = contest.payout_percent_for(quarter)
        prize_amount = calculate_prize_amount(contest.square_price, payout_percent)

        # Snapshot everything needed after the commit
        winning_square_id = square.id if square else None
        first_name = square.claimant_first_name if square else None
        last_name = square.claimant_last_name if square else None
        claimant_email = square.claimant_email if square else None
        claimant_venmo = square.claimant_venmo if square else None
        contest_name = contest.name
        home_team = contest.row_team_name
        away_team = contest.col_team_name
        contest_slug = contest.slug

        try:
            QuarterResult.upsert(
                {
                    "contest_id": contest_id,
                    "quarter": quarter,
                    "home_score": home_score,
                    "away_score": away_score,
                    "home_last_digit": winner.home_digit,
                    "away_last_digit": winner.away_digit,
                    "winning_square_id": winning_square_id,
                    "winner_first_name": first_name,
                    "winner_last_name": last_name,
                    "winner_email": claimant_email,
                    "winner_venmo": claimant_venmo,
                    "prize_amount": prize_amount,
                    "payout_percent": payout_percent,
                }
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to upsert {quarter} result for contest {contest_id}: {e}")
            return QuarterOutcome(
                contest_id, quarter, processed=False, error=f"Failed to upsert result: {e}"
            )

        self._mirror_score(contest_id, quarter, home_score, away_score, winning_square_id)

        # Winner email
        winner_sent = winner_already_sent
        if not winner_already_sent:
            if claimant_email:
                winner_sent = self.email_service.send_notification(
                    claimant_email,
                    NOTIFICATION_WINNER,
                    WinnerNotice(
                        participant_name=first_name or "Winner",
                        contest_name=contest_name,
                        quarter_name=quarter_name,
                        home_team_name=home_team,
                        away_team_name=away_team,
                        home_score=home_score,
                        away_score=away_score,
                        prize_amount=prize_amount,
                        contest_url=build_contest_url(self.site_url, contest_slug),
                    ),
                )
            else:
                # Nobody to notify for an unclaimed square
                winner_sent = True

        # Owner email
        owner_sent = owner_already_sent
        owner_error = None
        if not owner_already_sent:
            try:
                owner = contest.owner_contact()
            except SQLAlchemyError as e:
                # The winner delivery above is still recorded below
                db.session.rollback()
                logger.error(f"Failed to resolve owner for contest {contest_id}: {e}")
                owner = None
                owner_error = f"Failed to resolve owner: {e}"

            if owner:
                owner_sent = self.email_service.send_notification(
                    owner.email,
                    NOTIFICATION_OWNER_QUARTER,
                    QuarterResultNotice(
                        owner_name=owner.name,
                        contest_name=contest_name,
                        quarter_name=quarter_name,
                        home_team_name=home_team,
                        away_team_name=away_team,
                        home_score=home_score,
                        away_score=away_score,
                        winner_name=build_winner_name(first_name, last_name),
                        winner_email=claimant_email,
                        winner_venmo=claimant_venmo,
                        prize_amount=prize_amount,
                    ),
                )
            elif owner_error is None:
                logger.warning(f"No owner email for contest {contest_id}, owner notice left pending")

        outcome = QuarterOutcome(
            contest_id,
            quarter,
            processed=True,
            error=owner_error,
            winner_email_sent=winner_sent,
            owner_email_sent=owner_sent,
        )

        try:
            QuarterResult.mark_emails_sent(
                contest_id,
                quarter,
                winner=winner_sent and not winner_already_sent,
                owner=owner_sent and not owner_already_sent,
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to record email delivery for contest {contest_id} {quarter}: {e}")
            outcome.error = f"Failed to record email delivery: {e}"

        try:
            result = QuarterResult.get_for(contest_id, quarter)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Skipping broadcast of {quarter} for contest {contest_id}: {e}")
            result = None

        if result is not None:
            broadcast_quarter_result(result)

        logger.info(
            f"Processed {quarter} for contest {contest_id}: "
            f"{home_score}-{away_score}, winner square {winning_square_id}"
        )
        return outcome

    @staticmethod
    def _mirror_score(contest_id, quarter, home_score, away_score, winning_square_id):
        """Keep the contest page score in step with the result. Failures only log."""
        try:
            Score.upsert(contest_id, quarter, home_score, away_score, winning_square_id)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(f"Failed to mirror {quarter} score for contest {contest_id}: {e}")
