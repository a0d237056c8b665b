import logging
from datetime import datetime, timezone

from app import db
from app.models import QuarterResult
from app.socketio_handlers import broadcast_contest_completed
from app.utils.email_templates import (
    NOTIFICATION_FINAL_SUMMARY,
    FinalSummaryNotice,
    SummaryRow,
)
from app.utils.scoring import build_winner_name

logger = logging.getLogger(__name__)


class GameFinalizer:
    """Sends the owner summary and closes a contest once the game is final"""

    def __init__(self, email_service):
        self.email_service = email_service

    def finalize_game(self, contest):
        """
        Summarize all quarter results for a contest and mark it completed

        A contest with no results, or whose owner has no email, is left
        untouched. The contest is completed only once the summary has been
        delivered, so a failed send stays eligible for the next forced run.
        """
        results = QuarterResult.get_for_contest(contest.id)
        if not results:
            logger.info(f"No quarter results for contest {contest.id}, nothing to finalize")
            return

        if contest.final_summary_sent:
            if contest.status != "completed":
                contest.mark_completed()
                db.session.commit()
            logger.debug(f"Final summary already sent for contest {contest.id}")
            return

        owner = contest.owner_contact()
        if not owner:
            logger.warning(f"No owner email for contest {contest.id}, skipping final summary")
            return

        notice = FinalSummaryNotice(
            owner_name=owner.name,
            contest_name=contest.name,
            home_team_name=contest.row_team_name,
            away_team_name=contest.col_team_name,
            rows=[
                SummaryRow(
                    quarter_name=result.quarter_name,
                    home_score=result.home_score,
                    away_score=result.away_score,
                    winner_name=build_winner_name(
                        result.winner_first_name, result.winner_last_name
                    ),
                    winner_email=result.winner_email,
                    winner_venmo=result.winner_venmo,
                    prize_amount=result.prize_amount or 0,
                )
                for result in results
            ],
        )

        sent = self.email_service.send_notification(
            owner.email, NOTIFICATION_FINAL_SUMMARY, notice
        )
        if not sent:
            # Still eligible, so a forced run retries the summary
            logger.warning(f"Final summary email failed for contest {contest.id}")
            return

        contest.final_summary_sent = True
        contest.final_summary_sent_at = datetime.now(timezone.utc)
        contest.mark_completed()
        db.session.commit()

        broadcast_contest_completed(contest)
        logger.info(
            f"Contest {contest.id} completed, total payout {notice.total_payout:.2f}"
        )
