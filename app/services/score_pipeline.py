"""
Score Processing Pipeline

One run reads the pipeline config, fetches the tracked game from the score
feed, resolves which quarters are due and processes every eligible contest
for each of them. When the game is final every contest is finalized and the
pipeline marks itself finished.

Runs are sequential and run to completion. Overlapping runs (scheduler plus a
manual trigger) may both read a result before either records its emails; the
upsert keeps a single row per pair but an email can go out twice.
"""

import logging
import time
from collections import namedtuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import Contest, PipelineConfig, ProcessingLog
from app.services.game_finalizer import GameFinalizer
from app.services.quarter_processor import QuarterProcessor
from app.utils.email_service import EmailService
from app.utils.quarters import QUARTERS, is_game_final, is_quarter_boundary, resolve_quarters
from app.utils.score_feed import ScoreFeedClient, ScoreFeedError
from config import REQUIRED_RUNTIME_SECRETS

logger = logging.getLogger(__name__)

PipelineRun = namedtuple("PipelineRun", ["payload", "status_code"])


class PipelineConfigError(Exception):
    """The pipeline_config row is missing"""


def missing_secrets(app_config):
    """Names of required run-time secrets that are not configured"""
    return [name for name in REQUIRED_RUNTIME_SECRETS if not app_config.get(name)]


class ScorePipeline:
    def __init__(self, score_feed=None, email_service=None, site_url=None):
        self.score_feed = score_feed or ScoreFeedClient.from_config(current_app.config)
        self.email_service = email_service or EmailService()
        self.site_url = site_url or current_app.config.get("SITE_URL")
        self.processor = QuarterProcessor(self.email_service, self.site_url)
        self.finalizer = GameFinalizer(self.email_service)

    def run(self, manual_quarter=None, force=False):
        """
        Execute one pipeline run

        Args:
            manual_quarter: Process exactly this quarter regardless of game state
            force: Bypass the enabled and game_finished gates

        Returns:
            PipelineRun(payload, status_code)
        """
        started = time.monotonic()

        missing = missing_secrets(current_app.config)
        if missing:
            logger.error(f"Score check refused, missing configuration: {', '.join(missing)}")
            return PipelineRun(
                {"error": f"Missing configuration: {', '.join(missing)}", "missing": missing},
                500,
            )

        if manual_quarter and manual_quarter not in QUARTERS:
            return PipelineRun({"error": f"Invalid quarter: {manual_quarter}"}, 400)

        try:
            return self._run(manual_quarter, force, started)

        except PipelineConfigError as e:
            logger.error(str(e))
            ProcessingLog.log_action("check_scores", "error", error_message=str(e))
            return PipelineRun({"error": "No config found"}, 500)

        except ScoreFeedError as e:
            logger.error(f"Score feed error: {e}")
            ProcessingLog.log_action("check_scores", "error", error_message=str(e))
            return PipelineRun({"error": "Score feed unavailable", "details": str(e)}, 500)

        except Exception as e:
            db.session.rollback()
            logger.error(f"Unhandled error in score pipeline: {e}", exc_info=True)
            ProcessingLog.log_action("unhandled_error", "error", error_message=str(e))
            return PipelineRun({"error": "Internal server error", "details": str(e)}, 500)

    def _run(self, manual_quarter, force, started):
        config = PipelineConfig.get()
        if config is None:
            raise PipelineConfigError("No pipeline config found")

        if not config.enabled and not force:
            return PipelineRun(
                {"status": "disabled", "message": "Score checking is disabled"}, 200
            )

        if config.game_finished and not force:
            return PipelineRun({"status": "finished", "message": "Game already finished"}, 200)

        game = self.score_feed.fetch_game_status()
        config.record_check(game)

        if game is None:
            ProcessingLog.log_action("check_scores", "skipped", {"reason": "no_game_found"})
            return PipelineRun(
                {"status": "no_game", "message": "No tracked game found in the score feed"},
                200,
            )

        ProcessingLog.log_action("check_scores", "success", game.to_log_details())

        if not manual_quarter and not is_game_final(game) and not is_quarter_boundary(game):
            return PipelineRun(
                {
                    "status": "in_progress",
                    "message": "Game in progress, waiting for quarter end",
                    "period": game.period,
                    "status_name": game.status_name,
                    "score": game.score_line,
                },
                200,
            )

        quarters = resolve_quarters(game, manual_quarter)
        if not quarters:
            return PipelineRun({"status": "nothing_to_process"}, 200)

        try:
            contests = Contest.get_automation_eligible()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to fetch contests: {e}")
            ProcessingLog.log_action("fetch_contests", "error", error_message=str(e))
            return PipelineRun({"error": "Failed to fetch contests"}, 500)

        if not contests:
            ProcessingLog.log_action(
                "fetch_contests", "skipped", {"reason": "no_active_contests"}
            )
            return PipelineRun(
                {"status": "no_contests", "message": "No active automated contests"}, 200
            )

        logger.info(f"Processing {len(quarters)} quarter(s) for {len(contests)} contest(s)")

        results = []
        for contest in contests:
            if not contest.numbers_assigned:
                logger.info(f"Skipping contest {contest.id} - numbers not assigned")
                ProcessingLog.log_action(
                    "process_quarter",
                    "skipped",
                    {"contest_id": contest.id, "reason": "numbers_not_assigned"},
                )
                continue

            for quarter in quarters:
                outcome = self.processor.process_quarter(
                    contest, quarter, game.home_score, game.away_score
                )
                results.append(outcome.to_dict())

                if outcome.error:
                    ProcessingLog.log_action(
                        "process_quarter",
                        "error",
                        {"contest_id": outcome.contest_id, "quarter": quarter},
                        outcome.error,
                    )
                elif outcome.processed:
                    ProcessingLog.log_action(
                        "process_quarter",
                        "success",
                        {
                            "contest_id": outcome.contest_id,
                            "quarter": quarter,
                            "home_score": game.home_score,
                            "away_score": game.away_score,
                            "winner_email_sent": outcome.winner_email_sent,
                            "owner_email_sent": outcome.owner_email_sent,
                        },
                    )

        game_final = is_game_final(game)
        if game_final:
            self._finalize_all(contests)
            config.mark_finished()

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(f"Score check processed {len(results)} pair(s) in {elapsed_ms}ms")

        return PipelineRun(
            {
                "status": "processed",
                "quarters_processed": quarters,
                "contest_count": len(contests),
                "results": results,
                "game_finished": game_final,
                "elapsed_ms": elapsed_ms,
            },
            200,
        )

    def _finalize_all(self, contests):
        for contest in contests:
            contest_id = contest.id
            try:
                self.finalizer.finalize_game(contest)
                ProcessingLog.log_action("game_complete", "success", {"contest_id": contest_id})
            except Exception as e:
                db.session.rollback()
                logger.error(f"Error finalizing contest {contest_id}: {e}", exc_info=True)
                ProcessingLog.log_action(
                    "game_complete", "error", {"contest_id": contest_id}, str(e)
                )
