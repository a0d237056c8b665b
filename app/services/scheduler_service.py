"""
Squares Score Check Scheduler Service

Runs the score pipeline in the background on a fixed interval using
APScheduler. Scheduled runs only happen inside the configured game window;
manual triggers go through the HTTP API or the CLI instead.
"""

import atexit
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app import db
from app.models import PipelineConfig
from app.utils.timezone_utils import is_within_game_window

logger = logging.getLogger(__name__)


def _empty_stats():
    return {
        "last_run": None,
        "last_status": None,
        "total_runs": 0,
        "successful_runs": 0,
        "failed_runs": 0,
        "skipped_runs": 0,
        "last_error": None,
    }


class SchedulerService:
    """Manages the background score check job"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False
        self.run_stats = _empty_stats()

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")

        # Register shutdown
        atexit.register(self.shutdown)

        # Start scheduler if enabled
        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            # Clear any existing jobs
            self.scheduler.remove_all_jobs()

            self._add_core_jobs()

            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        interval = self.app.config.get("SCORE_CHECK_INTERVAL_SECONDS", 60)

        # max_instances=1 keeps scheduled runs from overlapping each other
        self.scheduler.add_job(
            func=self._check_scores,
            trigger=IntervalTrigger(seconds=interval),
            id="check_scores",
            name="Check Game Scores",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=30,
        )

        logger.info(f"Score check job added (every {interval}s)")

    def _check_scores(self):
        """Scheduled score check, gated to the game window"""
        with self.app.app_context():
            try:
                if self.app.config.get("GAME_WINDOW_ONLY", True):
                    config = PipelineConfig.get()
                    if not is_within_game_window(config):
                        return

                self._run_pipeline()

            except Exception as e:
                db.session.rollback()
                self._update_stats(False, error=str(e))
                logger.error(f"Error in scheduled score check: {e}", exc_info=True)

    def _run_pipeline(self):
        from app.services.score_pipeline import ScorePipeline

        return self.record_run(ScorePipeline().run())

    def record_run(self, run):
        """Fold a pipeline run into the statistics, scheduled or manual"""
        status = run.payload.get("status")

        if run.status_code >= 400:
            self._update_stats(False, status=status, error=run.payload.get("error"))
            logger.warning(f"Score check failed: {run.payload.get('error')}")
        elif status in ("disabled", "finished"):
            self._update_stats(None, status=status)
        else:
            self._update_stats(True, status=status)
            if status == "processed":
                logger.info(
                    f"Score check processed quarters {run.payload['quarters_processed']} "
                    f"for {run.payload['contest_count']} contest(s)"
                )

        return run

    def _update_stats(self, success, status=None, error=None):
        """Update run statistics; success None marks a gated run"""
        self.run_stats["last_run"] = datetime.now(timezone.utc)
        self.run_stats["last_status"] = status
        self.run_stats["total_runs"] += 1

        if success is None:
            self.run_stats["skipped_runs"] += 1
        elif success:
            self.run_stats["successful_runs"] += 1
            self.run_stats["last_error"] = None
        else:
            self.run_stats["failed_runs"] += 1
            self.run_stats["last_error"] = error

    def get_status(self):
        """Get scheduler status information"""
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        stats = dict(self.run_stats)
        if stats["last_run"]:
            stats["last_run"] = stats["last_run"].isoformat()

        return {"is_running": self.is_running, "jobs": jobs, "stats": stats}


# Global scheduler instance
scheduler_service = SchedulerService()
