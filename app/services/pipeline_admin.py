"""
Operator actions for the score pipeline

Shared by the pipeline API blueprint and the manage.py CLI.
"""

import logging

from app import db
from app.models import Contest, PipelineConfig, ProcessingLog, QuarterResult
from app.services.scheduler_service import scheduler_service
from app.services.score_pipeline import ScorePipeline

logger = logging.getLogger(__name__)

DEFAULT_LOG_LIMIT = 50
MAX_LOG_LIMIT = 500


def set_enabled(enabled):
    """Turn automated score checking on or off"""
    config = PipelineConfig.get_or_create()
    config.enabled = bool(enabled)
    db.session.commit()

    logger.info(f"Score checking {'enabled' if config.enabled else 'disabled'}")
    return config


def get_config():
    """Get the pipeline config row, None when it has not been seeded"""
    return PipelineConfig.get()


def get_processing_logs(limit=DEFAULT_LOG_LIMIT):
    """Most recent processing log entries, newest first"""
    limit = max(1, min(int(limit), MAX_LOG_LIMIT))
    return ProcessingLog.get_recent(limit)


def get_quarter_results():
    """All quarter results, most recently processed first"""
    return QuarterResult.query.order_by(
        QuarterResult.processed_at.desc(), QuarterResult.id.desc()
    ).all()


def get_automated_contests():
    """Contests flagged for automation that have not been deleted, newest first"""
    return (
        Contest.query.filter(
            Contest.is_super_bowl.is_(True), Contest.deleted_at.is_(None)
        )
        .order_by(Contest.created_at.desc(), Contest.id.desc())
        .all()
    )


def trigger_score_check(quarter=None, force=False, pipeline=None):
    """
    Run the score pipeline now

    Returns:
        PipelineRun(payload, status_code)
    """
    pipeline = pipeline or ScorePipeline()
    run = pipeline.run(manual_quarter=quarter, force=force)
    scheduler_service.record_run(run)
    return run


def resend_quarter_emails(result_id, pipeline=None):
    """
    Reset a result's email flags and force a run so both emails go out again

    Returns:
        PipelineRun, or None when the result does not exist
    """
    result = db.session.get(QuarterResult, result_id)
    if result is None:
        return None

    result.reset_email_flags()
    db.session.commit()

    logger.info(f"Email flags reset for quarter result {result_id}, forcing score check")
    return trigger_score_check(force=True, pipeline=pipeline)
