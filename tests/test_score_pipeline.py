from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from app import db
from app.models import Contest, PipelineConfig, ProcessingLog, QuarterResult
from app.services.quarter_processor import QuarterProcessor
from app.services.score_pipeline import ScorePipeline, missing_secrets
from app.utils.score_feed import ScoreFeedError

FINAL = dict(period=4, status_name="STATUS_FINAL", status_detail="Final", completed=True)
HALFTIME = dict(period=2, status_name="STATUS_HALFTIME", status_detail="Halftime")


@pytest.fixture
def run_pipeline(email_service, make_feed, make_status):
    """Run the pipeline once against a fixed game status"""

    def _run(feed=None, manual_quarter=None, force=False, **status):
        feed = feed or make_feed(status=make_status(**status))
        pipeline = ScorePipeline(
            score_feed=feed, email_service=email_service, site_url="https://squares.test"
        )
        return pipeline.run(manual_quarter=manual_quarter, force=force)

    return _run


def actions(action, status=None):
    query = ProcessingLog.query.filter_by(action=action)
    if status:
        query = query.filter_by(status=status)
    return query.all()


def test_missing_secrets_refuses_to_run(app, pipeline_config, make_feed, run_pipeline):
    app.config["RESEND_API_KEY"] = ""
    feed = make_feed()

    run = run_pipeline(feed=feed)

    assert run.status_code == 500
    assert run.payload["missing"] == ["RESEND_API_KEY"]
    assert "RESEND_API_KEY" in run.payload["error"]
    assert feed.calls == 0


def test_missing_secrets_lists_every_absent_name():
    assert missing_secrets({"SQLALCHEMY_DATABASE_URI": None}) == [
        "SQLALCHEMY_DATABASE_URI",
        "RESEND_API_KEY",
    ]


def test_missing_config_row_is_an_error(app, run_pipeline):
    run = run_pipeline()

    assert run.status_code == 500
    assert run.payload == {"error": "No config found"}
    assert len(actions("check_scores", "error")) == 1


def test_disabled_pipeline_does_not_call_the_feed(pipeline_config, make_feed, run_pipeline):
    pipeline_config.enabled = False
    db.session.commit()
    feed = make_feed()

    run = run_pipeline(feed=feed)

    assert run.status_code == 200
    assert run.payload["status"] == "disabled"
    assert feed.calls == 0


def test_force_bypasses_disabled(pipeline_config, make_contest, run_pipeline):
    pipeline_config.enabled = False
    db.session.commit()
    make_contest()

    run = run_pipeline(force=True)

    assert run.payload["status"] == "processed"
    assert run.payload["quarters_processed"] == ["q1"]


def test_finished_game_short_circuits(pipeline_config, make_feed, run_pipeline):
    pipeline_config.game_finished = True
    db.session.commit()
    feed = make_feed()

    run = run_pipeline(feed=feed)

    assert run.payload["status"] == "finished"
    assert feed.calls == 0


def test_no_game_in_feed(pipeline_config, make_feed, run_pipeline):
    run = run_pipeline(feed=make_feed(status=None))

    assert run.status_code == 200
    assert run.payload["status"] == "no_game"

    config = PipelineConfig.get()
    assert config.last_checked_at is not None
    assert config.last_status is None
    assert len(actions("check_scores", "skipped")) == 1


def test_mid_quarter_reports_progress(pipeline_config, make_contest, run_pipeline):
    make_contest()

    run = run_pipeline(period=3, status_name="STATUS_IN_PROGRESS", home_score=20, away_score=17)

    assert run.payload["status"] == "in_progress"
    assert run.payload["period"] == 3
    assert run.payload["score"] == "Kansas City Chiefs 20 - Philadelphia Eagles 17"
    assert QuarterResult.query.count() == 0

    config = PipelineConfig.get()
    assert (config.last_status, config.last_period) == ("STATUS_IN_PROGRESS", 3)
    assert len(actions("check_scores", "success")) == 1


def test_halftime_processes_first_two_quarters(pipeline_config, make_contest, run_pipeline):
    contest = make_contest()

    run = run_pipeline(**HALFTIME)

    assert run.payload["status"] == "processed"
    assert run.payload["quarters_processed"] == ["q1", "q2"]
    assert run.payload["contest_count"] == 1
    assert run.payload["game_finished"] is False
    assert [r["quarter"] for r in run.payload["results"]] == ["q1", "q2"]
    assert {r.quarter for r in QuarterResult.get_for_contest(contest.id)} == {"q1", "q2"}
    assert len(actions("process_quarter", "success")) == 2


def test_end_of_third_catches_up_missed_quarters(pipeline_config, make_contest, run_pipeline):
    contest = make_contest()

    run = run_pipeline(period=3, status_name="STATUS_END_PERIOD")

    assert run.payload["quarters_processed"] == ["q1", "q2", "q3"]
    assert len(QuarterResult.get_for_contest(contest.id)) == 3


def test_final_game_completes_contests_and_finishes(
    pipeline_config, make_contest, claim_square, email_service, run_pipeline
):
    contest = make_contest()
    claim_square(contest, 1, 9)

    run = run_pipeline(**FINAL)

    assert run.payload["quarters_processed"] == ["q1", "q2", "q3", "final"]
    assert run.payload["game_finished"] is True

    contest = db.session.get(Contest, contest.id)
    assert contest.status == "completed"
    assert contest.final_summary_sent is True
    assert PipelineConfig.get().game_finished is True
    assert len(actions("game_complete", "success")) == 1

    subjects = [template.subject for template in email_service.sent_to("owner@example.com")]
    assert subjects[-1] == "Game Over! Final Summary - Big Game Squares"
    assert len(email_service.sent_to("wendy@example.com")) == 4

    again = run_pipeline(**FINAL)
    assert again.payload["status"] == "finished"


def test_manual_quarter_overrides_game_state(pipeline_config, make_contest, run_pipeline):
    contest = make_contest()

    run = run_pipeline(manual_quarter="q3", period=1, status_name="STATUS_IN_PROGRESS")

    assert run.payload["status"] == "processed"
    assert run.payload["quarters_processed"] == ["q3"]
    assert QuarterResult.get_for(contest.id, "q3") is not None


def test_invalid_manual_quarter(pipeline_config, make_feed, run_pipeline):
    feed = make_feed()

    run = run_pipeline(feed=feed, manual_quarter="q5")

    assert run.status_code == 400
    assert "q5" in run.payload["error"]
    assert feed.calls == 0


def test_no_eligible_contests(pipeline_config, run_pipeline):
    run = run_pipeline(**HALFTIME)

    assert run.payload["status"] == "no_contests"
    assert len(actions("fetch_contests", "skipped")) == 1


def test_contest_without_numbers_is_skipped(pipeline_config, make_contest, run_pipeline):
    ready = make_contest()
    unassigned = make_contest(row_numbers=None, col_numbers=None)

    run = run_pipeline(**HALFTIME)

    assert run.payload["contest_count"] == 2
    assert {r["contest_id"] for r in run.payload["results"]} == {ready.id}
    assert QuarterResult.query.filter_by(contest_id=unassigned.id).count() == 0

    [skipped] = actions("process_quarter", "skipped")
    assert skipped.details == {"contest_id": unassigned.id, "reason": "numbers_not_assigned"}


def test_ineligible_contests_are_not_processed(pipeline_config, make_contest, run_pipeline):
    eligible = make_contest(status="locked")
    make_contest(is_super_bowl=False)
    make_contest(status="draft")
    make_contest(status="completed")
    make_contest(deleted_at=datetime(2026, 2, 1))

    run = run_pipeline(**HALFTIME)

    assert run.payload["contest_count"] == 1
    assert {r["contest_id"] for r in run.payload["results"]} == {eligible.id}


def test_feed_failure_leaves_last_checked_untouched(pipeline_config, make_feed, run_pipeline):
    run = run_pipeline(feed=make_feed(error=ScoreFeedError("Score feed returned 503")))

    assert run.status_code == 500
    assert run.payload["error"] == "Score feed unavailable"
    assert "503" in run.payload["details"]
    assert PipelineConfig.get().last_checked_at is None

    [logged] = actions("check_scores", "error")
    assert "503" in logged.error_message


def test_second_run_at_same_boundary_sends_nothing(
    pipeline_config, make_contest, claim_square, email_service, run_pipeline
):
    contest = make_contest()
    claim_square(contest, 1, 9)

    run_pipeline(**HALFTIME)
    sent_after_first = len(email_service.sent)
    second = run_pipeline(**HALFTIME)

    assert sent_after_first == 4
    assert len(email_service.sent) == 4
    assert all(r["processed"] is False for r in second.payload["results"])
    assert QuarterResult.query.filter_by(contest_id=contest.id).count() == 2


def test_unexpected_error_is_logged_and_reported(
    monkeypatch, pipeline_config, make_contest, run_pipeline
):
    make_contest()

    def explode():
        raise RuntimeError("boom")

    monkeypatch.setattr(Contest, "get_automation_eligible", staticmethod(explode))

    run = run_pipeline(**HALFTIME)

    assert run.status_code == 500
    assert run.payload["details"] == "boom"
    assert len(actions("unhandled_error", "error")) == 1


def test_forced_run_retries_failed_final_summary(
    pipeline_config, make_contest, make_email_service, make_feed, make_status
):
    contest = make_contest()
    feed = make_feed(status=make_status(**FINAL))

    failing = make_email_service(fail_for={"owner@example.com"})
    first = ScorePipeline(score_feed=feed, email_service=failing).run()

    assert first.payload["game_finished"] is True
    contest = db.session.get(Contest, contest.id)
    assert contest.status == "in_progress"
    assert contest.final_summary_sent is False

    working = make_email_service()
    second = ScorePipeline(score_feed=feed, email_service=working).run(force=True)

    assert second.payload["status"] == "processed"
    contest = db.session.get(Contest, contest.id)
    assert contest.status == "completed"
    assert contest.final_summary_sent is True

    subjects = [template.subject for template in working.sent_to("owner@example.com")]
    assert "Game Over! Final Summary - Big Game Squares" in subjects


def test_store_error_for_one_contest_does_not_stop_the_run(
    monkeypatch, pipeline_config, make_contest, run_pipeline
):
    broken = make_contest()
    healthy = make_contest()
    broken_id = broken.id
    original_get_for = QuarterResult.get_for

    def flaky_get_for(contest_id, quarter):
        if contest_id == broken_id:
            raise OperationalError("SELECT", {}, Exception("connection reset"))
        return original_get_for(contest_id, quarter)

    monkeypatch.setattr(QuarterResult, "get_for", staticmethod(flaky_get_for))

    run = run_pipeline(**HALFTIME)

    assert run.status_code == 200
    assert run.payload["status"] == "processed"

    by_contest = {}
    for result in run.payload["results"]:
        by_contest.setdefault(result["contest_id"], []).append(result)

    assert all("connection reset" in r["error"] for r in by_contest[broken_id])
    assert all(r["processed"] for r in by_contest[healthy.id])

    monkeypatch.undo()
    assert len(QuarterResult.get_for_contest(healthy.id)) == 2
    assert QuarterResult.query.filter_by(contest_id=broken_id).count() == 0
    assert len(actions("process_quarter", "error")) == 2


def test_owner_lookup_error_still_records_winner_delivery(
    monkeypatch, make_contest, claim_square, email_service
):
    contest = make_contest()
    claim_square(contest, 1, 9)

    def unreachable_owner(self):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(Contest, "owner_contact", unreachable_owner)

    outcome = QuarterProcessor(email_service, "https://squares.test").process_quarter(
        contest, "q1", 17, 14
    )

    assert outcome.processed is True
    assert "Failed to resolve owner" in outcome.error
    result = QuarterResult.get_for(contest.id, "q1")
    assert result.winner_email_sent is True
    assert result.owner_email_sent is False
