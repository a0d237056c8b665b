import pytest

from app import db
from app.models import PipelineConfig, QuarterResult
from app.services.score_pipeline import ScorePipeline

HALFTIME = dict(period=2, status_name="STATUS_HALFTIME", status_detail="Halftime")


@pytest.fixture
def fake_pipeline(monkeypatch, email_service, make_feed, make_status):
    """Route pipeline runs through a fake score feed and email service"""
    feed = make_feed(status=make_status(**HALFTIME))

    def build():
        return ScorePipeline(
            score_feed=feed, email_service=email_service, site_url="https://squares.test"
        )

    monkeypatch.setattr("app.services.pipeline_admin.ScorePipeline", build)
    return feed


def test_check_scores_rejects_other_methods(client):
    response = client.put("/api/pipeline/check-scores")

    assert response.status_code == 405
    assert response.get_json() == {"error": "Method not allowed"}


def test_check_scores_missing_secrets(app, client, pipeline_config):
    app.config["RESEND_API_KEY"] = None

    response = client.get("/api/pipeline/check-scores")

    assert response.status_code == 500
    assert response.get_json()["missing"] == ["RESEND_API_KEY"]


def test_check_scores_runs_pipeline(client, pipeline_config, make_contest, fake_pipeline):
    make_contest()

    response = client.get("/api/pipeline/check-scores")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "processed"
    assert body["quarters_processed"] == ["q1", "q2"]
    assert "no-store" in response.headers["Cache-Control"]
    assert fake_pipeline.calls == 1


def test_manual_trigger_with_quarter_and_force(
    client, pipeline_config, make_contest, fake_pipeline
):
    pipeline_config.enabled = False
    db.session.commit()
    make_contest()

    response = client.post("/api/pipeline/check-scores", json={"quarter": "final", "force": True})

    body = response.get_json()
    assert body["status"] == "processed"
    assert body["quarters_processed"] == ["final"]


def test_force_must_be_boolean_true(client, pipeline_config, fake_pipeline):
    pipeline_config.enabled = False
    db.session.commit()

    response = client.post("/api/pipeline/check-scores", json={"force": "yes"})

    assert response.get_json()["status"] == "disabled"


def test_non_json_body_is_plain_trigger(client, pipeline_config, fake_pipeline):
    response = client.post(
        "/api/pipeline/check-scores", data="go", content_type="text/plain"
    )

    assert response.status_code == 200
    assert response.get_json()["status"] == "no_contests"


def test_invalid_quarter_is_bad_request(client, pipeline_config, fake_pipeline):
    response = client.post("/api/pipeline/check-scores", json={"quarter": "q9"})
    assert response.status_code == 400


def test_token_is_required_when_configured(app, client, pipeline_config):
    app.config["PIPELINE_API_TOKEN"] = "s3cret"

    assert client.get("/api/pipeline/config").status_code == 401
    assert (
        client.get(
            "/api/pipeline/config", headers={"Authorization": "Bearer wrong"}
        ).status_code
        == 401
    )

    response = client.get("/api/pipeline/config", headers={"Authorization": "Bearer s3cret"})
    assert response.status_code == 200
    assert response.get_json()["game_date"] == "2026-02-08"


def test_config_not_seeded(client):
    assert client.get("/api/pipeline/config").status_code == 404


def test_toggle_enabled(client, pipeline_config):
    assert client.post("/api/pipeline/config/enabled", json={"enabled": "no"}).status_code == 400

    response = client.post("/api/pipeline/config/enabled", json={"enabled": False})

    assert response.get_json() == {"enabled": False}
    assert PipelineConfig.get().enabled is False


def test_status_endpoint(client, pipeline_config):
    body = client.get("/api/pipeline/status").get_json()

    assert body["config"]["enabled"] is True
    assert body["connections"]["total_connections"] >= 0
    assert "stats" in body["scheduler"]


def test_logs_endpoint_honors_limit(client, pipeline_config, fake_pipeline):
    client.get("/api/pipeline/check-scores")
    client.get("/api/pipeline/check-scores")

    entries = client.get("/api/pipeline/logs?limit=1").get_json()

    assert len(entries) == 1
    assert entries[0]["action"] in ("check_scores", "fetch_contests")


def test_results_and_resend(
    client, pipeline_config, make_contest, claim_square, email_service, fake_pipeline
):
    contest = make_contest()
    claim_square(contest, 1, 9)
    client.get("/api/pipeline/check-scores")
    assert len(email_service.sent) == 4

    results = client.get("/api/pipeline/results").get_json()
    assert {r["quarter"] for r in results} == {"q1", "q2"}
    assert results[0]["contest_name"] == "Big Game Squares"

    q1 = QuarterResult.get_for(contest.id, "q1")
    response = client.post(f"/api/pipeline/results/{q1.id}/resend")

    assert response.status_code == 200
    assert response.get_json()["status"] == "resent"
    assert len(email_service.sent) == 6
    assert QuarterResult.get_for(contest.id, "q1").fully_notified


def test_resend_unknown_result(client, pipeline_config):
    assert client.post("/api/pipeline/results/999/resend").status_code == 404


def test_automated_contests_listing(client, make_contest):
    contest = make_contest()
    make_contest(is_super_bowl=False)

    body = client.get("/api/pipeline/contests").get_json()

    assert [c["id"] for c in body] == [contest.id]
    assert body[0]["numbers_assigned"] is True


def test_score_entry_route(client, make_contest, claim_square):
    contest = make_contest()
    claim_square(contest, 1, 9)

    response = client.post(
        f"/api/contests/{contest.id}/scores",
        json={
            "owner_id": contest.owner_id,
            "scores": [{"quarter": "q1", "home_score": 17, "away_score": 14}],
        },
    )

    assert response.status_code == 200
    [winner] = response.get_json()["winners"]
    assert winner["winner_name"] == "Wendy Winner"


def test_score_entry_route_errors(client, make_contest):
    contest = make_contest()
    url = f"/api/contests/{contest.id}/scores"

    assert client.post(url, data="x", content_type="text/plain").status_code == 400
    assert client.post(url, json={"scores": []}).status_code == 400
    assert (
        client.post(url, json={"owner_id": contest.owner_id + 1, "scores": []}).status_code
        == 403
    )
    assert client.post("/api/contests/999/scores", json={"owner_id": 1}).status_code == 404


def test_public_results_hide_contact_details(
    client, pipeline_config, make_contest, claim_square, fake_pipeline
):
    contest = make_contest()
    claim_square(contest, 1, 9)
    client.get("/api/pipeline/check-scores")

    response = client.get(f"/api/contests/{contest.slug}/results")

    assert response.status_code == 200
    body = response.get_json()
    assert [r["quarter"] for r in body["results"]] == ["q1", "q2"]
    assert body["results"][0]["winner_name"] == "Wendy Winner"
    assert "winner_email" not in body["results"][0]
    assert [s["quarter"] for s in body["scores"]] == ["q1", "q2"]


def test_public_results_unknown_contest(client):
    assert client.get("/api/contests/nope/results").status_code == 404
