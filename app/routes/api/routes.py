from flask import jsonify, request

from app.models import Contest, QuarterResult, Score
from app.routes.api import bp
from app.routes.decorators import no_store, require_pipeline_token
from app.services.score_entry import ScoreEntryError, save_scores
from app.utils.quarters import quarter_sort_key


@bp.route("/contests/<int:contest_id>/scores", methods=["POST"])
@require_pipeline_token
def enter_scores(contest_id):
    """Owner score entry for a contest in progress"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON body required"}), 400

    owner_id = data.get("owner_id")
    if not owner_id:
        return jsonify({"error": "No owner_id provided"}), 400

    try:
        winners = save_scores(contest_id, owner_id, data.get("scores"))
    except ScoreEntryError as e:
        return jsonify({"error": e.message}), e.status_code

    return jsonify({"winners": [w.to_dict() for w in winners]})


@bp.route("/contests/<slug>/results")
@no_store
def contest_results(slug):
    """Quarter results and scores for the public contest page"""
    contest = Contest.query.filter_by(slug=slug, deleted_at=None).first()
    if not contest:
        return jsonify({"error": "Contest not found"}), 404

    scores = sorted(
        Score.query.filter_by(contest_id=contest.id).all(),
        key=lambda s: quarter_sort_key(s.quarter),
    )

    return jsonify(
        {
            "contest": {
                "id": contest.id,
                "name": contest.name,
                "slug": contest.slug,
                "status": contest.status,
                "row_team_name": contest.row_team_name,
                "col_team_name": contest.col_team_name,
            },
            "results": [r.to_public_dict() for r in QuarterResult.get_for_contest(contest.id)],
            "scores": [s.to_dict() for s in scores],
        }
    )
