from datetime import datetime, timezone

from app import db
from app.utils.db_utils import upsert_row


class Score(db.Model):
    """Per-quarter score shown on the contest page, entered manually or mirrored by the pipeline"""

    __tablename__ = "scores"

    id = db.Column(db.Integer, primary_key=True)
    contest_id = db.Column(
        db.Integer, db.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    quarter = db.Column(db.String(10), nullable=False)
    home_score = db.Column(db.Integer, nullable=False)
    away_score = db.Column(db.Integer, nullable=False)
    winning_square_id = db.Column(db.Integer, db.ForeignKey("squares.id"))
    entered_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        db.UniqueConstraint("contest_id", "quarter", name="unique_contest_quarter_score"),
        db.CheckConstraint(
            "quarter IN ('q1', 'q2', 'q3', 'final')", name="valid_score_quarter"
        ),
    )

    def __repr__(self):
        return f"<Score contest={self.contest_id} {self.quarter} {self.home_score}-{self.away_score}>"

    @staticmethod
    def upsert(contest_id, quarter, home_score, away_score, winning_square_id):
        """Insert or replace the score for (contest_id, quarter). The caller commits."""
        upsert_row(
            Score,
            {
                "contest_id": contest_id,
                "quarter": quarter,
                "home_score": home_score,
                "away_score": away_score,
                "winning_square_id": winning_square_id,
                "entered_at": datetime.now(timezone.utc),
            },
            ("contest_id", "quarter"),
        )

    def to_dict(self):
        return {
            "contest_id": self.contest_id,
            "quarter": self.quarter,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "winning_square_id": self.winning_square_id,
            "entered_at": self.entered_at.isoformat() if self.entered_at else None,
        }
