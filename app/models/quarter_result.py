from datetime import datetime, timezone

from app import db
from app.utils.db_utils import upsert_row
from app.utils.quarters import QUARTER_DISPLAY, quarter_sort_key


class QuarterResult(db.Model):
    """Outcome of processing one (contest, quarter) pair"""

    __tablename__ = "quarter_results"

    id = db.Column(db.Integer, primary_key=True)
    contest_id = db.Column(
        db.Integer, db.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )
    quarter = db.Column(db.String(10), nullable=False)

    # Scores observed at the quarter boundary
    home_score = db.Column(db.Integer, nullable=False)
    away_score = db.Column(db.Integer, nullable=False)
    home_last_digit = db.Column(db.Integer, nullable=False)
    away_last_digit = db.Column(db.Integer, nullable=False)

    # Winner captured at resolution time
    winning_square_id = db.Column(db.Integer, db.ForeignKey("squares.id"))
    winner_first_name = db.Column(db.String(50))
    winner_last_name = db.Column(db.String(50))
    winner_email = db.Column(db.String(120))
    winner_venmo = db.Column(db.String(100))

    # Prize
    prize_amount = db.Column(db.Numeric(10, 2, asdecimal=False))
    payout_percent = db.Column(db.Integer)

    # Email tracking
    winner_email_sent = db.Column(db.Boolean, nullable=False, default=False)
    owner_email_sent = db.Column(db.Boolean, nullable=False, default=False)
    winner_email_sent_at = db.Column(db.DateTime)
    owner_email_sent_at = db.Column(db.DateTime)

    processed_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    winning_square = db.relationship("Square")

    __table_args__ = (
        db.UniqueConstraint("contest_id", "quarter", name="unique_contest_quarter_result"),
        db.CheckConstraint(
            "quarter IN ('q1', 'q2', 'q3', 'final')", name="valid_result_quarter"
        ),
        db.Index("idx_quarter_result_contest", "contest_id"),
    )

    def __repr__(self):
        return f"<QuarterResult contest={self.contest_id} {self.quarter}>"

    @property
    def quarter_name(self):
        return QUARTER_DISPLAY.get(self.quarter, self.quarter)

    @property
    def fully_notified(self):
        """Both the winner and owner emails have gone out"""
        return bool(self.winner_email_sent and self.owner_email_sent)

    @staticmethod
    def get_for(contest_id, quarter):
        return QuarterResult.query.filter_by(contest_id=contest_id, quarter=quarter).first()

    @staticmethod
    def get_for_contest(contest_id):
        """All results for a contest in game order"""
        results = QuarterResult.query.filter_by(contest_id=contest_id).all()
        return sorted(results, key=lambda r: quarter_sort_key(r.quarter))

    @staticmethod
    def upsert(values):
        """Insert or replace the result for (contest_id, quarter).

        Email flags are never part of the overwrite, so a re-run cannot undo
        a recorded delivery. The caller commits.
        """
        values = dict(values)
        values.setdefault("processed_at", datetime.now(timezone.utc))
        upsert_row(QuarterResult, values, ("contest_id", "quarter"))

    @staticmethod
    def mark_emails_sent(contest_id, quarter, winner=False, owner=False):
        """Record successful deliveries. Flags only move from False to True."""
        now = datetime.now(timezone.utc)
        query = QuarterResult.query.filter_by(contest_id=contest_id, quarter=quarter)

        if winner:
            query.filter(QuarterResult.winner_email_sent.is_(False)).update(
                {"winner_email_sent": True, "winner_email_sent_at": now},
                synchronize_session=False,
            )
        if owner:
            query.filter(QuarterResult.owner_email_sent.is_(False)).update(
                {"owner_email_sent": True, "owner_email_sent_at": now},
                synchronize_session=False,
            )

    def reset_email_flags(self):
        """Make this pair eligible for re-sending on the next run"""
        self.winner_email_sent = False
        self.owner_email_sent = False
        self.winner_email_sent_at = None
        self.owner_email_sent_at = None

    def to_public_dict(self):
        """Result as shown on the public contest page, without contact details"""
        return {
            "contest_id": self.contest_id,
            "quarter": self.quarter,
            "quarter_name": self.quarter_name,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "winning_square_id": self.winning_square_id,
            "winner_name": (
                f"{self.winner_first_name} {self.winner_last_name or ''}".strip()
                if self.winner_first_name
                else None
            ),
            "prize_amount": self.prize_amount,
        }

    def to_dict(self, include_contest=False):
        """Convert result to dictionary for API responses"""
        data = {
            "id": self.id,
            "contest_id": self.contest_id,
            "quarter": self.quarter,
            "quarter_name": self.quarter_name,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "home_last_digit": self.home_last_digit,
            "away_last_digit": self.away_last_digit,
            "winning_square_id": self.winning_square_id,
            "winner_first_name": self.winner_first_name,
            "winner_last_name": self.winner_last_name,
            "winner_email": self.winner_email,
            "winner_venmo": self.winner_venmo,
            "prize_amount": self.prize_amount,
            "payout_percent": self.payout_percent,
            "winner_email_sent": self.winner_email_sent,
            "owner_email_sent": self.owner_email_sent,
            "winner_email_sent_at": (
                self.winner_email_sent_at.isoformat() if self.winner_email_sent_at else None
            ),
            "owner_email_sent_at": (
                self.owner_email_sent_at.isoformat() if self.owner_email_sent_at else None
            ),
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }

        if include_contest:
            data["contest_name"] = self.contest.name if self.contest else None

        return data
