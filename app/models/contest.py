from datetime import datetime, timezone

from app import db
from app.utils.quarters import QUARTERS
from app.utils.scoring import is_valid_assignment

# Lifecycle: draft -> open -> locked -> in_progress -> completed, plus a tombstone
CONTEST_STATUSES = ("draft", "open", "locked", "in_progress", "completed", "deleted")

# Statuses the automated pipeline picks up
AUTOMATION_STATUSES = ("open", "locked", "in_progress")


class Contest(db.Model):
    __tablename__ = "contests"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    # Row axis is the home team, column axis is the away team
    row_team_name = db.Column(db.String(100), nullable=False)
    col_team_name = db.Column(db.String(100), nullable=False)

    # Number assignments: position = grid index, value = digit
    row_numbers = db.Column(db.JSON, nullable=True)
    col_numbers = db.Column(db.JSON, nullable=True)

    # Prize configuration
    square_price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    payout_q1_percent = db.Column(db.Integer)
    payout_q2_percent = db.Column(db.Integer)
    payout_q3_percent = db.Column(db.Integer)
    payout_final_percent = db.Column(db.Integer)

    # Lifecycle
    status = db.Column(db.String(20), nullable=False, default="draft")
    sport_type = db.Column(db.String(20), nullable=False, default="football")
    is_super_bowl = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime)

    # Game-completion summary tracking
    final_summary_sent = db.Column(db.Boolean, nullable=False, default=False)
    final_summary_sent_at = db.Column(db.DateTime)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    squares = db.relationship(
        "Square",
        backref="contest",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    quarter_results = db.relationship(
        "QuarterResult",
        backref="contest",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.CheckConstraint(
            "COALESCE(payout_q1_percent, 0) + COALESCE(payout_q2_percent, 0) + "
            "COALESCE(payout_q3_percent, 0) + COALESCE(payout_final_percent, 0) <= 100",
            name="payout_total_max_100",
        ),
        db.CheckConstraint(
            "status IN ('draft', 'open', 'locked', 'in_progress', 'completed', 'deleted')",
            name="valid_contest_status",
        ),
        db.Index("idx_contest_super_bowl", "is_super_bowl"),
        db.Index("idx_contest_status", "status"),
    )

    def __repr__(self):
        return f"<Contest {self.slug} ({self.status})>"

    @property
    def numbers_assigned(self):
        """Both axes carry a full permutation of 0-9"""
        return is_valid_assignment(self.row_numbers) and is_valid_assignment(
            self.col_numbers
        )

    def payout_percent_for(self, quarter):
        """Get payout percent for a quarter (0 when unset)"""
        if quarter not in QUARTERS:
            raise ValueError(f"Unknown quarter: {quarter}")
        return getattr(self, f"payout_{quarter}_percent") or 0

    def get_square(self, row_index, col_index):
        return self.squares.filter_by(row_index=row_index, col_index=col_index).first()

    def create_squares(self):
        """Create the 100 empty squares for this contest"""
        from .square import Square

        squares = [
            Square(contest=self, row_index=row, col_index=col)
            for row in range(10)
            for col in range(10)
        ]
        db.session.add_all(squares)
        return squares

    def owner_contact(self):
        """Resolve the owner's email identity, None if unresolvable"""
        if not self.owner:
            return None
        return self.owner.contact()

    def mark_completed(self):
        self.status = "completed"

    @staticmethod
    def get_automation_eligible():
        """Get contests the score pipeline should process"""
        return (
            Contest.query.filter(
                Contest.is_super_bowl.is_(True),
                Contest.sport_type == "football",
                Contest.status.in_(AUTOMATION_STATUSES),
                Contest.deleted_at.is_(None),
            )
            .order_by(Contest.created_at)
            .all()
        )

    def to_dict(self):
        """Convert contest to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "owner_id": self.owner_id,
            "row_team_name": self.row_team_name,
            "col_team_name": self.col_team_name,
            "row_numbers": self.row_numbers,
            "col_numbers": self.col_numbers,
            "square_price": self.square_price,
            "payouts": {q: self.payout_percent_for(q) for q in QUARTERS},
            "status": self.status,
            "is_super_bowl": self.is_super_bowl,
            "numbers_assigned": self.numbers_assigned,
            "final_summary_sent": self.final_summary_sent,
        }
