from datetime import datetime, timezone

from app import db

PAYMENT_STATUSES = ("available", "pending", "paid")


class Square(db.Model):
    __tablename__ = "squares"

    id = db.Column(db.Integer, primary_key=True)
    contest_id = db.Column(
        db.Integer, db.ForeignKey("contests.id", ondelete="CASCADE"), nullable=False
    )

    # Grid position
    row_index = db.Column(db.Integer, nullable=False)
    col_index = db.Column(db.Integer, nullable=False)

    # Claimant (all null while unclaimed)
    claimant_first_name = db.Column(db.String(50))
    claimant_last_name = db.Column(db.String(50))
    claimant_email = db.Column(db.String(120), index=True)
    claimant_venmo = db.Column(db.String(100))

    payment_status = db.Column(db.String(20), nullable=False, default="available")

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint(
            "contest_id", "row_index", "col_index", name="unique_contest_square"
        ),
        db.CheckConstraint("row_index BETWEEN 0 AND 9", name="row_index_range"),
        db.CheckConstraint("col_index BETWEEN 0 AND 9", name="col_index_range"),
        db.CheckConstraint(
            "payment_status IN ('available', 'pending', 'paid')",
            name="valid_payment_status",
        ),
        db.Index("idx_square_contest", "contest_id"),
    )

    def __repr__(self):
        return f"<Square contest={self.contest_id} ({self.row_index}, {self.col_index})>"

    @property
    def claimant_name(self):
        """First and last name of the claimant, None if unclaimed"""
        if not self.claimant_first_name:
            return None
        if self.claimant_last_name:
            return f"{self.claimant_first_name} {self.claimant_last_name}"
        return self.claimant_first_name

    def claim(self, first_name, last_name=None, email=None, venmo=None):
        self.claimant_first_name = first_name
        self.claimant_last_name = last_name
        self.claimant_email = email
        self.claimant_venmo = venmo
        self.payment_status = "pending"
