from datetime import date, datetime, timezone

from app import db


class PipelineConfig(db.Model):
    """Run-level control state for the score pipeline (single row)"""

    __tablename__ = "pipeline_config"

    id = db.Column(db.Integer, primary_key=True)
    enabled = db.Column(db.Boolean, nullable=False, default=False)
    game_date = db.Column(db.Date, nullable=False, default=lambda: date(2026, 2, 8))
    check_start_hour = db.Column(db.Integer, nullable=False, default=15)

    # Last observation from the score feed
    last_checked_at = db.Column(db.DateTime)
    last_status = db.Column(db.String(50))
    last_period = db.Column(db.Integer)

    game_finished = db.Column(db.Boolean, nullable=False, default=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.CheckConstraint(
            "check_start_hour BETWEEN 0 AND 23", name="valid_check_start_hour"
        ),
    )

    def __repr__(self):
        return f"<PipelineConfig enabled={self.enabled} game_date={self.game_date}>"

    @staticmethod
    def get():
        """Get the config row, None when it has not been seeded"""
        return PipelineConfig.query.order_by(PipelineConfig.id).first()

    @staticmethod
    def get_or_create():
        """Get the config row, seeding a disabled default if missing"""
        config = PipelineConfig.get()
        if config is None:
            config = PipelineConfig(enabled=False)
            db.session.add(config)
            db.session.commit()
        return config

    def record_check(self, game_status):
        """Store what the score feed reported this run"""
        self.last_checked_at = datetime.now(timezone.utc)
        self.last_status = game_status.status_name if game_status else None
        self.last_period = game_status.period if game_status else None
        db.session.commit()

    def mark_finished(self):
        self.game_finished = True
        db.session.commit()

    def to_dict(self):
        return {
            "id": self.id,
            "enabled": self.enabled,
            "game_date": self.game_date.isoformat() if self.game_date else None,
            "check_start_hour": self.check_start_hour,
            "last_checked_at": (
                self.last_checked_at.isoformat() if self.last_checked_at else None
            ),
            "last_status": self.last_status,
            "last_period": self.last_period,
            "game_finished": self.game_finished,
        }
