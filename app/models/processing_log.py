import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from app import db

logger = logging.getLogger(__name__)


class ProcessingLog(db.Model):
    """Append-only audit trail of score pipeline actions"""

    __tablename__ = "processing_log"

    id = db.Column(db.Integer, primary_key=True)

    # 'check_scores', 'fetch_contests', 'process_quarter', 'game_complete', ...
    action = db.Column(db.String(50), nullable=False)
    # 'success', 'error', 'skipped'
    status = db.Column(db.String(20), nullable=False, default="success")
    details = db.Column(db.JSON, nullable=True)
    error_message = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.Index("idx_processing_log_created", "created_at"),
        db.Index("idx_processing_log_action", "action"),
    )

    def __repr__(self):
        return f"<ProcessingLog {self.action} {self.status}>"

    @staticmethod
    def log_action(action, status, details=None, error_message=None):
        """Write and commit a log entry.

        A failed write is logged and dropped; it never interrupts the run.
        """
        entry = ProcessingLog(
            action=action,
            status=status,
            details=details or {},
            error_message=error_message,
        )

        try:
            db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to write processing log ({action}/{status}): {e}")
            return None

        return entry

    @staticmethod
    def get_recent(limit=50):
        return (
            ProcessingLog.query.order_by(
                ProcessingLog.created_at.desc(), ProcessingLog.id.desc()
            )
            .limit(limit)
            .all()
        )

    def to_dict(self):
        return {
            "id": self.id,
            "action": self.action,
            "status": self.status,
            "details": self.details,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
