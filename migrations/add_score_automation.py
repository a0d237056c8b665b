"""Add score automation columns and tables, seed the pipeline config"""

from app import create_app, db
from app.models import PipelineConfig

# Columns added to a contests table that predates score automation
CONTEST_COLUMNS = (
    "is_super_bowl BOOLEAN DEFAULT false NOT NULL",
    "sport_type VARCHAR(20) DEFAULT 'football' NOT NULL",
    "deleted_at TIMESTAMP",
    "final_summary_sent BOOLEAN DEFAULT false NOT NULL",
    "final_summary_sent_at TIMESTAMP",
)


def upgrade():
    """Add automation columns, create new tables and seed the config row"""
    app = create_app()
    with app.app_context():
        dialect = db.engine.dialect.name

        if dialect == "postgresql":
            print("Adding automation columns to contests table...")
            for column in CONTEST_COLUMNS:
                db.session.execute(
                    db.text(f"ALTER TABLE contests ADD COLUMN IF NOT EXISTS {column}")
                )
            db.session.execute(
                db.text(
                    "CREATE INDEX IF NOT EXISTS idx_contest_super_bowl "
                    "ON contests (is_super_bowl) WHERE is_super_bowl = true"
                )
            )
            db.session.commit()
        else:
            print(f"Skipping column migration on {dialect}, tables are created fresh")

        # quarter_results, scores, processing_log, pipeline_config
        print("Creating missing tables...")
        db.create_all()

        print("Seeding pipeline config...")
        config = PipelineConfig.get_or_create()
        print(f"Pipeline config: game {config.game_date}, enabled={config.enabled}")

        print("Migration completed successfully!")


if __name__ == "__main__":
    upgrade()
