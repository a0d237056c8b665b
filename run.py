# Eventlet monkey patching MUST be first before any other imports
import eventlet
eventlet.monkey_patch()

from app import create_app, db, socketio  # noqa: E402
from app.models import (  # noqa: E402
    Contest,
    PipelineConfig,
    ProcessingLog,
    QuarterResult,
    Score,
    Square,
    User,
)

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Contest": Contest,
        "Square": Square,
        "QuarterResult": QuarterResult,
        "Score": Score,
        "ProcessingLog": ProcessingLog,
        "PipelineConfig": PipelineConfig,
    }


if __name__ == "__main__":
    socketio.run(app, host="0.0.0.0", port=5000, debug=app.config.get("DEBUG", False))
