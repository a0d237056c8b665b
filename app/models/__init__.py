from app import db  # noqa: F401 - imported for model imports

from .contest import Contest
from .pipeline_config import PipelineConfig
from .processing_log import ProcessingLog
from .quarter_result import QuarterResult
from .score import Score
from .square import Square
from .user import User

__all__ = [
    "User",
    "Contest",
    "Square",
    "QuarterResult",
    "Score",
    "ProcessingLog",
    "PipelineConfig",
]
