"""
Score feed client for the tracked game

Reads the ESPN scoreboard and normalizes the tracked event into a GameStatus.
Transport, HTTP and JSON failures surface as ScoreFeedError.
"""

import logging
import re
from dataclasses import asdict, dataclass

import requests

from app.utils.quarters import is_game_final

logger = logging.getLogger(__name__)

DEFAULT_SCOREBOARD_URL = (
    "https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard"
)

# Season phases that identify the game of interest
POSTSEASON_NAMES = ("Postseason", "Post Season")

# Event name fallback when season metadata is missing
GAME_NAME_KEYWORD = "super bowl"

_LEADING_INT = re.compile(r"\s*(\d+)")


class ScoreFeedError(Exception):
    """The score feed could not be reached or returned an unusable response"""


@dataclass(frozen=True)
class GameStatus:
    """Normalized state of the tracked game"""

    period: int
    status_name: str
    status_detail: str
    completed: bool
    home_team: str
    away_team: str
    home_score: int
    away_score: int

    @property
    def is_final(self):
        return is_game_final(self)

    @property
    def score_line(self):
        return f"{self.home_team} {self.home_score} - {self.away_team} {self.away_score}"

    def to_log_details(self):
        return asdict(self)


def parse_score(value):
    """Coerce a feed score string to an int, missing or garbage -> 0"""
    if value is None:
        return 0
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


class ScoreFeedClient:
    """
    Reads the tracked game from the ESPN scoreboard.

    There is no retry here: a failed fetch aborts the run and the next
    scheduled run tries again.
    """

    def __init__(self, scoreboard_url=None, timeout=30):
        self.scoreboard_url = scoreboard_url or DEFAULT_SCOREBOARD_URL
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "Squares-Score-Automation/1.0"})

    @classmethod
    def from_config(cls, app_config):
        return cls(
            scoreboard_url=app_config.get("ESPN_SCOREBOARD_URL"),
            timeout=app_config.get("SCORE_FEED_TIMEOUT", 30),
        )

    def _make_api_request(self, url, params=None):
        """Make API request, raising ScoreFeedError on any transport or HTTP failure"""
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response

        except requests.exceptions.Timeout as e:
            logger.warning(f"Request timeout for {url}")
            raise ScoreFeedError(f"Score feed timed out: {e}") from e
        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error {e.response.status_code}: {url}")
            raise ScoreFeedError(
                f"Score feed returned {e.response.status_code}"
            ) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"Connection error for {url}: {e}")
            raise ScoreFeedError(f"Score feed unreachable: {e}") from e

    def fetch_game_status(self):
        """
        Fetch the current state of the tracked game

        Returns:
            GameStatus, or None when no matching game is in the feed window
        """
        response = self._make_api_request(self.scoreboard_url)

        try:
            data = response.json()
        except ValueError as e:
            raise ScoreFeedError(f"Score feed returned invalid JSON: {e}") from e

        for event in data.get("events") or []:
            if not self._is_tracked_game(event):
                continue

            status = self._parse_event(event)
            if status is not None:
                return status

        return None

    @staticmethod
    def _is_tracked_game(event):
        """Prefer the season phase; fall back to the event name"""
        season_type = ((event.get("season") or {}).get("type") or {}).get("name")
        if season_type in POSTSEASON_NAMES:
            return True
        return GAME_NAME_KEYWORD in (event.get("name") or "").lower()

    @staticmethod
    def _parse_event(event):
        """Extract a GameStatus from an event's first competition"""
        competitions = event.get("competitions") or []
        if not competitions:
            return None

        competition = competitions[0]
        competitors = competition.get("competitors") or []

        # Sides come from the explicit homeAway marker, never array order
        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if not home or not away:
            return None

        status = competition.get("status") or {}
        status_type = status.get("type") or {}

        return GameStatus(
            period=status.get("period") or 0,
            status_name=status_type.get("name") or "",
            status_detail=status_type.get("detail") or "",
            completed=bool(status_type.get("completed")),
            home_team=(home.get("team") or {}).get("displayName") or "Home",
            away_team=(away.get("team") or {}).get("displayName") or "Away",
            home_score=parse_score(home.get("score")),
            away_score=parse_score(away.get("score")),
        )
