"""
Timezone utility functions for the squares score automation service
"""

from datetime import datetime, timezone

import pytz
from flask import current_app


def get_app_timezone():
    """Get the application's configured timezone"""
    try:
        timezone_name = current_app.config.get("TIMEZONE", "UTC")
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def get_current_time():
    """Get current time in the application's timezone"""
    app_tz = get_app_timezone()
    return datetime.now(app_tz)


def convert_to_app_timezone(dt):
    """Convert a datetime to the application's timezone"""
    if dt is None:
        return None

    app_tz = get_app_timezone()

    # If datetime is naive, assume it's UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(app_tz)


def is_within_game_window(pipeline_config, now=None):
    """
    Check whether scheduled score checks should run right now

    The window opens at check_start_hour on game_date, in the application's
    timezone, and stays open for the rest of that day.

    Args:
        pipeline_config: PipelineConfig row
        now: Optional aware datetime, defaults to the current time

    Returns:
        bool
    """
    if pipeline_config is None or pipeline_config.game_date is None:
        return False

    local_now = convert_to_app_timezone(now) if now else get_current_time()

    if local_now.date() != pipeline_config.game_date:
        return False

    start_hour = pipeline_config.check_start_hour
    if start_hour is None:
        return True
    return local_now.hour >= start_hour
