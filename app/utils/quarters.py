"""
Quarter checkpoints and the rules that map live game state onto them
"""

QUARTERS = ("q1", "q2", "q3", "final")

QUARTER_DISPLAY = {
    "q1": "Q1",
    "q2": "Halftime",  # halftime = end of Q2
    "q3": "Q3",
    "final": "Final",
}

# Score feed period -> quarter checkpoint
PERIOD_TO_QUARTER = {
    1: "q1",
    2: "q2",
    3: "q3",
    4: "final",
}

STATUS_FINAL = "STATUS_FINAL"
STATUS_END_PERIOD = "STATUS_END_PERIOD"
STATUS_HALFTIME = "STATUS_HALFTIME"

BOUNDARY_STATUSES = (STATUS_END_PERIOD, STATUS_HALFTIME)


def quarter_sort_key(quarter):
    return QUARTERS.index(quarter) if quarter in QUARTERS else len(QUARTERS)


def is_game_final(game_status):
    return game_status.status_name == STATUS_FINAL or bool(game_status.completed)


def is_quarter_boundary(game_status):
    return game_status.status_name in BOUNDARY_STATUSES


def resolve_quarters(game_status, manual_override=None):
    """
    Decide which quarters are eligible for processing this run

    Rules, in priority order:
        1. A manual override returns exactly that quarter.
        2. A final or completed game sweeps all four quarters.
        3. End of period / halftime returns every quarter up to the current
           period, so a single missed poll cannot skip a boundary.
        4. Anything else (game mid-quarter) returns nothing.

    Args:
        game_status: GameStatus from the score feed
        manual_override: Optional quarter key requested by an operator

    Returns:
        list: Quarter keys in game order
    """
    if manual_override:
        return [manual_override]

    if is_game_final(game_status):
        return list(QUARTERS)

    if is_quarter_boundary(game_status):
        period = min(game_status.period or 0, len(PERIOD_TO_QUARTER))
        return [PERIOD_TO_QUARTER[p] for p in range(1, period + 1)]

    return []
