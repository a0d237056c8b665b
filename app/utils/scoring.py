"""
Winner calculation for squares contests

Both the automated score pipeline and manual score entry use these functions,
so winner selection is identical for identical inputs.
"""

from collections import namedtuple

WinnerResult = namedtuple(
    "WinnerResult", ["square", "home_digit", "away_digit", "row_index", "col_index"]
)

DIGITS = list(range(10))


def last_digit(score):
    return score % 10


def is_valid_assignment(numbers):
    """Check a number assignment is a full permutation of 0-9"""
    if not numbers or len(numbers) != 10:
        return False
    try:
        return sorted(int(n) for n in numbers) == DIGITS
    except (TypeError, ValueError):
        return False


def find_digit_index(numbers, digit):
    """
    Find the grid index whose assigned digit matches

    Returns:
        int or None when the assignment is absent, invalid, or lacks the digit
    """
    if not is_valid_assignment(numbers):
        return None

    for index, value in enumerate(numbers):
        if int(value) == digit:
            return index
    return None


def compute_winner(contest, home_score, away_score, squares=None):
    """
    Determine the winning square for a pair of scores

    The home score picks the row through row_numbers and the away score picks
    the column through col_numbers. The square at that cell wins even when it
    is unclaimed.

    Args:
        contest: Contest with row_numbers / col_numbers
        home_score: Home (row axis) team score
        away_score: Away (column axis) team score
        squares: Optional preloaded squares for the contest

    Returns:
        WinnerResult with square None when there is no winner
    """
    home_digit = last_digit(home_score)
    away_digit = last_digit(away_score)

    row_index = find_digit_index(contest.row_numbers, home_digit)
    col_index = find_digit_index(contest.col_numbers, away_digit)

    if row_index is None or col_index is None:
        return WinnerResult(None, home_digit, away_digit, row_index, col_index)

    if squares is None:
        square = contest.get_square(row_index, col_index)
    else:
        square = next(
            (
                sq
                for sq in squares
                if sq.row_index == row_index and sq.col_index == col_index
            ),
            None,
        )

    return WinnerResult(square, home_digit, away_digit, row_index, col_index)


def calculate_prize_amount(square_price, payout_percent):
    """Prize for a quarter: the full 100-square pot times the quarter's percent"""
    total_pot = float(square_price or 0) * 100
    return total_pot * (payout_percent or 0) / 100


def build_winner_name(first_name, last_name):
    if not first_name:
        return "Unclaimed Square"
    return f"{first_name} {last_name}" if last_name else first_name
