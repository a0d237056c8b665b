"""
Email templates for score pipeline notifications

Each template is a pure function of its notice record and returns an
EmailTemplate. Every user-supplied string is HTML-escaped before it is
interpolated.
"""

from collections import namedtuple
from dataclasses import dataclass, field
from typing import List, Optional

from markupsafe import escape

EmailTemplate = namedtuple("EmailTemplate", ["subject", "html"])

BRAND_NAME = "Fundwell"


@dataclass
class WinnerNotice:
    """Sent to the claimant of a winning square"""

    participant_name: str
    contest_name: str
    quarter_name: str
    home_team_name: str
    away_team_name: str
    home_score: int
    away_score: int
    prize_amount: float
    contest_url: str


@dataclass
class QuarterResultNotice:
    """Sent to the contest owner after each processed quarter"""

    owner_name: str
    contest_name: str
    quarter_name: str
    home_team_name: str
    away_team_name: str
    home_score: int
    away_score: int
    winner_name: str
    winner_email: Optional[str]
    winner_venmo: Optional[str]
    prize_amount: float


@dataclass
class SummaryRow:
    quarter_name: str
    home_score: int
    away_score: int
    winner_name: str
    winner_email: Optional[str]
    winner_venmo: Optional[str]
    prize_amount: float


@dataclass
class FinalSummaryNotice:
    """Sent to the contest owner once the game is final"""

    owner_name: str
    contest_name: str
    home_team_name: str
    away_team_name: str
    rows: List[SummaryRow] = field(default_factory=list)

    @property
    def total_payout(self):
        return sum(row.prize_amount or 0 for row in self.rows)


def format_money(amount):
    amount = float(amount or 0)
    if amount.is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"


def _or_na(value):
    return escape(value) if value else "N/A"


def _layout(title, body):
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{title}</title></head>
<body style="margin:0;padding:0;background-color:#18181B;font-family:Arial,sans-serif;">
<table role="presentation" cellpadding="0" cellspacing="0" width="100%">
<tr><td align="center" style="padding:40px 20px;">
<table role="presentation" cellpadding="0" cellspacing="0" width="600" style="max-width:600px;">
  <tr><td align="center" style="background-color:#F97316;border-radius:8px 8px 0 0;padding:24px;">
    <span style="color:#fff;font-size:28px;font-weight:bold;">{BRAND_NAME}</span>
  </td></tr>
  <tr><td style="background-color:#27272A;padding:32px;border-radius:0 0 8px 8px;color:#fafafa;">
{body}
  </td></tr>
  <tr><td align="center" style="padding:24px;">
    <span style="color:#71717a;font-size:14px;">- The {BRAND_NAME} Team</span>
  </td></tr>
</table>
</td></tr>
</table>
</body></html>"""


def winner_notification(notice):
    quarter = escape(notice.quarter_name)
    contest = escape(notice.contest_name)

    subject = f"🏆 You won {notice.quarter_name} in {notice.contest_name}!"

    body = f"""    <h2 style="margin:0 0 16px;color:#FBBF24;text-align:center;">WINNER!</h2>
    <p style="font-size:20px;text-align:center;">Congratulations {escape(notice.participant_name)}!</p>
    <p style="color:#a1a1aa;text-align:center;">You won <strong>{quarter}</strong> in <strong>{contest}</strong>!</p>
    <table role="presentation" width="100%" cellpadding="8" cellspacing="0" style="background-color:#3f3f46;border-radius:8px;">
      <tr><td colspan="2" style="color:#a1a1aa;text-align:center;">Score at {quarter}</td></tr>
      <tr><td>{escape(notice.home_team_name)}</td><td style="text-align:right;font-weight:bold;">{int(notice.home_score)}</td></tr>
      <tr><td>{escape(notice.away_team_name)}</td><td style="text-align:right;font-weight:bold;">{int(notice.away_score)}</td></tr>
    </table>
    <p style="color:#a1a1aa;text-align:center;margin-top:24px;">Your Prize</p>
    <p style="color:#22c55e;font-size:48px;font-weight:bold;text-align:center;margin:0;">{format_money(notice.prize_amount)}</p>
    <p style="text-align:center;margin-top:32px;">
      <a href="{escape(notice.contest_url)}" style="background-color:#F97316;color:#fff;text-decoration:none;padding:16px 40px;border-radius:6px;">View Contest</a>
    </p>"""

    return EmailTemplate(subject, _layout("Winner!", body))


def owner_quarter_notification(notice):
    quarter = escape(notice.quarter_name)

    subject = f"{notice.quarter_name} Winner - {notice.contest_name}"

    body = f"""    <p>Hi {escape(notice.owner_name)},</p>
    <p><strong style="color:#F97316;">{quarter}</strong> just ended in <strong>{escape(notice.contest_name)}</strong>! Here are the results:</p>
    <table role="presentation" width="100%" cellpadding="6" cellspacing="0" style="background-color:#3f3f46;border-radius:8px;">
      <tr><td style="color:#a1a1aa;">{escape(notice.home_team_name)}</td><td style="text-align:right;">{int(notice.home_score)}</td></tr>
      <tr><td style="color:#a1a1aa;">{escape(notice.away_team_name)}</td><td style="text-align:right;">{int(notice.away_score)}</td></tr>
      <tr><td style="color:#FBBF24;font-weight:600;" colspan="2">Winner</td></tr>
      <tr><td style="color:#a1a1aa;">Name:</td><td style="text-align:right;">{escape(notice.winner_name)}</td></tr>
      <tr><td style="color:#a1a1aa;">Email:</td><td style="text-align:right;">{_or_na(notice.winner_email)}</td></tr>
      <tr><td style="color:#a1a1aa;">Venmo:</td><td style="text-align:right;">{_or_na(notice.winner_venmo)}</td></tr>
      <tr><td style="color:#a1a1aa;">Prize:</td><td style="text-align:right;color:#22c55e;font-weight:bold;">{format_money(notice.prize_amount)}</td></tr>
    </table>"""

    return EmailTemplate(subject, _layout(f"{quarter} Winner", body))


def final_summary_notification(notice):
    subject = f"Game Over! Final Summary - {notice.contest_name}"

    rows = "".join(
        f"""
      <tr>
        <td style="color:#F97316;">{escape(row.quarter_name)}</td>
        <td>{int(row.home_score)}-{int(row.away_score)}</td>
        <td>{escape(row.winner_name)}</td>
        <td>{_or_na(row.winner_email)}</td>
        <td>{_or_na(row.winner_venmo)}</td>
        <td style="color:#22c55e;font-weight:bold;">{format_money(row.prize_amount)}</td>
      </tr>"""
        for row in notice.rows
    )

    body = f"""    <h2 style="margin:0 0 16px;color:#FBBF24;text-align:center;">Game Over!</h2>
    <p>Hi {escape(notice.owner_name)},</p>
    <p style="color:#a1a1aa;">The game is over! Here's the complete winner summary for <strong style="color:#fafafa;">{escape(notice.contest_name)}</strong> ({escape(notice.home_team_name)} vs {escape(notice.away_team_name)}).</p>
    <table role="presentation" width="100%" cellpadding="8" cellspacing="0" style="background-color:#3f3f46;border-radius:8px;">
      <tr style="color:#a1a1aa;text-align:left;">
        <th>Quarter</th><th>Score</th><th>Winner</th><th>Email</th><th>Venmo</th><th>Prize</th>
      </tr>{rows}
      <tr>
        <td colspan="5" style="text-align:right;font-weight:bold;">Total Payout:</td>
        <td style="color:#22c55e;font-weight:bold;">{format_money(notice.total_payout)}</td>
      </tr>
    </table>
    <p style="color:#a1a1aa;text-align:center;">Your contest has been automatically marked as completed. All winners have been notified.</p>"""

    return EmailTemplate(subject, _layout("Game Summary", body))


# Notification kind -> template
NOTIFICATION_WINNER = "winner"
NOTIFICATION_OWNER_QUARTER = "owner_quarter"
NOTIFICATION_FINAL_SUMMARY = "final_summary"

TEMPLATES = {
    NOTIFICATION_WINNER: winner_notification,
    NOTIFICATION_OWNER_QUARTER: owner_quarter_notification,
    NOTIFICATION_FINAL_SUMMARY: final_summary_notification,
}


def render_notification(kind, notice):
    try:
        template = TEMPLATES[kind]
    except KeyError:
        raise ValueError(f"Unknown notification kind: {kind}")
    return template(notice)
