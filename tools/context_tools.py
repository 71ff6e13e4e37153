"""Tool to read the run's date context, for turning "yesterday's vet visit" into an invoice date."""

from datetime import date, timedelta
from typing import Any

from agents import RunContextWrapper, function_tool


def describe_today(today: date) -> str:
    week_ago = today - timedelta(days=7)
    return (
        f"Today is {today:%A} {today.isoformat()} ({today:%m/%d/%Y}). "
        f"One week ago was {week_ago.isoformat()}. "
        "Invoice dates must be given as YYYY-MM-DD or MM/DD/YYYY."
    )


@function_tool
def get_today_date(ctx: RunContextWrapper[Any]) -> str:
    """Get today's date. Use it to turn relative dates ("last Tuesday") into an invoice date for a claim.

    Returns:
        Today's date in both invoice date formats the claim form accepts.
    """
    today_iso = getattr(ctx.context, "today_date", None)
    today = date.fromisoformat(today_iso) if today_iso else date.today()
    return describe_today(today)
