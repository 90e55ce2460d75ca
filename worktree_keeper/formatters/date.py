"""Date and time formatting utilities."""

from datetime import timedelta


def format_age(age: timedelta) -> str:
    """
    Format a worktree's age for humans.

    Args:
        age: Time since the worktree was created

    Returns:
        "less than an hour", "N hours", "1 day", "N days" or "N weeks"
    """
    total_hours = int(age.total_seconds() // 3600)
    days = total_hours // 24

    if days <= 0:
        if total_hours <= 0:
            return "less than an hour"
        if total_hours == 1:
            return "1 hour"
        return f"{total_hours} hours"

    if days == 1:
        return "1 day"

    weeks = days // 7
    if weeks >= 1:
        if weeks == 1:
            return "1 week"
        return f"{weeks} weeks"

    return f"{days} days"


def format_duration(duration: timedelta) -> str:
    """
    Format a short duration compactly ("42s", "3m", "2h", "1h15m").

    Args:
        duration: Elapsed time

    Returns:
        Compact duration string
    """
    seconds = max(int(duration.total_seconds()), 0)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    hours = seconds // 3600
    minutes = (seconds // 60) % 60
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h{minutes}m"
