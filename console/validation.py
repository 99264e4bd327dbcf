from datetime import date, time
from typing import Any, List, Optional

from shared.state_machine import MAX_SCORE


class ValidationError(ValueError):
    pass


def missing_fields(data: dict, fields: List[str]) -> List[str]:
    """Required fields that are absent or blank."""
    missing = []
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def parse_date(value: Any, field: str) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)")


def parse_time(value: Any, field: str) -> time:
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a time (HH:MM)")


def parse_score(value: Any, field: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field} must be a whole number")
    try:
        score = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field} must be a whole number")
    if score > MAX_SCORE:
        raise ValidationError(f"{field} must be at most {MAX_SCORE}")
    return score


def parse_team_ids(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return None
    return value
