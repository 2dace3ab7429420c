"""Status classification and attend/miss projections against a target percentage."""
import math

from bunksafe.models import Status

OVERALL_SAFE_THRESHOLD = 75

STATUS_ORDER = {Status.DANGER: 0, Status.ON_TRACK: 1, Status.SAFE: 2}


def percentage(attended: int, total: int) -> float:
    if total == 0:
        return 100.0
    return attended / total * 100


def _fmt(value: float) -> str:
    return f"{value:g}"


def max_additional_misses(total: int, attended: int, target: float) -> int:
    """How many more classes can be missed while staying at or above ``target``."""
    max_total_allowed = attended / (target / 100)
    return math.floor(max_total_allowed - total)


def classes_needed(total: int, attended: int, target: float) -> int:
    """Smallest number of consecutive attended classes that reaches ``target``."""
    numerator = target / 100 * total - attended
    denominator = 1 - target / 100
    if denominator == 0:
        return 1
    return math.ceil(numerator / denominator)


def project(total: int, attended: int, target: float) -> tuple[Status, str]:
    """Return the status and advice message for one subject."""
    if total == 0:
        return Status.SAFE, "No classes scheduled yet."
    if target <= 0:
        return Status.SAFE, "No minimum attendance target set."

    current = percentage(attended, total)
    if current >= target:
        misses = max_additional_misses(total, attended, target)
        if misses > 0:
            noun = "class" if misses == 1 else "classes"
            return Status.SAFE, (
                f"You can miss up to {misses} more {noun} (if you attend all others) "
                f"and still meet your {_fmt(target)}% target."
            )
        return Status.SAFE, (
            f"You're at {current:.0f}% (target: {_fmt(target)}%). "
            "Keep attending to maintain your target."
        )

    must_attend = classes_needed(total, attended, target)
    if must_attend == 1:
        return Status.DANGER, f"Attend the next class to reach your {_fmt(target)}% target."
    return Status.DANGER, f"Attend the next {must_attend} classes to reach your {_fmt(target)}% target."


def is_overall_safe(overall_percentage: float) -> bool:
    return overall_percentage >= OVERALL_SAFE_THRESHOLD


def status_color(status: Status) -> str:
    if status == Status.SAFE:
        return "green"
    elif status == Status.ON_TRACK:
        return "yellow"
    return "red"


def percentage_color(pct: float, target: float) -> str:
    return "green" if pct >= target else "red"
