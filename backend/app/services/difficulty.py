"""
Route Difficulty: fixed-threshold classification plus display summary.

Accepts a normalized RouteResult and returns a label the route panel can
show next to distance and riding time.  No randomness, no configuration.

Thresholds:
    Distance < 3 km        → Easy         (Moderate with significant elevation)
    3 km ≤ distance < 8 km → Moderate     (Challenging with significant elevation)
    Distance ≥ 8 km        → Challenging

A step counts as significant elevation when it climbs or descends more
than 30 units.
"""

from typing import Iterable, Optional

from app.schemas.route import Difficulty, RouteResult, RouteStep, RouteSummary

# ─── Constants ───────────────────────────────────────────────────

SHORT_ROUTE_M = 3000
LONG_ROUTE_M = 8000
ELEVATION_THRESHOLD = 30


# ─── Internal helpers ────────────────────────────────────────────

def _exceeds(value: Optional[float]) -> bool:
    return value is not None and value > ELEVATION_THRESHOLD


def has_significant_elevation(steps: Iterable[RouteStep]) -> bool:
    """True if any step gains or loses more than the threshold."""
    return any(_exceeds(s.elevation_gain) or _exceeds(s.elevation_loss) for s in steps)


def _plural(n: int) -> str:
    return "s" if n > 1 else ""


def format_distance(distance_m: float) -> str:
    return f"{distance_m / 1000:.1f} km"


def format_duration(time_s: float) -> str:
    """Human riding time: seconds, minutes, or hours + minutes."""
    if time_s < 60:
        return f"{time_s:g} seconds"
    if time_s < 3600:
        return f"{int(time_s // 60)} minutes"
    hours = int(time_s // 3600)
    minutes = int((time_s % 3600) // 60)
    return f"{hours} hour{_plural(hours)} {minutes} minute{_plural(minutes)}"


# ─── Public functions ────────────────────────────────────────────

def classify_difficulty(distance_m: float, steps: Iterable[RouteStep] = ()) -> Difficulty:
    elevated = has_significant_elevation(steps)

    if distance_m < SHORT_ROUTE_M:
        return "Moderate" if elevated else "Easy"
    elif distance_m < LONG_ROUTE_M:
        return "Challenging" if elevated else "Moderate"
    return "Challenging"


def summarize_route(route: RouteResult) -> RouteSummary:
    return RouteSummary(
        distance_text=format_distance(route.distance),
        time_text=format_duration(route.time),
        difficulty=classify_difficulty(route.distance, route.steps),
    )
