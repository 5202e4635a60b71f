"""
Shared formatting helpers used across tool modules.
"""


def format_duration(seconds: int) -> str:
    """Format seconds into human-readable duration.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "1h01m01s" or "25m30s"
    """
    if not seconds or seconds <= 0:
        return "0s"
    seconds = int(seconds)
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    if h > 0:
        return f"{h}h{m:02d}m{s:02d}s"
    if m > 0:
        return f"{m}m{s:02d}s"
    return f"{s}s"


def format_pace(sec_per_km: float) -> str:
    """Format seconds per km as "M:SS/km"."""
    if not sec_per_km or sec_per_km <= 0:
        return None
    sec_per_km = int(sec_per_km)
    return f"{sec_per_km // 60}:{sec_per_km % 60:02d}/km"


def format_distance(meters: float) -> str:
    """Format distance in meters to human-readable string.

    Returns:
        Formatted string like "10.0 km" or "800 m"
    """
    if not meters or meters <= 0:
        return "0 m"
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{int(meters)} m"
