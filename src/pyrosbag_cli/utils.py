from datetime import datetime

from rich import filesize

NS_PER_SEC = 1_000_000_000
_NS_PER_MINUTE = 60 * NS_PER_SEC
_NS_PER_HOUR = 60 * _NS_PER_MINUTE

_SUBSECOND_UNITS = (
    (1_000_000, "ms"),
    (1_000, "µs"),
)


def bytes_to_human(size_bytes: float | None) -> str:
    """Convert bytes to a human-readable format."""
    if size_bytes is None:
        return "N/A"

    return filesize.decimal(int(abs(size_bytes)), separator="")


def digits(n: int) -> int:
    """Number of decimal digits of ``n``, ignoring the sign."""
    return len(str(abs(n)))


def _fraction(value: int, unit: int) -> str:
    """Render ``value / unit`` in decimal without trailing zeros."""
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    width = len(str(unit)) - 1
    return f"{whole}.{str(rest).zfill(width).rstrip('0')}"


def duration_to_str(duration_ns: int) -> str:
    """Render a duration like ``1h2m3.5s``, ``12.34s`` or ``1.5ms``."""
    if duration_ns < 0:
        return "-" + duration_to_str(-duration_ns)
    if duration_ns == 0:
        return "0s"
    if duration_ns < NS_PER_SEC:
        for unit, suffix in _SUBSECOND_UNITS:
            if duration_ns >= unit:
                return f"{_fraction(duration_ns, unit)}{suffix}"
        return f"{duration_ns}ns"

    hours, rest = divmod(duration_ns, _NS_PER_HOUR)
    minutes, rest = divmod(rest, _NS_PER_MINUTE)
    seconds = f"{_fraction(rest, NS_PER_SEC)}s"
    if hours:
        return f"{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{minutes}m{seconds}"
    return seconds


def round_duration(duration_ns: int) -> int:
    """Round to 1/100 of the largest power of ten seconds, at most 100 s, not exceeding it."""
    if duration_ns <= 0:
        return duration_ns
    scale = 100 * NS_PER_SEC
    while scale > duration_ns:
        scale //= 10
    step = scale // 100
    if step <= 1:
        return duration_ns
    return (duration_ns + step // 2) // step * step


def format_duration(duration_ns: int) -> str:
    return duration_to_str(round_duration(duration_ns))


def format_timestamp(timestamp_ns: int) -> str:
    """Render a timestamp as ``Jan 02 2006 15:04:05.00 (1136214245.00)`` in local time."""
    secs, nsecs = divmod(timestamp_ns, NS_PER_SEC)
    dt = datetime.fromtimestamp(secs)
    hundredths = nsecs // 10_000_000
    rounded = round(100 * nsecs / NS_PER_SEC)
    return f"{dt.strftime('%b %d %Y %H:%M:%S')}.{hundredths:02d} ({secs}.{rounded:02d})"
