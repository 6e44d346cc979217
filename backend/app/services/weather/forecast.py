"""Daily aggregation of the OpenWeatherMap 3-hour forecast list.

The ``/forecast`` endpoint returns 40 samples, one every three hours. The
dashboard shows one tile per day, so samples are bucketed by the city's local
calendar date (UTC timestamp shifted by the city's offset) and each bucket is
reduced to min/max temperature, mean precipitation probability and the most
common icon.
"""

from datetime import datetime, timezone
from typing import Any

from app.models import DailyForecast

# Local hours that count as "around noon" when picking the day's timestamp
NOON_HOURS = (11, 12, 13)


def fold_icon(icon: str) -> str:
    """Map a night icon variant onto its daytime equivalent ("01n" -> "01d")."""
    if icon.endswith("n"):
        return icon[:-1] + "d"
    return icon


def representative_icon(icons: list[str]) -> str:
    """Most frequent icon after folding night variants into day ones.

    On a tie, the icon whose count reached the maximum first wins.
    """
    counts: dict[str, int] = {}
    leader, best = "", 0
    for icon in icons:
        folded = fold_icon(icon)
        counts[folded] = counts.get(folded, 0) + 1
        if counts[folded] > best:
            leader, best = folded, counts[folded]
    return leader


def local_datetime(timestamp: int, offset_seconds: int) -> datetime:
    return datetime.fromtimestamp(timestamp + offset_seconds, tz=timezone.utc)


def _sample_icon(sample: dict[str, Any]) -> str:
    weather = sample.get("weather") or [{}]
    return weather[0].get("icon", "")


def _sample_description(sample: dict[str, Any]) -> str:
    weather = sample.get("weather") or [{}]
    return weather[0].get("description", "")


def _summarize_day(
    date: str, samples: list[dict[str, Any]], offset_seconds: int
) -> DailyForecast:
    lows: list[float] = []
    highs: list[float] = []
    for sample in samples:
        main = sample.get("main", {})
        temp = main.get("temp")
        low = main.get("temp_min", temp)
        high = main.get("temp_max", temp)
        if low is not None:
            lows.append(float(low))
        if high is not None:
            highs.append(float(high))

    pops = [float(sample.get("pop") or 0.0) for sample in samples]

    noon_sample = next(
        (
            s
            for s in samples
            if local_datetime(s["dt"], offset_seconds).hour in NOON_HOURS
        ),
        samples[0],
    )

    return DailyForecast(
        dt=noon_sample["dt"],
        date=date,
        temp_min=min(lows) if lows else 0.0,
        temp_max=max(highs) if highs else 0.0,
        icon=representative_icon([_sample_icon(s) for s in samples]),
        description=_sample_description(noon_sample),
        pop=sum(pops) / len(pops),
    )


def bucket_forecast(
    samples: list[dict[str, Any]],
    offset_seconds: int = 0,
    days: int = 5,
    skip_today: bool = False,
) -> list[DailyForecast]:
    """Reduce a 3-hour forecast list into at most ``days`` daily records.

    Args:
        samples: The ``list`` array of a ``/forecast`` response.
        offset_seconds: The city's UTC offset (``city.timezone``).
        days: How many leading days to keep.
        skip_today: Drop the first bucket (the partially elapsed current day).

    Returns:
        Daily records in chronological order.
    """
    buckets: dict[str, list[dict[str, Any]]] = {}
    for sample in samples:
        if "dt" not in sample:
            continue
        date = local_datetime(sample["dt"], offset_seconds).strftime("%Y-%m-%d")
        buckets.setdefault(date, []).append(sample)

    daily = [
        _summarize_day(date, bucket, offset_seconds)
        for date, bucket in buckets.items()
    ]
    if skip_today:
        daily = daily[1:]
    return daily[: max(days, 0)]
