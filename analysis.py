from collections.abc import Mapping
from datetime import date, datetime
from typing import Optional

SEVERITY_LEVELS = 5


def _valid_severity(value) -> Optional[int]:
    # bool is an int subclass; True must not count as severity 1
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if 1 <= value <= SEVERITY_LEVELS:
        return value
    return None


def _entry_month(value) -> Optional[tuple[int, int]]:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            try:
                value = value.astimezone()
            except (OverflowError, OSError):
                return None
        return value.year, value.month
    if isinstance(value, date):
        return value.year, value.month
    if isinstance(value, str):
        try:
            d = date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
        return d.year, d.month
    return None


def _month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime("%B %Y")


def compute_statistics(entries, medication_names=None) -> dict:
    """Summarise headache entries for the statistics dashboard.

    Entries are mappings with ``date``, ``severity`` and ``medications``
    keys. Malformed values are skipped rather than raised: an invalid
    severity stays out of the histogram and counts as 0 in its month's
    average, an unusable date keeps the entry out of the monthly buckets.
    """
    names = medication_names or {}
    total = 0
    distribution = [0] * SEVERITY_LEVELS
    buckets: dict[tuple[int, int], dict] = {}
    med_counts: dict[str, int] = {}

    for entry in entries:
        total += 1
        if not isinstance(entry, Mapping):
            continue

        severity = _valid_severity(entry.get("severity"))
        if severity is not None:
            distribution[severity - 1] += 1

        key = _entry_month(entry.get("date"))
        if key is not None:
            contribution = severity or 0
            bucket = buckets.get(key)
            if bucket is None:
                buckets[key] = {"count": 1, "averageSeverity": float(contribution)}
            else:
                old_count = bucket["count"]
                bucket["count"] = old_count + 1
                bucket["averageSeverity"] = (
                    bucket["averageSeverity"] * old_count + contribution
                ) / bucket["count"]

        meds = entry.get("medications")
        if not isinstance(meds, (list, tuple)):
            continue
        for med in meds:
            if not med or not isinstance(med, str):
                continue
            name = names.get(med, med)
            med_counts[name] = med_counts.get(name, 0) + 1

    monthly = [
        {
            "month": _month_label(year, month),
            "count": buckets[(year, month)]["count"],
            "averageSeverity": buckets[(year, month)]["averageSeverity"],
        }
        for year, month in sorted(buckets)
    ]
    # sorted() is stable, so ties keep first-seen order from the dict
    ranked = sorted(med_counts.items(), key=lambda kv: -kv[1])

    return {
        "totalHeadaches": total,
        "severityDistribution": distribution,
        "monthlyFrequency": monthly,
        "medicationStats": [{"name": name, "count": count} for name, count in ranked],
    }


def most_common_severity(distribution) -> Optional[int]:
    best = None
    for i, count in enumerate(distribution):
        if count > 0 and (best is None or count > distribution[best]):
            best = i
    return None if best is None else best + 1


def top_medication(stats: dict) -> Optional[str]:
    meds = stats.get("medicationStats") or []
    return meds[0]["name"] if meds else None
