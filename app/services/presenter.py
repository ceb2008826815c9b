from __future__ import annotations

import math
from typing import Any, Iterable

import pandas as pd

from app.schemas.predictions import (
    ClusterProfileIn,
    ClusterRow,
    ConfidenceBucket,
    Distribution,
    LegacyResult,
    PredictionRowIn,
    Recommendation,
    RichResult,
    RichSummaryIn,
    ViewModel,
)

# (label, lower bound inclusive); the first bucket also takes values above 1.0
CONFIDENCE_BUCKETS: tuple[tuple[str, float], ...] = (
    ("High (0.8-1.0)", 0.8),
    ("Medium (0.6-0.8)", 0.6),
    ("Low (0.4-0.6)", 0.4),
    ("Very Low (0-0.4)", -math.inf),
)


def derive_view_model(result: Any, preview_limit: int | None = None) -> ViewModel:
    """
    Turn a raw inference result into the view-model the UI renders.

    Total: unknown shapes, missing keys and wrongly typed values all fall back to
    empty/zero defaults. Nothing is cached between calls.
    """

    parsed = parse_result(result)
    if isinstance(parsed, RichResult):
        return _rich_view(parsed, preview_limit)
    return _legacy_view(parsed)


def parse_result(result: Any) -> LegacyResult | RichResult:
    """
    Shape detection, done once:
      1) a list -> its first element
      2) a mapping with "summary" -> rich shape
      3) anything else -> legacy flat arrays
    """

    if isinstance(result, (list, tuple)):
        result = result[0] if result else {}
    if not isinstance(result, dict):
        return LegacyResult()

    if "summary" in result:
        return _parse_rich(result)

    return LegacyResult(
        classification=_numbers(result.get("classification")),
        clusters=_numbers(result.get("clusters")),
    )


def build_frequency_table(values: Iterable[Any]) -> Distribution:
    """Count distinct numeric values; labels ascending, non-numeric entries ignored."""
    numbers = _numbers(values)
    counts = pd.Series(numbers, dtype="float64").value_counts().sort_index()

    labels = [_format_label(v) for v in counts.index]
    return _distribution(labels, [int(c) for c in counts.tolist()])


def average_confidence(rows: list[PredictionRowIn]) -> float:
    if not rows:
        return 0.0
    return sum(r.confidence for r in rows) / len(rows)


def bucket_confidences(confidences: Iterable[float]) -> list[ConfidenceBucket]:
    counts = {label: 0 for label, _ in CONFIDENCE_BUCKETS}
    for c in confidences:
        for label, lower in CONFIDENCE_BUCKETS:
            if c >= lower:
                counts[label] += 1
                break
    return [ConfidenceBucket(label=label, count=count) for label, count in counts.items()]


def format_percentage(count: float, total: float) -> str:
    if not total:
        return "0.0"
    return f"{count / total * 100:.1f}"


# --- views ---


def _legacy_view(parsed: LegacyResult) -> ViewModel:
    return ViewModel(
        shape="legacy",
        classification=build_frequency_table(parsed.classification),
        clusters=build_frequency_table(parsed.clusters),
    )


def _rich_view(parsed: RichResult, preview_limit: int | None) -> ViewModel:
    summary = parsed.summary
    rows = parsed.predictions_preview

    class_labels = list(summary.class_distribution.keys())
    class_values = [_count(v) for v in summary.class_distribution.values()]

    cluster_rows = [
        ClusterRow(cluster_id=cid, members=_count(p.members), label=p.label)
        for cid, p in parsed.cluster_profiles.items()
    ]

    shown = rows if preview_limit is None else rows[: max(0, preview_limit)]

    return ViewModel(
        shape="rich",
        total_windows=summary.total_windows,
        dominant_workload_type=summary.dominant_workload_type,
        class_distribution=_distribution(class_labels, class_values),
        cluster_profiles=cluster_rows,
        cluster_distribution=_distribution(
            [r.cluster_id for r in cluster_rows],
            [r.members for r in cluster_rows],
        ),
        average_confidence=average_confidence(rows),
        confidence_buckets=bucket_confidences(r.confidence for r in rows),
        predictions_preview=list(shown),
        preview_total=len(rows),
        recommendation=parsed.recommendation,
        message=parsed.message,
    )


def _distribution(labels: list[str], values: list[int | float]) -> Distribution:
    total = sum(values)
    return Distribution(
        labels=labels,
        values=values,
        percentages=[format_percentage(v, total) for v in values],
        total=total,
    )


# --- tolerant parsing of the rich shape ---


def _parse_rich(raw: dict) -> RichResult:
    summary = _mapping(raw.get("summary"))
    recommendation = _mapping(raw.get("recommendation"))

    return RichResult(
        summary=RichSummaryIn(
            total_windows=int(_number(summary.get("total_windows")) or 0),
            dominant_workload_type=_text(summary.get("dominant_workload_type")) or "Unknown",
            class_distribution={
                str(k): _number(v) or 0 for k, v in _mapping(summary.get("class_distribution")).items()
            },
        ),
        cluster_profiles={
            str(cid): ClusterProfileIn(
                members=_number(_mapping(p).get("members")) or 0,
                label=_text(_mapping(p).get("label")),
            )
            for cid, p in _mapping(raw.get("cluster_profiles")).items()
        },
        predictions_preview=[_parse_row(r) for r in _sequence(raw.get("predictions_preview"))],
        recommendation=Recommendation(
            action=_text(recommendation.get("action")),
            reason=_text(recommendation.get("reason")),
        ),
        message=_text(raw.get("message")),
    )


def _parse_row(raw: Any) -> PredictionRowIn:
    row = _mapping(raw)
    return PredictionRowIn(
        window_id=_identifier(row.get("window_id")),
        class_id=_identifier(row.get("class_id")),
        label=_text(row.get("label")),
        confidence=_number(row.get("confidence")) or 0.0,
        cluster_id=_identifier(row.get("cluster_id")),
    )


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def _numbers(values: Any) -> list[float]:
    out = (_number(v) for v in _sequence(values))
    return [n for n in out if n is not None]


def _count(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def _format_label(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _identifier(value: Any) -> int | str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return value
    n = _number(value)
    if n is not None and n.is_integer():
        return int(n)
    return str(value)
