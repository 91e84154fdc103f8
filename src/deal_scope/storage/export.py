"""Export analyses to CSV and JSON."""

from __future__ import annotations

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Any

from ..models import EnrichedAnalysis


def _serialize(obj: Any) -> Any:
    """JSON serializer for datetime and other objects."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def export_csv(results: list[EnrichedAnalysis], path: Path | str) -> None:
    """Export ranked analyses to CSV, one row per property."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "rank",
        "address",
        "city",
        "state",
        "price",
        "unit_count",
        "rent_estimate",
        "total_monthly_rent",
        "rent_confidence",
        "investment_score",
        "investment_badge",
        "profile_score",
        "cash_flow",
        "roi",
        "cap_rate",
        "dscr",
        "grm",
        "meets_targets",
        "reason_flags",
    ]

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for i, a in enumerate(results, 1):
            d = a.to_dict()
            metrics = d["metrics"] or {}
            writer.writerow({
                "rank": i,
                "address": a.property.address,
                "city": a.property.city,
                "state": a.property.state,
                "price": a.property.price,
                "unit_count": a.unit_count,
                "rent_estimate": d["rentEstimate"],
                "total_monthly_rent": d["totalMonthlyRent"],
                "rent_confidence": d["rentConfidence"],
                "investment_score": d["investmentScore"],
                "investment_badge": d["investmentBadge"],
                "profile_score": d["profileScore"],
                "cash_flow": d["cashFlow"],
                "roi": d["roi"],
                "cap_rate": metrics.get("capRate"),
                "dscr": metrics.get("dscr"),
                "grm": metrics.get("grm"),
                "meets_targets": d["meetsTargets"],
                "reason_flags": " | ".join(d["reasonFlags"]),
            })


def export_json(results: list[EnrichedAnalysis], path: Path | str) -> None:
    """Export full analysis details to JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "run_at": datetime.utcnow().isoformat(),
        "count": len(results),
        "results": [a.to_dict() for a in results],
    }

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=_serialize)
