"""DuckDB storage for analyses and favorite snapshots."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb

from ..models import EnrichedAnalysis, FavoriteSnapshot
from ..normalize import address_cache_key


def _serialize_datetime(obj: Any) -> Any:
    """JSON serializer for datetime objects."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


class Storage:
    """
    DuckDB storage for analyses (one row per property per run) and favorites.
    """

    def __init__(self, db_path: Path | str = "deal_scope.duckdb") -> None:
        self.db_path = Path(db_path)
        self._conn: duckdb.DuckDBPyConnection | None = None

    def _connect(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = duckdb.connect(str(self.db_path))
            self._init_schema()
        return self._conn

    def _init_schema(self) -> None:
        conn = self._conn
        conn.execute("""
            CREATE TABLE IF NOT EXISTS analyses (
                run_id TEXT,
                property_key TEXT,
                address TEXT,
                price REAL,
                unit_count INTEGER,
                rent_estimate REAL,
                total_monthly_rent REAL,
                rent_confidence TEXT,
                investment_score INTEGER,
                investment_badge TEXT,
                cash_flow INTEGER,
                roi REAL,
                meets_targets INTEGER,
                reason_flags JSON,
                full_result JSON,
                created_at TIMESTAMP,
                PRIMARY KEY (run_id, property_key)
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS favorites (
                property_id TEXT PRIMARY KEY,
                address TEXT,
                rent_estimate REAL,
                investment_badge TEXT,
                quick_score INTEGER,
                estimated_cash_flow INTEGER,
                saved_at TIMESTAMP
            )
        """)

    def save_analyses(self, run_id: str, results: list[EnrichedAnalysis]) -> None:
        """Save analyses under ``run_id``; a repeated property replaces its row."""
        conn = self._connect()
        now = datetime.utcnow()
        for i, a in enumerate(results):
            d = a.to_dict()
            key = a.property.property_id or address_cache_key(a.property) or f"row_{i}"
            conn.execute(
                """
                INSERT OR REPLACE INTO analyses
                (run_id, property_key, address, price, unit_count, rent_estimate,
                 total_monthly_rent, rent_confidence, investment_score, investment_badge,
                 cash_flow, roi, meets_targets, reason_flags, full_result, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    run_id,
                    key,
                    a.property.address,
                    a.property.price,
                    a.unit_count,
                    d["rentEstimate"],
                    d["totalMonthlyRent"],
                    d["rentConfidence"],
                    d["investmentScore"],
                    d["investmentBadge"],
                    d["cashFlow"],
                    d["roi"],
                    1 if d["meetsTargets"] else 0,
                    json.dumps(d["reasonFlags"]),
                    json.dumps(d, default=_serialize_datetime),
                    now,
                ],
            )

    def latest_run_id(self) -> str | None:
        conn = self._connect()
        row = conn.execute("SELECT max(run_id) FROM analyses").fetchone()
        return row[0] if row else None

    def load_analyses(self, run_id: str | None = None) -> list[dict[str, Any]]:
        """Load analyses (as output dicts) for ``run_id``, default the latest run."""
        run_id = run_id or self.latest_run_id()
        if run_id is None:
            return []
        conn = self._connect()
        rows = conn.execute(
            "SELECT full_result FROM analyses WHERE run_id = ? ORDER BY investment_score DESC",
            [run_id],
        ).fetchall()
        results = []
        for (full,) in rows:
            results.append(json.loads(full) if isinstance(full, str) else full)
        return results

    def save_favorite(self, snapshot: FavoriteSnapshot) -> None:
        """Upsert a favorite snapshot keyed by property id."""
        conn = self._connect()
        conn.execute(
            """
            INSERT OR REPLACE INTO favorites
            (property_id, address, rent_estimate, investment_badge, quick_score,
             estimated_cash_flow, saved_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                snapshot.property_id,
                snapshot.address,
                snapshot.rent_estimate,
                snapshot.investment_badge,
                snapshot.quick_score,
                snapshot.estimated_cash_flow,
                snapshot.saved_at,
            ],
        )

    def load_favorites(self) -> list[FavoriteSnapshot]:
        """All favorites, most recently saved first."""
        conn = self._connect()
        rows = conn.execute(
            """
            SELECT property_id, address, rent_estimate, investment_badge, quick_score,
                   estimated_cash_flow, saved_at
            FROM favorites ORDER BY saved_at DESC
            """
        ).fetchall()
        return [
            FavoriteSnapshot(
                property_id=r[0],
                address=r[1],
                rent_estimate=r[2],
                investment_badge=r[3],
                quick_score=r[4],
                estimated_cash_flow=r[5],
                saved_at=r[6] or datetime.utcnow(),
            )
            for r in rows
        ]

    def remove_favorite(self, property_id: str) -> None:
        conn = self._connect()
        conn.execute("DELETE FROM favorites WHERE property_id = ?", [property_id])

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
