"""
database.py
-----------

Persistence for the calculator. The store is a single SQLite key-value
table holding the same fixed keys a browser would keep in local storage:
the four configuration fields as raw strings and the trade log as a JSON
array of rows. Keeping this here means the ledger and the web layer
never touch SQL.
"""

import json
import logging
import sqlite3
from typing import Dict, List, Optional

from .models import CalculatorConfig, Trade

logger = logging.getLogger(__name__)

INITIAL_BALANCE = "initialBalance"
PROFIT_TARGET = "profitTarget"
DEFAULT_RISK_PERCENTAGE = "defaultRiskPercentage"
DEFAULT_WIN_MULTIPLIER = "defaultWinMultiplier"
TRADES_LOG = "tradesLog"

CONFIG_KEYS = (INITIAL_BALANCE, PROFIT_TARGET, DEFAULT_RISK_PERCENTAGE, DEFAULT_WIN_MULTIPLIER)

# values used before the user has entered anything
DEFAULTS: Dict[str, str] = {
    INITIAL_BALANCE: "10000",
    PROFIT_TARGET: "",
    DEFAULT_RISK_PERCENTAGE: "1.23",
    DEFAULT_WIN_MULTIPLIER: "6.5",
    TRADES_LOG: "[]",
}


class CalculatorStore:
    """SQLite-backed key-value store for configuration and the trade log."""

    def __init__(self, db_path: str = "growthcalc.db") -> None:
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    # ---------- schema ----------
    def _create_tables(self) -> None:
        with self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    # ---------- raw access ----------
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        cur = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = cur.fetchone()
        if row is None:
            return DEFAULTS.get(key) if default is None else default
        return row["value"]

    def set(self, key: str, value: str) -> None:
        with self.conn:
            self.conn.execute(
                """
                INSERT INTO kv(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, value),
            )

    # ---------- config ----------
    def load_raw_config(self) -> Dict[str, str]:
        """Configuration fields exactly as entered, for redisplay in the form."""
        return {key: self.get(key) or "" for key in CONFIG_KEYS}

    def load_config(self) -> CalculatorConfig:
        raw = self.load_raw_config()
        return CalculatorConfig.from_strings(
            raw[INITIAL_BALANCE],
            raw[PROFIT_TARGET],
            raw[DEFAULT_RISK_PERCENTAGE],
            raw[DEFAULT_WIN_MULTIPLIER],
        )

    def save_config_value(self, key: str, raw: str) -> None:
        if key not in CONFIG_KEYS:
            raise KeyError(f"Unknown configuration key: {key}")
        self.set(key, raw)

    # ---------- trades ----------
    def load_trades(self) -> List[Trade]:
        """Return the stored trade log. A corrupt log loads as empty."""
        raw = self.get(TRADES_LOG) or "[]"
        try:
            rows = json.loads(raw)
            if not isinstance(rows, list):
                raise ValueError("tradesLog is not a list")
            return [Trade.from_row(r) for r in rows]
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable trade log: {e}")
            return []

    def save_trades(self, trades: List[Trade]) -> None:
        self.set(TRADES_LOG, json.dumps([t.to_row() for t in trades]))

    # ---------- housekeeping ----------
    def close(self) -> None:
        self.conn.close()
