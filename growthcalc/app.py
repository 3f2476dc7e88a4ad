"""
app.py
------

Flask web application for the trading growth calculator. The page lets
a trader set an initial balance, profit target, default risk % and
default win multiplier, then log trades whose P/L and running balance
are recomputed on every change. Business logic lives in the ledger and
analytics modules; this module only reads forms, calls them, saves the
result and reports what happened through flashed notices.

To run the application:
    1. Install the package (``pip install -e .``).
    2. Execute ``python -m growthcalc.app``.
    3. Navigate to http://localhost:5004 in your web browser.

Note: The Flask development server is intended for local use.
"""
import logging
import os
import re
from decimal import Decimal
from typing import Any, Optional

import pandas as pd
from flask import (
    Flask, render_template, request, redirect, url_for,
    flash, jsonify, Response, abort
)

from .analytics import compute_summary
from .database import (
    CalculatorStore,
    CONFIG_KEYS,
    INITIAL_BALANCE,
    PROFIT_TARGET,
    DEFAULT_RISK_PERCENTAGE,
    DEFAULT_WIN_MULTIPLIER,
)
from .formatting import format_currency, format_percentage_precise
from .ledger import (
    InvalidTradeValue,
    TRADE_VALUE_FIELDS,
    add_trade,
    clear_trades,
    delete_trade,
    find_trade,
    recompute,
    update_outcome,
    update_trade_value,
)
from .models import DEFAULT_TARGET_GROWTH, Outcome

logger = logging.getLogger(__name__)

POSITIVE_NUMBER = re.compile(r"^[0-9]*\.?[0-9]*$")

CONFIG_LABELS = {
    INITIAL_BALANCE: "Initial Balance",
    PROFIT_TARGET: "Profit Target",
    DEFAULT_RISK_PERCENTAGE: "Default Risk",
    DEFAULT_WIN_MULTIPLIER: "Default Win Multiplier",
}

EXPORT_COLUMNS = [
    "trade_number", "id", "account_size", "risk_percentage", "risk_amount",
    "outcome", "floating_pl", "account_balance", "profit_target",
    "win_multiplier", "distance_to_target", "next_suggested_risk",
]


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def create_app(db_path: Optional[str] = None):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret")
    db_path = db_path or os.getenv("GROWTHCALC_DB", "growthcalc.db")
    store = CalculatorStore(db_path)
    app.extensions["growthcalc_store"] = store

    app.add_template_filter(format_currency, "currency")
    app.add_template_filter(format_percentage_precise, "pct")

    def load_ledger():
        """Current config and trade log, recomputed and saved if stale."""
        config = store.load_config()
        stored = store.load_trades()
        trades = recompute(config, stored)
        if trades != stored:
            store.save_trades(trades)
        return config, trades

    def require_trade(trades, trade_id: str):
        if find_trade(trades, trade_id) is None:
            abort(404)

    # ---------- routes ----------
    @app.route("/")
    def index():
        config, trades = load_ledger()
        return render_template(
            "index.html",
            title="Trading Growth Calculator",
            raw_config=store.load_raw_config(),
            config_labels=CONFIG_LABELS,
            default_target=config.initial_balance * DEFAULT_TARGET_GROWTH,
            trades=trades,
            summary=compute_summary(config, trades),
            outcomes=list(Outcome),
        )

    @app.route("/config", methods=["POST"])
    def update_config():
        for key in CONFIG_KEYS:
            if key not in request.form:
                continue
            raw = request.form[key].strip()
            if raw and not POSITIVE_NUMBER.match(raw):
                logger.warning("Rejected %s=%r", key, raw)
                flash(f"Invalid {CONFIG_LABELS[key]} value.", "error")
                continue
            store.save_config_value(key, raw)
        config = store.load_config()
        store.save_trades(recompute(config, store.load_trades()))
        logger.info("Configuration updated: target %s", config.profit_target)
        return redirect(url_for("index"))

    @app.route("/trades", methods=["POST"])
    def new_trade():
        config, trades = load_ledger()
        trades = add_trade(config, trades)
        store.save_trades(trades)
        flash(f"Trade #{len(trades)} added.", "success")
        return redirect(url_for("index"))

    @app.route("/trades/<trade_id>/delete", methods=["POST"])
    def remove_trade(trade_id: str):
        config, trades = load_ledger()
        require_trade(trades, trade_id)
        store.save_trades(delete_trade(config, trades, trade_id))
        flash("Trade deleted and log recalculated.", "warning")
        return redirect(url_for("index"))

    @app.route("/trades/<trade_id>/outcome", methods=["POST"])
    def set_outcome(trade_id: str):
        config, trades = load_ledger()
        require_trade(trades, trade_id)
        raw = request.form.get("outcome", "").strip().lower()
        if raw not in {o.value for o in Outcome}:
            flash("Invalid outcome.", "error")
            return redirect(url_for("index"))
        trades, changed = update_outcome(config, trades, trade_id, Outcome(raw))
        store.save_trades(trades)
        if changed:
            flash("Trade outcome updated and log recalculated.", "info")
        return redirect(url_for("index"))

    @app.route("/trades/<trade_id>/value", methods=["POST"])
    def set_value(trade_id: str):
        config, trades = load_ledger()
        require_trade(trades, trade_id)
        field_name = request.form.get("field", "")
        if field_name not in TRADE_VALUE_FIELDS:
            abort(400)
        try:
            trades, changed = update_trade_value(
                config, trades, trade_id, field_name, request.form.get("value", "")
            )
        except InvalidTradeValue as e:
            flash(str(e), "error")
            return redirect(url_for("index"))
        store.save_trades(trades)
        if changed:
            flash(f"Trade {TRADE_VALUE_FIELDS[field_name]} updated and log recalculated.", "info")
        return redirect(url_for("index"))

    @app.route("/trades/clear", methods=["POST"])
    def clear():
        store.save_trades(clear_trades())
        flash("All trades cleared.", "success")
        return redirect(url_for("index"))

    @app.route("/export", methods=["GET"], endpoint="export")
    def export_trades():
        config, trades = load_ledger()
        rows = []
        for t in trades:
            row = t.to_row()
            row["profit_target"] = str(config.profit_target)
            rows.append(row)
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        return Response(
            df.to_csv(index=False),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=trades.csv"},
        )

    @app.route("/api/ledger")
    def api_ledger():
        config, trades = load_ledger()
        return jsonify({
            "config": store.load_raw_config(),
            "profit_target": str(config.profit_target),
            "trades": [t.to_row() for t in trades],
            "summary": _jsonable(compute_summary(config, trades)),
        })

    return app


# Run directly
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.getenv("GROWTHCALC_PORT", "5004")), debug=True, use_reloader=False)
