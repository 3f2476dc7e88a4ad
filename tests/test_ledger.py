from decimal import Decimal

import pytest

from growthcalc.ledger import (
    InvalidTradeValue,
    add_trade,
    calculate_trade_row,
    clear_trades,
    current_balance,
    delete_trade,
    recompute,
    risk_for_new_trade,
    suggested_risk,
    update_outcome,
    update_trade_value,
)
from growthcalc.models import CalculatorConfig, Outcome, Trade


def make_trade(trade_id, outcome, risk="1", multiplier="6.5"):
    return Trade(id=trade_id, risk_percentage=Decimal(risk),
                 win_multiplier=Decimal(multiplier), outcome=outcome)


def test_single_winning_trade(config):
    [t] = recompute(config, [make_trade("a", Outcome.WIN)])
    assert t.trade_number == 1
    assert t.account_size == Decimal("10000")
    assert t.risk_amount == Decimal("100")
    assert t.floating_pl == Decimal("650")
    assert t.account_balance == Decimal("10650")
    assert t.distance_to_target == Decimal("150")
    # 150 / (10650 * 6.5) * 100
    assert round(t.next_suggested_risk, 3) == Decimal("0.217")


def test_balances_chain_from_trade_to_trade(config):
    trades = recompute(config, [
        make_trade("a", Outcome.WIN),
        make_trade("b", Outcome.LOSS, risk="2"),
        make_trade("c", Outcome.PARTIAL_WIN, multiplier="3"),
        make_trade("d", Outcome.BREAKEVEN),
        make_trade("e", Outcome.PENDING),
    ])
    assert trades[0].account_size == config.initial_balance
    for prev, nxt in zip(trades, trades[1:]):
        assert prev.account_balance == nxt.account_size
    assert [t.trade_number for t in trades] == [1, 2, 3, 4, 5]
    # loss of 2% of 10650
    assert trades[1].floating_pl == Decimal("-213")
    # partial win halves the full win: 1% of 10437 * 3 / 2
    assert trades[2].floating_pl == Decimal("156.555")


def test_pl_sign_matches_outcome(config):
    trades = recompute(config, [make_trade(str(i), o) for i, o in enumerate(Outcome)])
    by_outcome = {t.outcome: t.floating_pl for t in trades}
    assert by_outcome[Outcome.WIN] > 0
    assert by_outcome[Outcome.PARTIAL_WIN] > 0
    assert by_outcome[Outcome.LOSS] < 0
    assert by_outcome[Outcome.BREAKEVEN] == 0
    assert by_outcome[Outcome.PENDING] == 0


def test_suggestion_undefined_once_target_reached(config):
    trades = recompute(config, [make_trade("a", Outcome.WIN, risk="2")])
    assert trades[0].account_balance >= config.profit_target
    assert trades[0].next_suggested_risk is None
    assert trades[0].distance_to_target <= 0


def test_suggested_risk_degenerate_inputs():
    assert suggested_risk(Decimal("10800"), Decimal("10800"), Decimal("2")) is None
    assert suggested_risk(Decimal("0"), Decimal("10800"), Decimal("2")) is None
    assert suggested_risk(Decimal("10000"), Decimal("10800"), Decimal("0")) is None
    assert suggested_risk(Decimal("NaN"), Decimal("10800"), Decimal("2")) is None
    assert suggested_risk(Decimal("10000"), Decimal("10800"), Decimal("2")) == Decimal("4")


def test_recompute_is_idempotent(config):
    once = recompute(config, [make_trade("a", Outcome.WIN), make_trade("b", Outcome.LOSS)])
    assert recompute(config, once) == once


def test_recompute_empty_log(config):
    assert recompute(config, []) == []
    assert current_balance(config, []) == config.initial_balance


def test_delete_renumbers_and_rebalances(config):
    trades = recompute(config, [
        make_trade("a", Outcome.WIN),
        make_trade("b", Outcome.LOSS),
        make_trade("c", Outcome.WIN),
    ])
    remaining = delete_trade(config, trades, "a")
    assert [t.id for t in remaining] == ["b", "c"]
    assert [t.trade_number for t in remaining] == [1, 2]
    assert remaining[0].account_size == config.initial_balance
    assert remaining[0].account_balance == Decimal("9900")


def test_delete_unknown_id_is_noop(config):
    trades = recompute(config, [make_trade("a", Outcome.WIN)])
    assert delete_trade(config, trades, "missing") == trades


def test_non_finite_values_are_masked(config):
    bad = Trade(id="x", risk_percentage=Decimal("Infinity"),
                win_multiplier=Decimal("2"), outcome=Outcome.BREAKEVEN)
    row = calculate_trade_row(bad, Decimal("1000"), Decimal("1080"))
    assert row.risk_amount == 0
    assert row.floating_pl == 0
    assert row.account_balance == Decimal("1000")
    assert row.distance_to_target == Decimal("80")

    [t, nxt] = recompute(config, [bad, make_trade("y", Outcome.WIN)])
    assert t.account_balance == config.initial_balance
    assert nxt.account_size == config.initial_balance


def test_new_trade_uses_suggestion_when_usable(config):
    trades = add_trade(config, [])
    assert len(trades) == 1
    t = trades[0]
    assert t.outcome is Outcome.PENDING
    assert t.win_multiplier == config.default_win_multiplier
    # 800 / (10000 * 6.5) * 100
    assert round(t.risk_percentage, 4) == Decimal("1.2308")
    assert t.trade_number == 1


def test_new_trade_falls_back_to_default_risk(config):
    # target already met: no suggestion
    done = recompute(config, [make_trade("a", Outcome.WIN, risk="5")])
    assert risk_for_new_trade(config, done) == config.default_risk_percentage

    # suggestion above the 50% ceiling
    far = CalculatorConfig(initial_balance=Decimal("100"), profit_target_input=Decimal("1000"),
                           default_risk_percentage=Decimal("1"), default_win_multiplier=Decimal("1"))
    assert risk_for_new_trade(far, []) == Decimal("1")


def test_new_trades_get_distinct_ids(config):
    trades = add_trade(config, add_trade(config, []))
    assert trades[0].id != trades[1].id
    assert trades[1].account_size == trades[0].account_balance


def test_update_outcome_reports_change(config):
    trades = add_trade(config, [])
    tid = trades[0].id
    trades, changed = update_outcome(config, trades, tid, Outcome.WIN)
    assert changed
    assert trades[0].floating_pl > 0
    trades, changed = update_outcome(config, trades, tid, Outcome.WIN)
    assert not changed
    _, changed = update_outcome(config, trades, "missing", Outcome.LOSS)
    assert not changed


def test_update_value_recomputes_following_trades(config):
    trades = recompute(config, [make_trade("a", Outcome.WIN), make_trade("b", Outcome.WIN)])
    updated, changed = update_trade_value(config, trades, "a", "risk_percentage", "0.5")
    assert changed
    assert updated[0].risk_percentage == Decimal("0.5")
    assert updated[0].floating_pl == Decimal("325")
    assert updated[1].account_size == Decimal("10325")


@pytest.mark.parametrize("raw", ["-1", "abc", "", "nan"])
def test_update_value_rejects_invalid_input(config, raw):
    trades = recompute(config, [make_trade("a", Outcome.WIN)])
    with pytest.raises(InvalidTradeValue, match="Invalid Win Multiplier value."):
        update_trade_value(config, trades, "a", "win_multiplier", raw)
    assert trades[0].win_multiplier == Decimal("6.5")


def test_update_value_unknown_field(config):
    with pytest.raises(ValueError):
        update_trade_value(config, [], "a", "outcome", "1")


def test_clear_trades():
    assert clear_trades() == []
