"""Trading growth calculator: ledger recalculation core and Flask web UI."""
