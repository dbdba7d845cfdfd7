"""Risk & compliance derivation engine."""
