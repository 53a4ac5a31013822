"""Perpetual-futures PnL position ledger service."""
