"""Collaborative world grid: structures, zones and a per-user resource ledger."""
