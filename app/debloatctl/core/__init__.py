"""Core logic: package table, filters, selection, planning, orchestration."""
