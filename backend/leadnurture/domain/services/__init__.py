"""Regras de negócio puras (sem I/O)."""
