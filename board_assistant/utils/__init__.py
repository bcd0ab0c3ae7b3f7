"""Shared helpers for the board assistant."""
