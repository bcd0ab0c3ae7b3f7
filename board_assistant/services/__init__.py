"""Trello read client and board analytics services."""
