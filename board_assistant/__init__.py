"""Trello board analytics backend.

Read-only diagnostics (snapshot, health, history, cleanup, executive summary)
computed from a Trello board for an LLM-driven assistant.
"""

__version__ = "0.1.0"
