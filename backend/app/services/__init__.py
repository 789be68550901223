"""
Services package for background work.
"""

from .session_sweeper import SessionSweeper, run_sweep

__all__ = [
    "SessionSweeper",
    "run_sweep",
]
