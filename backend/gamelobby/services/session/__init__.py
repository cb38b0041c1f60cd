"""Session domain services: round state, timers, resolution and rewards.

This package holds the round lifecycle engine used by the HTTP routes and
socket handlers, keeping transport concerns separated from the round
mechanics.
"""

from .engine import SessionEngine
from .round_state import Round, RoundStatus
from .scheduler import BackgroundScheduler, ManualScheduler
