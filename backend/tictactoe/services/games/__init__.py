"""Game domain services: board, sessions, matchmaking, timers and scoring.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""
