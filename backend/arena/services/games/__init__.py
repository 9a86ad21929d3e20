"""Game domain services: grid, sessions, actions, detonations and timers.

This package holds the authoritative arena logic. Socket handlers and HTTP
routes import from here, keeping transport concerns separated from core
game mechanics.
"""
