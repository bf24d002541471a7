"""Game domain services: roster, turns, task draw, persistence, admin.

This package contains pure(ish) domain logic used by the socket handlers,
keeping transport concerns separated from core game mechanics.
"""
