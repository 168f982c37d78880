"""Pytest configuration shared by every test package."""

from hypothesis import settings

# Timing-sensitive async property tests run without a per-example deadline.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
