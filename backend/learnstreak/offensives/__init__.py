"""Offensives: tiered day-granular learning streaks."""
