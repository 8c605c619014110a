"""Labeled console logging and the JSON Lines validation error log."""
