"""Recurring expense generation engine."""
