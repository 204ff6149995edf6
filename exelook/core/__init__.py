"""Exelook core -- lookup pipeline, selection, models and errors."""
