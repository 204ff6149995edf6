"""Exelook output -- console display and file export."""
