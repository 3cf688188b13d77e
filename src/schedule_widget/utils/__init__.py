"""Shared helpers for Schedule Widget."""
