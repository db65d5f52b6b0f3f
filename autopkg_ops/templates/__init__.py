"""Packaged script templates."""
