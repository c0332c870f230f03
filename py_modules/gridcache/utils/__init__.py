"""Utility helpers for steam-art-cache."""
