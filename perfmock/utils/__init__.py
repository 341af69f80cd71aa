"""Utility helpers for perfmock."""
