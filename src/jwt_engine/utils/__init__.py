"""Utility helpers for jwt-engine."""

from jwt_engine.utils.duration import parse_duration

__all__ = ["parse_duration"]
