"""Utility helpers shared across sqlpager."""

from sqlpager.utils import logging

__all__ = ("logging",)
