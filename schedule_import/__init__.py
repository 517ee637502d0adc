"""Workbook-to-schedule import for studio class planning."""

__version__ = "0.3.0"
