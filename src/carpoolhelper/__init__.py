"""Carpool scheduling and driving-fairness tracking for school groups."""

__version__ = "0.1.0"
