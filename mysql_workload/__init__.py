"""Capture a MySQL production workload, replay it and keep slaves warm."""

__version__ = "0.1.0"
