"""Offline tide prediction engine."""
