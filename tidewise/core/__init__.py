"""Tide engine components: ephemeris, harmonics, regions, corrections and cache."""
