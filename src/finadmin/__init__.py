"""finadmin: administrative back office for a personal-finance application."""

__version__ = "0.1.0"
