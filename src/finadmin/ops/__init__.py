"""Multi-record store operations built on the repository."""
