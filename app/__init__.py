"""Construction management BI report service."""
