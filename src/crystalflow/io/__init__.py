"""File and structure I/O helpers."""
