"""busy-blocker: mirror busy time from one Google calendar into another."""

__version__ = "0.1.0"
