"""Patient records service for the practice-management dashboard."""

__version__ = "0.1.0"
