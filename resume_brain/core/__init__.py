"""Configuration, persistence and shared records."""
