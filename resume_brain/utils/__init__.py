"""Text cleaning and resume content validation helpers."""
