"""Resume analysis service: text extraction, Grok scoring and a background queue."""

__version__ = "1.0.0"
