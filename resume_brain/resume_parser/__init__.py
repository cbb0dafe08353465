"""Resume text extraction."""
