"""HTML extraction for SeoScout."""
