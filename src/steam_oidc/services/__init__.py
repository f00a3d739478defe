"""External identity services."""
