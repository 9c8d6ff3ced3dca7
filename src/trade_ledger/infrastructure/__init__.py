"""Infrastructure: configuration, factories and API models."""
