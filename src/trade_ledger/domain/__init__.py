"""Domain layer: positions, fees and submission validation."""
