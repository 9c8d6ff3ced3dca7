"""API infrastructure: request and response models."""
