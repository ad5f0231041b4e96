"""Domain layer: models, ports and use cases."""
