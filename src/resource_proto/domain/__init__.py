"""Domain layer: resource graph model, matcher, projector and traverser."""
