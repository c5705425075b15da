"""HTTP API layer: dependencies and routes."""
