"""Deck configuration: YAML loading and JSON-schema validation."""
