"""Deck build services: orchestration, export, progress and summary output."""
