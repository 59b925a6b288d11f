"""Application logging: labeled stdout logger and the JSON Lines table error log."""
