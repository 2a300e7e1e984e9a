"""Domain models for sheet reference detection and linking."""
