"""Infrastructure: configuration, logging and persistence."""
