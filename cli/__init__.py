"""SearchRelay command-line interface."""
