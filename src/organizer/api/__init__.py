"""HTTP API for the organizer."""
