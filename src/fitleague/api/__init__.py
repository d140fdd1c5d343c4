"""HTTP API for league submissions."""
