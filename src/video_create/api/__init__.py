"""HTTP API for the composition and export hand-off."""
