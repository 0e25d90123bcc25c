"""HTTP adapter over the housekeeping engine."""
