"""Application logging and the per-run JSON Lines error log."""
