"""Shell — the process runner seam."""
