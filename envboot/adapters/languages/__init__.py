"""Language package managers."""
