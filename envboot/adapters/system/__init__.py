"""System package managers and vendor install scripts."""
