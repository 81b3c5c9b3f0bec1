"""Configuration — manifest loading and validation."""
