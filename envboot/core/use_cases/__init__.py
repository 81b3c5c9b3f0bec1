"""Use cases — orchestration entry points for the CLI."""
