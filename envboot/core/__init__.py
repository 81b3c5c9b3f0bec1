"""Core — models, engine, probes, and use cases."""
