"""Built-in data — the default manifest and known backend names."""

from envboot.core.data.requirements import BUILTIN_BACKENDS, default_manifest

__all__ = ["BUILTIN_BACKENDS", "default_manifest"]
