"""
Configuration loader — reads envboot.yml into a Manifest.

Reads YAML, validates it against the pydantic models, then checks
the cross-references pydantic cannot see (dependencies, backend
names). Without a manifest file the built-in default is used.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from envboot.core.data.requirements import BUILTIN_BACKENDS, default_manifest
from envboot.core.engine.ordering import validate_dependencies
from envboot.core.models.manifest import Manifest

logger = logging.getLogger(__name__)

MANIFEST_FILE = "envboot.yml"
MANIFEST_ENV_VAR = "ENVBOOT_MANIFEST"


class ConfigError(Exception):
    """Raised when the manifest is missing or invalid."""


def find_manifest_file(start_dir: Path | None = None) -> Path | None:
    """Search for envboot.yml from ``start_dir`` (default: cwd) upward."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def resolve_manifest_path(explicit: str | Path | None = None) -> Path | None:
    """``--manifest`` > ``ENVBOOT_MANIFEST`` > upward search."""
    if explicit:
        return Path(explicit).expanduser()
    from_env = os.environ.get(MANIFEST_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return find_manifest_file()


def load_manifest(path: str | Path | None = None) -> Manifest:
    """Load and validate a manifest.

    Args:
        path: Explicit manifest path. If None, the env var and an upward
            search are tried, then the built-in default.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    resolved = resolve_manifest_path(path)
    if resolved is None:
        logger.debug("No %s found, using the built-in manifest", MANIFEST_FILE)
        return default_manifest()

    if not resolved.is_file():
        raise ConfigError(f"Manifest not found: {resolved}")

    logger.debug("Loading manifest from %s", resolved)
    try:
        raw = resolved.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {resolved}: {e}") from e

    return parse_manifest(raw, source=str(resolved))


def parse_manifest(raw: str, source: str = "<string>") -> Manifest:
    """Parse manifest YAML text. Raises ConfigError."""
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping in {source}, got {type(data).__name__}"
        )

    # Requirements may be written as a mapping keyed by name.
    reqs = data.get("requirements")
    if isinstance(reqs, dict):
        entries = []
        for name, body in reqs.items():
            if body is not None and not isinstance(body, dict):
                raise ConfigError(
                    f"Requirement '{name}' in {source} must be a mapping, "
                    f"got {type(body).__name__}"
                )
            entries.append({"name": name, **(body or {})})
        data["requirements"] = entries

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid manifest in {source}: {e}") from e

    errors = validate_manifest(manifest)
    if errors:
        raise ConfigError(
            f"Invalid manifest in {source}:\n  - " + "\n  - ".join(errors)
        )

    logger.info(
        "Loaded manifest '%s' with %d requirements",
        manifest.name, len(manifest.requirements),
    )
    return manifest


def validate_manifest(manifest: Manifest) -> list[str]:
    """Cross-reference checks. Returns error strings (empty = valid)."""
    errors = validate_dependencies(manifest.requirements)
    for req in manifest.requirements:
        for os_family, names in req.backends.items():
            if os_family not in ("macos", "linux", "windows"):
                errors.append(
                    f"Requirement '{req.name}' declares unknown OS family '{os_family}'"
                )
            for name in names:
                if name not in BUILTIN_BACKENDS:
                    errors.append(
                        f"Requirement '{req.name}' uses unknown backend '{name}'"
                    )
    return errors
