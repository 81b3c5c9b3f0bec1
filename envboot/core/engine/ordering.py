"""
Requirement ordering — dependency DAG utilities (pure).

Requirements keep their declaration order, except that everything a
requirement ``depends_on`` is hoisted ahead of it. No I/O.
"""

from __future__ import annotations

from envboot.core.models.requirement import Requirement


class DependencyCycleError(ValueError):
    """Requirements depend on each other in a loop."""


def validate_dependencies(requirements: list[Requirement]) -> list[str]:
    """Validate the requirement dependency DAG.

    Checks for:
    - Duplicate requirement names
    - References to unknown requirements
    - Cycles (Kahn's algorithm)

    Returns:
        List of error strings (empty = valid).
    """
    errors: list[str] = []
    names = {r.name for r in requirements}

    seen: set[str] = set()
    for r in requirements:
        if r.name in seen:
            errors.append(f"Duplicate requirement: {r.name}")
        seen.add(r.name)

    for r in requirements:
        for dep in r.depends_on:
            if dep not in names:
                errors.append(
                    f"Requirement '{r.name}' depends on unknown requirement '{dep}'"
                )
            elif dep == r.name:
                errors.append(f"Requirement '{r.name}' depends on itself")

    if errors:
        return errors

    try:
        dependency_order(requirements)
    except DependencyCycleError as e:
        errors.append(str(e))
    return errors


def dependency_order(requirements: list[Requirement]) -> list[Requirement]:
    """Stable topological order.

    Among the requirements whose dependencies are already placed, the
    one declared first goes next. Dependencies on names outside
    ``requirements`` are ignored.

    Raises:
        DependencyCycleError: If the remaining requirements form a cycle.
    """
    names = {r.name for r in requirements}
    remaining = list(requirements)
    placed: set[str] = set()
    ordered: list[Requirement] = []

    while remaining:
        for index, req in enumerate(remaining):
            deps = [d for d in req.depends_on if d in names]
            if all(d in placed for d in deps):
                break
        else:
            stuck = ", ".join(r.name for r in remaining)
            raise DependencyCycleError(f"Dependency cycle detected among: {stuck}")

        ordered.append(remaining.pop(index))
        placed.add(req.name)

    return ordered


def dependents_of(name: str, requirements: list[Requirement]) -> set[str]:
    """Names of every requirement that transitively depends on ``name``."""
    found: set[str] = set()
    frontier = [name]
    while frontier:
        current = frontier.pop()
        for r in requirements:
            if current in r.depends_on and r.name not in found:
                found.add(r.name)
                frontier.append(r.name)
    return found
