from __future__ import annotations

from dataclasses import fields

from tether.physics.tuning import PhysicsTuning

DEFAULT_PROFILE = "classic"

# Both variants of the game shipped with different gravity/jump tuning; keep them selectable.
_PROFILES: dict[str, dict[str, float]] = {
    "classic": {},
    "floaty": {
        "gravity": 0.02,
        "jump_force": 0.5,
    },
}


def profile_names() -> list[str]:
    return sorted(_PROFILES.keys())


def normalize_overrides(values: dict | None) -> dict[str, float | int]:
    """Keep only known tuning fields, coerced to the field's type. Unknown or bad values are dropped."""

    if not isinstance(values, dict):
        return {}
    kinds = {f.name: f.type for f in fields(PhysicsTuning)}
    out: dict[str, float | int] = {}
    for key, value in values.items():
        if key not in kinds or isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        out[key] = int(value) if kinds[key] in ("int", int) else float(value)
    return out


def build_tuning(profile: str | None = None, overrides: dict | None = None) -> PhysicsTuning:
    name = str(profile or DEFAULT_PROFILE)
    if name not in _PROFILES:
        raise ValueError(f"Unknown tuning profile: {name!r} (expected one of {', '.join(profile_names())})")
    tuning = PhysicsTuning()
    for key, value in normalize_overrides(_PROFILES[name]).items():
        setattr(tuning, key, value)
    for key, value in normalize_overrides(overrides).items():
        setattr(tuning, key, value)
    return tuning


def tuning_snapshot(tuning: PhysicsTuning) -> dict[str, float | int]:
    return {f.name: getattr(tuning, f.name) for f in fields(PhysicsTuning)}
