"""Layout and view configuration."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace

from models import pair_key


@dataclass(frozen=True)
class LayoutConfig:
    """Immutable settings for one layout pass and its view.

    Distances are in drawing units; `gap_y` is the row height, so a person of
    generation g is drawn at y = g * gap_y.
    """

    node_radius: float = 20
    gap_x: float = 180
    gap_y: float = 385
    zoom_min: float = 0.35
    zoom_max: float = 3.0
    transition_ms: int = 450

    base_spouse_gap: float = 200
    sibling_gap: float = 250
    row_min_gap: float = 250

    # Row narrowing: generation 0 is scaled by narrow_scale_start, rows at or
    # below narrow_depth_span keep their full width.
    narrow_scale_start: float = 0.6
    narrow_depth_span: int = 5

    # Tree separation, in units of gap_x
    sibling_separation: float = 2.4
    cousin_separation: float = 2.8
    leaf_spread: float = 0.05
    depth_spread: float = 0.2
    spouse_depth_spread: float = 0.12

    arch_min_height: float = 60
    arch_height_ratio: float = 0.45
    force_arch_pairs: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept ("A", "B") tuples and "A|B" strings alike
        object.__setattr__(self, "force_arch_pairs", normalize_pairs(self.force_arch_pairs))

    @property
    def arch_height(self) -> float:
        return max(self.arch_min_height, self.gap_y * self.arch_height_ratio)

    def is_forced_arch(self, a: str, b: str) -> bool:
        return pair_key(a, b) in self.force_arch_pairs

    def merged(self, overrides: Mapping | None = None) -> "LayoutConfig":
        """Return a copy with `overrides` applied.

        Raises:
            ValueError: if an override names an unknown setting.
        """
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown layout settings: {', '.join(unknown)}")
        return replace(self, **overrides)


def normalize_pairs(pairs: Iterable) -> frozenset:
    """Turn `[("A", "B"), "C|D", ...]` into a set of pair keys."""
    keys = set()
    for pair in pairs or ():
        if isinstance(pair, str):
            a, _, b = pair.partition("|")
        else:
            a, b = pair
        keys.add(pair_key(a, b))
    return frozenset(keys)


def resolve_config(config: "LayoutConfig | Mapping | None") -> LayoutConfig:
    """Merge caller overrides into the defaults."""
    if isinstance(config, LayoutConfig):
        return config
    return LayoutConfig().merged(config)
