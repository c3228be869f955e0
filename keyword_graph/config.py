"""Network and layout options, with the clamp policy for out-of-range values."""

from dataclasses import dataclass, replace

from .extract import DEFAULT_FIELD
from .layout import VARIANTS

COMMUNITY_METHODS = ("merge", "leiden")

# Options whose change means the graph must be rebuilt; the rest only
# restart the layout.
GRAPH_OPTIONS = {"max_nodes", "min_link_strength", "community_method", "resolution"}
LAYOUT_OPTIONS = {"layout_variant", "width", "height", "seed"}


@dataclass(frozen=True)
class NetworkConfig:
    max_nodes: int = 50
    min_link_strength: int = 1
    layout_variant: str = "standard"
    width: float = 800.0
    height: float = 600.0
    seed: int | None = None
    warm_start: bool = False
    community_method: str = "merge"
    resolution: float = 1.0
    keyword_field: str = DEFAULT_FIELD

    def normalized(self) -> "NetworkConfig":
        """Return a copy with numeric options clamped into range.

        max_nodes < 0 becomes 0 (empty selection), min_link_strength < 1
        becomes 1, and non-positive canvas sides become 1. Unknown variant or
        community method names are not clamped; they raise ValueError.
        """
        if self.layout_variant not in VARIANTS:
            raise ValueError(
                f"unknown layout variant {self.layout_variant!r}, "
                f"expected one of {', '.join(VARIANTS)}"
            )
        if self.community_method not in COMMUNITY_METHODS:
            raise ValueError(
                f"unknown community method {self.community_method!r}, "
                f"expected one of {', '.join(COMMUNITY_METHODS)}"
            )
        return replace(
            self,
            max_nodes=max(int(self.max_nodes), 0),
            min_link_strength=max(int(self.min_link_strength), 1),
            width=max(float(self.width), 1.0),
            height=max(float(self.height), 1.0),
        )

    @property
    def dimensions(self) -> tuple[float, float]:
        return (self.width, self.height)
