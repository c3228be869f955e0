"""
Force-directed layout for keyword networks.

A Simulation owns the positions and velocities of one Graph. It never
schedules itself: the host (render loop, CLI, test) calls tick() repeatedly.
Each tick applies the variant's force set to the velocities, damps and
integrates them, then cools the temperature alpha. Once alpha drops below
alpha_min the simulation is SETTLED and ticks do nothing until reheated.

External input handlers move nodes only through queued commands (Pin, Unpin,
Reheat), which are consumed at the start of the next tick.

Force formulas follow the familiar many-body / link / collide / centre family
used by browser force layouts, computed exactly over all node pairs with
numpy since keyword networks stay in the low hundreds of nodes.

Usage:
    sim = start(graph, "cluster", (800, 600))
    while sim.state is LayoutState.RUNNING:
        sim.tick()
"""

import math
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .network import Graph

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
DRAG_ALPHA_TARGET = 0.3

RADIUS_RANGE = (5.0, 25.0)
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))

JIGGLE = 1e-6
# Squared-distance floor for charge, keeps coincident nodes finite.
CHARGE_DISTANCE_MIN2 = 1.0
# Positions are kept within this many canvas diagonals of the centre.
POSITION_BOUND_DIAGONALS = 4.0


class LayoutState(Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    SETTLED = "settled"
    STOPPED = "stopped"


# ---------------------------------------------------------------------------
# 1. Force profiles
# ---------------------------------------------------------------------------

def standard_distance(values: np.ndarray) -> np.ndarray:
    return np.maximum(150.0 - 5.0 * values, 30.0)


def radial_distance(values: np.ndarray) -> np.ndarray:
    return 100.0 / (0.5 * values)


def cluster_distance(values: np.ndarray) -> np.ndarray:
    return 100.0 / np.sqrt(values)


@dataclass(frozen=True)
class ForceProfile:
    """Force set and constants of one layout variant.

    centering is "center" (translate the node centroid onto the canvas
    centre) or "axis" (weak per-axis pull of every node toward the centre).
    A zero radial_strength or cluster_gain disables that force.
    """
    name: str
    link_distance: Callable[[np.ndarray], np.ndarray]
    charge_strength: float
    centering: str
    collide_padding: float
    collide_strength: float
    axis_strength: float = 0.1
    radial_strength: float = 0.0
    radial_factor: float = 3.0
    cluster_gain: float = 0.0
    velocity_decay: float = 0.4
    max_velocity: float = 50.0


PROFILES: dict[str, ForceProfile] = {
    "standard": ForceProfile(
        name="standard",
        link_distance=standard_distance,
        charge_strength=-150.0,
        centering="center",
        collide_padding=10.0,
        collide_strength=0.7,
    ),
    "radial": ForceProfile(
        name="radial",
        link_distance=radial_distance,
        charge_strength=-100.0,
        centering="axis",
        axis_strength=0.1,
        collide_padding=2.0,
        collide_strength=1.0,
        radial_strength=0.8,
        radial_factor=3.0,
    ),
    "cluster": ForceProfile(
        name="cluster",
        link_distance=cluster_distance,
        charge_strength=-200.0,
        centering="center",
        collide_padding=5.0,
        collide_strength=0.9,
        cluster_gain=0.1,
    ),
}

VARIANTS = tuple(PROFILES)


def get_profile(variant: str) -> ForceProfile:
    try:
        return PROFILES[variant]
    except KeyError:
        raise ValueError(
            f"unknown layout variant {variant!r}, expected one of {', '.join(VARIANTS)}"
        ) from None


def radius_scale(
    counts, lo: float = RADIUS_RANGE[0], hi: float = RADIUS_RANGE[1],
) -> np.ndarray:
    """Square-root scale from the observed count extent onto [lo, hi].

    A degenerate extent (all counts equal) maps every node to the midpoint.
    """
    counts = np.asarray(counts, dtype=float)
    if counts.size == 0:
        return counts
    roots = np.sqrt(counts)
    r_min, r_max = roots.min(), roots.max()
    if r_max == r_min:
        return np.full(counts.shape, (lo + hi) / 2)
    return lo + (roots - r_min) / (r_max - r_min) * (hi - lo)


# ---------------------------------------------------------------------------
# 2. Commands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Pin:
    node_id: str
    x: float
    y: float


@dataclass(frozen=True)
class Unpin:
    node_id: str


@dataclass(frozen=True)
class Reheat:
    alpha: float


# ---------------------------------------------------------------------------
# 3. Simulation
# ---------------------------------------------------------------------------

class Simulation:
    """Tick-driven force simulation over one Graph."""

    def __init__(
        self,
        graph: Graph,
        profile: ForceProfile,
        width: float,
        height: float,
        seed: int | None = None,
        positions: Mapping[str, tuple[float, float]] | None = None,
    ):
        self.state = LayoutState.INITIALIZING
        self.graph = graph
        self.profile = profile
        self.width = float(width)
        self.height = float(height)
        self.center = np.array([self.width / 2, self.height / 2])
        self.bound = POSITION_BOUND_DIAGONALS * math.hypot(self.width, self.height)

        self.alpha = 1.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.alpha_target = 0.0
        self.ticks = 0

        self._rng = np.random.default_rng(0 if seed is None else seed)
        self._commands: deque = deque()

        n = len(graph.nodes)
        self._counts = np.array([node.count for node in graph.nodes], dtype=float)
        self._radii = radius_scale(self._counts) + profile.collide_padding
        self._community = np.array(graph.communities(), dtype=np.int64)

        self._src = np.array([graph.index_of(l.source) for l in graph.links], dtype=np.int64)
        self._tgt = np.array([graph.index_of(l.target) for l in graph.links], dtype=np.int64)
        values = np.array([l.value for l in graph.links], dtype=float)
        self._distance = profile.link_distance(values) if len(values) else values
        degree = np.bincount(np.concatenate([self._src, self._tgt]), minlength=n)
        if len(values):
            ds, dt = degree[self._src], degree[self._tgt]
            self._link_strength = 1.0 / np.minimum(ds, dt)
            self._link_bias = ds / (ds + dt)
        else:
            self._link_strength = self._link_bias = values

        self._pos = np.zeros((n, 2))
        self._vel = np.zeros((n, 2))
        self._fixed = np.full((n, 2), np.nan)
        self._seed_positions(seed, positions or {})

        self._forces = self._build_forces()
        self._publish()
        self.state = LayoutState.RUNNING if n else LayoutState.SETTLED

    # -- setup -------------------------------------------------------------

    def _seed_positions(
        self, seed: int | None, positions: Mapping[str, tuple[float, float]],
    ) -> None:
        """Supplied positions first, then existing node coordinates, then a scatter."""
        for i, node in enumerate(self.graph.nodes):
            if node.id in positions:
                self._pos[i] = positions[node.id]
            elif math.isfinite(node.x) and math.isfinite(node.y):
                self._pos[i] = (node.x, node.y)
                self._vel[i] = (node.vx, node.vy)
            elif seed is None:
                r = INITIAL_RADIUS * math.sqrt(0.5 + i)
                a = i * INITIAL_ANGLE
                self._pos[i] = self.center + (r * math.cos(a), r * math.sin(a))
            else:
                self._pos[i] = self._rng.uniform((0, 0), (self.width, self.height))
            if node.fx is not None and node.fy is not None:
                self._fixed[i] = (node.fx, node.fy)
                self._pos[i] = self._fixed[i]
                self._vel[i] = 0

    def _build_forces(self) -> list[Callable[[float], None]]:
        p = self.profile
        forces = [self._force_link, self._force_charge]
        forces.append(self._force_center if p.centering == "center" else self._force_axis)
        forces.append(self._force_collide)
        if p.radial_strength:
            forces.append(self._force_radial)
        if p.cluster_gain:
            forces.append(self._force_cluster)
        return forces

    # -- forces ------------------------------------------------------------

    def _jiggle(self, shape) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * JIGGLE

    def _force_link(self, alpha: float) -> None:
        if not len(self._src):
            return
        src, tgt = self._src, self._tgt
        d = self._pos[tgt] + self._vel[tgt] - self._pos[src] - self._vel[src]
        zero = ~d.any(axis=1)
        if zero.any():
            d[zero] = self._jiggle((int(zero.sum()), 2))
        length = np.hypot(d[:, 0], d[:, 1])
        k = (length - self._distance) / length * alpha * self._link_strength
        d *= k[:, None]
        np.add.at(self._vel, tgt, -d * self._link_bias[:, None])
        np.add.at(self._vel, src, d * (1 - self._link_bias)[:, None])

    def _force_charge(self, alpha: float) -> None:
        n = len(self._pos)
        if n < 2:
            return
        diff = self._pos[None, :, :] - self._pos[:, None, :]
        l2 = (diff ** 2).sum(axis=2)
        coincident = l2 == 0
        np.fill_diagonal(coincident, False)
        if coincident.any():
            diff[coincident] = self._jiggle((int(coincident.sum()), 2))
            l2 = (diff ** 2).sum(axis=2)
        l2 = np.maximum(l2, CHARGE_DISTANCE_MIN2)
        np.fill_diagonal(l2, np.inf)
        weight = self.profile.charge_strength * alpha / l2
        self._vel += (diff * weight[:, :, None]).sum(axis=1)

    def _force_center(self, alpha: float) -> None:
        if not len(self._pos):
            return
        self._pos -= self._pos.mean(axis=0) - self.center

    def _force_axis(self, alpha: float) -> None:
        self._vel += (self.center - self._pos) * self.profile.axis_strength * alpha

    def _force_collide(self, alpha: float) -> None:
        n = len(self._pos)
        if n < 2:
            return
        predicted = self._pos + self._vel
        diff = predicted[:, None, :] - predicted[None, :, :]
        l2 = (diff ** 2).sum(axis=2)
        reach = self._radii[:, None] + self._radii[None, :]
        overlap = np.triu(l2 < reach ** 2, k=1)
        if not overlap.any():
            return
        coincident = overlap & (l2 == 0)
        if coincident.any():
            diff[coincident] = self._jiggle((int(coincident.sum()), 2))
            l2 = (diff ** 2).sum(axis=2)
        length = np.sqrt(np.where(overlap, l2, 1.0))
        k = np.where(overlap, (reach - length) / length * self.profile.collide_strength, 0.0)
        r2 = self._radii ** 2
        share = r2[None, :] / (r2[:, None] + r2[None, :])
        push = diff * k[:, :, None]
        self._vel += (push * share[:, :, None]).sum(axis=1)
        self._vel -= (push * (1 - share)[:, :, None]).sum(axis=0)

    def _force_radial(self, alpha: float) -> None:
        d = self._pos - self.center
        d[d == 0] = JIGGLE
        r = np.hypot(d[:, 0], d[:, 1])
        target = self._counts * self.profile.radial_factor
        k = (target - r) * self.profile.radial_strength * alpha / r
        self._vel += d * k[:, None]

    def _force_cluster(self, alpha: float) -> None:
        # Centroids come from this tick's positions; never cache them.
        if not len(self._pos):
            return
        labels = self._community
        k = int(labels.max()) + 1
        sizes = np.bincount(labels, minlength=k).astype(float)
        sizes[sizes == 0] = 1
        cx = np.bincount(labels, weights=self._pos[:, 0], minlength=k) / sizes
        cy = np.bincount(labels, weights=self._pos[:, 1], minlength=k) / sizes
        centroids = np.column_stack([cx, cy])
        self._vel += (centroids[labels] - self._pos) * alpha * self.profile.cluster_gain

    # -- integration -------------------------------------------------------

    def _integrate(self) -> None:
        pinned = ~np.isnan(self._fixed[:, 0])
        free = ~pinned
        self._vel[free] *= 1 - self.profile.velocity_decay

        speed = np.hypot(self._vel[:, 0], self._vel[:, 1])
        fast = speed > self.profile.max_velocity
        if fast.any():
            self._vel[fast] *= (self.profile.max_velocity / speed[fast])[:, None]

        self._pos[free] += self._vel[free]

        bad = ~np.isfinite(self._pos).all(axis=1) | ~np.isfinite(self._vel).all(axis=1)
        if bad.any():
            self._pos[bad] = self.center
            self._vel[bad] = 0
        np.clip(self._pos, self.center - self.bound, self.center + self.bound, out=self._pos)

        # Pinned nodes sit exactly at their pin, whatever the forces did.
        self._pos[pinned] = self._fixed[pinned]
        self._vel[pinned] = 0

    def _publish(self) -> None:
        for i, node in enumerate(self.graph.nodes):
            node.x, node.y = float(self._pos[i, 0]), float(self._pos[i, 1])
            node.vx, node.vy = float(self._vel[i, 0]), float(self._vel[i, 1])
            if np.isnan(self._fixed[i, 0]):
                node.fx = node.fy = None
            else:
                node.fx, node.fy = float(self._fixed[i, 0]), float(self._fixed[i, 1])

    # -- commands ----------------------------------------------------------

    def _drain_commands(self) -> bool:
        applied = False
        while self._commands:
            cmd = self._commands.popleft()
            applied = True
            if isinstance(cmd, Pin):
                i = self.graph.index_of(cmd.node_id)
                self._fixed[i] = (cmd.x, cmd.y)
                self._pos[i] = self._fixed[i]
                self._vel[i] = 0
                self.alpha_target = DRAG_ALPHA_TARGET
                if self.state is LayoutState.SETTLED:
                    self._restart(self.alpha)
            elif isinstance(cmd, Unpin):
                self._fixed[self.graph.index_of(cmd.node_id)] = np.nan
                if np.isnan(self._fixed[:, 0]).all():
                    self.alpha_target = 0.0
            elif isinstance(cmd, Reheat):
                self._restart(cmd.alpha)
        return applied

    def _restart(self, alpha: float) -> None:
        self.alpha = min(max(float(alpha), 0.0), 1.0)
        self.state = LayoutState.RUNNING

    def _check_live(self, node_id: str | None = None) -> None:
        if self.state is LayoutState.STOPPED:
            raise RuntimeError("simulation has been stopped")
        if node_id is not None and node_id not in self.graph:
            raise KeyError(node_id)

    def pin(self, node_id: str, x: float, y: float) -> None:
        """Fix a node at (x, y) from the next tick on and wake the layout."""
        self._check_live(node_id)
        self._commands.append(Pin(node_id, float(x), float(y)))

    def unpin(self, node_id: str) -> None:
        self._check_live(node_id)
        self._commands.append(Unpin(node_id))

    def reheat(self, alpha: float = 1.0) -> None:
        """Resume integration at temperature alpha (the only way out of SETTLED)."""
        self._check_live()
        self._commands.append(Reheat(float(alpha)))

    def stop(self) -> None:
        self._commands.clear()
        self.state = LayoutState.STOPPED

    # -- stepping ----------------------------------------------------------

    def tick(self) -> None:
        if self.state is LayoutState.STOPPED:
            return
        if self._drain_commands():
            self._publish()
        if self.state is not LayoutState.RUNNING:
            return

        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        for force in self._forces:
            force(self.alpha)
        self._integrate()
        self._publish()
        self.ticks += 1

        if self.alpha < self.alpha_min:
            self.state = LayoutState.SETTLED

    def run(self, max_ticks: int | None = None) -> int:
        """Tick until settled (or max_ticks); returns the number of ticks run."""
        done = 0
        while self.state is LayoutState.RUNNING and (max_ticks is None or done < max_ticks):
            self.tick()
            done += 1
        return done

    def refresh_communities(self) -> None:
        """Re-read community labels after the detector ran again."""
        self._community = np.array(self.graph.communities(), dtype=np.int64)

    def positions(self) -> dict[str, tuple[float, float]]:
        return {
            node.id: (float(self._pos[i, 0]), float(self._pos[i, 1]))
            for i, node in enumerate(self.graph.nodes)
        }

    @property
    def pinned(self) -> list[str]:
        return [
            node.id for i, node in enumerate(self.graph.nodes)
            if not np.isnan(self._fixed[i, 0])
        ]


def start(
    graph: Graph,
    variant: str,
    dimensions: tuple[float, float],
    seed: int | None = None,
    positions: Mapping[str, tuple[float, float]] | None = None,
    profile: ForceProfile | None = None,
) -> Simulation:
    """Seed positions and build the force set for variant.

    profile overrides the variant's constants (see dataclasses.replace).
    An empty graph comes back already SETTLED.
    """
    if profile is None:
        profile = get_profile(variant)
    width, height = dimensions
    return Simulation(graph, profile, width, height, seed=seed, positions=positions)
