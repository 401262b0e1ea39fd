"""
Bordered grid storage for terrain simulation.

A map is a contiguous array surrounded by a border of dummy cells, so
stencils that look one or two cells past the edge of the domain read a
defined sentinel value instead of needing a range check. The array is
(width + 2*border) x (height + 2*border) in size and stored with x as the
slow axis, so ``array[x + border, y + border]`` addresses cell (x, y).

Passes that displace a coordinate (water redistribution, river carving)
may reach at most ``border`` cells away from an interior cell. That bound
is validated when a pass is configured, never per access.
"""

from dataclasses import dataclass
from typing import Any, Tuple, Union

import numpy as np


@dataclass(frozen=True)
class Layout:
    """Maps (x, y) to a position in a border-padded buffer."""

    width: int
    height: int
    border: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Layout dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.border < 1:
            raise ValueError(f"Layout border must be at least 1, got {self.border}")

    @property
    def stride(self) -> int:
        """Distance in the buffer between (x, y) and (x + 1, y)."""
        return self.height + 2 * self.border

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.width + 2 * self.border, self.height + 2 * self.border)

    def size(self) -> int:
        return (self.width + 2 * self.border) * (self.height + 2 * self.border)

    def position(self, x: int, y: int) -> int:
        return (x + self.border) * self.stride + (y + self.border)

    def in_bounds(self, x: int, y: int) -> bool:
        """True for cells of the simulated domain (border excluded)."""
        return 0 <= x < self.width and 0 <= y < self.height

    def addressable(self, x: int, y: int) -> bool:
        """True for every cell the buffer holds, border included."""
        b = self.border
        return -b <= x < self.width + b and -b <= y < self.height + b

    def check_displacement(self, max_step: float) -> None:
        """Reject a per-step displacement that could leave the buffer."""
        if max_step > self.border:
            raise ValueError(
                f"max_step {max_step} exceeds border width {self.border}"
            )


class Grid:
    """
    Dense fixed-size array of scalars or 2-vectors over a Layout.

    Storage is a flat numpy buffer indexed by ``Layout.position``. The
    layout is an immutable value shared by every grid built from it.
    """

    def __init__(
        self,
        layout: Layout,
        initial_value: Union[int, float, Tuple[float, float]],
        dtype: Any = np.int32,
        components: int = 1,
    ):
        """
        Allocate the buffer and fill every element, border included.

        Args:
            layout: Layout shared with the other grids of a map
            initial_value: Fill value (a pair for vector grids)
            dtype: numpy dtype of each component
            components: 1 for scalar grids, 2 for vector grids
        """
        self.layout = layout
        self.components = components

        if components == 1:
            self._block = np.full(layout.size(), initial_value, dtype=dtype)
        else:
            self._block = np.empty((layout.size(), components), dtype=dtype)
            self._block[:] = initial_value

    @property
    def dtype(self):
        return self._block.dtype

    @property
    def flat(self) -> np.ndarray:
        """The raw buffer, indexed by ``Layout.position``."""
        return self._block

    @property
    def array(self) -> np.ndarray:
        """Writable 2D view of the whole buffer, border included."""
        if self.components == 1:
            return self._block.reshape(self.layout.shape)
        return self._block.reshape(self.layout.shape + (self.components,))

    @property
    def interior(self) -> np.ndarray:
        """Writable (width, height) view of the simulated domain."""
        return self.shifted(0, 0)

    def shifted(self, dx: int, dy: int) -> np.ndarray:
        """
        View of the domain offset by (dx, dy).

        ``grid.shifted(1, 0)[x, y]`` is ``grid[x + 1, y]`` for every interior
        (x, y), which is how the stencils read their neighbours.
        """
        b = self.layout.border
        if abs(dx) > b or abs(dy) > b:
            raise ValueError(f"Offset ({dx}, {dy}) exceeds border width {b}")
        x0 = b + dx
        y0 = b + dy
        return self.array[x0 : x0 + self.layout.width, y0 : y0 + self.layout.height]

    def __getitem__(self, xy: Tuple[int, int]):
        return self._block[self.layout.position(xy[0], xy[1])]

    def __setitem__(self, xy: Tuple[int, int], value) -> None:
        self._block[self.layout.position(xy[0], xy[1])] = value

    def fill(self, value) -> None:
        self._block[:] = value

    def fill_border(self, value) -> None:
        """Reset every border cell to ``value``, leaving the domain alone."""
        b = self.layout.border
        full = self.array
        full[:b] = value
        full[-b:] = value
        full[:, :b] = value
        full[:, -b:] = value

    def total(self):
        """Sum over the whole buffer, border included."""
        return self._block.sum(dtype=np.int64 if self.dtype.kind in "iu" else None)

    def swap(self, other: "Grid") -> None:
        """Exchange storage with another grid of the same layout in O(1)."""
        if other.layout != self.layout or other.components != self.components:
            raise ValueError("Cannot swap grids with different layouts")
        self._block, other._block = other._block, self._block

    def copy(self) -> "Grid":
        clone = Grid.__new__(Grid)
        clone.layout = self.layout
        clone.components = self.components
        clone._block = self._block.copy()
        return clone

    def __repr__(self):
        return (
            f"Grid({self.layout.width}x{self.layout.height}+{self.layout.border}, "
            f"dtype={self.dtype}, components={self.components})"
        )
