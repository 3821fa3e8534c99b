"""A grid that flows its active items along rows or columns, in sorted order."""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass
from typing import Any


class Axis(enum.Enum):
    """The axis that items fill first."""

    COLS = enum.auto()
    ROWS = enum.auto()


@dataclass(frozen=True)
class Placement:
    """Where an item sits in the grid; ``item`` is None for an empty filler cell."""

    item: FlowItem | None
    column: int
    row: int


class FlowItem:
    """An item of a flow grid, tied to the object it represents."""

    def __init__(self, source: Any = None) -> None:
        self.source = source
        self.active = True
        self.parent: FlowGrid | None = None
        self.invalid = True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source!r})"

    def update(self) -> None:
        """Bring the item up to date before it is laid out."""
        self.invalid = False

    def invalidate(self) -> None:
        """Mark the item, and the grid holding it, as needing an update."""
        self.invalid = True
        if self.parent is not None:
            self.parent.invalidate()

    def compare(self, other: FlowItem, grid: FlowGrid | None) -> int:
        """Sort order against ``other``: negative, zero or positive.

        Plain items keep their relative order; subclasses refine this.
        """
        if not isinstance(other, FlowItem):
            raise TypeError(f"cannot compare {type(self).__name__} with {other!r}")
        return 0

    def check_source(self, source: Any) -> bool:
        """True if this item represents ``source``."""
        return self.source == source

    def dnd_dest(
        self, src: FlowItem, x: int, y: int, width: int, height: int
    ) -> bool:
        """Handle ``src`` dropped at (x, y) on this item of the given size.

        Within one grid the dropped item is moved before or after this one;
        returns True if the order changed.
        """
        if src is self:
            return False
        grid = self.parent
        if grid is None or grid is not src.parent:
            return False
        after = (grid.cols > 0 and y > height // 2) or (
            grid.rows > 0 and x > width // 2
        )
        return grid.children_order(self, src, after)


def _index_of(items: list[FlowItem], target: FlowItem) -> int | None:
    return next((i for i, item in enumerate(items) if item is target), None)


class FlowGrid:
    """Lays out active items in a fixed number of rows or columns."""

    def __init__(self, limit: bool = True) -> None:
        self.rows = 1
        self.cols = 0
        self.limit = limit
        self.sort = True
        self.primary_axis: Axis | None = None
        self.invalid = False
        self.children: list[FlowItem] = []
        self.placements: list[Placement] = []
        self.dnd_target = f"flow-item-{id(self):x}"
        self.data: dict[str, Any] = {}

    def _fix_dimensions(self) -> None:
        if self.rows < 1 and self.cols < 1:
            self.rows = 1

    def set_rows(self, rows: int) -> None:
        """Lay out in a fixed number of rows."""
        self.rows = rows
        self.cols = 0
        self._fix_dimensions()

    def set_cols(self, cols: int) -> None:
        """Lay out in a fixed number of columns."""
        self.cols = cols
        self.rows = 0
        self._fix_dimensions()

    def minimum_width(self, natural: int) -> int:
        """Minimum width given the natural one; a row-limited grid may shrink."""
        if self.rows > 0 and self.limit:
            return min(natural, 1)
        return natural

    def minimum_height(self, natural: int) -> int:
        """Minimum height given the natural one; a column-limited grid may shrink."""
        if self.cols > 0 and self.limit:
            return min(natural, 1)
        return natural

    def add_child(self, child: FlowItem) -> None:
        """Append an item to the grid."""
        self.children.append(child)
        child.parent = self
        self.invalidate()

    def delete_child(self, source: Any) -> FlowItem | None:
        """Remove the first item representing ``source``; returns it, if any."""
        child = self.find_child(source)
        if child is not None:
            del self.children[_index_of(self.children, child)]
        self.invalidate()
        return child

    def invalidate(self) -> None:
        """Mark the layout as needing to be recomputed."""
        self.invalid = True

    def update(self) -> list[Placement]:
        """Recompute the layout if it is out of date; returns the placements."""
        if not self.invalid:
            return self.placements
        self.invalid = False

        if self.primary_axis is None:
            self.primary_axis = Axis.COLS if self.rows > 0 else Axis.ROWS

        if self.sort:
            self.children.sort(
                key=functools.cmp_to_key(lambda a, b: a.compare(b, self))
            )

        for child in self.children:
            child.update()
        active = [child for child in self.children if child.active]
        count = len(active)

        rows = cols = 0
        if self.rows > 0:
            if self.primary_axis is Axis.COLS:
                rows = self.rows
            else:
                cols = -(-count // self.rows)
        elif self.primary_axis is Axis.ROWS:
            cols = self.cols
        else:
            rows = -(-count // self.cols)

        placements = []
        for i, child in enumerate(active):
            if rows > 0:
                placements.append(Placement(child, i // rows, i % rows))
            elif cols > 0:
                placements.append(Placement(child, i % cols, i // cols))
        if rows > 0:
            placements.extend(Placement(None, 0, i) for i in range(count, rows))
        else:
            placements.extend(Placement(None, i, 0) for i in range(count, cols))

        self.placements = placements
        return placements

    def n_children(self) -> int:
        """Number of active items."""
        return sum(1 for child in self.children if child.active)

    def find_child(self, source: Any) -> FlowItem | None:
        """First item representing ``source``, or None."""
        return next(
            (child for child in self.children if child.check_source(source)), None
        )

    def children_order(self, ref: FlowItem, child: FlowItem, after: bool) -> bool:
        """Move ``child`` just before or after ``ref``; False if either is absent."""
        if _index_of(self.children, ref) is None:
            return False
        child_index = _index_of(self.children, child)
        if child_index is None:
            return False
        del self.children[child_index]
        ref_index = _index_of(self.children, ref)
        self.children.insert(ref_index + 1 if after else ref_index, child)
        child.invalidate()
        ref.invalidate()
        return True

    def copy_properties(self, other: FlowGrid) -> None:
        """Take layout settings from ``other``."""
        self.rows = other.rows
        self.cols = other.cols
        self.sort = other.sort
        self.primary_axis = other.primary_axis
        for key in ("icons", "labels"):
            if key in other.data:
                self.data[key] = other.data[key]
            else:
                self.data.pop(key, None)