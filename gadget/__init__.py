"""Gadgets - reusable chips built on the circuit layer."""

from protocol.circuit import AssignedCell, Layouter, Value
from protocol.expressions import Column


def assign_free_advice(layouter: Layouter, column: Column, value: Value) -> AssignedCell:
    """Load a private value into a single-cell region and return the cell."""
    return layouter.assign_region(
        "load private",
        lambda region: region.assign_advice("load private", column, 0, value),
    )


__all__ = ["assign_free_advice"]
