"""Waste categories recognised by the bin detector."""

from __future__ import annotations

from enum import Enum

__all__ = ["Category"]


class Category(str, Enum):
    """Closed set of detected object types.

    The value is the ``object_type`` stored in the detections log and the
    column name used in CSV exports.
    """

    PAPER = "paper"
    CAN = "can"
    PET_BOTTLE = "pet bottle"

    @classmethod
    def ordered(cls) -> tuple[Category, ...]:
        """Categories in legend/column order (paper, can, pet bottle)."""
        return (cls.PAPER, cls.CAN, cls.PET_BOTTLE)

    @classmethod
    def parse(cls, value: str | Category) -> Category:
        """Parse a category from its value or enum name.

        Accepts ``"pet bottle"``, ``"pet_bottle"`` and ``"PET_BOTTLE"``.

        Raises
        ------
        ValueError
            If the value names no known category
        """
        if isinstance(value, cls):
            return value

        normalized = value.strip().lower()
        for category in cls:
            if normalized in (category.value, category.name.lower()):
                return category

        raise ValueError(f"Unknown category: {value!r}")

    @property
    def label(self) -> str:
        """Human-readable legend label."""
        return {
            Category.PAPER: "Paper",
            Category.CAN: "Can",
            Category.PET_BOTTLE: "PET Bottles",
        }[self]
