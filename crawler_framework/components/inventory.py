"""
Inventory component - collected spell fragments.
"""

from __future__ import annotations

from typing import Iterator

from pydantic import Field

from crawler_engine.core.component import Component, register_component


@register_component
class FragmentInventory(Component):
    """
    Fragments owned by the player, as fragment id -> count.

    Attributes:
        counts: Number held of each fragment
        max_stack: Cap per fragment id
    """
    counts: dict[str, int] = Field(default_factory=dict)
    max_stack: int = 99

    def add(self, fragment_id: str, amount: int = 1) -> int:
        """
        Add fragments.

        Returns:
            Amount that couldn't be added (overflow)
        """
        held = self.counts.get(fragment_id, 0)
        to_add = max(0, min(amount, self.max_stack - held))
        if to_add:
            # Reassign so validate_assignment sees the change
            self.counts = {**self.counts, fragment_id: held + to_add}
        return amount - to_add

    def remove(self, fragment_id: str, amount: int = 1) -> int:
        """
        Remove fragments.

        Returns:
            Actual amount removed
        """
        held = self.counts.get(fragment_id, 0)
        removed = min(amount, held)
        if removed:
            counts = dict(self.counts)
            if held - removed > 0:
                counts[fragment_id] = held - removed
            else:
                del counts[fragment_id]
            self.counts = counts
        return removed

    def count(self, fragment_id: str) -> int:
        return self.counts.get(fragment_id, 0)

    def has(self, fragment_id: str, amount: int = 1) -> bool:
        return self.count(fragment_id) >= amount

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.counts))

    def __len__(self) -> int:
        return len(self.counts)
