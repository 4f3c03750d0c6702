from __future__ import annotations

from typing import Iterable

from algorithms import SetSanitizer
from models import SET_FIELDS, SetEntry


class ExerciseProgressStore:
    """Typed set entries for each exercise position of the active routine.

    A visited position always holds at least one entry; ``remove_set`` and
    ``compact`` are the only operations that shrink a list and both keep that
    minimum. Entries handed out are copies, so nothing outside the store can
    mutate its state.
    """

    def __init__(self) -> None:
        self._sets: dict[int, list[SetEntry]] = {}

    def _visit(self, position: int) -> list[SetEntry]:
        entries = self._sets.get(position)
        if entries is None:
            entries = [SetEntry()]
            self._sets[position] = entries
        return entries

    def get_sets(self, position: int) -> list[SetEntry]:
        entries = self._sets.get(position)
        if entries is None:
            return [SetEntry()]
        return [entry.model_copy() for entry in entries]

    def update_set(self, position: int, set_index: int, field: str, raw_value: str) -> None:
        if field not in SET_FIELDS:
            return
        entries = self._visit(position)
        if not 0 <= set_index < len(entries):
            return
        setattr(entries[set_index], field, SetSanitizer.sanitize(raw_value))

    def add_set(self, position: int) -> None:
        self._visit(position).append(SetEntry())

    def remove_set(self, position: int, set_index: int) -> None:
        entries = self._visit(position)
        if len(entries) <= 1 or not 0 <= set_index < len(entries):
            return
        del entries[set_index]

    def compact(self, position: int, entries: Iterable[SetEntry]) -> None:
        """Replace the list at ``position``, keeping one blank row if empty."""
        kept = [entry.model_copy() for entry in entries]
        self._sets[position] = kept or [SetEntry()]

    def positions(self) -> list[int]:
        return sorted(self._sets)

    def clear(self) -> None:
        self._sets.clear()
