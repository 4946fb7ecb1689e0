"""Append-only, key-indexed store of test events for one run.

Design:
- Append-only: ``append()`` is the only write; it never removes or
  reorders earlier events.
- Every query returns a NEW store holding copied sequences, so a view
  can never be used to mutate the store it was derived from.
- Reads hand out tuples.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterator, Sequence

from natsort import natsort_keygen

from tgo.core.status import find_coverage, is_package_without_tests
from tgo.models.events import Action, Event, Key

_natural_key = natsort_keygen()


def _sort_key(key: Key) -> tuple:
    # Within one package the package-level entry sorts after its tests.
    return _natural_key(key.package), key.is_package, _natural_key(key.test)


class UnitStore:
    """Events grouped by unit, in arrival order.

    Parameters
    ----------
    units:
        Optional initial contents; sequences are copied.
    """

    def __init__(self, units: dict[Key, Sequence[Event]] | None = None) -> None:
        self._units: dict[Key, list[Event]] = {
            key: list(events) for key, events in (units or {}).items()
        }

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, event: Event) -> Key:
        """Append an event to its unit, creating the unit if needed."""
        key = event.key
        self._units.setdefault(key, []).append(event)
        return key

    # ------------------------------------------------------------------
    # Mapping protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, key: object) -> bool:
        return key in self._units

    def __iter__(self) -> Iterator[Key]:
        return iter(self._units)

    def __getitem__(self, key: Key) -> tuple[Event, ...]:
        return tuple(self._units[key])

    def get(self, key: Key) -> tuple[Event, ...]:
        return tuple(self._units.get(key, ()))

    def keys(self) -> list[Key]:
        return list(self._units)

    def items(self) -> Iterator[tuple[Key, tuple[Event, ...]]]:
        for key, events in self._units.items():
            yield key, tuple(events)

    def __repr__(self) -> str:
        return f"UnitStore({len(self._units)} units)"

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def _where(self, predicate: Callable[[Key, list[Event]], bool]) -> UnitStore:
        return UnitStore(
            {key: events for key, events in self._units.items() if predicate(key, events)}
        )

    def filter_by_action(self, *actions: Action) -> UnitStore:
        """Units whose sequence contains none of ``actions``.

        Given the terminal actions this yields the pending units.
        """
        excluded = frozenset(actions)
        return self._where(lambda _, events: not any(e.action in excluded for e in events))

    def units_with_action(self, action: Action) -> UnitStore:
        """Units with at least one event of ``action``."""
        return self._where(lambda _, events: any(e.action == action for e in events))

    def package_units(self) -> UnitStore:
        return self._where(lambda key, _: key.is_package)

    def test_units(self) -> UnitStore:
        return self._where(lambda key, _: not key.is_package)

    def filter_excluding(self, keys: Collection[Key]) -> UnitStore:
        return self._where(lambda key, _: key not in keys)

    def units_of_package(self, name: str) -> UnitStore:
        return self._where(lambda key, _: key.package == name)

    def with_coverage(self) -> UnitStore:
        """Package units that reported a coverage percentage."""
        return self._where(
            lambda key, events: key.is_package and find_coverage(events) != ""
        )

    def without_test_files(self) -> UnitStore:
        """Drop units flagged ``[no test files]``."""
        return self._where(lambda _, events: not is_package_without_tests(events))

    def union(self, *stores: UnitStore) -> UnitStore:
        """Merge stores into a new one; later stores win on key collisions."""
        merged = UnitStore(self._units)
        for store in stores:
            for key, events in store._units.items():
                merged._units[key] = list(events)
        return merged

    def count_tests(self) -> int:
        return sum(1 for key in self._units if not key.is_package)

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def ordered_keys(self) -> list[Key]:
        """Keys in natural (human) order: by package, then by test name.

        A package-level key sorts after every test key of the same
        package, so package lines follow their tests in mixed listings.
        """
        return sorted(self._units, key=_sort_key)
