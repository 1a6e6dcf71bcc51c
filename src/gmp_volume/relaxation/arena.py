"""Arena of shared moment decision variables."""

from __future__ import annotations

from typing import Iterator

from ..polynomials import Exponent, monomial_exponents
from ..model.moments import Measure, MomentKey


class MomentArena:
    """Dense indexing of moment variables keyed by (measure, exponent).

    Every matrix entry and every linear row refers to moments through
    arena indices, so two references to the same exponent of the same
    measure always land on the same decision variable.
    """

    def __init__(self) -> None:
        self._index: dict[MomentKey, int] = {}
        self._keys: list[MomentKey] = []

    def register(self, measure_name: str, exponent: Exponent) -> int:
        """Index of the moment, allocating it on first use."""
        key = (measure_name, tuple(exponent))
        index = self._index.get(key)
        if index is None:
            index = len(self._keys)
            self._index[key] = index
            self._keys.append(key)
        return index

    def register_measure(self, measure: Measure, max_degree: int) -> None:
        """Allocate every moment of ``measure`` up to ``max_degree``."""
        for exponent in monomial_exponents(measure.n_vars, max_degree):
            self.register(measure.name, exponent)

    def index(self, measure_name: str, exponent: Exponent) -> int:
        """Index of an allocated moment.

        Raises:
            KeyError: If the moment was never registered.
        """
        return self._index[(measure_name, tuple(exponent))]

    def key(self, index: int) -> MomentKey:
        return self._keys[index]

    def keys(self) -> list[MomentKey]:
        return list(self._keys)

    def __contains__(self, key: MomentKey) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[MomentKey]:
        return iter(self._keys)

    def __repr__(self) -> str:
        return f"MomentArena(n_variables={len(self)})"
