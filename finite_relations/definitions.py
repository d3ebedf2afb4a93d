"""
Definition sources for relations
"""

from typing import Any, Iterable, Tuple
import numpy as np

from .core import IndexedSet
from .operations import MatrixOps


class Definition:
    """
    Source a relation's matrix is resolved from

    Kinds:
        'predicate': callable (a, b) -> bool, evaluated once per cell
        'pairs': iterable of (a, b) pairs, tested by membership
        'matrix': explicit {0,1} matrix, validated on creation
    """

    KINDS = ('predicate', 'pairs', 'matrix')

    def __init__(self, kind: str, source: Any,
                 domain: IndexedSet, codomain: IndexedSet):
        """
        Initialize definition

        Args:
            kind: 'predicate', 'pairs' or 'matrix'
            source: The predicate, the pairs or the matrix
            domain: Domain set (rows)
            codomain: Codomain set (columns)
        """
        self.kind = kind
        self.domain = domain
        self.codomain = codomain
        self.calls = 0

        if kind == 'predicate':
            if not callable(source):
                raise ValueError("Predicate definition requires a callable")
            self.source = source
        elif kind == 'pairs':
            self.source = frozenset(_as_pair(p) for p in source)
        elif kind == 'matrix':
            self.source = MatrixOps.validate_matrix(source, domain.cardinal, codomain.cardinal)
        else:
            raise ValueError(f"Unknown definition kind: {kind}")

    @staticmethod
    def kind_of(source) -> str:
        """Pick the definition kind of a constructor argument"""
        if callable(source):
            return 'predicate'
        if isinstance(source, (set, frozenset)):
            return 'pairs'
        return 'matrix'

    def resolve(self) -> np.ndarray:
        """
        Build the canonical boolean matrix

        Returns:
            Boolean array of shape (domain cardinal, codomain cardinal)
        """
        if self.kind == 'matrix':
            return self.source.copy()

        if self.kind == 'pairs':
            pairs = self.source

            def test(a, b) -> bool:
                return (a, b) in pairs
        else:
            test = self.source

        domain, codomain = self.domain, self.codomain

        def cell(i: int, j: int) -> bool:
            self.calls += 1
            return test(domain.element(i), codomain.element(j))

        return MatrixOps.build_matrix(domain.cardinal, codomain.cardinal, cell)

    def __repr__(self):
        """String representation"""
        return f"Definition(kind={self.kind}, shape=({self.domain.cardinal}, {self.codomain.cardinal}))"


def _as_pair(pair: Iterable) -> Tuple[Any, Any]:
    a, b = pair
    return (a, b)
