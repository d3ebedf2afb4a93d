"""
Homogeneous relations
Endorelation R ⊆ A×A with order and equivalence theory
"""

import threading
import time
from functools import cached_property
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Tuple, Union
import numpy as np

from .core import Config, IndexedSet, default_config
from .definitions import Definition
from .exceptions import RelationArgumentError, RelationStateError
from .operations import MatrixOps
from .relation import Relation


class EndoRelation:
    """
    Binary relation on a single finite set A

    Backed by a square boolean matrix of shape card(A) × card(A). Besides the
    algebra shared with `Relation`, it classifies the relation (reflexive,
    symmetric, transitive, orders, equivalences) and computes bounds and
    quotient sets.
    """

    def __init__(self, set_: Iterable[Hashable],
                 relation: Union[Callable[[Any, Any], bool], set, frozenset, np.ndarray, List[List[int]], None] = None,
                 config: Optional[Config] = None, name: str = 'R'):
        """
        Initialize an endorelation

        Args:
            set_: Elements of the set A, in canonical order
            relation: Predicate f(a, b) -> bool, set of (a, b) pairs, or
                square {0,1} matrix of shape card(A) × card(A). None relates nothing.
            config: Configuration object (uses default if None)
            name: Identifier for the relation

        Raises:
            MatrixShapeError: matrix is not card(A) × card(A)
            MatrixValueError: matrix has a cell outside {0,1}
        """
        self.name = name
        self.config = config or default_config()
        self.elements_set = IndexedSet.of(set_)

        if relation is None:
            relation = frozenset()
        self._definition = Definition(Definition.kind_of(relation), relation,
                                      self.elements_set, self.elements_set)
        self._lock = threading.Lock()

        self.stats = {
            'matrix_time': 0,
            'predicate_calls': 0,
        }

    @classmethod
    def from_predicate(cls, set_, predicate: Callable[[Any, Any], bool], **kwargs) -> 'EndoRelation':
        return cls(set_, predicate, **kwargs)

    @classmethod
    def from_pairs(cls, set_, *pairs: Tuple[Any, Any], **kwargs) -> 'EndoRelation':
        """Create endorelation from (a, b) pairs given as positional arguments"""
        return cls(set_, frozenset(pairs), **kwargs)

    @classmethod
    def from_matrix(cls, set_, matrix, **kwargs) -> 'EndoRelation':
        return cls(set_, matrix if isinstance(matrix, np.ndarray) else list(matrix), **kwargs)

    @classmethod
    def empty(cls, set_, **kwargs) -> 'EndoRelation':
        return cls(set_, None, **kwargs)

    @classmethod
    def identity(cls, set_, **kwargs) -> 'EndoRelation':
        """Every element related only to itself"""
        indexed = IndexedSet.of(set_)
        return cls(indexed, np.eye(indexed.cardinal, dtype=int), **kwargs)

    @classmethod
    def universal(cls, set_, **kwargs) -> 'EndoRelation':
        """Every element related to every element"""
        indexed = IndexedSet.of(set_)
        return cls(indexed, np.ones((indexed.cardinal, indexed.cardinal), dtype=int), **kwargs)

    @classmethod
    def _from_array(cls, indexed: IndexedSet, array: np.ndarray,
                    config: Config, name: str) -> 'EndoRelation':
        """Wrap an already canonical square boolean array, skipping validation"""
        relation = cls.__new__(cls)
        relation.name = name
        relation.config = config
        relation.elements_set = indexed
        relation._definition = None
        relation.stats = {'matrix_time': 0, 'predicate_calls': 0}
        relation.__dict__['_array'] = array
        return relation

    @cached_property
    def _array(self) -> np.ndarray:
        # cached_property does not lock on 3.12+, threads may race the first access
        with self._lock:
            array = self.__dict__.get('_array')
            if array is not None:
                return array
            start_time = time.time()
            calls = self._definition.calls
            array = self._definition.resolve()
            self.stats['matrix_time'] = time.time() - start_time
            self.stats['predicate_calls'] = self._definition.calls - calls
            self.__dict__['_array'] = array
            return array

    def _report(self, message: str):
        if self.config.verbose:
            print(message)

    #############
    # GETTERS
    #############

    @property
    def set(self) -> FrozenSet:
        """Domain set of the relation"""
        return self.elements_set.frozen

    @property
    def cardinal(self) -> int:
        return self.elements_set.cardinal

    @property
    def elements(self) -> List[Any]:
        """Domain set as list, in canonical order"""
        return self.elements_set.elements

    @property
    def matrix(self) -> List[List[int]]:
        """Adjacency matrix as a list of rows of 0s and 1s"""
        return self._array.astype(int).tolist()

    @property
    def array(self) -> np.ndarray:
        view = self._array.view()
        view.flags.writeable = False
        return view

    def __getitem__(self, key):
        if isinstance(key, tuple):
            row, col = key
            return bool(self._array[row, col])
        return self._array[key].astype(int).tolist()

    def __call__(self, *args):
        """
        R(a, b) tells whether a is related to b; R(S) composes R with S
        """
        if len(args) == 1 and isinstance(args[0], EndoRelation):
            return self.composition(args[0])
        if len(args) != 2:
            raise TypeError("Expected two elements (a, b) or one endorelation to compose with")
        a, b = args
        return bool(self._array[self.elements_set.index(a), self.elements_set.index(b)])

    def index(self, item) -> int:
        """Index of an element in the canonical order, -1 if absent"""
        return self.elements_set.index_of(item)

    @cached_property
    def preimage(self) -> FrozenSet:
        """{a, ∃b, aRb}"""
        return frozenset(self.elements_set.element(i) for i in np.flatnonzero(self._array.any(axis=1)))

    @cached_property
    def image(self) -> FrozenSet:
        """{b, ∃a, aRb}"""
        return frozenset(self.elements_set.element(j) for j in np.flatnonzero(self._array.any(axis=0)))

    def post_related_to(self, a) -> List[Any]:
        """Elements b with aRb, in canonical order"""
        row = self._array[self.elements_set.index(a)]
        return [self.elements_set.element(j) for j in np.flatnonzero(row)]

    def pre_related_to(self, b) -> List[Any]:
        """Elements a with aRb, in canonical order"""
        col = self._array[:, self.elements_set.index(b)]
        return [self.elements_set.element(i) for i in np.flatnonzero(col)]

    @cached_property
    def _row_counts(self) -> np.ndarray:
        return self._array.sum(axis=1)

    @cached_property
    def _col_counts(self) -> np.ndarray:
        return self._array.sum(axis=0)

    @cached_property
    def _square(self) -> np.ndarray:
        """Pairs (i, j) joined by some path i R k R j"""
        return MatrixOps.boolean_product(self._array, self._array, self.config)

    ################################
    # PROPERTIES OF THE RELATION
    ################################

    @cached_property
    def is_application(self) -> bool:
        """∀a, ∃!b, aRb"""
        return bool(np.all(self._row_counts == 1))

    @cached_property
    def is_injective(self) -> bool:
        return bool(np.all(self._col_counts <= 1))

    @cached_property
    def is_surjective(self) -> bool:
        return bool(np.all(self._col_counts >= 1))

    @cached_property
    def is_bijective(self) -> bool:
        return self.is_injective and self.is_surjective

    @cached_property
    def is_reflexive(self) -> bool:
        """∀a, aRa"""
        return bool(np.all(np.diag(self._array)))

    @cached_property
    def is_irreflexive(self) -> bool:
        """∀a, ¬aRa"""
        return not np.any(np.diag(self._array))

    @cached_property
    def is_symmetric(self) -> bool:
        """∀a,b, aRb → bRa"""
        return bool(np.array_equal(self._array, self._array.T))

    @cached_property
    def is_antisymmetric(self) -> bool:
        """∀a,b, aRb ∧ bRa → a = b"""
        both = self._array & self._array.T
        np.fill_diagonal(both, False)
        return not np.any(both)

    @cached_property
    def is_asymmetric(self) -> bool:
        """Irreflexive and antisymmetric: ∀a,b, aRb → ¬bRa"""
        return self.is_irreflexive and self.is_antisymmetric

    @cached_property
    def is_transitive(self) -> bool:
        """∀a,b,c, aRb ∧ bRc → aRc"""
        return not np.any(self._square & ~self._array)

    @cached_property
    def is_intransitive(self) -> bool:
        """Not transitive: ∃a,b,c, aRb ∧ bRc ∧ ¬aRc"""
        return not self.is_transitive

    @cached_property
    def is_antitransitive(self) -> bool:
        """∀a,b,c, aRb ∧ bRc → ¬aRc"""
        return not np.any(self._square & self._array)

    @cached_property
    def is_circular(self) -> bool:
        """∀a,b,c, aRb ∧ bRc → cRa"""
        return not np.any(self._square & ~self._array.T)

    @cached_property
    def is_connected(self) -> bool:
        """∀a ≠ b, aRb ∨ bRa"""
        either = self._array | self._array.T
        np.fill_diagonal(either, True)
        return bool(np.all(either))

    @cached_property
    def is_total(self) -> bool:
        """Reflexive and connected: ∀a,b, aRb ∨ bRa"""
        return self.is_reflexive and self.is_connected

    @cached_property
    def is_dependency(self) -> bool:
        """Reflexive and symmetric"""
        return self.is_reflexive and self.is_symmetric

    @cached_property
    def is_preorder(self) -> bool:
        """Reflexive and transitive"""
        return self.is_reflexive and self.is_transitive

    @cached_property
    def is_equivalence(self) -> bool:
        """Reflexive, symmetric and transitive"""
        return self.is_dependency and self.is_transitive

    @cached_property
    def is_partial_order(self) -> bool:
        """Reflexive, antisymmetric and transitive"""
        return self.is_preorder and self.is_antisymmetric

    @cached_property
    def is_total_order(self) -> bool:
        return self.is_partial_order and self.is_total

    @cached_property
    def is_strict_partial_order(self) -> bool:
        """Irreflexive and transitive (implies asymmetric)"""
        return self.is_irreflexive and self.is_transitive

    @cached_property
    def is_strict_total_order(self) -> bool:
        return self.is_strict_partial_order and self.is_connected

    ##############################
    # BOUNDS AND QUOTIENT SET
    ##############################

    def _order_value(self) -> int:
        """
        Related-element count of an element to itself: 1 for a partial order, 0 for a strict one

        Raises:
            RelationStateError: relation is not an order
        """
        if not (self.is_partial_order or self.is_strict_partial_order):
            raise RelationStateError("Relation is not an order")
        return 1 if self.is_partial_order else 0

    @cached_property
    def maximals(self) -> List[Any]:
        """
        Maximal elements, in canonical order

        Raises:
            RelationStateError: relation is not an order
        """
        value = self._order_value()
        return [self.elements_set.element(i) for i in np.flatnonzero(self._row_counts == value)]

    @cached_property
    def minimals(self) -> List[Any]:
        """
        Minimal elements, in canonical order

        Raises:
            RelationStateError: relation is not an order
        """
        value = self._order_value()
        return [self.elements_set.element(j) for j in np.flatnonzero(self._col_counts == value)]

    @cached_property
    def maximum(self) -> Optional[Any]:
        """
        Greatest element, or None if there is none

        Raises:
            RelationStateError: relation is not an order
        """
        value = self._order_value()
        below = self.cardinal - 1 + value
        for i in range(self.cardinal):
            if self._row_counts[i] == value and self._col_counts[i] == below:
                return self.elements_set.element(i)
        return None

    @cached_property
    def minimum(self) -> Optional[Any]:
        """
        Least element, or None if there is none

        Raises:
            RelationStateError: relation is not an order
        """
        value = self._order_value()
        above = self.cardinal - 1 + value
        for i in range(self.cardinal):
            if self._row_counts[i] == above and self._col_counts[i] == value:
                return self.elements_set.element(i)
        return None

    @cached_property
    def is_bounded_above(self) -> bool:
        return self.maximum is not None

    @cached_property
    def is_bounded_below(self) -> bool:
        return self.minimum is not None

    @cached_property
    def is_bounded(self) -> bool:
        return self.is_bounded_above and self.is_bounded_below

    @cached_property
    def quotient_set(self) -> FrozenSet[FrozenSet]:
        """
        Equivalence classes

        Raises:
            RelationStateError: relation is not an equivalence
        """
        if not self.is_equivalence:
            raise RelationStateError("Relation is not an equivalence")

        classes = set()
        visited = np.zeros(self.cardinal, dtype=bool)

        for first in range(self.cardinal):
            if visited[first]:
                continue
            members = np.flatnonzero(self._array[first] & ~visited)
            visited[members] = True
            classes.add(frozenset(self.elements_set.element(i) for i in members))

        return frozenset(classes)

    ##################################
    # OPERATIONS BETWEEN RELATIONS
    ##################################

    def _aligned(self, other: 'EndoRelation') -> np.ndarray:
        """
        Matrix of `other` reordered to this relation's element order

        Raises:
            RelationArgumentError: sets differ
        """
        if not isinstance(other, EndoRelation):
            raise TypeError(f"Expected an EndoRelation, got {type(other).__name__}")
        if other.elements_set != self.elements_set:
            raise RelationArgumentError("Domain sets must be the same")
        positions = other.elements_set.positions(self.elements_set)
        return other._array[np.ix_(positions, positions)]

    def _derive(self, array: np.ndarray, name: str,
                indexed: Optional[IndexedSet] = None) -> 'EndoRelation':
        return EndoRelation._from_array(self.elements_set if indexed is None else indexed,
                                        array, self.config, name)

    def union(self, other: 'EndoRelation') -> 'EndoRelation':
        """
        R ∪ R'

        Raises:
            RelationArgumentError: sets differ
        """
        result = self._derive(self._array | self._aligned(other), f"({self.name}∪{other.name})")
        self._report(f"Union: {self.name} ∪ {other.name} → {result.name}")
        return result

    def __add__(self, other: 'EndoRelation') -> 'EndoRelation':
        return self.union(other)

    def intersection(self, other: 'EndoRelation') -> 'EndoRelation':
        """
        R ∩ R'

        Raises:
            RelationArgumentError: sets differ
        """
        result = self._derive(self._array & self._aligned(other), f"({self.name}∩{other.name})")
        self._report(f"Intersection: {self.name} ∩ {other.name} → {result.name}")
        return result

    def __mul__(self, other: 'EndoRelation') -> 'EndoRelation':
        return self.intersection(other)

    def xor(self, other: 'EndoRelation') -> 'EndoRelation':
        result = self._derive(self._array ^ self._aligned(other), f"({self.name}⊕{other.name})")
        self._report(f"Xor: {self.name} ⊕ {other.name} → {result.name}")
        return result

    def __xor__(self, other: 'EndoRelation') -> 'EndoRelation':
        return self.xor(other)

    def composition(self, other: 'EndoRelation') -> 'EndoRelation':
        """
        Composition over the same set

        Relates a to b iff some k has aRk and kSb, with R this relation and
        S `other`; the matrix is the boolean product R·S.

        Raises:
            RelationArgumentError: sets differ
        """
        product = MatrixOps.boolean_product(self._array, self._aligned(other), self.config)
        result = self._derive(product, f"{self.name}∘{other.name}")
        self._report(f"Composition: {self.name} ∘ {other.name} → {result.name}")
        return result

    @cached_property
    def converse_relation(self) -> 'EndoRelation':
        """Rt = {(b,a), (a,b) ∈ R}"""
        return self._derive(self._array.T.copy(), f"{self.name}⁻¹")

    def __neg__(self) -> 'EndoRelation':
        return self.converse_relation

    @cached_property
    def complementary_relation(self) -> 'EndoRelation':
        return self._derive(~self._array, f"¬{self.name}")

    def __invert__(self) -> 'EndoRelation':
        return self.complementary_relation

    def restriction(self, subset: Iterable[Hashable]) -> 'EndoRelation':
        """
        R/S = {(a,b) ∈ S×S, (a,b) ∈ R}

        Raises:
            RelationArgumentError: subset is not contained in the set
        """
        subset = IndexedSet.of(subset)
        if not self.elements_set.issuperset(subset):
            raise RelationArgumentError("Not a subset of the original set")
        positions = self.elements_set.positions(subset)
        return self._derive(self._array[np.ix_(positions, positions)],
                            f"{self.name}|{set(subset)}", indexed=subset)

    def __truediv__(self, subset: Iterable[Hashable]) -> 'EndoRelation':
        return self.restriction(subset)

    @cached_property
    def reflexive_closure(self) -> 'EndoRelation':
        """RC(R) = R ∪ identity"""
        array = self._array.copy()
        np.fill_diagonal(array, True)
        return self._derive(array, f"RC({self.name})")

    @cached_property
    def symmetric_closure(self) -> 'EndoRelation':
        """SC(R) = R ∪ Rt"""
        return self._derive(self._array | self._array.T, f"SC({self.name})")

    #################
    # CONVERSIONS
    #################

    @cached_property
    def to_relation(self) -> Relation:
        """Endorelation as heterogeneous relation over (A, A)"""
        return Relation._from_array(self.elements_set, self.elements_set, self._array.copy(),
                                    self.config, self.name)

    @cached_property
    def _pairs(self) -> Tuple[Tuple[Any, Any], ...]:
        element = self.elements_set.element
        return tuple((element(i), element(j)) for i, j in zip(*np.nonzero(self._array)))

    @property
    def as_pairs(self) -> List[Tuple[Any, Any]]:
        """Related pairs (a, b), row-major"""
        return list(self._pairs)

    def get_statistics(self) -> Dict[str, Any]:
        stats = self.stats.copy()
        stats['related_pairs'] = int(self._array.sum())
        return stats

    ############
    # OTHERS
    ############

    def __eq__(self, other) -> bool:
        """Endorelations are equal when their sets and their pairs agree"""
        if self is other:
            return True
        if type(other) is not type(self):
            return NotImplemented
        if other.elements_set != self.elements_set:
            return False
        return bool(np.array_equal(self._array, self._aligned(other)))

    def __hash__(self) -> int:
        return hash((self.set, frozenset(self._pairs)))

    def __repr__(self) -> str:
        """String representation"""
        return f"EndoRelation('{self.name}') [cardinal={self.cardinal}, device={self.config.device}]"
