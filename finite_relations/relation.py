"""
Heterogeneous relations
Relation R ⊆ A×B between two finite sets
"""

import threading
import time
from functools import cached_property
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Tuple, Union
import numpy as np

from .core import Config, IndexedSet, default_config
from .definitions import Definition
from .exceptions import RelationArgumentError, RelationStateError
from .operations import MatrixOps

if TYPE_CHECKING:
    from .endorelation import EndoRelation


class Relation:
    """
    Binary relation between a domain set A and a codomain set B

    The relation is backed by a boolean adjacency matrix of shape
    card(A) × card(B), where cell (i, j) is set iff the i-th element of A is
    related to the j-th element of B. The matrix is built once, on first
    access, from whichever definition was given; every property and
    operation reads only the matrix afterwards.
    """

    def __init__(self, domain_set: Iterable[Hashable], codomain_set: Iterable[Hashable],
                 relation: Union[Callable[[Any, Any], bool], set, frozenset, np.ndarray, List[List[int]], None] = None,
                 config: Optional[Config] = None, name: str = 'R'):
        """
        Initialize a relation

        Args:
            domain_set: Elements of the domain set A, in canonical order
            codomain_set: Elements of the codomain set B, in canonical order
            relation: Predicate f(a, b) -> bool, set of (a, b) pairs, or
                {0,1} matrix of shape card(A) × card(B). None relates nothing.
            config: Configuration object (uses default if None)
            name: Identifier for the relation

        Raises:
            MatrixShapeError: matrix does not match the set cardinals
            MatrixValueError: matrix has a cell outside {0,1}
        """
        self.name = name
        self.config = config or default_config()
        self.domain = IndexedSet.of(domain_set)
        self.codomain = IndexedSet.of(codomain_set)

        if relation is None:
            relation = frozenset()
        self._definition = Definition(Definition.kind_of(relation), relation,
                                      self.domain, self.codomain)
        self._lock = threading.Lock()

        self.stats = {
            'matrix_time': 0,
            'predicate_calls': 0,
        }

    @classmethod
    def from_predicate(cls, domain_set, codomain_set, predicate: Callable[[Any, Any], bool],
                       **kwargs) -> 'Relation':
        return cls(domain_set, codomain_set, predicate, **kwargs)

    @classmethod
    def from_pairs(cls, domain_set, codomain_set, *pairs: Tuple[Any, Any], **kwargs) -> 'Relation':
        """Create relation from (a, b) pairs given as positional arguments"""
        return cls(domain_set, codomain_set, frozenset(pairs), **kwargs)

    @classmethod
    def from_matrix(cls, domain_set, codomain_set, matrix, **kwargs) -> 'Relation':
        return cls(domain_set, codomain_set, matrix if isinstance(matrix, np.ndarray) else list(matrix), **kwargs)

    @classmethod
    def empty(cls, domain_set, codomain_set, **kwargs) -> 'Relation':
        """Relation with no related pairs"""
        return cls(domain_set, codomain_set, None, **kwargs)

    @classmethod
    def _from_array(cls, domain: IndexedSet, codomain: IndexedSet, array: np.ndarray,
                    config: Config, name: str) -> 'Relation':
        """Wrap an already canonical boolean array, skipping validation"""
        relation = cls.__new__(cls)
        relation.name = name
        relation.config = config
        relation.domain = domain
        relation.codomain = codomain
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
    def domain_set(self) -> FrozenSet:
        return self.domain.frozen

    @property
    def codomain_set(self) -> FrozenSet:
        return self.codomain.frozen

    @property
    def domain_cardinal(self) -> int:
        return self.domain.cardinal

    @property
    def codomain_cardinal(self) -> int:
        return self.codomain.cardinal

    @property
    def domain_elements(self) -> List[Any]:
        """Domain set as list, in canonical order"""
        return self.domain.elements

    @property
    def codomain_elements(self) -> List[Any]:
        """Codomain set as list, in canonical order"""
        return self.codomain.elements

    @property
    def matrix(self) -> List[List[int]]:
        """Adjacency matrix as a list of rows of 0s and 1s"""
        return self._array.astype(int).tolist()

    @property
    def array(self) -> np.ndarray:
        """Adjacency matrix as a read-only boolean array"""
        view = self._array.view()
        view.flags.writeable = False
        return view

    def __getitem__(self, key):
        """
        R[i] gives row i of the matrix; R[i, j] gives cell (i, j) as bool
        """
        if isinstance(key, tuple):
            row, col = key
            return bool(self._array[row, col])
        return self._array[key].astype(int).tolist()

    def __call__(self, *args):
        """
        R(a, b) tells whether a is related to b; R(g) composes R after g
        """
        if len(args) == 1 and isinstance(args[0], Relation):
            return self.composition(args[0])
        if len(args) != 2:
            raise TypeError("Expected two elements (a, b) or one relation to compose with")
        a, b = args
        return bool(self._array[self.domain.index(a), self.codomain.index(b)])

    def domain_index(self, item) -> int:
        """Index of an element in the domain order, -1 if absent"""
        return self.domain.index_of(item)

    def codomain_index(self, item) -> int:
        """Index of an element in the codomain order, -1 if absent"""
        return self.codomain.index_of(item)

    @cached_property
    def preimage(self) -> FrozenSet:
        """Domain elements related to at least one element: {a ∈ A, ∃b ∈ B, aRb}"""
        rows = np.flatnonzero(self._array.any(axis=1))
        return frozenset(self.domain.element(i) for i in rows)

    @cached_property
    def image(self) -> FrozenSet:
        """Codomain elements related from at least one element: {b ∈ B, ∃a ∈ A, aRb}"""
        cols = np.flatnonzero(self._array.any(axis=0))
        return frozenset(self.codomain.element(j) for j in cols)

    def post_related_to(self, a) -> List[Any]:
        """Elements b with aRb, in codomain order"""
        row = self._array[self.domain.index(a)]
        return [self.codomain.element(j) for j in np.flatnonzero(row)]

    def pre_related_to(self, b) -> List[Any]:
        """Elements a with aRb, in domain order"""
        col = self._array[:, self.codomain.index(b)]
        return [self.domain.element(i) for i in np.flatnonzero(col)]

    ################################
    # PROPERTIES OF THE RELATION
    ################################

    @cached_property
    def is_application(self) -> bool:
        """Every domain element is related to exactly one codomain element"""
        return bool(np.all(self._array.sum(axis=1) == 1))

    @cached_property
    def is_injective(self) -> bool:
        """aRc ∧ bRc → a = b"""
        return bool(np.all(self._array.sum(axis=0) <= 1))

    @cached_property
    def is_surjective(self) -> bool:
        return bool(np.all(self._array.any(axis=0)))

    @cached_property
    def is_bijective(self) -> bool:
        return self.is_injective and self.is_surjective

    ##################################
    # OPERATIONS BETWEEN RELATIONS
    ##################################

    def _aligned(self, other: 'Relation') -> np.ndarray:
        """
        Matrix of `other` reordered to this relation's element order

        Raises:
            RelationArgumentError: domain or codomain sets differ
        """
        if not isinstance(other, Relation):
            raise TypeError(f"Expected a Relation, got {type(other).__name__}")
        if other.domain != self.domain or other.codomain != self.codomain:
            raise RelationArgumentError("Domain and codomain sets must be the same in both relations")
        rows = other.domain.positions(self.domain)
        cols = other.codomain.positions(self.codomain)
        return other._array[np.ix_(rows, cols)]

    def _derive(self, array: np.ndarray, name: str, domain: Optional[IndexedSet] = None,
                codomain: Optional[IndexedSet] = None) -> 'Relation':
        return Relation._from_array(self.domain if domain is None else domain,
                                    self.codomain if codomain is None else codomain,
                                    array, self.config, name)

    def union(self, other: 'Relation') -> 'Relation':
        """
        R ∪ R' = {(a,b) ∈ A×B, (a,b) ∈ R ∨ (a,b) ∈ R'}

        Raises:
            RelationArgumentError: domain or codomain sets differ
        """
        result = self._derive(self._array | self._aligned(other), f"({self.name}∪{other.name})")
        self._report(f"Union: {self.name} ∪ {other.name} → {result.name}")
        return result

    def __add__(self, other: 'Relation') -> 'Relation':
        return self.union(other)

    def intersection(self, other: 'Relation') -> 'Relation':
        """
        R ∩ R' = {(a,b) ∈ A×B, (a,b) ∈ R ∧ (a,b) ∈ R'}

        Raises:
            RelationArgumentError: domain or codomain sets differ
        """
        result = self._derive(self._array & self._aligned(other), f"({self.name}∩{other.name})")
        self._report(f"Intersection: {self.name} ∩ {other.name} → {result.name}")
        return result

    def __mul__(self, other: 'Relation') -> 'Relation':
        return self.intersection(other)

    def xor(self, other: 'Relation') -> 'Relation':
        """
        Symmetric difference: pairs in exactly one of R, R'

        Raises:
            RelationArgumentError: domain or codomain sets differ
        """
        result = self._derive(self._array ^ self._aligned(other), f"({self.name}⊕{other.name})")
        self._report(f"Xor: {self.name} ⊕ {other.name} → {result.name}")
        return result

    def __xor__(self, other: 'Relation') -> 'Relation':
        return self.xor(other)

    @cached_property
    def converse_relation(self) -> 'Relation':
        """Rt = {(b,a) ∈ B×A, (a,b) ∈ R}"""
        return self._derive(self._array.T.copy(), f"{self.name}⁻¹",
                            domain=self.codomain, codomain=self.domain)

    def __neg__(self) -> 'Relation':
        return self.converse_relation

    @cached_property
    def complementary_relation(self) -> 'Relation':
        """R' = {(a,b) ∈ A×B, (a,b) ∉ R}"""
        return self._derive(~self._array, f"¬{self.name}")

    def __invert__(self) -> 'Relation':
        return self.complementary_relation

    def composition(self, other: 'Relation') -> 'Relation':
        """
        Composition f(g), with f this relation and g `other`

        For g ⊆ U×T and f ⊆ T×S the result relates a ∈ U to b ∈ S iff some
        t has g(a, t) and f(t, b).

        Args:
            other: g in f(g)

        Returns:
            Relation over (other's domain, this codomain)

        Raises:
            RelationArgumentError: domain does not contain the image of `other`
        """
        if not isinstance(other, Relation):
            raise TypeError(f"Expected a Relation, got {type(other).__name__}")
        if not self.domain.issuperset(other.image):
            raise RelationArgumentError("Domain must contain the image of the composed relation")

        # rows of this matrix, one per element of other's codomain
        positions = np.fromiter((self.domain.index_of(t) for t in other.codomain),
                                dtype=np.intp, count=other.codomain_cardinal)
        bridge = np.zeros((other.codomain_cardinal, self.codomain_cardinal), dtype=bool)
        known = positions >= 0
        bridge[known] = self._array[positions[known]]

        product = MatrixOps.boolean_product(other._array, bridge, self.config)
        result = self._derive(product, f"{self.name}∘{other.name}", domain=other.domain)
        self._report(f"Composition: {self.name} ∘ {other.name} → {result.name}")
        return result

    def restriction(self, subset: Iterable[Hashable]) -> 'Relation':
        """
        R/S = {(a,b) ∈ S×B, (a,b) ∈ R}

        Raises:
            RelationArgumentError: subset is not contained in the domain set
        """
        subset = IndexedSet.of(subset)
        if not self.domain.issuperset(subset):
            raise RelationArgumentError("Not a subset of the domain set")
        rows = self.domain.positions(subset)
        return self._derive(self._array[rows], f"{self.name}|{set(subset)}", domain=subset)

    def __truediv__(self, subset: Iterable[Hashable]) -> 'Relation':
        return self.restriction(subset)

    #################
    # CONVERSIONS
    #################

    @cached_property
    def to_endo_relation(self) -> 'EndoRelation':
        """
        Relation as endorelation

        Raises:
            RelationStateError: domain and codomain sets are not the same
        """
        from .endorelation import EndoRelation

        if self.domain != self.codomain:
            raise RelationStateError("Domain set and codomain set must be the same")
        cols = self.codomain.positions(self.domain)
        return EndoRelation._from_array(self.domain, self._array[:, cols], self.config, self.name)

    @cached_property
    def _pairs(self) -> Tuple[Tuple[Any, Any], ...]:
        return tuple((self.domain.element(i), self.codomain.element(j))
                     for i, j in zip(*np.nonzero(self._array)))

    @property
    def as_pairs(self) -> List[Tuple[Any, Any]]:
        """Related pairs (a, b), row-major"""
        return list(self._pairs)

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get relation statistics

        Returns:
            Dictionary with matrix construction statistics
        """
        stats = self.stats.copy()
        stats['related_pairs'] = int(self._array.sum())
        return stats

    ############
    # OTHERS
    ############

    def __eq__(self, other) -> bool:
        """Relations are equal when their sets and their pairs agree"""
        if self is other:
            return True
        if type(other) is not type(self):
            return NotImplemented
        if other.domain != self.domain or other.codomain != self.codomain:
            return False
        return bool(np.array_equal(self._array, self._aligned(other)))

    def __hash__(self) -> int:
        return hash((self.domain_set, self.codomain_set, frozenset(self._pairs)))

    def __repr__(self) -> str:
        """String representation"""
        shape = (self.domain_cardinal, self.codomain_cardinal)
        return f"Relation('{self.name}') [shape={shape}, device={self.config.device}]"
