'''Unit tests for heterogeneous relations'''

from concurrent.futures import ThreadPoolExecutor
import time

import numpy as np
import pytest

from finite_relations import (
    EndoRelation,
    MatrixShapeError,
    MatrixValueError,
    Relation,
    RelationArgumentError,
    RelationStateError,
)


LETTERS = ['a', 'b', 'c', 'd']

@pytest.fixture
def ff(cpu_config) -> Relation:
    return Relation.from_pairs(range(5), LETTERS, (0, 'd'), (1, 'a'), config=cpu_config, name='ff')

@pytest.fixture
def gg(cpu_config) -> Relation:
    return Relation.from_pairs(range(5), LETTERS, (0, 'b'), (4, 'c'), config=cpu_config, name='gg')


# construction and queries
def test_cubes_is_bijective_application(cubes) -> None:
    '''Test the cube map a**3 = b'''
    assert cubes.domain_cardinal == 5
    assert cubes.codomain_cardinal == 5
    assert cubes.is_application
    assert cubes.is_bijective
    assert cubes.post_related_to(4) == [64]
    assert cubes.pre_related_to(27) == [3]
    assert cubes(2, 8)
    assert not cubes(2, 27)

def test_numeric_value_relation(cpu_config) -> None:
    '''Test preimage and image of a partial, non-surjective relation'''
    rchr = Relation('abcd', [int(c, 36) for c in 'abz'], lambda a, b: int(a, 36) == b, config=cpu_config)
    assert not rchr.is_application
    assert not rchr.is_bijective
    assert rchr.preimage == {'a', 'b'}
    assert rchr.image == {10, 11}

def test_matrix_shape_matches_cardinals(cubes) -> None:
    matrix = cubes.matrix
    assert len(matrix) == cubes.domain_cardinal
    assert all(len(row) == cubes.codomain_cardinal for row in matrix)
    assert cubes.array.shape == (5, 5)

def test_elements_keep_canonical_order(cpu_config) -> None:
    '''Test that sets are deduplicated without being resorted'''
    relation = Relation([3, 1, 3, 2], ['y', 'x'], config=cpu_config)
    assert relation.domain_elements == [3, 1, 2]
    assert relation.codomain_elements == ['y', 'x']
    assert relation.domain_set == {1, 2, 3}
    assert relation.domain_index(2) == 2
    assert relation.codomain_index('x') == 1
    assert relation.domain_index(7) == -1

def test_cell_and_row_access(cpu_config) -> None:
    relation = Relation([1, 2], ['x', 'y', 'z'], [[0, 1, 0], [1, 1, 0]], config=cpu_config)
    assert relation[1] == [1, 1, 0]
    assert relation[0, 1] is True
    assert relation[0, 0] is False
    assert relation.as_pairs == [(1, 'y'), (2, 'x'), (2, 'y')]

def test_array_is_read_only(cubes) -> None:
    with pytest.raises(ValueError):
        cubes.array[0, 0] = True

def test_equivalent_construction_forms(cpu_config) -> None:
    '''Test that predicate, pairs and matrix forms of one relation are equal'''
    domain, codomain = [1, 2, 3], ['x', 'y']
    by_predicate = Relation(domain, codomain, lambda a, b: (a % 2 == 1) == (b == 'x'), config=cpu_config)
    by_pairs = Relation(domain, codomain, {(1, 'x'), (2, 'y'), (3, 'x')}, config=cpu_config)
    by_matrix = Relation.from_matrix(domain, codomain, np.array([[1, 0], [0, 1], [1, 0]]), config=cpu_config)
    assert by_predicate == by_pairs == by_matrix

def test_predicate_is_evaluated_once(cpu_config) -> None:
    '''Test that the predicate runs lazily and only to build the matrix'''
    calls = []
    def predicate(a, b):
        calls.append((a, b))
        return a == b

    relation = Relation(range(3), range(4), predicate, config=cpu_config)
    assert calls == []
    assert relation.is_injective
    assert relation.is_application
    assert not relation.is_surjective
    relation.converse_relation
    assert len(calls) == 12
    assert relation.get_statistics()['predicate_calls'] == 12
    assert relation.get_statistics()['related_pairs'] == 3

def test_shared_relation_resolves_once_across_threads(cpu_config) -> None:
    '''Test that threads racing the first matrix access all see the same matrix'''
    def slow_equal(a, b):
        time.sleep(0.001)
        return a == b

    relation = Relation(range(3), range(4), slow_equal, config=cpu_config)
    with ThreadPoolExecutor(max_workers=8) as pool:
        matrices = list(pool.map(lambda _: relation.matrix, range(16)))
    assert all(matrix == matrices[0] for matrix in matrices)
    assert matrices[0] == [[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 1, 0]]
    assert relation.get_statistics()['predicate_calls'] == 12
    assert relation.is_injective

@pytest.mark.parametrize('matrix', [
    [[0, 1], [1, 0]],
    [[0, 1, 0], [1, 0]],
    [[0, 1, 0], [1, 0, 0], [0, 0, 0]],
])
def test_malformed_matrix(cpu_config, matrix) -> None:
    with pytest.raises(MatrixShapeError):
        Relation([1, 2], 'abc', matrix, config=cpu_config)

def test_non_boolean_matrix(cpu_config) -> None:
    with pytest.raises(MatrixValueError):
        Relation([1, 2], 'abc', [[0, 1, 2], [1, 0, 0]], config=cpu_config)

@pytest.mark.parametrize('matrix, bijective', [
    ([[1, 0], [0, 1]], True),
    ([[1, 1], [0, 0]], False),
    ([[1, 0], [1, 0]], False),
    ([[0, 0], [0, 0]], False),
])
def test_bijective_iff_injective_and_surjective(cpu_config, matrix, bijective) -> None:
    relation = Relation('ab', 'xy', matrix, config=cpu_config)
    assert relation.is_bijective == bijective
    assert relation.is_bijective == (relation.is_injective and relation.is_surjective)

# algebra
def test_union_intersection_xor(ff, gg) -> None:
    '''Test cell-wise algebra over the same sets'''
    union = ff + gg
    assert not union.is_application
    assert union.is_bijective
    assert ff.xor(gg) == union
    assert (ff ^ gg) == ff.union(gg)
    assert ff * gg == Relation.empty(range(5), LETTERS)
    assert ff.intersection(gg).as_pairs == []

def test_complement_and_converse_are_involutive(ff) -> None:
    assert ~~ff == ff
    assert --ff == ff
    assert ff.complementary_relation.complementary_relation == ff
    assert ff.converse_relation.converse_relation == ff

def test_converse_swaps_roles(ff) -> None:
    converse = -ff
    assert converse.domain_elements == LETTERS
    assert converse.codomain_elements == [0, 1, 2, 3, 4]
    assert converse('d', 0)
    assert converse.as_pairs == [('a', 1), ('d', 0)]

def test_de_morgan(ff, gg) -> None:
    assert ~(ff + gg) == ~ff * ~gg
    assert ~(ff * gg) == ~ff + ~gg

def test_restriction(ff) -> None:
    restricted = ff / {0, 3}
    assert restricted.domain_set == {0, 3}
    assert restricted.preimage == {0}
    assert restricted.image == {'d'}
    assert restricted.codomain_set == ff.codomain_set

def test_restriction_requires_subset(ff) -> None:
    with pytest.raises(RelationArgumentError):
        ff.restriction({0, 9})

def test_binary_operations_require_same_sets(ff, cpu_config) -> None:
    other = Relation(range(4), LETTERS, config=cpu_config)
    for operation in (ff.union, ff.intersection, ff.xor):
        with pytest.raises(RelationArgumentError):
            operation(other)

def test_binary_operations_align_element_order(cpu_config) -> None:
    '''Test that operands listing the same sets in different orders combine by element'''
    r1 = Relation([1, 2], ['x', 'y'], {(1, 'x')}, config=cpu_config)
    r2 = Relation([2, 1], ['y', 'x'], {(2, 'y')}, config=cpu_config)
    assert (r1 + r2).as_pairs == [(1, 'x'), (2, 'y')]
    assert (r1 * r2).as_pairs == []

def test_composition(cpu_config) -> None:
    '''Test f(g) through the boolean product of g's and f's matrices'''
    f = Relation([1, 2, 3, 4], ['Hi', 'world', '!'], [
        [0, 0, 0],
        [0, 0, 0],
        [0, 1, 0],
        [1, 1, 0],
    ], config=cpu_config, name='f')
    g = Relation(['a', 'b', 'c'], [1, 2, 3, 4], [
        [1, 0, 1, 0],
        [0, 0, 0, 0],
        [0, 0, 0, 1],
    ], config=cpu_config, name='g')
    fg = f(g)
    assert fg == f.composition(g)
    assert fg.matrix == [[0, 1, 0], [0, 0, 0], [1, 1, 0]]
    assert fg.preimage == {'a', 'c'}
    assert fg.image == {'Hi', 'world'}
    assert fg.domain_elements == ['a', 'b', 'c']

def test_composition_of_functions(cpu_config) -> None:
    '''Test (x + 1)**2 - 1 as the composition of two applications'''
    f = Relation([-2.0, -1.0, 0.0, 1.0, 2.0], [-1.0, 0.0, 1.0, 2.0, 3.0, 4.0],
                 lambda x, y: y == x + 1, config=cpu_config)
    g = Relation([-1.0, 0.0, 1.0, 2.0, 3.0, 4.0], [0.0, -1.0, 0.0, 3.0, 8.0, 15.0],
                 lambda x, y: y == x * x - 1, config=cpu_config)
    gf = g(f)
    assert gf.is_application
    assert gf.codomain_elements == [0.0, -1.0, 3.0, 8.0, 15.0]
    assert gf.as_pairs == [(-2.0, 0.0), (-1.0, -1.0), (0.0, 0.0), (1.0, 3.0), (2.0, 8.0)]

def test_composition_through_larger_codomain(cpu_config) -> None:
    '''Test that unreached codomain elements of g need not belong to f's domain'''
    g = Relation(['p', 'q'], [1, 2, 99], {('p', 2), ('q', 1)}, config=cpu_config)
    f = Relation([2, 1], ['x'], {(1, 'x')}, config=cpu_config)
    assert f(g).as_pairs == [('q', 'x')]

def test_composition_requires_image_in_domain(cpu_config) -> None:
    g = Relation(['p'], [1, 2], {('p', 2)}, config=cpu_config)
    f = Relation([1], ['x'], {(1, 'x')}, config=cpu_config)
    with pytest.raises(RelationArgumentError):
        f.composition(g)

def test_composition_is_associative(cpu_config) -> None:
    h = Relation('xyz', [1, 2, 3], {('x', 1), ('y', 3), ('z', 1), ('z', 2)}, config=cpu_config)
    g = Relation([1, 2, 3], 'ab', {(1, 'a'), (2, 'b'), (3, 'a'), (3, 'b')}, config=cpu_config)
    f = Relation('ab', [True, False], {('a', True), ('b', False)}, config=cpu_config)
    assert f(g)(h) == f(g(h))

# conversions
def test_to_endo_relation(cpu_config) -> None:
    relation = Relation([1, 2, 3], [3, 2, 1], lambda a, b: a <= b, config=cpu_config)
    endo = relation.to_endo_relation
    assert isinstance(endo, EndoRelation)
    assert endo.elements == [1, 2, 3]
    assert endo.is_total_order
    assert endo.to_relation == relation

def test_to_endo_relation_requires_same_sets(cubes) -> None:
    with pytest.raises(RelationStateError):
        cubes.to_endo_relation

# equality
def test_equality_and_hash(cpu_config) -> None:
    '''Test that equal relations are interchangeable as set members'''
    r1 = Relation('ac', [1, 2], lambda a, b: ord(a) - 96 == b, config=cpu_config)
    r2 = Relation('ac', [1, 2], lambda a, b: ord(a) - 96 == b, config=cpu_config, name='other')
    r3 = Relation('ca', [2, 1], {('a', 1)}, config=cpu_config)
    assert r1 == r2 == r3
    assert hash(r1) == hash(r2) == hash(r3)
    assert len({r1, r2, r3}) == 1

def test_inequality(cpu_config) -> None:
    r1 = Relation('ab', [1], {('a', 1)}, config=cpu_config)
    assert r1 != Relation('ab', [1], {('b', 1)}, config=cpu_config)
    assert r1 != Relation('abc', [1], {('a', 1)}, config=cpu_config)
    assert r1 != 'R'

def test_verbose_operations_report(capsys) -> None:
    from finite_relations import Config
    config = Config(device='cpu', verbose=True)
    r1 = Relation('ab', [1], {('a', 1)}, config=config, name='R')
    r2 = Relation('ab', [1], {('b', 1)}, config=config, name='S')
    union = r1 + r2
    assert union.name == '(R∪S)'
    assert 'Union: R ∪ S → (R∪S)' in capsys.readouterr().out

def test_repr(cubes) -> None:
    assert repr(cubes) == "Relation('cubes') [shape=(5, 5), device=cpu]"
    assert repr(-cubes) == "Relation('cubes⁻¹') [shape=(5, 5), device=cpu]"
