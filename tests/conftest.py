'''Shared fixtures for relation tests'''

import pytest

from finite_relations import Config, EndoRelation, Relation


@pytest.fixture
def cpu_config() -> Config:
    '''Configuration pinned to the numpy backend'''
    return Config(device='cpu')

@pytest.fixture
def cubes(cpu_config) -> Relation:
    '''a -> a**3 from {0..4} onto the first five cubes'''
    return Relation(range(5), [0, 1, 8, 27, 64], lambda a, b: a ** 3 == b, config=cpu_config, name='cubes')

@pytest.fixture
def congruence_mod_2(cpu_config) -> EndoRelation:
    return EndoRelation(range(10), lambda a, b: (b - a) % 2 == 0, config=cpu_config, name='mod2')

@pytest.fixture
def congruence_mod_3(cpu_config) -> EndoRelation:
    return EndoRelation(range(10), lambda a, b: (b - a) % 3 == 0, config=cpu_config, name='mod3')

@pytest.fixture
def divisibility(cpu_config) -> EndoRelation:
    '''a | b on {1..10}'''
    return EndoRelation(range(1, 11), lambda a, b: b % a == 0, config=cpu_config, name='div')

@pytest.fixture
def strict_natural_order(cpu_config) -> EndoRelation:
    return EndoRelation(range(1, 11), lambda a, b: a < b, config=cpu_config, name='lt')
