"""
Finite Relations: analysis engine for binary relations over finite sets
"""

from .core import Config, IndexedSet, default_config
from .operations import MatrixOps
from .definitions import Definition
from .relation import Relation
from .endorelation import EndoRelation
from .exceptions import (
    RelationError,
    MatrixShapeError,
    MatrixValueError,
    RelationArgumentError,
    RelationStateError,
)

__version__ = "0.1.0"

__all__ = [
    'Config',
    'IndexedSet',
    'default_config',
    'MatrixOps',
    'Definition',
    'Relation',
    'EndoRelation',
    'RelationError',
    'MatrixShapeError',
    'MatrixValueError',
    'RelationArgumentError',
    'RelationStateError',
]

# Aliases for convenience
boolean_product = MatrixOps.boolean_product
