"""
Error taxonomy for finite relations
"""


class RelationError(Exception):
    """Base class for all relation errors"""


class MatrixShapeError(RelationError, ValueError):
    """Explicit matrix does not match the cardinals of its sets"""


class MatrixValueError(RelationError, ValueError):
    """Explicit matrix has a cell outside {0, 1}"""


class RelationArgumentError(RelationError, ValueError):
    """Operands are defined over incompatible sets"""


class RelationStateError(RelationError, RuntimeError):
    """Relation is not of the kind required by the query"""
