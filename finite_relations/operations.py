"""
Finite Relations Operations
Boolean matrix construction, validation and product
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union
import numpy as np

from .exceptions import MatrixShapeError, MatrixValueError

if TYPE_CHECKING:
    from .core import Config

try:
    import torch
    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False


MatrixLike = Union[np.ndarray, Sequence[Sequence[Any]]]


def _is_bit(cell) -> bool:
    try:
        return bool(cell == 0 or cell == 1)
    except (TypeError, ValueError):
        return False


class MatrixOps:
    """Boolean matrix operations container"""

    @staticmethod
    def build_matrix(rows: int, cols: int,
                     predicate: Callable[[int, int], bool]) -> np.ndarray:
        """
        Evaluate a predicate over every cell, row-major

        Args:
            rows: Number of rows
            cols: Number of columns
            predicate: Function (i, j) -> bool

        Returns:
            Boolean array of shape (rows, cols)
        """
        matrix = np.zeros((rows, cols), dtype=bool)
        for i in range(rows):
            for j in range(cols):
                matrix[i, j] = bool(predicate(i, j))
        return matrix

    @staticmethod
    def validate_matrix(matrix: MatrixLike, rows: int, cols: int) -> np.ndarray:
        """
        Check an explicit {0,1} matrix against the expected shape

        Args:
            matrix: List of rows or 2D array
            rows: Expected number of rows
            cols: Expected number of columns

        Returns:
            Boolean array copy of the matrix

        Raises:
            MatrixShapeError: not a sequence of rows, wrong row count or row length
            MatrixValueError: a cell is not 0 or 1
        """
        if isinstance(matrix, np.ndarray):
            if matrix.ndim != 2 and not (matrix.size == 0 and rows == 0):
                raise MatrixShapeError(f"Malformed matrix: expected 2 dimensions, got {matrix.ndim}")
            matrix = matrix.tolist()

        try:
            source_rows = list(matrix)
        except TypeError:
            raise MatrixShapeError("Malformed matrix: expected a sequence of rows") from None
        matrix = []
        for i, row in enumerate(source_rows):
            try:
                matrix.append(list(row))
            except TypeError:
                raise MatrixShapeError(f"Malformed matrix: row {i} is not a sequence") from None
        if len(matrix) != rows:
            raise MatrixShapeError(f"Malformed matrix: expected {rows} rows, got {len(matrix)}")
        for i, row in enumerate(matrix):
            if len(row) != cols:
                raise MatrixShapeError(
                    f"Malformed matrix: row {i} has {len(row)} columns, expected {cols}")

        for i, row in enumerate(matrix):
            for j, cell in enumerate(row):
                if not _is_bit(cell):
                    raise MatrixValueError(f"Not a {{0,1}} matrix: cell ({i}, {j}) is {cell!r}")

        result = np.zeros((rows, cols), dtype=bool)
        for i, row in enumerate(matrix):
            for j, cell in enumerate(row):
                result[i, j] = cell == 1
        return result

    @staticmethod
    def boolean_product(m1: np.ndarray, m2: np.ndarray,
                        config: Optional['Config'] = None) -> np.ndarray:
        """
        Logical matrix product: cell (i, k) is set iff some j has m1[i, j] and m2[j, k]

        Args:
            m1: Boolean array of shape (p, q)
            m2: Boolean array of shape (q, r)
            config: Configuration (device and chunk size)

        Returns:
            Boolean array of shape (p, r)
        """
        from .core import default_config

        config = config or default_config()

        if m1.ndim != 2 or m2.ndim != 2 or m1.shape[1] != m2.shape[0]:
            raise MatrixShapeError(f"Cannot multiply matrices of shapes {m1.shape} and {m2.shape}")

        if TORCH_AVAILABLE and config.use_torch:
            return MatrixOps._product_torch(m1, m2, config.device)

        if m1.shape[0] > config.chunk_size:
            return MatrixOps._product_chunked(m1, m2, config.chunk_size)

        return MatrixOps._product_single(m1, m2)

    @staticmethod
    def _product_single(m1: np.ndarray, m2: np.ndarray) -> np.ndarray:
        """Product of whole matrices"""
        # int64 so that sums of up to q ones cannot wrap around
        return (m1.astype(np.int64) @ m2.astype(np.int64)) > 0

    @staticmethod
    def _product_chunked(m1: np.ndarray, m2: np.ndarray, chunk_size: int) -> np.ndarray:
        """Product by blocks of rows of the left operand"""
        result = np.zeros((m1.shape[0], m2.shape[1]), dtype=bool)
        right = m2.astype(np.int64)

        for i in range(0, m1.shape[0], chunk_size):
            i_end = min(i + chunk_size, m1.shape[0])
            result[i:i_end] = (m1[i:i_end].astype(np.int64) @ right) > 0

        return result

    @staticmethod
    def _product_torch(m1: np.ndarray, m2: np.ndarray, device: str) -> np.ndarray:
        """Product on a torch device"""
        left = torch.tensor(m1, dtype=torch.float32, device=device)
        right = torch.tensor(m2, dtype=torch.float32, device=device)
        with torch.no_grad():
            product = left @ right
        return (product > 0).cpu().numpy()
