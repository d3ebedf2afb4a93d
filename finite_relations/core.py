"""
Finite Relations Core Module
Configuration and indexed sets
"""

import warnings
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional
import numpy as np

try:
    import torch
    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False
    warnings.warn("PyTorch not found. GPU boolean product disabled.")


class Config:
    """Configuration manager for relation analysis"""

    def __init__(self, device: str = 'auto', chunk_size: int = 1024,
                 verbose: bool = False):
        """
        Initialize configuration

        Args:
            device: 'auto', 'cpu', 'cuda', or 'mps'
            chunk_size: Rows of the left operand per boolean product block
            verbose: Enable verbose output
        """
        self.verbose = verbose

        # Device selection
        if device == 'auto':
            if TORCH_AVAILABLE and torch.cuda.is_available():
                self.device = 'cuda'
            elif TORCH_AVAILABLE and hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
                self.device = 'mps'
            else:
                self.device = 'cpu'
        else:
            self.device = device

        if not isinstance(chunk_size, int) or chunk_size <= 0:
            raise ValueError(f"chunk_size must be a positive integer, got {chunk_size!r}")
        self.chunk_size = chunk_size

        self.use_torch = TORCH_AVAILABLE and self.device != 'cpu'

        if self.verbose:
            self.print_config()

    def print_config(self):
        """Print current configuration"""
        print("Finite Relations Configuration:")
        print(f"  Device: {self.device}")
        if TORCH_AVAILABLE and self.device == 'cuda':
            print(f"  GPU: {torch.cuda.get_device_name(0)}")
        print(f"  Torch backend: {self.use_torch}")
        print(f"  Chunk size: {self.chunk_size}")
        print("-" * 50)

    def __repr__(self) -> str:
        return f"Config(device={self.device!r}, chunk_size={self.chunk_size}, verbose={self.verbose})"


_default_config: Optional[Config] = None


def default_config() -> Config:
    """Shared configuration for relations built without an explicit one"""
    global _default_config
    if _default_config is None:
        _default_config = Config()
    return _default_config


class IndexedSet:
    """
    Finite set with a fixed iteration order

    Elements keep the order in which they were first supplied; duplicates are
    dropped. Each element's index is its position in that order, looked up
    through a dict built once at construction.
    """

    def __init__(self, elements: Iterable[Hashable]):
        self._index: Dict[Any, int] = {}
        for element in elements:
            if element not in self._index:
                self._index[element] = len(self._index)
        self._elements = tuple(self._index)
        self._frozen = frozenset(self._elements)

    @classmethod
    def of(cls, elements: Iterable[Hashable]) -> 'IndexedSet':
        """Return `elements` unchanged if already indexed, else index them"""
        if isinstance(elements, IndexedSet):
            return elements
        return cls(elements)

    @property
    def elements(self) -> List[Any]:
        """Elements in canonical order"""
        return list(self._elements)

    @property
    def frozen(self) -> frozenset:
        """Elements as an unordered frozenset"""
        return self._frozen

    @property
    def cardinal(self) -> int:
        return len(self._elements)

    def index(self, element: Hashable) -> int:
        """
        Get index of an element

        Raises:
            KeyError: if the element does not belong to the set
        """
        try:
            return self._index[element]
        except KeyError:
            raise KeyError(f"{element!r} is not an element of the set") from None

    def index_of(self, element: Hashable) -> int:
        """Get index of an element, or -1 if it does not belong to the set"""
        return self._index.get(element, -1)

    def positions(self, elements: Iterable[Hashable]) -> np.ndarray:
        """Indices of several elements, as an integer array"""
        return np.fromiter((self.index(e) for e in elements), dtype=np.intp)

    def element(self, index: int):
        return self._elements[index]

    def issubset(self, other: Iterable[Hashable]) -> bool:
        return self._frozen.issubset(other)

    def issuperset(self, other: Iterable[Hashable]) -> bool:
        return self._frozen.issuperset(other)

    def __contains__(self, element) -> bool:
        try:
            return element in self._index
        except TypeError:
            return False

    def __iter__(self) -> Iterator[Any]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __eq__(self, other) -> bool:
        if isinstance(other, IndexedSet):
            return self._frozen == other._frozen
        if isinstance(other, (set, frozenset)):
            return self._frozen == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._frozen)

    def __repr__(self) -> str:
        return f"IndexedSet({list(self._elements)!r})"
