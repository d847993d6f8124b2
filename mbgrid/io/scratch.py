"""
Scratch storage for staged block data.

Each store is a spooled temporary file: it stays in memory up to a size
threshold and spills to an anonymous file on disk beyond it. Stores are
opened, written, rewound, read back and closed; an arena groups the
stores of one run and closes all of them when the run ends, whether it
succeeds or fails.
"""

import tempfile
from contextlib import ExitStack
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

DEFAULT_SPOOL_BYTES = 8 * 1024 * 1024

StoreKey = Tuple[str, int, int]


class ScratchStore:
    """One spill-to-disk buffer holding arrays or text lines."""
    
    def __init__(self, name: str = '', max_size: int = DEFAULT_SPOOL_BYTES,
                 directory: Optional[str] = None):
        self.name = name
        self._buffer = tempfile.SpooledTemporaryFile(
            max_size=max_size, mode='w+b', dir=directory
        )
    
    def write_array(self, array: np.ndarray) -> None:
        np.save(self._buffer, np.asarray(array), allow_pickle=False)
    
    def read_array(self) -> np.ndarray:
        """Next array, in the order they were written."""
        return np.load(self._buffer, allow_pickle=False)
    
    def write_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self._buffer.write((line.rstrip('\n') + '\n').encode('utf-8'))
    
    def read_lines(self) -> List[str]:
        """All text from the current position."""
        return self._buffer.read().decode('utf-8').splitlines()
    
    def rewind(self) -> None:
        self._buffer.seek(0)
    
    @property
    def closed(self) -> bool:
        return self._buffer.closed
    
    def close(self) -> None:
        self._buffer.close()
    
    def __enter__(self) -> 'ScratchStore':
        return self
    
    def __exit__(self, *exc) -> None:
        self.close()
    
    def __repr__(self) -> str:
        return f"ScratchStore({self.name!r})"


class ScratchArena:
    """
    Scratch stores of one run, keyed by (kind, block, level).
    
    Kinds used by the pipeline: 'mesh', 'bc', 'state' and 'topology'
    (level 0, ICEM topology text).
    """
    
    def __init__(self, max_size: int = DEFAULT_SPOOL_BYTES,
                 directory: Optional[str] = None):
        self.max_size = max_size
        self.directory = directory
        self._stack = ExitStack()
        self._stores: Dict[StoreKey, ScratchStore] = {}
    
    def store(self, kind: str, block: int, level: int = 0) -> ScratchStore:
        """Store for a key, created empty on first use."""
        key = (kind, block, level)
        if key not in self._stores:
            store = ScratchStore(f"{kind}.b{block:03d}.l{level:02d}",
                                 self.max_size, self.directory)
            self._stores[key] = self._stack.enter_context(store)
        return self._stores[key]
    
    def __contains__(self, key: StoreKey) -> bool:
        return key in self._stores
    
    def __len__(self) -> int:
        return len(self._stores)
    
    def release(self, kind: str, block: int, level: int = 0) -> None:
        """Close one store once its contents are consumed."""
        store = self._stores.pop((kind, block, level), None)
        if store is not None:
            store.close()
    
    def close(self) -> None:
        self._stores.clear()
        self._stack.close()
    
    def __enter__(self) -> 'ScratchArena':
        return self
    
    def __exit__(self, *exc) -> None:
        self.close()
