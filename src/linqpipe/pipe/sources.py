"""Entry points that wrap a concrete container into a Pipeline.

Sources are held by reference for the life of the pipeline; no snapshot is
taken.  Changing a source while a pipeline over it is being pulled is
undefined.
"""
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Iterable, Optional, TypeVar
from linqpipe.pipe.core import Pipeline
from linqpipe.pipe.cursor import Cursor
from linqpipe.util.iterators import IterableCursor

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SequenceCursor(Cursor[T]):
    """Index-based cursor over a sequence or buffer.

    current() returns ``sequence[i]`` directly, so for containers of mutable
    objects the caller sees the very objects stored in the source.  When
    ``length`` is None the sequence's current len() bounds the walk.
    """

    def __init__(self, sequence: Any, length: Optional[int] = None):
        super().__init__()
        self._sequence = sequence
        self._length = length
        self._index = -1

    def _advance(self) -> bool:
        self._index += 1
        limit = len(self._sequence) if self._length is None else self._length
        return self._index < limit

    def _current(self) -> T:
        return self._sequence[self._index]


def _is_indexable(obj: Any) -> bool:
    # Mappings index by key, not position
    if isinstance(obj, Mapping):
        return False
    return hasattr(obj, "__getitem__") and hasattr(obj, "__len__")


def from_iterable(source: Iterable[T], element_type: Optional[type] = None) -> Pipeline[T]:
    """Start a pipeline over any finite iterable, in its iteration order."""
    logger.debug(f"Creating pipeline over iterable {type(source).__name__}")
    return Pipeline(IterableCursor(source), element_type=element_type)


def from_sequence(sequence: Any, element_type: Optional[type] = None) -> Pipeline[T]:
    """Start a pipeline over an indexable sequence (list, tuple, array.array, range, ...).

    Raises:
        TypeError: If sequence does not support len() and indexing.
    """
    if not _is_indexable(sequence):
        raise TypeError(f"from_sequence() needs an indexable sequence, got {type(sequence).__name__}")
    logger.debug(f"Creating pipeline over sequence {type(sequence).__name__}")
    return Pipeline(SequenceCursor(sequence), element_type=element_type)


def from_buffer(buffer: Any, length: int, element_type: Optional[type] = None) -> Pipeline[T]:
    """Start a pipeline over the first ``length`` items of a buffer.

    Works with anything indexable, e.g. memoryview, bytearray, array.array or
    a numpy array.  Nothing is copied.

    Raises:
        TypeError: If buffer is not indexable or length is not an int.
        ValueError: If length is negative or larger than the buffer.
    """
    if not _is_indexable(buffer):
        raise TypeError(f"from_buffer() needs an indexable buffer, got {type(buffer).__name__}")
    if isinstance(length, bool) or not isinstance(length, int):
        raise TypeError(f"length must be an int, got {type(length).__name__}")
    if length < 0 or length > len(buffer):
        raise ValueError(f"length {length} out of range for buffer of {len(buffer)} items")
    logger.debug(f"Creating pipeline over {length} items of {type(buffer).__name__}")
    return Pipeline(SequenceCursor(buffer, length), element_type=element_type)


def query(source: Iterable[T], element_type: Optional[type] = None) -> Pipeline[T]:
    """Start a pipeline over ``source``.

    Sequences are walked by index; any other iterable is walked with iter().
    """
    if isinstance(source, Sequence):
        return from_sequence(source, element_type=element_type)
    return from_iterable(source, element_type=element_type)


from_ = query
