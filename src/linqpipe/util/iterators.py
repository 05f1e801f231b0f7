from typing import Any, Generic, Iterable, Iterator, TypeVar
from linqpipe.pipe.cursor import Cursor

T = TypeVar('T')

_UNSET = object()


class IterableCursor(Cursor[T]):
    """Cursor over any Python iterable.

    ``iter()`` is taken on the first advance(), so wrapping an iterable does
    no work.  Elements are the iterator's own objects; nothing is copied.
    """

    def __init__(self, iterable: Iterable[T]):
        super().__init__()
        self._iterable = iterable
        self._iterator = None
        self._value = _UNSET

    def _advance(self) -> bool:
        if self._iterator is None:
            self._iterator = iter(self._iterable)
        try:
            self._value = next(self._iterator)
        except StopIteration:
            self._value = _UNSET
            return False
        return True

    def _current(self) -> T:
        return None if self._value is _UNSET else self._value


class CursorIterator(Iterator[T], Generic[T]):
    """Python iterator driving a cursor, one advance() and one current() per element."""

    def __init__(self, cursor: Cursor[T]):
        self._cursor = cursor

    def __iter__(self) -> 'CursorIterator[T]':
        return self

    def __next__(self) -> T:
        if not self._cursor.advance():
            raise StopIteration
        return self._cursor.current()


def as_cursor(obj: Any) -> Cursor:
    """Return obj itself if it already is a Cursor, otherwise an IterableCursor over it."""
    if isinstance(obj, Cursor):
        return obj
    return IterableCursor(obj)
