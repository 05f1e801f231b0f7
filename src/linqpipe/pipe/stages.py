"""Stage combinators for linqpipe pipelines.

Each stage wraps exactly one upstream cursor, applies one transformation and
is itself a cursor, so stages chain without intermediate collections.  No
stage does any work until something calls its advance().
"""
from typing import Any, Callable, Iterable, Optional, TypeVar, TYPE_CHECKING
from linqpipe.errors import InvalidCast
from linqpipe.pipe.cursor import AbstractStage, Cursor
from linqpipe.util.iterators import CursorIterator, as_cursor

if TYPE_CHECKING:
    from linqpipe.pipe.core import AbstractSegment

T = TypeVar('T')
U = TypeVar('U')


class Filter(AbstractStage[T, T]):
    """Yields the upstream elements for which the predicate holds, in order.

    The predicate runs exactly once per upstream element.  The element that
    passed is kept by the stage, so current() does not read upstream again.
    """

    def __init__(self, upstream: Cursor[T], predicate: Callable[[T], bool]):
        super().__init__(upstream)
        self.predicate = predicate
        self._value = None

    def _advance(self) -> bool:
        while self.upstream.advance():
            value = self.upstream.current()
            if self.predicate(value):
                self._value = value
                return True
        self._value = None
        return False

    def _current(self) -> T:
        return self._value


class Transform(AbstractStage[T, U]):
    """Maps each upstream element through ``selector``.

    The selector is applied on every current() call and its result is not
    cached, so it should be cheap and pure.
    """

    def __init__(self, upstream: Cursor[T], selector: Callable[[T], U]):
        super().__init__(upstream)
        self.selector = selector

    def _advance(self) -> bool:
        return self.upstream.advance()

    def _current(self) -> U:
        return self.selector(self.upstream.current())


class Flatten(AbstractStage[T, U]):
    """Select-many: maps each upstream element to a sub-sequence and yields its elements.

    Order is outer-major, inner-minor.  The selector may return any iterable
    or a Cursor.  Elements that map to an empty sub-sequence contribute
    nothing and do not end the sequence.
    """

    def __init__(self, upstream: Cursor[T], selector: Callable[[T], Iterable[U]]):
        super().__init__(upstream)
        self.selector = selector
        self._inner: Optional[Cursor[U]] = None

    def _advance(self) -> bool:
        if self._inner is not None and self._inner.advance():
            return True
        while self.upstream.advance():
            self._inner = as_cursor(self.selector(self.upstream.current()))
            if self._inner.advance():
                return True
        self._inner = None
        return False

    def _current(self) -> U:
        return self._inner.current()


class Take(AbstractStage[T, T]):
    """Yields at most ``count`` upstream elements.

    Once the count is used up upstream is not touched again, so the n-th
    element is the last one pulled.
    """

    def __init__(self, upstream: Cursor[T], count: int):
        super().__init__(upstream)
        self.remaining = count

    def _advance(self) -> bool:
        if self.remaining == 0:
            return False
        self.remaining -= 1
        return self.upstream.advance()

    def _current(self) -> T:
        return self.upstream.current()


class Skip(AbstractStage[T, T]):
    """Discards the first ``count`` upstream elements.

    The discarding happens once, on the first advance().
    """

    def __init__(self, upstream: Cursor[T], count: int):
        super().__init__(upstream)
        self.count = count
        self._skipped = False

    def _advance(self) -> bool:
        if not self._skipped:
            self._skipped = True
            for _ in range(self.count):
                if not self.upstream.advance():
                    return False
        return self.upstream.advance()

    def _current(self) -> T:
        return self.upstream.current()


class Cast(AbstractStage[Any, U]):
    """Coerces each upstream element to ``target_type``.

    Unchecked (default): values whose type is exactly the target pass through
    untouched and anything else, subclass instances included, is converted
    with ``target_type(value)``, so ``cast(int)`` turns True into 1.  The caller
    vouches that the conversion makes sense; whatever the constructor raises
    for a value it cannot handle propagates as is.

    Checked: instances of the target, subclasses included, pass through
    untouched and anything else raises InvalidCast when it is read.
    """

    def __init__(self, upstream: Cursor[Any], target_type: type, checked: bool = False):
        super().__init__(upstream)
        self.target_type = target_type
        self.checked = checked

    def _advance(self) -> bool:
        return self.upstream.advance()

    def _current(self) -> U:
        value = self.upstream.current()
        if self.checked:
            if isinstance(value, self.target_type):
                return value
            raise InvalidCast(value, self.target_type)
        if type(value) is self.target_type:
            return value
        return self.target_type(value)


class SegmentStage(AbstractStage[T, U]):
    """Runs a user-defined segment over the upstream cursor.

    The segment sees upstream as a Python iterator.  Its transform() is only
    called on the first advance(), and from then on elements are pulled
    through it one at a time.
    """

    def __init__(self, upstream: Cursor[T], segment: 'AbstractSegment[T, U]'):
        super().__init__(upstream)
        self.segment = segment
        self._inner: Optional[Cursor[U]] = None

    def _advance(self) -> bool:
        if self._inner is None:
            self._inner = as_cursor(self.segment.transform(CursorIterator(self.upstream)))
        return self._inner.advance()

    def _current(self) -> U:
        return self._inner.current()
