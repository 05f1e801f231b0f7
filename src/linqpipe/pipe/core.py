"""Core definitions for linqpipe

This module contains the Pipeline class, which chains stages over a cursor
and runs terminal operations, and the AbstractSegment base class and
segment decorator for plugging user-defined operations into a pipeline.
"""
import logging
from abc import ABC, abstractmethod
from typing import (
    Any, Callable, Generic, Iterable, Iterator, List, Optional, Set, Tuple,
    Type, TypeVar, Union, Annotated
)
from linqpipe.errors import EmptySequence, PipelineConsumed
from linqpipe.pipe import stages
from linqpipe.pipe.cursor import Cursor
from linqpipe.util.data_manipulation import resolve_type
from linqpipe.util.iterators import CursorIterator

logger = logging.getLogger(__name__)

T = TypeVar('T')
U = TypeVar('U')

_MISSING = object()


class AbstractSegment(ABC, Generic[T, U]):
    """Abstract base class for user-defined pipeline segments.

    A segment is an operation over a whole stream: it receives an iterator
    of input items and returns an iterable of output items.  Input and
    output counts may differ.  Segments join a pipeline with ``|`` or
    ``Pipeline.apply``:

        pipeline = query(lines).where(bool) | dedupe() | numbered(start=1)

    Inside a pipeline the segment stays lazy.  transform() is called when
    the first element is pulled, and the input iterator drives the upstream
    cursor one element at a time.
    """

    @abstractmethod
    def transform(self, items: Annotated[Iterator[T], "An iterator of input items to process"]) -> Iterable[U]:
        """Transform input items into output items.

        Implementations should usually be generators so output is produced
        on demand.  The segment may stop consuming ``items`` early.

        Examples:
            # Expanding
            def transform(self, items):
                for item in items:
                    yield item
                    yield item * 2
        """

    def bind(self, upstream: Cursor[T]) -> Cursor[U]:
        """Wrap ``upstream`` in a stage that runs this segment."""
        return stages.SegmentStage(upstream, self)

    def __call__(self, items: Iterable[T] = None) -> Iterator[U]:
        """Run the segment directly over a plain iterable."""
        logger.debug(f"Running segment {self.__class__.__name__}")
        if items is None:
            items = []
        return iter(self.transform(iter(items)))


def segment(*decorator_args: Annotated[Any, "Positional arguments for the segment"],
            **decorator_kwargs: Annotated[Any, "Keyword arguments for the segment"]):
    """Decorator to convert a generator function into a segment class.

    Can be used with or without arguments:

        # Without arguments - the function takes only the items
        @segment
        def dedupe(items):
            seen = set()
            for item in items:
                if item not in seen:
                    seen.add(item)
                    yield item

        # With arguments - extra parameters become constructor parameters,
        # and decorator keyword arguments become their defaults
        @segment(start=0)
        def numbered(items, start: int):
            for i, item in enumerate(items, start):
                yield (i, item)

    Returns:
        A segment class.  Instantiate it and apply it to a pipeline:

            query(words) | dedupe() | numbered(start=1)
    """
    if len(decorator_args) == 1 and callable(decorator_args[0]) and not decorator_kwargs:
        func = decorator_args[0]

        class FunctionSegment(AbstractSegment[T, U]):

            def __init__(self):
                super().__init__()

            def transform(self, items: Iterator[T]) -> Iterable[U]:
                return func(items)

        FunctionSegment.__name__ = f"{func.__name__}Segment"
        FunctionSegment.__qualname__ = FunctionSegment.__name__
        FunctionSegment.__doc__ = func.__doc__
        return FunctionSegment

    def decorator(func: Callable[..., Iterable[U]]) -> Type[AbstractSegment[T, U]]:
        class ParameterizedSegment(AbstractSegment[T, U]):
            def __init__(self, *init_args, **init_kwargs):
                """Constructor arguments take precedence over decorator arguments."""
                super().__init__()
                merged_kwargs = {**decorator_kwargs, **init_kwargs}
                self._func = lambda items: func(items, *init_args, **merged_kwargs)

            def transform(self, items: Iterator[T]) -> Iterable[U]:
                return self._func(items)

        ParameterizedSegment.__name__ = f"{func.__name__}Segment"
        ParameterizedSegment.__qualname__ = ParameterizedSegment.__name__
        ParameterizedSegment.__doc__ = func.__doc__
        return ParameterizedSegment

    return decorator


def _check_count(count: int, name: str):
    if isinstance(count, bool) or not isinstance(count, int):
        raise TypeError(f"{name} count must be an int, got {type(count).__name__}")
    if count < 0:
        raise ValueError(f"{name} count must be >= 0, got {count}")


class Pipeline(Generic[T]):
    """A lazy query over a cursor.

    Chaining methods (where, select, select_many, take, skip, cast, apply)
    only compose stages; nothing is pulled and no user function runs until
    a terminal operation (to_list, for_each, any, all, first, ...) or
    iteration drives the chain.

    Every chaining or terminal call consumes the pipeline it is called on.
    Keep the returned Pipeline and drop the old one; touching a consumed
    pipeline raises PipelineConsumed:

        evens = query(numbers).where(lambda n: n % 2 == 0)
        result = evens.select(str).to_list()

    A pipeline must not be pulled from more than one thread.

    Attributes:
        element_type: Optional hint for the type of element at the end of
            the chain.  Set by entry points when given and by cast(); used by
            first_or_default() to build a zero value.
    """

    def __init__(self, cursor: Cursor[T], element_type: Optional[type] = None):
        if not isinstance(cursor, Cursor):
            raise TypeError(f"Pipeline requires a Cursor, got {type(cursor).__name__}")
        self._cursor = cursor
        self.element_type = element_type

    @property
    def consumed(self) -> bool:
        return self._cursor is None

    def _take_cursor(self) -> Cursor[T]:
        if self._cursor is None:
            raise PipelineConsumed()
        cursor, self._cursor = self._cursor, None
        return cursor

    def _chain(self, stage: Callable[[Cursor[T]], Cursor[U]], name: str,
               element_type: Optional[type] = None) -> 'Pipeline[U]':
        cursor = self._take_cursor()
        logger.debug(f"Chaining stage {name}")
        return Pipeline(stage(cursor), element_type=element_type)

    def _start(self, name: str) -> Cursor[T]:
        cursor = self._take_cursor()
        logger.debug(f"Running terminal {name}")
        return cursor

    # --------- chaining ----------

    def where(self, predicate: Callable[[T], bool]) -> 'Pipeline[T]':
        """Keep the elements for which predicate returns True."""
        return self._chain(lambda c: stages.Filter(c, predicate), "Filter", self.element_type)

    def select(self, selector: Callable[[T], U]) -> 'Pipeline[U]':
        """Map every element through selector."""
        return self._chain(lambda c: stages.Transform(c, selector), "Transform")

    def select_many(self, selector: Callable[[T], Iterable[U]]) -> 'Pipeline[U]':
        """Map every element to an iterable and yield the iterables' elements in order."""
        return self._chain(lambda c: stages.Flatten(c, selector), "Flatten")

    def take(self, count: int) -> 'Pipeline[T]':
        """Yield at most the first count elements."""
        _check_count(count, "take")
        return self._chain(lambda c: stages.Take(c, count), "Take", self.element_type)

    def skip(self, count: int) -> 'Pipeline[T]':
        """Drop the first count elements."""
        _check_count(count, "skip")
        return self._chain(lambda c: stages.Skip(c, count), "Skip", self.element_type)

    def cast(self, target_type: Union[type, str], checked: bool = False) -> 'Pipeline[Any]':
        """Coerce every element to target_type.

        Args:
            target_type: A type, or a type name such as "int" or "decimal.Decimal".
            checked: If False, convert non-instances with target_type(value).
                If True, raise InvalidCast for non-instances when they are read.
        """
        resolved = resolve_type(target_type)
        return self._chain(lambda c: stages.Cast(c, resolved, checked), "Cast", resolved)

    def apply(self, seg: AbstractSegment[T, U]) -> 'Pipeline[U]':
        """Run a user-defined segment over this pipeline's elements."""
        if not isinstance(seg, AbstractSegment):
            raise TypeError(f"apply() expects an AbstractSegment, got {type(seg).__name__}")
        return self._chain(seg.bind, seg.__class__.__name__)

    def __or__(self, other: AbstractSegment[T, U]) -> 'Pipeline[U]':
        """Allows chaining segments using the | (or) operator."""
        if not isinstance(other, AbstractSegment):
            return NotImplemented
        return self.apply(other)

    # --------- terminal operations ----------

    def __iter__(self) -> Iterator[T]:
        return CursorIterator(self._start("__iter__"))

    def for_each(self, action: Callable[[T], Any]) -> None:
        """Call action on every element in order."""
        cursor = self._start("for_each")
        while cursor.advance():
            action(cursor.current())
        logger.debug("Finished terminal for_each")

    def to(self, target):
        """Insert every element into target and return it.

        Elements are inserted with ``target.add`` when it exists (sets and
        set-like containers) and ``target.append`` otherwise.

        Raises:
            TypeError: If target has neither method.  Nothing is pulled.
        """
        insert = getattr(target, "add", None)
        if insert is None:
            insert = getattr(target, "append", None)
        if insert is None:
            raise TypeError(f"Cannot insert into {type(target).__name__}: it has no add() or append()")
        cursor = self._start("to")
        while cursor.advance():
            insert(cursor.current())
        logger.debug(f"Finished terminal to, inserted into {type(target).__name__}")
        return target

    def to_list(self) -> List[T]:
        return list(self._drain("to_list"))

    def to_tuple(self) -> Tuple[T, ...]:
        return tuple(self._drain("to_tuple"))

    def to_set(self) -> Set[T]:
        return set(self._drain("to_set"))

    def to_sorted_set(self, key: Optional[Callable[[T], Any]] = None) -> List[T]:
        """Deduplicate the elements and return them sorted.

        Equal elements collapse to one (elements must be hashable); the
        result is ordered by the elements themselves or by ``key``.
        """
        return sorted(set(self._drain("to_sorted_set")), key=key)

    def _drain(self, name: str) -> Iterator[T]:
        cursor = self._start(name)
        while cursor.advance():
            yield cursor.current()
        logger.debug(f"Finished terminal {name}")

    def any(self, predicate: Optional[Callable[[T], bool]] = None) -> bool:
        """True if any element satisfies predicate, or if there is any element at all.

        Stops at the first match.  Without a predicate exactly one element
        is pulled.
        """
        cursor = self._start("any")
        if predicate is None:
            return cursor.advance()
        while cursor.advance():
            if predicate(cursor.current()):
                return True
        return False

    def all(self, predicate: Callable[[T], bool]) -> bool:
        """True unless some element fails predicate.  Empty sequences return True."""
        cursor = self._start("all")
        while cursor.advance():
            if not predicate(cursor.current()):
                return False
        return True

    def first(self) -> T:
        """Return the first element.

        Raises:
            EmptySequence: If there are no elements.
        """
        cursor = self._start("first")
        if not cursor.advance():
            raise EmptySequence()
        return cursor.current()

    def first_or_default(self, default: Any = _MISSING, *,
                         default_factory: Optional[Callable[[], T]] = None) -> T:
        """Return the first element, or a default when there is none.

        The found element is returned as is, never copied.  When the
        sequence is empty the result is, in order of preference:

        - ``default`` itself (the same object, not a copy);
        - ``default_factory()``, called exactly once;
        - ``element_type()``, the zero value of the element type hint;
        - None.

        default_factory is never called when an element exists, so an
        expensive default costs nothing on the found path.

        Raises:
            ValueError: If both default and default_factory are given.
        """
        if default is not _MISSING and default_factory is not None:
            raise ValueError("Pass either default or default_factory, not both")
        element_type = self.element_type
        cursor = self._start("first_or_default")
        if cursor.advance():
            return cursor.current()
        if default is not _MISSING:
            return default
        if default_factory is not None:
            return default_factory()
        if element_type is not None:
            return element_type()
        return None
