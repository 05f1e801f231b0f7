"""The pull-based cursor protocol every pipeline stage implements.

A cursor is a single-pass, single-owner sequence with two operations:

    advance() -> bool   move to the next element; False once exhausted
    current() -> T      the element at the current position

The first advance() positions the cursor on the first element; there is no
"before the start" element for stages to compare against.  Stages pull their
upstream with these two calls only, at most once each per logical step, and
never from inside a comparison.

Cursors are not safe to share between threads: advance() mutates position
state and nothing guards it.
"""
from abc import ABC, abstractmethod
from typing import Generic, TypeVar
from linqpipe.errors import PreconditionViolation
from linqpipe.util.config import strict_cursors

T = TypeVar('T')
U = TypeVar('U')

_BEFORE_START = 0
_POSITIONED = 1
_EXHAUSTED = 2
_FAILED = 3


class Cursor(ABC, Generic[T]):
    """Abstract base class for cursors.

    Subclasses implement ``_advance()`` and ``_current()``.  The public
    ``advance()`` and ``current()`` wrap them and enforce the protocol:

    - Exhaustion is permanent.  Once ``_advance()`` has returned False it is
      never called again and ``advance()`` keeps returning False.
    - ``current()`` is valid only after ``advance()`` returned True and before
      the next ``advance()``, and not after an ``advance()`` that raised.
      Reading it at any other time raises PreconditionViolation when the
      ``strict_cursors`` setting is on (the default).  With the setting off
      the check is skipped and the result is undefined: it may be a stale
      element, None, or an exception from the subclass.
    """

    def __init__(self):
        self._state = _BEFORE_START
        self._strict = strict_cursors()

    @abstractmethod
    def _advance(self) -> bool:
        """Move to the next element.  Called at most once per advance()."""

    @abstractmethod
    def _current(self) -> T:
        """Return the element at the current position."""

    def advance(self) -> bool:
        if self._state == _EXHAUSTED:
            return False
        # Stays failed if _advance() raises
        self._state = _FAILED
        if self._advance():
            self._state = _POSITIONED
            return True
        self._state = _EXHAUSTED
        return False

    def current(self) -> T:
        if self._strict and self._state != _POSITIONED:
            if self._state == _EXHAUSTED:
                raise PreconditionViolation(f"current() called on exhausted {self.__class__.__name__}")
            if self._state == _FAILED:
                raise PreconditionViolation(f"current() called on {self.__class__.__name__} after a failed advance()")
            raise PreconditionViolation(f"current() called on {self.__class__.__name__} before advance()")
        return self._current()

    @property
    def exhausted(self) -> bool:
        return self._state == _EXHAUSTED


class AbstractStage(Cursor[U], Generic[T, U]):
    """A cursor that exclusively owns one upstream cursor.

    The upstream cursor is handed over at construction; after that only the
    stage pulls from it.
    """

    def __init__(self, upstream: Cursor[T]):
        super().__init__()
        if not isinstance(upstream, Cursor):
            raise TypeError(f"upstream must be a Cursor, got {type(upstream).__name__}")
        self.upstream = upstream
