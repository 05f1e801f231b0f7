"""Exceptions raised by linqpipe pipelines.

Stages are total for any valid input and function; the conditions below are
either explicit "not found" results or violations of the cursor and pipeline
usage contracts.  Exceptions raised by user-supplied predicates and mapping
functions are never wrapped and propagate unchanged.
"""
from typing import Any
from linqpipe.util.data_manipulation import type_name


class LinqPipeError(Exception):
    """Base class for all linqpipe errors."""


class EmptySequence(LinqPipeError, LookupError):
    """Raised by ``first()`` when the sequence has no elements."""

    def __init__(self, message: str = "Sequence contains no elements"):
        super().__init__(message)


class InvalidCast(LinqPipeError, TypeError):
    """Raised by a checked cast when an element is not an instance of the target type."""

    def __init__(self, value: Any, target_type: type):
        self.value = value
        self.target_type = target_type
        super().__init__(
            f"Cannot cast {type_name(type(value))} value {value!r} to {type_name(target_type)}"
        )


class PreconditionViolation(LinqPipeError, RuntimeError):
    """Raised when a cursor is read without a preceding successful advance()."""


class PipelineConsumed(PreconditionViolation):
    """Raised when a Pipeline is used after a chaining or terminal call consumed it."""

    def __init__(self, message: str = "Pipeline has already been consumed; use the Pipeline returned by the last call"):
        super().__init__(message)
