"""Helpers for resolving and describing the types flowing through a pipeline."""
import importlib
from typing import Any, Optional, Union


def get_type_safely(type_name: str) -> Optional[type]:
    """Get a type by name, handling module imports.

    Plain names resolve against builtins; dotted names such as
    ``decimal.Decimal`` or ``collections.OrderedDict`` import the module part.
    Returns None when the name cannot be resolved.
    """
    module = "builtins"
    if "." in type_name:
        module, type_name = type_name.rsplit(".", 1)
    try:
        imported_module = importlib.import_module(module)
        found = getattr(imported_module, type_name)
    except (ImportError, AttributeError):
        return None
    return found if isinstance(found, type) else None


def resolve_type(type_or_name: Union[type, str]) -> type:
    """Accept either a type or a type name; raise ValueError when neither resolves."""
    if isinstance(type_or_name, type):
        return type_or_name
    if isinstance(type_or_name, str):
        resolved = get_type_safely(type_or_name)
        if resolved is None:
            raise ValueError(f"Unknown type '{type_or_name}'")
        return resolved
    raise TypeError(f"Expected a type or a type name, got {type(type_or_name).__name__}")


def type_name(t: Any) -> str:
    return getattr(t, "__qualname__", None) or getattr(t, "__name__", None) or repr(t)
