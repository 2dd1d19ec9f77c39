from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple


@dataclass(eq=False)
class ZmesParameter:
    """One named node of a parsed .zmes parameter tree.

    ``value`` is ``None`` when the node carries no value. Node names are not
    unique, neither among siblings nor across the tree.
    """

    name: str
    value: Any = None
    children: Tuple["ZmesParameter", ...] = field(default_factory=tuple)


@dataclass(eq=False)
class ZmesRecord:
    guid: str
    parameters: ZmesParameter


@dataclass(eq=False)
class ZmesFile:
    records: List[ZmesRecord] = field(default_factory=list)


def find_parameter(children: Sequence[ZmesParameter], name: str) -> Optional[ZmesParameter]:
    """Return the first of ``children`` called ``name`` (descendants are not searched)."""

    for child in children:
        if child.name == name:
            return child
    return None


def iter_parameters(root: ZmesParameter) -> Iterator[ZmesParameter]:
    """Yield ``root`` and its descendants depth-first, in document order."""

    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if node.children:
            stack.extend(reversed(node.children))


def find_parameter_deep(root: ZmesParameter, name: str) -> Optional[ZmesParameter]:
    """Return the first node called ``name`` in pre-order, starting with ``root``."""

    for node in iter_parameters(root):
        if node.name == name:
            return node
    return None


def _field(source: Any, key: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(key, default)
    return getattr(source, key, default)


def _has_field(source: Any, key: str) -> bool:
    if isinstance(source, Mapping):
        return key in source
    return hasattr(source, key)


def _shallow_parameter(source: Any) -> Tuple[ZmesParameter, Sequence[Any]]:
    if not _has_field(source, "name"):
        raise ValueError(f"Parameter node has no name: {type(source).__name__}")
    name = _field(source, "name")
    if not isinstance(name, str):
        raise ValueError(f"Parameter name must be a string, got {type(name).__name__}")
    children = _field(source, "children") or ()
    if isinstance(children, (str, bytes, Mapping)):
        raise ValueError(f"Children of parameter '{name}' must be a sequence")
    return ZmesParameter(name=name, value=_field(source, "value")), children


def coerce_parameter(source: Any) -> ZmesParameter:
    """Convert a parser node (mapping or attribute object) into a ``ZmesParameter``.

    Nodes are converted with an explicit stack, so tree depth is not bounded
    by the interpreter recursion limit.
    """

    if isinstance(source, ZmesParameter):
        return source
    root, child_sources = _shallow_parameter(source)
    pending = [(root, child_sources)]
    while pending:
        parameter, child_sources = pending.pop()
        children = []
        for child_source in child_sources:
            if isinstance(child_source, ZmesParameter):
                children.append(child_source)
                continue
            child, grandchildren = _shallow_parameter(child_source)
            children.append(child)
            pending.append((child, grandchildren))
        parameter.children = tuple(children)
    return root


def coerce_record(source: Any) -> ZmesRecord:
    if isinstance(source, ZmesRecord):
        return source
    guid = _field(source, "guid")
    parameters = _field(source, "parameters")
    if parameters is None:
        raise ValueError("Record has no parameter tree")
    return ZmesRecord(guid="" if guid is None else str(guid), parameters=coerce_parameter(parameters))


def coerce_zmes_file(source: Any) -> ZmesFile:
    """Normalise whatever the external parser returned into a ``ZmesFile``."""

    if isinstance(source, ZmesFile):
        return source
    if not _has_field(source, "records"):
        raise ValueError("Parsed .zmes content has no records")
    records = _field(source, "records") or []
    if isinstance(records, (str, bytes, Mapping)):
        raise ValueError("Parsed .zmes records must be a sequence")
    return ZmesFile(records=[coerce_record(record) for record in records])
