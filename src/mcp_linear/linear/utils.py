"""Helpers shared by the Linear domain mixins."""

from collections.abc import Iterable
from typing import Protocol, TypeVar

from ..exceptions import MCPLinearNotFoundError


class _Named(Protocol):
    name: str


N = TypeVar("N", bound=_Named)


def find_by_name(
    items: Iterable[N], name: str, kind: str, scope: str | None = None
) -> N:
    """Return the first item whose name equals ``name`` exactly.

    Names are not unique in Linear; when several records share a name the
    first one in API order wins.

    Raises:
        MCPLinearNotFoundError: If nothing matches
    """
    for item in items:
        if item.name == name:
            return item
    raise MCPLinearNotFoundError(kind, name, scope)
