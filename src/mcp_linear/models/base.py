"""
Base models shared by the Linear models.

Every model validates a raw GraphQL node with ``from_api_response`` and
renders the flattened, snake_case view returned by the tools with
``to_simplified_dict``.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base class for models built from Linear API responses."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def from_api_response(cls, data: dict[str, Any], **kwargs: Any) -> "ApiModel":
        """
        Create a model instance from a GraphQL response node.

        Args:
            data: The node as returned by Linear (camelCase keys)
            **kwargs: Unused; kept for subclasses that need extra context

        Returns:
            A validated model instance
        """
        return cls.model_validate(data or {})

    def to_simplified_dict(self) -> dict[str, Any]:
        """Convert the model to the dictionary returned by the tools."""
        return self.model_dump(exclude_none=True)


class Connection(BaseModel, Generic[T]):
    """A GraphQL connection; only ``nodes`` is ever requested."""

    nodes: list[T] = Field(default_factory=list)


class NamedRef(BaseModel):
    """A nested object of which only the name is selected, e.g. ``assignee { name }``."""

    name: str


def ref_name(ref: NamedRef | None) -> str | None:
    return ref.name if ref is not None else None
