"""
Linear document models.
"""

from typing import Any

from pydantic import Field

from ..base import ApiModel, Connection, NamedRef, ref_name


class LinearDocument(ApiModel):
    """
    Model representing a Linear document.
    """

    id: str | None = None
    title: str
    slug_id: str = Field(alias="slugId")
    content: str | None = None
    url: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    archived_at: str | None = Field(default=None, alias="archivedAt")
    creator: NamedRef | None = None
    project: NamedRef | None = None
    initiative: NamedRef | None = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def to_summary_dict(self) -> dict[str, Any]:
        return {"title": self.title, "slug_id": self.slug_id}

    def to_simplified_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug_id": self.slug_id,
            "content": self.content,
            "url": self.url,
            "creator_name": ref_name(self.creator),
            "project_name": ref_name(self.project),
            "initiative_name": ref_name(self.initiative),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "archived_at": self.archived_at,
        }


class DocumentRef(ApiModel):
    id: str
    title: str
    slug_id: str | None = Field(default=None, alias="slugId")
    url: str | None = None


class DocumentPayload(ApiModel):
    success: bool
    document: DocumentRef | None = None

    def to_simplified_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.document:
            result["document"] = self.document.to_simplified_dict()
        return result


class DocumentsResponse(ApiModel):
    documents: Connection[LinearDocument]


class DocumentCreateResponse(ApiModel):
    document_create: DocumentPayload = Field(alias="documentCreate")


class DocumentUpdateResponse(ApiModel):
    document_update: DocumentPayload = Field(alias="documentUpdate")
