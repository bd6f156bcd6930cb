"""Module for Linear document operations."""

import asyncio
import logging
from typing import Any

from ..exceptions import MCPLinearError, MCPLinearNotFoundError
from ..models.linear.document import (
    DocumentCreateResponse,
    DocumentPayload,
    DocumentsResponse,
    DocumentUpdateResponse,
    LinearDocument,
)
from .constants import DEFAULT_PAGE_SIZE
from .initiatives import InitiativesMixin
from .projects import ProjectsMixin

logger = logging.getLogger("mcp-linear.documents")

LIST_DOCUMENTS_QUERY = """
query ListDocuments($filter: DocumentFilter, $first: Int) {
  documents(filter: $filter, first: $first) {
    nodes {
      title
      slugId
      archivedAt
    }
  }
}
"""

GET_DOCUMENT_QUERY = """
query GetDocumentBySlugId($filter: DocumentFilter) {
  documents(filter: $filter, first: 1) {
    nodes {
      id
      title
      slugId
      content
      url
      createdAt
      updatedAt
      archivedAt
      creator { name }
      project { name }
      initiative { name }
    }
  }
}
"""

CREATE_DOCUMENT_MUTATION = """
mutation CreateDocument($input: DocumentCreateInput!) {
  documentCreate(input: $input) {
    success
    document { id title slugId url }
  }
}
"""

UPDATE_DOCUMENT_MUTATION = """
mutation UpdateDocument($id: String!, $input: DocumentUpdateInput!) {
  documentUpdate(id: $id, input: $input) {
    success
    document { id title slugId url }
  }
}
"""


class DocumentsMixin(ProjectsMixin, InitiativesMixin):
    """Mixin for Linear document operations."""

    async def list_documents(
        self,
        query: str | None = None,
        project_id: str | None = None,
        initiative_id: str | None = None,
        include_archived: bool = False,
        first: int = DEFAULT_PAGE_SIZE,
    ) -> list[LinearDocument]:
        """
        Search documents by title.

        Linear's DocumentFilter cannot filter on archival, so archived
        documents are dropped after the fact unless ``include_archived``.

        Args:
            query: Text matched case-insensitively against the title
            project_id: Only documents of this project
            initiative_id: Only documents of this initiative
            include_archived: Also return archived documents
            first: Maximum number of documents requested

        Returns:
            Matching documents (title, slug and archival only)
        """
        document_filter: dict[str, Any] = {}
        if project_id:
            document_filter["project"] = {"id": {"eq": project_id}}
        if initiative_id:
            document_filter["initiative"] = {"id": {"eq": initiative_id}}
        if query:
            document_filter["title"] = {"containsIgnoreCase": query}

        response = await self.query_model(
            DocumentsResponse,
            LIST_DOCUMENTS_QUERY,
            {"filter": document_filter, "first": first},
        )
        return [
            doc
            for doc in response.documents.nodes
            if include_archived or not doc.is_archived
        ]

    async def get_document(self, slug_id: str) -> LinearDocument:
        """
        Get a document with its content.

        Raises:
            MCPLinearNotFoundError: If no document has this slug ID
        """
        response = await self.query_model(
            DocumentsResponse,
            GET_DOCUMENT_QUERY,
            {"filter": {"slugId": {"eq": slug_id}}},
        )
        if not response.documents.nodes:
            raise MCPLinearNotFoundError("Document", slug_id, "with slugId")
        return response.documents.nodes[0]

    async def create_document(
        self,
        title: str,
        content: str | None = None,
        project_id: str | None = None,
        initiative_id: str | None = None,
    ) -> DocumentPayload:
        document_input = {
            key: value
            for key, value in {
                "title": title,
                "content": content,
                "projectId": project_id,
                "initiativeId": initiative_id,
            }.items()
            if value is not None
        }
        response = await self.query_model(
            DocumentCreateResponse, CREATE_DOCUMENT_MUTATION, {"input": document_input}
        )
        if not response.document_create.success:
            raise MCPLinearError(f"Linear reported failure to create document '{title}'")
        return response.document_create

    async def update_document(
        self,
        document_id: str,
        title: str | None = None,
        content: str | None = None,
        project_id: str | None = None,
        initiative_id: str | None = None,
    ) -> DocumentPayload:
        document_input = {
            key: value
            for key, value in {
                "title": title,
                "content": content,
                "projectId": project_id,
                "initiativeId": initiative_id,
            }.items()
            if value is not None
        }
        response = await self.query_model(
            DocumentUpdateResponse,
            UPDATE_DOCUMENT_MUTATION,
            {"id": document_id, "input": document_input},
        )
        if not response.document_update.success:
            raise MCPLinearError(f"Linear reported failure to update document {document_id}")
        return response.document_update

    async def create_document_by_name(
        self, title: str, project_name: str, content: str | None = None
    ) -> DocumentPayload:
        """
        Create a document in the open project with the given name.

        Raises:
            MCPLinearNotFoundError: If the project cannot be found
        """
        project = await self.resolve_project(project_name)
        logger.info(f"Creating document '{title}' in project {project.name}")
        return await self.create_document(
            title=title, content=content, project_id=project.id
        )

    async def update_document_by_name(
        self,
        slug_id: str,
        title: str | None = None,
        content: str | None = None,
        project_name: str | None = None,
        initiative_name: str | None = None,
    ) -> DocumentPayload:
        """
        Update a document found by slug ID, resolving project and initiative by name.

        Raises:
            MCPLinearNotFoundError: If the document, project or initiative cannot be found
        """

        async def project_id() -> str | None:
            if not project_name:
                return None
            return (await self.resolve_project(project_name)).id

        async def initiative_id() -> str | None:
            if not initiative_name:
                return None
            return (await self.resolve_initiative(initiative_name)).id

        document, resolved_project_id, resolved_initiative_id = await asyncio.gather(
            self.get_document(slug_id), project_id(), initiative_id()
        )
        if document.id is None:
            raise MCPLinearError(f"Linear returned document {slug_id} without an ID")
        return await self.update_document(
            document_id=document.id,
            title=title,
            content=content,
            project_id=resolved_project_id,
            initiative_id=resolved_initiative_id,
        )
