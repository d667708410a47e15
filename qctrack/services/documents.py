"""
Versioned document store with a tag -> document inverted index.
"""
from typing import Callable, Dict, List, Optional

from ..errors import NotFoundError
from ..schemas.documents import (
    Document,
    DocumentCreate,
    DocumentMetadata,
    DocumentType,
    DocumentUpdate,
    RevisionEntry,
)
from .events import EventEmitter, Listener


DEFAULT_DOCUMENTS = [
    DocumentCreate(
        title="Foundation Specifications",
        type="spec",
        content="Minimum concrete strength: 3000 PSI\nRebar spacing: 12 inches",
        metadata=DocumentMetadata(author="system", tags=["foundation", "concrete"], job_numbers=["DEFAULT"]),
    ),
    DocumentCreate(
        title="Building Code 2024",
        type="code",
        content="Section 1.1: Foundation requirements...",
        metadata=DocumentMetadata(author="system", tags=["code", "requirements"], job_numbers=["DEFAULT"]),
    ),
]


class DocumentStore:
    def __init__(self) -> None:
        self._documents: List[Document] = []
        self._tag_index: Dict[str, List[str]] = {}
        self.events = EventEmitter("documents")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def documents(self) -> List[Document]:
        return list(self._documents)

    def seed_defaults(self) -> List[Document]:
        return [self.add(data.model_copy(deep=True)) for data in DEFAULT_DOCUMENTS]

    def add(self, data: DocumentCreate) -> Document:
        document = Document(
            title=data.title,
            type=data.type,
            content=data.content,
            metadata=data.metadata.model_copy(deep=True),
            version=1,
            status="draft",
            revision_history=[
                RevisionEntry(version=1, author=data.metadata.author, changes="Initial creation")
            ],
        )
        self._documents.append(document)
        self._reindex(document)
        self.events.emit("documents", self.documents)
        return document

    def update(self, document_id: str, changes: DocumentUpdate) -> Document:
        document = self.get(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)

        values = changes.model_dump(exclude_unset=True, exclude_none=True)
        if "title" in values:
            document.title = values["title"]
        if "type" in values:
            document.type = values["type"]
        if "content" in values:
            document.content = values["content"]
        if "status" in values:
            document.status = values["status"]
        if changes.metadata is not None:
            document.metadata = changes.metadata.model_copy(deep=True)

        document.version += 1
        document.revision_history.append(
            RevisionEntry(
                version=document.version,
                author=changes.metadata.author if changes.metadata else document.metadata.author,
                changes="Updated document content and metadata",
            )
        )
        document.touch()
        self._reindex(document)
        self.events.emit("documents", self.documents)
        return document

    def archive(self, document_id: str, reason: str) -> Optional[Document]:
        document = self.get(document_id)
        if document is None:
            return None
        document.status = "archived"
        document.revision_history.append(
            RevisionEntry(version=document.version, author="system", changes=f"Archived: {reason}")
        )
        document.touch()
        self.events.emit("documents", self.documents)
        return document

    def link_related(self, source_id: str, target_id: str) -> bool:
        source = self.get(source_id)
        target = self.get(target_id)
        if source is None or target is None:
            return False
        if target_id not in source.metadata.related_documents:
            source.metadata.related_documents.append(target_id)
            source.touch()
        if source_id not in target.metadata.related_documents:
            target.metadata.related_documents.append(source_id)
            target.touch()
        self.events.emit("documents", self.documents)
        return True

    def get(self, document_id: str) -> Optional[Document]:
        return next((d for d in self._documents if d.id == document_id), None)

    def by_type(self, document_type: DocumentType) -> List[Document]:
        return [d for d in self._documents if d.type == document_type]

    def by_tag(self, tag: str) -> List[Document]:
        ids = self._tag_index.get(tag, [])
        return [d for d in self._documents if d.id in ids]

    def by_job(self, job_number: str) -> List[Document]:
        return [d for d in self._documents if job_number in d.metadata.job_numbers]

    def active(self) -> List[Document]:
        return [d for d in self._documents if d.status == "active"]

    def _reindex(self, document: Document) -> None:
        # Drop the document from every bucket, then re-add it under its current tags
        for tag, ids in self._tag_index.items():
            self._tag_index[tag] = [i for i in ids if i != document.id]
        for tag in document.metadata.tags:
            ids = self._tag_index.setdefault(tag, [])
            if document.id not in ids:
                ids.append(document.id)
