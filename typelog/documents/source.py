"""
Document sources.

Supply the active document and its logs to the replay coordinator.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional
import json
import logging

from typelog.shared.errors import DocumentNotFoundError
from .models import Document

logger = logging.getLogger(__name__)


class DocumentSource(ABC):
    """Where the viewed document comes from."""

    @abstractmethod
    def get(self, document_id: str) -> Document:
        raise NotImplementedError

    @abstractmethod
    def get_active_document(self) -> Optional[Document]:
        raise NotImplementedError

    @abstractmethod
    def list_documents(self) -> List[Document]:
        raise NotImplementedError

    @abstractmethod
    def select(self, document_id: str) -> Document:
        raise NotImplementedError


class InMemoryDocumentSource(DocumentSource):
    """Documents held in memory, one of them active."""

    def __init__(self, documents: Iterable[Document] = (), active_id: Optional[str] = None):
        self._documents: Dict[str, Document] = {}
        for document in documents:
            self.add(document)

        self.active_id: Optional[str] = None
        if active_id is not None:
            self.select(active_id)

    def add(self, document: Document):
        self._documents[document.id] = document

    def get(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def get_active_document(self) -> Optional[Document]:
        if self.active_id is None:
            return None
        return self._documents.get(self.active_id)

    def list_documents(self) -> List[Document]:
        return list(self._documents.values())

    def select(self, document_id: str) -> Document:
        document = self.get(document_id)
        self.active_id = document.id
        return document


class JsonDocumentSource(InMemoryDocumentSource):
    """
    Documents loaded from a notes export.

    Accepts either {"notes": [...]} or a bare list of notes.
    """

    def __init__(self, path: Path, active_id: Optional[str] = None):
        self.path = Path(path)
        super().__init__(self._load(), active_id=active_id)

    def _load(self) -> List[Document]:
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as err:
            raise RuntimeError(f"Invalid JSON in {self.path}: {err}") from err

        notes = data.get("notes", []) if isinstance(data, dict) else data
        if not isinstance(notes, list):
            raise RuntimeError(f"Expected a list of notes in {self.path}")

        try:
            documents = [Document.from_dict(note) for note in notes]
        except (KeyError, TypeError, AttributeError) as err:
            raise RuntimeError(f"Malformed note in {self.path}: {err}") from err

        logger.info(f"Loaded {len(documents)} documents from {self.path}")
        return documents
