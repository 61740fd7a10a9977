# Documents and their edit logs
from .models import Document
from .source import (
    DocumentSource,
    InMemoryDocumentSource,
    JsonDocumentSource,
)

__all__ = [
    "Document",
    "DocumentSource",
    "InMemoryDocumentSource",
    "JsonDocumentSource",
]
