"""
Document Package

Host document interface and bundled document implementations.
"""
from .provider import DocumentProvider, TransactionGroup, transaction
from .memory import InMemoryDocument, LevelRecord, ViewRecord
from .json_document import JsonDocument

__all__ = [
    'DocumentProvider',
    'TransactionGroup',
    'transaction',
    'InMemoryDocument',
    'LevelRecord',
    'ViewRecord',
    'JsonDocument',
]
