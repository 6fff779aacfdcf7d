"""
journal_store.py - Persistence collaborator for journal entries

The response pipeline never touches storage; the HTTP layer saves the
AnalysisResult it gets back through one of these stores.

- FirestoreJournalStore: entries live in a top-level `journals` collection with
  a `user_id` field, so ownership can be checked on delete (404 vs 403).
- InMemoryJournalStore: process-local dict, for local runs (JOURNAL_STORE=memory).

Both expose the same four methods: create_entry, list_entries, get_entry,
delete_entry. list_entries returns newest first.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

import pytz
from fastapi import Request
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .config import STORE_MEMORY, Settings
from .model_clients import get_firestore_client
from .schemas import JournalEntry

_logger = logging.getLogger(__name__)

FIRESTORE_JOURNALS_COLLECTION = "journals"


def _utcnow() -> datetime:
    return datetime.now(pytz.utc)


class InMemoryJournalStore:
    def __init__(self):
        self._entries: Dict[str, JournalEntry] = {}

    def create_entry(self, user_id: str, text: str, mood: str, summary: str, advice: str) -> JournalEntry:
        entry = JournalEntry(
            id=uuid.uuid4().hex,
            user_id=user_id,
            text=text,
            mood=mood,
            summary=summary,
            advice=advice,
            created_at=_utcnow(),
        )
        self._entries[entry.id] = entry
        return entry

    def list_entries(self, user_id: str) -> List[JournalEntry]:
        owned = [e for e in self._entries.values() if e.user_id == user_id]
        return sorted(owned, key=lambda e: e.created_at, reverse=True)

    def get_entry(self, entry_id: str) -> Optional[JournalEntry]:
        return self._entries.get(entry_id)

    def delete_entry(self, entry_id: str) -> None:
        self._entries.pop(entry_id, None)


class FirestoreJournalStore:
    def __init__(self, client: firestore.Client):
        self._client = client

    def _collection(self):
        return self._client.collection(FIRESTORE_JOURNALS_COLLECTION)

    @staticmethod
    def _from_doc(doc) -> JournalEntry:
        data = doc.to_dict() or {}
        return JournalEntry(id=doc.id, **data)

    def create_entry(self, user_id: str, text: str, mood: str, summary: str, advice: str) -> JournalEntry:
        data = {
            "user_id": user_id,
            "text": text,
            "mood": mood,
            "summary": summary,
            "advice": advice,
            "created_at": _utcnow(),
        }
        # .add() auto-generates the document id
        update_time, doc_ref = self._collection().add(data)
        _logger.info("Saved journal %s for user %s", doc_ref.id, user_id)
        return JournalEntry(id=doc_ref.id, **data)

    def list_entries(self, user_id: str) -> List[JournalEntry]:
        # Sorted here rather than with order_by to avoid needing a composite index.
        docs = self._collection().where(filter=FieldFilter("user_id", "==", user_id)).stream()
        entries = [self._from_doc(doc) for doc in docs]
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    def get_entry(self, entry_id: str) -> Optional[JournalEntry]:
        doc = self._collection().document(entry_id).get()
        if not doc.exists:
            return None
        return self._from_doc(doc)

    def delete_entry(self, entry_id: str) -> None:
        self._collection().document(entry_id).delete()
        _logger.info("Deleted journal %s", entry_id)


def build_journal_store(settings: Settings):
    """
    Create the store named by settings. Falls back to the in-memory store if
    Firestore cannot be reached, so the analysis endpoints keep working.
    """
    if settings.journal_store == STORE_MEMORY:
        return InMemoryJournalStore()

    client = get_firestore_client(settings.gcp_project)
    if client is None:
        _logger.error("Firestore unavailable; journal entries will only be kept in memory.")
        return InMemoryJournalStore()
    return FirestoreJournalStore(client)


def get_journal_store(request: Request):
    """FastAPI dependency returning the store created at startup."""
    return request.app.state.journal_store
