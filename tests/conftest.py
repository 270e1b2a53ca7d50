"""Shared fixtures and test doubles for all tests."""

from __future__ import annotations

from typing import Iterator, List, Optional

import pytest

from core.exceptions import GenerationError, PersistenceError, RefinementError
from core.schemas import AttachmentFile, SavedDocument
from services.history_service import HistoryStore


class InMemoryRepository:
    """History repository double that keeps a snapshot of every save."""

    def __init__(self, documents: Optional[List[SavedDocument]] = None, fail_on_save: bool = False,
                 fail_on_load: bool = False):
        self.documents = list(documents or [])
        self.fail_on_save = fail_on_save
        self.fail_on_load = fail_on_load
        self.saves: List[List[str]] = []

    def load_all(self) -> List[SavedDocument]:
        if self.fail_on_load:
            raise PersistenceError("corrupt")
        return list(self.documents)

    def save_all(self, documents: List[SavedDocument]):
        if self.fail_on_save:
            raise PersistenceError("disk full")
        self.documents = list(documents)
        self.saves.append([d.id for d in documents])


class StubClient:
    """Generation client double with scripted draft/title/chat behaviour."""

    untitled_title = "Văn bản chưa có tiêu đề"

    def __init__(self, draft_chunks=(), draft_error_after: Optional[int] = None, title: str = "Tiêu đề",
                 chat_chunks=(), chat_error_after: Optional[int] = None, chat_error_eager: bool = False):
        self.draft_chunks = list(draft_chunks)
        self.draft_error_after = draft_error_after
        self.title = title
        self.chat_chunks = list(chat_chunks)
        self.chat_error_after = chat_error_after
        self.chat_error_eager = chat_error_eager
        self.draft_requests = []
        self.title_inputs = []
        self.chat_calls = []

    def stream_draft(self, request) -> Iterator[str]:
        self.draft_requests.append(request)
        for i, chunk in enumerate(self.draft_chunks):
            if self.draft_error_after is not None and i == self.draft_error_after:
                raise GenerationError("Không thể tạo nội dung. Vui lòng thử lại.")
            yield chunk
        if self.draft_error_after is not None and self.draft_error_after >= len(self.draft_chunks):
            raise GenerationError("Không thể tạo nội dung. Vui lòng thử lại.")

    def summarize_title(self, text: str) -> str:
        self.title_inputs.append(text)
        return self.title

    def stream_chat_turn(self, history, current_draft) -> Iterator[str]:
        self.chat_calls.append((list(history), current_draft))
        if self.chat_error_eager:
            raise RefinementError("Không thể tạo phản hồi. Vui lòng thử lại.")
        return self._chat()

    def _chat(self):
        for i, chunk in enumerate(self.chat_chunks):
            if self.chat_error_after is not None and i == self.chat_error_after:
                raise RefinementError("Không thể tạo phản hồi. Vui lòng thử lại.")
            yield chunk


class Clock:
    """Deterministic millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture()
def repository():
    return InMemoryRepository()


@pytest.fixture()
def clock():
    return Clock()


@pytest.fixture()
def history(repository, clock):
    return HistoryStore(repository, clock=clock).hydrate()


@pytest.fixture()
def sample_documents():
    return [
        SavedDocument(id="a", title="Kế hoạch A", content="Nội dung A", timestamp=3000),
        SavedDocument(id="b", title="Báo cáo B", content="Nội dung B", timestamp=2000),
        SavedDocument(id="c", title="Công văn C", content="Nội dung C", timestamp=1000),
    ]


@pytest.fixture()
def pdf_file():
    return AttachmentFile.from_bytes("nghi-dinh.pdf", "application/pdf", b"%PDF-1.7 fake")


@pytest.fixture()
def png_file():
    return AttachmentFile.from_bytes("bieu-do.png", "image/png", b"\x89PNG fake")
