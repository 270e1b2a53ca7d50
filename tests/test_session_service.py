"""Tests for services/session_service.py: the drafting session state machine."""

from __future__ import annotations

import itertools

import pytest

from conftest import StubClient
from core.exceptions import GenerationError
from core.schemas import (
    ActiveTab,
    AttachmentFile,
    AttachmentGroup,
    DEFAULT_ISSUING_AUTHORITY,
    DEFAULT_RECIPIENTS,
    SessionStatus,
)
from services.refinement_service import GREETING_TEXT
from services.session_service import DraftingSession


def make_session(client, history, clock):
    ids = (f"id-{i}" for i in itertools.count(1))
    return DraftingSession(client, history, max_workers=2, id_factory=lambda: next(ids), clock=clock)


# ── Initial state ────────────────────────────────────────────────────────


class TestInitialState:
    def test_defaults(self, history, clock):
        session = make_session(StubClient(), history, clock)
        assert session.form.issuing_authority == DEFAULT_ISSUING_AUTHORITY
        assert session.form.recipients == DEFAULT_RECIPIENTS
        assert session.status == SessionStatus.IDLE
        assert session.active_tab == ActiveTab.RESULT
        assert session.refinement.transcript == []

    def test_update_unknown_field(self, history, clock):
        session = make_session(StubClient(), history, clock)
        with pytest.raises(KeyError):
            session.update_field("nonexistent", "x")


# ── Attachments ──────────────────────────────────────────────────────────


class TestAttachments:
    def test_groups_are_independent(self, history, clock, pdf_file, png_file):
        session = make_session(StubClient(), history, clock)
        session.add_attachments(AttachmentGroup.CONTEXT, [pdf_file])
        session.add_attachments(AttachmentGroup.KEY_POINTS, [png_file])
        session.remove_attachment(AttachmentGroup.CONTEXT, pdf_file.name)
        assert session.attachments(AttachmentGroup.CONTEXT) == []
        assert session.attachments(AttachmentGroup.KEY_POINTS) == [png_file]

    def test_unsupported_files_excluded_from_request(self, history, clock, pdf_file):
        session = make_session(StubClient(), history, clock)
        docx = AttachmentFile.from_bytes("bien-ban.docx", "application/msword", b"x")
        session.add_attachments(AttachmentGroup.CONTEXT, [docx, pdf_file])
        request = session.build_request()
        assert [a.media_type for a in request.context_attachments] == ["application/pdf"]
        assert request.key_point_attachments == ()
        # still visible in the list
        assert len(session.attachments(AttachmentGroup.CONTEXT)) == 2


# ── Submit ───────────────────────────────────────────────────────────────


class TestSubmit:
    def test_successful_generation_saves_and_activates(self, history, clock):
        client = StubClient(draft_chunks=["Báo cáo ", "tình hình"], title="Báo cáo ABC")
        session = make_session(client, history, clock)
        session.update_field("role", "Báo cáo")

        seen = []
        document = session.submit(on_chunk=lambda chunk, draft: seen.append(draft))

        assert seen == ["Báo cáo ", "Báo cáo tình hình"]
        assert session.draft == "Báo cáo tình hình"
        assert session.status == SessionStatus.READY
        assert document.title == "Báo cáo ABC"
        assert document.content == "Báo cáo tình hình"
        assert history.documents[0] == document
        assert session.active_document_id == document.id
        assert client.title_inputs == ["Báo cáo tình hình"]
        assert client.draft_requests[0].form.role == "Báo cáo"

    @pytest.mark.parametrize("chunks", [
        ["Báo cáo ABC"],
        ["Báo", " cáo", " ABC"],
        list("Báo cáo ABC"),
    ])
    def test_chunk_boundaries_do_not_change_result(self, history, clock, chunks):
        client = StubClient(draft_chunks=chunks, title="Báo cáo ABC")
        session = make_session(client, history, clock)

        document = session.submit()

        assert session.draft == "Báo cáo ABC"
        assert document.content == "Báo cáo ABC"
        assert history.documents[0] == document
        assert session.active_document_id == document.id
        assert client.title_inputs == ["Báo cáo ABC"]

    def test_refinement_opens_with_greeting(self, history, clock):
        session = make_session(StubClient(draft_chunks=["x"]), history, clock)
        session.submit()
        assert session.refinement.is_expanded
        assert [m.text for m in session.refinement.transcript] == [GREETING_TEXT]

    def test_failure_keeps_partial_draft(self, history, clock):
        client = StubClient(draft_chunks=["Phần đầu", "phần sau"], draft_error_after=1)
        session = make_session(client, history, clock)
        assert session.submit() is None
        assert session.draft == "Phần đầu"
        assert session.error
        assert session.status == SessionStatus.FAILED
        assert len(history) == 0
        assert client.title_inputs == []

    def test_empty_stream_saves_nothing(self, history, clock):
        session = make_session(StubClient(draft_chunks=[]), history, clock)
        assert session.submit() is None
        assert len(history) == 0
        assert session.status == SessionStatus.IDLE

    def test_encoding_failure_sets_error(self, history, clock):
        def broken():
            raise OSError("gone")

        client = StubClient(draft_chunks=["x"])
        session = make_session(client, history, clock)
        session.add_attachments(AttachmentGroup.KEY_POINTS, [AttachmentFile("bad.png", "image/png", broken)])
        session.submit()
        assert "bad.png" in session.error
        assert client.draft_requests == []

    def test_resubmit_clears_previous_error(self, history, clock):
        client = StubClient(draft_chunks=["x"], draft_error_after=0)
        session = make_session(client, history, clock)
        session.submit()
        assert session.error
        client.draft_error_after = None
        session.submit()
        assert session.error is None
        assert session.draft == "x"

    def test_reentrant_submit_ignored(self, history, clock):
        client = StubClient(draft_chunks=["a"])
        session = make_session(client, history, clock)
        session.is_loading = True
        assert session.submit() is None
        assert client.draft_requests == []

    def test_unexpected_error_uses_message(self, history, clock):
        class Exploding(StubClient):
            def stream_draft(self, request):
                raise ValueError("")

        session = make_session(Exploding(), history, clock)
        session.submit()
        assert session.error == "Đã có lỗi xảy ra"
        assert not session.is_loading


# ── Saved documents ──────────────────────────────────────────────────────


class TestSavedDocuments:
    def test_view_saved_loads_content_and_resets_chat(self, history, clock, sample_documents):
        for doc in reversed(sample_documents):
            history.add(doc)
        session = make_session(StubClient(), history, clock)
        session.active_tab = ActiveTab.SAVED
        session.update_field("role", "Tờ trình")
        old_session_id = session.chat_session_id

        assert session.view_saved("b") is True
        assert session.draft == "Nội dung B"
        assert session.active_tab == ActiveTab.RESULT
        assert session.active_document_id == "b"
        assert session.chat_session_id != old_session_id
        # form untouched
        assert session.form.role == "Tờ trình"

    def test_view_unknown(self, history, clock):
        session = make_session(StubClient(), history, clock)
        assert session.view_saved("nope") is False

    def test_delete_active_keeps_draft(self, history, clock):
        session = make_session(StubClient(draft_chunks=["x"]), history, clock)
        document = session.submit()
        assert session.delete_saved(document.id) is True
        assert len(history) == 0
        assert session.draft == "x"
        # final update for a deleted document does not recreate it
        session.apply_document_update("y", is_final=True)
        assert len(history) == 0
        assert session.draft == "y"

    def test_delete_inactive_keeps_active_document(self, history, clock):
        client = StubClient(draft_chunks=["Bản một"], title="Một")
        session = make_session(client, history, clock)
        older = session.submit()
        client.draft_chunks = ["Bản hai"]
        client.title = "Hai"
        newer = session.submit()
        transcript = list(session.refinement.transcript)

        assert session.delete_saved(older.id) is True

        assert [d.id for d in history.documents] == [newer.id]
        assert session.active_document_id == newer.id
        assert session.draft == "Bản hai"
        assert session.refinement.transcript == transcript


# ── Refinement integration ───────────────────────────────────────────────


class TestRefinementIntegration:
    def test_final_update_resurfaces_document(self, history, clock, sample_documents):
        for doc in reversed(sample_documents):
            history.add(doc)
        client = StubClient(chat_chunks=["Bản ", "mới  "])
        session = make_session(client, history, clock)
        session.view_saved("c")

        result = session.send_refinement("Ngắn gọn hơn")

        assert result.ok
        assert session.draft == "Bản mới"
        assert history.documents[0].id == "c"
        assert history.documents[0].content == "Bản mới"
        assert client.chat_calls[0][1] == "Nội dung C"

    def test_refinement_blocked_while_generating(self, history, clock):
        session = make_session(StubClient(chat_chunks=["x"]), history, clock)
        session.draft = "abc"
        session.is_loading = True
        assert session.send_refinement("Sửa").ok is False


# ── Clear ────────────────────────────────────────────────────────────────


class TestClear:
    def test_clear_returns_to_idle(self, history, clock, pdf_file):
        session = make_session(StubClient(draft_chunks=["x"]), history, clock)
        session.update_field("role", "Công văn")
        session.add_attachments(AttachmentGroup.CONTEXT, [pdf_file])
        session.submit()

        session.clear()

        assert session.form.role == ""
        assert session.form.issuing_authority == DEFAULT_ISSUING_AUTHORITY
        assert session.attachments(AttachmentGroup.CONTEXT) == []
        assert session.draft == ""
        assert session.active_document_id is None
        assert session.status == SessionStatus.IDLE
        assert session.refinement.transcript == []
        # history is kept
        assert len(history) == 1


def test_generation_error_type_is_reported(history, clock):
    class Failing(StubClient):
        def stream_draft(self, request):
            raise GenerationError("API key không hợp lệ")
            yield  # pragma: no cover

    session = make_session(Failing(), history, clock)
    session.submit()
    assert session.error == "API key không hợp lệ"
