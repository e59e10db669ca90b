"""Tests for the summary and quiz endpoints."""
import itertools

import httpx
import pytest

from conftest import signup

_stored_names = itertools.count(100)


@pytest.fixture()
def study_doc(client, db_session):
    from app.core.config import settings
    from app.services import document_service

    headers = signup(client, "study_owner@example.com")
    text = "Enzymes speed up reactions. " * 400 + "TAILMARKER"
    assert len(text) > settings.summary_context_chars
    doc = document_service.create_document(
        db_session,
        "study_owner@example.com",
        f"1700000000000-{next(_stored_names)}.pdf",
        "enzymes.pdf",
        text,
    )
    return headers, doc.filename


class TestSummary:
    def test_summary_returned(self, client, fake_ai, study_doc):
        headers, filename = study_doc
        fake_ai.messages.reply = "- Enzymes are catalysts\n- They lower activation energy"

        resp = client.post("/api/summary", json={"filename": filename}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"summary": "- Enzymes are catalysts\n- They lower activation energy"}

    def test_summary_request_is_bounded(self, client, fake_ai, study_doc):
        from app.core.config import settings
        from app.services.ai_service import SUMMARY_SYSTEM_PROMPT

        headers, filename = study_doc
        client.post("/api/summary", json={"filename": filename}, headers=headers)

        assert fake_ai.timeouts == [settings.summary_timeout_seconds]
        call = fake_ai.last_call
        assert call["system"] == SUMMARY_SYSTEM_PROMPT
        prompt = call["messages"][0]["content"]
        assert "6-10 concise bullet points" in prompt
        assert "120 words" in prompt
        assert "TAILMARKER" not in prompt

    @pytest.mark.parametrize("reply", ["", "   \n\t "])
    def test_blank_summary_is_a_failure(self, client, fake_ai, study_doc, reply):
        headers, filename = study_doc
        fake_ai.messages.reply = reply
        resp = client.post("/api/summary", json={"filename": filename}, headers=headers)
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Summary generation failed"}

    def test_summary_timeout(self, client, fake_ai, study_doc):
        import anthropic

        headers, filename = study_doc
        fake_ai.messages.error = anthropic.APITimeoutError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"),
        )
        resp = client.post("/api/summary", json={"filename": filename}, headers=headers)
        assert resp.status_code == 500
        assert len(fake_ai.messages.calls) == 1

    def test_summary_unknown_document(self, client, fake_ai):
        headers = signup(client, "study_nodoc@example.com")
        resp = client.post("/api/summary", json={"filename": "nope.pdf"}, headers=headers)
        assert resp.status_code == 404

    def test_ai_not_configured(self, client, study_doc, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "anthropic_api_key", "")
        headers, filename = study_doc
        resp = client.post("/api/summary", json={"filename": filename}, headers=headers)
        assert resp.status_code == 500


class TestQuiz:
    def test_raw_model_text_is_forwarded(self, client, fake_ai, study_doc):
        headers, filename = study_doc
        raw = 'Here is your quiz: [{"question": "Q", "options": ["True", "False"], "correctAnswer": 0}] enjoy'
        fake_ai.messages.reply = raw

        resp = client.post("/api/quiz", json={"filename": filename}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"quiz": raw}

    def test_quiz_prompt(self, client, fake_ai, study_doc):
        from app.services.ai_service import QUIZ_SYSTEM_PROMPT

        headers, filename = study_doc
        client.post("/api/quiz", json={"filename": filename}, headers=headers)

        call = fake_ai.last_call
        assert call["system"] == QUIZ_SYSTEM_PROMPT
        assert call["temperature"] == 0.4
        prompt = call["messages"][0]["content"]
        assert "5 mixed questions" in prompt
        assert "2 questions must be true/false" in prompt
        assert "3 questions must be MCQ" in prompt
        assert '"correctAnswer": 0' in prompt
        assert "TAILMARKER" not in prompt
        assert fake_ai.timeouts == [None]

    def test_quiz_upstream_failure(self, client, fake_ai, study_doc):
        import anthropic

        headers, filename = study_doc
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        fake_ai.messages.error = anthropic.InternalServerError(
            "overloaded", response=httpx.Response(529, request=request), body=None,
        )
        resp = client.post("/api/quiz", json={"filename": filename}, headers=headers)
        assert resp.status_code == 500
        assert resp.json() == {"detail": "AI request failed"}

    def test_quiz_other_owner(self, client, fake_ai, study_doc):
        _, filename = study_doc
        intruder = signup(client, "study_intruder@example.com")
        resp = client.post("/api/quiz", json={"filename": filename}, headers=intruder)
        assert resp.status_code == 404
        assert fake_ai.messages.calls == []
