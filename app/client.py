"""
HTTP client for the Smart Campus Assistant API.

Wraps every endpoint and normalizes the loosely shaped chat-history and quiz
payloads through ``app.services.response_normalizer``.

Usage:
    with StudyClient.connect("http://localhost:8000") as client:
        client.login("me@example.com", "secret")
        doc = client.upload("notes.pdf")
        questions = client.quiz(doc["filename"])
"""

from pathlib import Path
from typing import Any

import httpx

from app.core.logging_config import get_logger
from app.schemas.study import ChatMessage, QuizQuestion
from app.services.response_normalizer import normalize_chat_history, normalize_quiz

logger = get_logger(__name__)


class StudyClientError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class StudyClient:
    def __init__(self, http: httpx.Client, api_prefix: str = "/api", token: str | None = None):
        self.http = http
        self.api_prefix = api_prefix.rstrip("/")
        self.token = token

    @classmethod
    def connect(cls, base_url: str, timeout: float = 60.0) -> "StudyClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "StudyClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.http.request(method, f"{self.api_prefix}{path}", headers=headers, **kwargs)
        if response.is_error:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            logger.debug(f"{method} {path} failed with {response.status_code}: {detail}")
            raise StudyClientError(response.status_code, str(detail))
        return response.json()

    # ── Auth ──────────────────────────────────────────────────

    def register(self, email: str, password: str, name: str | None = None) -> bool:
        payload = {"email": email, "password": password}
        if name:
            payload["name"] = name
        return bool(self._request("POST", "/register", json=payload).get("success"))

    def login(self, email: str, password: str) -> str:
        data = self._request("POST", "/login", json={"email": email, "password": password})
        self.token = data["token"]
        return self.token

    # ── Documents ─────────────────────────────────────────────

    def upload(self, path: str | Path, content: bytes | None = None) -> dict:
        """Upload a file from disk, or ``content`` under the name ``path``."""
        path = Path(path)
        if content is None:
            content = path.read_bytes()
        return self._request("POST", "/upload", files={"file": (path.name, content)})

    def documents(self) -> list[dict]:
        return self._request("GET", "/my-documents")["documents"]

    def delete_document(self, filename: str) -> bool:
        return bool(self._request("DELETE", "/delete-document", json={"filename": filename}).get("success"))

    # ── Study tools ───────────────────────────────────────────

    def chat(self, filename: str, question: str) -> str:
        return self._request("POST", "/chat", json={"filename": filename, "question": question})["answer"]

    def chat_history(self, filename: str) -> list[ChatMessage]:
        data = self._request("POST", "/chat-history", json={"filename": filename})
        return normalize_chat_history(data.get("messages", data))

    def summary(self, filename: str) -> str:
        return self._request("POST", "/summary", json={"filename": filename})["summary"]

    def quiz(self, filename: str) -> list[QuizQuestion]:
        data = self._request("POST", "/quiz", json={"filename": filename})
        return normalize_quiz(data.get("quiz", data) if isinstance(data, dict) else data)
