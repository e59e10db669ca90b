import io
import os
import zipfile
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["ENVIRONMENT"] = "development"
os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"

PASSWORD = "Password123!"


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    from app.db.database import Database
    from app.services.storage import UploadStorage
    from main import create_app

    root = tmp_path_factory.mktemp("campus")
    database = Database(f"sqlite:///{root / 'test_campus.db'}")
    database.open()
    database.create_all()
    storage = UploadStorage(root / "uploads")
    storage.open()
    return create_app(database=database, storage=storage)


@pytest.fixture()
def db_session(app):
    database = app.state.database
    database.open()
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def storage(app):
    return app.state.storage


# ── Auth helpers ──────────────────────────────────────────────


def signup(client, email, password=PASSWORD):
    """Register (if needed) and log in; return bearer headers."""
    client.post("/api/register", json={"email": email, "password": password})
    resp = client.post("/api/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def upload(client, headers, name, content):
    return client.post("/api/upload", files={"file": (name, content)}, headers=headers)


# ── Fake Anthropic client ─────────────────────────────────────


class FakeMessages:
    def __init__(self):
        self.calls = []
        self.reply = "Stub answer from the document."
        self.error = None

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text=self.reply)],
            usage=SimpleNamespace(input_tokens=42, output_tokens=7),
        )


class FakeAnthropic:
    def __init__(self):
        self.messages = FakeMessages()
        self.timeouts = []

    @property
    def last_call(self):
        return self.messages.calls[-1]


@pytest.fixture()
def fake_ai(monkeypatch):
    """Replace the Anthropic client; tests set ``reply``/``error`` on ``.messages``."""
    from app.services import ai_service

    fake = FakeAnthropic()

    def get_client(timeout=None):
        fake.timeouts.append(timeout)
        return fake

    monkeypatch.setattr(ai_service, "get_anthropic_client", get_client)
    return fake


# ── Document builders ─────────────────────────────────────────


def make_pdf(text: str) -> bytes:
    """Single-page PDF showing ``text`` in Helvetica."""
    stream = f"BT /F1 18 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(out.tell())
        out.write(b"%d 0 obj\n" % number + body + b"\nendobj\n")
    xref_offset = out.tell()
    out.write(b"xref\n0 %d\n" % (len(objects) + 1))
    out.write(b"0000000000 65535 f \n")
    for offset in offsets:
        out.write(b"%010d 00000 n \n" % offset)
    out.write(
        b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n"
        % (len(objects) + 1, xref_offset)
    )
    return out.getvalue()


def make_docx(*paragraphs: str) -> bytes:
    from docx import Document

    doc = Document()
    for paragraph in paragraphs:
        doc.add_paragraph(paragraph)
    out = io.BytesIO()
    doc.save(out)
    return out.getvalue()


def make_pptx(*slides: tuple[str, str]) -> bytes:
    """Title-and-content slides; an empty tuple list gives one blank slide."""
    from pptx import Presentation

    prs = Presentation()
    if not slides:
        prs.slides.add_slide(prs.slide_layouts[6])
    for title, body in slides:
        slide = prs.slides.add_slide(prs.slide_layouts[1])
        slide.shapes.title.text = title
        slide.placeholders[1].text = body
    out = io.BytesIO()
    prs.save(out)
    return out.getvalue()


P_NS = "http://schemas.openxmlformats.org/presentationml/2006/main"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"


def slide_xml(*shapes: str) -> str:
    """Minimal slide part; each shape is raw ``<p:sp>`` markup."""
    return (
        f'<p:sld xmlns:p="{P_NS}" xmlns:a="{A_NS}"><p:cSld><p:spTree>'
        + "".join(shapes)
        + "</p:spTree></p:cSld></p:sld>"
    )


def text_shape(*paragraphs: str) -> str:
    body = "".join(f"<a:p><a:r><a:t>{p}</a:t></a:r></a:p>" for p in paragraphs)
    return f"<p:sp><p:txBody>{body}</p:txBody></p:sp>"


def make_slide_archive(parts: dict[str, str]) -> bytes:
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for name, xml in parts.items():
            archive.writestr(name, xml)
    return out.getvalue()
