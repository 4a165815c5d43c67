"""Tests for the POST /api/upload route and the upload helpers."""

from __future__ import annotations

import io
import os

import pytest

from assistant.errors import UploadError
from assistant.uploads import first_value, normalize_topic, save_upload


def _upload_dir():
    return os.environ["UPLOAD_DIR"]


def test_upload_saves_file_with_extension(api, env):
    resp = api.post(
        "/api/upload",
        files={"file": ("agenda.pdf", b"%PDF-1.4 agenda", "application/pdf")},
        data={"topic": "energy"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["file"]["name"] == "agenda.pdf"
    assert body["file"]["topic"] == "energy"
    assert body["file"]["storedAs"].endswith(".pdf")
    assert body["file"]["storedAs"] != "agenda.pdf"

    path = os.path.join(_upload_dir(), body["file"]["storedAs"])
    with open(path, "rb") as fh:
        assert fh.read() == b"%PDF-1.4 agenda"


def test_topic_defaults_to_general(api):
    resp = api.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 200
    assert resp.json()["file"]["topic"] == "general"


def test_first_file_wins_when_several_are_sent(api):
    resp = api.post(
        "/api/upload",
        files=[
            ("file", ("first.txt", b"one", "text/plain")),
            ("file", ("second.txt", b"two", "text/plain")),
        ],
    )
    assert resp.status_code == 200
    assert resp.json()["file"]["name"] == "first.txt"


def test_missing_file_is_rejected(api):
    resp = api.post("/api/upload", data={"topic": "energy"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No file uploaded"}


def test_oversized_file_fails_and_leaves_nothing(api, env):
    env.setenv("UPLOAD_MAX_BYTES", "4")

    resp = api.post("/api/upload", files={"file": ("big.bin", b"0123456789", "application/octet-stream")})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Upload failed"}
    upload_dir = _upload_dir()
    assert not os.path.exists(upload_dir) or os.listdir(upload_dir) == []


def test_non_post_is_not_allowed(api):
    resp = api.get("/api/upload")
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed"}


def test_first_value_collapses_lists():
    assert first_value(["a", "b"]) == "a"
    assert first_value([]) is None
    assert first_value("a") == "a"
    assert first_value(None) is None


def test_normalize_topic():
    assert normalize_topic(["trade"]) == "trade"
    assert normalize_topic("trade") == "trade"
    assert normalize_topic([]) == "general"
    assert normalize_topic("") == "general"


def test_save_upload_without_extension(tmp_path):
    stored = save_upload(
        io.BytesIO(b"data"), "README", "general", upload_dir=str(tmp_path), max_bytes=100
    )
    assert "." not in stored.stored_as
    assert stored.size == 4
    assert os.path.exists(stored.path)


def test_save_upload_over_limit_raises(tmp_path):
    with pytest.raises(UploadError, match="byte limit"):
        save_upload(
            io.BytesIO(b"x" * 11), "a.txt", "general", upload_dir=str(tmp_path), max_bytes=10
        )
    assert os.listdir(tmp_path) == []


@pytest.mark.parametrize("method", ["PUT", "PATCH", "DELETE", "OPTIONS"])
def test_other_methods_get_error_shape(api, method):
    resp = api.request(method, "/api/upload")
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed"}


def test_head_is_not_allowed(api):
    assert api.head("/api/upload").status_code == 405
