import io
import os

import pytest

from tasklist.storage import FileStorage, UploadRejectedError

BASE = "/api/v1/files/"


class TestFileStorage:
    def test_save_generates_name(self, storage):
        name = storage.save("Photo.PNG", io.BytesIO(b"png-bytes"))
        assert name.endswith(".png")
        assert storage.exists(name)
        with open(storage.path_for(name), "rb") as f:
            assert f.read() == b"png-bytes"

    @pytest.mark.parametrize(
        "filename,content",
        [
            (None, b"x"),
            ("notes.txt", b"x"),
            ("noextension", b"x"),
            ("empty.jpg", b""),
            ("big.jpg", b"x" * 1025),
        ],
    )
    def test_rejects(self, storage, filename, content):
        with pytest.raises(UploadRejectedError):
            storage.save(filename, io.BytesIO(content))
        assert not os.path.exists(storage.root) or os.listdir(storage.root) == []

    def test_exact_limit_is_accepted(self, storage):
        assert storage.save("edge.gif", io.BytesIO(b"x" * 1024))

    @pytest.mark.parametrize("name", ["../secret.png", "a/b.png", "..", ""])
    def test_path_traversal_names(self, storage, name):
        assert storage.path_for(name) is None
        assert storage.delete(name) is False

    def test_delete_missing_is_noop(self, tmp_path):
        storage = FileStorage(str(tmp_path), max_bytes=10)
        assert storage.delete("nothing.png") is False


class TestFilesAPI:
    def test_upload_download_delete(self, client):
        res = client.post(
            BASE,
            files=[
                ("files", ("a.jpg", b"first", "image/jpeg")),
                ("files", ("b.webp", b"second", "image/webp")),
            ],
        )
        assert res.status_code == 201, res.text
        body = res.json()
        assert len(body["files"]) == 2
        assert body["urls"] == [f"/api/v1/files/{n}" for n in body["files"]]

        name = body["files"][0]
        got = client.get(f"{BASE}{name}")
        assert got.status_code == 200
        assert got.content == b"first"

        assert client.delete(f"{BASE}{name}").status_code == 204
        assert client.get(f"{BASE}{name}").status_code == 404
        # deleting again is still fine
        assert client.delete(f"{BASE}{name}").status_code == 204

    def test_rejected_batch_stores_nothing(self, client, storage):
        res = client.post(
            BASE,
            files=[
                ("files", ("ok.png", b"fine", "image/png")),
                ("files", ("bad.exe", b"nope", "application/octet-stream")),
            ],
        )
        assert res.status_code == 400
        assert "unsupported file type" in res.json()["detail"]
        assert os.listdir(storage.root) == []

    def test_missing_file(self, client):
        res = client.get(f"{BASE}20250101_000000_deadbeef.png")
        assert res.status_code == 404
        assert res.json()["detail"] == "File not found"

    def test_attach_uploaded_image_to_todo(self, client):
        name = client.post(BASE, files=[("files", ("a.png", b"img", "image/png"))]).json()["files"][0]
        todo = client.post("/api/v1/todos/", json={"title": "With image", "image_paths": [name]}).json()
        assert todo["image_paths"] == [name]
