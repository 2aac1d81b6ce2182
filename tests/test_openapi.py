import json

from tasklist.generate_openapi import generate_openapi


def test_generate_openapi_writes_schema(tmp_path):
    out = generate_openapi(str(tmp_path / "interfaces" / "openapi.json"))
    with open(out, encoding="utf-8") as f:
        schema = json.load(f)
    assert {t["name"] for t in schema["tags"]} >= {"health", "todos", "tags", "files", "import"}
    assert "/api/v1/todos/" in schema["paths"]
    assert "/api/v1/todos/{todo_id}/status" in schema["paths"]
