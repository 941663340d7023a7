"""Tests for the FastAPI service mode."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from sitecraft.config import SiteCraftConfig
from sitecraft.llm import LLMRunner, ProviderError
from sitecraft.pipeline import SiteGenerator
from sitecraft.service.app import create_app
from tests._fixtures.project_builder import ProjectBuilder

GENERATED = json.dumps(
    {
        "description": "Generated bakery",
        "files": [{"path": "index.html", "content": "<html><head></head><body>Bread</body></html>"}],
    }
)

PAGES = {
    "index.html": "<html><head></head><body><a href='about.html'>About</a></body></html>",
    "about.html": "<html><head></head><body>About us</body></html>",
    "styles.css": "body { margin: 0; }",
}


def _generator(response: str = GENERATED) -> SiteGenerator:
    return SiteGenerator(LLMRunner("openai", "test-model", api_key="key", runner=lambda request: response))


@pytest.fixture
def client(tmp_path: Path) -> TestClient:
    app = create_app(lambda: _generator(), config=SiteCraftConfig(root=tmp_path))
    return TestClient(app)


@pytest.fixture
def project_client(project_builder: ProjectBuilder, tmp_path: Path) -> TestClient:
    project_builder.write(PAGES)
    app = create_app(
        lambda: _generator(),
        config=SiteCraftConfig(root=tmp_path, title="Bakery"),
        project=project_builder.path(),
    )
    return TestClient(app)


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_extract_endpoint_returns_files(client: TestClient) -> None:
    response = client.post("/extract", json={"raw": "```json\n" + GENERATED + "\n```"})

    assert response.status_code == 200
    body = response.json()
    assert body["strategy"] == "fence_stripped"
    assert body["description"] == "Generated bakery"
    assert body["files"][0]["path"] == "index.html"
    assert body["files"][0]["kind"] == "markup"


def test_preview_endpoint_composes_target(client: TestClient) -> None:
    files = [{"path": path, "content": content} for path, content in PAGES.items()]

    response = client.post("/preview", json={"files": files, "target": "about"})

    body = response.json()
    assert response.status_code == 200
    assert body["target"] == "about.html"
    assert body["available_pages"] == ["index.html", "about.html"]
    assert "body { margin: 0; }" in body["document"]


def test_preview_endpoint_reports_missing_markup(client: TestClient) -> None:
    response = client.post("/preview", json={"files": [{"path": "a.css", "content": "a{}"}]})

    body = response.json()
    assert body["previewable"] is False
    assert body["issues"][0]["kind"] == "no_previewable_target"


def test_navigate_with_inline_files(client: TestClient) -> None:
    files = [{"path": path, "content": content} for path, content in PAGES.items()]
    message = {"type": "NAVIGATE_TO_PAGE", "targetFile": "about.html"}

    response = client.post("/navigate", json={"message": message, "files": files, "current_page": "index.html"})

    body = response.json()
    assert body["accepted"] is True
    assert body["remount"] is True
    assert body["current_page"] == "about.html"
    assert body["mount_key"] == 2
    assert "About us" in body["document"]


def test_navigate_without_project_is_not_found(client: TestClient) -> None:
    response = client.post("/navigate", json={"message": {"type": "NAVIGATE_TO_SECTION", "hash": "top"}})

    assert response.status_code == 404


def test_served_project_navigation_updates_state(project_client: TestClient) -> None:
    page = project_client.get("/")
    assert page.status_code == 200
    assert "<title>Bakery</title>" in page.text

    before = project_client.get("/api/project").json()
    assert before["current_page"] == "index.html"
    assert before["mount_key"] == 1

    response = project_client.post(
        "/navigate", json={"message": {"type": "NAVIGATE_TO_PAGE", "targetFile": "about.html"}}
    )
    assert response.json()["remount"] is True

    after = project_client.get("/api/project").json()
    assert after["current_page"] == "about.html"
    assert after["mount_key"] == 2
    assert [item["path"] for item in after["files"]] == ["index.html", "about.html", "styles.css"]


def test_served_project_ignores_malformed_messages(project_client: TestClient) -> None:
    response = project_client.post("/navigate", json={"message": {"type": "NAVIGATE_TO_PAGE"}})

    assert response.status_code == 200
    assert response.json()["accepted"] is False
    assert project_client.get("/api/project").json()["mount_key"] == 1


def test_generate_endpoint_creates_project(client: TestClient) -> None:
    response = client.post("/generate", json={"prompt": "A bakery"})

    body = response.json()
    assert response.status_code == 200
    assert body["changed"] == ["index.html"]
    assert body["provider"] == "openai"
    assert body["model"] == "test-model"


def test_generate_endpoint_modifies_given_files(tmp_path: Path) -> None:
    update = json.dumps({"files": [{"path": "styles.css", "content": "body { margin: 4px; }"}]})
    app = create_app(lambda: _generator(update), config=SiteCraftConfig(root=tmp_path))
    files = [{"path": path, "content": content} for path, content in PAGES.items()]

    response = TestClient(app).post("/generate", json={"prompt": "More margin", "files": files})

    body = response.json()
    assert body["changed"] == ["styles.css"]
    assert len(body["files"]) == 3


def test_provider_errors_map_to_bad_gateway(tmp_path: Path) -> None:
    def failing(request):
        raise ProviderError("OpenAI API error: 500 Server Error", provider="openai", status=500)

    generator = SiteGenerator(LLMRunner("openai", api_key="key", runner=failing))
    app = create_app(lambda: generator, config=SiteCraftConfig(root=tmp_path))

    response = TestClient(app).post("/generate", json={"prompt": "A bakery"})

    assert response.status_code == 502
    assert response.json() == {"detail": "OpenAI API error: 500 Server Error", "provider": "openai"}


def test_generate_rejects_empty_prompt(client: TestClient) -> None:
    assert client.post("/generate", json={"prompt": ""}).status_code == 422
