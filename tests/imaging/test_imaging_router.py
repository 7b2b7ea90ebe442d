"""Tests for imaging domain router."""

import asyncio
import base64
import json
import time

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session
from supabase import StorageException

from conftest import (
    BANNED_TOKEN,
    OTHER_TOKEN,
    PUBLIC_URL_PREFIX,
    USER_TOKEN,
    WORKFLOW_SECRET,
    bearer,
    mock_http_client,
)
from valida.core.http import get_upstream_client
from valida.generation.models import GenerationStatus
from valida.imaging.models import LegacyProduct
from valida.imaging.remove_bg import RemoveBgClient, get_remove_bg_client
from valida.imaging.studio import StudioPhotographer, get_studio_photographer
from valida.imaging.workflow import WorkflowClient, get_workflow_gateway
from valida.main import app

SOURCE_URL = "https://images.example.com/source.jpg"
GENERATED_URL = "https://images.example.com/generated.png"
REMOVE_BG_URL = "https://removebg.example.com/v1.0/removebg"
WORKFLOW_URL = "https://n8n.example.com/webhook/image"
PNG = b"\x89PNG\r\n\x1a\nprocessed"


class UpstreamLog:
    """Mock upstream APIs and record every request they receive."""

    def __init__(self, responses: dict[tuple[str, str], httpx.Response]):
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, f"{request.url.host}{request.url.path}")
        return self.responses.get(key, httpx.Response(404, text="unexpected"))

    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]


def install_upstream(log: UpstreamLog) -> httpx.AsyncClient:
    http_client = mock_http_client(log)
    app.dependency_overrides[get_upstream_client] = lambda: http_client
    return http_client


def source_image() -> httpx.Response:
    return httpx.Response(200, content=b"jpeg", headers={"content-type": "image/jpeg"})


# --- POST /images/remove-background ---


@pytest.fixture(name="remove_bg_log")
def remove_bg_log_fixture(client: TestClient):
    log = UpstreamLog(
        {
            ("GET", "images.example.com/source.jpg"): source_image(),
            ("POST", "removebg.example.com/v1.0/removebg"): httpx.Response(
                200, content=PNG
            ),
        }
    )
    http_client = install_upstream(log)
    app.dependency_overrides[get_remove_bg_client] = lambda: RemoveBgClient(
        api_key="rb-key", url=REMOVE_BG_URL, http_client=http_client
    )
    return log


def test_remove_background_updates_generation(
    client: TestClient, session: Session, make_generation, storage_client, remove_bg_log
):
    generation = make_generation(id="abc123", image_url=SOURCE_URL)

    response = client.post(
        "/images/remove-background",
        json={"image_url": SOURCE_URL, "product_id": "abc123"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 200
    bucket = storage_client.storage.from_.return_value
    bucket.upload.assert_called_once()
    name, data = bucket.upload.call_args[0]
    assert name.startswith("processed_abc123_")
    assert data == PNG
    assert response.json() == {
        "success": True,
        "processed_image_url": f"{PUBLIC_URL_PREFIX}{name}",
    }
    session.refresh(generation)
    assert generation.image_url == f"{PUBLIC_URL_PREFIX}{name}"

    removal = remove_bg_log.requests[1]
    assert removal.headers["X-Api-Key"] == "rb-key"
    assert b'name="size"' in removal.content
    assert b'name="image_file"' in removal.content


def test_failed_upload_leaves_row_unchanged(
    client: TestClient, session: Session, make_generation, storage_client, remove_bg_log
):
    generation = make_generation(id="abc123", image_url=SOURCE_URL)
    bucket = storage_client.storage.from_.return_value
    bucket.upload.side_effect = StorageException("Bucket not found")

    response = client.post(
        "/images/remove-background",
        json={"image_url": SOURCE_URL, "product_id": "abc123"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 500
    assert response.json()["type"] == "persistence_error"
    session.refresh(generation)
    assert generation.image_url == SOURCE_URL


def test_removal_api_error_is_upstream_error(
    client: TestClient, session, make_generation, storage_client, remove_bg_log
):
    make_generation(id="abc123")
    remove_bg_log.responses[("POST", "removebg.example.com/v1.0/removebg")] = (
        httpx.Response(402, text="Insufficient credits")
    )

    response = client.post(
        "/images/remove-background",
        json={"image_url": SOURCE_URL, "product_id": "abc123"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 502
    assert response.json() == {
        "error": "remove.bg error: 402 - Insufficient credits",
        "type": "upstream_error",
    }
    storage_client.storage.from_.return_value.upload.assert_not_called()


def test_foreign_generation_is_checked_before_any_call(
    client: TestClient, make_generation, remove_bg_log
):
    make_generation(id="abc123")

    response = client.post(
        "/images/remove-background",
        json={"image_url": SOURCE_URL, "product_id": "abc123"},
        headers=bearer(OTHER_TOKEN),
    )

    assert response.status_code == 404
    assert remove_bg_log.requests == []


def test_missing_removal_key_is_configuration_error(
    client: TestClient, make_generation, remove_bg_log
):
    make_generation(id="abc123")
    app.dependency_overrides[get_remove_bg_client] = lambda: RemoveBgClient(
        api_key=None, url=REMOVE_BG_URL, http_client=mock_http_client(remove_bg_log)
    )

    response = client.post(
        "/images/remove-background",
        json={"image_url": SOURCE_URL, "product_id": "abc123"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 500
    assert response.json()["type"] == "configuration_error"
    assert remove_bg_log.requests == []


def test_missing_image_url_is_rejected(client: TestClient, remove_bg_log):
    response = client.post(
        "/images/remove-background",
        json={"product_id": "abc123"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 400
    assert remove_bg_log.requests == []


# --- POST /images/studio ---


def chat_completion(content: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4o",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
        },
    )


@pytest.fixture(name="studio_log")
def studio_log_fixture(client: TestClient):
    log = UpstreamLog(
        {
            ("GET", "images.example.com/source.jpg"): source_image(),
            ("POST", "api.openai.com/v1/chat/completions"): chat_completion(
                "A matte red ceramic mug"
            ),
            ("POST", "api.openai.com/v1/images/generations"): httpx.Response(
                200, json={"created": 0, "data": [{"url": GENERATED_URL}]}
            ),
            ("GET", "images.example.com/generated.png"): httpx.Response(
                200, content=PNG, headers={"content-type": "image/png"}
            ),
        }
    )
    http_client = install_upstream(log)
    app.dependency_overrides[get_studio_photographer] = lambda: StudioPhotographer(
        api_key="sk-test", http_client=http_client
    )
    return log


def _paths(log: UpstreamLog) -> list[str]:
    return [request.url.path for request in log.requests]


def test_studio_updates_generation(
    client: TestClient, session: Session, make_generation, storage_client, studio_log
):
    generation = make_generation(id="gen-9")

    response = client.post(
        "/images/studio",
        json={"image_url": SOURCE_URL, "generation_id": "gen-9", "product_id": "p-1"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["processedUrl"].startswith(f"{PUBLIC_URL_PREFIX}processed_gen-9_")
    assert _paths(studio_log) == [
        "/source.jpg",
        "/v1/chat/completions",
        "/v1/images/generations",
        "/generated.png",
    ]
    session.refresh(generation)
    assert generation.image_url == data["processedUrl"]


def test_studio_inline_image_is_not_downloaded(
    client: TestClient, make_generation, storage_client, studio_log
):
    make_generation(id="gen-9")
    studio_log.responses[("POST", "api.openai.com/v1/images/generations")] = (
        httpx.Response(
            200,
            json={"created": 0, "data": [{"b64_json": base64.b64encode(PNG).decode()}]},
        )
    )

    response = client.post(
        "/images/studio",
        json={"image_url": SOURCE_URL, "generation_id": "gen-9"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 200
    assert "/generated.png" not in _paths(studio_log)
    _, data = storage_client.storage.from_.return_value.upload.call_args[0]
    assert data == PNG


def test_studio_prompt_is_built_from_description(client, make_generation, studio_log):
    make_generation(id="gen-9")

    client.post(
        "/images/studio",
        json={"image_url": SOURCE_URL, "generation_id": "gen-9"},
        headers=bearer(USER_TOKEN),
    )

    generation_request = studio_log.requests[2]
    assert b"A matte red ceramic mug" in generation_request.content
    assert b"1024x1024" in generation_request.content


def test_studio_updates_legacy_product(
    client: TestClient, session: Session, test_profile, studio_log
):
    product = LegacyProduct(id="p-1", user_id=test_profile.id)
    session.add(product)
    session.commit()

    response = client.post(
        "/images/studio",
        json={"image_url": SOURCE_URL, "product_id": "p-1"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 200
    session.refresh(product)
    assert product.processed_image_url == response.json()["processedUrl"]


def test_studio_vision_failure_skips_generation(
    client: TestClient, session, make_generation, storage_client, studio_log
):
    generation = make_generation(id="gen-9")
    studio_log.responses[("POST", "api.openai.com/v1/chat/completions")] = (
        httpx.Response(500, json={"error": {"message": "overloaded"}})
    )

    response = client.post(
        "/images/studio",
        json={"image_url": SOURCE_URL, "generation_id": "gen-9"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 502
    assert response.json()["error"].startswith("Vision API error: 500")
    assert "/v1/images/generations" not in _paths(studio_log)
    storage_client.storage.from_.return_value.upload.assert_not_called()
    session.refresh(generation)
    assert generation.image_url is None


# --- POST /images/workflow ---


def install_workflow(handler, timeout_seconds: float = 5.0) -> None:
    app.dependency_overrides[get_workflow_gateway] = lambda: WorkflowClient(
        webhook_url=WORKFLOW_URL,
        timeout_seconds=timeout_seconds,
        http_client=mock_http_client(handler),
    )


def test_workflow_saves_result(
    client: TestClient, session: Session, make_generation, storage_client
):
    generation = make_generation(id="gen-7")
    received = []

    def handler(request):
        received.append(request)
        return httpx.Response(200, content=PNG)

    install_workflow(handler)

    response = client.post(
        "/images/workflow",
        json={"image_url": SOURCE_URL, "product_id": "gen-7"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["imageUrl"].startswith(f"{PUBLIC_URL_PREFIX}edited_gen-7_")
    assert data["message"] == "Image processed and saved successfully"
    assert received[0].url == WORKFLOW_URL
    assert json.loads(received[0].content) == {
        "image_url": SOURCE_URL,
        "product_id": "gen-7",
        "task": "remove_background_studio",
    }
    session.refresh(generation)
    assert generation.image_url == data["imageUrl"]


def test_workflow_timeout_is_distinct_from_upstream_error(
    client: TestClient, session: Session, make_generation, storage_client
):
    generation = make_generation(id="gen-7")

    async def never_answers(request):
        await asyncio.sleep(30)
        return httpx.Response(200, content=PNG)

    install_workflow(never_answers, timeout_seconds=0.2)

    started = time.monotonic()
    response = client.post(
        "/images/workflow",
        json={"image_url": SOURCE_URL, "product_id": "gen-7"},
        headers=bearer(USER_TOKEN),
    )
    elapsed = time.monotonic() - started

    assert response.status_code == 504
    assert response.json()["type"] == "upstream_timeout"
    assert elapsed < 5
    storage_client.storage.from_.return_value.upload.assert_not_called()
    session.refresh(generation)
    assert generation.image_url is None


def test_workflow_failure_is_upstream_error(client: TestClient, make_generation):
    make_generation(id="gen-7")
    install_workflow(lambda request: httpx.Response(500, text="workflow crashed"))

    response = client.post(
        "/images/workflow",
        json={"image_url": SOURCE_URL, "product_id": "gen-7"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 502
    assert response.json()["type"] == "upstream_error"


def test_workflow_empty_body_is_upstream_error(client: TestClient, make_generation):
    make_generation(id="gen-7")
    install_workflow(lambda request: httpx.Response(200, content=b""))

    response = client.post(
        "/images/workflow",
        json={"image_url": SOURCE_URL, "product_id": "gen-7"},
        headers=bearer(USER_TOKEN),
    )

    assert response.status_code == 502


# --- POST /images/workflow/callback ---


def test_callback_updates_generation(client: TestClient, session, make_generation):
    generation = make_generation(status=GenerationStatus.concluido)

    response = client.post(
        "/images/workflow/callback",
        json={"generation_id": generation.id, "image_url": GENERATED_URL},
        headers={"X-Workflow-Token": WORKFLOW_SECRET},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "image_url": GENERATED_URL}
    session.refresh(generation)
    assert generation.image_url == GENERATED_URL
    assert generation.status == GenerationStatus.concluido


@pytest.mark.parametrize("token", [None, "wrong", WORKFLOW_SECRET + "x"])
def test_callback_rejects_bad_token(client: TestClient, make_generation, token):
    generation = make_generation()
    headers = {"X-Workflow-Token": token} if token else {}

    response = client.post(
        "/images/workflow/callback",
        json={"generation_id": generation.id, "image_url": GENERATED_URL},
        headers=headers,
    )

    assert response.status_code == 401
    assert response.json() == {
        "error": "Invalid workflow token",
        "type": "invalid_workflow_token",
    }


def test_callback_unknown_generation(client: TestClient):
    response = client.post(
        "/images/workflow/callback",
        json={"generation_id": "missing", "image_url": GENERATED_URL},
        headers={"X-Workflow-Token": WORKFLOW_SECRET},
    )

    assert response.status_code == 404


def test_callback_without_configured_secret(client: TestClient, mock_settings):
    mock_settings.n8n_callback_secret = None

    response = client.post(
        "/images/workflow/callback",
        json={"generation_id": "any", "image_url": GENERATED_URL},
        headers={"X-Workflow-Token": "anything"},
    )

    assert response.status_code == 500
    assert response.json()["type"] == "configuration_error"


# --- ban gate ---


@pytest.fixture(name="any_upstream_log")
def any_upstream_log_fixture(client: TestClient):
    """Wire every image gateway to one mocked upstream that records calls."""
    log = UpstreamLog({})
    http_client = install_upstream(log)
    app.dependency_overrides[get_remove_bg_client] = lambda: RemoveBgClient(
        api_key="rb-key", url=REMOVE_BG_URL, http_client=http_client
    )
    app.dependency_overrides[get_studio_photographer] = lambda: StudioPhotographer(
        api_key="sk-test", http_client=http_client
    )
    app.dependency_overrides[get_workflow_gateway] = lambda: WorkflowClient(
        webhook_url=WORKFLOW_URL, timeout_seconds=5, http_client=http_client
    )
    return log


@pytest.mark.parametrize(
    ("path", "body"),
    [
        ("/images/remove-background", {"product_id": "ban-gen"}),
        ("/images/studio", {"generation_id": "ban-gen"}),
        ("/images/workflow", {"product_id": "ban-gen"}),
    ],
)
def test_banned_account_is_refused_by_every_image_gateway(
    client: TestClient,
    make_generation,
    banned_profile,
    storage_client,
    any_upstream_log,
    path,
    body,
):
    generation = make_generation(banned_profile.id, id="ban-gen", image_url=SOURCE_URL)

    response = client.post(
        path, json={"image_url": SOURCE_URL, **body}, headers=bearer(BANNED_TOKEN)
    )

    assert response.status_code == 403
    assert response.json()["type"] == "user_banned"
    assert any_upstream_log.requests == []
    storage_client.storage.from_.return_value.upload.assert_not_called()
    assert generation.image_url == SOURCE_URL
