import asyncio
import time

import pytest
from fastapi.testclient import TestClient

from markova.app import create_app
from markova.core.domain.errors import RemoteServiceError
from markova.core.domain.jobs import VideoStatusReport
from markova.infrastructure.config import Config
from markova.infrastructure.dependencies import setup_dependencies

from conftest import (
    FakeCopyService, FakeCredentials, FakeImageService, FakeStrategyService, FakeVideoService, data_url
)

USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


class ApiSettings(Config):
    DATABASE_URL = "sqlite://"
    VIDEO_DELIVERY_MODE = "passthrough"
    INTER_POST_DELAY_SECONDS = 0
    VIDEO_POLL_INTERVAL_SECONDS = 0.01
    MEDIA_TTL_SECONDS = 0


async def short_sleep(seconds):
    await asyncio.sleep(0.01)


def build_client(raise_server_exceptions=True, **services):
    services.setdefault("credentials", FakeCredentials())
    services.setdefault("copy_service", FakeCopyService())
    services.setdefault("image_service", FakeImageService())
    services.setdefault("video_service", FakeVideoService())
    services.setdefault("strategy_service", FakeStrategyService())
    container = setup_dependencies(settings=ApiSettings(), sleep=short_sleep, **services)
    return TestClient(create_app(container), raise_server_exceptions=raise_server_exceptions)


@pytest.fixture
def client():
    return build_client()


def create_brand(client, headers=USER):
    response = client.post("/api/brand-kits", headers=headers, json={
        "name": "Nile Coffee",
        "primaryColor": "#6F4E37",
        "secondaryColor": "#F5DEB3",
        "fontFamily": "Cairo",
        "toneOfVoice": "Warm",
        "industry": "Coffee",
        "logoUrl": data_url()
    })
    assert response.status_code == 201
    return response.json()


def wait_for_video(client, job_id, attempts=200):
    for _ in range(attempts):
        body = client.get(f"/api/video/{job_id}", headers=USER).json()
        if body["status"] in ("done", "failed"):
            return body
        time.sleep(0.01)
    raise AssertionError("video job did not finish")


def test_health_reports_credential_state():
    response = build_client().get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "online"
    assert response.headers["X-Request-ID"]

    response = build_client(credentials=FakeCredentials(api_key="")).get("/api/health")
    assert response.json()["status"] == "unauthorized"


def test_missing_identity_is_forbidden(client):
    response = client.get("/api/brand-kits")
    assert response.status_code == 403
    assert response.json() == {"error": "Missing caller identity", "error_type": "PermissionDeniedError"}


def test_validation_error_shape(client):
    response = client.post("/api/brand-kits", headers=USER, json={"primaryColor": "#000"})
    assert response.status_code == 400
    body = response.json()
    assert body["error_type"] == "ValidationError"
    assert body["field"] == "name"

    response = client.post("/api/image", headers=USER, json={"prompt": "A cup", "aspectRatio": "4:3"})
    assert response.status_code == 400
    assert response.json()["field"] == "aspect_ratio"


def test_brand_kit_crud(client):
    brand = create_brand(client)
    assert brand["user_id"] == "user-1"
    assert brand["font_family"] == "Cairo"

    assert [kit["id"] for kit in client.get("/api/brand-kits", headers=USER).json()] == [brand["id"]]
    assert client.get("/api/brand-kits", headers=OTHER_USER).json() == []
    assert client.get(f"/api/brand-kits/{brand['id']}", headers=OTHER_USER).status_code == 403

    response = client.put(f"/api/brand-kits/{brand['id']}", headers=USER, json={"toneOfVoice": "Bold"})
    assert response.json()["tone_of_voice"] == "Bold"

    assert client.delete(f"/api/brand-kits/{brand['id']}", headers=USER).status_code == 204
    assert client.get(f"/api/brand-kits/{brand['id']}", headers=USER).status_code == 404


def test_generate_campaign_end_to_end(client):
    brand = create_brand(client)
    response = client.post("/api/campaigns/generate", headers=USER, json={
        "brandId": brand["id"],
        "title": "Ramadan Launch",
        "objective": "Drive store visits",
        "audience": "Young professionals",
        "visualPrefs": {"artStyle": "3D Render", "customText": "Eid Offer"}
    })
    assert response.status_code == 200
    campaign = response.json()
    assert [post["post_number"] for post in campaign["posts"]] == [1, 2, 3]
    assert all(post["image_url"].startswith("data:image/png;base64,") for post in campaign["posts"])
    assert campaign["visual_prefs"]["art_style"] == "3D Render"

    stored = client.get("/api/campaigns", headers=USER).json()
    assert [item["id"] for item in stored] == [campaign["id"]]

    post = campaign["posts"][0]
    response = client.put(f"/api/campaigns/{campaign['id']}/posts/{post['id']}", headers=USER,
                          json={"captionEn": "New caption"})
    assert response.json()["caption_en"] == "New caption"

    response = client.post(f"/api/campaigns/{campaign['id']}/posts/{post['id']}/image", headers=USER)
    assert response.status_code == 200
    assert response.json()["image_url"].startswith("data:image/png;base64,")


def test_campaign_relay_requires_brand(client):
    response = client.post("/api/campaign", headers=USER, json={"title": "Launch"})
    assert response.status_code == 400
    assert response.json()["field"] == "brand_id"


def test_generate_image(client):
    response = client.post("/api/image", headers=USER, json={"prompt": 'Sign reading "Open"', "aspectRatio": "16:9"})
    assert response.status_code == 200
    assert response.json()["imageUrl"].startswith("data:image/png;base64,")


def test_remote_failure_is_bad_gateway():
    client = build_client(image_service=FakeImageService(results=[
        RemoteServiceError("The model is overloaded.", remote_status=503)
    ]))
    response = client.post("/api/image", headers=USER, json={"prompt": "A cup"})
    assert response.status_code == 502
    assert response.json() == {"error": "The model is overloaded.", "error_type": "RemoteServiceError"}


def test_strategy_is_generated_and_listed(client):
    brand = create_brand(client)
    response = client.post("/api/strategy", headers=USER, json={
        "brandId": brand["id"], "goals": "Grow online sales", "targetRegion": "MENA"
    })
    assert response.status_code == 200
    assert response.json()["roadmap"][0]["focus"] == "Awareness"
    assert len(client.get("/api/strategic-plans", headers=USER).json()) == 1


def test_video_job_lifecycle():
    video_service = FakeVideoService(reports=[
        VideoStatusReport(done=False),
        VideoStatusReport(done=True, video_uri="https://files/video.mp4"),
    ])
    with build_client(video_service=video_service) as client:
        response = client.post("/api/video", headers=USER, json={"prompt": "Coffee pour", "images": [data_url()]})
        assert response.status_code == 200
        job = response.json()
        assert job["status"] == "pending"
        assert job["mode"] == "start_frame"

        finished = wait_for_video(client, job["id"])
        assert finished["status"] == "done"
        assert finished["video_url"] == "https://files/video.mp4"


def test_video_cancel_and_unknown_job():
    with build_client() as client:
        job = client.post("/api/video", headers=USER, json={"prompt": "Loop"}).json()
        response = client.delete(f"/api/video/{job['id']}", headers=USER)
        assert response.status_code == 200
        assert client.get(f"/api/video/{job['id']}", headers=USER).status_code == 404
        assert client.get("/api/video/unknown", headers=USER).status_code == 404


def test_plans_admin_only(client):
    assert client.post("/api/plans", headers=USER, json={"name": "Pro"}).status_code == 403
    response = client.post("/api/plans", headers=ADMIN, json={"name": "Pro", "priceMonthly": 49})
    assert response.status_code == 201
    assert [plan["name"] for plan in client.get("/api/plans", headers=USER).json()] == ["Pro"]


def test_unknown_rehosted_video_is_not_found(client):
    response = client.get("/download-video/missing.mp4")
    assert response.status_code == 404
    assert response.json()["error_type"] == "NotFoundError"


def test_unexpected_error_is_opaque():
    client = build_client(raise_server_exceptions=False,
                          copy_service=FakeCopyService(error=RuntimeError("boom")))
    brand = create_brand(client)
    response = client.post("/api/campaigns/generate", headers=USER, json={"brandId": brand["id"], "title": "Launch"})
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "error_type": "InternalError"}


def test_video_job_belongs_to_its_creator():
    with build_client() as client:
        job = client.post("/api/video", headers=USER, json={"prompt": "Loop"}).json()
        assert client.get(f"/api/video/{job['id']}", headers=OTHER_USER).status_code == 403
        assert client.delete(f"/api/video/{job['id']}", headers=OTHER_USER).status_code == 403
        assert client.get(f"/api/video/{job['id']}", headers=ADMIN).status_code == 200
        assert client.get(f"/api/video/{job['id']}", headers=USER).json()["status"] == "pending"


def test_plan_update_accepts_partial_dashboard_body(client):
    plan = client.post("/api/plans", headers=ADMIN, json={
        "name": "Pro", "priceMonthly": 49, "features": {"brandsLimit": 3, "teamLimit": 4}
    }).json()

    response = client.put(f"/api/plans/{plan['id']}", headers=ADMIN, json={"features": {"brandsLimit": 5}})
    assert response.status_code == 200
    assert response.json()["features"] == {
        "brands_limit": 5, "campaigns_limit": 10, "exports_limit": 10, "team_limit": 4
    }
    assert response.json()["price_monthly"] == 49


def test_update_bodies_are_validated(client):
    plan = client.post("/api/plans", headers=ADMIN, json={"name": "Pro"}).json()

    response = client.put(f"/api/plans/{plan['id']}", headers=ADMIN, json={"priceMonthly": "abc"})
    assert response.status_code == 400
    assert response.json()["error_type"] == "ValidationError"
    assert response.json()["field"] == "price_monthly"

    response = client.put(f"/api/plans/{plan['id']}", headers=ADMIN, json={"features": {"brandsLimit": "many"}})
    assert response.status_code == 400
    assert response.json()["field"] == "features.brands_limit"

    response = client.put(f"/api/plans/{plan['id']}", headers=ADMIN, json={"name": None})
    assert response.status_code == 400
    assert response.json()["field"] == "name"

    brand = create_brand(client)
    response = client.put(f"/api/brand-kits/{brand['id']}", headers=USER, json={"userId": "user-2"})
    assert response.status_code == 400
    assert response.json()["field"] == "user_id"


def test_duplicate_user_email_is_rejected(client):
    first = client.post("/api/users", headers=ADMIN, json={"name": "Amal", "email": "a@x.io"})
    assert first.status_code == 201

    response = client.post("/api/users", headers=ADMIN, json={"name": "Other", "email": "a@x.io"})
    assert response.status_code == 400
    assert response.json()["field"] == "email"

    response = client.post("/api/users", headers=ADMIN, json={"id": first.json()["id"], "name": "B", "email": "b@x.io"})
    assert response.status_code == 400
    assert response.json()["field"] == "id"

    second = client.post("/api/users", headers=ADMIN, json={"name": "Basma", "email": "b@x.io"}).json()
    response = client.put(f"/api/users/{second['id']}", headers=ADMIN, json={"email": "a@x.io"})
    assert response.status_code == 400
    assert response.json()["field"] == "email"
