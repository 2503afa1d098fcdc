import asyncio

import pytest

from markova.core.domain.entities import VisualPrefs
from markova.core.domain.errors import (
    IncompleteOutputError, NotFoundError, PermissionDeniedError, RemoteServiceError, ValidationError
)
from markova.core.domain.requests import CampaignRequest
from markova.core.domain.typography import NO_TEXT_DIRECTIVE
from markova.core.use_cases.campaign_generation_use_case import CampaignGenerationUseCase
from markova.core.use_cases.result_materializer import ResultMaterializer, PassthroughVideoDelivery

from conftest import FakeCopyService, FakeImageService, RecordingSleep, make_posts


def build_use_case(repositories, copy_service=None, image_service=None, sleep=None):
    return CampaignGenerationUseCase(
        copy_service=copy_service or FakeCopyService(),
        image_service=image_service or FakeImageService(),
        brand_repository=repositories.brands,
        campaign_repository=repositories.campaigns,
        materializer=ResultMaterializer(PassthroughVideoDelivery()),
        inter_post_delay=0.8,
        sleep=sleep or RecordingSleep()
    )


def campaign_request(custom_text=None):
    return CampaignRequest(
        title="Ramadan Launch",
        objective="Drive store visits",
        audience="Young professionals in Cairo",
        brand=None,
        visual_prefs=VisualPrefs(custom_text=custom_text)
    )


def test_generates_and_persists_campaign(repositories, brand):
    sleep = RecordingSleep()
    images = FakeImageService()
    use_case = build_use_case(repositories, image_service=images, sleep=sleep)

    campaign = asyncio.run(use_case.generate_campaign("user-1", brand.id, campaign_request()))

    assert campaign.status == "generated"
    assert [post.post_number for post in campaign.posts] == [1, 2, 3]
    assert all(post.image_url.startswith("data:image/png;base64,") for post in campaign.posts)
    assert sleep.calls == [0.8, 0.8]
    assert images.max_active == 1

    stored = repositories.campaigns.get_by_id(campaign.id)
    assert stored is not None
    assert [post.title for post in stored.posts] == ["Post 1", "Post 2", "Post 3"]
    assert stored.target_market == "Egypt"


def test_failed_post_image_does_not_abort_batch(repositories, brand):
    sleep = RecordingSleep()
    images = FakeImageService(results=[
        (b"one", "image/png"),
        RemoteServiceError("Image model overloaded", remote_status=503),
        (b"three", "image/jpeg"),
    ])
    use_case = build_use_case(repositories, image_service=images, sleep=sleep)

    campaign = asyncio.run(use_case.generate_campaign("user-1", brand.id, campaign_request()))

    assert campaign.posts[0].image_url is not None
    assert campaign.posts[1].image_url is None
    assert campaign.posts[2].image_url.startswith("data:image/jpeg;base64,")
    assert len(images.requests) == 3
    assert sleep.calls == [0.8, 0.8]
    assert repositories.campaigns.get_by_id(campaign.id).posts[1].image_url is None


def test_incomplete_copy_is_rejected_and_not_stored(repositories, brand):
    posts = make_posts()
    del posts[2]["cta"]
    images = FakeImageService()
    use_case = build_use_case(repositories, copy_service=FakeCopyService({"posts": posts}), image_service=images)

    with pytest.raises(IncompleteOutputError):
        asyncio.run(use_case.generate_campaign("user-1", brand.id, campaign_request()))

    assert images.requests == []
    assert repositories.campaigns.list(user_id="user-1") == []


def test_wrong_post_count_is_rejected(repositories, brand):
    use_case = build_use_case(repositories, copy_service=FakeCopyService({"posts": make_posts(4)}))
    with pytest.raises(IncompleteOutputError):
        asyncio.run(use_case.generate_campaign("user-1", brand.id, campaign_request()))


def test_missing_brand_fails_before_remote_call(repositories):
    copy_service = FakeCopyService()
    use_case = build_use_case(repositories, copy_service=copy_service)

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(use_case.generate_campaign("user-1", "", campaign_request()))
    assert excinfo.value.field == "brand_id"

    with pytest.raises(NotFoundError):
        asyncio.run(use_case.generate_campaign("user-1", "no-such-brand", campaign_request()))
    assert copy_service.requests == []


def test_brand_of_another_user_is_denied(repositories, brand):
    use_case = build_use_case(repositories)
    with pytest.raises(PermissionDeniedError):
        asyncio.run(use_case.generate_campaign("user-2", brand.id, campaign_request()))


def test_plan_posts_enforces_typography(repositories, brand):
    use_case = build_use_case(repositories)
    request = campaign_request()
    request.brand = brand
    posts = asyncio.run(use_case.plan_posts(request))
    assert all(post["design_notes"].endswith(NO_TEXT_DIRECTIVE) for post in posts)

    request = campaign_request(custom_text="Eid Offer")
    request.brand = brand
    posts = asyncio.run(use_case.plan_posts(request))
    assert all('"Eid Offer"' in post["design_notes"] for post in posts)


def test_post_images_use_design_notes_and_products(repositories, brand):
    images = FakeImageService()
    use_case = build_use_case(repositories, image_service=images)
    asyncio.run(use_case.generate_campaign("user-1", brand.id, campaign_request()))

    first = images.requests[0]
    assert "Product on a marble table, scene 1" in first.prompt
    assert "Art style: Realism." in first.prompt
    assert first.brand.id == brand.id
