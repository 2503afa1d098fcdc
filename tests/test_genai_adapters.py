import asyncio
import json
from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from markova.core.domain.entities import BrandKit, VisualPrefs
from markova.core.domain.errors import AuthExpiredError, NoOutputError, RemoteServiceError
from markova.core.domain.requests import (
    CampaignRequest, ImageRequest, ReferenceImage, VideoRequest, build_video_payload
)
from markova.adapters.external.genai_client import GenAIClientProvider, translate_api_error
from markova.adapters.external.image_adapter import ImageGenerationAdapter, build_image_prompt
from markova.adapters.external.llm_adapter import CampaignCopyAdapter
from markova.adapters.external.video_adapter import VideoGenerationAdapter, build_generate_videos_kwargs

from conftest import PNG_BYTES, FakeCredentials, fake_genai_client, make_posts


def api_error(code, message):
    return genai_errors.APIError(code, {"error": {"code": code, "message": message, "status": "ERROR"}})


def provider_for(client, credentials=None):
    return GenAIClientProvider(credentials or FakeCredentials(), client_factory=lambda api_key: client)


def raising(error):
    def _raise(*args, **kwargs):
        raise error
    return _raise


def test_client_rebuilt_when_key_changes():
    credentials = FakeCredentials()
    built = []
    provider = GenAIClientProvider(credentials, client_factory=lambda key: built.append(key) or object())

    first = provider.get_client()
    assert provider.get_client() is first
    credentials.api_key = "rotated-key-0987654321"
    provider.get_client()
    assert built == ["test-key-1234567890", "rotated-key-0987654321"]


def test_missing_key_is_auth_expired():
    provider = provider_for(fake_genai_client(), FakeCredentials(api_key=None))
    with pytest.raises(AuthExpiredError):
        provider.get_client()


def test_api_error_translation():
    assert isinstance(translate_api_error(api_error(401, "API key not valid")), AuthExpiredError)

    remote = translate_api_error(api_error(500, "Internal error encountered."))
    assert isinstance(remote, RemoteServiceError)
    assert remote.message == "Internal error encountered."
    assert remote.remote_status == 500

    assert isinstance(translate_api_error(api_error(404, "Requested entity was not found."), during_poll=True),
                      AuthExpiredError)
    assert isinstance(translate_api_error(api_error(404, "Model not found")), RemoteServiceError)


def test_campaign_copy_request_and_parse():
    body = json.dumps({"posts": make_posts()})
    client = fake_genai_client(generate_content=SimpleNamespace(text=f"```json\n{body}\n```"))
    adapter = CampaignCopyAdapter(provider_for(client), model="text-model")
    request = CampaignRequest(
        title="Launch", objective="Sales", audience="Students", brand=None,
        product_images=[ReferenceImage(data=PNG_BYTES)],
        visual_prefs=VisualPrefs(custom_text="Eid Offer")
    )
    request.brand = BrandKit(user_id="u", name="Nile Coffee", primary_color="#000", secondary_color="#fff",
                             font_family="Cairo", tone_of_voice="Warm", industry="Coffee")

    result = asyncio.run(adapter.plan_campaign(request))

    assert len(result["posts"]) == 3
    name, kwargs = client.calls[0]
    assert kwargs["model"] == "text-model"
    parts = kwargs["contents"][0].parts
    assert parts[0].inline_data.data == PNG_BYTES
    assert 'You MUST include the exact text "Eid Offer"' in parts[-1].text
    assert kwargs["config"].response_mime_type == "application/json"


def test_remote_failure_surfaces_verbatim():
    client = fake_genai_client(generate_content=raising(api_error(503, "The model is overloaded.")))
    adapter = ImageGenerationAdapter(provider_for(client))
    with pytest.raises(RemoteServiceError) as excinfo:
        asyncio.run(adapter.generate_image(ImageRequest(prompt="A cup")))
    assert excinfo.value.message == "The model is overloaded."


def test_rejected_key_triggers_refresh():
    credentials = FakeCredentials()
    client = fake_genai_client(generate_content=raising(api_error(403, "Permission denied")))
    adapter = ImageGenerationAdapter(provider_for(client, credentials))
    with pytest.raises(AuthExpiredError):
        asyncio.run(adapter.generate_image(ImageRequest(prompt="A cup")))
    assert credentials.refreshes == 1


def test_image_returns_first_inline_payload():
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[
        SimpleNamespace(inline_data=None, text="Here is your image"),
        SimpleNamespace(inline_data=SimpleNamespace(data=b"first", mime_type="image/jpeg")),
        SimpleNamespace(inline_data=SimpleNamespace(data=b"second", mime_type="image/png")),
    ]))])
    client = fake_genai_client(generate_content=response)
    data, mime_type = asyncio.run(ImageGenerationAdapter(provider_for(client)).generate_image(
        ImageRequest(prompt="A cup")
    ))
    assert (data, mime_type) == (b"first", "image/jpeg")
    assert client.calls[0][1]["config"].image_config.aspect_ratio == "1:1"


def test_image_without_inline_payload_is_no_output():
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[
        SimpleNamespace(inline_data=None, text="I cannot draw that"),
    ]))])
    adapter = ImageGenerationAdapter(provider_for(fake_genai_client(generate_content=response)))
    with pytest.raises(NoOutputError):
        asyncio.run(adapter.generate_image(ImageRequest(prompt="A cup")))


def test_image_prompt_typography():
    assert 'Render exactly the text "Open Now"' in build_image_prompt(ImageRequest(prompt='Shop sign "Open Now"'))
    assert "Do NOT include ANY typography" in build_image_prompt(ImageRequest(prompt="Shop front"))


def test_video_kwargs_per_mode():
    images = [ReferenceImage(data=PNG_BYTES + bytes([i])) for i in range(3)]

    kwargs = build_generate_videos_kwargs(build_video_payload(VideoRequest(prompt="Pan", images=images[:2]), "fast", "ref"))
    assert kwargs["image"].image_bytes == images[0].data
    assert kwargs["config"].last_frame.image_bytes == images[1].data

    kwargs = build_generate_videos_kwargs(build_video_payload(VideoRequest(prompt="Show", images=images), "fast", "ref"))
    config = kwargs["config"]
    assert kwargs["model"] == "ref"
    assert "image" not in kwargs
    assert (config.resolution, config.aspect_ratio) == ("720p", "16:9")
    assert [ref.reference_type for ref in config.reference_images] == [types.VideoGenerationReferenceType.ASSET] * 3


def test_video_start_and_status():
    done = SimpleNamespace(
        error=None, done=True, result=None,
        response=SimpleNamespace(generated_videos=[SimpleNamespace(video=SimpleNamespace(uri="https://files/v.mp4"))])
    )
    client = fake_genai_client(
        generate_videos=SimpleNamespace(name="operations/abc"),
        get_operation=done
    )
    adapter = VideoGenerationAdapter(provider_for(client))

    remote_id = asyncio.run(adapter.start_video(build_video_payload(VideoRequest(prompt="Waves"), "fast", "ref")))
    report = asyncio.run(adapter.get_video_status(remote_id))

    assert remote_id == "operations/abc"
    assert report.done and report.video_uri == "https://files/v.mp4"
    assert client.calls[1][1].name == "operations/abc"


def test_video_status_pending_and_errors():
    pending = SimpleNamespace(error=None, done=False, response=None, result=None)
    adapter = VideoGenerationAdapter(provider_for(fake_genai_client(get_operation=pending)))
    assert asyncio.run(adapter.get_video_status("operations/abc")).done is False

    failed = SimpleNamespace(error={"message": "Content blocked"}, done=True, response=None, result=None)
    adapter = VideoGenerationAdapter(provider_for(fake_genai_client(get_operation=failed)))
    report = asyncio.run(adapter.get_video_status("operations/abc"))
    assert report.error == "Content blocked"

    gone = fake_genai_client(get_operation=raising(api_error(404, "Requested entity was not found.")))
    with pytest.raises(AuthExpiredError):
        asyncio.run(VideoGenerationAdapter(provider_for(gone)).get_video_status("operations/abc"))
