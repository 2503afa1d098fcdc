import asyncio
import copy
import base64
import os
import sys
import tempfile
from types import SimpleNamespace

# Keep the module-level app off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="markova-media-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import pytest

from markova.core.domain.entities import BrandKit
from markova.core.domain.jobs import VideoStatusReport
from markova.core.ports.outbound import (
    CampaignCopyPort, CredentialProviderPort, ImageGenerationPort, StrategyPort, VideoGenerationPort
)
from markova.adapters.persistence.db import Database
from markova.adapters.persistence.repositories import (
    BrandKitRepository, CampaignRepository, PlanRepository, StrategicPlanRepository, UserRepository
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def data_url(content: bytes = PNG_BYTES, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


def make_posts(count: int = 3, **overrides):
    posts = []
    for number in range(1, count + 1):
        post = {
            "post_number": number,
            "title": f"Post {number}",
            "caption_ar": f"تعليق {number}",
            "caption_en": f"Caption {number}",
            "hashtags_ar": "#عرض",
            "hashtags_en": "#offer",
            "cta": "Shop now",
            "design_notes": f"Product on a marble table, scene {number}",
        }
        post.update(overrides)
        posts.append(post)
    return posts


class FakeCredentials(CredentialProviderPort):
    def __init__(self, api_key="test-key-1234567890"):
        self.api_key = api_key
        self.refreshes = 0

    def get_api_key(self):
        return self.api_key

    def refresh(self):
        self.refreshes += 1
        return self.api_key


class FakeCopyService(CampaignCopyPort):
    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {"posts": make_posts()}
        self.error = error
        self.requests = []

    async def plan_campaign(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return copy.deepcopy(self.response)


class FakeImageService(ImageGenerationPort):
    """Returns queued results in order; exceptions in the queue are raised"""

    def __init__(self, results=None):
        self.results = list(results or [])
        self.requests = []
        self.active = 0
        self.max_active = 0

    async def generate_image(self, request):
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            result = self.results.pop(0) if self.results else (PNG_BYTES, "image/png")
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.active -= 1


class FakeVideoService(VideoGenerationPort):
    """Serves queued status reports; exceptions in the queue are raised"""

    def __init__(self, reports=None, remote_id="operations/video-1", content=b"mp4-bytes"):
        self.reports = list(reports or [])
        self.remote_id = remote_id
        self.content = content
        self.payloads = []
        self.status_calls = 0
        self.downloads = []

    async def start_video(self, payload):
        self.payloads.append(payload)
        return self.remote_id

    async def get_video_status(self, remote_id):
        self.status_calls += 1
        report = self.reports.pop(0) if self.reports else VideoStatusReport(done=False)
        if isinstance(report, Exception):
            raise report
        return report

    async def download_video(self, uri):
        self.downloads.append(uri)
        return self.content


class FakeStrategyService(StrategyPort):
    def __init__(self, response=None):
        self.response = response if response is not None else {
            "swot": {"strengths": ["Loyal base"], "weaknesses": [], "opportunities": [], "threats": []},
            "competitors": [{"name": "Rival", "strength": "Price", "weakness": "Service"}],
            "audience_personas": [{"name": "Mona", "age": "28"}],
            "roadmap": [{"month": 1, "focus": "Awareness", "key_actions": ["Launch"]}],
        }
        self.calls = []

    async def generate_strategy(self, brand, goals, target_region):
        self.calls.append((brand.id, goals, target_region))
        return copy.deepcopy(self.response)


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)
        await asyncio.sleep(0)


def fake_genai_client(generate_content=None, generate_videos=None, get_operation=None):
    """Object shaped like google.genai.Client for the adapters under test"""
    calls = []

    async def _generate_content(**kwargs):
        calls.append(("generate_content", kwargs))
        return generate_content(**kwargs) if callable(generate_content) else generate_content

    async def _generate_videos(**kwargs):
        calls.append(("generate_videos", kwargs))
        return generate_videos(**kwargs) if callable(generate_videos) else generate_videos

    async def _get(operation):
        calls.append(("operations.get", operation))
        return get_operation(operation) if callable(get_operation) else get_operation

    client = SimpleNamespace(aio=SimpleNamespace(
        models=SimpleNamespace(generate_content=_generate_content, generate_videos=_generate_videos),
        operations=SimpleNamespace(get=_get)
    ))
    client.calls = calls
    return client


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.engine.dispose()


@pytest.fixture
def repositories(database):
    return SimpleNamespace(
        brands=BrandKitRepository(database),
        campaigns=CampaignRepository(database),
        plans=PlanRepository(database),
        users=UserRepository(database),
        strategies=StrategicPlanRepository(database)
    )


@pytest.fixture
def brand(repositories):
    kit = BrandKit(
        user_id="user-1",
        name="Nile Coffee",
        primary_color="#6F4E37",
        secondary_color="#F5DEB3",
        font_family="Cairo",
        tone_of_voice="Warm",
        industry="Coffee"
    )
    repositories.brands.save(kit)
    return kit
