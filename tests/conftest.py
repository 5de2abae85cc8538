# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from providers.storage.shot_store import ShotStore
from schemas.shot import ShotRecord
from services.api.app.core.config import Settings
from services.api.app.main import create_app
from workers.llm.prompt_drafting import PromptDraftingService


class FakeGeminiClient:
    """Stands in for GeminiClient; records every context it is asked to complete."""

    def __init__(self, text="Generated AI prompt for the shot", failures=None):
        self.text = text
        self.failures = failures or []
        self.calls = []

    async def generate(self, prompt, **kwargs):
        self.calls.append(prompt)
        return self.text, ("models/fake" if self.text else ""), list(self.failures)


@pytest.fixture
def make_shot():
    def _make(**overrides):
        data = {
            "id": "shot_1",
            "title": "Test Shot",
            "character": "Test Character",
            "description": "Test description",
            "prompt": "",
            "caption": "",
            "status": "prompt not yet generated",
        }
        data.update(overrides)
        return ShotRecord.model_validate(data)
    return _make


@pytest.fixture
def store(tmp_path):
    return ShotStore(tmp_path / "data" / "shots.json")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATA_DIR=str(tmp_path / "data"),
        CORS_ORIGINS="http://localhost:3000",
        GEMINI_API_KEY=None,
        GOOGLE_API_KEY=None,
    )


@pytest.fixture
def fake_gemini():
    return FakeGeminiClient()


@pytest.fixture
def app(settings, store, fake_gemini):
    app = create_app(settings, store=store)
    app.state.drafting_service = PromptDraftingService(fake_gemini)
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
