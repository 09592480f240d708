import pytest
from fakes import FakeYouTube


@pytest.fixture
def fake_youtube() -> FakeYouTube:
    return FakeYouTube()
