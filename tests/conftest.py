import sys
from pathlib import Path

import pytest
from PIL import Image

# Ensure the repository root is on sys.path for direct pytest runs
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from faceresize.face import FaceCandidate  # noqa: E402


class FakeLocator:
    """Stands in for FaceLocator; returns a fixed face (or None) and records calls."""

    def __init__(self, face=None):
        self.face = face
        self.calls = 0

    def locate(self, gray):
        self.calls += 1
        return self.face


@pytest.fixture
def make_image(tmp_path):
    def _make(name, size=(64, 48), color=(200, 120, 40), mode="RGB", fmt=None):
        path = tmp_path / name
        Image.new(mode, size, color).save(path, format=fmt)
        return path
    return _make


@pytest.fixture
def fake_locator():
    return FakeLocator()


@pytest.fixture
def face_locator_factory():
    def _factory(face=None):
        locator = FakeLocator(face)
        return lambda: locator
    return _factory


@pytest.fixture
def sample_face():
    return FaceCandidate(x=700, y=200, width=100, height=100, score=9.0)


@pytest.fixture
def portrait_path():
    """512x512 photo with one frontal face in its upper-left quarter."""
    return REPO_ROOT / "tests" / "data" / "astronaut.png"
