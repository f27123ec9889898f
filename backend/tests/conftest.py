"""Shared fixtures: fake OCR engines and sample ID images."""

import base64
import io
import time

import pytest
from PIL import Image

from id_verification.services import OCREngine


# Header lines are all caps so the first capitalized-word run is the holder's name
VALID_ID_TEXT = (
    "REPUBLIC OF THE PHILIPPINES\n"
    "NATIONAL ID\n"
    "ID NO: 123-4567-890\n"
    "NAME: Juan Dela Cruz\n"
    "DATE OF BIRTH: 01/15/1990"
)

NO_DATE_ID_TEXT = (
    "REPUBLIC OF THE PHILIPPINES\n"
    "ID NO: 123-4567-890\n"
    "NAME: Juan Dela Cruz"
)


class FakeEngine(OCREngine):
    """Deterministic engine returning canned text, optionally slow or failing."""

    name = "fake"

    def __init__(self, text="", delay=0.0, error=None, terminate_error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.terminate_error = terminate_error
        self.recognize_calls = 0
        self.terminate_calls = 0

    def recognize(self, image_bytes):
        self.recognize_calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.text

    def terminate(self):
        self.terminate_calls += 1
        if self.terminate_error:
            raise self.terminate_error


class EngineFactory:
    """Engine factory that remembers every engine it handed out."""

    def __init__(self, create_error=None, **engine_kwargs):
        self.create_error = create_error
        self.engine_kwargs = engine_kwargs
        self.engines = []

    def __call__(self):
        if self.create_error:
            raise self.create_error
        engine = FakeEngine(**self.engine_kwargs)
        self.engines.append(engine)
        return engine


@pytest.fixture
def engine_factory():
    """Build an EngineFactory: ``engine_factory(text=..., delay=..., error=..., create_error=...)``."""
    return EngineFactory


def _png_bytes(size=(320, 200)) -> bytes:
    img = Image.new("RGB", size, color=(200, 200, 190))
    # Dark stripes stand in for printed text
    pixels = img.load()
    for x in range(20, size[0] - 20):
        for y in range(40, size[1] - 40):
            if (y // 8) % 3 == 0:
                pixels[x, y] = (30, 30, 40)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_image_bytes():
    """A small PNG that looks vaguely like a card."""
    return _png_bytes()


@pytest.fixture
def sample_data_url(sample_image_bytes):
    """The sample image as a browser-style data URL."""
    return "data:image/png;base64," + base64.b64encode(sample_image_bytes).decode("ascii")


@pytest.fixture
def not_an_image_data_url():
    """Valid base64 that does not decode to an image."""
    return "data:image/png;base64," + base64.b64encode(b"definitely not an image").decode("ascii")


@pytest.fixture
def valid_id_text():
    return VALID_ID_TEXT


@pytest.fixture
def no_date_id_text():
    return NO_DATE_ID_TEXT
