"""OCR adapter for ID card photos.

One recognition engine is created per request and terminated when the
request is done:
- EasyOCR (PyTorch-based) reader, paragraph mode so the card is read as a
  single text block
- Tesseract via pytesseract, page segmentation mode 6 (single uniform block)
  and the fast LSTM engine

Recognition is blocking, so it runs on a small dedicated thread pool and is
raced against a timer. A timed-out recognition is abandoned, not interrupted,
and keeps its pool thread until the engine returns.
"""

import asyncio
import io
import logging
import os
import re
import time
import unicodedata
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from ..config import Settings, get_settings
from .errors import OcrEngineError
from .racing import run_with_timeout

logger = logging.getLogger(__name__)


# Tesseract flags: LSTM engine only (fastest), assume one uniform block of text
TESSERACT_CONFIG = "--oem 1 --psm 6"


class OCREngine(ABC):
    """
    A stateful recognition engine instance.

    Instances are request-scoped: never cache or share them between requests.
    """

    name: str = "ocr"

    @abstractmethod
    def recognize(self, image_bytes: bytes) -> str:
        """Return the plain text found in an encoded image."""
        ...

    @abstractmethod
    def terminate(self) -> None:
        """Release the engine's resources."""
        ...


class EasyOCREngine(OCREngine):
    """EasyOCR reader wrapper (CPU mode)."""

    name = "easyocr"

    def __init__(self, lang: str = "en", model_dir: Optional[str] = None):
        try:
            import easyocr
            import torch
        except ImportError as e:
            raise OcrEngineError(f"EasyOCR is not installed: {e}") from e

        # Keep CPU inference from grabbing every core
        num_threads = int(os.environ.get("TORCH_NUM_THREADS", min(4, os.cpu_count() or 2)))
        torch.set_num_threads(num_threads)

        kwargs = {"gpu": False, "verbose": False}
        if model_dir:
            kwargs["model_storage_directory"] = model_dir

        try:
            self._reader = easyocr.Reader([lang], **kwargs)
        except Exception as e:
            raise OcrEngineError(f"Failed to initialize EasyOCR: {e}") from e

    def recognize(self, image_bytes: bytes) -> str:
        if self._reader is None:
            raise OcrEngineError("EasyOCR engine already terminated")
        try:
            # detail=0 returns strings only; paragraph=True merges into text blocks
            results = self._reader.readtext(
                image_bytes,
                detail=0,
                paragraph=True,
                decoder="greedy",
                batch_size=1,
            )
        except Exception as e:
            raise OcrEngineError(f"EasyOCR recognition failed: {e}") from e
        return "\n".join(results)

    def terminate(self) -> None:
        self._reader = None


class TesseractEngine(OCREngine):
    """pytesseract wrapper."""

    name = "tesseract"

    def __init__(self, lang: str = "eng"):
        try:
            import pytesseract
        except ImportError as e:
            raise OcrEngineError(f"pytesseract is not installed: {e}") from e

        try:
            pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as e:
            raise OcrEngineError("Tesseract binary not found") from e

        self._pytesseract = pytesseract
        self.lang = lang
        self._closed = False

    def recognize(self, image_bytes: bytes) -> str:
        if self._closed:
            raise OcrEngineError("Tesseract engine already terminated")

        from PIL import Image

        try:
            image = Image.open(io.BytesIO(image_bytes))
            return self._pytesseract.image_to_string(image, lang=self.lang, config=TESSERACT_CONFIG)
        except (self._pytesseract.TesseractError, OSError, RuntimeError) as e:
            raise OcrEngineError(f"Tesseract recognition failed: {e}") from e

    def terminate(self) -> None:
        self._closed = True


EngineFactory = Callable[[], OCREngine]


def create_engine_factory(settings: Optional[Settings] = None) -> EngineFactory:
    """Build a factory that creates a fresh engine of the configured backend."""
    settings = settings or get_settings()
    backend = settings.ocr_backend.lower()

    if backend == "easyocr":
        return lambda: EasyOCREngine(lang=settings.ocr_lang, model_dir=settings.ocr_model_dir)
    if backend == "tesseract":
        return lambda: TesseractEngine(lang=settings.tesseract_lang)
    raise ValueError(f"Unknown OCR backend: {settings.ocr_backend!r} (expected 'easyocr' or 'tesseract')")


@asynccontextmanager
async def engine_session(factory: EngineFactory) -> AsyncIterator[OCREngine]:
    """
    Acquire one engine for the duration of a request.

    The engine is terminated exactly once on every exit path (success,
    timeout, engine error). Termination errors are logged, never raised, so
    they cannot replace the outcome of the request.

    Raises:
        OcrEngineError: If the engine cannot be created
    """
    start = time.time()
    try:
        engine = await asyncio.to_thread(factory)
    except OcrEngineError:
        raise
    except Exception as e:
        raise OcrEngineError(f"Failed to create OCR engine: {e}") from e
    logger.info(f"OCR engine '{engine.name}' acquired ({(time.time() - start) * 1000:.0f}ms)")

    try:
        yield engine
    finally:
        try:
            engine.terminate()
            logger.info(f"OCR engine '{engine.name}' terminated")
        except Exception as e:
            logger.warning(f"OCR engine termination failed: {e}")


class OCRAdapter:
    """Runs bounded recognition on a preprocessed image."""

    def __init__(self, timeout_seconds: float = 30.0, max_workers: int = 2):
        self.timeout_seconds = timeout_seconds
        # Kept apart from the default executor that preprocessing runs on
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ocr-recognize")

    async def recognize(self, engine: OCREngine, image_bytes: bytes) -> str:
        """
        Extract text from an image, giving up after ``timeout_seconds``.

        Raises:
            OcrTimeoutError: If the engine did not answer in time
            OcrEngineError: If the engine failed
        """
        start = time.time()
        loop = asyncio.get_running_loop()
        try:
            text = await run_with_timeout(
                loop.run_in_executor(self._executor, engine.recognize, image_bytes),
                self.timeout_seconds,
                what="OCR recognition",
            )
        except OcrEngineError:
            raise
        except Exception as e:
            raise OcrEngineError(f"OCR recognition failed: {e}") from e

        text = normalize_text(text or "")
        logger.info(f"OCR completed: {len(text)} chars ({(time.time() - start) * 1000:.0f}ms)")
        return text


def normalize_text(text: str) -> str:
    """
    Normalize OCR text output.
    - Unicode NFKC normalization
    - Collapse runs of spaces/tabs (line breaks are kept)
    - Strip leading/trailing whitespace
    """
    normalized = unicodedata.normalize("NFKC", text)
    normalized = re.sub(r"[ \t]+", " ", normalized)
    return normalized.strip()
