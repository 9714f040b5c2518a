#!/usr/bin/env python3
"""
Test Suite for the HTTP API

Drives the FastAPI app with TestClient. The generator, image search service,
image store and settings are replaced through dependency overrides, so no
backend or network is touched.

Tests:
1. POST /api/generate returns a camelCase deck
2. Topic and backend errors are 400s with fixed messages
3. Uploads feed the generator and are removed afterwards
4. Backend failures map to their status codes
5. GET /api/image statuses, including 429 with retryAfter
6. GET /api/images serves stored files
7. Health, version and root endpoints

Usage:
    python test_api_endpoints.py
"""

import sys
import tempfile
from pathlib import Path
sys.path.insert(0, '.')

import httpx
from fastapi.testclient import TestClient

import main
from config.settings import Settings
from src.clients.unsplash_client import UnsplashClient
from src.core.deck_generator import DeckGenerator
from src.core.errors import ConfigurationError, LocalServiceUnavailableError
from src.models.slides import ExtractedImage
from src.services.adapters.base_adapter import BaseBackendAdapter
from src.services.backend_registry import BackendRegistry, BackendType
from src.services.document_extractor import DocumentExtraction
from src.services.image_search import ImageSearchService
from src.storage.image_store import ImageStore
from src.utils.rate_limit_gate import RateLimitGate

SLIDES_JSON = 'Here you go:\n[{"title": "Intro", "html": "<p>Hi</p>", "image_query": "sunrise"},]\nEnjoy!'

PHOTO = {
    "urls": {"regular": "https://images.unsplash.com/photo-1"},
    "user": {"name": "Grace Hopper", "username": "grace", "links": {"html": "https://unsplash.com/@grace"}},
}


class FakeAdapter(BaseBackendAdapter):
    def __init__(self, name, reply=SLIDES_JSON, error=None, configured=True):
        super().__init__(5.0)
        self.name = name
        self.reply = reply
        self.error = error
        self.configured = configured
        self.calls = []

    def ensure_configured(self):
        if not self.configured:
            raise ConfigurationError(f"{self.name} has no credential")

    async def generate(self, topic, source_text=None):
        self.calls.append((topic, source_text))
        if self.error is not None:
            raise self.error
        return self.reply

    async def health_check(self):
        return {"backend": self.name, "configured": self.configured}


class RecordingExtractor:
    def __init__(self, text="", images=None):
        self.text = text
        self.images = list(images or [])
        self.paths = []

    def extract(self, path):
        path = Path(path)
        self.paths.append(path)
        assert path.exists()
        return DocumentExtraction(text=self.text, images=self.images)


class FixedClock:
    def __call__(self):
        return 500.0


def _client(tmp, hosted=None, local=None, extractor=None, search=None, **overrides):
    """Build a TestClient with every dependency pointed at ``tmp``."""
    values = dict(
        _env_file=None,
        DEBUG=False,
        GEMINI_API_KEY="test-key",
        TEMP_IMAGE_DIR=str(Path(tmp) / "images"),
        UPLOAD_DIR=str(Path(tmp) / "uploads"),
        DEBUG_CAPTURE_DIR=str(Path(tmp) / "captures"),
    )
    values.update(overrides)
    settings = Settings(**values)
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)

    store = ImageStore(settings.TEMP_IMAGE_DIR)
    generator = DeckGenerator(
        settings,
        registry=BackendRegistry({
            BackendType.HOSTED: hosted or FakeAdapter("hosted"),
            BackendType.LOCAL: local or FakeAdapter("local"),
        }),
        image_store=store,
        extractor=extractor or RecordingExtractor(),
    )

    main.settings.DEBUG = False
    main.app.dependency_overrides = {
        main.get_app_settings: lambda: settings,
        main.get_generator: lambda: generator,
        main.get_image_store: lambda: store,
        main.get_image_search_service: lambda: search or ImageSearchService(None, RateLimitGate(0)),
    }
    return TestClient(main.app, raise_server_exceptions=False), generator


def _search_service(handler, interval=0.0):
    client = UnsplashClient("key", transport=httpx.MockTransport(handler))
    return ImageSearchService(client, RateLimitGate(interval, clock=FixedClock()))


def test_generate_success():
    """Test 1: Topic-only generation."""
    print("\n[TEST 1] Generate")
    print("-" * 50)

    with tempfile.TemporaryDirectory() as tmp:
        client, generator = _client(tmp)
        response = client.post("/api/generate", data={"topic": "  Sunrise  ", "aiModel": "Gemini"})

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["slides"][0]["title"] == "Intro"
        assert body["slides"][0]["imageQuery"] == "sunrise"
        assert body["slides"][0]["isImageSlide"] is False
        metadata = body["metadata"]
        assert metadata["topic"] == "Sunrise"
        assert metadata["backendUsed"] == "hosted"
        assert metadata["slideCount"] == 1
        assert metadata["hasSourceDocument"] is False
        assert isinstance(metadata["generationTimeMs"], int)
        print("  ✓ Deck returned with camelCase keys and trimmed topic")

        response = client.post("/api/generate", data={"topic": "Tides", "aiModel": "lmstudio"})
        assert response.status_code == 200
        assert response.json()["metadata"]["backendUsed"] == "local"
        assert generator.registry.adapters[BackendType.LOCAL].calls == [("Tides", None)]
        print("  ✓ Backend names are case-insensitive")


def test_generate_bad_input():
    """Test 2: 400s for topic and backend."""
    print("\n[TEST 2] Bad input")
    print("-" * 50)

    with tempfile.TemporaryDirectory() as tmp:
        client, _ = _client(tmp, hosted=FakeAdapter("hosted", configured=False))

        cases = [
            ({"topic": "   ", "aiModel": "Gemini"}, "Topic is required."),
            ({"topic": "x" * 201, "aiModel": "Gemini"}, "Topic must be 200 characters or less."),
            ({"topic": "Ok", "aiModel": "Claude"}, "Invalid AI model selected."),
            ({"topic": "Ok", "aiModel": "Gemini"}, "AI service not configured properly. Please check API keys."),
        ]
        for data, message in cases:
            response = client.post("/api/generate", data=data)
            assert response.status_code == 400, (data, response.text)
            assert response.json() == {"error": message}, response.json()
        print("  ✓ Missing topic, long topic, unknown backend and missing key -> 400")


def test_generate_with_upload():
    """Test 3: Uploaded documents."""
    print("\n[TEST 3] Upload")
    print("-" * 50)

    with tempfile.TemporaryDirectory() as tmp:
        images = [ExtractedImage(data=b"png", width=40, height=30)]
        extractor = RecordingExtractor(text="Source notes", images=images)
        client, generator = _client(tmp, extractor=extractor, MAX_UPLOAD_BYTES=64)

        response = client.post(
            "/api/generate",
            data={"topic": "Sunrise", "aiModel": "Gemini"},
            files={"file": ("notes.txt", b"Source notes", "text/plain")},
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["metadata"]["hasSourceDocument"] is True
        assert body["metadata"]["hasImages"] is True
        assert body["slides"][-1]["isImageSlide"] is True
        assert generator.registry.adapters[BackendType.HOSTED].calls == [("Sunrise", "Source notes")]
        print("  ✓ Source text sent to the backend, image slide appended")

        assert len(extractor.paths) == 1 and not extractor.paths[0].exists()
        assert list(Path(tmp, "uploads").iterdir()) == []
        print("  ✓ Upload removed after the request")

        response = client.post(
            "/api/generate",
            data={"topic": "Sunrise", "aiModel": "Gemini"},
            files={"file": ("old.doc", b"x", "application/msword")},
        )
        assert response.status_code == 400
        assert "Only PDF, DOCX and TXT" in response.json()["error"]
        print("  ✓ .doc rejected")

        response = client.post(
            "/api/generate",
            data={"topic": "Sunrise", "aiModel": "Gemini"},
            files={"file": ("big.txt", b"x" * 65, "text/plain")},
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("File too large.")
        assert list(Path(tmp, "uploads").iterdir()) == []
        print("  ✓ Oversized upload rejected and removed")

        response = client.post(
            "/api/generate",
            data={"topic": "", "aiModel": "Gemini"},
            files={"file": ("notes.txt", b"x", "text/plain")},
        )
        assert response.status_code == 400
        assert len(extractor.paths) == 1
        print("  ✓ Topic checked before the upload is touched")


def test_backend_failures():
    """Test 4: Failure statuses."""
    print("\n[TEST 4] Backend failures")
    print("-" * 50)

    with tempfile.TemporaryDirectory() as tmp:
        client, _ = _client(
            tmp,
            hosted=FakeAdapter("hosted", reply="I cannot help with that."),
            local=FakeAdapter("local", error=LocalServiceUnavailableError("ECONNREFUSED")),
        )

        response = client.post("/api/generate", data={"topic": "Sunrise", "aiModel": "LMStudio"})
        assert response.status_code == 503
        assert response.json() == {"error": "Local AI service is not running. Please start it and try again."}
        print("  ✓ Local service down -> 503")

        response = client.post("/api/generate", data={"topic": "Sunrise", "aiModel": "Gemini"})
        assert response.status_code == 502
        assert response.json()["error"] == "Failed to parse AI response. The response may be invalid."
        print("  ✓ No structure in response -> 502")

        client, _ = _client(tmp, hosted=FakeAdapter("hosted", reply="[]"))
        response = client.post("/api/generate", data={"topic": "Sunrise", "aiModel": "Gemini"})
        assert response.status_code == 500
        assert response.json() == {"error": "No slides generated."}
        print("  ✓ Empty deck -> 500")

        client, _ = _client(tmp, hosted=FakeAdapter("hosted", error=RuntimeError("fetch failed")))
        response = client.post("/api/generate", data={"topic": "Sunrise", "aiModel": "Gemini"})
        assert response.status_code == 503
        assert response.json() == {"error": "Network error or AI service is not reachable."}
        print("  ✓ Unclassified network failure -> 503")

        client, _ = _client(tmp, hosted=FakeAdapter("hosted", error=RuntimeError("boom")))
        main.settings.DEBUG = True
        try:
            response = client.post("/api/generate", data={"topic": "Sunrise", "aiModel": "Gemini"})
        finally:
            main.settings.DEBUG = False
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate slides.", "details": "boom"}
        print("  ✓ Unknown failure -> 500, details only in debug mode")


def test_image_search():
    """Test 5: Image search statuses."""
    print("\n[TEST 5] Image search")
    print("-" * 50)

    with tempfile.TemporaryDirectory() as tmp:
        client, _ = _client(tmp)
        assert client.get("/api/image").status_code == 400
        response = client.get("/api/image", params={"q": "sunrise"})
        assert response.status_code == 503
        assert response.json() == {"error": "Image service not configured."}
        print("  ✓ Missing query -> 400, missing key -> 503")

        search = _search_service(lambda r: httpx.Response(200, json={"results": [PHOTO]}), interval=60.0)
        client, _ = _client(tmp, search=search)

        response = client.get("/api/image", params={"q": "sunrise"})
        assert response.status_code == 200
        assert response.json() == {
            "imageUrl": "https://images.unsplash.com/photo-1",
            "attribution": {
                "name": "Grace Hopper",
                "username": "grace",
                "link": "https://unsplash.com/@grace",
            },
        }
        print("  ✓ imageUrl and attribution returned")

        response = client.get("/api/image", params={"q": "sunset"})
        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests. Try again in 60 seconds.", "retryAfter": 60}
        assert response.headers["Retry-After"] == "60"
        print("  ✓ Throttled -> 429 with retryAfter and Retry-After")

        search = _search_service(lambda r: httpx.Response(200, json={"results": []}))
        client, _ = _client(tmp, search=search)
        response = client.get("/api/image", params={"q": "nothing"})
        assert response.status_code == 404
        print("  ✓ No result -> 404")

        search = _search_service(lambda r: httpx.Response(503, text="down"))
        client, _ = _client(tmp, search=search)
        response = client.get("/api/image", params={"q": "anything"})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch image."}
        print("  ✓ Provider failure -> 500")


def test_serve_images():
    """Test 6: Stored images."""
    print("\n[TEST 6] Serve images")
    print("-" * 50)

    with tempfile.TemporaryDirectory() as tmp:
        client, generator = _client(tmp)
        store = generator.image_store
        namespace = store.new_namespace()
        payload = store.persist(namespace, 0, ExtractedImage(data=b"\x89PNG-bytes", width=2, height=2))

        response = client.get(payload.url)
        assert response.status_code == 200
        assert response.content == b"\x89PNG-bytes"
        print("  ✓ Persisted image served at its payload URL")

        response = client.get(f"/api/images/{namespace}/image_7.png")
        assert response.status_code == 404
        assert response.json() == {"error": "Image not found"}
        print("  ✓ Missing image -> 404")


def test_info_endpoints():
    """Test 7: Health, version, root."""
    print("\n[TEST 7] Info endpoints")
    print("-" * 50)

    with tempfile.TemporaryDirectory() as tmp:
        client, _ = _client(tmp, hosted=FakeAdapter("hosted", configured=False))

        for path in ["/api/health", "/health"]:
            body = client.get(path).json()
            assert body["status"] == "healthy"
            assert body["service"] == "slidesmith"
            assert body["services"]["server"] == "running"
            assert body["services"]["hosted"] == "not configured"
            assert body["services"]["imageSearch"] == "not configured"
            assert body["services"]["uploads"] == "available"
        print("  ✓ Health reports configuration without backend calls")

        body = client.get("/version").json()
        assert body["service"] == "slidesmith" and "commit" in body
        body = client.get("/").json()
        assert body["backends"] == ["Gemini", "LMStudio"]
        assert "generate" in body["endpoints"]
        print("  ✓ Version and root info")

    main.app.dependency_overrides = {}


TESTS = [
    test_generate_success,
    test_generate_bad_input,
    test_generate_with_upload,
    test_backend_failures,
    test_image_search,
    test_serve_images,
    test_info_endpoints,
]


def main_runner():
    print("=" * 60)
    print("API ENDPOINT TESTS")
    print("=" * 60)

    results = []
    for test in TESTS:
        try:
            test()
            results.append(True)
        except Exception as e:
            print(f"  ✗ {test.__name__} FAILED: {e}")
            results.append(False)

    main.app.dependency_overrides = {}

    print("\n" + "=" * 60)
    print(f"RESULTS: {sum(results)}/{len(results)} tests passed")
    print("=" * 60)
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main_runner())
