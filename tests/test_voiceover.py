"""Unit tests for narration providers."""

import json

import httpx
import pytest

from vidgen_engine.adapters.voiceover.base import VoiceoverRequest, VoiceoverResult, estimate_speech_seconds
from vidgen_engine.adapters.voiceover.elevenlabs import ElevenLabsProvider
from vidgen_engine.adapters.voiceover.stub import StubVoiceoverProvider


class TestVoiceoverRequest:
    """Tests for VoiceoverRequest dataclass."""

    def test_request_defaults(self):
        """Test default values for voiceover request."""
        request = VoiceoverRequest(text="Hello world")

        assert request.text == "Hello world"
        assert request.voice_id is None
        assert request.language == "en"
        assert request.speed == 1.0
        assert request.output_format == "mp3"
        assert request.options is None


class TestVoiceoverResult:
    """Tests for VoiceoverResult dataclass."""

    def test_failure_result(self):
        """Test failed result creation."""
        result = VoiceoverResult(
            success=False,
            error_message="API key invalid",
        )

        assert result.success is False
        assert result.audio_data is None
        assert result.error_message == "API key invalid"
        assert result.metadata == {}


def test_estimate_speech_seconds():
    """150 words per minute."""
    assert estimate_speech_seconds("word " * 150) == 60.0
    assert estimate_speech_seconds("") == 0.0


class TestStubVoiceoverProvider:
    """Tests for StubVoiceoverProvider."""

    @pytest.fixture
    def provider(self):
        """Create a stub provider instance."""
        return StubVoiceoverProvider()

    def test_provider_name(self, provider):
        """Test provider name property."""
        assert provider.name == "stub"

    @pytest.mark.asyncio
    async def test_generate_success(self, provider):
        """Test successful voiceover generation."""
        request = VoiceoverRequest(
            text="This is a test narration for the video.",
            voice_id="rachel",
        )

        result = await provider.generate(request)

        assert result.success is True
        assert result.audio_data is not None
        assert len(result.audio_data) > 0
        assert result.duration_seconds is not None
        assert result.duration_seconds > 0
        assert result.metadata["provider"] == "stub"
        assert result.metadata["voice_id"] == "rachel"

    @pytest.mark.asyncio
    async def test_generate_estimates_duration(self, provider):
        """Test that duration is estimated from text length."""
        short_result = await provider.generate(VoiceoverRequest(text="Hello"))
        long_result = await provider.generate(VoiceoverRequest(text="This is a much longer narration " * 10))

        # Longer text should have longer duration
        assert long_result.duration_seconds > short_result.duration_seconds

    @pytest.mark.asyncio
    async def test_empty_text_fails(self, provider):
        result = await provider.generate(VoiceoverRequest(text="   "))

        assert result.success is False

    @pytest.mark.asyncio
    async def test_health_check(self, provider):
        """Test health check returns True for stub."""
        assert await provider.health_check() is True


class TestElevenLabsProvider:
    """Tests for ElevenLabsProvider."""

    def test_provider_name(self):
        """Test provider name property."""
        provider = ElevenLabsProvider(api_key="test")
        assert provider.name == "elevenlabs"

    @pytest.mark.parametrize(
        ("voice", "expected"),
        [
            (None, "21m00Tcm4TlvDq8ikWAM"),
            ("bella", "EXAVITQu4vr4xnSDxMaL"),
            ("Adam", "pNInz6obpgDQGcFmaJgB"),
            ("customVoiceId123", "customVoiceId123"),
        ],
    )
    def test_resolve_voice(self, voice, expected):
        assert ElevenLabsProvider(api_key="test").resolve_voice(voice) == expected

    @pytest.mark.asyncio
    async def test_generate_without_api_key(self):
        """Test that generate fails gracefully without API key."""
        provider = ElevenLabsProvider()
        provider.api_key = None

        result = await provider.generate(VoiceoverRequest(text="Test"))

        assert result.success is False
        assert "not configured" in result.error_message.lower()

    @pytest.mark.asyncio
    async def test_duration_measured_from_audio(self):
        """128 kbit/s mp3: 16000 bytes per second."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"\x00" * 32_000)

        provider = ElevenLabsProvider(api_key="test", transport=httpx.MockTransport(handler))
        result = await provider.generate(VoiceoverRequest(text="Two seconds of audio", voice_id="adam"))

        assert result.success is True
        assert result.duration_seconds == 2.0
        assert result.metadata["voice_id"] == "pNInz6obpgDQGcFmaJgB"

        request = seen[0]
        assert request.url.path == "/v1/text-to-speech/pNInz6obpgDQGcFmaJgB"
        assert request.url.params["output_format"] == "mp3_44100_128"
        assert request.headers["xi-api-key"] == "test"
        body = json.loads(request.content)
        assert body["text"] == "Two seconds of audio"
        assert "language_code" not in body

    @pytest.mark.asyncio
    async def test_api_error_message(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(401, json={"detail": {"message": "Invalid API key"}})
        )
        provider = ElevenLabsProvider(api_key="test", transport=transport)

        result = await provider.generate(VoiceoverRequest(text="Hello"))

        assert result.success is False
        assert result.error_message == "ElevenLabs API error: 401 - Invalid API key"
