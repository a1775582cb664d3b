"""Integration tests for the transcribe / analyze / generate-title endpoints."""

from unittest.mock import patch

from src.core.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# POST /api/transcribe
# ---------------------------------------------------------------------------


class TestTranscribe:
    async def test_returns_transcription(self, async_client, fake_groq, audio_blob):
        resp = await async_client.post(
            "/api/transcribe",
            files={"audio": ("recording.wav", audio_blob.data, "audio/wav")},
        )

        assert resp.status_code == 200
        assert resp.json() == {"transcription": "I want to open a repair cafe in my town.\n"}
        sent = fake_groq.requests[0]
        assert sent.url.path.endswith("/audio/transcriptions")
        assert b'filename="recording.wav"' in sent.read()

    async def test_missing_file_is_400(self, async_client, fake_groq):
        resp = await async_client.post("/api/transcribe", data={"other": "x"})

        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"
        assert fake_groq.requests == []

    async def test_oversized_file_is_400_without_provider_call(self, async_client, fake_groq):
        payload = b"\x00" * 1024
        with patch("src.api.routes.notes.get_settings") as mock_settings:
            mock_settings.return_value.max_audio_bytes = 512
            mock_settings.return_value.stt_provider = "groq"
            resp = await async_client.post(
                "/api/transcribe",
                files={"audio": ("big.webm", payload, "audio/webm")},
            )

        assert resp.status_code == 400
        assert resp.json()["code"] == "AUDIO_TOO_LARGE"
        assert fake_groq.requests == []

    async def test_provider_failure_is_500(self, async_client, fake_groq, audio_blob):
        fake_groq.status = 503

        resp = await async_client.post(
            "/api/transcribe",
            files={"audio": ("recording.wav", audio_blob.data, "audio/wav")},
        )

        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == "PROVIDER_ERROR"
        assert "503" in body["detail"]


# ---------------------------------------------------------------------------
# POST /api/analyze
# ---------------------------------------------------------------------------


class TestAnalyze:
    async def test_returns_camel_case_analysis(self, async_client):
        resp = await async_client.post("/api/analyze", json={"text": "A repair cafe idea"})

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["keyPoints"]) == 3
        assert body["keyPoints"][0]["title"] == "Neighborhood tool library"
        assert "projectAnalysis" in body
        assert len(body["constraintQuestions"]) == 2

    async def test_optional_fields_omitted_when_absent(self, async_client, fake_groq):
        fake_groq.analysis_reply = '{"keyPoints": [{"title": "Groceries", "description": ""}]}'

        resp = await async_client.post("/api/analyze", json={"text": "Buy milk"})

        assert resp.status_code == 200
        assert resp.json() == {"keyPoints": [{"title": "Groceries", "description": ""}]}

    async def test_missing_text_is_400(self, async_client, fake_groq):
        for body in ({}, {"text": ""}, {"text": "   "}):
            resp = await async_client.post("/api/analyze", json=body)
            assert resp.status_code == 400
            assert resp.json()["code"] == "VALIDATION_ERROR"
        assert fake_groq.requests == []

    async def test_unparsable_reply_is_500(self, async_client, fake_groq):
        fake_groq.analysis_reply = "Sure! Here are the key points..."

        resp = await async_client.post("/api/analyze", json={"text": "idea"})

        assert resp.status_code == 500
        assert resp.json()["code"] == "MALFORMED_RESPONSE"

    async def test_empty_key_points_is_500(self, async_client, fake_groq):
        fake_groq.analysis_reply = '{"keyPoints": []}'

        resp = await async_client.post("/api/analyze", json={"text": "idea"})

        assert resp.status_code == 500
        assert resp.json()["code"] == "MALFORMED_RESPONSE"

    async def test_region_headers_reach_prompt(self, async_client, fake_groq):
        resp = await async_client.post(
            "/api/analyze",
            json={"text": "A food truck idea"},
            headers={
                "x-vercel-ip-city": "S%C3%A3o%20Paulo",
                "x-vercel-ip-country-region": "SP",
                "x-vercel-ip-country": "BR",
            },
        )

        assert resp.status_code == 200
        assert "São Paulo, SP, BR" in fake_groq.chat_prompts()[0]

    async def test_cloudflare_country_header(self, async_client, fake_groq):
        await async_client.post(
            "/api/analyze", json={"text": "idea"}, headers={"cf-ipcountry": "DE"}
        )
        assert "located in DE" in fake_groq.chat_prompts()[0]

    async def test_no_region_headers(self, async_client, fake_groq):
        await async_client.post("/api/analyze", json={"text": "idea"})
        assert "located in" not in fake_groq.chat_prompts()[0]

    async def test_missing_key_is_configuration_error(self, async_client):
        with patch(
            "src.api.routes.notes.create_llm",
            side_effect=ConfigurationError(detail="API configuration error: GROQ_API_KEY is not set"),
        ):
            resp = await async_client.post("/api/analyze", json={"text": "idea"})

        assert resp.status_code == 500
        assert resp.json()["code"] == "CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# POST /api/generate-title
# ---------------------------------------------------------------------------


class TestGenerateTitle:
    async def test_returns_trimmed_title(self, async_client, fake_groq):
        fake_groq.title_reply = "  Repair Cafe Plan \n"

        resp = await async_client.post(
            "/api/generate-title",
            json={
                "transcription": "I want to open a repair cafe",
                "keyPoints": [{"title": "Volunteers"}, {"title": "Venue"}],
            },
        )

        assert resp.status_code == 200
        assert resp.json() == {"title": "Repair Cafe Plan"}
        assert "1. Volunteers\n2. Venue" in fake_groq.chat_prompts()[0]

    async def test_key_points_optional(self, async_client, fake_groq):
        resp = await async_client.post("/api/generate-title", json={"transcription": "hi"})

        assert resp.status_code == 200
        assert "None provided" in fake_groq.chat_prompts()[0]

    async def test_missing_transcription_is_400(self, async_client, fake_groq):
        resp = await async_client.post("/api/generate-title", json={"keyPoints": []})

        assert resp.status_code == 400
        assert fake_groq.requests == []

    async def test_blank_title_is_500(self, async_client, fake_groq):
        fake_groq.title_reply = "   "

        resp = await async_client.post("/api/generate-title", json={"transcription": "hi"})

        assert resp.status_code == 500
        assert resp.json()["code"] == "EMPTY_RESULT"

    async def test_provider_failure_is_500(self, async_client, fake_groq):
        fake_groq.status = 500

        resp = await async_client.post("/api/generate-title", json={"transcription": "hi"})

        assert resp.status_code == 500
        assert resp.json()["code"] == "PROVIDER_ERROR"
