import asyncio
import json
import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from fake_endpoint import FakeEndpoint, event_fragments, make_config
from api import routes
from api.routes import translate_json_stream
from main import app
from models.models import SSEMessageType
from translator.errors import ConfigurationError
from translator.json_stream_translator import JsonStreamTranslator

TRANSLATE_URL = "/api/v1/json-translator/translate"
SOURCE = b'{"title": "Settings"}'


def read_events(body: str):
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


class TestTranslateRoute(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def post(self, endpoint, content=SOURCE, target_language="French"):
        translator = JsonStreamTranslator(make_config(), http_client=endpoint.client())
        with patch("api.routes.create_translator", return_value=translator):
            return self.client.post(
                TRANSLATE_URL,
                files={"file": ("en.json", content, "application/json")},
                data={"target_language": target_language},
            )

    def test_streams_progress_chunks_and_result(self):
        endpoint = FakeEndpoint(event_fragments('{"title": ', '"Paramètres"}'))
        response = self.post(endpoint)

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/event-stream"))
        events = read_events(response.text)
        types = [e["type"] for e in events]

        self.assertEqual(types[0], SSEMessageType.PROGRESS)
        self.assertEqual(types[-1], SSEMessageType.COMPLETE)
        self.assertIn(SSEMessageType.CHUNK, types)
        chunks = [e["content"] for e in events if e["type"] == SSEMessageType.CHUNK]
        self.assertEqual(chunks[0], '{"title": ')

        complete = events[-1]
        self.assertEqual(complete["progress"], 100)
        self.assertEqual(complete["filename"], "en.French.json")
        self.assertEqual(json.loads(complete["content"]), {"title": "Paramètres"})

    def test_reports_translation_errors(self):
        response = self.post(FakeEndpoint(status_code=429))
        events = read_events(response.text)
        self.assertEqual(events[-1]["type"], SSEMessageType.ERROR)
        self.assertIn("API call limit reached", events[-1]["message"])

    def test_rejects_invalid_json_upload(self):
        endpoint = FakeEndpoint(event_fragments("{}"))
        response = self.post(endpoint, content=b"not json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(endpoint.requests, [])

    def test_rejects_blank_target_language(self):
        response = self.post(FakeEndpoint(), target_language="  ")
        self.assertEqual(response.status_code, 400)

    def test_missing_configuration(self):
        with patch("api.routes.create_translator", side_effect=ConfigurationError("API key")):
            response = self.client.post(
                TRANSLATE_URL,
                files={"file": ("en.json", SOURCE, "application/json")},
                data={"target_language": "French"},
            )
        self.assertEqual(response.status_code, 500)
        self.assertIn("API key not configured", response.json()["detail"])


class TestClientDisconnect(unittest.IsolatedAsyncioTestCase):
    async def test_closing_the_stream_cancels_the_translation(self):
        endpoint = FakeEndpoint(event_fragments('{"title": ')[:1], hold_open=True)
        translator = JsonStreamTranslator(make_config(), http_client=endpoint.client())
        results = []
        translate = translator.translate

        async def recording_translate(*args, **kwargs):
            result = await translate(*args, **kwargs)
            results.append(result)
            return result

        translator.translate = recording_translate
        stream = translate_json_stream(
            "disconnect-task", translator, SOURCE.decode(), "French", "en.French.json"
        )
        with patch.object(routes.sse_manager, "send_error", new=AsyncMock()) as send_error:
            seen = []
            while SSEMessageType.CHUNK not in seen:
                frame = await asyncio.wait_for(stream.__anext__(), timeout=5)
                seen.append(json.loads(frame[len("data: "):])["type"])
            await asyncio.wait_for(stream.aclose(), timeout=5)

        self.assertEqual(results, [""])
        send_error.assert_not_called()
        self.assertEqual(len(endpoint.requests), 1)


class TestInfoRoutes(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.json()["message"], "JSON Translator API")

    def test_languages(self):
        response = self.client.get("/api/v1/json-translator/languages")
        self.assertEqual(response.status_code, 200)
        self.assertIn("French", response.json()["languages"])


if __name__ == "__main__":
    unittest.main()
