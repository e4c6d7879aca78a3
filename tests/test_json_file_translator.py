import asyncio
import json
import os
import tempfile
import unittest
from unittest.mock import patch

from fake_endpoint import FakeEndpoint, event_fragments, make_config
from translator.errors import InvalidSourceError
from translator.json_file_translator import JsonFileTranslator, default_output_path
from translator.json_stream_translator import JsonStreamTranslator


class TestJsonFileTranslator(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.input_path = os.path.join(self.tmp_dir.name, "en.json")
        with open(self.input_path, "w", encoding="utf-8") as f:
            json.dump({"title": "Settings", "menu": {"save": "Save"}}, f)

    async def asyncTearDown(self):
        self.tmp_dir.cleanup()

    async def run_translation(self, endpoint, **kwargs):
        async with endpoint.client() as client:
            translator = JsonFileTranslator(
                JsonStreamTranslator(make_config(), http_client=client)
            )
            return await translator.translate_file(
                self.input_path, "German", show_progress=False, **kwargs
            )

    async def test_writes_translated_file(self):
        endpoint = FakeEndpoint(
            event_fragments('{"title": "Einstellungen", ', '"menu": {"save": "Speichern"}}')
        )
        output_path = await self.run_translation(endpoint)

        self.assertEqual(output_path, os.path.join(self.tmp_dir.name, "en.German.json"))
        with open(output_path, encoding="utf-8") as f:
            written = f.read()
        self.assertEqual(
            json.loads(written), {"title": "Einstellungen", "menu": {"save": "Speichern"}}
        )
        self.assertIn('\n  "menu": {\n    "save"', written)

    async def test_explicit_output_path(self):
        endpoint = FakeEndpoint(event_fragments('{"title": "T", "menu": {"save": "S"}}'))
        target = os.path.join(self.tmp_dir.name, "out", "de.json")
        output_path = await self.run_translation(endpoint, output_path=target)
        self.assertEqual(output_path, target)
        self.assertTrue(os.path.exists(target))

    async def test_rejects_invalid_source(self):
        with open(self.input_path, "w", encoding="utf-8") as f:
            f.write("title = Settings")
        endpoint = FakeEndpoint(event_fragments("{}"))
        with self.assertRaises(InvalidSourceError):
            await self.run_translation(endpoint)
        self.assertEqual(endpoint.requests, [])

    async def test_rejects_non_utf8_source(self):
        with open(self.input_path, "wb") as f:
            f.write('{"title": "Réglages"}'.encode("latin-1"))
        endpoint = FakeEndpoint(event_fragments("{}"))
        with self.assertRaises(InvalidSourceError):
            await self.run_translation(endpoint)
        self.assertEqual(endpoint.requests, [])

    async def test_lone_surrogate_output_is_written(self):
        endpoint = FakeEndpoint(event_fragments('{"title": "\\ud800x", "menu": {"save": "S"}}'))
        output_path = await self.run_translation(endpoint)
        with open(output_path, encoding="utf-8") as f:
            self.assertEqual(json.load(f)["title"], "\ud800x")

    async def test_failed_write_leaves_no_partial_file(self):
        endpoint = FakeEndpoint(event_fragments('{"title": "T", "menu": {"save": "S"}}'))
        with patch("translator.json_file_translator.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                await self.run_translation(endpoint)
        self.assertEqual(os.listdir(self.tmp_dir.name), ["en.json"])

    async def test_cancelled_translation_writes_nothing(self):
        cancel_event = asyncio.Event()
        cancel_event.set()
        output_path = await self.run_translation(
            FakeEndpoint(event_fragments("{}")), cancel_event=cancel_event
        )
        self.assertEqual(output_path, "")
        self.assertFalse(os.path.exists(default_output_path(self.input_path, "German")))


class TestDefaultOutputPath(unittest.TestCase):
    def test_language_suffix(self):
        self.assertEqual(default_output_path("i18n/en.json", "French"), "i18n/en.French.json")
        self.assertEqual(
            default_output_path("en.json", "Chinese (Simplified)"),
            "en.Chinese_(Simplified).json",
        )


if __name__ == "__main__":
    unittest.main()
