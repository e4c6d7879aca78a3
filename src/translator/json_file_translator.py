"""Translate JSON files on disk."""

import argparse
import asyncio
import json
import os
import tempfile
from typing import Optional

from tqdm import tqdm

from config.logging_config import get_logger, setup_logging
from translator.errors import InvalidSourceError
from translator.json_stream_translator import JsonStreamTranslator

logger = get_logger(__name__)


def default_output_path(input_path: str, target_language: str) -> str:
    """data/en.json + French -> data/en.French.json"""
    base, _ = os.path.splitext(input_path)
    suffix = target_language.strip().replace(os.sep, "_").replace(" ", "_")
    return f"{base}.{suffix}.json"


def load_source(input_path: str) -> str:
    with open(input_path, "rb") as f:
        raw = f.read()
    try:
        text = raw.decode("utf-8")
        json.loads(text)
    except UnicodeDecodeError as e:
        raise InvalidSourceError(f"{input_path} is not UTF-8 encoded: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidSourceError(f"{input_path} is not valid JSON: {e}") from e
    return text


def write_atomic(output_path: str, content: str) -> None:
    """Write content to output_path without leaving a partial file behind."""
    data = content.encode("utf-8")
    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    tmp_file = tempfile.NamedTemporaryFile(
        delete=False, dir=output_dir or ".", suffix=".tmp"
    )
    try:
        with tmp_file:
            tmp_file.write(data)
        os.replace(tmp_file.name, output_path)
    except Exception:
        if os.path.exists(tmp_file.name):
            os.unlink(tmp_file.name)
        raise


class JsonFileTranslator:
    """Reads a JSON file, translates it and writes the result next to it."""

    def __init__(self, translator: Optional[JsonStreamTranslator] = None):
        self.translator = translator or JsonStreamTranslator()

    async def translate_file(
        self,
        input_path: str,
        target_language: str,
        output_path: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
        show_progress: bool = True,
    ) -> str:
        """
        Translate input_path into target_language.

        Args:
            input_path: JSON file to translate
            target_language: target language
            output_path: where to write the result, derived from input_path by default
            cancel_event: cooperative cancellation token
            show_progress: draw a tqdm progress bar

        Returns:
            The output path, or "" when the translation was cancelled.
        """
        source_text = load_source(input_path)
        output_path = output_path or default_output_path(input_path, target_language)

        with tqdm(
            total=100, desc=f"Translating to {target_language}", unit="%",
            disable=not show_progress,
        ) as bar:

            def on_progress(progress: int):
                if progress > bar.n:
                    bar.update(progress - bar.n)

            result = await self.translator.translate(
                source_text,
                target_language,
                cancel_event=cancel_event,
                on_progress=on_progress,
            )

        if not result:
            logger.info(f"Translation of {input_path} cancelled, nothing written")
            return ""

        write_atomic(output_path, result + "\n")
        logger.info(f"Translation saved to {output_path}")
        return output_path


def main(argv=None):
    parser = argparse.ArgumentParser(description="Translate the values of a JSON file")
    parser.add_argument("input", help="JSON file to translate")
    parser.add_argument("target_language", help="target language, e.g. French")
    parser.add_argument("-o", "--output", help="output file path")
    args = parser.parse_args(argv)

    setup_logging()
    output = asyncio.run(
        JsonFileTranslator().translate_file(args.input, args.target_language, args.output)
    )
    if output:
        print(output)


if __name__ == "__main__":
    main()
