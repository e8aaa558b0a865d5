"""
Media file helpers: read audio as base64 and viseme documents as JSON.
"""
import asyncio
import base64
import json
import logging
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


def encode_audio_base64(data: bytes) -> str:
    """Encode raw audio bytes for JSON transport."""
    return base64.b64encode(data).decode("ascii")


def decode_audio_base64(encoded: str) -> bytes:
    return base64.b64decode(encoded)


async def read_file_base64(path: Union[str, Path]) -> str:
    """
    Read a file and return its bytes base64-encoded.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    data = await asyncio.to_thread(Path(path).read_bytes)
    return encode_audio_base64(data)


async def read_json_file(path: Union[str, Path]) -> Any:
    """
    Read a UTF-8 JSON document (rhubarb lip-sync output).

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    return json.loads(text)
