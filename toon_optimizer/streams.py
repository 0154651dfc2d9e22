"""File and stream adapters.

These never parse incrementally: input is read completely before
``decode()`` runs, and output is fully encoded before anything is written.
The async variants only await the I/O calls themselves.
"""

import asyncio
from typing import IO, Any

from toon_optimizer.config import Dialect, ToonOptions
from toon_optimizer.decoder import decode
from toon_optimizer.encoder import encode


def _as_text(data: str | bytes, encoding: str) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode(encoding)
    return data


def dump(
    value: Any,
    fp: IO,
    dialect: Dialect | str = Dialect.COMPACT,
    options: ToonOptions | None = None,
) -> None:
    """Encode *value* and write it to the text file object *fp*."""
    fp.write(encode(value, dialect, options))


def load(
    fp: IO,
    shape: Any,
    options: ToonOptions | None = None,
    dialect: Dialect | str = Dialect.COMPACT,
    encoding: str = "utf-8",
) -> Any:
    """Read all of *fp* (text or binary) and decode it into *shape*."""
    return decode(_as_text(fp.read(), encoding), shape, options, dialect)


async def dump_async(
    value: Any,
    writer: asyncio.StreamWriter,
    dialect: Dialect | str = Dialect.COMPACT,
    options: ToonOptions | None = None,
    encoding: str = "utf-8",
) -> None:
    """Encode *value*, then write and drain it on an ``asyncio.StreamWriter``."""
    text = encode(value, dialect, options)
    writer.write(text.encode(encoding))
    await writer.drain()


async def load_async(
    reader: asyncio.StreamReader,
    shape: Any,
    options: ToonOptions | None = None,
    dialect: Dialect | str = Dialect.COMPACT,
    encoding: str = "utf-8",
) -> Any:
    """Read *reader* to EOF, then decode the buffered text into *shape*."""
    data = await reader.read()
    return decode(_as_text(data, encoding), shape, options, dialect)
