from __future__ import annotations
import asyncio
import copy
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from typing import Any

import orjson

logger = logging.getLogger(__name__)


# TABLE-GATE: one lock per file, held across read-modify-write
@asynccontextmanager
async def _gated(lock: asyncio.Lock):
    await lock.acquire()
    try:
        yield
    finally:
        lock.release()


class JsonTable:
    """A single JSON document on disk, rewritten wholesale on every write.

    usage:
        async with table.gated():
            rows = table.read()
            rows.append(row)
            table.write(rows)
    """

    def __init__(self, path: str, default: Any = None) -> None:
        self.path = path
        self.default = [] if default is None else default
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def gated(self):
        return _gated(self._lock)

    def ensure(self) -> None:
        directory = os.path.dirname(self.path)
        if directory and not os.path.isdir(directory):
            logger.info("data directory %s missing, creating", directory)
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.path):
            logger.info("%s missing, creating", self.name)
            self.write(copy.deepcopy(self.default))

    def read(self) -> Any:
        self.ensure()
        with open(self.path, "rb") as f:
            raw = f.read()
        if not raw.strip():
            return copy.deepcopy(self.default)
        return orjson.loads(raw)

    def write(self, doc: Any) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        payload = orjson.dumps(doc, option=orjson.OPT_INDENT_2)
        # write next to the target, then swap it in
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=f".{self.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
