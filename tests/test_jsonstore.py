import asyncio
import os

import orjson

from youngriders.infra.jsonstore import JsonTable


def test_missing_file_is_created_with_default(tmp_path):
    path = tmp_path / "nested" / "rides.json"
    table = JsonTable(str(path))
    assert table.read() == []
    assert path.exists()
    assert orjson.loads(path.read_bytes()) == []


def test_empty_file_reads_as_default(tmp_path):
    path = tmp_path / "config.json"
    path.write_bytes(b"   \n")
    table = JsonTable(str(path), default={"shopClosed": False})
    assert table.read() == {"shopClosed": False}


def test_default_is_not_shared_between_reads(tmp_path):
    table = JsonTable(str(tmp_path / "orders.json"))
    rows = table.read()
    rows.append({"id": "x"})
    assert table.read() == []


def test_write_replaces_whole_document(tmp_path):
    table = JsonTable(str(tmp_path / "orders.json"))
    table.write([{"id": "a"}, {"id": "b"}])
    table.write([{"id": "c"}])
    assert table.read() == [{"id": "c"}]
    # no temporary files left behind
    assert os.listdir(tmp_path) == ["orders.json"]


def test_gate_serializes_read_modify_write(tmp_path):
    table = JsonTable(str(tmp_path / "counter.json"), default={"n": 0})

    async def bump():
        async with table.gated():
            doc = table.read()
            await asyncio.sleep(0)
            doc["n"] += 1
            table.write(doc)

    async def scenario():
        await asyncio.gather(*(bump() for _ in range(25)))

    asyncio.run(scenario())
    assert table.read() == {"n": 25}
