"""Tests for the Supabase repository and storage sink, against a fake client."""
import asyncio
from types import SimpleNamespace

from hparchive.store.sinks import SupabaseStorageSink
from hparchive.store.supabase_repository import SupabaseRepository


class FakeQuery:
    """Chainable stand-in for the postgrest query builder."""

    def __init__(self, client, table):
        self.client = client
        self.table = table

    def _log(self, *call):
        self.client.calls.append((self.table,) + call)
        return self

    def upsert(self, rows, **kwargs):
        return self._log("upsert", rows, kwargs)

    def select(self, columns):
        return self._log("select", columns)

    def eq(self, column, value):
        return self._log("eq", column, value)

    def update(self, values):
        return self._log("update", values)

    def in_(self, column, values):
        return self._log("in_", column, values)

    def execute(self):
        return SimpleNamespace(data=self.client.rows)


class FakeBucket:
    def __init__(self, client, bucket):
        self.client = client
        self.bucket = bucket

    def upload(self, key, data, options):
        self.client.calls.append((self.bucket, "upload", key, data, options))

    def remove(self, keys):
        self.client.calls.append((self.bucket, "remove", keys))


class FakeClient:
    def __init__(self, rows=None):
        self.rows = rows or []
        self.calls = []
        self.storage = SimpleNamespace(from_=lambda bucket: FakeBucket(self, bucket))

    def table(self, name):
        return FakeQuery(self, name)


def test_insert_upserts_images_then_archives(record_factory):
    """Images are created once and never overwritten; archives upsert per market and day."""
    client = FakeClient()
    repository = SupabaseRepository(client)
    records = [
        record_factory(market="zh-CN"),
        record_factory(market="en-US", fullstartdate="201905230700"),
    ]

    asyncio.run(repository.insert(records))

    (images_call, archives_call) = client.calls
    table, op, rows, kwargs = images_call
    assert (table, op) == ("images", "upsert")
    assert [row["urlbase"] for row in rows] == ["/az/hprichbg/rb/PingxiSky_ZH-CN0458915063"]
    assert kwargs == {"on_conflict": "urlbase", "ignore_duplicates": True}

    table, op, rows, kwargs = archives_call
    assert (table, op) == ("archives", "upsert")
    assert [(row["market"], row["date"]) for row in rows] == [("zh-CN", "20190523"), ("en-US", "20190523")]
    assert kwargs == {"on_conflict": "market,date"}


def test_insert_nothing():
    client = FakeClient()
    asyncio.run(SupabaseRepository(client).insert([]))
    assert client.calls == []


def test_unready_images():
    """Only images not available yet are listed."""
    client = FakeClient(rows=[{"urlbase": "/az/hprichbg/rb/PineBough_ROW6233127332", "wp": 1}])

    images = asyncio.run(SupabaseRepository(client).unready_images())

    assert images == {"/az/hprichbg/rb/PineBough_ROW6233127332": True}
    assert ("images", "eq", "available", False) in client.calls


def test_set_images_ready():
    client = FakeClient()
    asyncio.run(SupabaseRepository(client).set_images_ready(["/az/hprichbg/rb/PineBough_ROW6233127332"]))
    assert client.calls == [
        ("images", "update", {"available": True}),
        ("images", "in_", "urlbase", ["/az/hprichbg/rb/PineBough_ROW6233127332"]),
    ]


def test_storage_sink_keys_and_headers():
    """Files are uploaded below the folder with long-lived caching."""
    client = FakeClient()
    sink = SupabaseStorageSink("wallpapers", "/bing/", client=client)

    async def run():
        await sink.write("/az/hprichbg/rb/X_ROW1_800x480.jpg", b"jpeg")
        await sink.delete("/az/hprichbg/rb/X_ROW1_800x480.jpg")

    asyncio.run(run())

    upload, remove = client.calls
    assert upload[:4] == ("wallpapers", "upload", "bing/az/hprichbg/rb/X_ROW1_800x480.jpg", b"jpeg")
    assert upload[4]["cache-control"] == "31536000"
    assert upload[4]["upsert"] == "true"
    assert remove == ("wallpapers", "remove", ["bing/az/hprichbg/rb/X_ROW1_800x480.jpg"])
