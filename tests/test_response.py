"""Tests for archive entry parsing."""
import pytest

from hparchive.errors import ArchiveError, ErrorKind
from hparchive.parse.response import (
    extract_keyword,
    parse_copyright,
    parse_response,
    parse_url_base,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (
            "/az/hprichbg/rb/BemarahaNP_JA-JP15337355971",
            ("BemarahaNP_JA-JP15337355971", "BemarahaNP"),
        ),
        (
            "/th?id=OHR.BemarahaNP_JA-JP15337355971",
            ("BemarahaNP_JA-JP15337355971", "BemarahaNP"),
        ),
        ("/az/hprichbg/rb/PineBough_ROW6233127332", ("PineBough_ROW6233127332", "PineBough")),
        ("/th?id=OHR.FlowerFes__JA-JP2679822467", ("FlowerFes__JA-JP2679822467", "FlowerFes_")),
    ],
)
def test_parse_url_base(raw, expected):
    """Both URL styles give the same suffix and name."""
    assert parse_url_base(raw) == expected


@pytest.mark.parametrize("raw", ["", "/az/hprichbg/rb/", "/th?id=OHR.Nothing_here", 12345, None])
def test_parse_url_base_invalid(raw):
    """A URL base without a market suffix is rejected."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_url_base(raw)
    assert exc_info.value.kind == ErrorKind.INVALID_INPUT


@pytest.mark.parametrize(
    "raw, expected",
    [
        (
            "Pingxi Sky Lantern Festival in Taiwan (© Jeffrey Liao/Shutterstock)",
            ("Pingxi Sky Lantern Festival in Taiwan", "Jeffrey Liao/Shutterstock"),
        ),
        (
            "平溪天灯节，台湾新北市 (© Jeffrey Liao/Shutterstock)",
            ("平溪天灯节，台湾新北市", "Jeffrey Liao/Shutterstock"),
        ),
        (
            "ランタン祭り　（©　Jeffrey Liao/Shutterstock）",
            ("ランタン祭り", "Jeffrey Liao/Shutterstock"),
        ),
        (
            "来自人工智能的画作《思念》（© 微软小冰）",
            ("来自人工智能的画作《思念》", "微软小冰"),
        ),
    ],
)
def test_parse_copyright(raw, expected):
    """ASCII and full-width separators are both understood."""
    assert parse_copyright(raw) == expected


def test_parse_copyright_without_glyph():
    """The copyright sign is mandatory."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_copyright("Pingxi Sky Lantern Festival (Jeffrey Liao)")
    assert exc_info.value.kind == ErrorKind.INVALID_INPUT


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.bing.com/search?q=Pingxi+Sky+Lantern&form=hpcapt", "Pingxi Sky Lantern"),
        ("https://www.baidu.com/s?wd=%E5%B9%B3%E6%BA%AA", "平溪"),
        ("https://www.bing.com/search?q=&wd=fallback", "fallback"),
        ("https://www.bing.com/search?q=first&q=second", "second"),
        ("https://www.bing.com/search?form=hpcapt", None),
        ("https://www.bing.com/", None),
    ],
)
def test_extract_keyword(url, expected):
    """The "q" parameter is preferred over "wd", empty values are skipped."""
    assert extract_keyword(url) == expected


def test_parse_response(entry_factory):
    """A full entry becomes a normalized record."""
    record = parse_response(entry_factory(), "zh-CN")

    assert record.market == "zh-CN"
    assert record.date_string == "2019-05-23"
    assert record.offset_name == "+08:00"
    assert record.description == "平溪天灯节，台湾新北市"
    assert record.keyword == "平溪天灯节"
    assert record.hotspots is None
    assert record.messages is None
    assert record.image.name == "PingxiSky"
    assert record.image.url_base == "/az/hprichbg/rb/PingxiSky_ZH-CN0458915063"
    assert record.image.copyright == "Jeffrey Liao/Shutterstock"
    assert record.image.high_res is True
    assert record.image.video_meta is None


def test_parse_response_keeps_optional_fields(entry_factory):
    """Hotspots, messages and video metadata pass through unchanged."""
    hs = [{"desc": "Look", "link": "https://www.bing.com/search?q=x", "query": "x", "locx": 1, "locy": 2}]
    msg = [{"title": "Today", "link": "https://www.bing.com/", "text": "Pingxi"}]
    vid = {"sources": [["video/mp4", "https://example.com/v.mp4"]]}
    record = parse_response(entry_factory(hs=hs, msg=msg, vid=vid), "zh-CN")

    assert record.hotspots == hs
    assert record.messages == msg
    assert record.image.video_meta == vid


def test_parse_response_wp_false_is_present(entry_factory):
    """A false "wp" flag is a valid value, not a missing field."""
    record = parse_response(entry_factory(wp=False), "zh-CN")
    assert record.image.high_res is False


@pytest.mark.parametrize("field", ["fullstartdate", "urlbase", "copyright", "copyrightlink", "wp"])
def test_parse_response_missing_field(entry_factory, field):
    """Each required field is checked by name."""
    entry = entry_factory()
    del entry[field]
    with pytest.raises(ArchiveError) as exc_info:
        parse_response(entry, "zh-CN")
    assert exc_info.value.kind == ErrorKind.VALIDATION
    assert exc_info.value.message == f"missing field {field}"


@pytest.mark.parametrize("field", ["urlbase", "copyright", "copyrightlink"])
def test_parse_response_empty_field(entry_factory, field):
    """Empty strings count as missing."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_response(entry_factory(**{field: ""}), "zh-CN")
    assert exc_info.value.message == f"missing field {field}"


def test_parse_response_wp_not_boolean(entry_factory):
    """The "wp" flag must be a real boolean."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_response(entry_factory(wp="true"), "zh-CN")
    assert exc_info.value.kind == ErrorKind.VALIDATION


def test_parse_response_invalid_link(entry_factory):
    """A link that is not an http(s) URL is rejected."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_response(entry_factory(copyrightlink="not a url"), "zh-CN")
    assert exc_info.value.kind == ErrorKind.VALIDATION


@pytest.mark.parametrize("link", ["javascript:void(0)", "javascript:void(0);"])
def test_parse_response_no_link(entry_factory, link):
    """The provider's "no link" value gives no link and no keyword."""
    record = parse_response(entry_factory(copyrightlink=link), "zh-CN")
    assert record.link is None
    assert record.keyword is None


def test_parse_response_invalid_timestamp(entry_factory):
    """A malformed full start date is reported as invalid input."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_response(entry_factory(fullstartdate="2019052216"), "zh-CN")
    assert exc_info.value.kind == ErrorKind.INVALID_INPUT


def test_parse_response_not_an_object():
    """Entries must be objects."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_response(["images"], "zh-CN")
    assert exc_info.value.kind == ErrorKind.VALIDATION


def test_parse_copyright_not_a_string():
    """Non-string values are invalid input, not a TypeError."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_copyright(["x"])
    assert exc_info.value.kind == ErrorKind.INVALID_INPUT


@pytest.mark.parametrize(
    "field, value",
    [
        ("urlbase", 12345),
        ("copyright", ["x"]),
        ("fullstartdate", 201905221600),
    ],
)
def test_parse_response_field_not_a_string(entry_factory, field, value):
    """Text fields of another type are rejected with the market attached."""
    with pytest.raises(ArchiveError) as exc_info:
        parse_response(entry_factory(**{field: value}), "zh-CN")
    assert exc_info.value.kind == ErrorKind.VALIDATION
    assert exc_info.value.market == "zh-CN"
    assert f"Field {field} is not a string" in exc_info.value.message
