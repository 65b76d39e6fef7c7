"""Query and path builders for the provider endpoints."""

# The archive serves the last 8 daily entries per market, 0 being today
MAX_OFFSET = 7


def archive_query(market: str, index: int = 0, n: int = 1) -> dict[str, str]:
    """Get the query parameters selecting "n" entries from "index" days ago."""
    return {
        "format": "js",
        "idx": str(index),
        "n": str(n),
        "video": "1",
        "mkt": market,
    }


def rendition_path(url_base: str, size: str) -> str:
    """Get the path of one rendition, e.g. "/az/hprichbg/rb/X_ROW1_1920x1080.jpg"."""
    return f"{url_base}_{size}.jpg"
