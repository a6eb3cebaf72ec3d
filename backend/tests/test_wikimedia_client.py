import asyncio
import sys
from pathlib import Path

import httpx
import pytest

# Allow importing from backend/tourguide
sys.path.insert(0, str(Path(__file__).parent.parent))

from tourguide.core.errors import EnrichmentLookupError
from tourguide.services.wikimedia import WikimediaClient, parse_image_info

API_URL = "https://commons.test/w/api.php"


def imageinfo_page(title: str, with_metadata: bool = True) -> dict:
    info = {
        "url": f"https://upload.test/{title}",
        "thumburl": f"https://upload.test/thumb/800px-{title}",
        "descriptionurl": f"https://commons.test/wiki/{title}",
    }
    if with_metadata:
        info["extmetadata"] = {
            "ImageDescription": {"value": "<p>Fort on the Sahyadri</p>"},
            "Artist": {"value": "<a href='/wiki/User:Someone'>Someone</a>"},
            "License": {"value": "cc-by-sa-4.0"},
            "LicenseUrl": {"value": "https://creativecommons.org/licenses/by-sa/4.0"},
        }
    return {"title": title, "imageinfo": [info]}


def commons_handler(titles: list[str], seen: list[httpx.Request] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        params = request.url.params
        if params.get("list") == "search":
            limit = int(params.get("srlimit", 10))
            return httpx.Response(
                200, json={"query": {"search": [{"title": t} for t in titles[:limit]]}}
            )
        requested = params.get("titles", "").split("|")
        pages = {str(-i): imageinfo_page(t) for i, t in enumerate(requested, start=1)}
        return httpx.Response(200, json={"query": {"pages": pages}})

    return handler


def make_client(handler) -> WikimediaClient:
    return WikimediaClient(api_url=API_URL, transport=httpx.MockTransport(handler))


def test_fetch_image_returns_best_match():
    seen: list[httpx.Request] = []
    client = make_client(commons_handler(["File:Raigad.jpg", "File:Raigad2.jpg"], seen))

    info = asyncio.run(client.fetch_image("Raigad Fort Raigad Maharashtra India"))

    assert info is not None
    assert info.thumbnail_url == "https://upload.test/thumb/800px-File:Raigad.jpg"
    assert info.license_name == "cc-by-sa-4.0"
    assert info.attribution_url == "https://commons.test/wiki/File:Raigad.jpg"

    search, details = seen
    assert search.url.params["srnamespace"] == "6"
    assert search.url.params["srlimit"] == "1"
    assert details.url.params["prop"] == "imageinfo"
    assert details.url.params["iiurlwidth"] == "800"
    assert search.headers["User-Agent"].startswith("MaharashtraTourGuide")


def test_fetch_image_no_results_returns_none():
    client = make_client(commons_handler([]))
    assert asyncio.run(client.fetch_image("nothing here")) is None


def test_fetch_images_honours_limit():
    titles = [f"File:Ajanta_{i}.jpg" for i in range(10)]
    client = make_client(commons_handler(titles))

    images = asyncio.run(client.fetch_images("Ajanta Caves", limit=3))

    assert len(images) == 3


def test_non_200_raises_lookup_error():
    client = make_client(lambda request: httpx.Response(503, text="busy"))
    with pytest.raises(EnrichmentLookupError):
        asyncio.run(client.fetch_image("Raigad"))


def test_invalid_json_raises_lookup_error():
    client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(EnrichmentLookupError):
        asyncio.run(client.fetch_image("Raigad"))


def test_transport_error_raises_lookup_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(EnrichmentLookupError):
        asyncio.run(client.fetch_images("Raigad"))


def test_parse_image_info_defaults_when_metadata_missing():
    info = parse_image_info(imageinfo_page("File:Plain.jpg", with_metadata=False))
    assert info.artist_name == "Unknown"
    assert info.license_name == "Unknown license"
    assert info.description_html == ""


def test_parse_image_info_without_imageinfo():
    assert parse_image_info({"title": "File:Missing.jpg", "missing": ""}) is None


def test_malformed_search_entries_raise_lookup_error():
    client = make_client(
        lambda request: httpx.Response(200, json={"query": {"search": ["File:broken.jpg"]}})
    )
    with pytest.raises(EnrichmentLookupError):
        asyncio.run(client.fetch_image("Raigad"))


def test_non_dict_query_raises_lookup_error():
    client = make_client(lambda request: httpx.Response(200, json={"query": ["unexpected"]}))
    with pytest.raises(EnrichmentLookupError):
        asyncio.run(client.fetch_image("Raigad"))


def test_null_imageinfo_raises_lookup_error():
    def handler(request):
        if request.url.params.get("list") == "search":
            return httpx.Response(200, json={"query": {"search": [{"title": "File:Raigad.jpg"}]}})
        return httpx.Response(200, json={"query": {"pages": {"-1": {"imageinfo": [None]}}}})

    client = make_client(handler)
    with pytest.raises(EnrichmentLookupError):
        asyncio.run(client.fetch_image("Raigad"))


def test_fetch_images_skips_malformed_pages():
    def handler(request):
        if request.url.params.get("list") == "search":
            titles = ["File:Good.jpg", "File:Bad.jpg"]
            return httpx.Response(200, json={"query": {"search": [{"title": t} for t in titles]}})
        pages = {"-1": imageinfo_page("File:Good.jpg"), "-2": {"imageinfo": [None]}}
        return httpx.Response(200, json={"query": {"pages": pages}})

    images = asyncio.run(make_client(handler).fetch_images("Ajanta"))

    assert [i.attribution_url for i in images] == ["https://commons.test/wiki/File:Good.jpg"]
