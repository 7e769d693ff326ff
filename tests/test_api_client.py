"""Tests for themesync.infrastructure.api.client."""

from __future__ import annotations

import asyncio
import base64
import gzip
import json
import zlib
from pathlib import Path
from typing import Callable, List

import brotli
import httpx
import pytest

from themesync.core.config import StoreConfig
from themesync.core.exceptions import LocalIOError, RemoteRequestError, RemoteWriteFailed
from themesync.core.tasks import Err, Ok
from themesync.core.throttle import RateLimiter
from themesync.domain.resources import ResourceService
from themesync.infrastructure.api import RemoteAsset, ThemeAPIClient

STORE = StoreConfig(
    store_url="shop.example.com",
    theme_id="42",
    api_key="key",
    password="secret",
    store_preview_url="preview.example.com",
)
ASSETS_PATH = "/admin/api/2020-10/themes/42/assets.json"


def run_with_client(handler: Callable[[httpx.Request], httpx.Response], action):
    async def main():
        limiter = RateLimiter(bucket_size=10, leak_rate=100, padding=0)
        client = ThemeAPIClient(STORE, limiter=limiter, transport=httpx.MockTransport(handler))
        try:
            return await action(client)
        finally:
            await limiter.aclose()
            await client.aclose()

    return asyncio.run(main())


def test_write_asset_puts_text_value() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"asset": {"key": "assets/main.min.js"}})

    outcome = run_with_client(
        handler, lambda client: client.write_asset("assets/main.min.js", "var a=1;")
    )

    assert outcome == Ok(RemoteAsset("assets/main.min.js", "var a=1;", "value"))
    request = requests[0]
    assert request.method == "PUT"
    assert request.url.host == "shop.example.com"
    assert request.url.path == ASSETS_PATH
    assert request.headers["authorization"] == "Basic " + base64.b64encode(b"key:secret").decode()
    assert json.loads(request.content) == {
        "asset": {"key": "assets/main.min.js", "value": "var a=1;"}
    }


def test_upload_file_sends_binary_as_attachment(tmp_path: Path) -> None:
    image = tmp_path / "logo.png"
    image.write_bytes(b"\x89PNG\r\n")
    bodies: List[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    outcome = run_with_client(handler, lambda client: client.upload_file(image, "assets/logo.png"))

    assert isinstance(outcome, Ok)
    assert bodies == [
        {"asset": {"key": "assets/logo.png", "attachment": base64.b64encode(b"\x89PNG\r\n").decode()}}
    ]


def test_upload_file_missing_source_never_reaches_remote(tmp_path: Path) -> None:
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    outcome = run_with_client(
        handler, lambda client: client.upload_file(tmp_path / "gone.liquid", "snippets/gone.liquid")
    )

    assert isinstance(outcome, Err)
    assert isinstance(outcome.reason, LocalIOError)
    assert calls == []


def test_non_2xx_is_reported_with_status_and_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"errors": {"asset": ["is invalid"]}})

    outcome = run_with_client(handler, lambda client: client.write_asset("assets/x.js", "x"))

    assert isinstance(outcome, Err)
    assert isinstance(outcome.reason, RemoteWriteFailed)
    assert outcome.reason.status_code == 422
    assert "is invalid" in outcome.reason.body


def test_transport_error_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    outcome = run_with_client(handler, lambda client: client.write_asset("assets/x.js", "x"))

    assert isinstance(outcome, Err)
    assert isinstance(outcome.reason, RemoteRequestError)


def test_delete_twice_yields_same_outcome_class() -> None:
    deleted = set()
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = request.url.params["asset[key]"]
        if key in deleted:
            return httpx.Response(404, json={"errors": "Not Found"})
        deleted.add(key)
        return httpx.Response(200, json={})

    async def delete_twice(client: ThemeAPIClient):
        return (
            await client.delete_asset("assets/old.js"),
            await client.delete_asset("assets/old.js"),
        )

    always_ok = run_with_client(
        lambda request: httpx.Response(200, json={}), delete_twice
    )
    assert [type(o) for o in always_ok] == [Ok, Ok]

    first, second = run_with_client(handler, delete_twice)
    assert seen[0].method == "DELETE"
    assert seen[0].url.path == ASSETS_PATH
    assert isinstance(first, Ok)
    assert isinstance(second, Err)
    assert isinstance(second.reason, RemoteWriteFailed)


def test_pagination_reads_exactly_three_pages() -> None:
    base = "https://shop.example.com/admin/api/2020-10/products.json"
    pages = {
        None: ([{"id": 1}, {"id": 2}], f'<{base}?limit=250&page_info=p2>; rel="next"'),
        "p2": ([{"id": 3}], f'<{base}?limit=250&page_info=p1>; rel="previous", <{base}?limit=250&page_info=p3>; rel="next"'),
        "p3": ([{"id": 4}], f'<{base}?limit=250&page_info=p2>; rel="previous"'),
    }
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        items, link = pages[request.url.params.get("page_info")]
        return httpx.Response(200, json={"products": items}, headers={"Link": link})

    outcome = run_with_client(
        handler, lambda client: ResourceService(client).download_resource("product", fields="id")
    )

    assert outcome == Ok([{"id": 1}, {"id": 2}, {"id": 3}, {"id": 4}])
    assert len(requests) == 3
    assert requests[0].url.params["limit"] == "250"
    assert requests[0].url.params["fields"] == "id"


def test_resource_and_metafield_paths() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json={"metafield": {"id": 9}, "product": {"id": 5}})

    async def calls(client: ThemeAPIClient):
        await client.write_resource("product", {"id": 5, "title": "Hat"}, "PUT")
        await client.write_metafield("product", 5, {"namespace": "ns", "key": "k", "value": "v"})
        await client.write_metafield("shop", None, {"metafield": {"key": "k"}})

    run_with_client(handler, calls)

    assert [(r.method, r.url.path) for r in requests] == [
        ("PUT", "/admin/api/2020-10/products/5.json"),
        ("POST", "/admin/api/2020-10/products/5/metafields.json"),
        ("POST", "/admin/api/2020-10/metafields.json"),
    ]
    assert json.loads(requests[0].content) == {"product": {"id": 5, "title": "Hat"}}
    assert json.loads(requests[1].content)["metafield"]["namespace"] == "ns"


def test_fetch_page_follows_redirect_and_decodes(tmp_path: Path) -> None:
    html = b"<html><body><h1>Shop</h1></body></html>"
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/products":
            return httpx.Response(302, headers={"Location": "/collections/all"})
        return httpx.Response(200, content=gzip.compress(html), headers={"Content-Encoding": "gzip"})

    output = tmp_path / "page.html"
    outcome = run_with_client(handler, lambda client: client.fetch_remote_page_html("/products", output))

    assert outcome == Ok(output)
    assert output.read_bytes() == html
    assert [str(r.url) for r in requests] == [
        "https://preview.example.com/products",
        "https://preview.example.com/collections/all",
    ]
    assert "authorization" not in requests[0].headers


def test_fetch_page_gives_up_after_redirect_limit(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(301, headers={"Location": "/loop"})

    outcome = run_with_client(
        handler, lambda client: client.fetch_remote_page_html("/loop", tmp_path / "p.html")
    )

    assert isinstance(outcome, Err)
    assert isinstance(outcome.reason, RemoteRequestError)


@pytest.mark.parametrize(
    "encoding, compress",
    [
        ("br", brotli.compress),
        ("gzip", gzip.compress),
        ("deflate", zlib.compress),
        ("identity", lambda body: body),
    ],
)
def test_fetch_page_decodes_content_encoding(tmp_path: Path, encoding, compress) -> None:
    html = b"<html><body><p>Encoded page</p></body></html>"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=compress(html), headers={"Content-Encoding": encoding})

    output = tmp_path / "page.html"
    outcome = run_with_client(handler, lambda client: client.fetch_remote_page_html("/", output))

    assert outcome == Ok(output)
    assert output.read_bytes() == html


def test_fetch_page_redirect_to_another_host(tmp_path: Path) -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.host == "preview.example.com":
            return httpx.Response(301, headers={"Location": "https://www.example.org/pages/about"})
        return httpx.Response(200, content=b"<html><body>About</body></html>")

    output = tmp_path / "page.html"
    outcome = run_with_client(
        handler, lambda client: client.fetch_remote_page_html("/pages/about", output)
    )

    assert outcome == Ok(output)
    assert [(r.url.host, r.url.path) for r in requests] == [
        ("preview.example.com", "/pages/about"),
        ("www.example.org", "/pages/about"),
    ]
