"""
Rate-limited admin API client
"""
import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import httpx

from ...core.config import StoreConfig
from ...core.constants import (
    API_BASE_PATH,
    DEFAULT_BINARY_FORMATS,
    DEFAULT_HTTP_TIMEOUT,
    MAX_PAGE_REDIRECTS,
    RESOURCE_PAGE_LIMIT,
)
from ...core.exceptions import (
    LocalIOError,
    RemoteRequestError,
    RemoteWriteFailed,
    ThemeSyncError,
    ThrottleClosed,
)
from ...core.logging import get_logger
from ...core.tasks import Err, Ok, Outcome, run_parallel, run_sequence
from ...core.throttle import RateLimiter
from ...core.utils import read_asset_content
from .models import FileUpload, RemoteAsset, ResourcePage

logger = get_logger(__name__)

PAGE_HEADERS = {
    "Accept": "*/*",
    "Accept-Encoding": "gzip, deflate, br",
    "Cache-Control": "no-cache",
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/79.0.3945.88 Safari/537.36"
    ),
}


class ThemeAPIClient:
    """
    Admin API client whose every request goes through one RateLimiter.

    - Assets: write_asset / delete_asset / upload_file / upload_files
    - Resources: read_resource_page / read_resource / write_resource
    - Metafields: read_metafields / write_metafield
    - Storefront: fetch_remote_page_html (not throttled, different host)

    All operations return an Outcome; failures are logged here and
    reported as Err(RemoteWriteFailed | RemoteRequestError | LocalIOError).
    """

    def __init__(
        self,
        store: StoreConfig,
        limiter: Optional[RateLimiter] = None,
        binary_formats: Iterable[str] = DEFAULT_BINARY_FORMATS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        """
        Initialize API client.

        Args:
            store: Store coordinates and credentials
            limiter: Shared rate limiter (a default one is created if omitted)
            binary_formats: Extensions uploaded as base64 attachments
            transport: Optional httpx transport (tests inject MockTransport)
            timeout: Per-request timeout in seconds
        """
        self.store = store
        self.limiter = limiter or RateLimiter()
        self.binary_formats = tuple(binary_formats)
        self._base_path = API_BASE_PATH.format(version=store.api_version)

        self._http = httpx.AsyncClient(
            base_url=f"https://{store.store_url}",
            auth=httpx.BasicAuth(store.api_key, store.password),
            timeout=timeout,
            transport=transport,
        )
        self._storefront = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=False,
        )

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._storefront.aclose()

    async def __aenter__(self) -> "ThemeAPIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # --------------------
    # Paths
    # --------------------
    def asset_path(self) -> str:
        return f"{self._base_path}/themes/{self.store.theme_id}/assets.json"

    def resource_path(self, resource_type: str, resource_id: Optional[Any] = None) -> str:
        resource_type = resource_type.lower()
        if resource_id is not None:
            return f"{self._base_path}/{resource_type}s/{resource_id}.json"
        return f"{self._base_path}/{resource_type}s.json"

    def metafield_path(self, resource_type: str, resource_id: Optional[Any] = None) -> str:
        # Shop metafields live at the API root
        if resource_id is None or resource_type.lower() == "shop":
            return f"{self._base_path}/metafields.json"
        return f"{self._base_path}/{resource_type.lower()}s/{resource_id}/metafields.json"

    # --------------------
    # Request core
    # --------------------
    async def _request(
        self,
        method: str,
        url: str,
        target: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Outcome:
        """Issue one throttled request; Ok(response) only for 2xx"""

        async def start() -> httpx.Response:
            logger.debug(f"{method} {target} (bucket {self.limiter.request_count})")
            return await self._http.request(method, url, params=params, json=json)

        try:
            response = await self.limiter.submit(start)
        except ThrottleClosed as e:
            logger.error(f"{method} {target} dropped: {e}")
            return Err(e)
        except httpx.HTTPError as e:
            logger.error(f"{method} {target} failed: {e!r}")
            return Err(RemoteRequestError(f"{method} {target}: {e}"))

        if not response.is_success:
            body = response.text
            logger.error(
                f"{method} {target} -> {response.status_code} "
                f"{response.reason_phrase}: {body[:500]}"
            )
            return Err(RemoteWriteFailed(response.status_code, body, method, target))

        return Ok(response)

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Response from {response.url} is not JSON")
            return {}
        return data if isinstance(data, dict) else {}

    # --------------------
    # Assets
    # --------------------
    async def write_asset(self, key: str, content: str, is_binary: bool = False) -> Outcome:
        """
        Create or fully replace a theme asset.

        Args:
            key: Remote key, e.g. "assets/main.min.js"
            content: UTF-8 text, or base64 when is_binary
            is_binary: Send as "attachment" instead of "value"

        Returns:
            Ok(RemoteAsset) or Err(RemoteWriteFailed | RemoteRequestError)
        """
        asset = RemoteAsset.build(key, content, is_binary)
        outcome = await self._request("PUT", self.asset_path(), key, json=asset.to_payload())
        if isinstance(outcome, Err):
            return outcome
        return Ok(asset)

    async def delete_asset(self, key: str) -> Outcome:
        """
        Delete a theme asset. A missing key is reported with whatever
        status the endpoint returns.

        Returns:
            Ok(key) or Err
        """
        outcome = await self._request(
            "DELETE", self.asset_path(), key, params={"asset[key]": key}
        )
        if isinstance(outcome, Err):
            return outcome
        return Ok(key)

    def is_binary(self, path: Path) -> bool:
        return path.suffix.lower() in self.binary_formats

    async def upload_file(
        self, path: Path, key: str, is_binary: Optional[bool] = None
    ) -> Outcome:
        """
        Read a local file and upload it as key.

        Args:
            path: Local file path
            key: Remote key
            is_binary: Override binary detection by extension

        Returns:
            Ok(FileUpload) or the first Err (LocalIOError if the read fails)
        """
        job = FileUpload(
            path=Path(path),
            key=key,
            is_binary=self.is_binary(Path(path)) if is_binary is None else is_binary,
        )
        return await run_sequence([_read_upload, self._write_upload], job)

    async def _write_upload(self, job: FileUpload) -> Outcome:
        outcome = await self.write_asset(job.key, job.content or "", job.is_binary)
        if isinstance(outcome, Err):
            return outcome
        return Ok(job)

    async def upload_files(
        self,
        pairs: Sequence[Tuple[Path, str]],
        time_limit: Optional[float] = None,
    ) -> Outcome:
        """
        Upload (local path, remote key) pairs concurrently; first failure wins.
        """

        def upload_step(path: Path, key: str):
            async def step(_context: Any) -> Outcome:
                return await self.upload_file(path, key)

            step.__name__ = f"upload[{key}]"
            return step

        steps = [upload_step(path, key) for path, key in pairs]
        return await run_parallel(steps, None, time_limit=time_limit)

    # --------------------
    # Resources
    # --------------------
    async def read_resource_page(
        self,
        resource_type: str,
        fields: Optional[str] = None,
        cursor: Optional[str] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> Outcome:
        """
        Read one page of a resource collection.

        Args:
            resource_type: Singular resource name, e.g. "product"
            fields: Comma-separated field list
            cursor: Opaque next-page URL from a previous page
            query: Extra query parameters for the first page

        Returns:
            Ok(ResourcePage) whose next_cursor is None on the last page
        """
        resource_type = resource_type.lower()
        if cursor:
            url, params = cursor, None
        else:
            url = self.resource_path(resource_type)
            params = {"limit": RESOURCE_PAGE_LIMIT}
            if fields:
                params["fields"] = fields
            params.update(query or {})

        outcome = await self._request("GET", url, f"{resource_type}s", params=params)
        if isinstance(outcome, Err):
            return outcome

        response = outcome.value
        items = self._json(response).get(f"{resource_type}s", [])
        if not isinstance(items, list):
            logger.error(f"Expected a list of {resource_type}s, got {type(items).__name__}")
            items = []
        next_cursor = response.links.get("next", {}).get("url")
        return Ok(ResourcePage(items=items, next_cursor=next_cursor))

    async def read_resource(
        self, resource_type: str, resource_id: Any, fields: Optional[str] = None
    ) -> Outcome:
        """Read a single resource; Ok(dict)"""
        resource_type = resource_type.lower()
        params = {"fields": fields} if fields else None
        outcome = await self._request(
            "GET",
            self.resource_path(resource_type, resource_id),
            f"{resource_type}/{resource_id}",
            params=params,
        )
        if isinstance(outcome, Err):
            return outcome
        return Ok(self._json(outcome.value).get(resource_type, {}))

    async def write_resource(
        self, resource_type: str, payload: Dict[str, Any], method: str = "PUT"
    ) -> Outcome:
        """
        Create (POST) or update (PUT) a resource.

        Args:
            resource_type: Singular resource name
            payload: Resource fields; PUT requires "id"
            method: "POST" or "PUT"

        Returns:
            Ok(dict echoed by the endpoint) or Err, also for an unsupported
            method or a PUT payload without "id"
        """
        resource_type = resource_type.lower()
        method = method.upper()
        if method not in ("POST", "PUT"):
            return Err(ThemeSyncError(f"Unsupported method for {resource_type}: {method}"))
        if method == "PUT":
            if "id" not in payload:
                return Err(ThemeSyncError(f"PUT {resource_type} requires an id"))
            url = self.resource_path(resource_type, payload["id"])
            target = f"{resource_type}/{payload['id']}"
        else:
            url = self.resource_path(resource_type)
            target = f"{resource_type}s"

        outcome = await self._request(method, url, target, json={resource_type: payload})
        if isinstance(outcome, Err):
            return outcome
        return Ok(self._json(outcome.value).get(resource_type, {}))

    async def read_metafields(
        self,
        resource_type: str,
        resource_id: Optional[Any] = None,
        namespace: Optional[str] = None,
    ) -> Outcome:
        """Read metafields of a resource (or of the shop); Ok(list)"""
        params: Dict[str, Any] = {"limit": RESOURCE_PAGE_LIMIT}
        if namespace:
            params["namespace"] = namespace
        outcome = await self._request(
            "GET",
            self.metafield_path(resource_type, resource_id),
            f"{resource_type}/{resource_id}/metafields",
            params=params,
        )
        if isinstance(outcome, Err):
            return outcome
        metafields = self._json(outcome.value).get("metafields", [])
        return Ok(metafields if isinstance(metafields, list) else [])

    async def write_metafield(
        self, resource_type: str, resource_id: Optional[Any], body: Dict[str, Any]
    ) -> Outcome:
        """
        Create a metafield on a resource.

        Args:
            body: Either {"metafield": {...}} or the bare metafield fields
        """
        if "metafield" not in body:
            body = {"metafield": body}
        outcome = await self._request(
            "POST",
            self.metafield_path(resource_type, resource_id),
            f"{resource_type}/{resource_id}/metafields",
            json=body,
        )
        if isinstance(outcome, Err):
            return outcome
        return Ok(self._json(outcome.value).get("metafield", {}))

    # --------------------
    # Storefront
    # --------------------
    async def fetch_remote_page_html(self, path: str, output: Path) -> Outcome:
        """
        Download a storefront page into output.

        Redirects (301/302) are followed by re-issuing the request against
        the Location target. The body is decompressed according to its
        Content-Encoding (br, gzip, deflate or identity).

        Args:
            path: Request path, e.g. "/collections/all"
            output: File receiving the decoded HTML

        Returns:
            Ok(output) or Err
        """
        url = f"https://{self.store.storefront_host}{path or '/'}"

        for _ in range(MAX_PAGE_REDIRECTS + 1):
            try:
                async with self._storefront.stream("GET", url, headers=PAGE_HEADERS) as response:
                    if response.status_code in (301, 302):
                        location = response.headers.get("location")
                        if not location:
                            return Err(RemoteWriteFailed(
                                response.status_code, "redirect without Location", "GET", url
                            ))
                        url = str(response.url.join(location))
                        logger.debug(f"Page redirected to {url}")
                        continue

                    if not response.is_success:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        logger.error(f"GET {url} -> {response.status_code}")
                        return Err(RemoteWriteFailed(response.status_code, body, "GET", url))

                    await asyncio.to_thread(output.parent.mkdir, parents=True, exist_ok=True)
                    with output.open("wb") as fh:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
                    logger.debug(f"Fetched {url} into {output}")
                    return Ok(output)

            except httpx.HTTPError as e:
                logger.error(f"GET {url} failed: {e!r}")
                return Err(RemoteRequestError(f"GET {url}: {e}"))
            except OSError as e:
                logger.error(f"Could not write page to {output}: {e}")
                return Err(LocalIOError(f"write {output}: {e}"))

        return Err(RemoteRequestError(f"GET {path}: more than {MAX_PAGE_REDIRECTS} redirects"))


async def _read_upload(job: FileUpload) -> Outcome:
    try:
        job.content = await asyncio.to_thread(read_asset_content, job.path, job.is_binary)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read {job.path}: {e}")
        return Err(LocalIOError(f"read {job.path}: {e}"))
    return Ok(job)
