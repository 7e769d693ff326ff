"""
Resource domain service - paginated resource and metafield operations
"""
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ...core.exceptions import ThemeSyncError
from ...core.logging import get_logger
from ...core.tasks import Err, Ok, Outcome, Step, run_parallel
from ...infrastructure.api import ThemeAPIClient

logger = get_logger(__name__)

Payload = Dict[str, Any]


class ResourceService:
    """
    Resource service - store data beyond theme assets.

    Every request goes through the client's shared rate limiter, so bulk
    pulls and pushes respect the same bucket as asset uploads.
    """

    def __init__(
        self,
        api: ThemeAPIClient,
        on_page: Optional[Callable[[str, int, int], None]] = None,
    ):
        """
        Initialize resource service.

        Args:
            api: Admin API client
            on_page: Callback per fetched page (resource type, page number, item count)
        """
        self.api = api
        self.on_page = on_page

    async def download_resource(
        self,
        resource_type: str,
        fields: Optional[str] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> Outcome:
        """
        Download a whole collection, following pagination to exhaustion.

        Returns:
            Ok(list of items in page order) or the Err of the failing page
        """
        items: List[Payload] = []
        cursor: Optional[str] = None
        page_number = 0
        while True:
            outcome = await self.api.read_resource_page(
                resource_type, fields=fields, cursor=cursor, query=query
            )
            if isinstance(outcome, Err):
                return outcome
            page = outcome.value
            page_number += 1
            items.extend(page.items)
            if self.on_page:
                self.on_page(resource_type, page_number, len(page.items))
            if not page.next_cursor:
                break
            cursor = page.next_cursor

        logger.info(f"Downloaded {len(items)} {resource_type}(s) in {page_number} page(s)")
        return Ok(items)

    async def download_customers(
        self, fields: Optional[str] = None, query: Optional[Dict[str, Any]] = None
    ) -> Outcome:
        return await self.download_resource("customer", fields=fields, query=query)

    async def download_customer(self, customer_id: Any, fields: Optional[str] = None) -> Outcome:
        return await self.api.read_resource("customer", customer_id, fields=fields)

    async def upload_resource(
        self,
        resource_type: str,
        objects: Union[Payload, Sequence[Payload]],
        method: Optional[str] = None,
    ) -> Outcome:
        """
        Create or update resources.

        A single object is created (POST unless method says otherwise). A
        list is written as one parallel batch, updated in place (PUT) by
        default; the first failure wins.

        Returns:
            Ok(echoed object) for a single object, Ok(count) for a list, or Err
        """
        if isinstance(objects, dict):
            return await self.api.write_resource(resource_type, objects, method or "POST")
        if not isinstance(objects, (list, tuple)) or not all(isinstance(p, dict) for p in objects):
            return Err(ThemeSyncError(
                f"{resource_type} payload must be an object or a list of objects"
            ))

        batch_method = method or "PUT"

        def write_step(payload: Payload) -> Step:
            async def step(_context: Any) -> Outcome:
                return await self.api.write_resource(resource_type, payload, batch_method)

            step.__name__ = f"{batch_method.lower()}[{resource_type}:{payload.get('id', 'new')}]"
            return step

        steps = [write_step(payload) for payload in objects]
        outcome = await run_parallel(steps, None)
        if isinstance(outcome, Err):
            return outcome
        logger.info(f"Uploaded {len(steps)} {resource_type}(s)")
        return Ok(len(steps))

    async def download_metafields(
        self,
        resource_type: str,
        resource_id: Optional[Any] = None,
        namespace: Optional[str] = None,
    ) -> Outcome:
        return await self.api.read_metafields(resource_type, resource_id, namespace=namespace)

    async def upload_metafield(
        self, resource_type: str, resource_id: Optional[Any], body: Payload
    ) -> Outcome:
        return await self.api.write_metafield(resource_type, resource_id, body)
