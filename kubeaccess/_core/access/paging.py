"""
Iterating over the chunked listings by following the continuation tokens.

The server returns the large listings in pages if asked to (with ``limit``).
Every page except the last one has a continuation token in its metadata,
which is passed to the next listing request to get the next page.

The paginator is lazy: no request is made until the iteration starts,
and the next page is requested only when the previous one is consumed.
"""
import logging
from typing import AsyncIterator, Awaitable, Callable, Generic, List, Optional

from kubeaccess._cogs.structs import envelopes

logger = logging.getLogger(__name__)


# A listing function, called with the selectors, the limit, and the continuation token (as kwargs).
Lister = Callable[..., Awaitable[envelopes.ObjectList[envelopes.ObjectT]]]


class Paginator(Generic[envelopes.ObjectT]):
    """
    An async-iterable over all the objects of a listing, page by page.

    Usage::

        async for pod in pods.paginate_namespaced('default', page_size=100):
            print(pod.metadata.name)

    Or page by page, e.g. to persist the continuation token externally::

        paginator = pods.paginate_namespaced('default')
        async for page in paginator.pages():
            save_somewhere(paginator.continue_token)

    Every new iteration starts from the first page. The errors of the listing
    requests are escalated as they are; the already yielded objects stay yielded.
    """

    def __init__(
            self,
            lister: 'Lister[envelopes.ObjectT]',
            *,
            page_size: int,
            label_selector: Optional[str] = None,
            field_selector: Optional[str] = None,
    ) -> None:
        super().__init__()
        self._lister = lister
        self.page_size = page_size
        self.label_selector = label_selector
        self.field_selector = field_selector
        self.continue_token: Optional[str] = None
        self.pages_fetched: int = 0

    def __aiter__(self) -> AsyncIterator[envelopes.ObjectT]:
        return self._iter_items()

    async def _iter_items(self) -> AsyncIterator[envelopes.ObjectT]:
        async for page in self.pages():
            for item in page.items:
                yield item

    async def pages(self) -> AsyncIterator[envelopes.ObjectList[envelopes.ObjectT]]:
        """
        Iterate over the whole pages rather than individual objects.

        An empty page with a continuation token is not the end of the listing:
        the server can return such pages, e.g. when filtering by field selectors.
        """
        self.continue_token = None
        self.pages_fetched = 0
        while True:
            page = await self._lister(
                label_selector=self.label_selector,
                field_selector=self.field_selector,
                limit=self.page_size,
                continue_token=self.continue_token,
            )
            self.pages_fetched += 1
            self.continue_token = page.continue_token
            logger.debug(f"Fetched page #{self.pages_fetched} with {len(page.items)} item(s); "
                         f"{'more to come' if self.continue_token else 'the last one'}.")
            yield page
            if self.continue_token is None:
                break

    async def collect(self) -> List[envelopes.ObjectT]:
        """ Fetch all pages and return all the objects in the listing's order. """
        return [item async for item in self]
