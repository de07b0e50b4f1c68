import logging
from pathlib import Path

import httpx

from claippy.conversation.context import ContextRef
from claippy.exceptions import FetchError

logger = logging.getLogger(__name__)


class ContextFetcher:
    """
    Reads the content behind a context reference.

    Relative file paths are resolved against ``root``. URLs are fetched with
    httpx; pass ``client`` to reuse a configured client (tests use a
    MockTransport).
    """

    def __init__(self, root=None, encoding="utf-8", verify_ssl=True, timeout=30, client=None):
        self.root = Path(root) if root else Path.cwd()
        self.encoding = encoding
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self._client = client

    def __call__(self, ref: ContextRef) -> str:
        return self.fetch(ref)

    def fetch(self, ref: ContextRef) -> str:
        if ref.is_url:
            return self.fetch_url(ref)
        return self.read_file(ref)

    def abs_path(self, literal: str) -> Path:
        path = Path(literal).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return path

    def read_file(self, ref: ContextRef) -> str:
        path = self.abs_path(ref.literal)
        try:
            return path.read_text(encoding=self.encoding)
        except FileNotFoundError:
            raise FetchError(ref, "file not found") from None
        except IsADirectoryError:
            raise FetchError(ref, "is a directory") from None
        except UnicodeDecodeError as err:
            raise FetchError(ref, f"not {self.encoding} text") from err
        except OSError as err:
            raise FetchError(ref, str(err)) from err

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                verify=self.verify_ssl,
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": "claippy"},
            )
        return self._client

    def fetch_url(self, ref: ContextRef) -> str:
        logger.info("Fetching %s", ref)
        try:
            response = self.client.get(ref.literal)
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            raise FetchError(ref, f"HTTP {err.response.status_code}") from err
        except httpx.HTTPError as err:
            raise FetchError(ref, str(err) or type(err).__name__) from err
        return response.text

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None
