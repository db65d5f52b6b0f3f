"""Jamf Pro API client for extension attributes and advanced searches.

Authenticates with OAuth client credentials against the Jamf Pro API and
uses the Classic API (XML) for computer extension attributes and advanced
computer searches.

Usage:
    with JamfClient(url, client_id, client_secret) as client:
        client.authenticate()
        names = client.extension_attribute_names()
"""

import logging
import xml.etree.ElementTree as ET

import httpx

logger = logging.getLogger(__name__)

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30.0
# Connection timeout (seconds)
CONNECT_TIMEOUT = 10.0

EXTENSION_ATTRIBUTES_PATH = "/JSSResource/computerextensionattributes"
ADVANCED_SEARCHES_PATH = "/JSSResource/advancedcomputersearches"
TOKEN_PATH = "/api/oauth/token"


class JamfAuthError(Exception):
    """Raised when no access token could be obtained."""


class JamfRequestError(Exception):
    """Raised when a Classic API resource could not be read."""


class JamfClient:
    """Client for a Jamf Pro server."""

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: Jamf Pro server URL (e.g., https://example.jamfcloud.com)
            client_id: API client ID
            client_secret: API client secret
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None
        self._token: str | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=CONNECT_TIMEOUT),
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "JamfClient":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ─── Authentication ────────────────────────────────────────────────────

    def authenticate(self) -> str:
        """Request an access token with the client-credentials grant.

        Raises:
            JamfAuthError: If the server returns no usable token
        """
        try:
            response = self._get_client().post(
                TOKEN_PATH,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )
            token = response.json().get("access_token")
        except (httpx.HTTPError, ValueError) as e:
            raise JamfAuthError(f"Token request failed: {e}") from e

        if not token or token == "null":
            raise JamfAuthError(f"No access token in response ({response.status_code})")
        self._token = token
        return token

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        if self._token is None:
            raise JamfAuthError("Not authenticated; call authenticate() first")
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/xml",
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _get_xml(self, path: str) -> ET.Element:
        try:
            response = self._get_client().get(path, headers=self._headers())
            response.raise_for_status()
            return ET.fromstring(response.content)
        except (httpx.HTTPError, ET.ParseError) as e:
            raise JamfRequestError(f"GET {path} failed: {e}") from e

    # ─── Classic API resources ─────────────────────────────────────────────

    def extension_attribute_names(self) -> set[str]:
        """Names of all computer extension attributes."""
        root = self._get_xml(EXTENSION_ATTRIBUTES_PATH)
        return {
            (el.findtext("name") or "").strip()
            for el in root.iter("computer_extension_attribute")
        } - {""}

    def advanced_search_ids(self) -> dict[str, str]:
        """Map advanced computer search names to their IDs."""
        root = self._get_xml(ADVANCED_SEARCHES_PATH)
        searches = {}
        for el in root.iter("advanced_computer_search"):
            name = (el.findtext("name") or "").strip()
            search_id = (el.findtext("id") or "").strip()
            if name and search_id:
                searches[name] = search_id
        return searches

    def save_advanced_search(
        self, payload: str, search_id: str | None = None
    ) -> tuple[str, httpx.Response]:
        """Create (POST to id 0) or update (PUT to the id) a search.

        Returns:
            Tuple of (HTTP method used, response)
        """
        if search_id:
            method, path = "PUT", f"{ADVANCED_SEARCHES_PATH}/id/{search_id}"
        else:
            method, path = "POST", f"{ADVANCED_SEARCHES_PATH}/id/0"
        response = self._get_client().request(
            method,
            path,
            content=payload.encode("utf-8"),
            headers=self._headers("application/xml"),
        )
        logger.debug(f"{method} {path} -> {response.status_code}")
        return method, response
