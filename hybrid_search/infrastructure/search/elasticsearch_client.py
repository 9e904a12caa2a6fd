import logging
from typing import Any, Optional

import requests

from hybrid_search.core.exceptions import BackendError

logger = logging.getLogger(__name__)

SOURCE_EXCLUDES = ["*_embedding"]


class ElasticsearchClient:
    """Search client using the Elasticsearch REST API."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 9200,
        scheme: str = "http",
        username: str = "",
        password: str = "",
        timeout: float = 60.0,
        connect_timeout: float = 5.0,
    ):
        """Initialize Elasticsearch client.

        Args:
            host: Elasticsearch host.
            port: Elasticsearch port.
            scheme: http or https.
            username: Basic auth user, empty to disable auth.
            password: Basic auth password.
            timeout: Read timeout in seconds.
            connect_timeout: Connect timeout in seconds.
        """
        self._base_url = f"{scheme}://{host}:{port}"
        self._session = requests.Session()
        if username and password:
            logger.info(f"Using Elasticsearch basic auth: {username}")
            self._session.auth = (username, password)
        self._timeout = (connect_timeout, timeout)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"{method} {path} failed: {e}") from e
        return resp

    def _json(self, method: str, path: str, **kwargs) -> dict:
        resp = self._request(method, path, **kwargs)
        if resp.status_code >= 400:
            raise BackendError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:500]}"
            )
        return resp.json()

    def exists(self, index: str) -> bool:
        resp = self._request("HEAD", index)
        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise BackendError(f"Index check for {index} returned {resp.status_code}")

    def create(self, index: str, mappings: dict) -> None:
        self._json("PUT", index, json={"mappings": mappings})
        logger.info(f"Created index: {index}")

    def search(self, index: str, body: dict) -> dict:
        body = {"_source": {"excludes": SOURCE_EXCLUDES}, **body}
        return self._json("POST", f"{index}/_search", json=body)

    def search_structured(
        self, index: str, query: dict, offset: int, limit: int
    ) -> dict:
        body = dict(query)
        body["from"] = offset
        body["size"] = limit
        body.setdefault("track_total_hits", True)
        return self.search(index, body)

    def search_scripted(
        self,
        index: str,
        script: str,
        params: dict[str, Any],
        min_score: Optional[float],
        limit: int,
        offset: int = 0,
        filter_query: Optional[dict] = None,
    ) -> dict:
        script_score: dict[str, Any] = {
            "query": filter_query or {"match_all": {}},
            "script": {"source": script, "params": params},
        }
        if min_score is not None:
            script_score["min_score"] = min_score

        body = {
            "query": {"script_score": script_score},
            "from": offset,
            "size": limit,
            "track_total_hits": True,
        }
        return self.search(index, body)

    def index(self, index: str, document: dict, doc_id: Optional[str] = None) -> str:
        if doc_id:
            data = self._json("PUT", f"{index}/_doc/{doc_id}", json=document)
        else:
            data = self._json("POST", f"{index}/_doc", json=document)
        return data["_id"]

    def get(
        self, index: str, doc_id: str, source_includes: Optional[list[str]] = None
    ) -> Optional[dict]:
        params = {"_source_includes": ",".join(source_includes)} if source_includes else None
        resp = self._request("GET", f"{index}/_doc/{doc_id}", params=params)
        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise BackendError(f"GET {index}/_doc/{doc_id} returned {resp.status_code}")
        data = resp.json()
        if not data.get("found"):
            return None
        return data.get("_source") or {}

    def count(self, index: str) -> int:
        return int(self._json("GET", f"{index}/_count")["count"])

    def refresh(self, index: str) -> None:
        self._json("POST", f"{index}/_refresh")
