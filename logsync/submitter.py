"""Solr submitter: bulk-posts documents as JSON with basic auth and an explicit commit."""

import json
import logging
from typing import Optional, Sequence

import requests

from logsync.models import IndexDocument, document_to_dict

logger = logging.getLogger(__name__)


class SolrSubmitter:
    """Posts a batch of documents to a Solr update handler in one request.

    No retry happens here: a failed submission is retried by the next
    scheduled run, which fetches the same still-unindexed records.
    """

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._url = url
        self._auth = (username, password)
        self._timeout = timeout
        self._session = session or requests.Session()

    def submit(self, documents: Sequence[IndexDocument]) -> bool:
        """Send *documents* and commit. Returns True only when Solr accepted them."""
        first = documents[0].id if documents else "<empty documents>"
        last = documents[-1].id if documents else "<empty documents>"
        logger.info('submit: indexing %d documents, from "%s" to "%s"', len(documents), first, last)

        try:
            body = json.dumps([document_to_dict(doc) for doc in documents])
        except (TypeError, ValueError) as exc:
            logger.error("submit: could not serialize documents: %s", exc)
            return False

        try:
            response = self._session.post(
                self._url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                auth=self._auth,
                params={"wt": "json", "commit": "true"},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("submit: request to Solr failed: %s", exc)
            return False

        error = self._application_error(response)
        if error:
            logger.error("submit: Solr rejected the update: %s", error)
            return False

        logger.info(
            'submit: indexed %d documents, from "%s" to "%s". Response: %s',
            len(documents), first, last, response.text[:500],
        )
        return True

    @staticmethod
    def _application_error(response: requests.Response) -> Optional[str]:
        """Return an error description if a 2xx body still reports a failure."""
        try:
            payload = response.json()
        except ValueError:
            return None
        if not isinstance(payload, dict):
            return None
        if payload.get("error"):
            error = payload["error"]
            return error.get("msg", str(error)) if isinstance(error, dict) else str(error)
        header = payload.get("responseHeader")
        if not isinstance(header, dict):
            return None
        status = header.get("status", 0)
        if status:
            return f"responseHeader.status={status}"
        return None

    def close(self):
        """Close the HTTP session."""
        self._session.close()
