"""Category display names: local cache first, Wikidata label service second."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import LabelServiceError
from .graph.store import SQLiteGraphStore
from .http import HttpClientFactory, default_user_agent, transient_retry

logger = logging.getLogger(__name__)

_LABEL_MAP = TypeAdapter(dict[str, str])


class CategoryLabels(BaseModel):
    en: str = ""
    fr: str = ""

    @classmethod
    def from_label_map(cls, labels: dict[str, str]) -> CategoryLabels:
        en = labels.get("en")
        if en is None:
            en = labels.get("mul", "")
        return cls(en=en, fr=labels.get("fr", ""))


class WikidataLabelClient:
    """Wikibase REST API label lookups.

    A lookup is one GET, retried on timeouts and network errors for at most
    5 attempts of `timeout_s` each. HTTP error statuses are not retried.

    Docs: https://www.wikidata.org/wiki/Wikidata:REST_API
    """

    def __init__(
        self,
        base_url: str = "https://www.wikidata.org/w/rest.php/wikibase/v1",
        *,
        timeout_s: float = 20.0,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client = HttpClientFactory.client(
            base_url=base_url,
            headers={"User-Agent": user_agent or default_user_agent()},
            timeout_s=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> WikidataLabelClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @transient_retry()
    def _get(self, path: str) -> httpx.Response:
        r = self._client.get(path)
        r.raise_for_status()
        return r

    def fetch_labels(self, entity_id: int) -> dict[str, str]:
        """Language code -> label for item Q<entity_id>."""
        try:
            r = self._get(f"/entities/items/Q{entity_id}/labels")
            return _LABEL_MAP.validate_json(r.content)
        except httpx.HTTPError as e:
            raise LabelServiceError(f"cannot fetch labels of Q{entity_id}: {e}") from e
        except ValidationError as e:
            raise LabelServiceError(f"unexpected label payload for Q{entity_id}: {e}") from e


class LabelResolver:
    def __init__(self, store: SQLiteGraphStore, client: WikidataLabelClient):
        self.store = store
        self.client = client
        self.fetched = 0

    def resolve(self, category: int) -> CategoryLabels:
        cached = self.store.get_labels(category)
        if cached is not None:
            return CategoryLabels(en=cached[0], fr=cached[1])

        logger.info("fetching missing labels for Q%d", category)
        labels = CategoryLabels.from_label_map(self.client.fetch_labels(category))
        self.store.insert_entity(category, labels.en, labels.fr)
        self.store.commit()
        self.fetched += 1
        return labels
