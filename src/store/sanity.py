"""
Sanity content API client.

Reads checkout and product documents with GROQ queries and writes product
changes through the mutation endpoint. All transport problems surface as
StoreError so callers never depend on ``requests`` directly.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from src.store.base import ProductNotFound, StoreError, StoreRepository

logger = logging.getLogger(__name__)

ORDER_PROJECTION = """{
  _id,
  orderId,
  firstName,
  lastName,
  email,
  phone,
  address,
  city,
  province,
  zipCode,
  country,
  additionalInfo,
  paymentMethod,
  cartItems,
  _createdAt
}"""

PRODUCT_PROJECTION = """{
  _id,
  title,
  "productImage": productImage.asset->url,
  price,
  originalPrice,
  discountPercentage,
  isNew,
  tags,
  description,
  quantity
}"""

ORDERS_QUERY = f'*[_type == "checkout"] {ORDER_PROJECTION}'
PRODUCTS_QUERY = f'*[_type == "product"] {PRODUCT_PROJECTION}'
PRODUCT_BY_ID_QUERY = f'*[_type == "product" && _id == $id][0] {PRODUCT_PROJECTION}'
PING_QUERY = 'count(*[_type == "checkout"])'


class SanityStore(StoreRepository):
    name = "sanity"

    def __init__(
        self,
        project_id: Optional[str],
        dataset: str = "production",
        api_version: str = "2025-01-13",
        token: Optional[str] = None,
        use_cdn: bool = False,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.project_id = project_id
        version = api_version if api_version.startswith("v") else f"v{api_version}"
        # The CDN only serves public, unauthenticated reads
        query_host = "apicdn.sanity.io" if use_cdn and not token else "api.sanity.io"
        self.query_url = f"https://{project_id}.{query_host}/{version}/data/query/{dataset}"
        self.mutate_url = f"https://{project_id}.api.sanity.io/{version}/data/mutate/{dataset}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SanityStore":
        return cls(
            project_id=config.get("SANITY_PROJECT_ID"),
            dataset=config.get("SANITY_DATASET", "production"),
            api_version=config.get("SANITY_API_VERSION", "2025-01-13"),
            token=config.get("SANITY_API_TOKEN"),
            use_cdn=bool(config.get("SANITY_USE_CDN", False)),
            timeout=float(config.get("SANITY_TIMEOUT_SECONDS", 10)),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_orders(self) -> List[Dict[str, Any]]:
        return self._query_list(ORDERS_QUERY, "list_orders")

    def list_products(self) -> List[Dict[str, Any]]:
        return self._query_list(PRODUCTS_QUERY, "list_products")

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        result = self._query(PRODUCT_BY_ID_QUERY, "get_product", params={"id": product_id})
        return result if isinstance(result, dict) else None

    def ping(self) -> None:
        self._query(PING_QUERY, "ping")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        mutation = {"patch": {"id": product_id, "set": fields}}
        try:
            self._mutate([mutation], "update_product")
        except StoreError as exc:
            if exc.status_code == 404 or "not found" in str(exc).lower():
                raise ProductNotFound(product_id) from exc
            raise

        # Re-read through the projection so image references come back as URLs
        document = self.get_product(product_id)
        if document is None:
            raise ProductNotFound(product_id)
        return document

    def delete_product(self, product_id: str) -> None:
        body = self._mutate([{"delete": {"id": product_id}}], "delete_product")
        if not body.get("results"):
            raise ProductNotFound(product_id)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _query_list(self, groq: str, operation: str) -> List[Dict[str, Any]]:
        result = self._query(groq, operation)
        if result is None:
            return []
        if not isinstance(result, list):
            raise StoreError(f"Sanity {operation} returned {type(result).__name__}, expected a list")
        return result

    def _query(self, groq: str, operation: str, params: Optional[Dict[str, Any]] = None) -> Any:
        query_params = {"query": groq}
        for key, value in (params or {}).items():
            # GROQ parameters travel as JSON-encoded "$name" query arguments
            query_params[f"${key}"] = json.dumps(value)
        body = self._send("GET", self.query_url, operation, params=query_params)
        return body.get("result")

    def _mutate(self, mutations: List[Dict[str, Any]], operation: str) -> Dict[str, Any]:
        return self._send(
            "POST",
            self.mutate_url,
            operation,
            params={"returnIds": "true"},
            json={"mutations": mutations},
        )

    def _send(self, method: str, url: str, operation: str, **kwargs: Any) -> Dict[str, Any]:
        if not self.project_id:
            raise StoreError("SANITY_PROJECT_ID is not configured")
        try:
            response = self.session.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.error("Sanity %s request failed: %s", operation, exc)
            raise StoreError(f"Sanity {operation} request failed: {exc}") from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.error(
                "Sanity %s failed with status %s: %s",
                operation,
                response.status_code,
                detail,
            )
            raise StoreError(
                f"Sanity {operation} failed with status {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise StoreError(f"Sanity {operation} returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise StoreError(f"Sanity {operation} returned an unexpected payload")
        return body


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return str(error.get("description") or error.get("message") or error)
        if error:
            return str(payload.get("message") or error)
    return str(payload)[:200]
