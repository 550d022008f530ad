"""Shopify Admin GraphQL client used to tag customer records."""

from __future__ import annotations

import json
from typing import Any, Mapping

import httpx
import structlog

from wholesale_approval.approvals.state import TagMutationRequest
from wholesale_approval.config import AppSettings

CUSTOMER_GID_TEMPLATE = "gid://shopify/Customer/{numeric_id}"

CUSTOMER_TAGS_ADD_GQL = """
  mutation tagsAdd($id: ID!, $tags: [String!]!) {
    tagsAdd(id: $id, tags: $tags) {
      node { id ... on Customer { id tags } }
      userErrors { field message }
    }
  }
"""

CUSTOMER_TAGS_REMOVE_GQL = """
  mutation tagsRemove($id: ID!, $tags: [String!]!) {
    tagsRemove(id: $id, tags: $tags) {
      node { id ... on Customer { id tags } }
      userErrors { field message }
    }
  }
"""

_MUTATIONS = {
    "tagsAdd": CUSTOMER_TAGS_ADD_GQL,
    "tagsRemove": CUSTOMER_TAGS_REMOVE_GQL,
}


class MutationError(RuntimeError):
    """The tag mutation failed at the transport, API or field level."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def customer_gid(numeric_id: str) -> str:
    return CUSTOMER_GID_TEMPLATE.format(numeric_id=numeric_id)


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


class ShopifyClient:
    """Single-attempt wrapper around the Admin GraphQL endpoint."""

    def __init__(
        self,
        *,
        domain: str,
        access_token: str,
        api_version: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.domain = domain
        self.api_version = api_version
        self._access_token = access_token
        self._timeout = timeout_seconds
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: AppSettings, *, http_client: httpx.Client | None = None) -> "ShopifyClient":
        return cls(
            domain=settings.shopify_domain,
            access_token=settings.shopify_admin_token,
            api_version=settings.shopify_api_version,
            timeout_seconds=settings.shopify_timeout_seconds,
            http_client=http_client,
        )

    @property
    def endpoint(self) -> str:
        return f"https://{self.domain}/admin/api/{self.api_version}/graphql.json"

    def _headers(self) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": self._access_token,
            "Content-Type": "application/json",
            "Shopify-API-Version": self.api_version,
        }

    def _post(self, payload: Mapping[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.post(self.endpoint, json=payload, headers=self._headers())
        with httpx.Client(timeout=self._timeout) as client:
            return client.post(self.endpoint, json=payload, headers=self._headers())

    def graphql(self, query: str, variables: Mapping[str, Any]) -> dict[str, Any]:
        """Run *query* and return its ``data`` object."""

        try:
            response = self._post({"query": query, "variables": dict(variables)})
        except httpx.HTTPError as exc:
            raise MutationError(f"Shopify request failed: {exc}") from exc

        if not response.is_success:
            raise MutationError(f"Shopify HTTP {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as exc:
            raise MutationError(f"Shopify returned invalid JSON: {response.text[:200]}") from exc

        if not isinstance(body, dict):
            raise MutationError(f"Shopify returned an unexpected payload: {response.text[:200]}")
        if body.get("errors"):
            raise MutationError(f"Shopify GQL errors: {_compact(body['errors'])}")

        data = body.get("data") or {}
        if not isinstance(data, dict):
            raise MutationError(f"Shopify returned an unexpected payload: {response.text[:200]}")
        if data.get("errors"):
            raise MutationError(f"Shopify data.errors: {_compact(data['errors'])}")
        return data

    def mutate_tags(self, request: TagMutationRequest) -> dict[str, Any]:
        """Add or remove the tags in *request*; exactly one API call, no retry."""

        operation = request.operation
        log = structlog.get_logger().bind(
            customer_id=request.customer_id,
            operation=operation,
            tags=request.tags,
        )
        log.info("tag_mutation_started")

        data = self.graphql(
            _MUTATIONS[operation],
            {"id": customer_gid(request.customer_id), "tags": request.tags},
        )
        result = data.get(operation) or {}
        if not isinstance(result, dict):
            raise MutationError(f"Shopify returned an unexpected payload: {operation}={_compact(result)}")
        user_errors = result.get("userErrors") or []
        if not isinstance(user_errors, list):
            raise MutationError(f"Shopify returned an unexpected payload: userErrors={_compact(user_errors)}")
        if user_errors:
            log.warning("tag_mutation_rejected", user_errors=user_errors)
            raise MutationError(f"{operation} errors: {_compact(user_errors)}")

        log.info("tag_mutation_succeeded")
        return result
