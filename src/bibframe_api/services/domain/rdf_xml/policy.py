#!/usr/bin/env python3
"""Usage and access policy label resolution.

A policy value in the editor carries only an identifier and a class. The
label printed under ``bf:usageAndAccessPolicy`` comes from, in order:

1. the controlled vocabulary for that class (access vs. use), fetched once
   and cached for the life of the service
2. lookup data embedded in loaded profile templates
3. a small table of the institution's local policies

:meth:`PolicyLookupService.resolve` returns ``UNKNOWN_POLICY`` when none of
these know the identifier.
"""

import logging
from typing import Any, Iterable

from ....clients.policy_client import PolicyClient, PolicyLookupError
from .namespaces import BF, MADSRDF

logger = logging.getLogger(__name__)

# Returned by resolve() when no source knows the policy
UNKNOWN_POLICY = None

USAGE_AND_ACCESS_POLICY = f"{BF}usageAndAccessPolicy"
AUTHORITATIVE_LABEL = f"{MADSRDF}authoritativeLabel"

LOCAL_POLICY_LABELS = {
    "local:accessPolicy1": "Free to access",
    "local:accessPolicy2": "Access restricted",
    "local:accessPolicy3": "Accessible online",
    "local:accessPolicy4": "For use in library only",
    "local:accessPolicy5": "Limited circulation, long loan period",
    "local:accessPolicy6": "No restrictions on access",
    "local:usePolicy1": "Copyright constraints",
    "local:usePolicy2": "Free to use",
    "local:usePolicy3": "License restrictions",
    "local:usePolicy4": "No commercial use",
    "local:usePolicy5": "No known legal restrictions",
    "local:usePolicy6": "Permission to use explicitly granted by publisher",
}


def policy_kind(policy_type: str | None) -> str:
    return "access" if policy_type and "AccessPolicy" in policy_type else "use"


def entry_label(entry: Any) -> str | None:
    """Read the MADS authoritative label from one vocabulary entry."""
    if not isinstance(entry, dict):
        return None
    labels = entry.get(AUTHORITATIVE_LABEL)
    if isinstance(labels, list) and labels:
        first = labels[0]
        if isinstance(first, dict) and first.get("@value"):
            return str(first["@value"])
        if isinstance(first, str) and first:
            return first
    return None


class PolicyLookupService:
    """Resolves (policy id, policy type) pairs to display labels."""

    def __init__(
        self,
        client: PolicyClient | None = None,
        template_profiles: dict[str, Any] | None = None,
        local_labels: dict[str, str] | None = None,
    ):
        self._client = client
        self._template_profiles = template_profiles or {}
        self._local_labels = LOCAL_POLICY_LABELS if local_labels is None else local_labels
        self._cache: dict[str, list[dict]] = {}

    def for_request(self, template_profiles: dict[str, Any] | None = None) -> "PolicyLookupService":
        """Service for one build, searching that build's loaded templates.

        The returned service shares this one's client and vocabulary cache, so
        each vocabulary is fetched once however many builds use it.
        """
        scoped = PolicyLookupService(self._client, template_profiles, self._local_labels)
        scoped._cache = self._cache
        return scoped

    async def resolve(self, policy_id: str | None, policy_type: str | None) -> str | None:
        """Return the label for a policy, or UNKNOWN_POLICY."""
        if not policy_id or not policy_type:
            logger.warning(f"Policy lookup missing id or type: id={policy_id!r} type={policy_type!r}")
            return UNKNOWN_POLICY

        label = entry_label(await self._find_in_vocabulary(policy_id, policy_kind(policy_type)))
        if label:
            return label

        label = entry_label(self._find_in_templates(policy_id))
        if label:
            logger.debug(f"Policy {policy_id} resolved from profile template lookup data")
            return label

        label = self._local_labels.get(policy_id)
        if label:
            logger.debug(f"Policy {policy_id} resolved from local policy labels")
            return label

        logger.warning(f"Could not resolve policy label for {policy_id} ({policy_type})")
        return UNKNOWN_POLICY

    async def _find_in_vocabulary(self, policy_id: str, kind: str) -> dict | None:
        if self._client is None or not self._client.enabled:
            return None

        if kind not in self._cache:
            try:
                self._cache[kind] = await self._client.fetch_policies(kind)
            except PolicyLookupError as e:
                logger.warning(f"Policy vocabulary unavailable: {e}")
                return None

        for entry in self._cache[kind]:
            if isinstance(entry, dict) and entry.get("@id") == policy_id:
                return entry
        return None

    def _find_in_templates(self, policy_id: str) -> dict | None:
        for profile in self._template_profiles.values():
            for rt in _values(profile, "rt"):
                for pt in _values(rt, "pt"):
                    if not isinstance(pt, dict) or pt.get("propertyURI") != USAGE_AND_ACCESS_POLICY:
                        continue
                    for entry in _lookup_data(pt):
                        if isinstance(entry, dict) and entry.get("@id") == policy_id:
                            return entry
        return None


def _values(container: Any, key: str) -> Iterable[Any]:
    if not isinstance(container, dict):
        return []
    value = container.get(key)
    return value.values() if isinstance(value, dict) else []


def _lookup_data(pt: dict) -> list:
    sources = (pt.get("valueConstraint") or {}).get("useValuesFrom") or []
    if not sources or not isinstance(sources[0], dict):
        return []
    data = sources[0].get("data")
    return data if isinstance(data, list) else []
