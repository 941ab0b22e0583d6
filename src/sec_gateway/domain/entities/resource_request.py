# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Resource request entity (Domain Layer).

Purpose:
    Describe a single logical request against one of the gateway's resource
    classes, together with the fixed per-class cache expiry policy.

Layer:
    domain/entities

Notes:
    The identifier is stored exactly as supplied by the caller. Validation and
    normalization belong to :mod:`sec_gateway.domain.services.resource_keys`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Final


class ResourceClass(str, Enum):
    """Resource classes served by the gateway."""

    FEED = "feed"
    SUBMISSIONS = "submissions"
    DOCUMENT = "document"


#: Cache expiry per resource class, in seconds. Never derived from content.
TTL_POLICY: Final[Mapping[ResourceClass, int]] = MappingProxyType(
    {
        ResourceClass.FEED: 900,
        ResourceClass.SUBMISSIONS: 86_400,
        ResourceClass.DOCUMENT: 3_600,
    }
)


def ttl_for(resource_class: ResourceClass) -> int:
    """Return the cache TTL (seconds) for a resource class."""
    return TTL_POLICY[resource_class]


@dataclass(frozen=True, slots=True)
class ResourceRequest:
    """A request for one resource.

    Attributes:
        resource_class: Which resource class is requested.
        identifier: CIK digits for submissions, an absolute URL for documents,
            ``None`` for the feed.
    """

    resource_class: ResourceClass
    identifier: str | None = None

    @classmethod
    def feed(cls) -> ResourceRequest:
        """Build a feed request."""
        return cls(ResourceClass.FEED)

    @classmethod
    def submissions(cls, cik: str | None) -> ResourceRequest:
        """Build a submissions request for a CIK."""
        return cls(ResourceClass.SUBMISSIONS, cik)

    @classmethod
    def document(cls, url: str | None) -> ResourceRequest:
        """Build a document request for an absolute URL."""
        return cls(ResourceClass.DOCUMENT, url)

    @property
    def ttl_seconds(self) -> int:
        """Cache TTL for this request's class."""
        return ttl_for(self.resource_class)
