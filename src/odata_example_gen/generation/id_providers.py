"""
ID providers.

Each provider mints identifier strings in the shape a particular family of
services uses. Providers draw all randomness from the run's context so seeded
runs are reproducible.
"""

import base64
import string
import uuid
from typing import List, Optional, Protocol

from ..edm.models import StructuredType
from .parameters import GenerationContext


class IdProvider(Protocol):
    """Capability interface of an ID provider."""

    name: str

    def mint(self, host_type: StructuredType, context: GenerationContext) -> str:
        """Mint a new identifier for an instance of `host_type`."""
        ...


def random_guid(context: GenerationContext) -> str:
    """A version 4 GUID string drawn from the context's random source."""
    return str(uuid.UUID(int=context.random.getrandbits(128), version=4))


def random_chars(context: GenerationContext, alphabet: str, length: int) -> str:
    return "".join(context.random.choice(alphabet) for _ in range(length))


class GuidIdProvider:
    """Plain GUIDs."""

    name = "Guid"

    def mint(self, host_type: StructuredType, context: GenerationContext) -> str:
        return random_guid(context)


class ExchangeIdProvider:
    """Base64 of two concatenated GUID strings, roughly the length of real mailbox IDs."""

    name = "Exchange"

    def mint(self, host_type: StructuredType, context: GenerationContext) -> str:
        source = random_guid(context) + random_guid(context)
        return base64.b64encode(source.encode("utf-8")).decode("ascii")


class OdspIdProvider:
    """Drive, drive item and site IDs shaped like OneDrive/SharePoint ones.

    Any other host type gets a GUID.
    """

    name = "Odsp"

    _MIXED = string.ascii_lowercase + string.ascii_uppercase + string.digits
    _UPPER = string.ascii_uppercase + string.digits

    def mint(self, host_type: StructuredType, context: GenerationContext) -> str:
        host_name = host_type.name.lower()
        if host_name == "drive":
            # b!Hpsovc0KS0CPIsn-WFNR8GhV9dMxb2tCsYvkwOKABNKFLTswmPZLRoagnK9DpYwL
            return f"b!{random_chars(context, self._MIXED, 15)}-{random_chars(context, self._MIXED, 48)}"
        if host_name == "driveitem":
            # 01GIXM3Y6SFRTTGAJ3PFGYABIDORF6HIVV
            return random_chars(context, self._UPPER, 34)
        if host_name == "site":
            letters = random_chars(context, string.ascii_lowercase, 9)
            return f"{letters},{random_guid(context)},{random_guid(context)}"
        return random_guid(context)


class IdProviderRegistry:
    """Ordered list of providers with case-insensitive lookup by name."""

    def __init__(self, providers: Optional[List[IdProvider]] = None):
        self._providers: List[IdProvider] = list(providers) if providers is not None else [
            GuidIdProvider(),
            ExchangeIdProvider(),
            OdspIdProvider(),
        ]

    @property
    def names(self) -> List[str]:
        return [provider.name for provider in self._providers]

    def find(self, name: Optional[str]) -> Optional[IdProvider]:
        """Find a provider by name, ignoring case."""
        if not name or not name.strip():
            return None
        lowered = name.strip().lower()
        for provider in self._providers:
            if provider.name.lower() == lowered:
                return provider
        return None

    def default(self) -> IdProvider:
        """The first registered provider."""
        return self._providers[0]

    def __len__(self) -> int:
        return len(self._providers)


DEFAULT_REGISTRY = IdProviderRegistry()
