"""
Per-run configuration and mutable state for example generation.

GenerationParameters is immutable for the duration of a run; all mutable
state (counters, tags, the random source) lives in GenerationContext, one
instance per `create_example` call.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, FrozenSet, Mapping, Optional

from ..edm.managers import EdmModel
from ..edm.models import EnumMember, StructuredType


DEFAULT_ID_PROVIDER_KEY = "@default"
"""Key in `chosen_id_providers` used when a property has no provider of its own."""

DEFAULT_SERVICE_ROOT = "https://graph.microsoft.com/beta/"


class Direction(Enum):
    """Which body is being generated."""
    REQUEST = "request"
    RESPONSE = "response"


class HttpMethod(Enum):
    """Supported HTTP methods."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, name: str) -> "HttpMethod":
        """Parse a method name, ignoring case.

        Raises:
            ValueError: If the method is not supported
        """
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method {name}.") from None


@dataclass(frozen=True)
class GenerationParameters:
    """Configuration for one generation run.

    The override maps are keyed by property name (for `chosen_types`, the
    name of the property or navigation source that reaches the type).
    """
    model: EdmModel
    http_method: HttpMethod = HttpMethod.GET
    direction: Direction = Direction.RESPONSE
    service_root: str = DEFAULT_SERVICE_ROOT
    chosen_types: Mapping[str, StructuredType] = field(default_factory=dict)
    chosen_primitives: Mapping[str, str] = field(default_factory=dict)
    chosen_enums: Mapping[str, EnumMember] = field(default_factory=dict)
    chosen_id_providers: Mapping[str, str] = field(default_factory=dict)
    skipped_properties: FrozenSet[str] = frozenset()
    expand: FrozenSet[str] = frozenset()
    seed: Optional[int] = None
    skip_broken_bindings: bool = False

    @property
    def is_request(self) -> bool:
        return self.direction is Direction.REQUEST

    @property
    def is_response(self) -> bool:
        return self.direction is Direction.RESPONSE


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GenerationContext:
    """Mutable state owned by exactly one generation run.

    Holds the monotonic counter shared by ID minting and reference-link keys,
    the per-property string tags, the minted-ID cache and the run's random
    source. Never share an instance across runs.
    """

    def __init__(self, seed: Optional[int] = None, clock: Callable[[], datetime] = utc_now):
        self.random = random.Random(seed)
        self.clock = clock
        self._monotonic = 1
        self._property_tags: Dict[str, int] = {}
        self._toggles: Dict[str, bool] = {}
        self.id_values: Dict[int, str] = {}

    def next_monotonic(self) -> int:
        """Return the next value of the run's monotonic sequence (starts at 1)."""
        value = self._monotonic
        self._monotonic += 1
        return value

    def next_tag(self, property_name: str) -> str:
        """Return `value`, then `value2`, `value3`, ... for a property name."""
        tag = self._property_tags.get(property_name, 1)
        self._property_tags[property_name] = tag + 1
        return "value" if tag < 2 else f"value{tag}"

    def next_toggle(self, property_name: str) -> bool:
        """Alternate True/False per property name, starting with True."""
        value = not self._toggles.get(property_name, False)
        self._toggles[property_name] = value
        return value

    def next_random(self, scope: int) -> int:
        """Uniform integer in [0, scope)."""
        return self.random.randrange(scope)

    def now(self) -> datetime:
        return self.clock()
