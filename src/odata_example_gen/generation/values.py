"""
Example values for scalar, enum and collection-valued structural properties.

Resolution order for a property:
1. an explicit literal supplied for the property name, parsed by its type
2. an ID provider, for string properties named `id` or ending in `Id`
3. a heuristic indexed by primitive kind
"""

import logging
import re
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from ..edm.models import EnumType, PrimitiveKind, StructuralProperty, StructuredType
from ..errors import ModelIntegrityError, UnsupportedTypeError, ValueConversionError
from .id_providers import DEFAULT_REGISTRY, IdProviderRegistry, random_guid
from .parameters import DEFAULT_ID_PROVIDER_KEY, GenerationContext, GenerationParameters

UNKNOWN_FUTURE_VALUE = "unknownFutureValue"
"""Sentinel enum member never chosen as an example."""

# Numbers are drawn from [0, NUMERIC_SCOPE)
NUMERIC_SCOPE = 10

_INTEGER_RANGES = {
    PrimitiveKind.BYTE: (0, 255),
    PrimitiveKind.SBYTE: (-128, 127),
    PrimitiveKind.INT16: (-(2 ** 15), 2 ** 15 - 1),
    PrimitiveKind.INT32: (-(2 ** 31), 2 ** 31 - 1),
    PrimitiveKind.INT64: (-(2 ** 63), 2 ** 63 - 1),
}

_ISO_DURATION = re.compile(
    r"^(?P<sign>-)?P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?(?:(?P<minutes>\d+(?:\.\d+)?)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)
_CLOCK_DURATION = re.compile(
    r"^(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{1,2})"
    r"(?::(?P<seconds>\d{1,2}(?:\.\d+)?))?$"
)


def is_id_property(name: str) -> bool:
    """Identifier-like names: exactly `id`, or ending in `Id`."""
    return name == "id" or name.endswith("Id")


def parse_duration(literal: str) -> timedelta:
    """Parse an ISO 8601 duration (`PT1H30M`) or a clock span (`1.02:30:00`).

    Raises:
        ValueError: If the literal matches neither form
    """
    text = literal.strip()
    match = _ISO_DURATION.match(text) or _CLOCK_DURATION.match(text)
    if match is None or text in ("P", "PT", "-P"):
        raise ValueError(f"Invalid duration '{literal}'")
    parts = {k: float(v) for k, v in match.groupdict().items() if v and k != "sign"}
    span = timedelta(
        days=parts.get("days", 0),
        hours=parts.get("hours", 0),
        minutes=parts.get("minutes", 0),
        seconds=parts.get("seconds", 0),
    )
    return -span if match.group("sign") else span


def parse_datetime(literal: str) -> datetime:
    """Parse an ISO 8601 timestamp; a trailing `Z` and naive values mean UTC."""
    text = literal.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_boolean(literal: str) -> bool:
    lowered = literal.strip().lower()
    if lowered not in ("true", "false"):
        raise ValueError(f"Invalid boolean '{literal}'")
    return lowered == "true"


class ValueSynthesizer:
    """Produces example values for structural properties.

    All randomness and counters come from the GenerationContext passed to
    each call, so one synthesizer can serve several bodies of one run.
    """

    def __init__(self, parameters: GenerationParameters, registry: IdProviderRegistry = DEFAULT_REGISTRY):
        self.parameters = parameters
        self.registry = registry
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        # Heuristic per primitive kind
        self._heuristics: Dict[PrimitiveKind, Callable[[StructuralProperty, GenerationContext], Any]] = {
            PrimitiveKind.BOOLEAN: lambda p, c: c.next_toggle(p.name),
            PrimitiveKind.BYTE: self._small_integer,
            PrimitiveKind.SBYTE: self._small_integer,
            PrimitiveKind.INT16: self._small_integer,
            PrimitiveKind.INT32: self._small_integer,
            PrimitiveKind.INT64: self._small_integer,
            PrimitiveKind.SINGLE: self._small_float,
            PrimitiveKind.DOUBLE: self._small_float,
            PrimitiveKind.DECIMAL: lambda p, c: Decimal(str(self._small_float(p, c))),
            PrimitiveKind.DATE: lambda p, c: c.now().date(),
            PrimitiveKind.DATE_TIME_OFFSET: lambda p, c: c.now(),
            PrimitiveKind.TIME_OF_DAY: lambda p, c: c.now().time().replace(microsecond=0),
            PrimitiveKind.DURATION: lambda p, c: timedelta(hours=round(c.random.random() * NUMERIC_SCOPE, 2)),
            PrimitiveKind.GUID: lambda p, c: random_guid(c),
            PrimitiveKind.STRING: self._string,
        }

        # Literal parsers per primitive kind
        self._parsers: Dict[PrimitiveKind, Callable[[str], Any]] = {
            PrimitiveKind.BOOLEAN: parse_boolean,
            PrimitiveKind.SINGLE: float,
            PrimitiveKind.DOUBLE: float,
            PrimitiveKind.DECIMAL: Decimal,
            PrimitiveKind.DATE: lambda s: date.fromisoformat(s.strip()[:10]),
            PrimitiveKind.DATE_TIME_OFFSET: parse_datetime,
            PrimitiveKind.TIME_OF_DAY: lambda s: time.fromisoformat(s.strip()),
            PrimitiveKind.DURATION: parse_duration,
            PrimitiveKind.GUID: lambda s: str(uuid.UUID(s.strip())),
            PrimitiveKind.STRING: lambda s: s,
        }
        for kind in _INTEGER_RANGES:
            self._parsers[kind] = self._integer_parser(kind)

    # === PUBLIC API ===

    def value_for(self, host_type: StructuredType, prop: StructuralProperty, context: GenerationContext) -> Any:
        """Produce the example value of one property.

        Args:
            host_type: Concrete type of the node being written (drives ID shape)
            prop: Scalar, enum, or collection-of-scalar property
            context: The run's mutable state

        Returns:
            A scalar, an enum member name, or a list of either

        Raises:
            ValueConversionError: If a supplied literal does not parse
            UnsupportedTypeError: If the primitive kind has no heuristic
        """
        supplied = self._supplied_value(prop)
        if supplied is not None:
            return supplied

        definition = prop.type.definition
        if isinstance(definition, EnumType):
            if not prop.type.is_collection:
                return self.enum_value(definition, context)
            first = self.enum_value(definition, context)
            return [first, self.enum_value(definition, context, avoid=first)]

        if not isinstance(definition, PrimitiveKind):
            raise UnsupportedTypeError(prop.type.display_name)

        if prop.type.is_collection:
            first = self.scalar_value(host_type, prop, context)
            return [first, self.second_element(first, host_type, prop, context)]
        return self.scalar_value(host_type, prop, context)

    def scalar_value(self, host_type: StructuredType, prop: StructuralProperty, context: GenerationContext) -> Any:
        """Heuristic value for a primitive property (element type for collections)."""
        kind = prop.type.definition
        assert isinstance(kind, PrimitiveKind)
        if kind is PrimitiveKind.STRING and is_id_property(prop.name):
            return self.id_value(host_type, prop, context)
        heuristic = self._heuristics.get(kind)
        if heuristic is None:
            raise UnsupportedTypeError(kind.short_name)
        return heuristic(prop, context)

    def second_element(
        self, first: Any, host_type: StructuredType, prop: StructuralProperty, context: GenerationContext
    ) -> Any:
        """Second element of a primitive collection, never equal to the first."""
        # Clock-based kinds would repeat the first element, so step back instead
        if isinstance(first, (date, datetime)):
            return first - timedelta(days=1)
        if isinstance(first, time):
            return first.replace(hour=(first.hour + 23) % 24)

        second = self.scalar_value(host_type, prop, context)
        if second != first or isinstance(first, (bool, str)):
            return second
        if isinstance(first, timedelta):
            return first + timedelta(hours=1)
        if isinstance(first, Decimal):
            return (first + 1) % NUMERIC_SCOPE
        if isinstance(first, float):
            return round((first + 1) % NUMERIC_SCOPE, 2)
        return (first + 1) % NUMERIC_SCOPE

    def enum_value(self, enum_type: EnumType, context: GenerationContext, avoid: Optional[str] = None) -> str:
        """Pick a member name uniformly, skipping the sentinel and, if possible, `avoid`."""
        useful = [m.name for m in enum_type.members if m.name.lower() != UNKNOWN_FUTURE_VALUE.lower()]
        if not useful:
            useful = [m.name for m in enum_type.members]
        if not useful:
            raise ModelIntegrityError(f"Enum type '{enum_type.full_name}' has no members.")
        if avoid is not None:
            remaining = [name for name in useful if name.lower() != avoid.lower()]
            if remaining:
                useful = remaining
        return useful[context.next_random(len(useful))]

    def id_value(self, host_type: StructuredType, prop: StructuralProperty, context: GenerationContext) -> str:
        """Mint an ID for the next slot of the monotonic sequence and record it."""
        slot = context.next_monotonic()
        choices = self.parameters.chosen_id_providers
        provider_name = choices.get(prop.name) or choices.get(DEFAULT_ID_PROVIDER_KEY)
        provider = self.registry.find(provider_name) or self.registry.default()
        value = provider.mint(host_type, context)
        context.id_values[slot] = value
        self.logger.debug(f"Minted {provider.name} id for {host_type.name}.{prop.name}")
        return value

    # === SUPPLIED VALUES ===

    def _supplied_value(self, prop: StructuralProperty) -> Any:
        definition = prop.type.definition
        if isinstance(definition, EnumType):
            member = self.parameters.chosen_enums.get(prop.name)
            if member is not None:
                if definition.find_member(member.name) is None:
                    raise ValueConversionError(prop.name, member.name, prop.type.display_name)
                return [member.name] if prop.type.is_collection else member.name

        literal = self.parameters.chosen_primitives.get(prop.name)
        if literal is None:
            return None

        if prop.type.is_collection:
            return [self.parse_literal(prop, item.strip()) for item in literal.split(",")]
        return self.parse_literal(prop, literal)

    def parse_literal(self, prop: StructuralProperty, literal: str) -> Any:
        """Parse a supplied literal according to the property's element type.

        Raises:
            ValueConversionError: If the literal does not parse
            UnsupportedTypeError: If the primitive kind cannot be parsed
        """
        definition = prop.type.definition
        if isinstance(definition, EnumType):
            member = definition.find_member(literal)
            if member is None:
                raise ValueConversionError(prop.name, literal, prop.type.display_name)
            return member.name

        if not isinstance(definition, PrimitiveKind):
            raise UnsupportedTypeError(prop.type.display_name)
        parser = self._parsers.get(definition)
        if parser is None:
            raise UnsupportedTypeError(definition.short_name)
        try:
            return parser(literal)
        except (ValueError, ArithmeticError) as e:
            raise ValueConversionError(prop.name, literal, prop.type.display_name) from e

    # === HEURISTICS ===

    @staticmethod
    def _small_integer(prop: StructuralProperty, context: GenerationContext) -> int:
        return context.next_random(NUMERIC_SCOPE)

    @staticmethod
    def _small_float(prop: StructuralProperty, context: GenerationContext) -> float:
        return round(context.random.random() * NUMERIC_SCOPE, 2)

    @staticmethod
    def _string(prop: StructuralProperty, context: GenerationContext) -> str:
        return f"{prop.name}-{context.next_tag(prop.name)}"

    @staticmethod
    def _integer_parser(kind: PrimitiveKind) -> Callable[[str], int]:
        low, high = _INTEGER_RANGES[kind]

        def parse(literal: str) -> int:
            value = int(literal.strip())
            if not low <= value <= high:
                raise ValueError(f"{value} out of range for {kind.value}")
            return value

        return parse
