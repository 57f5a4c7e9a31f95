"""
Extraction of `name:value` options into GenerationParameters.

Each option list comes from the command line (or a caller) as strings of the
form `propertyName:value`. Pairs are split on the first colon so values may
themselves contain colons (timestamps, URLs).
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, Optional, Set, Tuple

from ..edm.managers import EdmModel
from ..edm.models import EnumMember, StructuredType
from ..errors import ConfigurationError
from .id_providers import DEFAULT_REGISTRY, IdProviderRegistry
from .parameters import DEFAULT_ID_PROVIDER_KEY, GenerationParameters

logger = logging.getLogger(__name__)

SKIP_MARKER = "@skip"
"""Type name that removes a property instead of choosing its type."""


def split_pair(option: str, expected: str) -> Tuple[str, str]:
    """Split a `name:value` pair.

    Args:
        option: Raw option text
        expected: Shape shown in the error message, e.g. `propertyName:typeName`

    Returns:
        Tuple of (name, value), both stripped

    Raises:
        ConfigurationError: If either side is missing
    """
    name, separator, value = option.partition(":")
    name, value = name.strip(), value.strip()
    if not separator or not name or not value:
        raise ConfigurationError(f"Option '{option}' is malformed, must be '{expected}'.")
    return name, value


def extract_chosen_types(
    model: EdmModel, pairs: Iterable[str]
) -> Tuple[Dict[str, StructuredType], Set[str]]:
    """Resolve `propertyName:TypeName` pairs.

    Type names are looked up qualified or by short name across every declared
    namespace. `propertyName:@skip` adds the property to the skip list.

    Returns:
        Tuple of (chosen types, skipped property names)
    """
    chosen: Dict[str, StructuredType] = {}
    skipped: Set[str] = set()
    for option in pairs:
        name, type_name = split_pair(option, "propertyName:typeName")
        if type_name.lower() == SKIP_MARKER:
            skipped.add(name)
            continue
        declared = model.find_type_by_short_name(type_name)
        if not isinstance(declared, StructuredType):
            raise ConfigurationError(
                f"Option '{option}' is malformed, typename '{type_name}' not found in model."
            )
        chosen[name] = declared
    return chosen, skipped


def extract_chosen_enums(model: EdmModel, pairs: Iterable[str]) -> Dict[str, EnumMember]:
    """Resolve `propertyName:EnumMember` pairs against enum-typed properties of that name."""
    chosen: Dict[str, EnumMember] = {}
    for option in pairs:
        name, literal = split_pair(option, "propertyName:enumValue")
        member = model.find_enum_member(name, literal)
        if member is None:
            raise ConfigurationError(
                f"Option '{option}' is malformed, enum value '{literal}' not found in model "
                f"for a property '{name}'."
            )
        chosen[name] = member
    return chosen


def extract_chosen_primitives(pairs: Iterable[str]) -> Dict[str, str]:
    """Collect `propertyName:literal` pairs; literals are parsed later against the property type."""
    return dict(split_pair(option, "propertyName:primitiveValue") for option in pairs)


def extract_chosen_id_providers(
    pairs: Iterable[str], registry: IdProviderRegistry = DEFAULT_REGISTRY
) -> Dict[str, str]:
    """Collect `propertyName:ProviderName` pairs (`@default` as the name sets the fallback)."""
    chosen: Dict[str, str] = {}
    for option in pairs:
        name, provider_name = split_pair(option, "propertyName:idProvider")
        provider = registry.find(provider_name)
        if provider is None:
            raise ConfigurationError(
                f"Option '{option}' is malformed, id provider '{provider_name}' is unknown. "
                f"Known providers: {', '.join(registry.names)}."
            )
        chosen[name] = provider.name
    return chosen


def apply_options(
    parameters: GenerationParameters,
    property_types: Iterable[str] = (),
    enum_values: Iterable[str] = (),
    primitive_values: Iterable[str] = (),
    id_providers: Iterable[str] = (),
    default_id_provider: Optional[str] = None,
    registry: IdProviderRegistry = DEFAULT_REGISTRY,
) -> GenerationParameters:
    """Return a copy of `parameters` with every option list applied.

    Args:
        parameters: Base parameters (model, method, service root)
        property_types: `propertyName:TypeName` or `propertyName:@skip`
        enum_values: `propertyName:EnumMember`
        primitive_values: `propertyName:literal`
        id_providers: `propertyName:ProviderName`
        default_id_provider: Provider used for `@default` when the options
            do not name one (typically from persisted settings)
        registry: Known ID providers

    Raises:
        ConfigurationError: For any malformed pair or unknown target
    """
    chosen_types, skipped = extract_chosen_types(parameters.model, property_types)
    chosen_ids = extract_chosen_id_providers(id_providers, registry)
    if default_id_provider and DEFAULT_ID_PROVIDER_KEY not in chosen_ids:
        chosen_ids.update(
            extract_chosen_id_providers([f"{DEFAULT_ID_PROVIDER_KEY}:{default_id_provider}"], registry)
        )

    updated = replace(
        parameters,
        chosen_types={**parameters.chosen_types, **chosen_types},
        chosen_enums={**parameters.chosen_enums, **extract_chosen_enums(parameters.model, enum_values)},
        chosen_primitives={**parameters.chosen_primitives, **extract_chosen_primitives(primitive_values)},
        chosen_id_providers={**parameters.chosen_id_providers, **chosen_ids},
        skipped_properties=parameters.skipped_properties | frozenset(skipped),
    )
    logger.debug(
        f"Options applied: {len(updated.chosen_types)} type choices, "
        f"{len(updated.chosen_enums)} enum choices, {len(updated.chosen_primitives)} primitive "
        f"choices, {len(updated.chosen_id_providers)} id provider choices, "
        f"{len(updated.skipped_properties)} skipped"
    )
    return updated
