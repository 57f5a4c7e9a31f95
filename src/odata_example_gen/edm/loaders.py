"""
CSDL loader for OData metadata documents.

Reads an XML CSDL document (`edmx:Edmx`) and builds an EdmModel: schemas,
structured and enum types, the entity container, and the annotations the
generator recognises. Parsing happens in two passes so that types can refer
to each other regardless of declaration order.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import ModelIntegrityError, ModelLoadError
from .managers import EdmModel
from .models import (
    AnnotationMap,
    EnumMember,
    EnumType,
    NavigationBinding,
    NavigationProperty,
    NavigationSource,
    PrimitiveKind,
    SourceKind,
    StructuralProperty,
    StructuredKind,
    StructuredType,
    Term,
    TypeRef,
)

# Attribute names that carry a constant or path expression inline
_INLINE_EXPRESSIONS = (
    "Bool",
    "Int",
    "String",
    "Decimal",
    "Float",
    "Path",
    "NavigationPropertyPath",
    "PropertyPath",
    "AnnotationPath",
    "EnumMember",
)


def _local(tag: str) -> str:
    """Strip the XML namespace from a tag name."""
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    """Direct children with the given local name, in document order."""
    return [child for child in element if _local(child.tag) == name]


def _is_true(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


class CsdlLoader:
    """Loads CSDL XML documents into an EdmModel."""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        # Aliases declared by edmx:Include (vocabulary namespaces)
        self._reference_aliases: Dict[str, str] = {}
        # Edm TypeDefinitions, resolved to their underlying primitive kind
        self._type_definitions: Dict[str, PrimitiveKind] = {}
        self.logger.debug("CsdlLoader initialized")

    def load(self, csdl_path: Union[str, Path]) -> EdmModel:
        """Load a model from a CSDL file.

        Args:
            csdl_path: Path to the CSDL XML document

        Returns:
            Finalized EdmModel

        Raises:
            ModelLoadError: If the file is missing or is not well-formed XML
            ModelIntegrityError: If the document references unknown types
        """
        path = Path(csdl_path)
        if not path.is_file():
            raise ModelLoadError(f"Unable to locate csdl file: {path}")

        self.logger.info(f"Loading CSDL from {path}")
        with path.open("rb") as f:
            return self.parse(f.read(), source=str(path))

    def parse(self, document: Union[str, bytes], source: str = "<string>") -> EdmModel:
        """Parse a CSDL document held in memory.

        Args:
            document: CSDL XML text or bytes
            source: Name used in error messages

        Returns:
            Finalized EdmModel
        """
        try:
            root = ET.fromstring(document)
        except ET.ParseError as e:
            raise ModelLoadError(f"Failed to read model {source}. Errors: {e}") from e

        if _local(root.tag) != "Edmx":
            raise ModelLoadError(f"Failed to read model {source}. Root element must be edmx:Edmx.")

        self._reference_aliases = {}
        self._type_definitions = {}
        model = EdmModel()

        for reference in _children(root, "Reference"):
            for include in _children(reference, "Include"):
                alias = include.get("Alias")
                namespace = include.get("Namespace")
                if alias and namespace:
                    self._reference_aliases[alias] = namespace

        schemas = [
            schema
            for data_services in _children(root, "DataServices")
            for schema in _children(data_services, "Schema")
        ]
        if not schemas:
            raise ModelLoadError(f"Failed to read model {source}. No Schema elements found.")

        # First pass: declare every type so references resolve in any order
        for schema in schemas:
            self._declare_schema_types(model, schema)

        # Second pass: members, containers and out-of-line annotations
        for schema in schemas:
            namespace = schema.get("Namespace", "")
            for element in schema:
                kind = _local(element.tag)
                if kind in ("EntityType", "ComplexType"):
                    structured = model.find_structured_type(f"{namespace}.{element.get('Name')}")
                    assert structured is not None
                    self._populate_structured_type(model, structured, element)
                elif kind == "EntityContainer":
                    self._load_container(model, element)

        for schema in schemas:
            for annotations in _children(schema, "Annotations"):
                self._apply_annotations(model, annotations)

        model.finalize()
        self.logger.info(
            f"Loaded model {source}: {len(model.structured_types())} structured types, "
            f"{len(model.enum_types())} enum types, {len(model.sources)} navigation sources"
        )
        return model

    # === TYPES ===

    def _declare_schema_types(self, model: EdmModel, schema: ET.Element) -> None:
        namespace = schema.get("Namespace")
        if not namespace:
            raise ModelLoadError("Schema element without a Namespace attribute.")
        model.add_namespace(namespace, schema.get("Alias"))

        for element in schema:
            kind = _local(element.tag)
            name = element.get("Name", "")
            if kind in ("EntityType", "ComplexType"):
                base_type = element.get("BaseType")
                model.add_type(
                    StructuredType(
                        namespace=namespace,
                        name=name,
                        kind=StructuredKind(kind),
                        is_abstract=_is_true(element.get("Abstract")),
                        base_type_name=model.qualify(base_type) if base_type else None,
                        annotations=self._inline_annotations(model, element),
                    )
                )
            elif kind == "EnumType":
                members = [
                    EnumMember(
                        name=member.get("Name", ""),
                        value=int(member.get("Value")) if member.get("Value") else None,  # type: ignore[arg-type]
                    )
                    for member in _children(element, "Member")
                ]
                model.add_type(
                    EnumType(
                        namespace=namespace,
                        name=name,
                        members=members,
                        is_flags=_is_true(element.get("IsFlags")),
                    )
                )
            elif kind == "TypeDefinition":
                underlying = PrimitiveKind.from_name(element.get("UnderlyingType", ""))
                if underlying is None:
                    raise ModelIntegrityError(
                        f"TypeDefinition '{namespace}.{name}' has an unknown underlying type."
                    )
                self._type_definitions[f"{namespace}.{name}"] = underlying

    def _populate_structured_type(
        self, model: EdmModel, structured: StructuredType, element: ET.Element
    ) -> None:
        for key in _children(element, "Key"):
            structured.key_names.extend(
                ref.get("Name", "") for ref in _children(key, "PropertyRef")
            )

        for prop in _children(element, "Property"):
            structured.declared_properties.append(
                StructuralProperty(
                    name=prop.get("Name", ""),
                    type=self._resolve_type_ref(model, prop, structured.full_name),
                    declaring_type=structured,
                    annotations=self._inline_annotations(model, prop),
                )
            )

        for nav in _children(element, "NavigationProperty"):
            type_ref = self._resolve_type_ref(model, nav, structured.full_name)
            if not type_ref.is_structured:
                raise ModelIntegrityError(
                    f"Navigation property '{structured.full_name}/{nav.get('Name')}' "
                    f"must target an entity type."
                )
            structured.declared_navigation_properties.append(
                NavigationProperty(
                    name=nav.get("Name", ""),
                    type=type_ref,
                    declaring_type=structured,
                    contains_target=_is_true(nav.get("ContainsTarget")),
                    partner=nav.get("Partner"),
                    annotations=self._inline_annotations(model, nav),
                )
            )

    def _resolve_type_ref(self, model: EdmModel, element: ET.Element, owner: str) -> TypeRef:
        """Resolve the `Type` attribute of a property-like element."""
        raw = element.get("Type", "")
        is_collection = raw.startswith("Collection(") and raw.endswith(")")
        type_name = raw[len("Collection("):-1] if is_collection else raw
        nullable = element.get("Nullable", "true").lower() != "false"

        primitive = PrimitiveKind.from_name(type_name)
        if primitive is not None:
            return TypeRef(primitive, is_collection, nullable)

        qualified = model.qualify(type_name)
        if qualified in self._type_definitions:
            return TypeRef(self._type_definitions[qualified], is_collection, nullable)

        definition = model.find_type(qualified)
        if definition is None:
            raise ModelIntegrityError(
                f"Type '{type_name}' used by '{owner}/{element.get('Name')}' not found in model."
            )
        return TypeRef(definition, is_collection, nullable)

    # === CONTAINER ===

    def _load_container(self, model: EdmModel, container: ET.Element) -> None:
        model.container_name = container.get("Name")
        for element in container:
            kind = _local(element.tag)
            if kind not in ("EntitySet", "Singleton"):
                continue
            type_name = element.get("EntityType") if kind == "EntitySet" else element.get("Type")
            entity_type = model.find_structured_type(type_name or "")
            if entity_type is None:
                raise ModelIntegrityError(
                    f"{kind} '{element.get('Name')}' refers to unknown type '{type_name}'."
                )
            bindings = [
                NavigationBinding(path=binding.get("Path", ""), target=self._strip_container(binding.get("Target", "")))
                for binding in _children(element, "NavigationPropertyBinding")
            ]
            model.add_source(
                NavigationSource(
                    name=element.get("Name", ""),
                    kind=SourceKind(kind),
                    entity_type=entity_type,
                    bindings=bindings,
                    annotations=self._inline_annotations(model, element),
                )
            )

    @staticmethod
    def _strip_container(target: str) -> str:
        """Binding targets may be qualified with a container name (`ns.Container/users`)."""
        segments = target.split("/")
        if len(segments) > 1 and "." in segments[0]:
            return "/".join(segments[1:])
        return target

    # === ANNOTATIONS ===

    def _inline_annotations(self, model: EdmModel, element: ET.Element) -> AnnotationMap:
        annotations: AnnotationMap = {}
        for annotation in _children(element, "Annotation"):
            parsed = self._parse_annotation(model, annotation)
            if parsed is not None:
                annotations[parsed[0]] = parsed[1]
        return annotations

    def _parse_annotation(
        self, model: EdmModel, annotation: ET.Element
    ) -> Optional[Tuple[Term, Any]]:
        """Parse one Annotation element into a recognised term and its value."""
        if annotation.get("Qualifier"):
            return None
        term_name = annotation.get("Term", "")
        if "." in term_name:
            prefix, local = term_name.rsplit(".", 1)
            namespace = self._reference_aliases.get(prefix) or model.aliases.get(prefix) or prefix
            term_name = f"{namespace}.{local}"
        term = Term.from_name(term_name)
        if term is None:
            return None

        value = self._inline_value(annotation)
        if value is _MISSING:
            # Tag terms default to true when no value is given
            value = True
        return term, value

    def _inline_value(self, element: ET.Element) -> Any:
        """Value given by an inline attribute or the first child expression."""
        for attribute in _INLINE_EXPRESSIONS:
            raw = element.get(attribute)
            if raw is not None:
                return self._convert_constant(attribute, raw)
        for child in element:
            if _local(child.tag) != "Annotation":
                return self._parse_expression(child)
        return _MISSING

    def _parse_expression(self, element: ET.Element) -> Any:
        kind = _local(element.tag)
        if kind == "Record":
            record: Dict[str, Any] = {}
            for property_value in _children(element, "PropertyValue"):
                value = self._inline_value(property_value)
                record[property_value.get("Property", "")] = None if value is _MISSING else value
            return record
        if kind == "Collection":
            return [self._parse_expression(child) for child in element]
        if kind == "Null":
            return None
        if kind in _INLINE_EXPRESSIONS:
            return self._convert_constant(kind, element.text or "")
        self.logger.debug(f"Ignoring unsupported annotation expression <{kind}>")
        return None

    @staticmethod
    def _convert_constant(kind: str, raw: str) -> Any:
        raw = raw.strip()
        if kind == "Bool":
            return raw.lower() == "true"
        if kind == "Int":
            return int(raw)
        if kind in ("Decimal", "Float"):
            return float(raw)
        return raw

    def _apply_annotations(self, model: EdmModel, annotations: ET.Element) -> None:
        """Apply an out-of-line `Annotations` block to its target element."""
        target_name = annotations.get("Target", "")
        target = self._resolve_annotation_target(model, target_name)
        if target is None:
            self.logger.warning(f"Annotations target '{target_name}' not found in model, skipping")
            return
        target.annotations.update(self._inline_annotations(model, annotations))

    @staticmethod
    def _resolve_annotation_target(model: EdmModel, target_name: str) -> Any:
        head, _, member = target_name.partition("/")
        if member and "/" not in member:
            # Container member: ns.Container/users
            if model.container_name and model.qualify(head).endswith(f".{model.container_name}"):
                return model.sources.get(member)
            structured = model.find_structured_type(head)
            if structured is None:
                return None
            for prop in structured.declared_properties:
                if prop.name == member:
                    return prop
            for nav in structured.declared_navigation_properties:
                if nav.name == member:
                    return nav
            return None
        if not member:
            return model.find_structured_type(head)
        return None


class _Missing:
    """Marker for an annotation without a value."""

    def __repr__(self) -> str:
        return "<missing>"


_MISSING = _Missing()
