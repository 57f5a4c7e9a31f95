"""
Example generation service.

ExampleGenerator turns a relative URI and an HTTP method into an example
exchange: an optional request body, a status line and an optional response
body, following the shaping rules of each method.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..edm.models import StructuredType
from ..errors import ValidationError
from ..output.printer import pretty_print
from ..output.sink import JsonTreeSink
from ..uri.parser import UriParser
from ..uri.segments import ResourcePath
from .builder import PayloadTreeBuilder, terminal_segment
from .id_providers import DEFAULT_REGISTRY, IdProviderRegistry
from .parameters import (
    Direction,
    GenerationContext,
    GenerationParameters,
    HttpMethod,
    utc_now,
)


class UrlMode(Enum):
    """Cardinality a method requires of the request path."""
    NEUTRAL = "neutral"
    SINGLE = "single"
    COLLECTION = "collection"


@dataclass(frozen=True)
class MethodRule:
    """How an HTTP method shapes the example."""
    url_mode: UrlMode
    status: str
    requires_request: bool
    requires_response: bool
    force_response_single: bool = False


METHOD_RULES: Dict[HttpMethod, MethodRule] = {
    HttpMethod.GET: MethodRule(UrlMode.NEUTRAL, "200 OK", requires_request=False, requires_response=True),
    HttpMethod.POST: MethodRule(
        UrlMode.COLLECTION, "201 CREATED", requires_request=True, requires_response=True,
        force_response_single=True,
    ),
    HttpMethod.PUT: MethodRule(UrlMode.SINGLE, "204 NO CONTENT", requires_request=True, requires_response=False),
    HttpMethod.PATCH: MethodRule(UrlMode.SINGLE, "204 NO CONTENT", requires_request=True, requires_response=False),
    HttpMethod.DELETE: MethodRule(UrlMode.SINGLE, "204 NO CONTENT", requires_request=False, requires_response=False),
}


@dataclass
class ExampleResult:
    """One generated example exchange."""
    method: HttpMethod
    uri: str
    status: str
    request: Optional[Dict[str, Any]] = None
    response: Optional[Dict[str, Any]] = None
    request_json: Optional[str] = None
    response_json: Optional[str] = None

    def render(self) -> str:
        """Text form: method and URI, request body, status, response body."""
        lines: List[str] = [f"{self.method.value} {self.uri}"]
        if self.request_json is not None:
            lines.append(self.request_json)
        lines.append(self.status)
        if self.response_json is not None:
            lines.append(self.response_json)
        return "\n".join(lines)


class ExampleGenerator:
    """Generates example payloads for one model and set of parameters.

    Every `create_example` call owns a fresh GenerationContext shared by the
    request and response bodies it writes, so calls never influence each
    other.
    """

    def __init__(
        self,
        parameters: GenerationParameters,
        registry: IdProviderRegistry = DEFAULT_REGISTRY,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        service_root = parameters.service_root
        if not service_root.endswith("/"):
            service_root += "/"
        self.parameters = replace(parameters, service_root=service_root)
        self.registry = registry
        self.clock = clock
        self.parser = UriParser(parameters.model)

    def create_example(self, relative_uri: str) -> ExampleResult:
        """Generate the example exchange for a relative URI.

        Args:
            relative_uri: Service-relative URI, optionally with `$expand`

        Returns:
            ExampleResult with the trees and their printed JSON

        Raises:
            ValidationError: If the path or the method/cardinality combination
                cannot produce an example
            ModelIntegrityError: If a reference binding is broken (unless
                broken bindings are skipped)
            ValueConversionError: If a supplied literal does not parse
            UnsupportedTypeError: If a property has an unsupported primitive kind
        """
        method = self.parameters.http_method
        rule = METHOD_RULES.get(method)
        if rule is None:
            raise ValidationError(f"Unsupported HTTP method {method}.")

        parsed = self.parser.parse(relative_uri)
        path = parsed.path
        self._validate(path, method, rule)

        parameters = replace(self.parameters, expand=self.parameters.expand | parsed.expand)
        context = GenerationContext(seed=parameters.seed, clock=self.clock)
        result = ExampleResult(method=method, uri=relative_uri, status=rule.status)

        # The response of a POST describes the resource the request created
        root_type: Optional[StructuredType] = None
        if rule.requires_request:
            request_parameters = replace(parameters, direction=Direction.REQUEST)
            result.request, root_type = self._write_body(request_parameters, context, path, force_single=True)
            result.request_json = pretty_print(result.request, strip_bookkeeping=True)

        if rule.requires_response:
            response_parameters = replace(parameters, direction=Direction.RESPONSE)
            result.response, _ = self._write_body(
                response_parameters, context, path, force_single=rule.force_response_single, root_type=root_type
            )
            result.response_json = pretty_print(result.response)

        self.logger.info(f"Generated {method.value} example for {relative_uri} ({rule.status})")
        return result

    def _validate(self, path: ResourcePath, method: HttpMethod, rule: MethodRule) -> None:
        if not path.target_type_ref.is_structured:
            raise ValidationError(
                "Path must end in an entity set, a singleton, a navigation property, "
                "a complex property or a key into a navigation property."
            )
        if rule.url_mode is UrlMode.COLLECTION and not path.is_collection:
            raise ValidationError(f"HTTP method {method.value} requires a collection-valued URL.")
        if rule.url_mode is UrlMode.SINGLE and path.is_collection:
            raise ValidationError(f"HTTP method {method.value} requires a single-valued URL.")

    def _write_body(
        self,
        parameters: GenerationParameters,
        context: GenerationContext,
        path: ResourcePath,
        force_single: bool,
        root_type: Optional[StructuredType] = None,
    ) -> Tuple[Dict[str, Any], Optional[StructuredType]]:
        context_url = None
        if parameters.is_response:
            context_url = self.context_url(path, single=force_single or not path.is_collection)
        sink = JsonTreeSink(context_url=context_url)
        builder = PayloadTreeBuilder(parameters, context, sink, path, self.registry)
        written_type = builder.write(force_single, root_type=root_type)
        return sink.result, written_type

    def context_url(self, path: ResourcePath, single: bool) -> str:
        """Context URL of a response body, e.g. `<root>$metadata#employees/$entity`."""
        url = f"{self.parameters.service_root}$metadata#{'/'.join(path.context_names())}"
        if single and terminal_segment(path).is_collection:
            url += "/$entity"
        return url
