"""
Main entry point for odata-example-gen.
Usage: python -m odata_example_gen -c metadata.xml -m GET -u /users
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .edm import MetadataService
from .errors import ExampleGenerationError
from .generation import ExampleGenerator, GenerationParameters, HttpMethod, apply_options
from .settings import AppSettings, ConfigError
from .utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="odata-example-gen",
        description="Generate example OData request and response payloads from CSDL metadata.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument("-c", "--csdl", help="CSDL metadata document (defaults to the saved one)")
    parser.add_argument(
        "-m", "--method", type=HttpMethod.parse, default=HttpMethod.GET,
        help="HTTP method: GET, POST, PUT, PATCH or DELETE (default: GET)",
    )
    parser.add_argument("-u", "--uri", required=True, help="Relative URI, e.g. /users/{id}?$expand=manager")
    parser.add_argument("-b", "--baseUri", dest="base_uri", help="Service root for links and context URLs")

    list_options = {
        "propertyTypes": ("property_types", "p", "name:TypeName or name:@skip"),
        "enumValues": ("enum_values", "e", "name:EnumMember"),
        "primitiveValues": ("primitive_values", "r", "name:literal (comma separated for collections)"),
        "idProviders": ("id_providers", "i", "name:Provider, or @default:Provider"),
    }
    for option, (dest, short, help_text) in list_options.items():
        parser.add_argument(
            f"-{short}", f"--{option}", dest=dest, nargs="+", action="extend", default=[],
            metavar="PAIR", help=help_text,
        )

    parser.add_argument("--seed", type=int, help="Seed for reproducible output")
    parser.add_argument(
        "--skip-broken-bindings", action="store_true",
        help="Skip reference links whose binding target cannot be resolved",
    )
    parser.add_argument("--profile", default="default", help="Settings profile (default: default)")
    parser.add_argument("--settings-file", help="INI file to store settings in instead of native storage")
    parser.add_argument(
        "--save-defaults", action="store_true",
        help="Persist the supplied CSDL, base URI and @default ID provider as defaults",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    return parser


def save_defaults(settings: AppSettings, args: argparse.Namespace) -> None:
    """Persist the options that have a settings counterpart."""
    logger = logging.getLogger(f"{__name__}.save_defaults")
    if args.csdl:
        settings.generation.csdl_path = Path(args.csdl)
    if args.base_uri:
        settings.generation.base_uri = args.base_uri
    for pair in args.id_providers:
        name, _, provider = pair.partition(":")
        if name == "@default" and provider:
            settings.generation.default_id_provider = provider
    settings.sync()
    logger.info(f"Defaults saved to {settings.get_settings_file_path()}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    logger = logging.getLogger(f"{__name__}.main")
    args = build_parser().parse_args(argv)

    try:
        # Load configuration first
        settings = AppSettings(profile=args.profile, storage_path=args.settings_file)
        setup_logging(settings, verbose=args.verbose)
        logger.info(f"Configuration loaded from {settings.get_settings_file_path()}")

        if args.save_defaults:
            save_defaults(settings, args)

        # Validate settings on startup
        validation = settings.validate()
        if validation.warnings:
            logger.warning("Configuration warnings detected:")
            for warning in validation.warnings:
                logger.warning(f"  {warning}")

        if not validation.is_valid:
            logger.error("Configuration validation failed:")
            for error in validation.errors:
                logger.error(f"  {error}")
            print("Configuration validation failed:\n" + "\n".join(validation.errors), file=sys.stderr)
            return 1

        csdl_path = args.csdl or settings.generation.csdl_path
        if not csdl_path:
            print("No CSDL document given (use -c/--csdl or --save-defaults).", file=sys.stderr)
            return 1

        service = MetadataService(csdl_path)
        parameters = GenerationParameters(
            model=service.model,
            http_method=args.method,
            service_root=args.base_uri or settings.generation.base_uri,
            seed=args.seed,
            skip_broken_bindings=args.skip_broken_bindings,
        )
        parameters = apply_options(
            parameters,
            property_types=args.property_types,
            enum_values=args.enum_values,
            primitive_values=args.primitive_values,
            id_providers=args.id_providers,
            default_id_provider=settings.generation.default_id_provider or None,
        )

        result = ExampleGenerator(parameters).create_example(args.uri)
        print(result.render())
        return 0

    except (ExampleGenerationError, ConfigError) as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
