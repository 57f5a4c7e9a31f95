"""Shared fixtures for odata-example-gen tests."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from odata_example_gen.edm import EdmModel, MetadataService
from odata_example_gen.generation.parameters import GenerationContext, GenerationParameters

DATA_DIR = Path(__file__).parent / "data"

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 15, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def csdl_path() -> Path:
    """Path to the people service CSDL document."""
    return DATA_DIR / "people.xml"


@pytest.fixture(scope="session")
def metadata_service(csdl_path: Path) -> MetadataService:
    """MetadataService loaded once for the whole session (the model is read-only)."""
    return MetadataService(csdl_path)


@pytest.fixture
def model(metadata_service: MetadataService) -> EdmModel:
    return metadata_service.model


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def context(clock: Callable[[], datetime]) -> GenerationContext:
    return GenerationContext(seed=1234, clock=clock)


@pytest.fixture
def make_parameters(model: EdmModel) -> Callable[..., GenerationParameters]:
    """Factory for GenerationParameters bound to the test model."""

    def factory(**overrides: Any) -> GenerationParameters:
        overrides.setdefault("seed", 1234)
        return GenerationParameters(model=model, **overrides)

    return factory
