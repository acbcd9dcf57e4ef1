"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import logging

import pytest

from validgraph import TypeMetadataCache, Validator, ValidatorRegistry

# =============================================================================
# Fixtures: Isolated Validator State
# =============================================================================


@pytest.fixture
def cache():
    """A private metadata cache, so tests never share descriptors."""
    metadata = TypeMetadataCache()
    yield metadata
    metadata.clear()


@pytest.fixture
def registry():
    """A private external-validator registry."""
    validators = ValidatorRegistry()
    yield validators
    validators.clear()


@pytest.fixture
def validator(cache, registry):
    """A validator wired to the private cache and registry."""
    return Validator(cache=cache, registry=registry)


# =============================================================================
# Fixtures: Logging
# =============================================================================


@pytest.fixture
def package_logger():
    """The `validgraph` logger, restored to its original state afterwards."""
    logger = logging.getLogger("validgraph")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers
