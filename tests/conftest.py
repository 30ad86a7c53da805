"""
Pytest configuration and fixtures for the WordClash tests.
"""

import random

import pytest

from factories import StubAssistant, make_session


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def assistant():
    return StubAssistant()


@pytest.fixture
def session():
    return make_session()
