"""
Shared pytest configuration and fixtures for formulafun tests.

This module provides deterministic datasets, fitted models and configuration
isolation used across the test suite.
"""

import pytest
import numpy as np
import pandas as pd

from formulafun import lm, glm, nls, reset_config


# Environment variables read by the configuration system
CONFIG_ENV_VARS = [
    'FORMULAFUN_LOG_LEVEL',
    'FORMULAFUN_BACKEND',
    'FORMULAFUN_SUPPRESS_WARNINGS',
    'FORMULAFUN_CAPTURE_CALLER_SCOPE',
    'FORMULAFUN_CONFIG_FILE',
]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Start every test from the default configuration."""
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)


@pytest.fixture(scope="session")
def wage_data():
    """Wages growing with experience, with a deterministic wiggle."""
    exper = np.arange(1.0, 41.0)
    sex = np.where(np.arange(40) % 2 == 0, "F", "M")
    wage = np.exp(1.5 + 0.03 * exper + 0.05 * np.sin(exper)) + np.where(sex == "M", 0.4, 0.0)
    return pd.DataFrame({"exper": exper, "sex": sex, "wage": wage})


@pytest.fixture(scope="session")
def count_data():
    """Counts rising with dose."""
    dose = np.repeat(np.arange(0.0, 5.0), 6)
    count = np.round(np.exp(0.5 + 0.4 * dose) + np.tile([-1, 0, 1, 0, 1, -1], 5))
    return pd.DataFrame({"dose": dose, "count": np.maximum(count, 0.0)})


@pytest.fixture(scope="session")
def linear_model(wage_data):
    """Quadratic linear model with an untransformed response."""
    return lm("wage ~ exper + I(exper**2)", wage_data)


@pytest.fixture(scope="session")
def log_linear_model(wage_data):
    """Linear model fitted to log wages."""
    return lm("np.log(wage) ~ exper", wage_data)


@pytest.fixture(scope="session")
def intercept_model(wage_data):
    """Linear model without predictors."""
    return lm("wage ~ 1", wage_data)


@pytest.fixture(scope="session")
def poisson_model(count_data):
    """Poisson regression with a log link."""
    return glm("count ~ dose", count_data, family="poisson")


@pytest.fixture(scope="session")
def nls_model(wage_data):
    """Exponential growth curve fitted by nonlinear least squares."""
    return nls("wage ~ A * exp(B * exper)", wage_data, start={"A": 4.0, "B": 0.03})


# Markers for different test types
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (fast)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (medium speed)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow (may take >10 seconds)"
    )
