"""
Tests for inferring the inverse of a model's response transformation.
"""

import warnings

import numpy as np
import pytest

from formulafun.core.exceptions import TransformationWarning
from formulafun.formulas import parse_expression
from formulafun.functions import PowerOf, identity, infer_transformation, power_of_two


pytestmark = pytest.mark.unit


def infer(text, **kwargs):
    return infer_transformation(parse_expression(text), **kwargs)


class TestInference:
    """Test recognised response expressions."""

    @pytest.mark.parametrize("text", ["log(wage)", "np.log(wage)", "numpy.log(wage)", "(log(wage))"])
    def test_natural_log(self, text):
        """Test that natural logs invert to exp, with or without a prefix."""
        assert infer(text) is np.exp

    def test_log2(self):
        """Test that log2 inverts to powers of two."""
        transform = infer("log2(y)")

        assert transform is power_of_two
        assert transform(3.0) == pytest.approx(8.0)

    def test_sqrt(self):
        """Test that sqrt inverts to square."""
        assert infer("sqrt(y)") is np.square

    @pytest.mark.parametrize("text", ["log(y, 10)", "log(y, base = 10)"])
    def test_log_with_literal_base(self, text):
        """Test that a literal base inverts to powers of that base."""
        transform = infer(text)

        assert transform == PowerOf(10)
        assert transform(2.0) == pytest.approx(100.0)
        assert transform.__name__ == "power_of_10"

    @pytest.mark.parametrize("text", ["y", "I(y)", "(y)"])
    def test_identity_without_warning(self, text):
        """Test that plain responses map to the identity silently."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", TransformationWarning)
            assert infer(text) is identity

    def test_missing_response(self):
        """Test that a missing response maps to the identity."""
        assert infer_transformation(None) is identity


class TestUnrecognised:
    """Test responses with no known inverse."""

    @pytest.mark.parametrize("text", ["exp(y)", "log(y, b)", "abs(y)", "log(y + 1, 2, 3)"])
    def test_warns_and_uses_identity(self, text):
        """Test that unknown calls fall back to the identity with a warning."""
        with pytest.warns(TransformationWarning, match="Cannot infer a transformation"):
            assert infer(text) is identity

    def test_warning_can_be_disabled(self):
        """Test that warn=False silences the fallback warning."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", TransformationWarning)
            assert infer("exp(y)", warn=False) is identity


class TestPowerOf:
    """Test the fixed-base power transformation."""

    def test_equality_and_hash(self):
        """Test value semantics."""
        assert PowerOf(10) == PowerOf(10.0)
        assert PowerOf(10) != PowerOf(2)
        assert hash(PowerOf(10)) == hash(PowerOf(10.0))

    def test_vectorized(self):
        """Test application to arrays."""
        np.testing.assert_allclose(PowerOf(3)(np.array([0.0, 1.0, 2.0])), [1.0, 3.0, 9.0])
