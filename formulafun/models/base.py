"""
Base classes for fitted models in formulafun.

Fitted models are a tagged variant: each implementation declares its
ModelKind and exposes the same capabilities (formula, coefficients,
training data, predict), so the model adapter never inspects foreign
result objects directly.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union

import numpy as np
import pandas as pd

from ..core.exceptions import ModelIntrospectionError
from ..formulas.formula import Formula, RESERVED_CONSTANTS
from ..formulas.nodes import Node
from ..utils.logging import get_logger
from ..utils.validation import ordered_difference, ordered_intersection


logger = get_logger(__name__)


class ModelKind(str, Enum):
    """Kinds of fitted models that can become functions."""

    LINEAR = "lm"
    GENERALIZED_LINEAR = "glm"
    NONLINEAR_LEAST_SQUARES = "nls"

    @classmethod
    def _missing_(cls, value):
        aliases = {
            "linear": cls.LINEAR,
            "generalized_linear": cls.GENERALIZED_LINEAR,
            "nonlinear_least_squares": cls.NONLINEAR_LEAST_SQUARES,
        }
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


class FittedModel(ABC):
    """
    Abstract base class for fitted models.

    Subclasses set ``kind`` and implement formula and coefficient access and
    prediction. Wrappers around third-party results objects also implement
    ``accepts``/``from_object`` so the registry can find them.
    """

    kind: ModelKind

    @property
    @abstractmethod
    def formula(self) -> Formula:
        """Two-sided model formula."""

    @property
    @abstractmethod
    def coefficients(self) -> Dict[str, float]:
        """Fitted coefficients by name."""

    @property
    def data(self) -> Optional[pd.DataFrame]:
        """Training data, if it is still available."""
        return None

    @property
    def response(self) -> Optional[Node]:
        """Left-hand side of the model formula."""
        return self.formula.lhs

    @abstractmethod
    def predict(self, newdata: pd.DataFrame, type: str = "response", **kwargs) -> np.ndarray:
        """
        Predict for new covariate values.

        Args:
            newdata: One row per prediction, one column per predictor
            type: 'response' or 'link' (only meaningful for GLMs)
            **kwargs: Passed on to the underlying prediction routine

        Returns:
            Array of predictions, one per row of ``newdata``
        """

    @classmethod
    def accepts(cls, obj: Any) -> bool:
        """Whether ``from_object`` can wrap ``obj``."""
        return False

    @classmethod
    def from_object(cls, obj: Any) -> "FittedModel":
        raise ModelIntrospectionError(
            model_type=cls.__name__, reason=f"cannot wrap {type(obj).__name__}"
        )

    def model_variables(self) -> List[str]:
        """Right-hand-side variables of the model formula, as written."""
        return self.formula.rhs_variables

    def predictor_variables(self) -> List[str]:
        """
        Variables that become arguments of the model's function.

        Right-hand-side variables, restricted to training data columns when
        the data is available so that names such as ``Treatment`` in
        ``C(g, Treatment)`` are not mistaken for covariates.
        """
        variables = ordered_difference(self.model_variables(), RESERVED_CONSTANTS)
        data = self.data
        if data is not None:
            variables = ordered_intersection(variables, [str(c) for c in data.columns])
        return variables

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.formula})"


class ModelRegistry:
    """
    Registry mapping model kinds to their FittedModel implementations.

    Provides a plugin-style system for recognising fitted results objects.
    """

    def __init__(self):
        self._models: Dict[ModelKind, Type[FittedModel]] = {}
        self.logger = get_logger(self.__class__.__name__)

    def register(self, kind: ModelKind, model_class: Type[FittedModel]) -> None:
        """
        Register a model implementation.

        Args:
            kind: Kind of model
            model_class: FittedModel subclass handling that kind
        """
        if not issubclass(model_class, FittedModel):
            raise TypeError("Model class must inherit from FittedModel")

        self._models[ModelKind(kind)] = model_class
        self.logger.debug(f"Registered model: {ModelKind(kind).value} -> {model_class.__name__}")

    def get_model_class(self, kind: Union[ModelKind, str]) -> Type[FittedModel]:
        """
        Get the implementation registered for a model kind.

        Raises:
            ValueError: If the kind is unknown or not registered
        """
        try:
            kind = ModelKind(kind)
        except ValueError:
            raise ValueError(f"Unknown model kind: {kind}")

        if kind not in self._models:
            raise ValueError(
                f"Model kind '{kind.value}' not registered. "
                f"Available: {[k.value for k in self._models]}"
            )
        return self._models[kind]

    def list_models(self) -> List[ModelKind]:
        """Get list of registered model kinds."""
        return list(self._models.keys())

    def resolve(self, obj: Any, kind: Optional[Union[ModelKind, str]] = None) -> FittedModel:
        """
        Wrap ``obj`` as a FittedModel.

        Args:
            obj: A FittedModel or a results object a registered class accepts
            kind: Expected model kind; a mismatch is an error

        Raises:
            ModelIntrospectionError: If no registered class accepts ``obj``
                or its kind differs from ``kind``
        """
        expected = ModelKind(kind) if kind is not None else None

        if isinstance(obj, FittedModel):
            model = obj
        else:
            model = None
            for model_kind, model_class in self._models.items():
                if expected is not None and model_kind is not expected:
                    continue
                if model_class.accepts(obj):
                    model = model_class.from_object(obj)
                    break

        if model is None:
            raise ModelIntrospectionError(
                model_type=type(obj).__name__,
                reason="not a fitted model this package knows how to read"
                if expected is None else f"not a fitted '{expected.value}' model",
            )

        if expected is not None and model.kind is not expected:
            raise ModelIntrospectionError(
                model_type=type(model).__name__,
                reason=f"expected a '{expected.value}' model, got '{model.kind.value}'",
            )

        return model


default_registry = ModelRegistry()


def as_fitted_model(
    obj: Any,
    kind: Optional[Union[ModelKind, str]] = None,
    registry: Optional[ModelRegistry] = None,
) -> FittedModel:
    """Wrap ``obj`` as a FittedModel using the default registry."""
    return (registry or default_registry).resolve(obj, kind=kind)


def is_fitted_model(obj: Any, registry: Optional[ModelRegistry] = None) -> bool:
    """Whether ``obj`` is a FittedModel or a results object the registry accepts."""
    if isinstance(obj, FittedModel):
        return True
    registry = registry or default_registry
    return any(
        registry.get_model_class(kind).accepts(obj) for kind in registry.list_models()
    )


def model_vars(model: Any) -> List[str]:
    """
    Predictor variables of a model as written in its formula.

    Example:
        model_vars(lm("wage ~ exper + I(exper**2)", data))  # ['exper']
    """
    return as_fitted_model(model).model_variables()
