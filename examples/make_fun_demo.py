#!/usr/bin/env python3
"""
make_fun Demo

Builds functions from formulas and from fitted models: parameter ordering,
defaults, scope capture, response transformations and gradients with the
jax backend.
"""

import warnings

import jax
import numpy as np
import pandas as pd

from formulafun import CallerScope, coef, lm, glm, make_fun, nls
from formulafun.utils import setup_logging


def demo_formulas():
    """Functions from formulas."""
    print("\n=== Functions from formulas ===")

    f = make_fun("sin(x^2 * b) ~ x & y & a", a=2)
    print(f"  {f}")
    print(f"  parameters: {f.parameter_names}, dangerous: {f.dangerous}")
    print(f"  f(1, 2, 3) = {f(1, 2, 3):.4f}")

    g = make_fun("a * x ~ x & a", a="x + 1")
    print(f"  {g}  ->  g(2) = {g(2)}")

    rate = 0.5
    h = make_fun("exp(-rate * t) ~ t", scope=CallerScope.capture())
    print(f"  {h}  (rate={rate} taken from this scope)")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        make_fun("a * x + b ~ x", suppress_warnings=False)
    for w in caught:
        print(f"  warning: {w.message}")


def demo_gradients():
    """Differentiate a formula function with jax."""
    print("\n=== Gradients with the jax backend ===")

    f = make_fun("a * x^2 + sin(x) ~ x & a", a=3.0, backend="jax")
    df = jax.grad(f)
    print(f"  f'(1.0) = {float(df(1.0)):.4f}  (expected {6.0 + np.cos(1.0):.4f})")


def demo_models():
    """Functions from fitted models."""
    print("\n=== Functions from models ===")

    exper = np.arange(1.0, 41.0)
    wage = np.exp(1.5 + 0.03 * exper + 0.05 * np.sin(exper))
    data = pd.DataFrame({"exper": exper, "wage": wage, "count": np.round(wage)})

    model = lm("np.log(wage) ~ exper + I(exper**2)", data)
    f = make_fun(model)
    print(f"  {f}")
    print(f"  wage at 10 years: {f(exper=10.0)[0]:.3f}")
    print(f"  coefficients: { {k: round(v, 4) for k, v in coef(f).items()} }")

    poisson = glm("count ~ exper", data, family="poisson")
    print(f"  mean count at 20: {make_fun(poisson)(20.0)[0]:.3f}")
    print(f"  linear predictor at 20: {make_fun(poisson, type='link')(20.0)[0]:.3f}")

    curve = nls("wage ~ A * exp(B * exper)", data, start={"A": 4.0, "B": 0.03})
    g = make_fun(curve)
    print(f"  nls coefficients: { {k: round(v, 4) for k, v in coef(g).items()} }")
    print(f"  fitted curve at 30: {g(30.0)[0]:.3f}")


def main():
    setup_logging(level="WARNING")
    demo_formulas()
    demo_gradients()
    demo_models()


if __name__ == "__main__":
    main()
