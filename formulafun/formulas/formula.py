"""
Formula value type for formulafun.

A Formula pairs a left-hand side (the function body) with a right-hand side
(the declared inputs) and the namespace the body's free names resolve in.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional

from .nodes import Node
from ..utils.validation import ordered_difference


# Names the evaluator provides natively; never treated as function inputs.
RESERVED_CONSTANTS = ('pi',)


@dataclass(frozen=True)
class Formula:
    """
    Parsed two-sided (or one-sided) formula.

    Examples:
        sin(x^2 * b) ~ x & y & a     # body sin(x^2 * b), inputs x, y, a (+ b)
        a * x ~ x                    # body a * x, input x, implicit a
        ~ x                          # one-sided, cannot become a function
    """

    lhs: Optional[Node]
    rhs: Node
    text: str = ""
    namespace: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, hash=False
    )

    @classmethod
    def from_string(cls, text: str, namespace: Optional[Mapping[str, Any]] = None) -> "Formula":
        """Parse formula text (see ``parse_formula``)."""
        from .parser import parse_formula
        return parse_formula(text, namespace=namespace)

    @property
    def is_two_sided(self) -> bool:
        """Whether the formula has both a left and a right side."""
        return self.lhs is not None and self.rhs is not None

    @property
    def rhs_variables(self) -> List[str]:
        """Variables of the right side in order of first occurrence."""
        return self.rhs.get_variable_names()

    @property
    def lhs_variables(self) -> List[str]:
        """Variables of the left side in order of first occurrence."""
        return self.lhs.get_variable_names() if self.lhs is not None else []

    @property
    def lhs_only_variables(self) -> List[str]:
        """Left-side variables absent from the right side, constants excluded."""
        lhs_only = ordered_difference(self.lhs_variables, self.rhs_variables)
        return ordered_difference(lhs_only, RESERVED_CONSTANTS)

    @property
    def variables(self) -> List[str]:
        """All inputs: right-side variables followed by left-side-only ones."""
        return self.rhs_variables + self.lhs_only_variables

    def with_namespace(self, namespace: Mapping[str, Any]) -> "Formula":
        """Copy of this formula resolving free names in ``namespace``."""
        return Formula(
            lhs=self.lhs,
            rhs=self.rhs,
            text=self.text,
            namespace=MappingProxyType(dict(namespace)),
        )

    def to_string(self) -> str:
        rhs = self.rhs.to_string()
        if self.lhs is None:
            return f"~{rhs}"
        return f"{self.lhs.to_string()} ~ {rhs}"

    def __str__(self) -> str:
        return self.to_string()
