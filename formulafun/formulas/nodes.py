"""
Expression tree nodes for formulafun.

Defines the node types that parsed formula sides are built from. Nodes are
immutable; evaluation walks the tree against an evaluation context that
supplies variable bindings, functions and operator semantics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, List, Tuple


@dataclass(frozen=True)
class Node(ABC):
    """Abstract base class for expression nodes."""

    @abstractmethod
    def iter_variable_names(self) -> Iterator[str]:
        """Yield variable names in reading order, repeats included."""

    @abstractmethod
    def to_string(self) -> str:
        """Convert node to its textual form."""

    @abstractmethod
    def evaluate(self, context: "EvaluationContext") -> Any:
        """Evaluate the node against an evaluation context."""

    def get_variable_names(self) -> List[str]:
        """
        Get the free variables of this expression.

        Function names and keyword argument names are not variables. Each
        name is reported once, in order of first occurrence.
        """
        return list(dict.fromkeys(self.iter_variable_names()))

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True)
class Number(Node):
    """Numeric literal. ``text`` keeps the literal as written."""

    value: float
    text: str

    def iter_variable_names(self) -> Iterator[str]:
        return iter(())

    def to_string(self) -> str:
        return self.text

    def evaluate(self, context) -> Any:
        return self.value


@dataclass(frozen=True)
class String(Node):
    """String literal."""

    value: str

    def iter_variable_names(self) -> Iterator[str]:
        return iter(())

    def to_string(self) -> str:
        return f'"{self.value}"'

    def evaluate(self, context) -> Any:
        return self.value


@dataclass(frozen=True)
class Name(Node):
    """Reference to a variable or constant."""

    identifier: str

    def iter_variable_names(self) -> Iterator[str]:
        yield self.identifier

    def to_string(self) -> str:
        return self.identifier

    def evaluate(self, context) -> Any:
        return context.lookup(self.identifier)


@dataclass(frozen=True)
class Group(Node):
    """Parenthesised sub-expression, kept so text round-trips."""

    body: Node

    def iter_variable_names(self) -> Iterator[str]:
        return self.body.iter_variable_names()

    def to_string(self) -> str:
        return f"({self.body.to_string()})"

    def evaluate(self, context) -> Any:
        return self.body.evaluate(context)


@dataclass(frozen=True)
class UnaryOp(Node):
    """Prefix operator: ``-x``, ``+x`` or ``!x``."""

    op: str
    operand: Node

    def iter_variable_names(self) -> Iterator[str]:
        return self.operand.iter_variable_names()

    def to_string(self) -> str:
        return f"{self.op}{self.operand.to_string()}"

    def evaluate(self, context) -> Any:
        return context.apply_unary(self.op, self.operand.evaluate(context))


@dataclass(frozen=True)
class BinaryOp(Node):
    """Infix operator applied to two operands."""

    op: str
    left: Node
    right: Node

    # Operators written without surrounding spaces.
    TIGHT_OPERATORS = ('^', '**', ':')

    def iter_variable_names(self) -> Iterator[str]:
        yield from self.left.iter_variable_names()
        yield from self.right.iter_variable_names()

    def to_string(self) -> str:
        if self.op in self.TIGHT_OPERATORS:
            return f"{self.left.to_string()}{self.op}{self.right.to_string()}"
        return f"{self.left.to_string()} {self.op} {self.right.to_string()}"

    def evaluate(self, context) -> Any:
        return context.apply_binary(
            self.op, self.left.evaluate(context), self.right.evaluate(context)
        )


@dataclass(frozen=True)
class Call(Node):
    """Function application with positional and keyword arguments."""

    function: str
    args: Tuple[Node, ...] = ()
    keywords: Tuple[Tuple[str, Node], ...] = ()

    def iter_variable_names(self) -> Iterator[str]:
        for arg in self.args:
            yield from arg.iter_variable_names()
        for _, value in self.keywords:
            yield from value.iter_variable_names()

    def to_string(self) -> str:
        parts = [arg.to_string() for arg in self.args]
        parts.extend(f"{key} = {value.to_string()}" for key, value in self.keywords)
        return f"{self.function}({', '.join(parts)})"

    def evaluate(self, context) -> Any:
        function = context.lookup_function(self.function)
        args = [arg.evaluate(context) for arg in self.args]
        kwargs = {key: value.evaluate(context) for key, value in self.keywords}
        return function(*args, **kwargs)

    @property
    def base_name(self) -> str:
        """Function name without a module prefix (``np.log`` -> ``log``)."""
        return self.function.rsplit('.', 1)[-1]



@dataclass(frozen=True)
class ListLiteral(Node):
    """Bracketed list of values, as in ``C(sex, levels=['M', 'F'])``."""

    items: Tuple[Node, ...] = ()

    def iter_variable_names(self) -> Iterator[str]:
        for item in self.items:
            yield from item.iter_variable_names()

    def to_string(self) -> str:
        return f"[{', '.join(item.to_string() for item in self.items)}]"

    def evaluate(self, context) -> Any:
        return context.backend.xp.asarray([item.evaluate(context) for item in self.items])
