"""Function Tool for the chatrelay framework.

This module provides a tool backed by a caller-supplied transformation of
the model's arguments. The transformation is a single Python expression
over the name ``input``, evaluated by a restricted AST interpreter: no
imports, no I/O, no dunder access, and only a fixed set of pure builtins
and str/list/dict methods.

Public Interface:
    - SafeEvaluator: Compile and evaluate restricted expressions
    - create_function_tool(): Create the tool definition

Examples:
    >>> evaluator = SafeEvaluator("input['a'] + input['b']")
    >>> evaluator.evaluate({"a": 2, "b": 3})
    5
    >>> SafeEvaluator("{'name': input['name'].upper()}").evaluate({"name": "ada"})
    {'name': 'ADA'}
    >>> SafeEvaluator("len(input) if input else 0").evaluate([1, 2, 3])
    3
"""

import ast
import operator
from typing import Any, Callable, Dict, Optional

from chatrelay.core.errors import ConfigurationError, ToolExecutionError
from chatrelay.types import ToolDefinition

MAX_EXPONENT = 1000
MAX_SEQUENCE_REPEAT = 100_000
MAX_INT_BITS = 100_000


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _safe_pow(base: Any, exponent: Any) -> Any:
    if isinstance(exponent, (int, float)) and abs(exponent) > MAX_EXPONENT:
        raise ValueError("Exponent too large")
    if _is_int(base) and _is_int(exponent) and abs(base).bit_length() * abs(exponent) > MAX_INT_BITS:
        raise ValueError("Result too large")
    return operator.pow(base, exponent)


def _safe_mul(left: Any, right: Any) -> Any:
    for sequence, count in ((left, right), (right, left)):
        if isinstance(sequence, (str, list, tuple)) and isinstance(count, int):
            if len(sequence) * count > MAX_SEQUENCE_REPEAT:
                raise ValueError("Result too large")
    if _is_int(left) and _is_int(right):
        if abs(left).bit_length() + abs(right).bit_length() > MAX_INT_BITS:
            raise ValueError("Result too large")
    return operator.mul(left, right)


class SafeEvaluator:
    """Evaluates a restricted Python expression against ``input``.

    The expression is parsed and checked when the evaluator is created, so
    malformed or disallowed code is reported at configuration time.
    """

    _BIN_OPERATORS: Dict[type, Callable[[Any, Any], Any]] = {
        ast.Add: operator.add,
        ast.Sub: operator.sub,
        ast.Mult: _safe_mul,
        ast.Div: operator.truediv,
        ast.FloorDiv: operator.floordiv,
        ast.Mod: operator.mod,
        ast.Pow: _safe_pow,
    }

    _UNARY_OPERATORS: Dict[type, Callable[[Any], Any]] = {
        ast.USub: operator.neg,
        ast.UAdd: operator.pos,
        ast.Not: operator.not_,
    }

    _COMPARE_OPERATORS: Dict[type, Callable[[Any, Any], bool]] = {
        ast.Eq: operator.eq,
        ast.NotEq: operator.ne,
        ast.Lt: operator.lt,
        ast.LtE: operator.le,
        ast.Gt: operator.gt,
        ast.GtE: operator.ge,
        ast.In: lambda a, b: a in b,
        ast.NotIn: lambda a, b: a not in b,
        ast.Is: operator.is_,
        ast.IsNot: operator.is_not,
    }

    _FUNCTIONS: Dict[str, Callable[..., Any]] = {
        "abs": abs,
        "bool": bool,
        "dict": dict,
        "float": float,
        "int": int,
        "len": len,
        "list": list,
        "max": max,
        "min": min,
        "round": round,
        "sorted": sorted,
        "str": str,
        "sum": sum,
    }

    _METHODS = {
        str: {"upper", "lower", "strip", "lstrip", "rstrip", "split", "join",
              "replace", "startswith", "endswith", "title", "capitalize"},
        dict: {"get", "keys", "values", "items"},
        list: {"index", "count"},
        tuple: {"index", "count"},
    }

    def __init__(self, code: str = "input") -> None:
        """Compile an expression.

        Args:
            code: Expression over ``input``; a leading ``return`` is tolerated

        Raises:
            ConfigurationError: If the code is empty, invalid, or uses disallowed constructs
        """
        source = (code or "").strip().rstrip(";").strip()
        if source.startswith("return ") or source == "return":
            source = source[len("return"):].strip()
        if not source:
            raise ConfigurationError("Function code cannot be empty")

        try:
            tree = ast.parse(source, mode="eval")
        except SyntaxError as e:
            raise ConfigurationError(f"Invalid function code: {e.msg}") from e

        self.source = source
        self._tree = tree
        self._check(tree.body)

    def _check(self, node: ast.AST) -> None:
        """Reject disallowed constructs anywhere in the tree."""
        for child in ast.walk(node):
            if isinstance(child, ast.Name):
                if child.id != "input" and child.id not in self._FUNCTIONS:
                    raise ConfigurationError(f"Unknown name in function code: {child.id}")
            elif isinstance(child, ast.Attribute):
                if child.attr.startswith("_"):
                    raise ConfigurationError(f"Attribute not allowed: {child.attr}")
            elif isinstance(child, (ast.Lambda, ast.NamedExpr, ast.Await,
                                    ast.Yield, ast.YieldFrom, ast.ListComp,
                                    ast.SetComp, ast.DictComp, ast.GeneratorExp,
                                    ast.JoinedStr, ast.Starred)):
                raise ConfigurationError(
                    f"Unsupported construct in function code: {type(child).__name__}"
                )

    def evaluate(self, value: Any) -> Any:
        """Evaluate the expression with ``input`` bound to ``value``.

        Raises:
            ToolExecutionError: If evaluation fails
        """
        try:
            return self._eval(self._tree.body, value)
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(f"Error evaluating function: {e}") from e

    def _eval(self, node: ast.AST, value: Any) -> Any:
        if isinstance(node, ast.Constant):
            return node.value

        if isinstance(node, ast.Name):
            if node.id == "input":
                return value
            raise ToolExecutionError(f"Unknown name: {node.id}")

        if isinstance(node, ast.BinOp):
            op = self._BIN_OPERATORS.get(type(node.op))
            if op is None:
                raise ToolExecutionError(f"Unsupported operator: {type(node.op).__name__}")
            return op(self._eval(node.left, value), self._eval(node.right, value))

        if isinstance(node, ast.UnaryOp):
            op = self._UNARY_OPERATORS.get(type(node.op))
            if op is None:
                raise ToolExecutionError(f"Unsupported operator: {type(node.op).__name__}")
            return op(self._eval(node.operand, value))

        if isinstance(node, ast.BoolOp):
            result = None
            for operand in node.values:
                result = self._eval(operand, value)
                if isinstance(node.op, ast.And) and not result:
                    return result
                if isinstance(node.op, ast.Or) and result:
                    return result
            return result

        if isinstance(node, ast.Compare):
            left = self._eval(node.left, value)
            for op_node, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, value)
                if not self._COMPARE_OPERATORS[type(op_node)](left, right):
                    return False
                left = right
            return True

        if isinstance(node, ast.IfExp):
            if self._eval(node.test, value):
                return self._eval(node.body, value)
            return self._eval(node.orelse, value)

        if isinstance(node, ast.Subscript):
            container = self._eval(node.value, value)
            return container[self._eval(node.slice, value)]

        if isinstance(node, ast.Slice):
            return slice(
                self._eval(node.lower, value) if node.lower else None,
                self._eval(node.upper, value) if node.upper else None,
                self._eval(node.step, value) if node.step else None,
            )

        if isinstance(node, ast.Dict):
            return {
                self._eval(k, value): self._eval(v, value)
                for k, v in zip(node.keys, node.values)
            }

        if isinstance(node, ast.List):
            return [self._eval(item, value) for item in node.elts]

        if isinstance(node, ast.Tuple):
            return tuple(self._eval(item, value) for item in node.elts)

        if isinstance(node, ast.Call):
            return self._eval_call(node, value)

        raise ToolExecutionError(f"Unsupported expression type: {type(node).__name__}")

    def _eval_call(self, node: ast.Call, value: Any) -> Any:
        args = [self._eval(arg, value) for arg in node.args]
        kwargs = {kw.arg: self._eval(kw.value, value) for kw in node.keywords if kw.arg}

        if isinstance(node.func, ast.Name) and node.func.id in self._FUNCTIONS:
            return self._FUNCTIONS[node.func.id](*args, **kwargs)

        if isinstance(node.func, ast.Attribute):
            target = self._eval(node.func.value, value)
            allowed = self._METHODS.get(type(target), set())
            if node.func.attr not in allowed:
                raise ToolExecutionError(
                    f"Method not allowed: {type(target).__name__}.{node.func.attr}"
                )
            return getattr(target, node.func.attr)(*args, **kwargs)

        raise ToolExecutionError("Only whitelisted functions and methods may be called")


def create_function_tool(
    name: str,
    description: str = "Function tool",
    code: str = "input",
    parameters: Optional[Dict[str, Any]] = None
) -> ToolDefinition:
    """Create a function tool definition.

    Args:
        name: Tool name offered to the model
        description: Tool description offered to the model
        code: Expression over ``input`` computing the tool result
        parameters: JSON schema of the arguments; defaults to an empty object schema

    Returns:
        Tool definition evaluating ``code`` against the model's arguments

    Raises:
        ConfigurationError: If ``code`` is invalid
    """
    evaluator = SafeEvaluator(code)
    return ToolDefinition(
        name=name,
        description=description,
        parameters=parameters,
        execute=evaluator.evaluate
    )
