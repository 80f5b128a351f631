"""
BINDFLOW Snippet Sandbox

Executes the inline snippets of `javascript` relationships.

A snippet is the body of a function taking one parameter, `source`, whose
`value` attribute (or `source["value"]`) holds the edge's input value:

    return source.value * 2

    total = sum(source.value.values())
    return total > 10

A snippet made of a single bare expression returns that expression.

Two layers guard execution:
1. A case-insensitive keyword denylist over the raw text.
2. The parsed AST must stay inside a closed grammar: no imports, function or
   class definitions, while loops, exception handling, underscore names or
   underscore string keys. Attribute access is limited to an allowlist of
   plain data methods, which keeps frame and code objects out of reach.
   Globals contain only SAFE_BUILTINS.

There is no timeout; snippets must be short and side-effect free.
"""

from __future__ import annotations
import ast
import functools
from typing import Any, Dict, Tuple
from types import CodeType

from bindflow.errors import TransformExecutionError, UnsafeCodeError


DENYLIST: Tuple[str, ...] = (
    "eval",
    "Function",
    "setTimeout",
    "setInterval",
    "import",
    "require",
    "process",
    "global",
    "window",
    "document",
    "__proto__",
    "constructor",
)

SAFE_BUILTINS: Dict[str, Any] = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "enumerate": enumerate,
    "filter": filter,
    "float": float,
    "int": int,
    "isinstance": isinstance,
    "len": len,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "range": range,
    "reversed": reversed,
    "round": round,
    "set": set,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
}

_ALLOWED_NODES = (
    ast.Module,
    ast.Expr,
    ast.Return,
    ast.Assign,
    ast.AugAssign,
    ast.If,
    ast.For,
    ast.Pass,
    ast.Break,
    ast.Continue,
    ast.IfExp,
    ast.BoolOp,
    ast.BinOp,
    ast.UnaryOp,
    ast.Compare,
    ast.Call,
    ast.keyword,
    ast.Lambda,
    ast.arguments,
    ast.arg,
    ast.Name,
    ast.Constant,
    ast.Attribute,
    ast.Subscript,
    ast.Slice,
    ast.List,
    ast.Tuple,
    ast.Dict,
    ast.Set,
    ast.ListComp,
    ast.SetComp,
    ast.DictComp,
    ast.GeneratorExp,
    ast.comprehension,
    ast.JoinedStr,
    ast.FormattedValue,
    ast.expr_context,
    ast.operator,
    ast.boolop,
    ast.cmpop,
    ast.unaryop,
)

# Attribute names a snippet may use: the `source` accessors plus the
# plain data methods of dict, list, set, str and numbers. Anything
# else (frame, generator and code-object attributes among them) is rejected.
_ALLOWED_ATTRIBUTES = frozenset({
    # SnippetSource
    "value", "get",
    # dict
    "keys", "values", "items", "setdefault", "update",
    # list / set
    "append", "extend", "insert", "pop", "remove", "sort", "reverse",
    "count", "index", "copy", "add", "discard", "union", "intersection",
    "difference", "symmetric_difference", "issubset", "issuperset",
    # str
    "upper", "lower", "title", "capitalize", "casefold", "swapcase",
    "strip", "lstrip", "rstrip", "split", "rsplit", "splitlines",
    "partition", "rpartition", "join", "replace", "startswith", "endswith",
    "find", "rfind", "zfill", "ljust", "rjust", "center",
    "isdigit", "isalpha", "isalnum", "isspace", "islower", "isupper",
    # numbers
    "real", "imag", "is_integer",
})


class SnippetSource:
    """The `source` argument seen by a snippet."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    def __getitem__(self, key: str) -> Any:
        if key != "value":
            raise KeyError(key)
        return self.value

    def get(self, key: str, default: Any = None) -> Any:
        return self.value if key == "value" else default

    def __repr__(self) -> str:
        return f"SnippetSource(value={self.value!r})"


def check_denylist(code: str) -> None:
    """Raise UnsafeCodeError if the snippet text contains a denied keyword."""
    lowered = code.lower()
    for keyword in DENYLIST:
        if keyword.lower() in lowered:
            raise UnsafeCodeError(keyword)


def _check_grammar(tree: ast.AST) -> None:
    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise UnsafeCodeError(type(node).__name__, "construct not allowed")
        if isinstance(node, ast.Name) and node.id.startswith("_"):
            raise UnsafeCodeError(node.id, "underscore names not allowed")
        if isinstance(node, ast.arg) and node.arg.startswith("_"):
            raise UnsafeCodeError(node.arg, "underscore names not allowed")
        if isinstance(node, ast.Attribute) and node.attr not in _ALLOWED_ATTRIBUTES:
            raise UnsafeCodeError(node.attr, "attribute not allowed")
        if isinstance(node, ast.Subscript) and _is_underscore_key(node.slice):
            raise UnsafeCodeError(node.slice.value, "underscore keys not allowed")


def _is_underscore_key(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Constant)
        and isinstance(node.value, str)
        and node.value.startswith("_")
    )


@functools.lru_cache(maxsize=256)
def compile_snippet(code: str) -> CodeType:
    """
    Validate a snippet and compile it into a module defining `snippet(source)`.

    Raises:
        UnsafeCodeError: denylisted keyword or disallowed construct.
        TransformExecutionError: the snippet does not parse.
    """
    check_denylist(code)

    try:
        tree = ast.parse(code, mode="exec")
    except SyntaxError as e:
        raise TransformExecutionError(f"Snippet syntax error: {e.msg} (line {e.lineno})") from e

    _check_grammar(tree)

    body = tree.body
    if len(body) == 1 and isinstance(body[0], ast.Expr):
        body = [ast.copy_location(ast.Return(value=body[0].value), body[0])]
    if not body:
        body = [ast.Pass()]

    wrapper = ast.parse("def snippet(source):\n    pass\n")
    wrapper.body[0].body = body
    ast.fix_missing_locations(wrapper)

    try:
        return compile(wrapper, "<snippet>", "exec")
    except SyntaxError as e:
        # e.g. 'break' outside a loop
        raise TransformExecutionError(f"Snippet syntax error: {e.msg}") from e


def run_snippet(code: str, source_value: Any) -> Any:
    """Execute a snippet against one input value and return its result."""
    compiled = compile_snippet(code)

    namespace: Dict[str, Any] = {"__builtins__": dict(SAFE_BUILTINS)}
    exec(compiled, namespace)
    func = namespace["snippet"]

    try:
        return func(SnippetSource(source_value))
    except Exception as e:
        raise TransformExecutionError(f"Snippet execution failed: {e}") from e
