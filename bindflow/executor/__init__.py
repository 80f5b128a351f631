"""
BINDFLOW Dependency Executor

Provides:
- DependencyExecutor: applies one edge to one value
- TransformRegistry: named transforms (five built-ins pre-registered)
- run_snippet: restricted snippet interpreter
"""

from .executor import (
    DependencyExecutor,
    TransformResult,
    UpdateResult,
    UpdateType,
)
from .builtin import (
    BUILTIN_TRANSFORMS,
    TransformRegistry,
    calculate_balance,
    calculate_ranking,
    create_default_registry,
    detect_gaps,
    filter_high_priority,
    generate_summary,
)
from .sandbox import (
    DENYLIST,
    SAFE_BUILTINS,
    SnippetSource,
    check_denylist,
    compile_snippet,
    run_snippet,
)

__all__ = [
    # Executor
    "DependencyExecutor",
    "TransformResult",
    "UpdateResult",
    "UpdateType",
    # Built-ins
    "BUILTIN_TRANSFORMS",
    "TransformRegistry",
    "calculate_balance",
    "calculate_ranking",
    "create_default_registry",
    "detect_gaps",
    "filter_high_priority",
    "generate_summary",
    # Sandbox
    "DENYLIST",
    "SAFE_BUILTINS",
    "SnippetSource",
    "check_denylist",
    "compile_snippet",
    "run_snippet",
]
