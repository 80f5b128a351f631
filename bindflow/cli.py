"""
bindflow/cli.py - Command line entry point

Commands:
    bindflow check SPEC.json
    bindflow run SPEC.json --set form.name='"Ann"' [--init key=value ...]

Values given to --set / --init are parsed as JSON; anything that is not
valid JSON is taken as a plain string.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import argparse
import json
import logging
import sys

from pydantic import ValidationError

from .config import EngineConfig
from .dependencies.graph import DependencyGraph
from .engine import create_engine
from .errors import BindflowError
from .logging_setup import configure_logging

logger = logging.getLogger(__name__)


def _load_spec(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    # A bare edge list is accepted too
    if isinstance(data, list):
        data = {"dependencies": data}
    return data


def _parse_assignment(text: str) -> Tuple[str, Any]:
    key, sep, raw = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {text!r}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key, value


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def cmd_check(parsed: argparse.Namespace) -> int:
    """Validate a spec file and report graph shape."""
    try:
        graph = DependencyGraph.from_spec(_load_spec(parsed.spec))
    except (ValidationError, BindflowError) as e:
        _print_json({"valid": False, "error": str(e)})
        return 1

    _print_json({
        "valid": True,
        "node_count": graph.get_node_count(),
        "edge_count": graph.get_edge_count(),
        "update_order": graph.get_update_order(),
    })
    return 0


def cmd_run(parsed: argparse.Namespace) -> int:
    """Apply writes to a fresh engine, flush, and report the outcome."""
    config = EngineConfig.from_env()
    if parsed.max_depth is not None:
        config = config.merged(max_propagation_depth=parsed.max_depth)

    try:
        engine = create_engine(_load_spec(parsed.spec), config)
    except BindflowError as e:
        _print_json({"error": str(e)})
        return 1

    for key, value in parsed.init:
        engine.init_port(key, value)
    for key, value in parsed.set:
        engine.update_port(key, value)

    results = engine.flush()
    state = engine.get_flow_validation_state()
    engine.dispose()

    _print_json({
        "events": [e.to_dict() for r in results for e in r.events],
        "errors": [e.to_dict() for r in results for e in r.errors],
        "ports": engine.get_all_port_values(),
        "validation_state": state.to_dict(),
    })
    return 0 if all(r.success for r in results) else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="BINDFLOW reactive port binding",
        prog="bindflow",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Validate a dependency spec")
    check.add_argument("spec", help="Path to spec JSON")
    check.set_defaults(func=cmd_check)

    run = sub.add_parser("run", help="Propagate port writes through a spec")
    run.add_argument("spec", help="Path to spec JSON")
    run.add_argument(
        "--set",
        action="append",
        type=_parse_assignment,
        default=[],
        metavar="KEY=VALUE",
        help="Port update (repeatable)",
    )
    run.add_argument(
        "--init",
        action="append",
        type=_parse_assignment,
        default=[],
        metavar="KEY=VALUE",
        help="Initial port value, no propagation (repeatable)",
    )
    run.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Override max propagation depth",
    )
    run.set_defaults(func=cmd_run)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    parsed = build_parser().parse_args(args)
    configure_logging(parsed.log_level)

    try:
        return parsed.func(parsed)
    except OSError as e:
        logger.error(f"Cannot read spec: {e}")
        return 1
    except json.JSONDecodeError as e:
        logger.error(f"Spec is not valid JSON: {e}")
        return 1
    except BindflowError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
