"""Entry point: parse a formula and evaluate it against a scope."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from rulecalc.errors import FormulaError, Result
from rulecalc.functions import FunctionLibrary
from rulecalc.node_evaluator import NodeEvaluator
from rulecalc.parsing.formula_parser import DEFAULT_MAX_DEPTH, FormulaParser
from rulecalc.parsing.nodes import Node
from rulecalc.reducer import reduce

logger = logging.getLogger(__name__)


class Evaluator:
    """Evaluates formulas.

    Args:
        max_depth: Deepest expression nesting accepted by the parser and
            the reducer.
        lazy_ternary: Evaluate only the chosen branch of ``?:``. The default
            evaluates both branches, so an error in the unused branch fails
            the whole formula.
        clock: Returns the current naive UTC datetime (used by ``age``).
        functions: Function table; built from ``clock`` when omitted.

    Parsed trees are immutable and may be cached by the caller and passed
    to :meth:`evaluate_ast` from any thread. Each thread gets its own parser.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        lazy_ternary: bool = False,
        clock: Callable[[], datetime] | None = None,
        functions: FunctionLibrary | None = None,
    ) -> None:
        self.max_depth = max_depth
        self.lazy_ternary = lazy_ternary
        self.functions = functions or FunctionLibrary(clock=clock)
        self._local = threading.local()

    def _parser(self) -> FormulaParser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = FormulaParser(max_depth=self.max_depth)
            parser.build()
            self._local.parser = parser
        return parser

    def parse(self, source: str) -> Node:
        """Parse ``source``, raising FormulaSyntaxError on bad input."""
        return self._parser().parse(source)

    def evaluate(self, source: str, scope: Mapping[str, Any] | None = None) -> Result:
        """Parse and evaluate ``source``. Never raises for bad formulas or data."""
        try:
            tree = self.parse(source)
        except FormulaError as e:
            logger.debug("Failed to parse %r: %s", source, e)
            return Result.failure(e)
        result = self.evaluate_ast(tree, scope)
        if not result.ok:
            logger.debug("Failed to evaluate %r: %s (%s)", source, result.error, result.error.kind.value)
        return result

    def evaluate_ast(self, tree: Node, scope: Mapping[str, Any] | None = None) -> Result:
        """Evaluate an already parsed tree against ``scope``."""
        root = scope if scope is not None else {}
        node_eval: NodeEvaluator

        def root_eval(expr: Node, level: int) -> Any:
            # Index expressions always see the root scope
            return self._reduce(expr, node_eval, level + 1).unwrap()

        node_eval = NodeEvaluator(root, self.functions, root_eval)
        return self._reduce(tree, node_eval)

    def _reduce(self, tree: Node, node_eval: NodeEvaluator, level: int = 1) -> Result:
        return reduce(
            tree, node_eval, max_depth=self.max_depth, lazy_ternary=self.lazy_ternary, level=level
        )


_default_evaluator: Evaluator | None = None
_default_lock = threading.Lock()


def default_evaluator() -> Evaluator:
    global _default_evaluator
    with _default_lock:
        if _default_evaluator is None:
            _default_evaluator = Evaluator()
        return _default_evaluator


def evaluate(source: str, scope: Mapping[str, Any] | None = None) -> Result:
    """Evaluate ``source`` against ``scope`` with the default settings."""
    return default_evaluator().evaluate(source, scope)
