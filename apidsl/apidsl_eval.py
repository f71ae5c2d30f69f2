"""
The apidsl evaluation context.

An EvalContext tracks the expression currently being defined as builder
calls nest, and collects DSL usage errors so that a whole design can be
checked in one pass. Exactly one context is active while a design runs;
DSL functions find it through current_context().
"""
from __future__ import annotations

import inspect
import os
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from apidsl.apidsl_datatypes import Expr, RootExpr

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

_active_context: ContextVar[Optional['EvalContext']] = ContextVar("apidsl_active_context", default=None)


class DSLUsageError(Exception):
    """Raised when a DSL function is called while no design is being evaluated."""


@dataclass
class DSLError:
    """A single authoring error with the design source location that caused it."""
    message: str
    file: Optional[str] = None
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.file and self.line is not None:
            return f"{self.file}:{self.line}: {self.message}"
        return self.message


class MultiError(Exception):
    """All the errors collected while evaluating a design."""
    def __init__(self, errors: List[DSLError]):
        super().__init__("\n".join(str(e) for e in errors))
        self.errors = list(errors)

    def __len__(self) -> int:
        return len(self.errors)


def caller_location() -> tuple[Optional[str], Optional[int]]:
    """Returns the file and line of the innermost frame outside this package."""
    frame = inspect.currentframe()
    try:
        while frame is not None:
            filename = frame.f_code.co_filename
            if not os.path.abspath(filename).startswith(_PACKAGE_DIR + os.sep):
                return filename, frame.f_lineno
            frame = frame.f_back
        return None, None
    finally:
        del frame


def _calling_dsl_name() -> Optional[str]:
    # Innermost public function of apidsl_dsl is the one the author called.
    frame = inspect.currentframe()
    try:
        while frame is not None:
            code = frame.f_code
            if code.co_filename.endswith("apidsl_dsl.py") and not code.co_name.startswith("_"):
                return code.co_name
            frame = frame.f_back
        return None
    finally:
        del frame


class EvalContext:
    """The state of one design evaluation."""

    def __init__(self, root: Optional[RootExpr] = None):
        self.root = root if root is not None else RootExpr()
        # Expressions under construction, innermost last.
        self.stack: List[Expr] = []
        self.errors: List[DSLError] = []
        self.side_effects: List[Dict[str, Any]] = []

    def current(self) -> Optional[Expr]:
        """Returns the expression currently being defined, None at the top level."""
        if not self.stack:
            return None
        return self.stack[-1]

    def execute(self, dsl: Optional[Callable[[], Any]], expr: Expr) -> bool:
        """Runs dsl with expr as the current expression.

        Returns False if the DSL reported any error.
        """
        if dsl is None:
            return True
        before = len(self.errors)
        self.stack.append(expr)
        try:
            dsl()
        finally:
            self.stack.pop()
        return len(self.errors) == before

    def report_error(self, fmt: str, *args: Any) -> None:
        file, line = caller_location()
        message = fmt % args if args else fmt
        self.errors.append(DSLError(message, file, line))

    def incompatible_dsl(self, dsl_name: Optional[str] = None) -> None:
        """Records a DSL function call made where it is not allowed."""
        name = dsl_name or _calling_dsl_name() or "DSL"
        cur = self.current()
        if cur is None:
            self.report_error("invalid use of %s at top level", name)
        else:
            self.report_error("invalid use of %s in %s", name, cur.eval_name())

    def errors_as_exception(self) -> Optional[MultiError]:
        if not self.errors:
            return None
        return MultiError(self.errors)

    def emit(self, topic_or_topics, *message_parts) -> None:
        topics = [topic_or_topics] if isinstance(topic_or_topics, str) else list(topic_or_topics)
        message = " ".join(str(p) for p in message_parts)
        self.side_effects.append({'topics': topics, 'message': message})

    @contextmanager
    def activate(self):
        """Makes this context the one DSL functions see inside the with block."""
        token = _active_context.set(self)
        try:
            yield self
        finally:
            _active_context.reset(token)


def current_context() -> EvalContext:
    ctx = _active_context.get()
    if ctx is None:
        raise DSLUsageError("DSL functions can only be called while a design is being evaluated")
    return ctx
