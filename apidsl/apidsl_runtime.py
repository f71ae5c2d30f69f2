# apidsl_runtime.py

import os
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional

import apidsl.apidsl_datatypes as datatypes
import apidsl.apidsl_dsl as dsl
from apidsl.apidsl_datatypes import RootExpr
from apidsl.apidsl_eval import DSLError, EvalContext

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

# Names made available to design sources executed by run_source/run_file.
DESIGN_GLOBALS: Dict[str, Any] = {
    "api": dsl.api,
    "title": dsl.title,
    "description": dsl.description,
    "service": dsl.service,
    "endpoint": dsl.endpoint,
    "user_type": dsl.user_type,
    "result_type": dsl.result_type,
    "attribute": dsl.attribute,
    "payload": dsl.payload,
    "result": dsl.result,
    "metadata": dsl.metadata,
    "Boolean": datatypes.Boolean,
    "Int": datatypes.Int,
    "Int32": datatypes.Int32,
    "Int64": datatypes.Int64,
    "Float32": datatypes.Float32,
    "Float64": datatypes.Float64,
    "String": datatypes.String,
    "Bytes": datatypes.Bytes,
    "Any": datatypes.Any,
    "ArrayOf": datatypes.ArrayOf,
    "Object": datatypes.Object,
}


@dataclass
class ExecutionResult:
    """The structured result of a design evaluation."""
    status: Literal['success', 'error']
    value: Optional[RootExpr] = None
    errors: List[DSLError] = field(default_factory=list)
    error_message: Optional[str] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Formats an error message with the line number if there is a single located error."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if len(self.errors) == 1 and self.errors[0].line is not None:
            if not msg.startswith("Error on line "):
                return f"Error on line {self.errors[0].line}: {msg}"
        return msg


class DesignRunner:
    """Evaluates apidsl designs."""

    def __init__(self, source_dir: Optional[str] = None):
        self.source_dir = source_dir
        self.context: Optional[EvalContext] = None
        self._current_source: Optional[str] = None
        self._current_filename: Optional[str] = None

    def _source_context(self, source: str, line: int, radius: int = 2) -> str:
        lines = source.splitlines()
        if not line or line < 1 or line > len(lines):
            return ""
        start = max(1, line - radius)
        end = min(len(lines), line + radius)
        width = len(str(end))
        out = []
        for i in range(start, end + 1):
            prefix = ">" if i == line else " "
            ln = str(i).rjust(width)
            out.append(f"{prefix} {ln} | {lines[i - 1]}")
        return "\n".join(out)

    def _format_dsl_errors(self, errors: List[DSLError]) -> str:
        parts = []
        for err in errors:
            part = str(err)
            source = self._current_source
            if source is not None and err.file == self._current_filename and err.line is not None:
                ctx_lines = self._source_context(source, err.line)
                if ctx_lines:
                    part = f"{part}\n{ctx_lines}"
            parts.append(part)
        return "\n".join(parts)

    def _format_runtime_error(self, e: Exception) -> str:
        msg = f"InternalError: {type(e).__name__}: {e}"
        # Point at the innermost frame of the design, not the library.
        for fr in reversed(traceback.extract_tb(e.__traceback__)):
            if not os.path.abspath(fr.filename).startswith(_PACKAGE_DIR + os.sep):
                msg = f"{msg} ({fr.filename}, line {fr.lineno})"
                source = self._current_source
                if source is not None and fr.filename == self._current_filename:
                    ctx_lines = self._source_context(source, fr.lineno)
                    if ctx_lines:
                        msg = f"{msg}\n{ctx_lines}"
                break
        return msg

    def run(self, design: Callable[[], Any]) -> ExecutionResult:
        """The main entry point: evaluates a design callable in a fresh context."""
        self._current_source = None
        self._current_filename = None
        return self._evaluate(design)

    def _evaluate(self, design: Callable[[], Any]) -> ExecutionResult:
        ctx = EvalContext()
        self.context = ctx
        try:
            with ctx.activate():
                design()
        except Exception as e:
            err_msg = self._format_runtime_error(e)
            ctx.emit('stderr', err_msg)
            return ExecutionResult(
                status='error',
                value=ctx.root,
                errors=list(ctx.errors),
                error_message=err_msg,
                side_effects=ctx.side_effects,
            )

        if ctx.errors:
            err_msg = self._format_dsl_errors(ctx.errors)
            # Emit consolidated stderr side-effect
            ctx.emit('stderr', err_msg)
            return ExecutionResult(
                status='error',
                value=ctx.root,
                errors=list(ctx.errors),
                error_message=err_msg,
                side_effects=ctx.side_effects,
            )
        return ExecutionResult(status='success', value=ctx.root, side_effects=ctx.side_effects)

    def run_source(self, source_code: str, filename: str = "<design>") -> ExecutionResult:
        """Executes Python design source with the DSL functions in scope."""
        self._current_source = source_code
        self._current_filename = filename
        try:
            code = compile(source_code, filename, "exec")
        except SyntaxError as e:
            msg = f"SyntaxError: {e.msg} (line {e.lineno})"
            return ExecutionResult(
                status='error',
                error_message=msg,
                errors=[DSLError(msg, filename, e.lineno)],
                side_effects=[{'topics': ['stderr'], 'message': msg}],
            )
        namespace = dict(DESIGN_GLOBALS)
        namespace["__name__"] = "__design__"
        namespace["__file__"] = filename
        return self._evaluate(lambda: exec(code, namespace))

    def run_file(self, file_path: str) -> ExecutionResult:
        p = Path(file_path)
        if not p.is_absolute():
            p = Path(self.source_dir or os.getcwd()) / p
        try:
            source = p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self._read_error(f"Error: file not found: {file_path}")
        except (OSError, UnicodeDecodeError) as e:
            return self._read_error(f"Error: cannot read {file_path}: {e}")
        return self.run_source(source, str(p))

    def _read_error(self, msg: str) -> ExecutionResult:
        return ExecutionResult(
            status='error',
            error_message=msg,
            side_effects=[{'topics': ['stderr'], 'message': msg}],
        )
