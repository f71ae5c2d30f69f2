import inspect
import os

import pytest

from apidsl.apidsl_datatypes import APIExpr, ServiceExpr
from apidsl.apidsl_eval import (
    DSLError, DSLUsageError, EvalContext, MultiError, caller_location, current_context,
)

# --- Stack ---

def test_current_is_none_at_top_level():
    ctx = EvalContext()
    assert ctx.current() is None
    assert ctx.stack == []


def test_execute_pushes_and_pops():
    ctx = EvalContext()
    expr = APIExpr("calc")
    seen = []
    assert ctx.execute(lambda: seen.append(ctx.current()), expr) is True
    assert seen == [expr]
    assert ctx.current() is None


def test_execute_nests():
    ctx = EvalContext()
    outer, inner = ServiceExpr("a"), APIExpr("b")
    seen = []

    def dsl():
        seen.append(ctx.current())
        ctx.execute(lambda: seen.append(ctx.current()), inner)
        seen.append(ctx.current())

    ctx.execute(dsl, outer)
    assert seen == [outer, inner, outer]


def test_execute_without_dsl_leaves_stack_alone():
    ctx = EvalContext()
    assert ctx.execute(None, APIExpr("calc")) is True
    assert ctx.stack == []


def test_execute_pops_on_exception():
    ctx = EvalContext()

    def boom():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        ctx.execute(boom, APIExpr("calc"))
    assert ctx.stack == []


def test_execute_returns_false_when_dsl_reports():
    ctx = EvalContext()
    assert ctx.execute(lambda: ctx.report_error("bad"), APIExpr("calc")) is False
    assert ctx.execute(lambda: None, APIExpr("calc")) is True


# --- Error reporting ---

def test_report_error_records_caller_location():
    ctx = EvalContext()
    ctx.report_error("duplicate %s %r", "service", "calc")
    line = inspect.currentframe().f_lineno - 1
    err = ctx.errors[0]
    assert err.message == "duplicate service 'calc'"
    assert os.path.basename(err.file) == os.path.basename(__file__)
    assert err.line == line
    assert str(err) == f"{err.file}:{line}: duplicate service 'calc'"


def test_report_error_without_args_keeps_percent_signs():
    ctx = EvalContext()
    ctx.report_error("100% wrong")
    assert ctx.errors[0].message == "100% wrong"


def test_incompatible_dsl_messages():
    ctx = EvalContext()
    ctx.incompatible_dsl("metadata")
    ctx.execute(lambda: ctx.incompatible_dsl("metadata"), ServiceExpr("calc"))
    assert [e.message for e in ctx.errors] == [
        "invalid use of metadata at top level",
        'invalid use of metadata in service "calc"',
    ]


def test_errors_as_exception():
    ctx = EvalContext()
    assert ctx.errors_as_exception() is None
    ctx.report_error("first")
    ctx.report_error("second")
    exc = ctx.errors_as_exception()
    assert isinstance(exc, MultiError)
    assert len(exc) == 2
    assert "first" in str(exc) and "second" in str(exc)


def test_dsl_error_without_location():
    assert str(DSLError("oops")) == "oops"


def test_caller_location_skips_package_frames():
    file, line = caller_location()
    assert os.path.basename(file) == os.path.basename(__file__)
    assert line == inspect.currentframe().f_lineno - 2


# --- Side effects ---

def test_emit_records_side_effects():
    ctx = EvalContext()
    ctx.emit("debug", "loaded", 3, "types")
    ctx.emit(["stdout", "log"], "done")
    assert ctx.side_effects == [
        {'topics': ['debug'], 'message': 'loaded 3 types'},
        {'topics': ['stdout', 'log'], 'message': 'done'},
    ]


# --- Activation ---

def test_no_active_context_raises():
    with pytest.raises(DSLUsageError):
        current_context()


def test_activate_nests_and_restores():
    a, b = EvalContext(), EvalContext()
    with a.activate():
        assert current_context() is a
        with b.activate():
            assert current_context() is b
        assert current_context() is a
    with pytest.raises(DSLUsageError):
        current_context()


def test_independent_contexts_do_not_share_state():
    a, b = EvalContext(), EvalContext()
    expr = APIExpr("calc")
    with a.activate():
        a.execute(lambda: b.report_error("only b"), expr)
    assert a.errors == []
    assert len(b.errors) == 1
    assert a.root is not b.root
