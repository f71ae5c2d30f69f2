"""
The apidsl design language.

Each function describes part of the design by mutating the expression that
is currently being defined. Functions that take a `dsl` callable push the
expression they create and run the callable, so calls nest the same way the
design does:

    api("cellar", lambda: (
        title("Cellar API"),
        metadata("swagger:tag:Backend"),
    ))

    Account = user_type("Account", lambda: (
        attribute("service", String, "Name of service", lambda: (
            metadata("struct:field:name", "ServiceName"),
        )),
    ))

A function called where it does not belong records an error on the
evaluation context and returns None; evaluation carries on so that every
error in a design is reported together.
"""
from typing import Any, Callable, Optional

from apidsl.apidsl_datatypes import (
    APIExpr, AttributeExpr, CompositeExpr, EndpointExpr, Object, ResultTypeExpr,
    ServiceExpr, String, UserTypeExpr, append_metadata,
)
from apidsl.apidsl_eval import current_context

DSL = Optional[Callable[[], Any]]


def metadata(name: str, *values: str) -> None:
    """Attaches key/values to the current attribute, type, API or endpoint.

    Each value list is appended to the values already recorded under the same
    key, so repeated calls build up the list:

        metadata("struct:tag:json", "myName,omitempty")
        metadata("struct:tag:json", "extra")   # -> ["myName,omitempty", "extra"]

    Keys with special meaning to consumers include `struct:field:name`,
    `struct:tag:xxx`, `swagger:tag:xxx`, `swagger:summary` and
    `swagger:extension:xxx`.
    """
    ctx = current_context()
    match ctx.current():
        case CompositeExpr() as expr:
            att = expr.attribute()
            att.metadata = append_metadata(att.metadata, name, *values)
        case AttributeExpr() as expr:
            expr.metadata = append_metadata(expr.metadata, name, *values)
        case APIExpr() as expr:
            expr.metadata = append_metadata(expr.metadata, name, *values)
        case EndpointExpr() as expr:
            expr.metadata = append_metadata(expr.metadata, name, *values)
        case _:
            ctx.incompatible_dsl()


def api(name: str, dsl: DSL = None) -> Optional[APIExpr]:
    """Defines the API. Only one API may be defined per design."""
    ctx = current_context()
    if ctx.current() is not None:
        ctx.incompatible_dsl()
        return None
    if ctx.root.api is not None:
        ctx.report_error('multiple API sections, API "%s" is already defined', ctx.root.api.name)
        return None
    expr = APIExpr(name)
    ctx.root.api = expr
    ctx.execute(dsl, expr)
    return expr


def title(text: str) -> None:
    ctx = current_context()
    match ctx.current():
        case APIExpr() as expr:
            expr.title = text
        case _:
            ctx.incompatible_dsl()


def description(text: str) -> None:
    ctx = current_context()
    match ctx.current():
        case CompositeExpr() as expr:
            expr.attribute().description = text
        case AttributeExpr() | APIExpr() | ServiceExpr() | EndpointExpr() as expr:
            expr.description = text
        case _:
            ctx.incompatible_dsl()


def service(name: str, dsl: DSL = None) -> Optional[ServiceExpr]:
    """Defines a group of endpoints."""
    ctx = current_context()
    if ctx.current() is not None:
        ctx.incompatible_dsl()
        return None
    if ctx.root.service(name) is not None:
        ctx.report_error('service "%s" is defined twice', name)
        return None
    expr = ServiceExpr(name)
    ctx.root.services.append(expr)
    ctx.execute(dsl, expr)
    return expr


def endpoint(name: str, dsl: DSL = None) -> Optional[EndpointExpr]:
    """Defines an endpoint of the current service."""
    ctx = current_context()
    match ctx.current():
        case ServiceExpr() as svc:
            if svc.endpoint(name) is not None:
                ctx.report_error('endpoint "%s" is defined twice in %s', name, svc.eval_name())
                return None
            expr = EndpointExpr(name, svc)
            svc.endpoints.append(expr)
            ctx.execute(dsl, expr)
            return expr
        case _:
            ctx.incompatible_dsl()
            return None


def _register_type(ut: UserTypeExpr, dsl: DSL) -> Optional[UserTypeExpr]:
    ctx = current_context()
    if ctx.current() is not None:
        ctx.incompatible_dsl()
        return None
    if ctx.root.user_type(ut.type_name) is not None:
        ctx.report_error('type "%s" is defined twice', ut.type_name)
        return None
    ctx.root.types.append(ut)
    ctx.execute(dsl, ut)
    return ut


def user_type(name: str, dsl: DSL = None) -> Optional[UserTypeExpr]:
    """Defines a named object type. The DSL declares its attributes."""
    return _register_type(UserTypeExpr(name), dsl)


def result_type(identifier: str, dsl: DSL = None) -> Optional[ResultTypeExpr]:
    """Defines a user type identified by a media type."""
    return _register_type(ResultTypeExpr(identifier), dsl)


def attribute(name: str, type: Any = None, description: Optional[str] = None,
              dsl: DSL = None) -> Optional[AttributeExpr]:
    """Adds an attribute to the current type or object attribute.

    The type defaults to Object when a DSL is given and to String otherwise.
    """
    ctx = current_context()
    match ctx.current():
        case CompositeExpr() as expr:
            parent = expr.attribute()
        case AttributeExpr() as expr:
            parent = expr
        case _:
            ctx.incompatible_dsl()
            return None
    if parent.type is None:
        parent.type = Object()
    if not isinstance(parent.type, Object):
        ctx.report_error("%s cannot have child attributes, its type is not an object", parent.eval_name())
        return None
    if type is None:
        type = Object() if dsl is not None else String
    att = AttributeExpr(name, type, description, parent=ctx.current())
    parent.type[name] = att
    ctx.execute(dsl, att)
    return att


def _endpoint_attribute(kind: str, type: Any, dsl: DSL) -> Optional[AttributeExpr]:
    # payload(lambda: ...) is shorthand for payload(None, lambda: ...)
    if callable(type) and dsl is None:
        type, dsl = None, type
    ctx = current_context()
    match ctx.current():
        case EndpointExpr() as ep:
            if type is None:
                type = Object() if dsl is not None else String
            att = AttributeExpr(kind, type, parent=ep)
            setattr(ep, kind, att)
            ctx.execute(dsl, att)
            return att
        case _:
            ctx.incompatible_dsl()
            return None


def payload(type: Any = None, dsl: DSL = None) -> Optional[AttributeExpr]:
    """Describes the data the current endpoint accepts."""
    return _endpoint_attribute("payload", type, dsl)


def result(type: Any = None, dsl: DSL = None) -> Optional[AttributeExpr]:
    """Describes the data the current endpoint returns."""
    return _endpoint_attribute("result", type, dsl)
