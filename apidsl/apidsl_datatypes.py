"""
Defines the expression types built by the apidsl design language.

A design is a tree of expressions: one API, services holding endpoints,
and user types holding attributes. Builder functions in apidsl_dsl create
these objects while the evaluation context tracks which one is current.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


# =================================================================
# Metadata
# =================================================================

class MetadataExpr(dict):
    """Maps a metadata key to the ordered list of values recorded for it.

    Successive appends with the same key extend the list, so the values
    reflect call order. A key with an empty list is still present.
    """

    def has(self, key: str) -> bool:
        return key in self

    def last(self, key: str) -> Optional[str]:
        """Returns the last value recorded for key, or None."""
        values = self.get(key)
        if not values:
            return None
        return values[-1]

    def __repr__(self) -> str:
        return f"MetadataExpr({dict.__repr__(self)})"


def append_metadata(metadata: Optional[MetadataExpr], name: str, *values: str) -> MetadataExpr:
    """Creates the store if needed and appends values under name.

    The (possibly new) store is returned so the owner can keep it.
    """
    if metadata is None:
        metadata = MetadataExpr()
    metadata.setdefault(name, []).extend(values)
    return metadata


# =================================================================
# Data Types
# =================================================================

class Primitive:
    """A built-in scalar type such as String or Int."""
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"Primitive<{self.name}>"


Boolean = Primitive("Boolean")
Int = Primitive("Int")
Int32 = Primitive("Int32")
Int64 = Primitive("Int64")
Float32 = Primitive("Float32")
Float64 = Primitive("Float64")
String = Primitive("String")
Bytes = Primitive("Bytes")
Any = Primitive("Any")


class Object(dict):
    """An ordered set of named attributes (name -> AttributeExpr)."""

    def __repr__(self) -> str:
        return f"Object([{', '.join(self.keys())}])"


class ArrayOf:
    """A list type whose items are of the element type."""
    def __init__(self, element: object):
        self.element = element

    def __repr__(self) -> str:
        return f"ArrayOf({self.element!r})"

    def __eq__(self, other):
        return isinstance(other, ArrayOf) and self.element is other.element


# =================================================================
# Expressions
# =================================================================

class Expr(ABC):
    """Abstract base class for every object a design is built from."""

    @abstractmethod
    def eval_name(self) -> str:
        """A short description of the expression used in error messages."""
        raise NotImplementedError


class AttributeExpr(Expr):
    """A named, typed field. Attributes nest when their type is an Object."""
    def __init__(self, name: str, type: object = None, description: Optional[str] = None,
                 parent: Optional[Expr] = None):
        self.name = name
        self.type = type
        self.description = description
        self.parent = parent
        self.metadata: Optional[MetadataExpr] = None

    def eval_name(self) -> str:
        if self.parent is not None:
            return f'attribute "{self.name}" of {self.parent.eval_name()}'
        return f'attribute "{self.name}"'

    def __repr__(self) -> str:
        return f"<AttributeExpr name={self.name!r} type={self.type!r}>"


class CompositeExpr(Expr):
    """An expression that wraps an inner attribute.

    Anything recorded on a composite (attributes, description, metadata)
    lands on the wrapped attribute.
    """

    @abstractmethod
    def attribute(self) -> AttributeExpr:
        raise NotImplementedError


class UserTypeExpr(CompositeExpr):
    """A named object type declared at the top level of a design."""
    def __init__(self, type_name: str, attribute: Optional[AttributeExpr] = None):
        self.type_name = type_name
        if attribute is None:
            attribute = AttributeExpr(type_name, Object(), parent=self)
        self.attribute_expr = attribute

    def attribute(self) -> AttributeExpr:
        return self.attribute_expr

    def eval_name(self) -> str:
        return f'type "{self.type_name}"'

    def __repr__(self) -> str:
        return f"<UserTypeExpr name={self.type_name!r}>"


class ResultTypeExpr(UserTypeExpr):
    """A user type identified by a media type, used to describe responses."""
    def __init__(self, identifier: str, type_name: Optional[str] = None):
        self.identifier = identifier
        super().__init__(type_name or type_name_from_identifier(identifier))

    def eval_name(self) -> str:
        return f'result type "{self.identifier}"'

    def __repr__(self) -> str:
        return f"<ResultTypeExpr identifier={self.identifier!r}>"


class APIExpr(Expr):
    """The top-level description of the API."""
    def __init__(self, name: str):
        self.name = name
        self.title: Optional[str] = None
        self.description: Optional[str] = None
        self.metadata: Optional[MetadataExpr] = None

    def eval_name(self) -> str:
        return f'API "{self.name}"'

    def __repr__(self) -> str:
        return f"<APIExpr name={self.name!r}>"


class ServiceExpr(Expr):
    """A group of endpoints. Services do not carry metadata."""
    def __init__(self, name: str):
        self.name = name
        self.description: Optional[str] = None
        self.endpoints: List['EndpointExpr'] = []

    def endpoint(self, name: str) -> Optional['EndpointExpr']:
        for e in self.endpoints:
            if e.name == name:
                return e
        return None

    def eval_name(self) -> str:
        return f'service "{self.name}"'

    def __repr__(self) -> str:
        return f"<ServiceExpr name={self.name!r} endpoints={len(self.endpoints)}>"


class EndpointExpr(Expr):
    """A single operation exposed by a service."""
    def __init__(self, name: str, service: ServiceExpr):
        self.name = name
        self.service = service
        self.description: Optional[str] = None
        self.payload: Optional[AttributeExpr] = None
        self.result: Optional[AttributeExpr] = None
        self.metadata: Optional[MetadataExpr] = None

    def eval_name(self) -> str:
        return f'endpoint "{self.name}" of {self.service.eval_name()}'

    def __repr__(self) -> str:
        return f"<EndpointExpr name={self.name!r} service={self.service.name!r}>"


class RootExpr(Expr):
    """Holds everything declared by one design evaluation."""
    def __init__(self):
        self.api: Optional[APIExpr] = None
        self.services: List[ServiceExpr] = []
        self.types: List[UserTypeExpr] = []

    def service(self, name: str) -> Optional[ServiceExpr]:
        for s in self.services:
            if s.name == name:
                return s
        return None

    def user_type(self, name: str) -> Optional[UserTypeExpr]:
        for t in self.types:
            if t.type_name == name:
                return t
        return None

    def eval_name(self) -> str:
        return "design"

    def __repr__(self) -> str:
        api = self.api.name if self.api else None
        return f"<RootExpr api={api!r} services={len(self.services)} types={len(self.types)}>"


def type_name_from_identifier(identifier: str) -> str:
    """Derives a type name from a media type, e.g. application/vnd.goa.bottle -> GoaBottle."""
    base = identifier.split(";")[0].strip().rsplit("/", 1)[-1].split("+")[0]
    if base.startswith("vnd."):
        base = base[4:]
    parts = [p for p in base.replace("-", ".").replace("_", ".").split(".") if p]
    return "".join(p[:1].upper() + p[1:] for p in parts)
