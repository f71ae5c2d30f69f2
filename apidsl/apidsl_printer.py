"""
A pretty-printer for apidsl designs.
"""
from apidsl.apidsl_datatypes import (
    APIExpr, ArrayOf, AttributeExpr, EndpointExpr, MetadataExpr, Object, Primitive,
    ResultTypeExpr, RootExpr, ServiceExpr, UserTypeExpr,
)


class Printer:
    """Formats design expressions back into readable design source."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        # Subclasses of user types not registered explicitly
        if isinstance(obj, UserTypeExpr):
            return self._pformat_user_type
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            type(None): self._pformat_none,
            Primitive: self._pformat_primitive,
            ArrayOf: self._pformat_array,
            MetadataExpr: self._pformat_metadata,
            RootExpr: self._pformat_root,
            APIExpr: self._pformat_api,
            ServiceExpr: self._pformat_service,
            EndpointExpr: self._pformat_endpoint,
            UserTypeExpr: self._pformat_user_type,
            ResultTypeExpr: self._pformat_user_type,
            AttributeExpr: self._pformat_attribute,
        }

    def _call(self, name, args, body, level, dsl_keyword=False):
        """Formats `name(args, lambda: (...))` with one body statement per line."""
        head = ", ".join(args)
        if not body:
            return f"{name}({head})"
        lam = "dsl=lambda: (" if dsl_keyword else "lambda: ("
        opener = f"{name}({head}, {lam}" if head else f"{name}({lam}"
        indent = self._indent_char * (level + 1)
        lines = [opener]
        lines.extend(f"{indent}{stmt}," for stmt in body)
        lines.append(f"{self._indent_char * level}))")
        return "\n".join(lines)

    def _pformat_str(self, obj, level):
        return repr(obj)

    def _pformat_none(self, obj, level):
        return 'None'

    def _pformat_primitive(self, obj, level):
        return obj.name

    def _pformat_array(self, obj, level):
        return f"ArrayOf({self._type_ref(obj.element, level)})"

    def _type_ref(self, t, level):
        # User types are referenced by name, not expanded inline.
        if isinstance(t, UserTypeExpr):
            return t.type_name
        return self.pformat(t, level)

    def _metadata_stmts(self, metadata, level):
        if not metadata:
            return []
        stmts = []
        for key, values in metadata.items():
            args = [self._pformat_str(key, level)] + [self._pformat_str(v, level) for v in values]
            stmts.append(f"metadata({', '.join(args)})")
        return stmts

    def _pformat_metadata(self, obj, level):
        sep = "\n" + self._indent_char * level
        return sep.join(self._metadata_stmts(obj, level))

    def _attribute_body(self, att, level, with_description=True):
        body = []
        if with_description and att.description:
            body.append(f"description({self._pformat_str(att.description, level)})")
        body.extend(self._metadata_stmts(att.metadata, level))
        if isinstance(att.type, Object):
            body.extend(self.pformat(child, level + 1) for child in att.type.values())
        return body

    def _object_arg(self, t, level):
        # An object with no children needs an explicit type, the default would be String.
        if not isinstance(t, Object):
            return self._type_ref(t, level)
        if not t:
            return "Object()"
        return None

    def _pformat_attribute(self, obj, level):
        args = [self._pformat_str(obj.name, level)]
        type_arg = self._object_arg(obj.type, level)
        if type_arg is not None:
            args.append(type_arg)
        body = self._attribute_body(obj, level, with_description=False)
        if obj.description:
            if len(args) == 1:
                args.append("None")
            args.append(self._pformat_str(obj.description, level))
        # The DSL is the fourth positional argument, name it when type or description is left out.
        return self._call("attribute", args, body, level, dsl_keyword=len(args) < 3)

    def _pformat_user_type(self, obj, level):
        if isinstance(obj, ResultTypeExpr):
            name, args = "result_type", [self._pformat_str(obj.identifier, level)]
        else:
            name, args = "user_type", [self._pformat_str(obj.type_name, level)]
        return self._call(name, args, self._attribute_body(obj.attribute(), level), level)

    def _pformat_api(self, obj, level):
        body = []
        if obj.title:
            body.append(f"title({self._pformat_str(obj.title, level)})")
        if obj.description:
            body.append(f"description({self._pformat_str(obj.description, level)})")
        body.extend(self._metadata_stmts(obj.metadata, level))
        return self._call("api", [self._pformat_str(obj.name, level)], body, level)

    def _pformat_endpoint_attribute(self, kind, att, level):
        type_arg = self._object_arg(att.type, level)
        args = [] if type_arg is None else [type_arg]
        return self._call(kind, args, self._attribute_body(att, level), level)

    def _pformat_endpoint(self, obj, level):
        body = []
        if obj.description:
            body.append(f"description({self._pformat_str(obj.description, level)})")
        if obj.payload is not None:
            body.append(self._pformat_endpoint_attribute("payload", obj.payload, level + 1))
        if obj.result is not None:
            body.append(self._pformat_endpoint_attribute("result", obj.result, level + 1))
        body.extend(self._metadata_stmts(obj.metadata, level))
        return self._call("endpoint", [self._pformat_str(obj.name, level)], body, level)

    def _pformat_service(self, obj, level):
        body = []
        if obj.description:
            body.append(f"description({self._pformat_str(obj.description, level)})")
        body.extend(self.pformat(e, level + 1) for e in obj.endpoints)
        return self._call("service", [self._pformat_str(obj.name, level)], body, level)

    def _pformat_root(self, obj, level):
        blocks = []
        if obj.api is not None:
            blocks.append(self.pformat(obj.api, level))
        blocks.extend(self.pformat(t, level) for t in obj.types)
        blocks.extend(self.pformat(s, level) for s in obj.services)
        return "\n\n".join(blocks)
