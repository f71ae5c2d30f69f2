from apidsl.apidsl_datatypes import (
    Any, APIExpr, ArrayOf, AttributeExpr, Boolean, Bytes, CompositeExpr, EndpointExpr,
    Float32, Float64, Int, Int32, Int64, MetadataExpr, Object, ResultTypeExpr, RootExpr,
    ServiceExpr, String, UserTypeExpr, append_metadata,
)
from apidsl.apidsl_dsl import (
    api, attribute, description, endpoint, metadata, payload, result, result_type,
    service, title, user_type,
)
from apidsl.apidsl_eval import DSLError, DSLUsageError, EvalContext, MultiError, current_context
from apidsl.apidsl_runtime import DesignRunner, ExecutionResult

__all__ = [
    "Any", "APIExpr", "ArrayOf", "AttributeExpr", "Boolean", "Bytes", "CompositeExpr",
    "EndpointExpr", "Float32", "Float64", "Int", "Int32", "Int64", "MetadataExpr", "Object",
    "ResultTypeExpr", "RootExpr", "ServiceExpr", "String", "UserTypeExpr", "append_metadata",
    "api", "attribute", "description", "endpoint", "metadata", "payload", "result",
    "result_type", "service", "title", "user_type",
    "DSLError", "DSLUsageError", "EvalContext", "MultiError", "current_context",
    "DesignRunner", "ExecutionResult",
]
