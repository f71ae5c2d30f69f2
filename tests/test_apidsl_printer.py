import textwrap

from apidsl.apidsl_datatypes import MetadataExpr, Object, String, ArrayOf, Int
from apidsl.apidsl_dsl import (
    api, attribute, description, endpoint, metadata, payload, result, result_type, service,
    title, user_type,
)
from apidsl.apidsl_printer import Printer
from apidsl.apidsl_runtime import DesignRunner


def build(design):
    res = DesignRunner().run(design)
    assert res.status == 'success', res.error_message
    return res.value


def dedent(s: str) -> str:
    return textwrap.dedent(s).strip("\n")


def test_pformat_metadata():
    md = MetadataExpr({"a": ["1", "2"], "b": []})
    assert Printer().pformat(md) == "metadata('a', '1', '2')\nmetadata('b')"


def test_pformat_api():
    root = build(lambda: api("calc", lambda: (
        title("Calc"),
        metadata("swagger:tag:Backend"),
    )))
    assert Printer().pformat(root.api) == dedent("""
        api('calc', lambda: (
          title('Calc'),
          metadata('swagger:tag:Backend'),
        ))
    """)


def test_pformat_bare_api():
    root = build(lambda: api("calc"))
    assert Printer().pformat(root.api) == "api('calc')"


def test_pformat_user_type_with_metadata():
    root = build(lambda: user_type("Account", lambda: (
        attribute("service", String, "Name of service", lambda: (
            metadata("struct:field:name", "ServiceName"),
        )),
        attribute("tags", ArrayOf(String)),
    )))
    assert Printer().pformat(root.types[0]) == dedent("""
        user_type('Account', lambda: (
          attribute('service', String, 'Name of service', lambda: (
            metadata('struct:field:name', 'ServiceName'),
          )),
          attribute('tags', ArrayOf(String)),
        ))
    """)


def test_pformat_result_type_with_description():
    root = build(lambda: result_type("application/vnd.bottle", lambda: (
        description("A bottle"),
        attribute("id", Int),
    )))
    assert Printer().pformat(root.types[0]) == dedent("""
        result_type('application/vnd.bottle', lambda: (
          description('A bottle'),
          attribute('id', Int),
        ))
    """)


def test_pformat_service():
    def design():
        sum_type = user_type("Sum")
        service("calc", lambda: endpoint("add", lambda: (
            payload(lambda: attribute("a", Int)),
            result(sum_type),
            metadata("swagger:summary", "Add"),
        )))
    root = build(design)
    assert Printer().pformat(root.services[0]) == dedent("""
        service('calc', lambda: (
          endpoint('add', lambda: (
            payload(lambda: (
              attribute('a', Int),
            )),
            result(Sum),
            metadata('swagger:summary', 'Add'),
          )),
        ))
    """)


def test_pformat_root_separates_blocks():
    def design():
        api("calc")
        user_type("Sum")
        service("calc")
    root = build(design)
    assert Printer().pformat(root) == "api('calc')\n\nuser_type('Sum')\n\nservice('calc')"


def test_pformat_empty_object_is_explicit():
    def design():
        user_type("Blob", lambda: (
            attribute("blob", Object()),
            attribute("raw", Object(), "Raw data"),
        ))
        service("store", lambda: endpoint("put", lambda: payload(Object())))
    root = build(design)
    assert Printer().pformat(root.types[0]) == dedent("""
        user_type('Blob', lambda: (
          attribute('blob', Object()),
          attribute('raw', Object(), 'Raw data'),
        ))
    """)
    assert "payload(Object())" in Printer().pformat(root.services[0])


def test_printed_design_evaluates_to_same_design():
    def design():
        api("calc", lambda: (title("Calc"), metadata("swagger:tag:Backend")))
        user_type("Sum", lambda: (
            attribute("blob", Object()),
            attribute("value", Int, "The sum", lambda: metadata("struct:tag:json", "value", "x")),
            attribute("owner", dsl=lambda: attribute("email")),
        ))
        service("calc", lambda: endpoint("add", lambda: (
            payload(Object()),
            result(lambda: attribute("a", Int)),
            metadata("swagger:summary", "Add"),
        )))
    root = build(design)
    text = Printer().pformat(root)
    res = DesignRunner().run_source(text)
    assert res.status == 'success', res.error_message
    again = res.value
    fields = again.user_type("Sum").attribute().type
    assert isinstance(fields["blob"].type, Object)
    assert isinstance(again.service("calc").endpoint("add").payload.type, Object)
    assert Printer().pformat(again) == text


def test_pformat_unknown_falls_back_to_repr():
    assert Printer().pformat(42) == "42"
    assert Printer().pformat(None) == "None"
