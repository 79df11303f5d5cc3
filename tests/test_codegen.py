"""Tests for model building and module rendering."""

from __future__ import annotations

import ast
import asyncio
import inspect
import itertools
from decimal import Decimal
from pathlib import Path
from types import ModuleType
from typing import Any, Optional, get_type_hints

from pydantic import BaseModel

from wsdl_to_pydantic_generator.codegen_ast import render_module
from wsdl_to_pydantic_generator.model_types import Capability, GeneratedModule, GeneratorOptions
from wsdl_to_pydantic_generator.module_loading import load_module_from_path
from wsdl_to_pydantic_generator.qname import QName
from wsdl_to_pydantic_generator.schema_to_models import (
    ModuleBuilder,
    build_enum_def,
    build_model_def,
    client_class_name,
)
from wsdl_to_pydantic_generator.type_mapper import TypeMapper
from wsdl_to_pydantic_generator.wsdl_parser import parse_wsdl
from wsdl_to_pydantic_generator.xsd_model import (
    Attribute,
    AttributeUse,
    ComplexType,
    Enumeration,
    ListType,
    Restriction,
    Sequence,
    SequenceElement,
)

from fixture_helpers import fixture_path

_COUNTER = itertools.count(1)


class _RecordingClient:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    async def call_with_soap_action(
        self,
        operation: str,
        soap_action: Optional[str],
        namespace: Optional[str],
        element_form_qualified: bool,
        request: Any,
    ) -> str:
        self.calls.append((operation, soap_action, namespace, element_form_qualified, request))
        return "ok"


def _build(
    source: Path | bytes,
    options: Optional[GeneratorOptions] = None,
) -> tuple[GeneratedModule, list[str]]:
    builder = ModuleBuilder(parse_wsdl(source).model, options or GeneratorOptions())
    return builder.build(), builder.warnings


def _load(module: GeneratedModule, tmp_path: Path) -> ModuleType:
    name = f"generated_codegen_{next(_COUNTER)}"
    path = tmp_path / f"{name}.py"
    path.write_text(render_module(module), encoding="utf-8")
    loaded = load_module_from_path(module_name=name, module_path=path)
    for value in vars(loaded).values():
        if isinstance(value, type) and issubclass(value, BaseModel) and value is not BaseModel:
            value.model_rebuild(_types_namespace=vars(loaded))
    return loaded


def _fields(module: GeneratedModule, class_name: str) -> list[tuple[str, str, str, bool]]:
    (model,) = [model for model in module.models if model.name == class_name]
    return [
        (field.name, field.source_name, field.annotation, field.required)
        for field in model.fields
    ]


def _imported_names(source: str, module_name: str) -> list[str]:
    for node in ast.walk(ast.parse(source)):
        if isinstance(node, ast.ImportFrom) and node.module == module_name:
            return [alias.name for alias in node.names]
    return []


def test_user_fields_follow_occurrence_rules() -> None:
    module, _ = _build(fixture_path("user_service.wsdl"))
    assert _fields(module, "User") == [
        ("id", "@id", "int", True),
        ("user_name", "userName", "str", True),
        ("email", "email", "str", True),
        ("status", "status", "UserStatus", True),
        ("birth_date", "birthDate", "Optional[date]", False),
        ("balance", "balance", "Optional[Decimal]", False),
        ("tags", "tags", "Optional[list[str]]", False),
        ("addresses", "addresses", "list[Address]", True),
    ]


def test_generated_models_validate_and_dump_wire_names(tmp_path: Path) -> None:
    module, _ = _build(fixture_path("user_service.wsdl"))
    loaded = _load(module, tmp_path)

    user = loaded.User.model_validate(
        {
            "@id": 7,
            "userName": "ada",
            "email": "ada@example.com",
            "status": "pending-review",
            "balance": None,
            "addresses": [{"street": "1 Main St", "city": "Springfield"}],
        }
    )
    assert user.id == 7
    assert user.user_name == "ada"
    assert user.status is loaded.UserStatus.PENDING_REVIEW
    assert user.birth_date is None
    assert user.tags is None
    assert user.addresses[0].postal_code is None

    dumped = user.model_dump(by_alias=True, exclude_none=True, mode="json")
    assert list(dumped) == ["@id", "userName", "email", "status", "addresses"]
    assert dumped["addresses"] == [{"street": "1 Main St", "city": "Springfield"}]

    by_name = loaded.Address(street="x", city="y", postal_code="12345")
    assert by_name.model_dump(by_alias=True)["postalCode"] == "12345"


def test_enums_carry_facet_values(tmp_path: Path) -> None:
    module, _ = _build(fixture_path("user_service.wsdl"))
    (status,) = module.enums
    assert [(member.name, member.value) for member in status.members] == [
        ("ACTIVE", "Active"),
        ("INACTIVE", "Inactive"),
        ("PENDING_REVIEW", "pending-review"),
    ]

    loaded = _load(module, tmp_path)
    assert issubclass(loaded.UserStatus, str)
    assert [member.value for member in loaded.UserStatus] == ["Active", "Inactive", "pending-review"]
    assert loaded.UserStatus("Active") is loaded.UserStatus.ACTIVE


def test_only_field_less_types_get_a_default_constructor(tmp_path: Path) -> None:
    module, _ = _build(fixture_path("user_service.wsdl"))
    constructible = [model.name for model in module.models if model.default_constructible]
    assert constructible == ["Ping"]

    loaded = _load(module, tmp_path)
    assert loaded.Ping.default() == loaded.Ping()
    assert "default" not in vars(loaded.User)


def test_element_aliases_and_module_constants(tmp_path: Path) -> None:
    module, _ = _build(fixture_path("user_service.wsdl"))
    assert [(alias.name, alias.target) for alias in module.aliases] == [
        ("GetUser", "UserLookup"),
        ("GetUserResponse", "User"),
        ("GetAllVersionsResponse", "VersionList"),
        ("PingRequest", "Ping"),
    ]

    loaded = _load(module, tmp_path)
    assert loaded.GetUser is loaded.UserLookup
    assert loaded.GetUserResponse is loaded.User
    assert loaded.TARGET_NAMESPACE == "http://example.com/users"
    assert loaded.ELEMENT_FORM_QUALIFIED is True
    assert loaded.DEFAULT_ENDPOINT == "http://example.com/users/soap"


def test_client_methods_delegate_to_the_runtime(tmp_path: Path) -> None:
    module, _ = _build(fixture_path("user_service.wsdl"))
    assert module.client.name == "UserServiceClient"
    assert [operation.method_name for operation in module.client.operations] == [
        "get_user",
        "get_all_versions",
        "ping",
    ]

    loaded = _load(module, tmp_path)
    runtime = _RecordingClient()
    client = loaded.UserServiceClient(runtime)
    request = loaded.GetUser(user_id=1)

    assert asyncio.run(client.get_user(request)) == "ok"
    asyncio.run(client.get_all_versions())
    asyncio.run(client.ping(loaded.Ping.default()))

    assert runtime.calls == [
        ("getUser", "http://example.com/users/getUser", "http://example.com/users", True, request),
        ("getAllVersions", None, "http://example.com/users", True, None),
        ("ping", None, "http://example.com/users", True, loaded.Ping()),
    ]


def test_unresolved_payloads_use_the_placeholder(tmp_path: Path) -> None:
    module, warnings = _build(fixture_path("user_service.wsdl"))
    operations = {operation.operation_name: operation for operation in module.client.operations}

    get_all_versions = operations["getAllVersions"]
    assert get_all_versions.input_annotation == "None"
    assert not get_all_versions.input_resolved
    assert get_all_versions.output_annotation == "GetAllVersionsResponse"
    assert operations["ping"].output_annotation == "None"
    assert warnings == [
        "Operation 'getAllVersions' input could not be resolved; using None",
        "Operation 'ping' output could not be resolved; using None",
    ]

    loaded = _load(module, tmp_path)
    signature = inspect.signature(loaded.UserServiceClient.get_all_versions)
    assert signature.parameters["request"].default is None
    assert inspect.signature(loaded.UserServiceClient.get_user).parameters[
        "request"
    ].default is inspect.Parameter.empty


def test_operation_docstrings(tmp_path: Path) -> None:
    module, _ = _build(fixture_path("user_service.wsdl"))
    loaded = _load(module, tmp_path)

    assert inspect.getdoc(loaded.UserServiceClient.get_all_versions) == (
        "Call the getAllVersions operation."
    )
    assert inspect.getdoc(loaded.UserServiceClient.get_user) == (
        "Call the getUser operation.\n"
        "\n"
        "Look up a user by id.\n"
        "Returns the full user record.\n"
        "\n"
        "Args:\n"
        "    request (GetUser): Request payload."
    )


def test_imports_cover_only_used_names() -> None:
    user_source = render_module(_build(fixture_path("user_service.wsdl"))[0])
    assert _imported_names(user_source, "typing") == ["TYPE_CHECKING", "Optional"]
    assert _imported_names(user_source, "datetime") == ["date"]
    assert _imported_names(user_source, "decimal") == ["Decimal"]
    assert _imported_names(user_source, "enum") == ["Enum"]
    assert _imported_names(user_source, "pydantic") == ["BaseModel", "ConfigDict", "Field"]
    assert _imported_names(user_source, "soap_runtime") == ["SoapClient", "SoapResult"]

    calculator_source = render_module(_build(fixture_path("calculator.wsdl"))[0])
    assert _imported_names(calculator_source, "typing") == ["TYPE_CHECKING"]
    assert _imported_names(calculator_source, "datetime") == []
    assert _imported_names(calculator_source, "enum") == []


def test_runtime_import_is_type_checking_only() -> None:
    module, _ = _build(
        fixture_path("calculator.wsdl"),
        GeneratorOptions(runtime_module="acme.soap.runtime"),
    )
    tree = ast.parse(render_module(module))
    (guard,) = [node for node in tree.body if isinstance(node, ast.If)]
    assert isinstance(guard.test, ast.Name) and guard.test.id == "TYPE_CHECKING"
    (runtime_import,) = guard.body
    assert isinstance(runtime_import, ast.ImportFrom)
    assert runtime_import.module == "acme.soap.runtime"


def test_module_layout_order() -> None:
    source = render_module(_build(fixture_path("user_service.wsdl"))[0])
    tree = ast.parse(source)
    assert ast.get_docstring(tree) is not None
    assigned = [
        node.targets[0].id
        for node in tree.body
        if isinstance(node, ast.Assign) and isinstance(node.targets[0], ast.Name)
    ]
    assert assigned[:3] == ["TARGET_NAMESPACE", "ELEMENT_FORM_QUALIFIED", "DEFAULT_ENDPOINT"]
    classes = [node.name for node in tree.body if isinstance(node, ast.ClassDef)]
    assert classes == [
        "Address",
        "User",
        "UserLookup",
        "VersionList",
        "Ping",
        "UserStatus",
        "UserServiceClient",
    ]


def test_attribute_fields_and_aliases(tmp_path: Path) -> None:
    module, _ = _build(fixture_path("attributes_test.wsdl"))
    assert _fields(module, "MapElements") == [
        ("key", "@key", "Optional[str]", False),
        ("value", "@value", "Optional[str]", False),
    ]
    assert _fields(module, "Entity") == [
        ("id", "@id", "str", True),
        ("version", "@version", "Optional[int]", False),
        ("name", "name", "str", True),
    ]
    product = _fields(module, "Product")
    assert [field[1] for field in product] == [
        "@sku",
        "@category",
        "@legacyCode",
        "description",
        "price",
        "properties",
    ]

    loaded = _load(module, tmp_path)
    assert loaded.Entity.model_fields["id"].alias == "@id"
    assert loaded.Entity.model_fields["name"].alias is None
    schema = loaded.Product.model_json_schema(by_alias=True)
    assert sorted(schema["required"]) == ["@sku", "description", "price"]


def test_prohibited_attributes_can_be_omitted() -> None:
    module, _ = _build(
        fixture_path("attributes_test.wsdl"),
        GeneratorOptions(prohibited_attributes="omit"),
    )
    assert "@legacyCode" not in [field[1] for field in _fields(module, "Product")]


def test_calculator_payloads(tmp_path: Path) -> None:
    module, warnings = _build(fixture_path("calculator.wsdl"))
    assert warnings == []
    assert module.aliases == ()
    assert _fields(module, "Add") == [
        ("int_a", "intA", "int", True),
        ("int_b", "intB", "int", True),
    ]
    add = module.client.operations[0]
    assert (add.input_annotation, add.output_annotation) == ("Add", "AddResponse")
    assert add.soap_action == "http://tempuri.org/Add"
    assert add.documentation_lines == ("Adds two integers.",)

    loaded = _load(module, tmp_path)
    assert loaded.Add(intA=1, intB=2).model_dump(by_alias=True) == {"intA": 1, "intB": 2}
    assert loaded.Add(int_a=1, int_b=2) == loaded.Add(intA=1, intB=2)


def test_rendering_is_deterministic() -> None:
    first = render_module(_build(fixture_path("user_service.wsdl"))[0])
    second = render_module(_build(fixture_path("user_service.wsdl"))[0])
    assert first == second


def test_bare_schema_renders_an_empty_client(tmp_path: Path) -> None:
    document = b"""
    <xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" targetNamespace="urn:bare">
      <xs:simpleType name="Codes"><xs:list itemType="xs:string"/></xs:simpleType>
    </xs:schema>
    """
    module, warnings = _build(document)
    assert module.models == ()
    assert module.client.name == "ServiceClient"
    assert module.client.operations == ()
    assert warnings == ["simpleType 'Codes' uses list/union, which is not supported"]

    source = render_module(module)
    assert _imported_names(source, "pydantic") == []
    loaded = _load(module, tmp_path)
    assert loaded.ServiceClient(_RecordingClient()).client is not None


def test_untyped_elements_become_any(tmp_path: Path) -> None:
    document = b"""
    <xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" targetNamespace="urn:any">
      <xs:complexType name="Envelope">
        <xs:sequence>
          <xs:element name="payload"/>
          <xs:element name="inner">
            <xs:complexType><xs:sequence><xs:element name="x" type="xs:int"/></xs:sequence></xs:complexType>
          </xs:element>
        </xs:sequence>
      </xs:complexType>
    </xs:schema>
    """
    module, _ = _build(document)
    assert _fields(module, "Envelope") == [
        ("payload", "payload", "Any", True),
        ("inner", "inner", "Any", True),
    ]
    assert "Any" in _imported_names(render_module(module), "typing")
    loaded = _load(module, tmp_path)
    assert loaded.Envelope(payload={"a": 1}, inner=3).payload == {"a": 1}


def test_duplicate_operation_methods_keep_the_first() -> None:
    document = b"""
    <definitions xmlns="http://schemas.xmlsoap.org/wsdl/" name="Twice">
      <portType name="A"><operation name="doIt"/></portType>
      <portType name="B"><operation name="DoIt"/></portType>
    </definitions>
    """
    module, warnings = _build(document)
    assert [operation.operation_name for operation in module.client.operations] == ["doIt"]
    assert warnings == ["Operation 'DoIt' is declared more than once; keeping the first declaration"]


def test_build_model_def_without_a_schema() -> None:
    mapper = TypeMapper()
    empty = build_model_def("Empty", ComplexType(name="Empty"), mapper)
    assert empty.fields == ()
    assert Capability.DEFAULT in empty.capabilities

    pair = build_model_def(
        "pair",
        ComplexType(
            name="pair",
            sequence=Sequence([SequenceElement("class", QName("xs:string"))]),
            attributes=[Attribute("class", QName("xs:int"), AttributeUse.REQUIRED)],
        ),
        mapper,
    )
    assert pair.name == "Pair"
    assert Capability.DEFAULT not in pair.capabilities
    assert [(field.name, field.source_name) for field in pair.fields] == [
        ("class_", "@class"),
        ("class_2", "class"),
    ]


def test_build_enum_def() -> None:
    mapper = TypeMapper()
    status = build_enum_def(
        "status",
        Restriction(QName("xs:string"), [Enumeration("a"), Enumeration("A"), Enumeration("a")]),
        mapper,
    )
    assert status is not None
    assert status.name == "Status"
    assert [(member.name, member.value) for member in status.members] == [("A", "a"), ("A_2", "A")]
    assert build_enum_def("plain", Restriction(QName("xs:string")), mapper) is None
    assert build_enum_def("codes", ListType(QName("xs:string")), mapper) is None


def test_client_class_name() -> None:
    assert client_class_name("Calculator") == "CalculatorClient"
    assert client_class_name("BillingClient") == "BillingClient"
    assert client_class_name(None) == "ServiceClient"


def test_case_only_renames_keep_the_wire_name(tmp_path: Path) -> None:
    document = b"""
    <xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" targetNamespace="urn:codes">
      <xs:complexType name="Item">
        <xs:sequence><xs:element name="Code" type="xs:string"/></xs:sequence>
      </xs:complexType>
    </xs:schema>
    """
    module, _ = _build(document)
    assert _fields(module, "Item") == [("code", "Code", "str", True)]
    assert "code: str = Field(..., alias='Code')" in render_module(module)

    loaded = _load(module, tmp_path)
    item = loaded.Item.model_validate({"Code": "A1"})
    assert item.code == "A1"
    assert item.model_dump(by_alias=True) == {"Code": "A1"}


def test_types_named_like_the_client_are_renamed(tmp_path: Path) -> None:
    document = b"""
    <definitions xmlns="http://schemas.xmlsoap.org/wsdl/"
                 xmlns:xs="http://www.w3.org/2001/XMLSchema"
                 xmlns:tns="urn:foo" name="Foo" targetNamespace="urn:foo">
      <types>
        <xs:schema targetNamespace="urn:foo">
          <xs:complexType name="FooClient">
            <xs:sequence><xs:element name="id" type="xs:int"/></xs:sequence>
          </xs:complexType>
          <xs:element name="Lookup" type="tns:FooClient"/>
        </xs:schema>
      </types>
      <message name="LookupIn"><part name="body" element="tns:Lookup"/></message>
      <portType name="FooPort">
        <operation name="lookup"><input message="tns:LookupIn"/></operation>
      </portType>
      <service name="Foo">
        <port name="FooPort" binding="tns:FooBinding"><address location="http://foo"/></port>
      </service>
    </definitions>
    """
    module, _ = _build(document)
    assert [model.name for model in module.models] == ["FooClient_2"]
    assert module.client.name == "FooClient"
    assert [(alias.name, alias.target) for alias in module.aliases] == [("Lookup", "FooClient_2")]

    tree = ast.parse(render_module(module))
    classes = [node.name for node in tree.body if isinstance(node, ast.ClassDef)]
    assert classes == ["FooClient_2", "FooClient"]

    loaded = _load(module, tmp_path)
    assert loaded.Lookup is loaded.FooClient_2
    runtime = _RecordingClient()
    asyncio.run(loaded.FooClient(runtime).lookup(loaded.Lookup(id=3)))
    assert runtime.calls[0][4] == loaded.FooClient_2(id=3)


def test_elements_with_builtin_types_get_aliases(tmp_path: Path) -> None:
    document = b"""
    <definitions xmlns="http://schemas.xmlsoap.org/wsdl/"
                 xmlns:xs="http://www.w3.org/2001/XMLSchema"
                 xmlns:tns="urn:echo" name="EchoService" targetNamespace="urn:echo">
      <types>
        <xs:schema targetNamespace="urn:echo">
          <xs:element name="Echo" type="xs:string"/>
          <xs:element name="Amount" type="xs:decimal"/>
        </xs:schema>
      </types>
      <message name="EchoIn"><part name="body" element="tns:Echo"/></message>
      <message name="EchoOut"><part name="body" element="tns:Amount"/></message>
      <portType name="EchoPort">
        <operation name="echo">
          <input message="tns:EchoIn"/>
          <output message="tns:EchoOut"/>
        </operation>
      </portType>
    </definitions>
    """
    module, warnings = _build(document)
    assert warnings == []
    assert [(alias.name, alias.target) for alias in module.aliases] == [
        ("Echo", "str"),
        ("Amount", "Decimal"),
    ]
    assert _imported_names(render_module(module), "decimal") == ["Decimal"]

    loaded = _load(module, tmp_path)
    assert loaded.Echo is str
    assert loaded.Amount is Decimal
    hints = get_type_hints(
        loaded.EchoPortClient.echo,
        globalns=vars(loaded),
        localns={"SoapResult": list},
    )
    assert hints["request"] is str
    assert hints["return"] == list[Decimal]
