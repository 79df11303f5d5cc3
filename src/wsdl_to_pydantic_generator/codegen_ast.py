"""AST-based Python code generation for SOAP client modules."""

from __future__ import annotations

import ast
from collections.abc import Iterable
from typing import Optional

from .model_types import (
    AliasDef,
    ClientDef,
    EnumDef,
    FieldDef,
    GeneratedModule,
    ModelDef,
    OperationDef,
)

_METHOD_INDENT = " " * 8

_TYPING_IMPORT_ORDER: tuple[str, ...] = (
    "TYPE_CHECKING",
    "Any",
    "Optional",
)

_DATETIME_IMPORT_ORDER: tuple[str, ...] = (
    "date",
    "datetime",
    "time",
    "timedelta",
)

_PYDANTIC_IMPORT_ORDER: tuple[str, ...] = (
    "BaseModel",
    "ConfigDict",
    "Field",
)

_RUNTIME_NAMES: tuple[str, ...] = ("SoapClient", "SoapResult")


def render_module(module: GeneratedModule) -> str:
    """Render a generated client module as Python source code using AST.

    Args:
        module (GeneratedModule): Module definition to render.

    Returns:
        str: Generated Python source code.
    """
    body: list[ast.stmt] = [
        ast.Expr(value=ast.Constant(value=module.docstring)),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(_build_imports(module))
    body.append(_type_checking_import(module.runtime_module))
    body.extend(_constants(module))

    for model in module.models:
        body.append(_model_to_ast(model))
    for enum in module.enums:
        body.append(_enum_to_ast(enum))
    for alias in module.aliases:
        body.append(_alias_to_ast(alias))
    body.append(_client_to_ast(module.client))

    tree = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(tree)
    return ast.unparse(tree) + "\n"


def _constants(module: GeneratedModule) -> list[ast.stmt]:
    return [
        _assign("TARGET_NAMESPACE", ast.Constant(value=module.target_namespace)),
        _assign("ELEMENT_FORM_QUALIFIED", ast.Constant(value=module.element_form_qualified)),
        _assign("DEFAULT_ENDPOINT", ast.Constant(value=module.default_endpoint)),
    ]


def _model_to_ast(model: ModelDef) -> ast.ClassDef:
    class_body: list[ast.stmt] = []
    if model.docstring:
        class_body.append(ast.Expr(value=ast.Constant(value=model.docstring)))

    if model.fields:
        class_body.append(
            _assign(
                "model_config",
                ast.Call(
                    func=ast.Name(id="ConfigDict", ctx=ast.Load()),
                    args=[],
                    keywords=[ast.keyword(arg="populate_by_name", value=ast.Constant(value=True))],
                ),
            )
        )
        for field in model.fields:
            class_body.append(_field_to_ast(field))

    if model.default_constructible:
        class_body.append(_default_constructor(model.name))

    if not class_body:
        class_body.append(ast.Pass())

    return ast.ClassDef(
        name=model.name,
        bases=[ast.Name(id="BaseModel", ctx=ast.Load())],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _field_to_ast(field: FieldDef) -> ast.AnnAssign:
    keywords: list[ast.keyword] = []
    if field.needs_alias:
        keywords.append(ast.keyword(arg="alias", value=ast.Constant(value=field.source_name)))

    default_value = ast.Constant(value=Ellipsis if field.required else None)
    call = ast.Call(
        func=ast.Name(id="Field", ctx=ast.Load()),
        args=[default_value],
        keywords=keywords,
    )

    return ast.AnnAssign(
        target=ast.Name(id=field.name, ctx=ast.Store()),
        annotation=_expr(field.annotation),
        value=call,
        simple=1,
    )


def _default_constructor(class_name: str) -> ast.FunctionDef:
    return ast.FunctionDef(
        name="default",
        args=_arguments(["cls"]),
        body=[
            ast.Return(
                value=ast.Call(func=ast.Name(id="cls", ctx=ast.Load()), args=[], keywords=[])
            )
        ],
        decorator_list=[ast.Name(id="classmethod", ctx=ast.Load())],
        returns=ast.Name(id=class_name, ctx=ast.Load()),
        type_params=[],
    )


def _enum_to_ast(enum: EnumDef) -> ast.ClassDef:
    class_body: list[ast.stmt] = []
    if enum.docstring:
        class_body.append(ast.Expr(value=ast.Constant(value=enum.docstring)))
    for member in enum.members:
        class_body.append(_assign(member.name, ast.Constant(value=member.value)))
    if not class_body:
        class_body.append(ast.Pass())

    return ast.ClassDef(
        name=enum.name,
        bases=[ast.Name(id="str", ctx=ast.Load()), ast.Name(id="Enum", ctx=ast.Load())],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _alias_to_ast(alias: AliasDef) -> ast.Assign:
    return _assign(alias.name, ast.Name(id=alias.target, ctx=ast.Load()))


def _client_to_ast(client: ClientDef) -> ast.ClassDef:
    init = ast.FunctionDef(
        name="__init__",
        args=_arguments(["self", "client"], annotations={"client": "SoapClient"}),
        body=[
            ast.Assign(
                targets=[
                    ast.Attribute(
                        value=ast.Name(id="self", ctx=ast.Load()),
                        attr="client",
                        ctx=ast.Store(),
                    )
                ],
                value=ast.Name(id="client", ctx=ast.Load()),
            )
        ],
        decorator_list=[],
        returns=ast.Constant(value=None),
        type_params=[],
    )

    class_body: list[ast.stmt] = [
        ast.Expr(
            value=ast.Constant(value=f"Asynchronous client for the {client.service_name} service.")
        ),
        init,
    ]
    class_body.extend(_operation_to_ast(operation) for operation in client.operations)

    return ast.ClassDef(
        name=client.name,
        bases=[],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _operation_to_ast(operation: OperationDef) -> ast.AsyncFunctionDef:
    defaults: list[ast.expr] = []
    if not operation.input_resolved:
        defaults.append(ast.Constant(value=None))
    args = _arguments(
        ["self", "request"],
        annotations={"request": operation.input_annotation},
        defaults=defaults,
    )

    call = ast.Call(
        func=ast.Attribute(
            value=ast.Attribute(
                value=ast.Name(id="self", ctx=ast.Load()),
                attr="client",
                ctx=ast.Load(),
            ),
            attr="call_with_soap_action",
            ctx=ast.Load(),
        ),
        args=[
            ast.Constant(value=operation.operation_name),
            ast.Constant(value=operation.soap_action),
            ast.Name(id="TARGET_NAMESPACE", ctx=ast.Load()),
            ast.Name(id="ELEMENT_FORM_QUALIFIED", ctx=ast.Load()),
            ast.Name(id="request", ctx=ast.Load()),
        ],
        keywords=[],
    )

    return ast.AsyncFunctionDef(
        name=operation.method_name,
        args=args,
        body=[
            ast.Expr(value=ast.Constant(value=_operation_docstring(operation))),
            ast.Return(value=ast.Await(value=call)),
        ],
        decorator_list=[],
        returns=_expr(f"SoapResult[{operation.output_annotation}]"),
        type_params=[],
    )


def _operation_docstring(operation: OperationDef) -> str:
    lines = [f"Call the {operation.operation_name} operation."]
    if operation.documentation_lines:
        lines.append("")
        lines.extend(operation.documentation_lines)
    if operation.input_resolved:
        lines.extend(
            [
                "",
                "Args:",
                f"    request ({operation.input_annotation}): Request payload.",
            ]
        )
    return _indented_docstring(lines, _METHOD_INDENT)


def _indented_docstring(lines: list[str], indent: str) -> str:
    if len(lines) == 1:
        return lines[0]
    rest = [f"{indent}{line}" if line else "" for line in lines[1:]]
    return "\n".join([lines[0], *rest, indent])


def _arguments(
    names: list[str],
    *,
    annotations: Optional[dict[str, str]] = None,
    defaults: Optional[list[ast.expr]] = None,
) -> ast.arguments:
    annotations = annotations or {}
    return ast.arguments(
        posonlyargs=[],
        args=[
            ast.arg(
                arg=name,
                annotation=_expr(annotations[name]) if name in annotations else None,
            )
            for name in names
        ],
        kwonlyargs=[],
        kw_defaults=[],
        defaults=defaults or [],
    )


def _assign(name: str, value: ast.expr) -> ast.Assign:
    return ast.Assign(targets=[ast.Name(id=name, ctx=ast.Store())], value=value)


def _expr(code: str) -> ast.expr:
    parsed = ast.parse(code, mode="eval")
    return parsed.body


def _type_checking_import(runtime_module: str) -> ast.If:
    return ast.If(
        test=ast.Name(id="TYPE_CHECKING", ctx=ast.Load()),
        body=[
            ast.ImportFrom(
                module=runtime_module,
                names=[ast.alias(name=name) for name in _RUNTIME_NAMES],
                level=0,
            )
        ],
        orelse=[],
    )


def _build_imports(module: GeneratedModule) -> list[ast.stmt]:
    used_annotation_names = _collect_used_annotation_names(module)
    used_annotation_names.add("TYPE_CHECKING")

    imports: list[ast.stmt] = []
    datetime_imports = [
        name for name in _DATETIME_IMPORT_ORDER if name in used_annotation_names
    ]
    if datetime_imports:
        imports.append(_import_from("datetime", datetime_imports))
    if "Decimal" in used_annotation_names:
        imports.append(_import_from("decimal", ["Decimal"]))
    if module.enums:
        imports.append(_import_from("enum", ["Enum"]))

    typing_imports = [name for name in _TYPING_IMPORT_ORDER if name in used_annotation_names]
    imports.append(_import_from("typing", typing_imports))

    pydantic_imports = _collect_pydantic_imports(module.models)
    if pydantic_imports:
        imports.append(_import_from("pydantic", pydantic_imports))
    return imports


def _import_from(module: str, names: list[str]) -> ast.ImportFrom:
    return ast.ImportFrom(module=module, names=[ast.alias(name=name) for name in names], level=0)


def _collect_used_annotation_names(module: GeneratedModule) -> set[str]:
    names: set[str] = set()
    for annotation in _iter_annotation_exprs(module):
        names.update(_extract_loaded_names(annotation))
    return names


def _iter_annotation_exprs(module: GeneratedModule) -> Iterable[str]:
    for model in module.models:
        for field in model.fields:
            yield field.annotation
    for alias in module.aliases:
        yield alias.target
    for operation in module.client.operations:
        yield operation.input_annotation
        yield operation.output_annotation


def _extract_loaded_names(expr_code: str) -> set[str]:
    parsed = ast.parse(expr_code, mode="eval")
    loaded_names: set[str] = set()
    for node in ast.walk(parsed):
        if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load):
            loaded_names.add(node.id)
    return loaded_names


def _collect_pydantic_imports(models: tuple[ModelDef, ...]) -> list[str]:
    requested: set[str] = set()
    if models:
        requested.add("BaseModel")
    if any(model.fields for model in models):
        requested.update({"ConfigDict", "Field"})
    return [name for name in _PYDANTIC_IMPORT_ORDER if name in requested]
