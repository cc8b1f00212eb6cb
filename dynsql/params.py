"""
Parameter schemas: declare once which inputs steer rendering and which are
bound, then derive both projections from any instance.

Example::

    class DogQuery(ParameterSchema):
        name: Annotated[str | None, Dual("q_name")] = None
        color: Annotated[str | None, Dual("q_color")] = None

    class DogUpdate(ParameterSchema):
        color: Annotated[str | None, Dual()] = None
        weight: Annotated[float | None, Dual()] = None
        query: DogQuery = Field(default_factory=DogQuery)

    DogUpdate(color="white").render_context()  # {":color": True}
    DogUpdate(color="white").bind_list()       # [(":color", BindValue(TEXT, "white"))]

Field kinds:

- ``Execution(name)``: bound as ``:name``; never in the render context.
- ``Render(name)``: textual value in the render context; never bound.
- ``Dual(render_name, bind_name)``: presence marker under ``:render_name``,
  value bound as ``:bind_name``. ``render_name`` defaults to the field
  name, ``bind_name`` to ``render_name``.
- a field typed as another ParameterSchema: flattened into the parent.

``None`` values contribute nothing. Names must be unique across the whole
composed schema; this is checked when the class is defined.
"""

from __future__ import annotations

import re
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from dynsql.core.errors import SchemaError
from dynsql.core.param_type import BindValue, to_sql_segment

_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

RenderContext = dict[str, Any]
BindList = list[tuple[str, BindValue]]


@runtime_checkable
class QueryParameters(Protocol):
    """Anything the executor can render and bind."""

    def render_context(self) -> RenderContext: ...

    def bind_list(self) -> BindList: ...


@dataclass(frozen=True)
class Execution:
    name: str | None = None


@dataclass(frozen=True)
class Render:
    name: str | None = None


@dataclass(frozen=True)
class Dual:
    render_name: str | None = None
    bind_name: str | None = None


class FieldKind(str, Enum):
    EXECUTION = "execution"
    RENDER = "render"
    DUAL = "dual"
    NESTED = "nested"


class FieldPlan(NamedTuple):
    attr: str
    kind: FieldKind
    render_name: str | None
    bind_name: str | None
    schema: type[ParameterSchema] | None = None


def _union_args(tp: Any) -> tuple[Any, ...]:
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        return typing.get_args(tp)
    return (tp,)


def _nested_schema(tp: Any) -> type[ParameterSchema] | None:
    for arg in _union_args(tp):
        if typing.get_origin(arg) is None and isinstance(arg, type) and issubclass(arg, ParameterSchema):
            return arg
    return None


def _is_scalar(tp: Any) -> bool:
    if tp is Any or tp is type(None):
        return True
    if typing.get_origin(tp) is typing.Literal:
        return True
    args = _union_args(tp)
    if len(args) > 1:
        return all(_is_scalar(a) for a in args)
    if typing.get_origin(tp) is not None:
        return False
    return isinstance(tp, type) and issubclass(tp, (int, float, str, Enum))


def _checked_name(owner: str, attr: str, name: str) -> str:
    if not _NAME.match(name):
        raise SchemaError(f"{owner}.{attr}: invalid placeholder name {name!r}")
    return name


def _plan_field(owner: str, attr: str, annotation: Any, metadata: list[Any]) -> FieldPlan:
    markers = [m for m in metadata if isinstance(m, (Execution, Render, Dual))]
    nested = _nested_schema(annotation)
    if nested is not None:
        if markers:
            raise SchemaError(f"{owner}.{attr}: nested schema fields take no marker")
        return FieldPlan(attr, FieldKind.NESTED, None, None, nested)
    if len(markers) != 1:
        raise SchemaError(
            f"{owner}.{attr}: expected exactly one of Execution(), Render() or Dual()"
        )
    if not _is_scalar(annotation):
        raise SchemaError(f"{owner}.{attr}: unsupported field type {annotation!r}")

    marker = markers[0]
    if isinstance(marker, Execution):
        return FieldPlan(
            attr, FieldKind.EXECUTION, None, _checked_name(owner, attr, marker.name or attr)
        )
    if isinstance(marker, Render):
        return FieldPlan(
            attr, FieldKind.RENDER, _checked_name(owner, attr, marker.name or attr), None
        )
    render_name = _checked_name(owner, attr, marker.render_name or attr)
    bind_name = _checked_name(owner, attr, marker.bind_name or render_name)
    return FieldPlan(attr, FieldKind.DUAL, render_name, bind_name)


def _add_unique(seen: dict[str, str], name: str, where: str, what: str) -> None:
    if name in seen:
        raise SchemaError(f"{what} name ':{name}' is declared by both {seen[name]} and {where}")
    seen[name] = where


class ParameterSchema(BaseModel):
    """Base class for parameter schemas. See module docstring."""

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        plan = tuple(
            _plan_field(cls.__name__, attr, info.annotation, info.metadata)
            for attr, info in cls.model_fields.items()
        )
        cls.__dynsql_plan__ = plan
        # Raises SchemaError on a name collision anywhere in the composition
        cls.__dynsql_names__ = cls._collect_names()

    @classmethod
    def field_plan(cls) -> tuple[FieldPlan, ...]:
        return getattr(cls, "__dynsql_plan__", ())

    @classmethod
    def _collect_names(cls) -> tuple[dict[str, str], dict[str, str]]:
        render: dict[str, str] = {}
        bind: dict[str, str] = {}
        for p in cls.field_plan():
            where = f"{cls.__name__}.{p.attr}"
            if p.kind is FieldKind.NESTED:
                inner_render, inner_bind = p.schema.__dynsql_names__
                for name, inner_where in inner_render.items():
                    _add_unique(render, name, f"{where} ({inner_where})", "render")
                for name, inner_where in inner_bind.items():
                    _add_unique(bind, name, f"{where} ({inner_where})", "bind")
                continue
            if p.render_name is not None:
                _add_unique(render, p.render_name, where, "render")
            if p.bind_name is not None:
                _add_unique(bind, p.bind_name, where, "bind")
        return render, bind

    @classmethod
    def render_names(cls) -> list[str]:
        """Every name this schema can put in a render context (with colon)."""
        return [f":{n}" for n in cls.__dynsql_names__[0]]

    @classmethod
    def bind_names(cls) -> list[str]:
        """Every name this schema can put in a BindList (with colon)."""
        return [f":{n}" for n in cls.__dynsql_names__[1]]

    def render_context(self) -> RenderContext:
        ctx: RenderContext = {}
        for p in self.field_plan():
            value = getattr(self, p.attr)
            if value is None:
                continue
            if p.kind is FieldKind.NESTED:
                ctx.update(value.render_context())
            elif p.kind is FieldKind.DUAL:
                ctx[f":{p.render_name}"] = True
            elif p.kind is FieldKind.RENDER:
                ctx[f":{p.render_name}"] = to_sql_segment(value)
        return ctx

    def bind_list(self) -> BindList:
        out: BindList = []
        for p in self.field_plan():
            value = getattr(self, p.attr)
            if value is None:
                continue
            if p.kind is FieldKind.NESTED:
                out.extend(value.bind_list())
            elif p.bind_name is not None:
                out.append((f":{p.bind_name}", BindValue.of(value)))
        return out

    def bind_params(self) -> dict[str, Any]:
        """BindList as ``{name: value}`` without the colon (DB-API named style)."""
        return {name[1:]: bv.value for name, bv in self.bind_list()}
