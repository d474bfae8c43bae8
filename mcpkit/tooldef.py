"""Turn plain functions into tool handlers."""

from __future__ import annotations

import functools
import inspect
import re
from typing import Any, Callable, Mapping, NamedTuple

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, create_model

from .handler import InvalidParametersError, ToolExecutionError, ToolHandler, generate_schema

_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")
_ANY = TypeAdapter(Any)
_REQUIRED = object()


class _Parameter(NamedTuple):
    name: str
    keyword_only: bool
    default: Any


def _pascal_case(name: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in _WORDS.findall(name))


def _unwrap(func: Callable[..., Any]) -> tuple[Any, bool]:
    """Return the plain function behind func and whether its first argument is bound."""
    target: Any = func
    while hasattr(target, "__wrapped__"):
        target = target.__wrapped__
    bound = hasattr(target, "__func__")
    if bound:
        target = target.__func__
    return target, bound


def _parameters(target: Any, bound: bool) -> list[_Parameter]:
    code = target.__code__
    positional = code.co_varnames[: code.co_argcount]
    keyword_only = code.co_varnames[
        code.co_argcount : code.co_argcount + code.co_kwonlyargcount
    ]
    defaults = tuple(target.__defaults__ or ())
    padded = (_REQUIRED,) * (len(positional) - len(defaults)) + defaults
    kwdefaults = target.__kwdefaults__ or {}
    parameters = [_Parameter(name, False, default) for name, default in zip(positional, padded)]
    if bound:
        parameters = parameters[1:]
    parameters.extend(
        _Parameter(name, True, kwdefaults.get(name, _REQUIRED)) for name in keyword_only
    )
    return parameters


def _build_model(
    model_name: str,
    module: str,
    parameters: list[_Parameter],
    annotations: Mapping[str, Any],
    descriptions: Mapping[str, str],
) -> type[BaseModel]:
    def fields(use_annotations: bool) -> dict[str, Any]:
        return {
            parameter.name: (
                annotations.get(parameter.name, Any) if use_annotations else Any,
                Field(
                    ... if parameter.default is _REQUIRED else parameter.default,
                    description=descriptions.get(parameter.name),
                ),
            )
            for parameter in parameters
        }

    model = create_model(model_name, __module__=module, **fields(True))
    if not model.__pydantic_complete__ and not model.model_rebuild(raise_errors=False):
        model = create_model(model_name, __module__=module, **fields(False))
    return model


class FunctionTool(ToolHandler):
    """A tool handler that validates JSON parameters and calls a function with them."""

    def __init__(
        self,
        func: Callable[..., Any],
        name: str | None = None,
        description: str | None = None,
        params: Mapping[str, str] | None = None,
    ) -> None:
        functools.update_wrapper(self, func)
        self.func = func
        self._name = name if name is not None else func.__name__
        self._description = description if description is not None else ""
        target, bound = _unwrap(func)
        self._parameters = _parameters(target, bound)
        self._model: type[BaseModel] = _build_model(
            f"{_pascal_case(func.__name__)}Parameters",
            getattr(func, "__module__", None) or __name__,
            self._parameters,
            dict(getattr(target, "__annotations__", {}) or {}),
            dict(params or {}),
        )

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.func(*args, **kwargs)

    def name(self) -> str:
        return self._name

    def description(self) -> str:
        return self._description

    def schema(self) -> Any:
        return generate_schema(self._model)

    async def call(self, params: Any) -> Any:
        """Validate params, run the function and return its result as JSON data."""
        try:
            parsed = self._model.model_validate(params)
        except ValidationError as exc:
            raise InvalidParametersError(str(exc)) from exc
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in self._parameters:
            value = getattr(parsed, parameter.name)
            if parameter.keyword_only:
                kwargs[parameter.name] = value
            else:
                args.append(value)
        try:
            result = self.func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            raise ToolExecutionError(str(exc)) from exc
        return _ANY.dump_python(result, mode="json")


def tool(
    name: str | Callable[..., Any] | None = None,
    description: str | None = None,
    params: Mapping[str, str] | None = None,
) -> Any:
    """Decorator making a FunctionTool; usable bare or with a name, description and
    per-parameter descriptions."""
    if callable(name):
        return FunctionTool(name)

    def decorate(func: Callable[..., Any]) -> FunctionTool:
        return FunctionTool(func, name=name, description=description, params=params)

    return decorate