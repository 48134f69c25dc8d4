"""Function declarations and automatic function execution.

A ``FunctionDeclaration`` pairs a name and a parameter schema with a Python
callable. When the model replies with a ``FunctionCallPart``, the arguments
are parsed according to the declared parameter types and passed positionally
to the callable.

Example:
    def get_exchange_rate(currency_from: str, currency_to: str) -> dict:
        return {"rate": 0.92}

    rate_tool = Tool(
        (
            define_function(
                "getExchangeRate",
                "Look up a currency exchange rate",
                Schema.string("currencyFrom", "Source currency"),
                Schema.string("currencyTo", "Target currency"),
                function=get_exchange_rate,
            ),
        )
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import inspect
import json
import logging
from typing import TYPE_CHECKING, Any

from castor.errors import InvalidStateError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from castor.types import FunctionCallPart

    FunctionResult = dict[str, Any] | Awaitable[dict[str, Any]]

logger = logging.getLogger(__name__)


class FunctionType(str, Enum):
    """Parameter types understood by the service."""

    STRING = "STRING"
    INTEGER = "INTEGER"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    ARRAY = "ARRAY"
    OBJECT = "OBJECT"


@dataclass(frozen=True)
class Schema:
    """Declared type of one function parameter (or nested property)."""

    name: str
    description: str
    type: FunctionType
    format: str | None = None
    enum: tuple[str, ...] | None = None
    properties: tuple[Schema, ...] | None = None
    required: tuple[str, ...] | None = None
    items: Schema | None = None
    #: Nullable parameters may be absent from a call.
    nullable: bool = False

    @classmethod
    def string(cls, name: str, description: str, *, nullable: bool = False) -> Schema:
        return cls(name, description, FunctionType.STRING, nullable=nullable)

    @classmethod
    def integer(cls, name: str, description: str, *, nullable: bool = False) -> Schema:
        return cls(name, description, FunctionType.INTEGER, nullable=nullable)

    @classmethod
    def number(cls, name: str, description: str, *, nullable: bool = False) -> Schema:
        return cls(name, description, FunctionType.NUMBER, nullable=nullable)

    @classmethod
    def boolean(cls, name: str, description: str, *, nullable: bool = False) -> Schema:
        return cls(name, description, FunctionType.BOOLEAN, nullable=nullable)

    @classmethod
    def enumeration(
        cls,
        name: str,
        description: str,
        values: Sequence[str],
        *,
        nullable: bool = False,
    ) -> Schema:
        return cls(
            name,
            description,
            FunctionType.STRING,
            format="enum",
            enum=tuple(values),
            nullable=nullable,
        )

    @classmethod
    def array(
        cls, name: str, description: str, items: Schema, *, nullable: bool = False
    ) -> Schema:
        return cls(
            name, description, FunctionType.ARRAY, items=items, nullable=nullable
        )

    @classmethod
    def obj(
        cls,
        name: str,
        description: str,
        *properties: Schema,
        nullable: bool = False,
    ) -> Schema:
        return cls(
            name,
            description,
            FunctionType.OBJECT,
            properties=properties,
            required=tuple(p.name for p in properties if not p.nullable),
            nullable=nullable,
        )

    def parse(self, raw: str | None) -> Any:
        """Parse a raw argument string; returns ``None`` when it does not fit."""
        if raw is None:
            return None
        match self.type:
            case FunctionType.STRING:
                if self.enum is not None and raw not in self.enum:
                    return None
                return raw
            case FunctionType.INTEGER:
                try:
                    return int(raw)
                except ValueError:
                    return None
            case FunctionType.NUMBER:
                try:
                    return float(raw)
                except ValueError:
                    return None
            case FunctionType.BOOLEAN:
                return raw.strip().lower() == "true"
            case FunctionType.ARRAY:
                return _load_json(raw, list)
            case FunctionType.OBJECT:
                return _load_json(raw, dict)


def _load_json(raw: str, expected: type) -> Any:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, expected) else None


@dataclass(frozen=True)
class FunctionDeclaration:
    """A callable the model may invoke, with its parameter schema.

    ``function`` receives the parsed arguments positionally, in declaration
    order, and returns a JSON object (a ``dict``). Coroutine functions are
    awaited.
    """

    name: str
    description: str
    function: Callable[..., FunctionResult]
    parameters: tuple[Schema, ...] = ()


def define_function(
    name: str,
    description: str,
    *parameters: Schema,
    function: Callable[..., FunctionResult],
) -> FunctionDeclaration:
    """Declare a function taking *parameters* in order."""
    return FunctionDeclaration(name, description, function, tuple(parameters))


@dataclass(frozen=True)
class Tool:
    """A group of function declarations offered to the model."""

    function_declarations: tuple[FunctionDeclaration, ...]


def find_function(
    tools: Sequence[Tool] | None, name: str
) -> FunctionDeclaration:
    """Return the declaration registered under *name*."""
    if not tools:
        raise InvalidStateError(
            "No registered tools",
            hint="Pass tools=[Tool(...)] when constructing the model.",
        )
    for tool in tools:
        for declaration in tool.function_declarations:
            if declaration.name == name:
                return declaration
    raise InvalidStateError(f'No registered function named "{name}"')


async def execute_function(
    tools: Sequence[Tool] | None, call: FunctionCallPart
) -> dict[str, Any]:
    """Run the registered function for *call* and return its result verbatim."""
    declaration = find_function(tools, call.name)

    args: list[Any] = []
    for parameter in declaration.parameters:
        value = parameter.parse(call.args.get(parameter.name))
        if value is None and not parameter.nullable:
            raise InvalidStateError(
                f'Missing argument for parameter "{parameter.name}" '
                f'for function "{declaration.name}"'
            )
        args.append(value)

    logger.debug("Executing function %s with %d argument(s)", call.name, len(args))
    result = declaration.function(*args)
    if inspect.isawaitable(result):
        result = await result

    if not isinstance(result, dict):
        raise InvalidStateError(
            f'Function "{declaration.name}" returned {type(result).__name__}, '
            "expected a dict"
        )
    return result
