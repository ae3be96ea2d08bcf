"""Schema nodes describing the shape of a structured output.

A schema is a tree of frozen pydantic models discriminated by ``kind``::

    movie = ObjectSchema(
        name="movie_review",
        description="A structured movie review",
        properties=[
            StringSchema(name="title", description="The movie title"),
            NumberSchema(name="rating", description="Rating out of 5"),
            StringSchema(name="summary", description="Brief review summary"),
        ],
        required_fields=["title", "rating", "summary"],
    )
    movie.validate()

Nodes compare structurally, cannot be mutated after construction and hold
their children by value, so a tree can never reference one of its own
ancestors and can be shared freely between threads.
"""

from __future__ import annotations

from typing import Annotated, Any, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import SchemaError


class _Node(BaseModel):
    """Attributes common to every schema node."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    description: str = ""
    nullable: bool = False

    def validate(self, _path: str | None = None) -> None:  # type: ignore[override]
        """Raise ``SchemaError`` if this node (or any descendant) is malformed."""
        path = _path or self.name
        if not self.name or not self.name.strip():
            raise SchemaError("Schema node name cannot be empty", path=path or "<root>")
        self._validate_children(path)

    def _validate_children(self, path: str) -> None:
        pass

    def iter_nodes(self, _path: str | None = None) -> Iterator[tuple[str, "_Node"]]:
        """Yield ``(path, node)`` for this node and all descendants, depth first."""
        yield (_path or self.name), self

    def depth(self) -> int:
        """Nesting depth; scalar leaves are depth 1."""
        return 1

    def to_json_schema(self, closed: bool = False) -> dict[str, Any]:
        """Render as a plain JSON Schema dict.

        Args:
            closed: Emit ``additionalProperties: false`` on every object.
        """
        schema = self._json_schema_body(closed)
        if self.description:
            schema = {"description": self.description, **schema}
        if self.nullable:
            schema["type"] = [schema["type"], "null"]
        return schema

    def _json_schema_body(self, closed: bool) -> dict[str, Any]:
        raise NotImplementedError


class StringSchema(_Node):
    kind: Literal["string"] = "string"

    def _json_schema_body(self, closed: bool) -> dict[str, Any]:
        return {"type": "string"}


class NumberSchema(_Node):
    kind: Literal["number"] = "number"

    def _json_schema_body(self, closed: bool) -> dict[str, Any]:
        return {"type": "number"}


class BooleanSchema(_Node):
    kind: Literal["boolean"] = "boolean"

    def _json_schema_body(self, closed: bool) -> dict[str, Any]:
        return {"type": "boolean"}


class EnumSchema(_Node):
    """A string constrained to a fixed, ordered set of values."""

    kind: Literal["enum"] = "enum"
    allowed_values: tuple[str, ...] = ()

    def _validate_children(self, path: str) -> None:
        if not self.allowed_values:
            raise SchemaError("Enum schema must allow at least one value", path=path)
        seen: set[str] = set()
        for value in self.allowed_values:
            if value in seen:
                raise SchemaError(f"Enum value '{value}' is listed more than once", path=path)
            seen.add(value)

    def to_json_schema(self, closed: bool = False) -> dict[str, Any]:
        schema = super().to_json_schema(closed)
        if self.nullable:
            schema["enum"] = [*self.allowed_values, None]
        return schema

    def _json_schema_body(self, closed: bool) -> dict[str, Any]:
        return {"type": "string", "enum": list(self.allowed_values)}


class ArraySchema(_Node):
    """A list whose elements all match ``items``."""

    kind: Literal["array"] = "array"
    items: SchemaNode

    def _validate_children(self, path: str) -> None:
        # Item names are never used, so an unnamed item is fine
        self.items._validate_children(f"{path}[]")

    def iter_nodes(self, _path: str | None = None) -> Iterator[tuple[str, _Node]]:
        path = _path or self.name
        yield path, self
        yield from self.items.iter_nodes(f"{path}[]")

    def depth(self) -> int:
        return 1 + self.items.depth()

    def _json_schema_body(self, closed: bool) -> dict[str, Any]:
        return {"type": "array", "items": self.items.to_json_schema(closed)}


class ObjectSchema(_Node):
    """A mapping with an ordered set of named properties.

    A property is required when its name appears in ``required_fields``.
    """

    kind: Literal["object"] = "object"
    properties: tuple[SchemaNode, ...] = ()
    required_fields: frozenset[str] = frozenset()

    def get_property(self, name: str) -> SchemaNode | None:
        """Return the child named ``name``, or ``None``."""
        for child in self.properties:
            if child.name == name:
                return child
        return None

    @property
    def property_names(self) -> list[str]:
        return [child.name for child in self.properties]

    def is_required(self, name: str) -> bool:
        return name in self.required_fields

    @property
    def optional_fields(self) -> list[str]:
        """Names of properties not listed in ``required_fields``, in order."""
        return [n for n in self.property_names if n not in self.required_fields]

    def _validate_children(self, path: str) -> None:
        seen: set[str] = set()
        for child in self.properties:
            if child.name in seen:
                raise SchemaError(f"Duplicate property name '{child.name}'", path=path)
            seen.add(child.name)

        missing = sorted(self.required_fields - seen)
        if missing:
            raise SchemaError(
                f"Required fields not defined as properties: {', '.join(missing)}",
                path=path,
            )

        for child in self.properties:
            child.validate(f"{path}.{child.name}")

    def iter_nodes(self, _path: str | None = None) -> Iterator[tuple[str, _Node]]:
        path = _path or self.name
        yield path, self
        for child in self.properties:
            yield from child.iter_nodes(f"{path}.{child.name}")

    def depth(self) -> int:
        return 1 + max((child.depth() for child in self.properties), default=0)

    def _json_schema_body(self, closed: bool) -> dict[str, Any]:
        body: dict[str, Any] = {
            "type": "object",
            "properties": {c.name: c.to_json_schema(closed) for c in self.properties},
            # Keep property order so rendering is deterministic
            "required": [n for n in self.property_names if n in self.required_fields],
        }
        if closed:
            body["additionalProperties"] = False
        return body


SchemaNode = Annotated[
    Union[StringSchema, NumberSchema, BooleanSchema, EnumSchema, ArraySchema, ObjectSchema],
    Field(discriminator="kind"),
]

ArraySchema.model_rebuild()
ObjectSchema.model_rebuild()
