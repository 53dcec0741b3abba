"""The shape graph that the generator walks.

The graph is closed and may contain cycles: shapes refer to each other by
`ShapeID` only, never by holding each other directly.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, override

from shape_codegen.errors import ShapeNotFound
from shape_codegen.shape_types import (
    AGGREGATE_TYPES,
    PRELUDE_NAMESPACE,
    PRELUDE_SHAPES,
    ShapeType,
    Trait,
)


@dataclass(frozen=True, order=True)
class ShapeID:
    """A globally unique, totally ordered, qualified shape name."""

    namespace: str
    name: str
    member: str = ""

    @classmethod
    def parse(cls, text: str) -> ShapeID:
        """Parse an absolute shape ID, such as `example.weather#City$name`.

        Args:
            text (str): The shape ID to parse.

        Raises:
            ValueError: If the text is not an absolute shape ID.

        Returns:
            ShapeID: The parsed ID.
        """
        namespace, separator, rest = text.partition("#")
        if not separator or not namespace or not rest:
            raise ValueError(f"Invalid shape ID '{text}': expected 'namespace#Name'.")

        name, _, member = rest.partition("$")
        if not name:
            raise ValueError(f"Invalid shape ID '{text}': missing shape name.")

        return cls(namespace, name, member)

    @property
    def is_member(self) -> bool:
        return bool(self.member)

    @property
    def root(self) -> ShapeID:
        """The ID of the shape that contains this member, or the ID itself."""
        if self.member:
            return ShapeID(self.namespace, self.name)
        return self

    def with_member(self, member: str) -> ShapeID:
        return ShapeID(self.namespace, self.name, member)

    @override
    def __str__(self) -> str:
        if self.member:
            return f"{self.namespace}#{self.name}${self.member}"
        return f"{self.namespace}#{self.name}"


UNIT_ID = ShapeID(PRELUDE_NAMESPACE, "Unit")


@dataclass(eq=False)
class MemberShape:
    """A named member of a shape that targets another shape."""

    id: ShapeID
    target: ShapeID
    traits: Mapping[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> ShapeType:
        return ShapeType.MEMBER

    @property
    def name(self) -> str:
        return self.id.member

    def has_trait(self, trait: str) -> bool:
        return trait in self.traits


@dataclass(eq=False)
class Shape:
    """A node of the shape graph.

    Only the fields that belong to the shape's kind are populated: lists and sets
    have a single member named `member`, maps have `key` and `value`, operations
    have `input`, `output` and `errors`, services have `operations`, `resources`
    and `rename`.
    """

    id: ShapeID
    type: ShapeType
    members: tuple[MemberShape, ...] = ()
    traits: Mapping[str, Any] = field(default_factory=dict)
    input: ShapeID | None = None
    output: ShapeID | None = None
    errors: tuple[ShapeID, ...] = ()
    operations: tuple[ShapeID, ...] = ()
    resources: tuple[ShapeID, ...] = ()
    rename: Mapping[ShapeID, str] = field(default_factory=dict)

    def has_trait(self, trait: str) -> bool:
        return trait in self.traits

    def get_member(self, name: str) -> MemberShape:
        for member in self.members:
            if member.name == name:
                return member

        raise ShapeNotFound(self.id.with_member(name))

    @property
    def is_enum_string(self) -> bool:
        """Whether this is a string shape that is declared as an enum by means of the enum trait."""
        return self.type == ShapeType.STRING and self.has_trait(Trait.ENUM)


def new_member(container: ShapeID, name: str, target: ShapeID, traits: Mapping[str, Any] | None = None) -> MemberShape:
    """Create a member of the shape `container`.

    Args:
        container (ShapeID): The ID of the shape that owns the member.
        name (str): The member name.
        target (ShapeID): The shape that the member targets.
        traits (Mapping[str, Any] | None, optional): Traits applied to the member. Defaults to None.

    Returns:
        MemberShape: The new member.
    """
    return MemberShape(id=container.with_member(name), target=target, traits=dict(traits or {}))


def prelude_shapes() -> list[Shape]:
    """Create the prelude shapes that every graph contains."""
    shapes = []
    for name, shape_type in PRELUDE_SHAPES.items():
        traits = {Trait.UNIT_TYPE: {}} if name == UNIT_ID.name else {}
        shapes.append(Shape(id=ShapeID(PRELUDE_NAMESPACE, name), type=shape_type, traits=traits))
    return shapes


class ShapeGraph:
    """A closed, read-only set of shapes.

    The graph is borrowed by the generator and never mutated after construction.
    """

    def __init__(self, shapes: Iterable[Shape], include_prelude: bool = True):
        """Build a graph from its shapes.

        Args:
            shapes (Iterable[Shape]): The shapes of the graph.
            include_prelude (bool, optional): Whether to add the prelude shapes that are not
                provided explicitly. Defaults to True.

        Raises:
            ValueError: If two shapes share an ID.
        """
        self._shapes: dict[ShapeID, Shape] = {}

        for shape in shapes:
            if shape.id in self._shapes:
                raise ValueError(f"Duplicate shape ID '{shape.id}'.")
            if shape.id.is_member:
                raise ValueError(f"Shape ID '{shape.id}' refers to a member; members belong to their container.")
            self._shapes[shape.id] = shape

        if include_prelude:
            for shape in prelude_shapes():
                self._shapes.setdefault(shape.id, shape)

        self._sorted_ids = sorted(self._shapes)

    def get_node(self, shape_id: ShapeID) -> Shape | MemberShape:
        """Look up a shape or a member by means of its ID.

        Args:
            shape_id (ShapeID): The ID to look for.

        Raises:
            ShapeNotFound: If the ID is not part of the graph.

        Returns:
            Shape | MemberShape: The node that was found.
        """
        try:
            shape = self._shapes[shape_id.root]
        except KeyError as e:
            raise ShapeNotFound(shape_id) from e

        if shape_id.is_member:
            return shape.get_member(shape_id.member)

        return shape

    def get_shape(self, shape_id: ShapeID) -> Shape:
        """Like `get_node`, but only for top-level shapes."""
        node = self.get_node(shape_id)
        if isinstance(node, MemberShape):
            raise ShapeNotFound(shape_id)
        return node

    def all_node_ids(self) -> list[ShapeID]:
        """All top-level shape IDs, sorted."""
        return list(self._sorted_ids)

    def kind_of(self, node: Shape | MemberShape) -> ShapeType:
        return node.type

    def members_of(self, node: Shape | MemberShape) -> list[tuple[str, ShapeID]]:
        """The ordered `(member name, target)` pairs of a node.

        A member node has no members of its own.
        """
        if isinstance(node, MemberShape):
            return []
        return [(member.name, member.target) for member in node.members]

    def shapes_of_type(self, shape_type: ShapeType) -> list[Shape]:
        return [self._shapes[shape_id] for shape_id in self._sorted_ids if self._shapes[shape_id].type == shape_type]

    def element_member(self, shape: Shape) -> MemberShape:
        """The member holding the elements of a list or set, or the values of a map."""
        assert shape.type in AGGREGATE_TYPES, shape.type
        return shape.get_member("value" if shape.type == ShapeType.MAP else "member")

    def __contains__(self, shape_id: object) -> bool:
        if not isinstance(shape_id, ShapeID):
            return False
        if shape_id.root not in self._shapes:
            return False
        if shape_id.is_member:
            return any(member.name == shape_id.member for member in self._shapes[shape_id.root].members)
        return True

    def __iter__(self) -> Iterator[Shape]:
        return (self._shapes[shape_id] for shape_id in self._sorted_ids)

    def __len__(self) -> int:
        return len(self._shapes)
