"""
Core data models for FlowSpec specifications.

These models define the canonical schema of a specification graph:
- Nodes, tagged by `type`, each kind carrying its own `data` shape
- Edges connecting nodes (source/target) with a semantic `edgeType`
- Screens owning rectangular regions that reference canvas nodes

Field Naming Convention:
- Python attributes are snake_case, the wire format is camelCase
  (`sourceDefinition`, `transformId`, `elementIds`, ...)
- Both spellings are accepted on input
- The shorthand accepted by the editing tools (`dataType`, `transformType`,
  string `logic`, comma-separated `constraints`) is normalised on input
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel


class NodeKind(str, Enum):
    """Kinds of nodes on the specification canvas."""
    DATAPOINT = "datapoint"
    COMPONENT = "component"
    TRANSFORM = "transform"
    TABLE = "table"
    SCREEN = "screen"
    IMAGE = "image"


# Visual-only or container surrogates, never analysed as business entities
VISUAL_KINDS = frozenset({NodeKind.SCREEN.value, NodeKind.IMAGE.value})


class EdgeType(str, Enum):
    """Semantic edge types."""
    FLOWS_TO = "flows-to"
    DERIVES_FROM = "derives-from"
    TRANSFORMS = "transforms"
    VALIDATES = "validates"
    CONTAINS = "contains"  # Structural containment, not data flow


class DataType(str, Enum):
    """Value types for data points and table columns."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    TBD = "tbd"  # Placeholder, not yet determined


class SourceKind(str, Enum):
    """Where a data point's value originates."""
    CAPTURED = "captured"
    RETRIEVED = "retrieved"
    INFERRED = "inferred"


class TransformType(str, Enum):
    FORMULA = "formula"
    VALIDATION = "validation"
    WORKFLOW = "workflow"


class LogicKind(str, Enum):
    FORMULA = "formula"
    DECISION_TABLE = "decision_table"
    STEPS = "steps"


class TableSourceType(str, Enum):
    DATABASE = "database"
    API = "api"
    FILE = "file"
    MANUAL = "manual"


class WireModel(BaseModel):
    """Base for models serialised with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Point(WireModel):
    x: float = 0
    y: float = 0


class Size(WireModel):
    width: float = 0
    height: float = 0


# --- Node data shapes ---

class NodeData(WireModel):
    """Fields shared by every node data bag."""
    label: str = ""

    @field_validator("label", mode="before")
    @classmethod
    def none_label_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class DataPointData(NodeData):
    type: Optional[DataType] = None
    source: SourceKind = SourceKind.CAPTURED
    source_definition: str = ""
    constraints: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalise_shorthand(cls, data: Any) -> Any:
        """Accept `dataType` and comma-separated `constraints`."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # 'dataType' avoids a collision with the node-level 'type'
        if "dataType" in data and "type" not in data:
            data["type"] = data.pop("dataType")
        constraints = data.get("constraints")
        if isinstance(constraints, str):
            data["constraints"] = [c.strip() for c in constraints.split(",") if c.strip()]
        elif not isinstance(constraints, list):
            data.pop("constraints", None)
        if not data.get("source"):
            data.pop("source", None)
        if data.get("sourceDefinition") is None:
            data.pop("sourceDefinition", None)
        return data


class ComponentData(NodeData):
    displays: list[str] = Field(default_factory=list)
    captures: list[str] = Field(default_factory=list)
    wireframe_ref: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def default_reference_lists(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("displays", "captures"):
            if not isinstance(data.get(key), list):
                data.pop(key, None)
        return data


class TransformLogic(WireModel):
    type: LogicKind = LogicKind.FORMULA
    content: Union[str, dict[str, Any]] = ""


class WorkflowMember(WireModel):
    """A named step inside a workflow, optionally bound to a transform node."""
    name: str = ""
    transform_id: Optional[str] = None
    logic_type: Optional[TransformType] = None


# Logic kind used when `logic` is given as a bare string
_LOGIC_KIND_FOR_TRANSFORM = {
    TransformType.FORMULA.value: LogicKind.FORMULA.value,
    TransformType.VALIDATION.value: LogicKind.FORMULA.value,
    TransformType.WORKFLOW.value: LogicKind.STEPS.value,
}


class TransformData(NodeData):
    type: TransformType = TransformType.FORMULA
    description: str = ""
    inputs: list[str] = Field(default_factory=list)
    outputs: list[str] = Field(default_factory=list)
    logic: TransformLogic = Field(default_factory=TransformLogic)
    members: list[WorkflowMember] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalise_shorthand(cls, data: Any) -> Any:
        """Accept `transformType` and a bare string `logic`."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "transformType" in data and "type" not in data:
            data["type"] = data.pop("transformType")
        if not data.get("type"):
            data.pop("type", None)

        transform_type = data.get("type", TransformType.FORMULA.value)
        if isinstance(transform_type, Enum):
            transform_type = transform_type.value
        if isinstance(data.get("logic"), str):
            data["logic"] = {
                "type": _LOGIC_KIND_FOR_TRANSFORM.get(transform_type, LogicKind.FORMULA.value),
                "content": data["logic"],
            }
        elif data.get("logic") is None:
            data.pop("logic", None)

        if not data.get("description"):
            data["description"] = data.get("label") or ""
        for key in ("inputs", "outputs", "members"):
            if not isinstance(data.get(key), list):
                data.pop(key, None)
        return data

    @property
    def is_workflow(self) -> bool:
        return self.type == TransformType.WORKFLOW


class TableColumn(WireModel):
    name: str = ""
    type: Optional[DataType] = None


class TableData(NodeData):
    source_type: TableSourceType = TableSourceType.DATABASE
    columns: list[TableColumn] = Field(default_factory=list)
    endpoint: Optional[str] = None

    @field_validator("source_type", mode="before")
    @classmethod
    def unknown_source_type_to_database(cls, value: Any) -> Any:
        if isinstance(value, TableSourceType):
            return value
        known = {member.value for member in TableSourceType}
        return value if isinstance(value, str) and value in known else TableSourceType.DATABASE


class VisualData(NodeData):
    """Free-form data bag for screen and image nodes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# --- Nodes ---

class BaseNode(WireModel):
    """Fields shared by every node variant."""
    id: str
    position: Optional[Point] = None  # Assigned by the layout engine, ignored by analysis

    @property
    def label(self) -> str:
        return self.data.label

    @property
    def display_label(self) -> str:
        return self.data.label or "Untitled"

    @property
    def is_visual(self) -> bool:
        return self.type in VISUAL_KINDS


class DataPointNode(BaseNode):
    type: Literal["datapoint"] = "datapoint"
    data: DataPointData = Field(default_factory=DataPointData)


class ComponentNode(BaseNode):
    type: Literal["component"] = "component"
    data: ComponentData = Field(default_factory=ComponentData)


class TransformNode(BaseNode):
    type: Literal["transform"] = "transform"
    data: TransformData = Field(default_factory=TransformData)


class TableNode(BaseNode):
    type: Literal["table"] = "table"
    data: TableData = Field(default_factory=TableData)


class ScreenNode(BaseNode):
    type: Literal["screen"] = "screen"
    data: VisualData = Field(default_factory=VisualData)


class ImageNode(BaseNode):
    type: Literal["image"] = "image"
    data: VisualData = Field(default_factory=VisualData)


Node = Annotated[
    Union[DataPointNode, ComponentNode, TransformNode, TableNode, ScreenNode, ImageNode],
    Field(discriminator="type"),
]

_NODE_ADAPTER: TypeAdapter = TypeAdapter(Node)


def parse_node(data: dict) -> BaseNode:
    """Parse a raw node dict into its typed variant."""
    return _NODE_ADAPTER.validate_python(data)


def as_datapoint(node: Optional[BaseNode]) -> Optional[DataPointNode]:
    return node if isinstance(node, DataPointNode) else None


def as_component(node: Optional[BaseNode]) -> Optional[ComponentNode]:
    return node if isinstance(node, ComponentNode) else None


def as_transform(node: Optional[BaseNode]) -> Optional[TransformNode]:
    return node if isinstance(node, TransformNode) else None


def as_table(node: Optional[BaseNode]) -> Optional[TableNode]:
    return node if isinstance(node, TableNode) else None


def as_workflow(node: Optional[BaseNode]) -> Optional[TransformNode]:
    """Narrow to a transform node of type workflow."""
    transform = as_transform(node)
    if transform is not None and transform.data.is_workflow:
        return transform
    return None


# --- Edges ---

class Edge(WireModel):
    """
    A directed, typed edge between two nodes.

    The semantic type is read from `edgeType`, or from `data.edgeType` as
    stored by the canvas. Accepts `from`/`to` on input for backward
    compatibility.
    """
    id: str
    source: str  # Source node ID
    target: str  # Target node ID
    edge_type: EdgeType = EdgeType.FLOWS_TO
    label: str = ""

    @model_validator(mode="before")
    @classmethod
    def convert_canvas_fields(cls, data: Any) -> Any:
        """Lift `data.edgeType` and convert legacy 'from'/'to' fields."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "from" in data and "source" not in data:
            data["source"] = data.pop("from")
        if "to" in data and "target" not in data:
            data["target"] = data.pop("to")
        nested = data.get("data")
        if "edgeType" not in data and "edge_type" not in data and isinstance(nested, dict):
            if nested.get("edgeType"):
                data["edgeType"] = nested["edgeType"]
        if data.get("edgeType") is None:
            data.pop("edgeType", None)
        if data.get("label") is None:
            data.pop("label", None)
        data.pop("data", None)
        return data

    @property
    def is_containment(self) -> bool:
        return self.edge_type == EdgeType.CONTAINS


# --- Screens ---

class ScreenRegion(WireModel):
    """A rectangular region on a screen grouping canvas elements."""
    id: str
    label: Optional[str] = None
    position: Point = Field(default_factory=Point)  # Top-left corner, percentage (0-100)
    size: Size = Field(default_factory=Size)        # Percentage (0-100)
    element_ids: list[str] = Field(default_factory=list)
    component_node_id: Optional[str] = None  # Set when the region is promoted to a component


class Screen(WireModel):
    id: str
    name: str = ""
    image_url: Optional[str] = None
    image_width: Optional[float] = None
    image_height: Optional[float] = None
    image_filename: Optional[str] = None
    regions: list[ScreenRegion] = Field(default_factory=list)


# --- Projects ---

class CanvasState(WireModel):
    """The full node/edge/screen snapshot of a project."""
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    screens: list[Screen] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def drop_null_collections(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if not (k in ("nodes", "edges", "screens") and v is None)}
        return data


class Project(BaseModel):
    """A stored FlowSpec project, as returned by the graph source."""
    id: str = ""
    name: str = "Untitled Project"
    canvas_state: CanvasState = Field(default_factory=CanvasState)

    @field_validator("canvas_state", mode="before")
    @classmethod
    def none_canvas_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_json_dict(cls, data: dict) -> "Project":
        """Create a Project from a project document or a bare canvas."""
        if "canvas_state" in data:
            return cls.model_validate(data)
        if "canvasState" in data:
            return cls.model_validate({**data, "canvas_state": data["canvasState"]})
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "Untitled Project",
            canvas_state=CanvasState.model_validate(data),
        )
