"""
Tool capability tables.

Every tool a stage can offer to the model is a ``ToolSpec``: a name, a closed
``ToolKind`` and a pydantic payload model that validates the arguments the
model supplies. Stages look tools up in an explicit ``ToolTable``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Type

from pydantic import BaseModel, ValidationError

from travelgraph.shared.errors import ParseError


class ToolKind(str, Enum):
    """How the orchestrator treats a tool call."""

    DECOMPOSITION = "decomposition"  # yields the subtask list
    INTERACTION = "interaction"  # hands over to the user-interaction sub-machine
    DOMAIN = "domain"  # executed through the tool invoker


@dataclass(frozen=True)
class ToolSpec:
    name: str
    kind: ToolKind
    description: str
    payload_model: Type[BaseModel]

    def parameters(self) -> Dict[str, Any]:
        return self.payload_model.model_json_schema()

    def to_openai_schema(self) -> Dict[str, Any]:
        """Render the spec as an OpenAI function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters(),
            },
        }

    def parse_args(self, args: Optional[Dict[str, Any]]) -> BaseModel:
        """
        Validate model supplied arguments against the payload model.

        Raises:
            ParseError: If the arguments do not match the payload model
        """
        try:
            return self.payload_model.model_validate(args or {})
        except ValidationError as e:
            raise ParseError(f"Invalid arguments for tool '{self.name}': {e}")


class ToolTable:
    """Ordered name -> ToolSpec lookup table."""

    def __init__(self, specs: Iterable[ToolSpec] = ()):
        self._specs: Dict[str, ToolSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool '{spec.name}' is already registered")
        self._specs[spec.name] = spec

    def lookup(self, name: str) -> Optional[ToolSpec]:
        return self._specs.get(name)

    def specs(self) -> List[ToolSpec]:
        return list(self._specs.values())

    def names(self) -> List[str]:
        return list(self._specs)

    def of_kind(self, kind: ToolKind) -> List[ToolSpec]:
        return [spec for spec in self._specs.values() if spec.kind == kind]

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)
