"""
Knowledge Structure Types

The closed set of representations retrieved fragments can be restructured
into before answering, and the intermediate results passed between stages.
"""

from dataclasses import dataclass
from enum import Enum


class InvalidRouteError(ValueError):
    """Raised when a route tag is not one of the known structure types"""

    def __init__(self, route: str):
        self.route = route
        super().__init__(
            f"Invalid route {route!r}, expected one of: "
            + ", ".join(t.value for t in StructureType)
        )


class StructureType(str, Enum):
    """Knowledge structure chosen by the router"""
    GRAPH = "graph"
    TABLE = "table"
    ALGORITHM = "algorithm"
    CATALOGUE = "catalogue"
    CHUNK = "chunk"

    @classmethod
    def parse(cls, route: str) -> "StructureType":
        """Resolve a route tag (case and surrounding whitespace ignored)"""
        tag = (route or "").strip().lower()
        try:
            return cls(tag)
        except ValueError:
            raise InvalidRouteError(route) from None


@dataclass(frozen=True)
class StructuredKnowledge:
    """Fragments restructured for one route, with the instruction that drove it"""
    structure_type: StructureType
    instruction: str
    knowledge: str


@dataclass(frozen=True)
class SubKnowledge:
    """Knowledge extracted for a single sub-question"""
    subquery: str
    knowledge: str

    def render(self) -> str:
        return f"Subquery: {self.subquery}\nRetrieval results:\n{self.knowledge}\n\n"
