"""Planner exception hierarchy.

Fatal conditions raise; recoverable ones become PlanWarning entries on the
result instead.
"""


class PlannerError(ValueError):
    """Base class for fatal planner failures."""


class GraphParseError(PlannerError):
    """The raw tree definition is missing or malformed."""


class NoStartNodeError(PlannerError):
    """No usable start node could be resolved for the requested class."""

    def __init__(self, class_name: str, known: list[str] | None = None) -> None:
        self.class_name = class_name
        self.known = sorted(known or [])
        detail = f"No start node resolved for class {class_name!r}"
        if self.known:
            detail += f" (known: {', '.join(self.known)})"
        super().__init__(detail)
