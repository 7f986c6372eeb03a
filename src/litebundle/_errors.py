from __future__ import annotations


class InvalidArgumentError(ValueError):
    """A required argument was None."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Argument '{name}' must not be None")
        self.name = name


class ResolutionError(RuntimeError):
    pass


def require(value: object, name: str) -> None:
    if value is None:
        raise InvalidArgumentError(name)
