"""Base classes for onboarding value objects."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, RootModel


class ValueObject(BaseModel):
    """Immutable, compared by value (reservation tokens, metrics, breakdowns)."""

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
    )


T = TypeVar("T")


class RootValueObject(RootModel[T], Generic[T]):
    """Value object wrapping one validated primitive.

    Subclasses normalize and validate in a ``root`` field validator, so an
    instance in hand is always well-formed (a GitHub handle is lowercase,
    an invitation code is uppercase, and so on). ``model_dump()`` yields the
    bare primitive, which keeps the persistence mappers trivial.
    """

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return str(self.root)
