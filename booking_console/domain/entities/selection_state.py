from __future__ import annotations

from dataclasses import dataclass, field

from booking_console.domain.entities.option import Option


@dataclass(frozen=True)
class NodeSpec:
    key: str
    depends_on: tuple[str, ...] = ()
    # Passed to the fetch when set, never required. Still invalidates on change.
    optional_inputs: tuple[str, ...] = ()

    @property
    def inputs(self) -> tuple[str, ...]:
        return self.depends_on + self.optional_inputs


@dataclass
class SelectionNode:
    spec: NodeSpec
    value: Option | None = None
    options: list[Option] = field(default_factory=list)
    generation: int = 0
    loading: bool = False
    error: str | None = None

    @property
    def key(self) -> str:
        return self.spec.key

    @property
    def depends_on(self) -> tuple[str, ...]:
        return self.spec.depends_on

    def reset(self) -> None:
        """Drop value and options; any fetch still in flight becomes stale."""
        self.value = None
        self.options = []
        self.loading = False
        self.error = None
        self.generation += 1


@dataclass(frozen=True)
class SelectionTuple:
    category_id: str | None = None
    subcategory_id: str | None = None
    segment_id: str | None = None
    filter_attribute_id: str | None = None
    filter_option_id: str | None = None
    provider_id: str | None = None

    def missing_required(self) -> list[str]:
        """Members the pricing endpoint cannot do without."""
        required = {
            "category": self.category_id,
            "subcategory": self.subcategory_id,
            "provider": self.provider_id,
        }
        return [name for name, value in required.items() if not value]
