"""CSP directives: the well-known name catalog, the Directive type and its parser."""

from __future__ import annotations

import enum
from typing import Callable, Iterable, Iterator

from csp_header.model.source import (
    KeywordSource,
    Source,
    SourceLike,
    SourceValue,
    classify,
    to_source,
)

_NONE = KeywordSource(SourceValue.none)


class DirectiveName(str, enum.Enum):
    """Well-known directive names. Used for typed lookup only; all directives behave alike."""

    base_uri = "base-uri"
    child_src = "child-src"
    connect_src = "connect-src"
    default_src = "default-src"
    font_src = "font-src"
    form_action = "form-action"
    frame_ancestors = "frame-ancestors"
    frame_src = "frame-src"
    img_src = "img-src"
    media_src = "media-src"
    object_src = "object-src"
    plugin_types = "plugin-types"
    report_uri = "report-uri"
    report_to = "report-to"
    sandbox = "sandbox"
    script_src = "script-src"
    style_src = "style-src"

    @classmethod
    def lookup(cls, name: str) -> DirectiveName | None:
        """Return the well-known name matching ``name`` (case-insensitive), if any."""
        try:
            return cls(name.lower())
        except ValueError:
            return None


def _collapse_none(sources: list[Source]) -> list[Source]:
    # A source list of exactly 'none' is the empty set.
    if len(sources) == 1 and sources[0] == _NONE:
        return []
    return sources


class Directive:
    """A named, ordered list of sources.

    Directives compare equal by name alone (case-insensitive), so a policy
    holds at most one directive per name. Well-known names are stored in
    their canonical lower-case form; unknown names keep their casing.

    Mutators work in place and return the directive for chaining.
    """

    def __init__(self, name: str | DirectiveName, sources: Iterable[SourceLike] = ()) -> None:
        flavor = name if isinstance(name, DirectiveName) else DirectiveName.lookup(name)
        self.flavor: DirectiveName | None = flavor
        self.name: str = flavor.value if flavor is not None else name
        self._sources: list[Source] = _collapse_none([to_source(s) for s in sources])

    @property
    def sources(self) -> list[Source]:
        return list(self._sources)

    @property
    def is_empty(self) -> bool:
        return not self._sources

    # ── Rendering / identity ─────────────────────────────────────────────

    def __str__(self) -> str:
        if not self._sources:
            # Equivalent to an empty list, but unambiguous to read
            return f"{self.name} {_NONE}"
        return " ".join([self.name, *(str(s) for s in self._sources)])

    def __repr__(self) -> str:
        return f"Directive({self.name!r}, {[str(s) for s in self._sources]!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Directive):
            return NotImplemented
        return self.name.lower() == other.name.lower()

    def __hash__(self) -> int:
        return hash(self.name.lower())

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[Source]:
        return iter(list(self._sources))

    # ── Mutation ─────────────────────────────────────────────────────────

    def append(self, *sources: SourceLike) -> Directive:
        self._sources.extend(to_source(s) for s in sources)
        return self

    def prepend(self, *sources: SourceLike) -> Directive:
        self._sources = [to_source(s) for s in sources] + self._sources
        return self

    def replace(self, *sources: SourceLike) -> Directive:
        self._sources = [to_source(s) for s in sources]
        return self

    def remove(self, *sources: SourceLike) -> Directive:
        """Drop every source whose text equals one of ``sources``."""
        unwanted = {to_source(s) for s in sources}
        self._sources = [s for s in self._sources if s not in unwanted]
        return self

    def remove_of_kind(self, source_type: type[Source]) -> Directive:
        """Drop every source of exactly the given variant, whatever its value."""
        self._sources = [s for s in self._sources if type(s) is not source_type]
        return self

    def remove_all(self) -> Directive:
        return self.replace()

    # ── Queries ──────────────────────────────────────────────────────────

    def contains(self, source: SourceLike) -> bool:
        return to_source(source) in self._sources

    def contains_kind(self, source_type: type[Source]) -> bool:
        return any(type(s) is source_type for s in self._sources)

    def filter(self, predicate: Callable[[Source], bool]) -> list[Source]:
        return [s for s in self._sources if predicate(s)]


def parse_directive(segment: str) -> Directive | None:
    """Parse ``name token token ...`` into a Directive.

    Returns None for a segment that is empty after trimming.
    """
    pieces = segment.split()
    if not pieces:
        return None
    name, *tokens = pieces
    return Directive(name, [classify(token) for token in tokens])
