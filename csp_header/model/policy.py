"""Policy: an ordered, name-unique set of CSP directives."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping, Union

from csp_header.headers import apply_policy, find_policy_header
from csp_header.logging_config import get_logger
from csp_header.model.directive import Directive, DirectiveName, parse_directive
from csp_header.model.source import KeywordSource, NonceSource, Source, SourceValue

logger = get_logger(__name__)

DirectiveKey = Union[Directive, DirectiveName, str]

_NONE = KeywordSource(SourceValue.none)
_UNSAFE_INLINE = KeywordSource(SourceValue.unsafe_inline)


def _key(directive: DirectiveKey) -> str:
    if isinstance(directive, Directive):
        return directive.name.lower()
    if isinstance(directive, DirectiveName):
        return directive.value
    return directive.lower()


class Policy:
    """A parsed Content-Security-Policy value.

    Only the first directive of a given name is kept, both when parsing and
    when constructing from a list. Directives returned by :meth:`get` are the
    live objects held by the policy, so mutating them mutates the policy.

    Example:
        >>> policy = Policy.parse("default-src 'self'; script-src 'none'")
        >>> str(policy.allow_injected_script(nonce="abc"))
        "default-src 'self'; script-src 'nonce-abc'"
    """

    def __init__(self, directives: Iterable[Directive] = ()) -> None:
        self._directives: list[Directive] = []
        for directive in directives:
            self._add_first(directive)

    @classmethod
    def parse(cls, text: str | None) -> Policy:
        """Parse a header value. Never fails; malformed parts degrade to opaque data."""
        policy = cls()
        if not text:
            return policy
        for segment in text.split(";"):
            directive = parse_directive(segment)
            if directive is not None:
                policy._add_first(directive)
        return policy

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Policy:
        """Parse the CSP carried by an HTTP header mapping (empty policy if none)."""
        return cls.parse(find_policy_header(headers))

    def _add_first(self, directive: Directive) -> None:
        if directive in self._directives:
            logger.debug("csp_duplicate_directive_ignored", directive=directive.name)
            return
        self._directives.append(directive)

    def _index(self, key: DirectiveKey) -> int | None:
        wanted = _key(key)
        for idx, directive in enumerate(self._directives):
            if directive.name.lower() == wanted:
                return idx
        return None

    # ── Rendering / container protocol ───────────────────────────────────

    @property
    def directives(self) -> list[Directive]:
        return list(self._directives)

    def serialize(self) -> str:
        return "; ".join(str(d) for d in self._directives)

    def __str__(self) -> str:
        return self.serialize()

    def __repr__(self) -> str:
        return f"Policy({self.serialize()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Policy):
            return NotImplemented
        return self.serialize() == other.serialize()

    def __len__(self) -> int:
        return len(self._directives)

    def __iter__(self) -> Iterator[Directive]:
        return iter(list(self._directives))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (Directive, str)):
            return False
        return self._index(key) is not None

    # ── Lookup / mutation ────────────────────────────────────────────────

    def get(self, key: DirectiveKey) -> Directive | None:
        """Return the directive with the given name or flavor, if present."""
        idx = self._index(key)
        return self._directives[idx] if idx is not None else None

    def prepend(self, *directives: Directive) -> Policy:
        """Prepend each directive's sources to the existing directive of the same name.

        Directives not already present are ignored, never added. A 'none'
        source is removed from the target first, as it can't stand with others.
        """
        for directive in directives:
            original = self.get(directive)
            if original is None:
                logger.debug("csp_prepend_skipped", directive=directive.name)
                continue
            original.remove(_NONE).prepend(*directive.sources)
        return self

    def add_or_replace(self, *directives: Directive) -> Policy:
        """Put each directive in place of a same-named one, or append it.

        When the same name is passed more than once, the last one wins.
        """
        for directive in directives:
            idx = self._index(directive)
            if idx is None:
                self._directives.append(directive)
            else:
                self._directives[idx] = directive
        return self

    def remove(self, *directives: DirectiveKey) -> Policy:
        wanted = {_key(d) for d in directives}
        self._directives = [d for d in self._directives if d.name.lower() not in wanted]
        return self

    # ── Inline injection ─────────────────────────────────────────────────

    def allow_injected_script(self, nonce: str | None = None) -> Policy:
        """Open the policy for an injected inline ``<script>``.

        Works on script-src, or default-src when there is no script-src. With
        a nonce only that element is allowed; without one 'unsafe-inline' is
        used, which opens the page to any inline script.
        """
        return self._inject(DirectiveName.script_src, nonce)

    def allow_injected_style(self, nonce: str | None = None) -> Policy:
        """Open the policy for an injected inline ``<style>``. See :meth:`allow_injected_script`."""
        return self._inject(DirectiveName.style_src, nonce)

    def _inject(self, flavor: DirectiveName, nonce: str | None) -> Policy:
        target = self.get(flavor)
        if target is None:
            target = self.get(DirectiveName.default_src)
        if target is None:
            logger.debug("csp_injection_skipped", directive=flavor.value, reason="no directive")
            return self

        if target.contains(_UNSAFE_INLINE):
            logger.debug("csp_injection_skipped", directive=target.name, reason="unsafe-inline")
            return self

        source: Source = NonceSource(nonce) if nonce else _UNSAFE_INLINE

        if target.contains(_NONE) or target.is_empty:
            target.replace(source)
        else:
            target.prepend(source)

        logger.debug("csp_injection_applied", directive=target.name, source=source.kind)
        return self

    # ── Header mapping ───────────────────────────────────────────────────

    def apply_to(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Return ``headers`` with every CSP header replaced by this policy."""
        return apply_policy(self, headers)
