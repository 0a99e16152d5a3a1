"""CSP source tokens: keyword catalog, typed source variants and the classifier."""

from __future__ import annotations

import base64
import enum
import re
import secrets
from dataclasses import dataclass
from typing import Callable, ClassVar, Union
from urllib.parse import urlsplit

from csp_header.config.loader import get_settings
from csp_header.logging_config import get_logger

logger = get_logger(__name__)

# 128 bit is the floor recommended for CSP nonces
NONCE_MIN_BYTES = 16

_NONCE_RE = re.compile(r"^'?nonce-(.*?)'?$", re.IGNORECASE)
_HASH_RE = re.compile(r"^'?(sha256|sha384|sha512)-([^']+)'?$", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^\w+:$", re.IGNORECASE)

# RFC 3986 characters minus the single quote, which only CSP keywords use.
_URL_CHARS_RE = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&()*+,;=%]+$")


class SourceValue(str, enum.Enum):
    """Well-known source keywords and sandbox flags, valued by their canonical text."""

    none = "'none'"
    self = "'self'"
    unsafe_inline = "'unsafe-inline'"
    unsafe_eval = "'unsafe-eval'"
    all_hosts = "*"

    # Only meaningful in the sandbox directive
    allow_forms = "allow-forms"
    allow_pointer_lock = "allow-pointer-lock"
    allow_popups = "allow-popups"
    allow_popups_to_escape_sandbox = "allow-popups-to-escape-sandbox"
    allow_modals = "allow-modals"
    allow_orientation_lock = "allow-orientation-lock"
    allow_presentation = "allow-presentation"
    allow_same_origin = "allow-same-origin"
    allow_scripts = "allow-scripts"
    allow_storage_access_by_user_activation = "allow-storage-access-by-user-activation"
    allow_top_navigation = "allow-top-navigation"
    allow_top_navigation_by_user_activation = "allow-top-navigation-by-user-activation"
    allow_downloads_without_user_activation = "allow-downloads-without-user-activation"

    @classmethod
    def lookup(cls, token: str) -> SourceValue | None:
        """Return the keyword matching ``token`` (case-insensitive), if any."""
        try:
            return cls(token.lower())
        except ValueError:
            return None


class HashAlgorithm(str, enum.Enum):
    sha256 = "sha256"
    sha384 = "sha384"
    sha512 = "sha512"


class Source:
    """Base of all source variants.

    Two sources are equal iff their rendered text is equal, regardless of
    which variant produced it.
    """

    kind: ClassVar[str] = "source"

    def __str__(self) -> str:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Source):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


@dataclass(frozen=True, eq=False)
class KeywordSource(Source):
    """One of the closed :class:`SourceValue` keywords or flags."""

    kind: ClassVar[str] = "keyword"

    value: SourceValue

    def __post_init__(self) -> None:
        if not isinstance(self.value, SourceValue):
            object.__setattr__(self, "value", SourceValue(self.value))

    def __str__(self) -> str:
        return self.value.value


@dataclass(frozen=True, eq=False)
class SchemeSource(Source):
    """Scheme-only source such as ``https:`` or ``data:``."""

    kind: ClassVar[str] = "scheme"

    scheme: str

    def __post_init__(self) -> None:
        if not self.scheme.endswith(":"):
            object.__setattr__(self, "scheme", f"{self.scheme}:")

    def __str__(self) -> str:
        return self.scheme

    @staticmethod
    def matches(token: str) -> bool:
        return _SCHEME_RE.match(token) is not None


@dataclass(frozen=True, eq=False)
class HostSource(Source):
    """URL or host pattern, carried as text without interpretation."""

    kind: ClassVar[str] = "host"

    url: str

    def __str__(self) -> str:
        return self.url

    @classmethod
    def all(cls) -> HostSource:
        """The ``*`` wildcard host."""
        return cls(SourceValue.all_hosts.value)

    @staticmethod
    def matches(token: str) -> bool:
        """Permissive URL check: scheme optional, bare and wildcarded hosts allowed."""
        if not _URL_CHARS_RE.match(token):
            return False
        try:
            urlsplit(token)
        except ValueError:
            return False
        return True


@dataclass(frozen=True, eq=False)
class NonceSource(Source):
    """Nonce source. ``nonce`` holds the bare value; decorated input is unwrapped.

    ``NonceSource("abc")``, ``NonceSource("nonce-abc")`` and
    ``NonceSource("'NoNcE-abc'")`` all render as ``'nonce-abc'``.
    """

    kind: ClassVar[str] = "nonce"

    nonce: str

    def __post_init__(self) -> None:
        extracted = self.extract(self.nonce)
        if extracted is not None:
            object.__setattr__(self, "nonce", extracted)

    def __str__(self) -> str:
        return f"'nonce-{self.nonce}'"

    @staticmethod
    def extract(token: str) -> str | None:
        """Return the nonce inside a nonce token, or None if it isn't one."""
        match = _NONCE_RE.match(token)
        if match is None or not match.group(1):
            return None
        return match.group(1)

    @classmethod
    def matches(cls, token: str) -> bool:
        return cls.extract(token) is not None

    @classmethod
    def generate(
        cls,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        length: int | None = None,
    ) -> NonceSource | None:
        """Create a source around a freshly generated nonce, or None on failure."""
        nonce = generate_nonce(random_bytes, length)
        if nonce is None:
            return None
        return cls(nonce)


@dataclass(frozen=True, eq=False)
class HashSource(Source):
    """Hash source, rendered as ``'<algorithm>-<digest>'``."""

    kind: ClassVar[str] = "hash"

    algorithm: HashAlgorithm
    digest: str

    def __post_init__(self) -> None:
        if not isinstance(self.algorithm, HashAlgorithm):
            object.__setattr__(self, "algorithm", HashAlgorithm(str(self.algorithm).lower()))

    def __str__(self) -> str:
        return f"'{self.algorithm.value}-{self.digest}'"

    @classmethod
    def from_token(cls, token: str) -> HashSource | None:
        """Split a hash token into algorithm and digest, or None if it isn't one."""
        match = _HASH_RE.match(token)
        if match is None:
            return None
        return cls(HashAlgorithm(match.group(1).lower()), match.group(2))

    @staticmethod
    def matches(token: str) -> bool:
        return _HASH_RE.match(token) is not None


@dataclass(frozen=True, eq=False)
class OpaqueSource(Source):
    """Any token no other variant recognizes, kept verbatim."""

    kind: ClassVar[str] = "opaque"

    text: str

    def __str__(self) -> str:
        return self.text


SourceLike = Union[Source, SourceValue, str]


def classify(token: str) -> Source:
    """Turn one raw token into the matching source variant. Never fails."""
    keyword = SourceValue.lookup(token)
    if keyword is not None:
        return KeywordSource(keyword)

    nonce = NonceSource.extract(token)
    if nonce is not None:
        return NonceSource(nonce)

    hash_source = HashSource.from_token(token)
    if hash_source is not None:
        return hash_source

    if SchemeSource.matches(token):
        return SchemeSource(token)

    if HostSource.matches(token):
        return HostSource(token)

    return OpaqueSource(token)


def to_source(value: SourceLike) -> Source:
    """Coerce a keyword or raw token into a Source."""
    if isinstance(value, Source):
        return value
    if isinstance(value, SourceValue):
        return KeywordSource(value)
    if isinstance(value, str):
        return classify(value)
    raise TypeError(f"Expected Source, SourceValue or str, got {type(value).__name__}")


def generate_nonce(
    random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    length: int | None = None,
) -> str | None:
    """Generate a base64-encoded nonce from a cryptographically secure source.

    At least NONCE_MIN_BYTES are always requested. Returns None when the
    random source fails or comes back short; callers decide on a fallback.
    """
    if length is None:
        length = get_settings().nonce_bytes
    length = max(length, NONCE_MIN_BYTES)

    try:
        data = random_bytes(length)
    except (OSError, NotImplementedError) as exc:
        logger.warning("csp_nonce_generation_failed", error=str(exc), length=length)
        return None

    if not data or len(data) < length:
        logger.warning("csp_nonce_generation_failed", error="short read", length=length)
        return None

    return base64.b64encode(data).decode("ascii")
