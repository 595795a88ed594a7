"""Identifier case conversion between snake_case and CamelCase.

Recognizes multi-letter initialisms (HTTP, ID, ...) so that they survive a
round trip as a single uppercase unit, e.g. ``user_id`` <-> ``UserID``.
"""

import re
from typing import Iterable, Optional

import inflect

from .errors import ConfigurationError

COMMON_INITIALISMS = (
    "ACL", "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML",
    "HTTPS", "HTTP", "ID", "IP", "JSON", "LHS", "QPS", "RAM", "RHS", "RPC",
    "SLA", "SMTP", "SQL", "SSH", "TCP", "TLS", "TTL", "UDP", "UID", "UI",
    "URI", "URL", "UTC", "UTF8", "UUID", "VM", "XML", "XMPP", "XSRF", "XSS",
    "YAML",
)

_UNDERSCORES_RE = re.compile(r"_+")
_LEADING_RE = re.compile(r"^[0-9_]+")

_inflector = inflect.engine()


def _is_identifier_char(ch: str) -> bool:
    return ch == "_" or ch.isalnum()


def to_identifier(name: str) -> str:
    """Clean name so that it is usable as an identifier.

    Invalid characters become underscores, runs of underscores collapse to
    one, and leading digits/underscores and trailing underscores are removed.
    Case is left untouched.
    """
    s = "".join(ch if _is_identifier_char(ch) else "_" for ch in name.strip())
    s = _UNDERSCORES_RE.sub("_", s)
    s = _LEADING_RE.sub("_", s)
    return s.strip("_")


class Initialisms:
    """A set of initialisms used when converting identifier case."""

    def __init__(self, initialisms: Iterable[str] = ()):
        self._known = set()
        self._max = 0
        self.add(*initialisms)

    def add(self, *initialisms: str):
        """Register initialisms.

        Raises:
            ConfigurationError: If an initialism is shorter than 2 characters
        """
        for ism in initialisms:
            if len(ism) < 2:
                raise ConfigurationError(
                    f"invalid initialism {ism!r}",
                    details={"initialism": ism},
                )
            self._known.add(ism)
            self._max = max(self._max, len(ism))

    def is_initialism(self, s: str) -> bool:
        return s.upper() in self._known

    def peek(self, s: str) -> str:
        """Return the longest registered initialism at the start of s, or ''."""
        if len(s) < 2:
            return ""
        run = []
        for ch in s[:self._max]:
            if not ch.isupper():
                break
            run.append(ch)
        if len(run) < 2:
            return ""
        for i in range(len(run), 1, -1):
            candidate = "".join(run[:i])
            if candidate in self._known:
                return candidate
        return ""

    def camel_to_snake(self, name: str) -> str:
        """Convert CamelCase ("AnIdentifier") to snake_case ("an_identifier")."""
        if not name:
            return ""
        out = []
        last_upper = last_lower_or_digit = last_ism = False
        i = 0
        while i < len(name):
            ch = name[i]
            is_upper, is_letter = ch.isupper(), ch.isalpha()
            if (last_lower_or_digit and is_upper) or (last_ism and is_letter):
                out.append("_")
            ism = ""
            if not last_upper or last_ism:
                ism = self.peek(name[i:])
            run = ism or ch
            last_ism = len(run) > 1
            last_upper = is_upper
            last_lower_or_digit = run[-1].islower() or run[-1].isdigit()
            out.append(run)
            i += len(run)
        return "".join(out).lower()

    def camel_to_snake_identifier(self, name: str) -> str:
        return to_identifier(self.camel_to_snake(name))

    def snake_to_camel(self, name: str) -> str:
        """Convert snake_case to CamelCase, uppercasing known initialisms."""
        words = []
        for word in name.split("_"):
            if not word:
                continue
            upper = word.upper()
            if upper in self._known:
                words.append(upper)
            else:
                words.append(word[:1].upper() + word[1:].lower())
        return "".join(words)

    def snake_to_camel_identifier(self, name: str) -> str:
        return self.snake_to_camel(to_identifier(name))

    def force_camel_identifier(self, name: str) -> str:
        if not name:
            return ""
        return self.snake_to_camel_identifier(self.camel_to_snake(name))

    def force_lower_camel_identifier(self, name: str) -> str:
        if not name:
            return ""
        snake = self.camel_to_snake(name)
        first = snake.split("_")[0]
        camel = self.snake_to_camel_identifier(snake)
        return first.lower() + camel[len(first):]


default_initialisms = Initialisms(COMMON_INITIALISMS)


def build_initialisms(extra: Optional[Iterable[str]] = None) -> Initialisms:
    """Create an Initialisms set with the common defaults plus extra entries."""
    initialisms = Initialisms(COMMON_INITIALISMS)
    if extra:
        initialisms.add(*extra)
    return initialisms


def to_snake(name: str, initialisms: Optional[Initialisms] = None) -> str:
    return (initialisms or default_initialisms).camel_to_snake(name)


def to_camel(name: str, initialisms: Optional[Initialisms] = None) -> str:
    return (initialisms or default_initialisms).snake_to_camel_identifier(name)


def pluralize(name: str) -> str:
    """Pluralize a CamelCase name by pluralizing its last word."""
    head, tail = _split_last_word(name)
    if not tail:
        return name
    return head + _match_case(_inflector.plural_noun(tail.lower()), tail)


def singularize_identifier(name: str, initialisms: Optional[Initialisms] = None) -> str:
    """Singularize the last word of a snake_case name and camel case it.

    ``user_accounts`` -> ``UserAccount``.
    """
    initialisms = initialisms or default_initialisms
    words = to_identifier(name).split("_")
    last = words[-1]
    if not last:
        return ""
    singular = _inflector.singular_noun(last)
    if singular and not initialisms.is_initialism(last):
        words[-1] = singular
    return initialisms.snake_to_camel("_".join(words))


def _split_last_word(name: str):
    # last CamelCase word: a trailing uppercase letter followed by lowercase
    match = re.search(r"[A-Z]?[a-z0-9]+$|[A-Z]+$", name)
    if not match:
        return name, ""
    return name[:match.start()], match.group(0)


def _match_case(word: str, like: str) -> str:
    if like.isupper() and len(like) > 1:
        return word.upper()
    if like[:1].isupper():
        return word[:1].upper() + word[1:]
    return word
