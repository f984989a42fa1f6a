"""Rule identifiers: ``<prefix>-<ulid>`` parsing, validation, and generation.

The suffix is a ULID: 48 bits of millisecond timestamp followed by 80 bits of
randomness, written as 26 Crockford base32 characters.  Input is accepted in
either case; the canonical form is lowercase.
"""

from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

# Crockford base32 (no I, L, O, U).
ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE = {ch: i for i, ch in enumerate(ALPHABET)}

ULID_LENGTH = 26
TIMESTAMP_BITS = 48
RANDOM_BITS = 80
MAX_TIMESTAMP = (1 << TIMESTAMP_BITS) - 1
MAX_RANDOM = (1 << RANDOM_BITS) - 1

_PREFIX_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$", re.IGNORECASE)
_TAIL_RE = re.compile(r"^(?P<prefix>.*)-(?P<suffix>[0-9A-Za-z]{26})$")


class RuleIdError(ValueError):
    """Raised when an identifier cannot be encoded, decoded, or generated."""


# ---------------------------------------------------------------------------
# ULID codec
# ---------------------------------------------------------------------------


def encode_ulid(timestamp_ms: int, randomness: int) -> str:
    """Encode a timestamp and randomness pair as a lowercase 26-char ULID."""
    if not 0 <= timestamp_ms <= MAX_TIMESTAMP:
        msg = f"timestamp out of range: {timestamp_ms}"
        raise RuleIdError(msg)
    if not 0 <= randomness <= MAX_RANDOM:
        msg = f"randomness out of range: {randomness}"
        raise RuleIdError(msg)

    value = (timestamp_ms << RANDOM_BITS) | randomness
    chars: list[str] = []
    for _ in range(ULID_LENGTH):
        chars.append(ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars)).lower()


def decode_ulid(text: str) -> tuple[int, int]:
    """Decode a ULID into ``(timestamp_ms, randomness)``.

    Raises
    ------
    RuleIdError
        When *text* has the wrong length, contains characters outside the
        alphabet, or encodes a timestamp beyond 48 bits.
    """
    if len(text) != ULID_LENGTH:
        msg = f"ULID must be {ULID_LENGTH} characters, got {len(text)}"
        raise RuleIdError(msg)

    value = 0
    for ch in text.upper():
        digit = _DECODE.get(ch)
        if digit is None:
            msg = f"invalid ULID character: {ch!r}"
            raise RuleIdError(msg)
        value = (value << 5) | digit

    # 26 chars carry 130 bits; the top two must be zero.
    if value >> (TIMESTAMP_BITS + RANDOM_BITS):
        msg = f"ULID timestamp overflows {TIMESTAMP_BITS} bits: {text}"
        raise RuleIdError(msg)
    return value >> RANDOM_BITS, value & MAX_RANDOM


def is_valid_ulid(text: str) -> bool:
    try:
        decode_ulid(text)
    except RuleIdError:
        return False
    return True


# ---------------------------------------------------------------------------
# RuleId
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleId:
    """A parsed ``prefix-suffix`` rule identifier.

    ``prefix`` and ``suffix`` keep the case they were written in;
    ``str(rule_id)`` is always the canonical lowercase form.
    """

    prefix: str
    suffix: str

    def __str__(self) -> str:
        return f"{self.prefix}-{self.suffix}".lower()

    @property
    def canonical(self) -> str:
        return str(self)

    @property
    def is_canonical(self) -> bool:
        """True when the prefix is already lowercase."""
        return self.prefix == self.prefix.lower()

    @property
    def timestamp_ms(self) -> int:
        return decode_ulid(self.suffix)[0]

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp_ms / 1000, tz=timezone.utc)


def parse(text: str) -> RuleId | None:
    """Parse *text* as a rule identifier; return ``None`` when it is not one.

    The suffix is the 26 characters after the final hyphen; everything before
    it is the prefix, which may itself contain hyphens.
    """
    match = _TAIL_RE.match(text.strip())
    if match is None:
        return None
    prefix = match.group("prefix")
    suffix = match.group("suffix")
    if not prefix or not _PREFIX_RE.match(prefix):
        return None
    if not is_valid_ulid(suffix):
        return None
    return RuleId(prefix=prefix, suffix=suffix)


def is_valid(text: str) -> bool:
    """Return True iff *text* parses as a rule identifier."""
    return parse(text) is not None


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class UlidGenerator:
    """Produce ULIDs, optionally monotonic within a millisecond.

    In monotonic mode a call landing in the same (or an earlier) millisecond
    as the previous one reuses that timestamp and increments the previous
    randomness by one, so a same-millisecond batch sorts strictly ascending.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], int] | None = None,
        entropy: Callable[[int], int] | None = None,
    ) -> None:
        self._clock = clock or (lambda: time.time_ns() // 1_000_000)
        self._entropy = entropy or secrets.randbits
        self._last_ms = -1
        self._last_random = 0

    def new(self, *, monotonic: bool = True) -> str:
        now = self._clock()
        if monotonic and now <= self._last_ms:
            if self._last_random >= MAX_RANDOM:
                msg = "ULID randomness exhausted within one millisecond"
                raise RuleIdError(msg)
            self._last_random += 1
        else:
            self._last_ms = now
            self._last_random = self._entropy(RANDOM_BITS)
        return encode_ulid(self._last_ms, self._last_random)


_default_generator = UlidGenerator()


def generate(
    prefix: str, *, monotonic: bool = True, generator: UlidGenerator | None = None
) -> RuleId:
    """Build a new canonical rule identifier for *prefix*.

    Raises
    ------
    ValueError
        When *prefix* is empty or contains characters outside ``[a-z0-9-]``.
    """
    normalized = prefix.strip().lower()
    if not _PREFIX_RE.match(normalized):
        msg = f"invalid rule id prefix: {prefix!r}"
        raise ValueError(msg)
    suffix = (generator or _default_generator).new(monotonic=monotonic)
    return RuleId(prefix=normalized, suffix=suffix)
