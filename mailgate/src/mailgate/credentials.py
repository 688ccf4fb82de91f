"""Random credential generation under character-class constraints.

What:
  Produce the default account's email local-part and password, and expose the
  underlying constrained generator as a standalone library.

Why:
  The security of a fresh Cloud Mail deployment depends on the randomness of
  its default credentials. The generator therefore has to guarantee its class
  minimums, shuffle without bias, and never degrade to a weak source without
  saying so.

How:
  - Validate a :class:`CredentialSpec` up front and raise :class:`InvalidSpec`
    on impossible constraints.
  - Select the entropy source through an explicit capability check
    (:func:`select_entropy_source`) and return it on every
    :class:`GeneratedCredential`.
  - Draw required characters class by class, fill the rest, then apply a
    Fisher-Yates shuffle driven by the same source.

Interfaces:
  :func:`generate`, :func:`generate_email_name`, :func:`generate_password`,
  :func:`strong_entropy_available`, :func:`select_entropy_source`,
  :class:`CredentialSpec`, :class:`GeneratedCredential`,
  :class:`EntropySource`.

Invariants & Safety:
  - Results are exactly ``total_length`` long and drawn only from the declared
    charsets.
  - Strong-source bytes map to characters via ``byte % len(charset)``.
  - Generated values are never logged and are hidden from ``repr``.
"""
from __future__ import annotations

import logging
import os
import random
import secrets
import string
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

from .errors import EntropyUnavailable, InvalidSpec


LOGGER = logging.getLogger("mailgate.credentials")

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
DIGITS = string.digits

EMAIL_NAME_LENGTH = 8
PASSWORD_LENGTH = 10

RNG_MODES = ("auto", "strong", "fallback")


class EntropySource(str, Enum):
    """Which random source produced a credential."""

    STRONG = "strong"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class CredentialSpec:
    """Constraints a generated credential must satisfy.

    What:
      Describe the ordered required classes, the final length, and the charset
      used for the remaining positions.

    Why:
      Email names and passwords are two instances of the same constraint
      problem; a single validated record keeps both flavors honest.

    How:
      Store immutable fields and expose :meth:`validate`, which rejects
      impossible or degenerate combinations before any randomness is spent.

    Attributes:
      required_classes: Ordered ``(charset, min_count)`` pairs.
      total_length: Exact length of the result.
      fill_charset: Charset for positions not claimed by required classes.
      anchor_first: Keep the first drawn character in position zero and
        shuffle only the remainder (used to force an alphabetic first
        character).
    """

    required_classes: Tuple[Tuple[str, int], ...]
    total_length: int
    fill_charset: str
    anchor_first: bool = False

    @property
    def required_total(self) -> int:
        return sum(count for _, count in self.required_classes)

    @property
    def alphabet(self) -> frozenset[str]:
        chars = set(self.fill_charset)
        for charset, _ in self.required_classes:
            chars.update(charset)
        return frozenset(chars)

    def validate(self) -> None:
        if self.total_length <= 0:
            raise InvalidSpec("total_length must be positive")
        for charset, count in self.required_classes:
            if not charset:
                raise InvalidSpec("required class charset must not be empty")
            if count < 0:
                raise InvalidSpec("required class min_count must not be negative")
        if self.required_total > self.total_length:
            raise InvalidSpec(
                f"required classes need {self.required_total} characters "
                f"but total_length is {self.total_length}"
            )
        if self.total_length > self.required_total and not self.fill_charset:
            raise InvalidSpec("fill_charset must not be empty when fill positions remain")
        if self.anchor_first and (
            not self.required_classes or self.required_classes[0][1] < 1
        ):
            raise InvalidSpec("anchor_first requires a first class with min_count >= 1")


@dataclass(frozen=True)
class GeneratedCredential:
    """A generated credential together with the source that produced it."""

    value: str = field(repr=False)
    source: EntropySource

    def __str__(self) -> str:
        return self.value


def strong_entropy_available() -> bool:
    """Report whether the operating system CSPRNG can be queried."""

    try:
        os.urandom(1)
    except NotImplementedError:
        return False
    return True


def select_entropy_source(mode: str = "auto") -> EntropySource:
    """Resolve ``mode`` to a concrete :class:`EntropySource`.

    What:
      Translate ``"auto"``, ``"strong"`` or ``"fallback"`` into the source that
      will actually be used.

    Why:
      Falling back silently would hide a security regression. Callers and tests
      receive the resolved source and can refuse the fallback.

    How:
      ``"strong"`` raises :class:`EntropyUnavailable` when the capability check
      fails, ``"auto"`` downgrades with a logged warning, and ``"fallback"``
      always selects the pseudo-random source.

    Args:
      mode: One of :data:`RNG_MODES`.

    Returns:
      The selected entropy source.

    Raises:
      ValueError: If ``mode`` is unknown.
      EntropyUnavailable: If ``mode`` is ``"strong"`` and no CSPRNG exists.
    """

    if mode not in RNG_MODES:
        raise ValueError(f"unknown rng mode {mode!r}; expected one of {RNG_MODES}")
    if mode == "fallback":
        return EntropySource.FALLBACK
    if strong_entropy_available():
        return EntropySource.STRONG
    if mode == "strong":
        raise EntropyUnavailable("cryptographically strong entropy source is unavailable")
    LOGGER.warning("entropy_fallback source=%s", EntropySource.FALLBACK.value)
    return EntropySource.FALLBACK


class _StrongDraw:
    def indices(self, count: int, size: int) -> List[int]:
        return [byte % size for byte in secrets.token_bytes(count)]

    def below(self, bound: int) -> int:
        return secrets.randbelow(bound)


class _FallbackDraw:
    def __init__(self) -> None:
        self._rng = random.Random()

    def indices(self, count: int, size: int) -> List[int]:
        return [self._rng.randrange(size) for _ in range(count)]

    def below(self, bound: int) -> int:
        return self._rng.randrange(bound)


def _drawer(source: EntropySource):
    if source is EntropySource.STRONG:
        return _StrongDraw()
    return _FallbackDraw()


def _draw_chars(draw, charset: str, count: int) -> List[str]:
    if count == 0:
        return []
    return [charset[index] for index in draw.indices(count, len(charset))]


def _shuffle(items: List[str], draw, start: int = 0) -> None:
    """Fisher-Yates shuffle of ``items[start:]`` in place."""

    for i in range(len(items) - 1, start, -1):
        j = start + draw.below(i - start + 1)
        items[i], items[j] = items[j], items[i]


def generate(spec: CredentialSpec, rng_mode: str = "auto") -> GeneratedCredential:
    """Generate a credential that satisfies ``spec``.

    What:
      Return a string of exactly ``spec.total_length`` characters containing at
      least ``min_count`` characters of every required class.

    Why:
      Both default-account flavors and any future credential share the same
      correctness requirements; this is the single implementation.

    How:
      Validate the spec, resolve the entropy source, draw each required class in
      order, fill the remaining positions from ``fill_charset``, then shuffle
      uniformly so class boundaries do not leak into positions.

    Args:
      spec: Constraints to satisfy.
      rng_mode: Entropy selection mode, see :func:`select_entropy_source`.

    Returns:
      The credential and the source that produced it.

    Raises:
      InvalidSpec: If the spec is impossible or degenerate.
      EntropyUnavailable: If ``rng_mode`` is ``"strong"`` and no CSPRNG exists.
    """

    spec.validate()
    source = select_entropy_source(rng_mode)
    draw = _drawer(source)

    chars: List[str] = []
    for charset, count in spec.required_classes:
        chars.extend(_draw_chars(draw, charset, count))
    chars.extend(_draw_chars(draw, spec.fill_charset, spec.total_length - len(chars)))

    _shuffle(chars, draw, start=1 if spec.anchor_first else 0)
    return GeneratedCredential(value="".join(chars), source=source)


def email_name_spec(length: int = EMAIL_NAME_LENGTH) -> CredentialSpec:
    return CredentialSpec(
        required_classes=((LOWERCASE, 1),),
        total_length=length,
        fill_charset=LOWERCASE + DIGITS,
        anchor_first=True,
    )


def password_spec(length: int = PASSWORD_LENGTH) -> CredentialSpec:
    return CredentialSpec(
        required_classes=((UPPERCASE, 1), (LOWERCASE, 1), (DIGITS, 1)),
        total_length=length,
        fill_charset=UPPERCASE + LOWERCASE + DIGITS,
    )


def generate_email_name(length: int = EMAIL_NAME_LENGTH, rng_mode: str = "auto") -> GeneratedCredential:
    """Generate an email local-part whose first character is a letter."""

    return generate(email_name_spec(length), rng_mode=rng_mode)


def generate_password(length: int = PASSWORD_LENGTH, rng_mode: str = "auto") -> GeneratedCredential:
    """Generate a password with at least one upper, one lower and one digit."""

    return generate(password_spec(length), rng_mode=rng_mode)
