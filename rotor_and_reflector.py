# rotor_and_reflector.py
from __future__ import annotations

from enum import Enum

from alphabet_and_permutation import Alphabet, Permutation
from debug import Debug
from errors import ConfigError

debug = Debug()


class RotorKind(Enum):
    STATIONARY = "N"
    ADVANCING = "M"
    REFLECTING = "R"


class Rotor:
    """A wheel in one of the machine's slots.

    All three kinds share the wiring, the current ``setting`` and the ring
    offset; only advancing rotors have notches, and only reflectors are
    pinned to position 0.
    """

    def __init__(
        self,
        name: str,
        permutation: Permutation,
        kind: RotorKind = RotorKind.STATIONARY,
        notches: str = "",
    ) -> None:
        alphabet = permutation.alphabet
        if kind is not RotorKind.ADVANCING and notches:
            raise ConfigError(f"Rotor {name} does not advance and cannot have notches")
        bad = [ch for ch in notches if ch not in alphabet]
        if bad:
            raise ConfigError(f"Notch {bad[0]!r} of rotor {name} is not in the alphabet")
        if kind is RotorKind.REFLECTING and not permutation.derangement():
            raise ConfigError(f"Reflector {name} must not map any symbol to itself")

        self.name = name
        self.permutation = permutation
        self.kind = kind
        self.notches: frozenset[str] = frozenset(notches)
        self._setting = 0
        self._ring = 0

    # ── constructors per kind ─────────────────────────────────────
    @classmethod
    def fixed(cls, name: str, permutation: Permutation) -> "Rotor":
        return cls(name, permutation, RotorKind.STATIONARY)

    @classmethod
    def moving(cls, name: str, permutation: Permutation, notches: str) -> "Rotor":
        return cls(name, permutation, RotorKind.ADVANCING, notches)

    @classmethod
    def reflector(cls, name: str, permutation: Permutation) -> "Rotor":
        return cls(name, permutation, RotorKind.REFLECTING)

    # ── state ─────────────────────────────────────────────────────
    @property
    def alphabet(self) -> Alphabet:
        return self.permutation.alphabet

    def size(self) -> int:
        return self.permutation.size()

    @property
    def setting(self) -> int:
        return self._setting

    @property
    def ring_setting(self) -> int:
        return self._ring

    def _position(self, posn: int | str) -> int:
        if isinstance(posn, str):
            if posn not in self.alphabet:
                raise ConfigError(f"{posn!r} is not in the alphabet")
            return self.alphabet.to_index(posn)
        if not 0 <= posn < self.size():
            raise ConfigError(f"Position {posn} out of range 0–{self.size() - 1}")
        return posn

    def set(self, posn: int | str) -> None:
        """Turn the rotor so that POSN shows in the window."""
        index = self._position(posn)
        if self.reflecting() and index != 0:
            raise ConfigError("reflector has only one position")
        self._setting = index

    def set_ring_setting(self, posn: int | str) -> None:
        self._ring = self._position(posn)

    def reset(self) -> None:
        self._setting = 0
        self._ring = 0

    # ── capabilities ──────────────────────────────────────────────
    def rotates(self) -> bool:
        return self.kind is RotorKind.ADVANCING

    def reflecting(self) -> bool:
        return self.kind is RotorKind.REFLECTING

    def at_notch(self) -> bool:
        if not self.rotates():
            return False
        return self.alphabet.to_symbol(self._setting) in self.notches

    def advance(self) -> None:
        if not self.rotates():
            raise RuntimeError(f"{self.kind.name.lower()} rotor {self.name} cannot advance")
        self._setting = self.permutation.wrap(self._setting + 1)
        if debug.active("rotor"):
            debug.log("rotor", "%s -> %s", self.name, self.alphabet.to_symbol(self._setting))

    # ── signal paths ---------------------------------------------
    def convert_forward(self, p: int) -> int:
        perm = self.permutation
        shift = perm.wrap(p + self._setting - self._ring)
        mapped = perm.permute(shift)
        return perm.wrap(mapped - self._setting + self._ring)

    def convert_backward(self, e: int) -> int:
        perm = self.permutation
        shift = perm.wrap(e + self._setting - self._ring)
        mapped = perm.invert(shift)
        return perm.wrap(mapped - self._setting + self._ring)

    def __repr__(self) -> str:
        window = self.alphabet.to_symbol(self._setting)
        return f"<Rotor {self.name} {self.kind.name.lower()} pos={window} ring={self._ring}>"
