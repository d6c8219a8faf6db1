# machine.py  ──────────────────────────────────────────────────────
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from copy import copy
from dataclasses import dataclass
from types import MappingProxyType

from alphabet_and_permutation import Alphabet, Permutation
from debug import Debug
from errors import ConfigError
from rotor_and_reflector import Rotor, RotorKind

debug = Debug()


@dataclass(frozen=True, slots=True)
class ConversionTrace:
    """What one key press did, for observers of ``Machine.convert``."""

    window: str         # rotor windows (slots 1..n-1) after stepping
    symbol_in: str
    plugged: str        # after the first plugboard pass
    symbol_out: str


Observer = Callable[[ConversionTrace], None]


class Machine:
    """A rotor machine with NUM_ROTORS slots, the last PAWLS of which advance.

    Slot 0 holds the reflector and slot ``num_rotors - 1`` the fast rotor.
    ``all_rotors`` is the catalog rotors are drawn from; it is never
    mutated, inserted rotors are private copies.
    """

    def __init__(
        self,
        alphabet: Alphabet,
        num_rotors: int,
        pawls: int,
        all_rotors: Mapping[str, Rotor],
    ) -> None:
        if num_rotors < 2:
            raise ConfigError(f"A machine needs at least 2 rotor slots, got {num_rotors}")
        if not 0 < pawls < num_rotors:
            raise ConfigError(
                f"Number of pawls must be in 1..{num_rotors - 1}, got {pawls}"
            )
        for name, rotor in all_rotors.items():
            if rotor.alphabet != alphabet:
                raise ConfigError(f"Rotor {name} uses a different alphabet")

        self.alphabet = alphabet
        self._num_rotors = num_rotors
        self._pawls = pawls
        self._all_rotors: Mapping[str, Rotor] = MappingProxyType(dict(all_rotors))
        self._slots: list[Rotor] = []
        self._plugboard = Permutation("", alphabet)

    # ── geometry ────────────────────────────────────────────────

    def num_rotors(self) -> int:
        return self._num_rotors

    def num_pawls(self) -> int:
        return self._pawls

    @property
    def all_rotors(self) -> Mapping[str, Rotor]:
        return self._all_rotors

    def get_rotor(self, k: int) -> Rotor:
        """Rotor #K; #0 is the reflector, #(num_rotors-1) the fast rotor."""
        self._require_rotors()
        return self._slots[k]

    def window(self) -> str:
        """Symbols currently showing for slots 1..n-1."""
        return "".join(self.alphabet.to_symbol(r.setting) for r in self._slots[1:])

    # ── configuration ───────────────────────────────────────────

    def insert_rotors(self, names: Sequence[str]) -> None:
        """Fill the slots with the rotors NAMES (NAMES[0] is the reflector).

        Every rotor starts at setting 0 with ring setting 0.
        """
        names = list(names)
        if len(names) != self._num_rotors:
            raise ConfigError(
                f"Expected {self._num_rotors} rotor names, got {len(names)}"
            )

        seen: set[str] = set()
        for name in names:
            if name not in self._all_rotors:
                raise ConfigError(f"{name} is not in the given rotors")
            if name in seen:
                raise ConfigError(f"Rotor {name} is repeated")
            seen.add(name)

        first_moving = self._num_rotors - self._pawls
        for slot, name in enumerate(names):
            kind = self._all_rotors[name].kind
            if slot == 0:
                expected = RotorKind.REFLECTING
            elif slot < first_moving:
                expected = RotorKind.STATIONARY
            else:
                expected = RotorKind.ADVANCING
            if kind is not expected:
                raise ConfigError(
                    f"Slot {slot} needs a {expected.name.lower()} rotor, "
                    f"{name} is {kind.name.lower()}"
                )

        slots = []
        for name in names:
            rotor = copy(self._all_rotors[name])
            rotor.reset()
            slots.append(rotor)
        self._slots = slots
        debug.log("machine", "inserted %s", " ".join(names))

    def set_rotors(self, setting: str) -> None:
        """Set slots 1..n-1 from SETTING, leftmost rotor first."""
        self._require_rotors()
        self._check_setting(setting)
        if len(setting) != self._num_rotors - 1:
            raise ConfigError(
                f"Bad wheel settings {setting!r}: need {self._num_rotors - 1} symbols"
            )
        for rotor, ch in zip(self._slots[1:], setting):
            rotor.set(ch)
        if debug.active("machine"):
            debug.log("machine", "window %s", self.window())

    def set_ring_setting(self, setting: str = "") -> None:
        """Apply ring settings to slots 1..n-1; missing trailing positions
        take the alphabet's first symbol."""
        self._require_rotors()
        self._check_setting(setting)
        width = self._num_rotors - 1
        if len(setting) > width:
            raise ConfigError(
                f"Bad ring settings {setting!r}: at most {width} symbols"
            )
        padded = setting.ljust(width, self.alphabet.to_symbol(0))
        for rotor, ch in zip(self._slots[1:], padded):
            rotor.set_ring_setting(ch)

    def plugboard(self) -> Permutation:
        return self._plugboard

    def set_plugboard(self, plugboard: Permutation) -> None:
        if plugboard.alphabet != self.alphabet:
            raise ConfigError("Plugboard uses a different alphabet")
        if not plugboard.involution():
            raise ConfigError(f"Plugboard {plugboard} must consist of pairs only")
        self._plugboard = plugboard

    def _check_setting(self, setting: str) -> None:
        for ch in setting:
            if ch not in self.alphabet:
                raise ConfigError(f"{ch!r} is not in the alphabet")

    def _require_rotors(self) -> None:
        if not self._slots:
            raise ConfigError("No rotors inserted")

    # ── stepping logic  ─────────────────────────────────────────

    def _step_rotors(self) -> None:
        """Advance the moving rotors for one key press.

        Notch states are all read before anything moves: the fast rotor
        always steps, a rotor steps when its right neighbour is at a notch,
        and a rotor with a pawl on its left also steps when it is itself
        at a notch (the double step).
        """
        last = self._num_rotors - 1
        first = self._num_rotors - self._pawls
        slots = self._slots

        steps = {last}
        for k in range(first, last):
            if slots[k + 1].at_notch() or (k > first and slots[k].at_notch()):
                steps.add(k)

        for k in sorted(steps):
            slots[k].advance()
        if debug.active("stepping"):
            debug.log("stepping", "slots %s stepped, window %s", sorted(steps), self.window())

    def _apply_rotors(self, c: int) -> int:
        for rotor in reversed(self._slots):
            c = rotor.convert_forward(c)
        for rotor in self._slots[1:]:
            c = rotor.convert_backward(c)
        return c

    # ── encipher one symbol  ────────────────────────────────────

    def convert(self, c: int, observer: Observer | None = None) -> int:
        """Return the result of converting index C after first advancing
        the machine."""
        if not self._slots:
            raise RuntimeError("convert() called before insert_rotors()")

        self._step_rotors()
        plugged = self._plugboard.permute(c)
        out = self._plugboard.permute(self._apply_rotors(plugged))

        if observer is not None or debug.active("plugboard"):
            symbol_in = self.alphabet.to_symbol(self._plugboard.wrap(c))
            symbols = (symbol_in, self.alphabet.to_symbol(plugged), self.alphabet.to_symbol(out))
            debug.log("plugboard", "%s -> %s ... -> %s", *symbols)
            if observer is not None:
                observer(ConversionTrace(self.window(), *symbols))
        return out

    def convert_message(self, msg: str, observer: Observer | None = None) -> str:
        """Encode or decode MSG, skipping whitespace and updating the rotors."""
        symbols = [ch for ch in msg if not ch.isspace()]
        for ch in symbols:
            if ch not in self.alphabet:
                raise ConfigError(f"{ch!r} is not in the alphabet")

        alpha = self.alphabet
        return "".join(
            alpha.to_symbol(self.convert(alpha.to_index(ch), observer))
            for ch in symbols
        )

    def __repr__(self) -> str:
        names = " ".join(r.name for r in self._slots) or "empty"
        return f"<Machine {names} window={self.window() if self._slots else ''}>"
