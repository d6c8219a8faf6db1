# alphabet_and_permutation.py
from __future__ import annotations

from collections.abc import Iterator

from debug import Debug
from errors import ConfigError, IndexRangeError, SymbolLookupError

debug = Debug()

UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
RESERVED = frozenset("*()")


# ── Alphabet ──────────────────────────────────────────────────────
class Alphabet:
    """An ordered, duplicate-free set of symbols.

    The k-th symbol has index k. ``*``, ``(``, ``)`` and whitespace are
    reserved for settings lines and cycle notation.
    """

    def __init__(self, symbols: str = UPPER) -> None:
        if not symbols:
            raise ConfigError("Alphabet must contain at least one symbol")
        seen: set[str] = set()
        for ch in symbols:
            if ch in RESERVED or ch.isspace():
                raise ConfigError(f"Reserved character {ch!r} cannot be in an alphabet")
            if ch in seen:
                raise ConfigError(f"Duplicate character {ch!r} in alphabet")
            seen.add(ch)

        self.symbols: str = symbols
        self.symbol_to_index: dict[str, int] = {
            ch: i for i, ch in enumerate(symbols)
        }

    def size(self) -> int:
        return len(self.symbols)

    def contains(self, ch: str) -> bool:
        return ch in self.symbol_to_index

    # symbol → integer signal
    def to_index(self, ch: str) -> int:
        try:
            return self.symbol_to_index[ch]
        except KeyError:
            raise SymbolLookupError(f"{ch!r} is not in the alphabet") from None

    # integer signal → symbol
    def to_symbol(self, index: int) -> str:
        if not 0 <= index < len(self.symbols):
            hi = len(self.symbols) - 1
            raise IndexRangeError(f"Index {index} out of range 0–{hi}")
        return self.symbols[index]

    def __len__(self) -> int:
        return len(self.symbols)

    def __contains__(self, ch: object) -> bool:
        return ch in self.symbol_to_index

    def __iter__(self) -> Iterator[str]:
        return iter(self.symbols)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Alphabet):
            return NotImplemented
        return self.symbols == other.symbols

    def __hash__(self) -> int:
        return hash(self.symbols)

    def __repr__(self) -> str:
        return f"<Alphabet {self.symbols!r}>"


# ── Permutation ───────────────────────────────────────────────────
def parse_cycles(text: str) -> list[str]:
    """Split ``"(ABC) (DE)"`` into ``["ABC", "DE"]``.

    Whitespace is ignored anywhere, so ``"(A B)"`` is ``"(AB)"``; a symbol
    outside parentheses, nesting or an unclosed group is an error.
    """
    cycles: list[str] = []
    current: list[str] | None = None
    for ch in text:
        if ch == "(":
            if current is not None:
                raise ConfigError(f"Nested '(' in cycles {text!r}")
            current = []
        elif ch == ")":
            if current is None:
                raise ConfigError(f"Unmatched ')' in cycles {text!r}")
            if current:
                cycles.append("".join(current))
            current = None
        elif ch.isspace():
            continue
        elif current is None:
            raise ConfigError(f"Symbol {ch!r} outside of a cycle in {text!r}")
        else:
            current.append(ch)
    if current is not None:
        raise ConfigError(f"Unclosed '(' in cycles {text!r}")
    return cycles


class Permutation:
    """A permutation of an alphabet given in cycle notation.

    Symbols not mentioned in any cycle map to themselves. Both directions
    are kept as integer lookup tables; the cycles are kept for display.
    """

    def __init__(self, cycles: str, alphabet: Alphabet) -> None:
        self.alphabet = alphabet
        groups = parse_cycles(cycles)

        used: set[str] = set()
        for group in groups:
            for ch in group:
                if ch not in alphabet:
                    raise ConfigError(f"{ch!r} is not in the alphabet")
                if ch in used:
                    raise ConfigError(
                        f"Duplicate {ch!r}: a symbol may appear in only one cycle"
                    )
                used.add(ch)

        self.cycles: tuple[str, ...] = tuple(groups)

        n = alphabet.size()
        self._fwd = list(range(n))
        self._rev = list(range(n))
        for group in self.cycles:
            idx = [alphabet.to_index(ch) for ch in group]
            for i, src in enumerate(idx):
                dst = idx[(i + 1) % len(idx)]
                self._fwd[src] = dst
                self._rev[dst] = src

        debug.log("permutation", "built %s over %d symbols", self, n)

    @classmethod
    def from_wiring(cls, wiring: str, alphabet: Alphabet) -> "Permutation":
        """Build from a straight wiring: ``wiring[i]`` is the image of symbol i."""
        if sorted(wiring) != sorted(alphabet.symbols):
            raise ConfigError("wiring must be a permutation of alphabet")

        seen: set[str] = set()
        groups: list[str] = []
        for start in alphabet:
            if start in seen:
                continue
            group = []
            ch = start
            while ch not in seen:
                seen.add(ch)
                group.append(ch)
                ch = wiring[alphabet.to_index(ch)]
            if len(group) > 1:
                groups.append("".join(group))
        return cls(" ".join(f"({g})" for g in groups), alphabet)

    def size(self) -> int:
        return self.alphabet.size()

    def wrap(self, p: int) -> int:
        """Return P modulo the size of this permutation, in [0, size)."""
        return p % self.size()

    def permute(self, p: int) -> int:
        return self._fwd[self.wrap(p)]

    def invert(self, c: int) -> int:
        return self._rev[self.wrap(c)]

    def permute_symbol(self, ch: str) -> str:
        return self.alphabet.to_symbol(self.permute(self.alphabet.to_index(ch)))

    def invert_symbol(self, ch: str) -> str:
        return self.alphabet.to_symbol(self.invert(self.alphabet.to_index(ch)))

    def derangement(self) -> bool:
        """True iff no symbol maps to itself."""
        return all(dst != src for src, dst in enumerate(self._fwd))

    def involution(self) -> bool:
        """True iff applying the permutation twice is the identity."""
        return all(len(group) <= 2 for group in self.cycles)

    def __str__(self) -> str:
        return " ".join(f"({group})" for group in self.cycles)

    def __repr__(self) -> str:
        return f"<Permutation {self}>"
