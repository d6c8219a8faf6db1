# utilities.py
from __future__ import annotations

from collections.abc import Iterable, Iterator

from errors import ConfigError
from machine import Machine, Observer
from machine_config import (
    MachineConfig,
    apply_settings,
    build_machine,
    is_settings_line,
    parse_config_text,
    parse_settings,
)

# ────────────────────────────────────────────────────────────────────────
#  1. Wheel database
# ────────────────────────────────────────────────────────────────────────

# Naval M4: wheels I–VIII, the thin Beta/Gamma wheels and thin reflectors.
NAVAL_CONFIG = """\
ABCDEFGHIJKLMNOPQRSTUVWXYZ
5 3
 I     MQ   (AELTPHQXRU) (BKNW) (CMOY) (DFG) (IV) (JZ) (S)
 II    ME   (FIXVYOMW) (CDKLHUP) (ESZ) (BJ) (GR) (NT) (A) (Q)
 III   MV   (ABDHPEJT) (CFLVMZOYQIRWUKXSG) (N)
 IV    MJ   (AEPLIYWCOXMRFZBSTGJQNH) (DV) (KU)
 V     MZ   (AVOLDRWFIUQ)(BZKSMNHYC) (EGTJPX)
 VI    MZM  (AJQDVLEOZWIYTS) (CGMNHFUX) (BPRK)
 VII   MZM  (ANOUPFRIMBZTLWKSVEHCJ) (DYQ) (GX)
 VIII  MZM  (AFLSETWUNDHOZVICQ) (BKJ) (GXY) (MPR)
 Beta  N    (ALBEVFCYODJWUGNMQTZSKPR) (HIX)
 Gamma N    (AFNIRLBSQWVXGUZDKMTPCOYJHE)
 B     R    (AE) (BN) (CK) (DQ) (FU) (GY) (HW) (IJ) (LO) (MP)
            (RX) (SZ) (TV)
 C     R    (AR) (BD) (CO) (EJ) (FN) (GT) (HK) (IV) (LM) (PW)
            (QZ) (SX) (UY)
"""


def naval_config() -> MachineConfig:
    return parse_config_text(NAVAL_CONFIG)


def naval_machine() -> Machine:
    """A fresh 5-slot, 3-pawl machine with the Naval wheels available."""
    return build_machine(naval_config())


# ────────────────────────────────────────────────────────────────────────
#  2. Text handling
# ────────────────────────────────────────────────────────────────────────


def preprocess_message(msg: str, upper: bool = False) -> str:
    """Trim MSG; fold to upper case only when asked to."""
    text = msg.strip()
    if upper:
        text = text.upper()
    return text


def group_message(msg: str, block: int = 5) -> str:
    """Split MSG into groups of BLOCK symbols (the last may be shorter)."""
    return " ".join(msg[i : i + block] for i in range(0, len(msg), block))


# ────────────────────────────────────────────────────────────────────────
#  3. Message stream
# ────────────────────────────────────────────────────────────────────────


def process(
    machine: Machine,
    lines: Iterable[str],
    *,
    block: int = 5,
    upper: bool = False,
    observer: Observer | None = None,
) -> Iterator[str]:
    """Run a stream of settings lines and message lines through MACHINE.

    Each ``*`` line reconfigures the machine; every other line is converted
    with the current settings and yielded grouped as soon as it is done.
    Blank lines before the first settings line are skipped. Symbols outside
    the alphabet raise unless UPPER folds them into it first.
    """
    configured = False
    for raw in lines:
        line = raw.rstrip("\r\n")
        if is_settings_line(line):
            apply_settings(machine, parse_settings(line, machine.num_rotors()))
            configured = True
        elif not configured:
            if line.strip():
                raise ConfigError("missing settings line before message")
        else:
            text = preprocess_message(line, upper)
            yield group_message(machine.convert_message(text, observer), block)
