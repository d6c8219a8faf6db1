# machine_config.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

from alphabet_and_permutation import Alphabet, Permutation
from debug import Debug
from errors import ConfigError
from machine import Machine
from rotor_and_reflector import Rotor, RotorKind

debug = Debug()

REQUIRED_KEYS = {"alphabet", "slots", "pawls", "wheels"}


@dataclass(slots=True)
class MachineConfig:
    """Everything a configuration file describes: the alphabet, the slot
    geometry and the catalog of available wheels."""

    alphabet: Alphabet
    num_rotors: int
    pawls: int
    rotors: Dict[str, Rotor] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MachineSettings:
    """One ``* ...`` settings line."""

    rotors: Tuple[str, ...]
    setting: str
    ring_setting: str = ""
    plugboard: str = ""


# ────────────────────────────────────────────────────────────────────────
#  1. Wheels
# ────────────────────────────────────────────────────────────────────────


def make_rotor(name: str, type_and_notches: str, perm: Permutation) -> Rotor:
    """Build a wheel from its type token: ``M<notches>``, ``N`` or ``R``."""
    if not type_and_notches:
        raise ConfigError(f"Missing type for rotor {name}")
    try:
        kind = RotorKind(type_and_notches[0])
    except ValueError:
        raise ConfigError(
            f"Invalid rotor type {type_and_notches[0]!r} for rotor {name}"
        ) from None

    notches = type_and_notches[1:]
    if kind is RotorKind.ADVANCING:
        return Rotor.moving(name, perm, notches)
    if notches:
        raise ConfigError(f"Only moving rotors have notches (rotor {name})")
    if kind is RotorKind.REFLECTING:
        return Rotor.reflector(name, perm)
    return Rotor.fixed(name, perm)


def _add_rotor(cfg: MachineConfig, rotor: Rotor) -> None:
    if rotor.name in cfg.rotors:
        raise ConfigError(f"Rotor {rotor.name} is defined twice")
    cfg.rotors[rotor.name] = rotor
    debug.log("config", "wheel %s %s %s", rotor.name, rotor.kind.name, rotor.permutation)


def _geometry(rotors: object, pawls: object) -> tuple[int, int]:
    try:
        return int(rotors), int(pawls)
    except (TypeError, ValueError):
        raise ConfigError(f"Rotor and pawl counts must be integers: {rotors!r} {pawls!r}") from None


# ────────────────────────────────────────────────────────────────────────
#  2. Configuration formats
# ────────────────────────────────────────────────────────────────────────


def parse_config_text(text: str) -> MachineConfig:
    """Read the plain-text format::

        ABCDEFGHIJKLMNOPQRSTUVWXYZ
        5 3
         I MQ (AELTPHQXRU) (BKNW) (CMOY) (DFG) (IV) (JZ) (S)
         B R  (AE) (BN) (CK) ...

    Cycle groups of one wheel may continue on the following lines, and a
    single group may be split by whitespace.
    """
    tokens = text.split()
    if len(tokens) < 3:
        raise ConfigError("configuration file truncated")

    alphabet = Alphabet(tokens[0])
    num_rotors, pawls = _geometry(tokens[1], tokens[2])
    cfg = MachineConfig(alphabet, num_rotors, pawls)

    rest = tokens[3:]
    i = 0
    while i < len(rest):
        name = rest[i]
        if name.startswith("("):
            raise ConfigError(f"Cycle {name} does not belong to any rotor")
        if i + 1 >= len(rest) or rest[i + 1].startswith("("):
            raise ConfigError(f"bad rotor description for {name}")
        type_token = rest[i + 1]
        i += 2
        cycles = []
        depth = 0
        while i < len(rest) and (depth > 0 or rest[i].startswith("(")):
            depth += rest[i].count("(") - rest[i].count(")")
            cycles.append(rest[i])
            i += 1
        _add_rotor(cfg, make_rotor(name, type_token, Permutation(" ".join(cycles), alphabet)))

    return cfg


def parse_config_json(data: dict) -> MachineConfig:
    """Read the JSON format: ``alphabet``, ``slots``, ``pawls`` and a
    ``wheels`` object mapping names to ``type``/``notches`` and either
    ``cycles`` or a straight ``wiring``."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")
    missing = REQUIRED_KEYS - data.keys()
    if missing:
        raise ConfigError(f"Missing keys in config: {', '.join(sorted(missing))}")

    alphabet = Alphabet(data["alphabet"])
    num_rotors, pawls = _geometry(data["slots"], data["pawls"])
    cfg = MachineConfig(alphabet, num_rotors, pawls)

    for name, wheel in data["wheels"].items():
        if not isinstance(wheel, dict):
            raise ConfigError(f"Wheel {name} must be a JSON object")
        if "wiring" in wheel:
            perm = Permutation.from_wiring(wheel["wiring"], alphabet)
        else:
            perm = Permutation(wheel.get("cycles", ""), alphabet)
        type_token = wheel.get("type", "") + wheel.get("notches", "")
        _add_rotor(cfg, make_rotor(name, type_token, perm))

    return cfg


def load_config(path: str | Path) -> MachineConfig:
    """Load a machine configuration, JSON or plain text by content."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"could not open {path}: {e.strerror}") from e

    if text.lstrip().startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path}: invalid JSON ({e.msg} at line {e.lineno})") from e
        return parse_config_json(data)
    return parse_config_text(text)


def build_machine(cfg: MachineConfig) -> Machine:
    return Machine(cfg.alphabet, cfg.num_rotors, cfg.pawls, cfg.rotors)


# ────────────────────────────────────────────────────────────────────────
#  3. Settings lines
# ────────────────────────────────────────────────────────────────────────


def is_settings_line(line: str) -> bool:
    return line.lstrip().startswith("*")


def parse_settings(line: str, num_rotors: int) -> MachineSettings:
    """Parse ``* B Beta III IV I AXLE [RING] [(HQ) (EX) ...]``."""
    if not is_settings_line(line):
        raise ConfigError("Settings should start with *")

    tokens = line.lstrip()[1:].split()
    if len(tokens) < num_rotors + 1:
        raise ConfigError(
            f"Settings need {num_rotors} rotor names and a setting: {line.strip()!r}"
        )

    names = tuple(tokens[:num_rotors])
    setting = tokens[num_rotors]
    rest = tokens[num_rotors + 1:]

    ring = ""
    if rest and not rest[0].startswith("("):
        ring = rest.pop(0)
    stray = [t for t in rest if not t.startswith("(")]
    if stray:
        raise ConfigError(f"Unexpected {stray[0]!r} in settings line")

    return MachineSettings(names, setting, ring, " ".join(rest))


def apply_settings(machine: Machine, settings: MachineSettings) -> None:
    """Insert, set and plug MACHINE as SETTINGS say.

    Everything is checked before the machine is touched.
    """
    width = machine.num_rotors() - 1
    for ch in settings.setting + settings.ring_setting:
        if ch not in machine.alphabet:
            raise ConfigError(f"{ch!r} is not in the alphabet")
    if len(settings.setting) != width:
        raise ConfigError(f"Bad wheel settings {settings.setting!r}: need {width} symbols")
    if len(settings.ring_setting) > width:
        raise ConfigError(f"Bad ring settings {settings.ring_setting!r}: at most {width} symbols")
    plugboard = Permutation(settings.plugboard, machine.alphabet)
    if not plugboard.involution():
        raise ConfigError(f"Plugboard {plugboard} must consist of pairs only")

    machine.insert_rotors(settings.rotors)
    machine.set_rotors(settings.setting)
    machine.set_ring_setting(settings.ring_setting)
    machine.set_plugboard(plugboard)
    debug.log("config", "applied %s", settings)
