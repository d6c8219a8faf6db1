import json
from pathlib import Path

import pytest

from errors import ConfigError
from machine_config import (
    MachineSettings,
    apply_settings,
    build_machine,
    load_config,
    parse_config_json,
    parse_config_text,
    parse_settings,
)
from rotor_and_reflector import RotorKind
from utilities import NAVAL_CONFIG, group_message, naval_config, naval_machine, process

NAVAL_JSON = Path(__file__).parent.parent / "naval_config.json"
SETTINGS1 = "* B Beta III IV I AXLE (HQ) (EX) (IP) (TR) (BY)"


# ── configuration files ───────────────────────────────────────────

def test_naval_catalog():
    cfg = naval_config()
    assert (cfg.num_rotors, cfg.pawls) == (5, 3)
    assert len(cfg.rotors) == 12
    assert cfg.rotors["B"].kind is RotorKind.REFLECTING
    assert cfg.rotors["Gamma"].kind is RotorKind.STATIONARY
    assert cfg.rotors["VI"].notches == frozenset("ZM")
    # cycles continued on the next line are part of the same wheel
    assert "TV" in cfg.rotors["B"].permutation.cycles


def test_json_and_text_configs_agree(tmp_path):
    text_file = tmp_path / "naval.conf"
    text_file.write_text(NAVAL_CONFIG, encoding="utf-8")

    outputs = []
    for path in (NAVAL_JSON, text_file):
        mach = build_machine(load_config(path))
        apply_settings(mach, parse_settings(SETTINGS1, 5))
        outputs.append(mach.convert_message("FROMHISSHOULDERHIAWATHA"))
    assert outputs == ["QVPQSOKOILPUBKJZPISFXDW"] * 2


def test_json_missing_keys():
    with pytest.raises(ConfigError, match="pawls, slots"):
        parse_config_json({"alphabet": "AB", "wheels": {}})


@pytest.mark.parametrize(
    "wheel",
    [
        {"type": "X", "cycles": "(AB)"},            # unknown type
        {"type": "R", "notches": "A", "cycles": "(AB)"},
        {"type": "R", "cycles": ""},                # reflector with fixed points
        {"type": "M", "notches": "Q", "cycles": "(AB)"},
        {"type": "N", "wiring": "AAB"},
        "N (AB)",
    ],
)
def test_json_bad_wheels(wheel):
    data = {"alphabet": "ABC", "slots": 2, "pawls": 1, "wheels": {"W": wheel}}
    with pytest.raises(ConfigError):
        parse_config_json(data)


def test_load_config_errors(tmp_path):
    with pytest.raises(ConfigError, match="could not open"):
        load_config(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{ not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid JSON"):
        load_config(bad)

    geometry = tmp_path / "geometry.json"
    geometry.write_text(json.dumps(
        {"alphabet": "AB", "slots": "five", "pawls": 1, "wheels": {}}
    ), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(geometry)


@pytest.mark.parametrize(
    "text",
    [
        "ABCD",                              # truncated
        "ABCD\n2 1\n I\n",                   # name without type
        "ABCD\n2 1\n (AB)\n",                # cycles without a wheel
        "ABCD\n2 1\n R R (AB)(CD)\n R R (AC)(BD)\n",  # defined twice
        "ABCA\n2 1\n",                       # bad alphabet
    ],
)
def test_text_config_errors(text):
    with pytest.raises(ConfigError):
        parse_config_text(text)


def test_text_config_cycle_split_by_space():
    cfg = parse_config_text("ABCD\n2 1\n R R (A B) (C\n   D)\n M MA (AB C)\n")
    assert cfg.rotors["R"].permutation.cycles == ("AB", "CD")
    assert cfg.rotors["M"].permutation.cycles == ("ABC",)
    assert cfg.rotors["M"].notches == frozenset("A")


# ── settings lines ────────────────────────────────────────────────

def test_parse_settings():
    s = parse_settings(SETTINGS1, 5)
    assert s == MachineSettings(
        ("B", "Beta", "III", "IV", "I"), "AXLE", "", "(HQ) (EX) (IP) (TR) (BY)"
    )

    s = parse_settings("*  B Beta III IV I AXLE AAAB", 5)
    assert s.ring_setting == "AAAB"
    assert s.plugboard == ""


@pytest.mark.parametrize(
    "line",
    [
        "B Beta III IV I AXLE",              # no star
        "* B Beta III IV I",                 # no setting
        "* B Beta III IV I AXLE AAAA BBBB",  # two ring settings
        "* B Beta III IV I AXLE (HQ) EX",    # stray token
    ],
)
def test_parse_settings_errors(line):
    with pytest.raises(ConfigError):
        parse_settings(line, 5)


@pytest.mark.parametrize(
    "line",
    [
        "* B Beta III IV I AXLE (ABC)",      # not a plugboard
        "* B Beta III IV I AXL",
        "* B Beta III IV I AXLE AAAAA",
        "* B Beta III IV I AX1E",
        "* B Beta IV IV I AXLE",
    ],
)
def test_apply_settings_is_all_or_nothing(line):
    mach = naval_machine()
    apply_settings(mach, parse_settings(SETTINGS1, 5))
    with pytest.raises(ConfigError):
        apply_settings(mach, parse_settings(line, 5))
    assert mach.window() == "AXLE"
    assert [mach.get_rotor(k).name for k in range(5)] == ["B", "Beta", "III", "IV", "I"]
    assert str(mach.plugboard()) == "(HQ) (EX) (IP) (TR) (BY)"


# ── message stream ────────────────────────────────────────────────

def test_group_message():
    assert group_message("QVPQSOKOILPUBKJZPISFXDW") == "QVPQS OKOIL PUBKJ ZPISF XDW"
    assert group_message("ABCDE") == "ABCDE"
    assert group_message("") == ""
    assert group_message("ABCDEFG", 3) == "ABC DEF G"


def test_process_stream():
    lines = [
        "\n",
        SETTINGS1 + "\r\n",
        "FROM HIS SHOULDER HIAWATHA\n",
        "\n",
        SETTINGS1 + "\n",
        "QVPQS OKOIL PUBKJ ZPISF XDW\n",
    ]
    assert list(process(naval_machine(), lines)) == [
        "QVPQS OKOIL PUBKJ ZPISF XDW",
        "",
        "FROMH ISSHO ULDER HIAWA THA",
    ]


def test_process_yields_before_reading_on():
    def lines():
        yield SETTINGS1
        yield "FROMHISSHOULDERHIAWATHA"
        raise AssertionError("read past the first message")

    stream = process(naval_machine(), lines())
    assert next(stream) == "QVPQS OKOIL PUBKJ ZPISF XDW"


def test_process_needs_settings_first():
    with pytest.raises(ConfigError, match="missing settings"):
        list(process(naval_machine(), ["HELLO"]))


def test_process_rejects_lower_case():
    stream = process(naval_machine(), [SETTINGS1, "From his shoulder Hiawatha"])
    with pytest.raises(ConfigError, match="'r' is not in the alphabet"):
        list(stream)


def test_process_upper_folds_lower_case():
    lines = [SETTINGS1, "From his shoulder Hiawatha"]
    assert list(process(naval_machine(), lines, upper=True)) == [
        "QVPQS OKOIL PUBKJ ZPISF XDW",
    ]
