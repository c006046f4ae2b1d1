"""Lexical signal tables for Tier-1 classification."""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class Signal:
    """A keyword or phrase with a specificity weight (1 = generic, 3 = explicit)."""
    phrase: str
    weight: int = 1


@dataclass(frozen=True)
class SignalTable:
    """Immutable red/amber/green signal sets.

    Borderline phrases never change the light; they flag an otherwise green
    job for Tier-2 review.
    """
    red: tuple[Signal, ...]
    amber: tuple[Signal, ...]
    green: tuple[Signal, ...]
    borderline: tuple[Signal, ...] = ()


def _signals(*entries: Union[str, tuple[str, int]]) -> tuple[Signal, ...]:
    return tuple(
        Signal(entry) if isinstance(entry, str) else Signal(entry[0], entry[1])
        for entry in entries
    )


# Specialist/complex work: referral or site visit
RED_SIGNALS = _signals(
    # Gas (Gas Safe registered engineers only)
    "gas", ("gas leak", 3), ("smell gas", 3), ("smell of gas", 3),
    ("gas boiler", 2), ("gas cooker", 2), ("gas hob", 2), ("gas pipe", 2), ("gas fire", 2),
    "boiler", ("combi boiler", 2), "central heating",
    # Electrical beyond minor works
    ("rewire", 2), ("rewiring", 2), ("consumer unit", 2), ("fuse box", 2), ("fuse board", 2),
    ("electrical panel", 2), ("new circuit", 2), ("sockets stopped", 2),
    ("sockets not working", 2), ("half the sockets", 2), ("no power", 2),
    "electrics", "flickering", "keeps tripping", "trip switch", "add sockets", "more sockets",
    # Structural
    ("structural", 2), ("structural crack", 3), ("load bearing", 2), ("foundation", 2),
    ("subsidence", 3), ("underpinning", 2), ("wall removal", 2), ("chimney removal", 2),
    ("rsj", 2), ("steel beam", 2), ("big crack", 2), ("large crack", 2),
    ("crack getting wider", 3), ("getting wider", 2), ("bowing", 2), "bulging",
    "floor sloping", "floors sloping", ("walls leaning", 2), ("wall leaning", 2), "wonky floor", "wonky wall",
    # Hazardous materials
    ("asbestos", 3), ("lead paint", 2),
    # Major building works
    "house extension", "rear extension", "kitchen extension", "build an extension",
    ("loft conversion", 2), ("basement conversion", 2),
    # Roofing
    "roof", "roofing", "tiles off", "roof tiles", "chimney", ("chimney stack", 2), "slates",
    # Serious damp
    ("rising damp", 3), ("penetrating damp", 3), ("severe damp", 2), ("damp survey", 2),
    ("walls wet", 2), ("wet to the touch", 3), ("damp to the touch", 3),
    ("damp coming up", 2), ("damp throughout", 2), "musty smell",
    "peeling paint", "paint peeling", "paint keeps peeling",
)

# Needs video/photos before it can be priced
AMBER_SIGNALS = _signals(
    # Leaks
    "leak", "leaking", "leaky", "water damage", "flooding", "flooded",
    # Damp and mould, severity unknown
    "damp", "dampness", "damp patch", "wet patch", "condensation",
    "mould", "mouldy", "mold", "moldy", "black mould",
    # Damage needing assessment
    "crack", "cracked", "damage", "damaged", "broken", "split", "rot", "rotten",
    # Custom work
    "custom", "bespoke", "made to measure", "unusual",
    # Several jobs at once
    "few things", "several jobs", "list of jobs", "couple of problems", "multiple",
    # Vague
    "not sure", "don't know", "no idea", "hard to describe", "difficult to explain",
    "what's wrong", "not working", "stopped working",
)

# Bounded, historically safe tasks
GREEN_SIGNALS = _signals(
    ("dripping tap", 2), ("tap dripping", 2), ("tap washer", 2), "tap",
    "hang", "hanging", "mount", "mounting", "put up",
    "shelf", "shelves", "curtain pole", "curtain rail", "blind", "picture", "mirror",
    "tv", "telly",
    ("flat pack", 2), ("flatpack", 2), "assemble", "assembly", "ikea",
    ("toilet seat", 2), "door handle", "handle", "lock", "hinge",
    "silicone", "sealant", "towel rail",
)

# Age or heritage of the property: a green job may hide non-standard fittings
BORDERLINE_SIGNALS = _signals(
    "old", "original", "historic", "period property", "listed building",
)

DEFAULT_SIGNAL_TABLE = SignalTable(
    red=RED_SIGNALS,
    amber=AMBER_SIGNALS,
    green=GREEN_SIGNALS,
    borderline=BORDERLINE_SIGNALS,
)


def _parse_entries(entries: list) -> tuple[Signal, ...]:
    signals = []
    for entry in entries:
        if isinstance(entry, str):
            signal = Signal(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("phrase"), str):
            signal = Signal(entry["phrase"], int(entry.get("weight", 1)))
        else:
            raise ValueError(f"Invalid signal entry: {entry!r}")
        if not signal.phrase.replace("-", " ").strip():
            raise ValueError(f"Blank signal phrase: {entry!r}")
        signals.append(signal)
    return tuple(signals)


def load_signal_table(path: Union[str, Path]) -> SignalTable:
    """Load a signal table from a JSON file.

    Args:
        path: JSON file with "red", "amber" and "green" lists and an
            optional "borderline" list. Each entry is a phrase string
            (weight 1) or {"phrase": ..., "weight": ...}.

    Returns:
        SignalTable built from the file

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If an entry is malformed or its phrase is blank
    """
    signals_file = Path(path)

    if not signals_file.exists():
        raise FileNotFoundError(f"Signal table not found: {signals_file}")

    with open(signals_file) as f:
        data = json.load(f)

    return SignalTable(
        red=_parse_entries(data.get("red", [])),
        amber=_parse_entries(data.get("amber", [])),
        green=_parse_entries(data.get("green", [])),
        borderline=_parse_entries(data.get("borderline", [])),
    )
