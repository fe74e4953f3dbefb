"""
poses.py

The fixed 6×6 pose table used by the character template, plus a TSV reader for
callers that label their cells differently.
"""

from typing import List

COLS = 6
ROWS = 6
TOTAL_CELLS = COLS * ROWS

CELL_LABELS: List[str] = [
    # Row 0: Walk Down + Walk Up
    "Walk Down 1", "Walk Down 2", "Walk Down 3",
    "Walk Up 1", "Walk Up 2", "Walk Up 3",
    # Row 1: Walk Left + Walk Right
    "Walk Left 1", "Walk Left 2", "Walk Left 3",
    "Walk Right 1", "Walk Right 2", "Walk Right 3",
    # Row 2: Idle + Battle Idle start
    "Idle Down", "Idle Up", "Idle Left", "Idle Right",
    "Battle Idle 1", "Battle Idle 2",
    # Row 3: Battle Idle 3, Attack, Cast start
    "Battle Idle 3",
    "Attack 1", "Attack 2", "Attack 3",
    "Cast 1", "Cast 2",
    # Row 4: Cast 3, Damage, KO start
    "Cast 3",
    "Damage 1", "Damage 2", "Damage 3",
    "KO 1", "KO 2",
    # Row 5: KO 3, Victory, Weak, Critical
    "KO 3",
    "Victory 1", "Victory 2", "Victory 3",
    "Weak Pose", "Critical Pose",
]


def pose_id(label: str) -> str:
    """'Walk Down 1' -> 'walk-down-1'"""
    return "-".join(label.lower().split())


def parse_labels_tsv(tsv_text: str) -> List[str]:
    """
    Parse TSV and return the label in column 1 of every row.
    - Ignores empty lines and comment lines (#...)
    - Also skips a header row if it looks like one ("id" or "label").
    """
    lines = [l.rstrip("\n") for l in tsv_text.splitlines()]
    lines = [l for l in lines if l.strip() and not l.strip().startswith("#")]

    labels: List[str] = []
    for line in lines:
        label = line.split("\t")[0].strip()
        if not label:
            continue
        if label.lower() in ("id", "label"):
            continue
        labels.append(label)
    return labels
