"""Centralized path constants for the project.

All session snapshot / completion record paths are defined here so that
every module imports from a single source of truth.
"""

from __future__ import annotations

from pathlib import Path

PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
DATA_DIR: Path = PROJECT_ROOT / "data"
SESSIONS_DIR: Path = DATA_DIR / "sessions"
COMPLETIONS_PATH: Path = DATA_DIR / "completions.jsonl"
