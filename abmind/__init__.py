"""
ABMind course portal content pipeline: load, validate, filter and search
course catalog content stored as YAML.
"""

from pathlib import Path

__version__ = (Path(__file__).resolve().parent / "VERSION").read_text(encoding="utf-8").strip()
