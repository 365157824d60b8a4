"""Shared helpers for settings components."""

from pathlib import Path

from decouple import AutoConfig

# Project root: the directory holding manage.py
BASE_DIR = Path(__file__).parent.parent.parent.parent

# Reads values from os.environ first, then from BASE_DIR/.env
config = AutoConfig(search_path=BASE_DIR)
