from pathlib import Path
import sys

# Ensure project root is on the import path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import settings


def test_default_path():
    assert settings.resolve_notes_path(None, {}) == settings.NOTES_PATH
    assert settings.NOTES_PATH.parts[-3:] == (".config", "vodo", "notes.json")


def test_env_override():
    env = {settings.NOTES_PATH_ENV: "/tmp/elsewhere.json"}
    assert settings.resolve_notes_path(None, env) == Path("/tmp/elsewhere.json")


def test_cli_path_wins():
    env = {settings.NOTES_PATH_ENV: "/tmp/elsewhere.json"}
    assert settings.resolve_notes_path("/tmp/cli.json", env) == Path("/tmp/cli.json")
