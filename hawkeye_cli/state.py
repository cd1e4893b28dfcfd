"""Global configuration and session state."""

from __future__ import annotations

import json
import os
import tempfile

CONFIG_DIR_NAME = ".hawkeye"
CONFIG_FILE_NAME = "config.json"


class Config:
    server: str = ""
    token: str = ""
    org_uuid: str = ""
    project_uuid: str = ""
    last_session: str = ""
    profile: str = ""                  # "" = default profile
    debug: bool = False


config = Config()

# Keys persisted to the config file (everything else is per-invocation)
_PERSISTED = ("server", "token", "org_uuid", "project_uuid", "last_session")


# ── Config file ─────────────────────────────────────────────────────────────

def config_dir() -> str:
    """~/.hawkeye, or $SNAP_USER_COMMON/.hawkeye inside a snap."""
    base = os.environ.get("SNAP_USER_COMMON") or os.path.expanduser("~")
    return os.path.join(base, CONFIG_DIR_NAME)


def config_path(profile: str = "") -> str:
    name = f"config-{profile}.json" if profile else CONFIG_FILE_NAME
    return os.path.join(config_dir(), name)


def load_user_config(profile: str = "") -> dict:
    """Load the profile's config file. Missing or unreadable files load as {}."""
    path = config_path(profile)
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_user_config(data: dict, profile: str = ""):
    """Merge `data` into the profile's config file (atomic write, 0600)."""
    base = config_dir()
    os.makedirs(base, mode=0o700, exist_ok=True)
    existing = load_user_config(profile)
    existing.update(data)
    # Write to temp file then atomically rename to prevent data loss on crash
    fd, tmp_path = tempfile.mkstemp(dir=base, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(existing, f, ensure_ascii=False, indent=2)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, config_path(profile))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def init_config(profile: str = ""):
    """Populate `config` from the config file, then environment overrides."""
    config.profile = profile
    user_cfg = load_user_config(profile)
    for key in _PERSISTED:
        value = user_cfg.get(key, "")
        if isinstance(value, str) and value:
            setattr(config, key, value)
    if os.environ.get("HAWKEYE_SERVER"):
        config.server = os.environ["HAWKEYE_SERVER"]
    if os.environ.get("HAWKEYE_TOKEN"):
        config.token = os.environ["HAWKEYE_TOKEN"]


def validate_config(need_project: bool = True) -> str | None:
    """Return a human-readable problem with `config`, or None if usable."""
    pf = f" --profile {config.profile}" if config.profile else ""
    if not config.server:
        return f"server not set. Run: hawkeye{pf} --server <url> --save ..."
    if not config.token:
        return f"not authenticated. Run: hawkeye{pf} --token <token> --save ..."
    if need_project and not config.project_uuid:
        return f"project not set. Run: hawkeye{pf} --project <uuid> --save ..."
    return None


# ── Session ─────────────────────────────────────────────────────────────────

class SessionState:
    def __init__(self, session_uuid: str = ""):
        self.session_uuid: str = session_uuid
        self.turn_count: int = 0
        self.last_answer: str = ""
        self.follow_up_suggestions: list[str] = []

    def reset(self):
        self.session_uuid = ""
        self.turn_count = 0
        self.last_answer = ""
        self.follow_up_suggestions = []
