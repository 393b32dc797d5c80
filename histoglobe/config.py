import os
from pathlib import Path

import yaml

from histoglobe.processing.taxonomy import KEYWORD_SEARCHES


CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


def load_config(path: Path = CONFIG_PATH) -> dict:
    """Load config.yaml (if present), apply env var overrides and defaults."""
    path = Path(path)
    if path.exists():
        with open(path) as f:
            cfg = yaml.safe_load(f) or {}
    else:
        cfg = {}
    if not isinstance(cfg, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")

    # Env vars take precedence
    for env_name, key in (
        ("HISTOGLOBE_API_URL", "api_url"),
        ("HISTOGLOBE_USER_AGENT", "user_agent"),
        ("HISTOGLOBE_DB_PATH", "db_path"),
    ):
        value = os.environ.get(env_name)
        if value:
            cfg[key] = value

    # Resolve data paths relative to project root
    project_root = Path(__file__).parent.parent
    cfg["db_path"] = str(project_root / cfg.get("db_path", "data/histoglobe.db"))
    cfg["log_path"] = str(project_root / cfg.get("log_path", "data/discovery.log"))

    # Defaults
    cfg.setdefault("api_url", "https://fr.wikipedia.org/w/api.php")
    cfg.setdefault("user_agent", "histoglobe/0.1 (https://github.com/histoglobe/histoglobe)")
    cfg.setdefault("request_timeout", 15)
    cfg.setdefault("max_concurrent", 10)
    cfg.setdefault("batch_size", 50)
    cfg.setdefault("max_results", 30)
    cfg.setdefault("shadow_limit", 150)
    cfg.setdefault("grid_offset", 0.18)
    cfg.setdefault("default_radius", 10000)
    cfg.setdefault("keyword_search_limit", 5)
    cfg.setdefault("keyword_searches", list(KEYWORD_SEARCHES))
    cfg.setdefault("quiz_difficulty", "easy")
    cfg.setdefault("answer_threshold", 100)

    if cfg["quiz_difficulty"] not in ("easy", "hard"):
        raise ValueError(f"quiz_difficulty must be 'easy' or 'hard', got {cfg['quiz_difficulty']!r}")

    return cfg


def save_config(cfg: dict, path: Path = CONFIG_PATH):
    """Write config dict back to config.yaml."""
    # Work on a copy to avoid mutating the caller's dict
    to_save = dict(cfg)
    # Restore relative data paths for the file
    project_root = Path(__file__).parent.parent
    for key in ("db_path", "log_path"):
        try:
            to_save[key] = str(Path(to_save[key]).relative_to(project_root))
        except (ValueError, KeyError):
            pass
    with open(path, "w") as f:
        yaml.dump(to_save, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
