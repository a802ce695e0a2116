# connectk/config.py
from dataclasses import dataclass, field
from typing import Optional
import logging
import os
import tomllib  # python >=3.11

logger = logging.getLogger(__name__)

# Sentinel weight for a completed line (effectively a win)
WIN_WEIGHT = 1e30


@dataclass
class SearchConfig:
    time_limit_ms: int = 5000
    safety_margin_ms: int = 100
    max_depth: Optional[int] = None  # None means deadline-only
    prune: bool = True
    use_quiescence: bool = False
    q_max_depth: int = 2


@dataclass
class EvalConfig:
    line_exponent: int = 3
    win_weight: float = WIN_WEIGHT


@dataclass
class BoardConfig:
    width: int = 7
    height: int = 6
    k_length: int = 4
    gravity: bool = True


@dataclass
class UIConfig:
    engine_name: str = "connectk"


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    board: BoardConfig = field(default_factory=BoardConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "connectk.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "board", "ui"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
                else:
                    logger.warning("Unknown config key [%s].%s ignored", section, k)
        if "log_level" in raw:
            cfg.log_level = raw["log_level"]
        return cfg


def apply_env_overrides(cfg: Config, environ=None) -> Config:
    """Override the search budget from CONNECTK_TIME_LIMIT_MS / CONNECTK_MAX_DEPTH."""
    environ = os.environ if environ is None else environ
    for var, attr in (("CONNECTK_TIME_LIMIT_MS", "time_limit_ms"),
                      ("CONNECTK_MAX_DEPTH", "max_depth")):
        raw = environ.get(var)
        if not raw:
            continue
        try:
            setattr(cfg.search, attr, int(raw))
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", var, raw)
    return cfg


# single globally importable config instance
CONFIG = apply_env_overrides(
    Config.load_from_toml(os.environ.get("CONNECTK_CONFIG_TOML", "connectk.toml"))
)
