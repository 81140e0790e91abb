from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..core.utils import U


class Config:
    @staticmethod
    def load_one(logger: logging.Logger, path: str) -> Dict[str, Any]:
        p = Path(path).expanduser().resolve()
        if not p.exists():
            U.die(logger, f"Config not found: {p}", 1)
        try:
            text = p.read_text(encoding="utf-8")
            if p.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            U.die(logger, f"Invalid YAML in config {p}: {e}", 1)
        except json.JSONDecodeError as e:
            U.die(logger, f"Invalid JSON in config {p}: {e}", 1)
        except OSError as e:
            U.die(logger, f"Failed to read config {p}: {e}", 1)
        if not isinstance(data, dict):
            U.die(logger, f"Config must be a mapping/dict: {p}", 1)
        # normalize dash keys -> underscore keys, and ESXI_SERVER -> esxi_server
        out: Dict[str, Any] = {}
        for k, v in data.items():
            nk = str(k).replace("-", "_").lower()
            out[nk] = v
            if nk != k:
                logger.debug(f"Normalized config key: {k} -> {nk}")
        logger.debug(f"Loaded config {p}: {sorted(out.keys())}")
        return out
    @staticmethod
    def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep-ish merge:
        - dict + dict => recurse
        - scalar/list => override replaces
        """
        out = dict(base)
        for k, v in override.items():
            if k in out and isinstance(out[k], dict) and isinstance(v, dict):
                out[k] = Config.merge_dicts(out[k], v)
            else:
                out[k] = v
        return out
    @staticmethod
    def load_many(logger: logging.Logger, paths: List[str]) -> Dict[str, Any]:
        conf: Dict[str, Any] = {}
        for p in paths:
            conf = Config.merge_dicts(conf, Config.load_one(logger, p))
        return conf
