import logging
import os
from gettext import gettext as _
from typing import Dict, Optional

from easydict import EasyDict as edict

logger = logging.getLogger(__name__)

ENV_PREFIX = "BBOX_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def get_default_config() -> edict:
    cfg = edict()

    cfg.drawing = edict()
    cfg.drawing.min_box_size = 5
    cfg.drawing.closing_radius = 10
    cfg.drawing.min_polygon_points = 3
    cfg.drawing.default_color = "#FF0000"

    cfg.export = edict()
    cfg.export.folder = "images"
    cfg.export.database = "Unknown"
    cfg.export.depth = 3
    cfg.export.filename = "annotations.xml"
    cfg.export.mime_type = "text/xml"
    cfg.export.indent = "  "

    return cfg


def _coerce(value, default):
    if default is None or not isinstance(value, str):
        return value
    if isinstance(default, bool):
        return value.strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def load_cfg_from_env(cfg: edict, env: Dict[str, str]):
    for k, v in env.items():
        if k.startswith(ENV_PREFIX):
            cfgkey = k.replace(ENV_PREFIX, "", 1).replace("__", ".")
            logger.warning(
                _(
                    "Changing configuration entry from environment variable: {k}={v}"
                ).format(
                    k=cfgkey, v=v
                )  # noqa:E501
            )  # noqa: E501
            *parts, last = cfgkey.split(".")
            this_cfg = cfg
            for part in parts:
                if this_cfg.get(part) is None:
                    this_cfg[part] = edict()
                this_cfg = this_cfg[part]
            this_cfg[last] = _coerce(v, this_cfg.get(last))
    return cfg


def load_config(env: Optional[Dict[str, str]] = None) -> edict:
    """Defaults overridden by ``BBOX_*`` environment variables."""
    if env is None:
        env = dict(os.environ)
    return load_cfg_from_env(get_default_config(), env)
