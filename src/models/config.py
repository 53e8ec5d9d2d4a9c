"""
Typed configuration models and the detection config loader.

The config document is read with PyYAML, which also accepts the JSON config
files shipped with the node.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigError


DEFAULT_STRIDES: Tuple[int, ...] = (8, 16, 32)
DEFAULT_ANCHORS: Tuple[Tuple[Tuple[int, int], ...], ...] = (
    ((10, 13), (16, 30), (33, 23)),
    ((30, 61), (62, 45), (59, 119)),
    ((116, 90), (156, 198), (373, 326)),
)

BOX_MAPPING_UNIFORM = "uniform"
BOX_MAPPING_PER_AXIS = "per_axis"
BOX_MAPPING_MODES = (BOX_MAPPING_UNIFORM, BOX_MAPPING_PER_AXIS)


@dataclass(frozen=True)
class DetectionConfig:
    """
    Detector configuration, immutable once loaded.

    Attributes:
        class_num: Number of classes the model predicts (> 0).
        class_names: One name per class; length always equals class_num.
        strides: Per-scale output strides.
        anchors: Per-scale anchor (width, height) pairs.
        model_file: Path to the accelerator model artifact.
    """
    class_num: int = 1
    class_names: Tuple[str, ...] = ("construction_cone",)
    strides: Tuple[int, ...] = DEFAULT_STRIDES
    anchors: Tuple[Tuple[Tuple[int, int], ...], ...] = DEFAULT_ANCHORS
    model_file: str = ""

    def __post_init__(self):
        if not _is_positive_int(self.class_num):
            raise ValueError(f"class_num must be a positive integer, got {self.class_num!r}")
        if len(self.class_names) != self.class_num:
            raise ValueError(
                f"class_names length {len(self.class_names)} is not equal to class_num {self.class_num}"
            )

    def class_name(self, class_id: int) -> str:
        """Name for a class id, falling back to the id itself."""
        if 0 <= class_id < len(self.class_names):
            return self.class_names[class_id]
        return str(class_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_num": self.class_num,
            "class_names": list(self.class_names),
            "strides": list(self.strides),
            "anchors": [[list(a) for a in scale] for scale in self.anchors],
            "model_file": self.model_file,
        }


@dataclass
class NodeConfig:
    """Startup parameters of the detection node."""
    sub_img_topic: str = "/hb_image"
    pub_topic: str = "/robot_target_detection"
    config_file: str = "config/target_detection.json"
    box_mapping: str = BOX_MAPPING_UNIFORM
    log_path: str = "logs/target_detection.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NodeConfig":
        """Adapter: Create from a parameter dictionary (e.g. parsed CLI args)."""
        return cls(
            sub_img_topic=d.get("sub_img_topic") or "/hb_image",
            pub_topic=d.get("pub_topic") or "/robot_target_detection",
            config_file=d.get("config_file") or "config/target_detection.json",
            box_mapping=d.get("box_mapping") or BOX_MAPPING_UNIFORM,
            log_path=d.get("log_path") or "logs/target_detection.log",
            log_level=d.get("log_level") or "INFO",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sub_img_topic": self.sub_img_topic,
            "pub_topic": self.pub_topic,
            "config_file": self.config_file,
            "box_mapping": self.box_mapping,
            "log_path": self.log_path,
            "log_level": self.log_level,
        }


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _resolve_path(path: str, base_dir: Optional[str]) -> str:
    """Resolve a path from the config document against the config file's directory."""
    if os.path.isabs(path) or not base_dir:
        return path
    return os.path.join(base_dir, path)


def read_config_document(config_path: str) -> Dict[str, Any]:
    """
    Read and parse a config document.

    Raises:
        ConfigError: If the path is empty, unreadable, fails to parse, or the
            document is not a mapping.
    """
    if not config_path:
        raise ConfigError("Config file path is empty")
    if not os.path.exists(config_path):
        raise ConfigError(f"Read config file [{config_path}] fail: file not found")
    try:
        with open(config_path, "r") as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Parsing config file {config_path} failed: {e}") from e
    except OSError as e:
        raise ConfigError(f"Read config file [{config_path}] fail: {e}") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return document


def read_class_names(names_path: str) -> List[str]:
    """
    Read a newline-delimited class name file, one name per line.

    Raises:
        ConfigError: If the file cannot be opened.
    """
    try:
        with open(names_path, "r") as f:
            return f.read().splitlines()
    except OSError as e:
        raise ConfigError(f"can not open cls name file: {names_path}") from e


def apply_config_document(
    document: Dict[str, Any],
    base: DetectionConfig,
    base_dir: Optional[str] = None,
) -> Tuple[DetectionConfig, List[str]]:
    """
    Apply best-effort overrides from a parsed config document.

    Each field is validated on its own; a rejected field keeps the value from
    `base`. The pair (class_num, class_names) is only ever changed to a
    consistent state.

    Returns:
        Tuple of (resulting config, list of error messages).
    """
    errors: List[str] = []
    class_num = base.class_num
    class_names = base.class_names
    model_file = base.model_file

    staged_num = base.class_num
    if "class_num" in document:
        value = document["class_num"]
        if _is_positive_int(value):
            staged_num = value
        else:
            errors.append(f"class_num = {value!r} is not allowed, only support class_num > 0")

    names_accepted = False
    if "cls_names_list" in document:
        names_ref = document["cls_names_list"]
        if not isinstance(names_ref, str) or not names_ref:
            errors.append(f"cls_names_list must be a file path, got {names_ref!r}")
        else:
            try:
                names = read_class_names(_resolve_path(names_ref, base_dir))
            except ConfigError as e:
                errors.append(str(e))
            else:
                if len(names) == staged_num:
                    class_names = tuple(names)
                    class_num = staged_num
                    names_accepted = True
                else:
                    errors.append(
                        f"class_names length {len(names)} is not equal to class_num {staged_num}"
                    )

    if not names_accepted and staged_num != class_num:
        if staged_num == len(class_names):
            class_num = staged_num
        else:
            errors.append(
                f"class_num {staged_num} does not match {len(class_names)} class names, "
                f"keeping class_num {class_num}"
            )

    if "model_file" in document:
        value = document["model_file"]
        if isinstance(value, str):
            resolved = _resolve_path(value, base_dir)
            model_file = resolved if value and os.path.exists(resolved) else value
        else:
            errors.append(f"model_file must be a string, got {value!r}")

    for msg in errors:
        logging.error(msg)

    config = replace(base, class_num=class_num, class_names=class_names, model_file=model_file)
    return config, errors


def load_detection_config(
    config_path: str,
    base: Optional[DetectionConfig] = None,
) -> Tuple[DetectionConfig, List[str]]:
    """
    Load detection config overrides from a file on top of `base`.

    Never raises for bad input: file-level failures are reported and `base`
    is returned unchanged.

    Returns:
        Tuple of (resulting config, list of error messages).
    """
    base = base or DetectionConfig()
    try:
        document = read_config_document(config_path)
    except ConfigError as e:
        logging.error(f"LoadConfig: {e}")
        return base, [str(e)]

    base_dir = os.path.dirname(os.path.abspath(config_path))
    return apply_config_document(document, base, base_dir)


def validate_box_mapping(mode: str) -> Tuple[bool, Optional[str]]:
    """Check a box mapping mode name."""
    if mode not in BOX_MAPPING_MODES:
        return False, f"box_mapping must be one of: {', '.join(BOX_MAPPING_MODES)}"
    return True, None
