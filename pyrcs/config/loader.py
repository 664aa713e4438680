"""项目配置文件的发现、解析与合并

在当前目录及其所有上级目录中查找 project.toml / project.json，
与命令行参数合并，命令行参数优先。
"""

import dataclasses
import json
import logging
import tomllib
from pathlib import Path
from typing import List, Optional

import marshmallow
import marshmallow_dataclass

from pyrcs.core.duration import parse_duration
from pyrcs.core.exceptions import ConfigError
from pyrcs.core.models import Options, ProjectConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("project.toml", "project.json")

ProjectConfigSchema = marshmallow_dataclass.class_schema(ProjectConfig)


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """自下而上查找配置文件，离起点最近的优先"""
    directory = (start or Path.cwd()).resolve()
    while True:
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        if directory.parent == directory:
            return None
        directory = directory.parent


def parse_config_file(path: Path) -> ProjectConfig:
    """解析配置文件，.toml 按 TOML 解析，其余按 JSON 解析"""
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigError(path, e.strerror or str(e)) from e

    try:
        if path.suffix == ".toml":
            data = tomllib.loads(raw.decode("utf-8"))
        else:
            data = json.loads(raw)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(path, str(e)) from e

    if not isinstance(data, dict):
        raise ConfigError(path, "top-level value must be a table")

    try:
        return ProjectConfigSchema().load(_drop_nulls(data))
    except marshmallow.ValidationError as e:
        raise ConfigError(path, e.messages) from e


def _drop_nulls(data: dict) -> dict:
    """去掉值为 null 的字段，按未设置处理"""
    return {
        key: _drop_nulls(value) if isinstance(value, dict) else value
        for key, value in data.items()
        if value is not None
    }


def load_project_config(config_path: str = "") -> Optional[ProjectConfig]:
    """加载项目配置，文件不存在时返回 None"""
    if config_path:
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file %s does not exist, skipping", path)
            return None
    else:
        path = find_config_file()
        if path is None:
            logger.debug("No project config found")
            return None

    logger.info("Using project config %s", path)
    return parse_config_file(path)


def merge_options(opts: Options, cfg: ProjectConfig) -> Options:
    """把配置文件中的值填入未设置的命令行参数

    只有零值（空串、False、0）才会被覆盖，因此配置文件只能把开关打开，
    不能把命令行传入的开关关掉。
    """
    merged = dataclasses.replace(opts, env=list(opts.env), command=list(opts.command))

    merged.host = merged.host or cfg.ssh.host
    merged.identity = merged.identity or cfg.ssh.identity
    merged.ssh_config_path = merged.ssh_config_path or cfg.ssh.ssh_config

    merged.dir = merged.dir or cfg.exec.dir
    merged.shell = merged.shell or cfg.exec.shell
    merged.stdin = merged.stdin or cfg.exec.stdin
    merged.pty = merged.pty or cfg.exec.pty

    merged.log_path = merged.log_path or cfg.log.path
    merged.append = merged.append or cfg.log.append
    merged.timestamps = merged.timestamps or cfg.log.timestamps
    merged.split = merged.split or cfg.log.split

    if not merged.timeout and cfg.exec.timeout:
        try:
            merged.timeout = parse_duration(cfg.exec.timeout)
        except ValueError:
            logger.debug("Ignoring unparsable timeout %r in config", cfg.exec.timeout)

    merged.env = _config_env(cfg) + merged.env
    return merged


def _config_env(cfg: ProjectConfig) -> List[str]:
    return [f"{key}={value}" for key, value in cfg.env.items()]


def merge_project_config(opts: Options, config_path: str = "") -> Options:
    """发现并合并项目配置，没有配置文件时原样返回"""
    cfg = load_project_config(config_path)
    if cfg is None:
        return opts
    return merge_options(opts, cfg)
