from collections.abc import Generator
import os
from pathlib import Path
import sys
import textwrap

from loguru import logger
import pytest
from pytest import FixtureRequest, LogCaptureFixture
import yaml
from yaml import Node

from . import githelper
from .typed_path import AbsDir


@pytest.fixture
def global_test_data_path() -> AbsDir:
    return AbsDir(Path(__file__).absolute().parent.parent / "test_data")


@pytest.fixture
def typed_tmp_path(tmp_path: Path) -> AbsDir:
    return AbsDir(tmp_path)


@pytest.fixture
def working_dir(typed_tmp_path: AbsDir, request: FixtureRequest) -> Generator[AbsDir]:
    os.chdir(typed_tmp_path)
    yield typed_tmp_path
    os.chdir(request.config.invocation_params.dir)


@pytest.fixture
def cache_dir(typed_tmp_path: AbsDir, monkeypatch: pytest.MonkeyPatch) -> AbsDir:
    cache = AbsDir(typed_tmp_path.path / "cache")
    monkeypatch.setattr(githelper, "MIRROR_CACHE", cache)
    return cache


@pytest.fixture(autouse=True)
def log_everything() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="TRACE",
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{file.path}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )


@pytest.fixture
def log_cleanly(caplog: LogCaptureFixture, log_level: str) -> None:
    logger.remove()
    logger.add(caplog.handler, level=log_level, colorize=False, format="{message}")


@pytest.fixture
def yaml_node(raw_yaml: str) -> Node:
    raw_yaml = textwrap.dedent(raw_yaml).strip()
    return yaml.compose(raw_yaml, Loader=yaml.SafeLoader)
