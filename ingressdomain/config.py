"""Loading of the requirements and apps YAML documents."""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from .errors import ConfigError
from .logging_config import get_logger
from .models import AppConfig, RequirementsConfig

logger = get_logger(__name__)

REQUIREMENTS_FILE_NAME = "jx-requirements.yml"
APPS_FILE_NAME = "jx-apps.yml"

ModelT = TypeVar("ModelT", bound=BaseModel)


def find_file(directory: Union[str, Path], file_name: str) -> Optional[Path]:
    """Find ``file_name`` in ``directory`` or one of its parents."""
    current = Path(directory).resolve()
    for parent in [current] + list(current.parents):
        candidate = parent / file_name
        if candidate.exists():
            return candidate
    return None


def _load_model(path: Path, model: Type[ModelT]) -> ModelT:
    try:
        with open(path) as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to load {path}: {e}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration in {path}: {e}") from e


def load_requirements(directory: Union[str, Path] = ".") -> Tuple[RequirementsConfig, Path]:
    """Load the requirements document for ``directory``.

    The file is searched for in ``directory`` and its parents. When no file
    exists a default configuration is returned along with the path it would
    be saved to.

    Returns:
        The requirements and the path of the file backing them.
    """
    path = find_file(directory, REQUIREMENTS_FILE_NAME)
    if path is None:
        path = Path(directory) / REQUIREMENTS_FILE_NAME
        logger.debug("No requirements file found, using defaults", path=str(path))
        return RequirementsConfig(), path

    logger.debug("Loading requirements", path=str(path))
    return _load_model(path, RequirementsConfig), path


def load_app_config(directory: Union[str, Path] = ".") -> Tuple[AppConfig, Path]:
    """Load the apps document from ``directory``, empty when absent."""
    path = Path(directory) / APPS_FILE_NAME
    if not path.exists():
        logger.debug("No apps file found", path=str(path))
        return AppConfig(), path
    return _load_model(path, AppConfig), path
