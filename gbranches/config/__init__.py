"""Config module."""

from typing import Dict, Any, Type, TypeVar
from pydantic import BaseModel, ValidationError

from ..errors import InvalidConfig
from .config_parser import CONFIG_FILE_NAME
from .models import RepoConfig, UserConfig, ToolConfig, GbranchesConfig

M = TypeVar('M', bound=BaseModel)

def _validate_section(model: Type[M], section: str, values: Any) -> M:
    try:
        return model.model_validate(values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join([section, *(str(part) for part in error['loc'])])}: {error['msg']}"
            for error in e.errors()
        )
        raise InvalidConfig(CONFIG_FILE_NAME, problems)

class Config(GbranchesConfig):
    """Config object holding repository, user and tool config.

    Built from the nested dict produced by the config parser. Values of the
    wrong type raise InvalidConfig naming the offending keys.
    """
    def __init__(self, config: Dict[str, Dict[str, Any]]):
        """Initialize with parsed config dict."""
        repo_config = config.get('repo', {})
        user_config = config.get('user', {})
        tool_section = config.get('tool', {})
        tool_config = tool_section.get('gbranches', tool_section)

        super().__init__(
            repo=_validate_section(RepoConfig, 'repo', repo_config),
            user=_validate_section(UserConfig, 'user', user_config),
            tool=_validate_section(ToolConfig, 'tool', tool_config),
        )

def default_config() -> Config:
    """Get default config without parsing git."""
    return Config({
        'repo': {
            'remote': 'origin',
        },
        'user': {},
        'tool': {
            'gbranches': {
                'pretend': False
            }
        }
    })
