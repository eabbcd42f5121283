"""Config parser logic."""

import os
from typing import Dict, Optional, Tuple, Any
import logging
import yaml

from ...errors import GitCommandFailed, InvalidConfig
from ...typing import GitInterface

# Get module logger
logger = logging.getLogger(__name__)

RepoConfig = Dict[str, Any]  # Use Any since yaml can return various types
ParsedConfig = Dict[str, RepoConfig]

CONFIG_FILE_NAME = '.gbranches.yaml'

def parse_remote_url(remote_url: str) -> Optional[Tuple[str, str]]:
    """Extract (owner, name) from an SSH or HTTPS remote URL."""
    url = remote_url.strip()
    if not url:
        return None
    if "://" in url:
        # HTTPS or ssh:// format: https://github.com/owner/repo.git
        repo_part = url.split("://", 1)[1].split("/", 1)[-1]
    elif "@" in url and ":" in url:
        # SCP-like SSH format: git@github.com:owner/repo.git
        repo_part = url.split(":")[-1]
    else:
        return None

    if repo_part.endswith(".git"):
        repo_part = repo_part[:-len(".git")]
    parts = [p for p in repo_part.strip("/").split("/") if p]
    if len(parts) < 2:
        return None
    return parts[-2], parts[-1]

def parse_config(git_cmd: GitInterface, repo_root: Optional[str] = None) -> ParsedConfig:
    """Parse config from defaults, the repository config file and the remote URL."""
    config: ParsedConfig = {
        'repo': {
            'remote': 'origin',
            'marker_file': 'README.md',
            'tier_labels': False,
            'refresh_before_pick': False,
            'github_host': 'github.com',
        },
        'user': {},
        'tool': {
            'gbranches': {
                'pretend': False,
            }
        }
    }

    # Try to load .gbranches.yaml from repository root
    config_path = os.path.join(repo_root or os.getcwd(), CONFIG_FILE_NAME)
    try:
        with open(config_path, 'r') as f:
            logger.info(f"Found {CONFIG_FILE_NAME}, loading...")
            try:
                file_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfig(CONFIG_FILE_NAME, f"not valid YAML ({e})")
            logger.debug(f"Config from {CONFIG_FILE_NAME}: {file_config}")
            if isinstance(file_config, dict):
                for section in ('repo', 'user'):
                    if isinstance(file_config.get(section), dict):
                        config[section].update(file_config[section])
                tool_section = file_config.get('tool')
                if isinstance(tool_section, dict):
                    tool_config = tool_section.get('gbranches', tool_section)
                    if isinstance(tool_config, dict):
                        config['tool']['gbranches'].update(tool_config)
    except FileNotFoundError:
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")

    # Try to extract repo owner/name from git remote if not in config
    if not config['repo'].get('github_repo_owner') or not config['repo'].get('github_repo_name'):
        remote = config['repo']['remote']
        try:
            remote_url = git_cmd.run("remote", "get-url", remote)
        except GitCommandFailed as e:
            logger.debug(f"Failed to read URL of remote {remote}: {e}")
        else:
            parsed = parse_remote_url(remote_url)
            if parsed:
                owner, name = parsed
                if not config['repo'].get('github_repo_owner'):
                    config['repo']['github_repo_owner'] = owner
                if not config['repo'].get('github_repo_name'):
                    config['repo']['github_repo_name'] = name
            else:
                logger.debug(f"Could not parse owner/name from remote URL {remote_url}")

    return config
