"""CLI entry point."""

import os
import sys
import click
import logging
from typing import Any, List, Optional, Tuple

from ...config import Config, default_config
from ...config.config_parser import parse_config
from ...errors import GbranchesError
from ...git import RealGit, RepositoryGateway
from ...github import GitHubClient, connect
from ...plan import validate_feature_name
from ...typing import ConfirmCallback, always
from ...workflow import BranchWorkflow, WorkflowOptions, resolve_options

# Get module logger
logger = logging.getLogger(__name__)

EPILOG = """\b
Base branches hierarchy (bottom-up):
  master (PROD) → staging (STG) → testing (QA) → develop (DEV)

\b
Each base branch keeps its own history lane. Changes are committed on the
PROD branch and cherry-picked onto the other tiers.

\b
Examples:
  gbranches CDC-123-card-feature-name -p -a -m "Add user authentication feature"
  gbranches CDC-123-card-feature-name -pr "Implements user authentication"
  gbranches CDC-123-card-feature-name -pr "Implements user authentication" -b "Details"

\b
PR creation needs an authenticated GitHub session ('gh auth login' or GITHUB_TOKEN).
"""


class ExitOneCommand(click.Command):
    """Command that reports usage errors with exit status 1."""

    def main(self, *args: Any, standalone_mode: bool = True, **kwargs: Any) -> Any:
        try:
            rv = super().main(*args, standalone_mode=False, **kwargs)
        except click.ClickException as e:
            e.show()
            rv = 1
        except click.Abort:
            click.echo("Aborted!", err=True)
            rv = 1
        if standalone_mode:
            sys.exit(rv or 0)
        return rv


def setup_git(directory: Optional[str] = None, pretend: bool = False) -> Tuple[Config, RepositoryGateway]:
    """Load config for the repository at ``directory`` and build the gateway."""
    path = os.path.abspath(directory or os.getcwd())
    git_cmd = RealGit(default_config(), path)
    repo_root = git_cmd.working_dir

    config = Config(parse_config(git_cmd, repo_root))
    if pretend:
        config.tool.pretend = True
    return config, RepositoryGateway(config, RealGit(config, repo_root), repo_root)


def setup_hosting(config: Config, needed: bool) -> GitHubClient:
    """GitHub client when PRs are requested, otherwise a client without a session."""
    if not needed or config.tool.pretend:
        return GitHubClient(config)
    return connect(config)


def make_confirm(assume_yes: bool) -> ConfirmCallback:
    if assume_yes:
        return always(True)

    def confirm(question: str) -> bool:
        return click.confirm(question, default=False)
    return confirm


@click.command(cls=ExitOneCommand, epilog=EPILOG,
               context_settings={'help_option_names': ['-h', '--help']})
@click.argument('feature_name', required=False)
@click.option('-c', '--create-only', is_flag=True,
              help="Only create branches without propagating changes, pushing or opening PRs")
@click.option('-p', '--push', is_flag=True, help="Push branches to remote after creation/propagation")
@click.option('-a', '--apply-changes', is_flag=True, help="Apply changes to all branches (requires -m)")
@click.option('-m', '--message', help="Commit message for changes (required with -a)")
@click.option('-pr', '--create-pr', 'pr_title', metavar='TITLE',
              help="Create pull requests for each branch with the given title (implies -p)")
@click.option('-b', '--pr-body', help="Pull request body/description (use with -pr)")
@click.option('-l', '--label', multiple=True, help="Add the specified label to new pull requests")
@click.option('-y', '--yes', is_flag=True, help="Continue without asking when there are uncommitted changes")
@click.option('--pretend', is_flag=True,
              help="Don't actually push or create pull requests, just show what would happen")
@click.option('-C', '--directory', type=click.Path(exists=True, file_okay=False, dir_okay=True),
              help='Run as if gbranches was started in DIRECTORY instead of the current working directory')
@click.option('-v', '--verbose', count=True, help="Increase verbosity (can be used multiple times for more verbosity)")
def cli(feature_name: Optional[str], create_only: bool, push: bool, apply_changes: bool,
        message: Optional[str], pr_title: Optional[str], pr_body: Optional[str], label: List[str],
        yes: bool, pretend: bool, directory: Optional[str], verbose: int) -> int:
    """Create DEV/QA/STG/PROD branches for FEATURE_NAME and propagate one change across them."""
    from ... import setup_logging
    setup_logging(verbose)

    if not feature_name:
        click.echo("Error: Feature name is required")
        click.echo(click.get_current_context().get_usage())
        return 1

    options = WorkflowOptions(
        feature_name=feature_name,
        create_only=create_only,
        push=push,
        apply_changes=apply_changes,
        message=message,
        create_pr=pr_title is not None,
        pr_title=pr_title or None,
        pr_body=pr_body,
        labels=list(label),
    )
    try:
        validate_feature_name(feature_name)
        options = resolve_options(options)
        config, gateway = setup_git(directory, pretend)
    except GbranchesError as e:
        logger.debug(f"Setup failed: {e!r}")
        click.echo(f"Error: {e}")
        return 1

    hosting = setup_hosting(config, options.create_pr)
    confirm = make_confirm(yes or config.user.assume_yes)
    workflow = BranchWorkflow(config, gateway, hosting, confirm, output=sys.stdout)
    result = workflow.run(options)
    return result.exit_code


def main() -> None:
    """Main entry point."""
    cli()

if __name__ == "__main__":
    main()
