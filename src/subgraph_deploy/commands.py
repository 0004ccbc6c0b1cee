"""Blocking invocation of external tools."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence, Union

from .exceptions import ExternalCommandError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Signature shared by run_command and test doubles."""

    def __call__(
        self,
        args: Sequence[str],
        stage: str,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Union[Path, str]] = None,
        network: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        ...


def run_command(
    args: Sequence[str],
    stage: str,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Union[Path, str]] = None,
    network: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """
    Run an external command and wait for it to exit.

    Args:
        args: Command and arguments (no shell)
        stage: Pipeline stage name, reported on failure
        env: Extra environment variables, added to the current environment
        cwd: Working directory
        network: Network the command targets, reported on failure

    Returns:
        The completed process with captured stdout/stderr

    Raises:
        ExternalCommandError: If the command exits nonzero or cannot be started
    """
    full_env = os.environ.copy()
    if env:
        full_env.update(env)

    logger.debug("[%s] running: %s", stage, " ".join(args))
    try:
        result = subprocess.run(
            list(args),
            check=True,
            capture_output=True,
            text=True,
            env=full_env,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as e:
        raise ExternalCommandError(stage, args, e.returncode, e.stderr or "", network) from e
    except FileNotFoundError as e:
        # Command binary itself is missing
        raise ExternalCommandError(stage, args, 127, str(e), network) from e

    if result.stdout:
        logger.debug("[%s] output:\n%s", stage, result.stdout.rstrip())
    return result
