"""dsmadmc process execution for collectors."""

import asyncio
import logging
import os
from typing import List, Optional

from ..config.models import Target
from ..exceptions import QueryError, QueryTimeoutError

NO_MATCH_MARKER = "No match found using this criteria"


class DsmadmcExecutor:
    """Runs single queries through the dsmadmc administrative client."""

    def __init__(
        self,
        dsm_log_dir: str = "/tmp",
        command: str = "dsmadmc",
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize executor.

        Args:
            dsm_log_dir: Directory exported as DSM_LOG for dsmadmc's own logs
            command: dsmadmc executable
            logger: Logger instance
        """
        self.dsm_log_dir = dsm_log_dir
        self.command = command
        self.logger = logger or logging.getLogger(__name__)

    def build_args(self, target: Target, query: str) -> List[str]:
        """
        Build the dsmadmc argument list for a query.

        Args:
            target: Target supplying servername and credentials
            query: Query string

        Returns:
            List[str]: Command and arguments
        """
        return [
            self.command,
            f"-SERVERName={target.servername}",
            f"-ID={target.id}",
            f"-PAssword={target.password}",
            "-DATAONLY=YES",
            "-COMMAdelimited",
            query,
        ]

    async def query(self, target: Target, query: str, timeout: float) -> str:
        """
        Execute one query and return stdout.

        Args:
            target: Target to query
            query: Query string
            timeout: Deadline in seconds

        Returns:
            str: Command stdout, empty when no rows matched

        Raises:
            QueryTimeoutError: If the deadline elapses
            QueryError: If dsmadmc cannot run or exits non-zero
        """
        self.logger.debug(f"dsmadmc query: {query}", extra={"target": target.name})
        env = dict(os.environ, DSM_LOG=self.dsm_log_dir)

        try:
            proc = await asyncio.create_subprocess_exec(
                *self.build_args(target, query),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            self.logger.error(f"Error executing dsmadmc: {e}", extra={"target": target.name})
            raise QueryError(f"Error executing dsmadmc: {e}") from e

        try:
            stdout_data, stderr_data = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            self.logger.error("Timeout executing dsmadmc", extra={"target": target.name})
            raise QueryTimeoutError(f"dsmadmc timed out after {timeout}s")

        stdout = stdout_data.decode('utf-8', errors='replace')
        stderr = stderr_data.decode('utf-8', errors='replace')

        if proc.returncode != 0:
            if NO_MATCH_MARKER in stdout:
                return ""
            self.logger.error(
                f"Error executing dsmadmc: exit code {proc.returncode}",
                extra={"target": target.name, "err": stderr.strip(), "out": stdout.strip()}
            )
            raise QueryError(
                f"dsmadmc failed with exit code {proc.returncode}: {stderr.strip()}",
                returncode=proc.returncode,
                stderr=stderr,
                stdout=stdout,
            )

        self.logger.debug(f"query output ({len(stdout)} bytes)", extra={"target": target.name})
        return stdout

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        """Kill a timed out process and reap it."""
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
