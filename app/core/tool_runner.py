"""
외부 명령 실행 유틸리티

ffmpeg, rhubarb 같은 CLI 도구를 비동기 subprocess로 실행합니다.
종료 코드가 0일 때만 성공으로 처리하고, 그 외에는 ToolExecutionError를 발생시킵니다.
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from app.core.exceptions import ToolExecutionError

logger = logging.getLogger(__name__)


async def run_command(
    args: Sequence[Union[str, Path]],
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None
) -> str:
    """
    Run an external command to completion.

    Args:
        args: Argument vector (no shell interpretation)
        cwd: Working directory for the process
        timeout: Seconds before the process is killed (None = wait forever)

    Returns:
        str: Decoded standard output

    Raises:
        ToolExecutionError: Non-zero exit, missing executable, or timeout
    """
    cmd = [str(arg) for arg in args]
    logger.debug(f"Running command: {' '.join(cmd)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.error(f"Cannot start {cmd[0]}: {e}")
        raise ToolExecutionError(cmd, None, str(e)) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill(process)
        logger.error(f"{cmd[0]} timed out after {timeout}s")
        raise ToolExecutionError(cmd, None, f"timed out after {timeout}s")
    except BaseException:
        # 취소된 경우에도 자식 프로세스가 작업 디렉터리에 남지 않도록 종료
        await _kill(process)
        raise

    if process.returncode != 0:
        error_output = stderr.decode(errors="replace")
        logger.error(f"{cmd[0]} exited with {process.returncode}: {error_output.strip()}")
        raise ToolExecutionError(cmd, process.returncode, error_output)

    return stdout.decode(errors="replace")


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()
