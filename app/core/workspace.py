"""
Per-turn working directory.

각 요청(turn)마다 고유한 작업 디렉토리를 만들어
동시 요청 간 message_{index}.* 파일 충돌을 방지합니다.
"""
import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Union

logger = logging.getLogger(__name__)


@asynccontextmanager
async def turn_workspace(
    base_dir: Union[str, Path],
    keep_files: bool = False
) -> AsyncIterator[Path]:
    """
    Create a unique directory for one turn and remove it afterwards.

    Args:
        base_dir: Parent directory (created if missing)
        keep_files: Leave the directory in place for debugging

    Yields:
        Path: The turn's working directory
    """
    base = Path(base_dir)
    base.mkdir(parents=True, exist_ok=True)
    work_dir = Path(tempfile.mkdtemp(prefix="turn_", dir=base)).resolve()
    logger.debug(f"Created turn workspace: {work_dir}")

    try:
        yield work_dir
    finally:
        if keep_files:
            logger.info(f"Keeping turn workspace: {work_dir}")
        else:
            await asyncio.to_thread(shutil.rmtree, work_dir, True)
            logger.debug(f"Removed turn workspace: {work_dir}")
