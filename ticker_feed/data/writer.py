"""
Ticker Feed - Payload Writer
The bar file is written in one buffered pass to a sibling temp file and then
swapped into place, so readers never see truncated JSON.
"""
import os
import stat
import tempfile
from pathlib import Path
from typing import Union

from ticker_feed.data.models import FeedPayload
from ticker_feed.errors import PersistenceError
from ticker_feed.utils.logger import get_logger

logger = get_logger("writer")


def _file_mode(target: Path) -> int:
    """Mode for the new file: keep the current one, else what the umask allows."""
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_payload(payload: FeedPayload, path: Union[str, Path]) -> Path:
    """Atomically replace `path` with the payload's JSON text."""
    target = Path(path)
    text = payload.to_json()
    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        # mkstemp files are 0600
        os.chmod(tmp_name, _file_mode(target))
        os.replace(tmp_name, target)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceError(f"cannot write {target}: {e}") from e

    logger.info("payload_written", path=str(target), items=len(payload.items))
    return target


def write_empty_shell(generated_at: str, path: Union[str, Path]) -> Path:
    """Write a payload with no items."""
    return write_payload(FeedPayload(generated_at=generated_at, items=[]), path)
