"""Image asset stores.

Resolvers and renderers never await I/O: callers load image bytes through an
``AssetProvider`` first and hand over a plain mapping. A load that fails for any
reason yields ``None`` (an absent image, drawn as a placeholder).
"""

import asyncio
import re
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol

import structlog
from apscheduler.schedulers.background import BackgroundScheduler

from deckcanvas.exceptions import AssetStoreError

logger = structlog.get_logger(__name__)

# Keys are generated by the store; anything else is treated as unknown
ASSET_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*(\.[A-Za-z0-9]+)?$")


class AssetProvider(Protocol):
    async def load_image(self, key: str) -> Optional[bytes]: ...


def new_asset_key(extension: str = "") -> str:
    """Random key, e.g. '3f2a...c1.png'."""
    return f"{uuid.uuid4().hex}{extension}"


def is_valid_key(key: str) -> bool:
    return bool(key) and ".." not in key and bool(ASSET_KEY_PATTERN.match(key))


async def load_images(provider: AssetProvider, keys: Iterable[str]) -> Dict[str, Optional[bytes]]:
    """Load several images concurrently; failures become ``None``."""
    unique = sorted({key for key in keys if key})

    async def load(key: str) -> Optional[bytes]:
        try:
            return await provider.load_image(key)
        except Exception as e:
            logger.warning("asset_load_failed", asset_key=key, error=str(e), error_type=type(e).__name__)
            return None

    results = await asyncio.gather(*(load(key) for key in unique))
    loaded = dict(zip(unique, results))
    missing = [key for key, data in loaded.items() if not data]
    if missing:
        logger.info("assets_absent", count=len(missing), asset_keys=missing)
    return loaded


class InMemoryAssetStore:
    """Dictionary-backed store for tests and embedding."""

    def __init__(self, images: Optional[Dict[str, bytes]] = None):
        self._images: Dict[str, bytes] = dict(images or {})

    async def load_image(self, key: str) -> Optional[bytes]:
        return self._images.get(key)

    async def save_image(self, data: bytes, extension: str = "") -> str:
        key = new_asset_key(extension)
        self._images[key] = data
        return key


class FileSystemAssetStore:
    """One file per asset under a base directory."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Optional[Path]:
        if not is_valid_key(key):
            return None
        return self.base_dir / key

    async def load_image(self, key: str) -> Optional[bytes]:
        """Read an asset; unknown keys and read errors return ``None``."""
        path = self.path_for(key)
        if path is None:
            logger.warning("asset_key_rejected", asset_key=key)
            return None
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            logger.debug("asset_not_found", asset_key=key)
            return None
        except OSError as e:
            logger.warning("asset_read_failed", asset_key=key, error=str(e))
            return None

    async def save_image(self, data: bytes, extension: str = "") -> str:
        """Persist bytes under a new key.

        Raises:
            AssetStoreError: If the file cannot be written
        """
        key = new_asset_key(extension)
        path = self.base_dir / key
        try:
            await asyncio.to_thread(self.base_dir.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            logger.error("asset_save_failed", asset_key=key, error=str(e))
            raise AssetStoreError(f"Failed to store asset: {e}") from e
        logger.info("asset_saved", asset_key=key, size=len(data))
        return key


class AssetCleanupService:
    """Delete stored assets older than the retention period.

    Runs a background scheduler that checks the asset directory every hour.
    A retention of zero hours keeps assets forever and never schedules the job.
    """

    def __init__(self, base_dir: Path, retention_hours: int):
        self.base_dir = Path(base_dir)
        self.retention_hours = retention_hours
        self.scheduler = BackgroundScheduler()

    def start(self) -> None:
        """Start the hourly cleanup job."""
        if self.retention_hours <= 0:
            logger.info("asset_cleanup_disabled")
            return
        if self.scheduler.running:
            logger.info("asset_cleanup_already_running")
            return

        self.scheduler.add_job(
            self.cleanup_now,
            "interval",
            hours=1,
            id="asset_cleanup",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("asset_cleanup_started", retention_hours=self.retention_hours)

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("asset_cleanup_stopped")

    def cleanup_now(self, now: Optional[datetime] = None) -> int:
        """Delete expired asset files.

        Returns:
            Number of files deleted
        """
        if self.retention_hours <= 0 or not self.base_dir.exists():
            return 0

        cutoff = (now or datetime.now()) - timedelta(hours=self.retention_hours)
        deleted = 0
        for path in self.base_dir.iterdir():
            if not path.is_file() or not is_valid_key(path.name):
                continue
            try:
                if datetime.fromtimestamp(path.stat().st_mtime) < cutoff:
                    path.unlink()
                    deleted += 1
            except OSError as e:
                logger.warning("asset_cleanup_error", path=str(path), error=str(e))

        if deleted:
            logger.info("asset_cleanup_completed", deleted=deleted)
        return deleted
