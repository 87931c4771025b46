"""Session store for isolated per-request output namespaces"""

import asyncio
import logging
import re
import secrets
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from exceptions import GenerationError, SessionExpiredError
from models.config import SessionStoreConfig
from models.session import Session

logger = logging.getLogger("SEO_Server")

SESSION_ID_REGEX = re.compile(r'^[0-9a-f]{16,64}$')
TOMBSTONE_PREFIX = ".reclaim-"
MAX_ALLOCATION_ATTEMPTS = 5


def build_internal_href(url_prefix: str, session_id: str, relative: str) -> str:
    """Session-scoped serving path for a file inside a namespace"""
    return f"{url_prefix.rstrip('/')}/{session_id}/{relative}"


def validate_session_id(session_id: str) -> bool:
    """Check the identifier shape before touching the filesystem"""
    return bool(session_id) and bool(SESSION_ID_REGEX.match(session_id))


class SessionStore:
    """Allocates and reclaims session namespaces under <output_root>/sessions"""

    def __init__(
        self,
        config: Optional[SessionStoreConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or SessionStoreConfig()
        self.sessions_root = Path(self.config.sessions_root).resolve()
        self._clock = clock
        self.sessions_root.mkdir(parents=True, exist_ok=True)
        logger.info(
            f"Initialized SessionStore at {self.sessions_root} "
            f"with TTL: {self.config.ttl_seconds:.0f} seconds"
        )

    def _new_session_id(self) -> str:
        return secrets.token_hex(self.config.id_length // 2)

    def namespace_path(self, session_id: str) -> Path:
        if not validate_session_id(session_id):
            raise SessionExpiredError(session_id)
        return self.sessions_root / session_id

    def allocate(self) -> Session:
        """Create a fresh namespace with all required subdirectories.

        Returns:
            The new Session

        Raises:
            GenerationError: If the namespace cannot be created
        """
        for _ in range(MAX_ALLOCATION_ATTEMPTS):
            session_id = self._new_session_id()
            path = self.sessions_root / session_id
            try:
                path.mkdir(parents=False, exist_ok=False)
            except FileExistsError:
                logger.warning(f"Session id collision on {session_id}, retrying")
                continue
            except OSError as e:
                logger.error(f"Failed to create session namespace {path}: {e}")
                raise GenerationError("Could not allocate session storage") from e

            try:
                for subdirectory in self.config.subdirectories:
                    (path / subdirectory).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Failed to create subdirectories for session {session_id}: {e}")
                self.reclaim_now(session_id)
                raise GenerationError("Could not allocate session storage") from e

            logger.debug(f"Allocated session {session_id}")
            return Session(session_id=session_id, path=path, created_at=datetime.now())

        raise GenerationError("Could not allocate a unique session id")

    def get(self, session_id: str) -> Session:
        """Look up a live session.

        Raises:
            SessionExpiredError: If the namespace no longer exists
        """
        path = self.namespace_path(session_id)
        try:
            stat = path.stat()
        except FileNotFoundError:
            raise SessionExpiredError(session_id)
        if not path.is_dir():
            raise SessionExpiredError(session_id)
        return Session(
            session_id=session_id,
            path=path,
            created_at=datetime.fromtimestamp(stat.st_ctime),
        )

    def exists(self, session_id: str) -> bool:
        try:
            self.get(session_id)
            return True
        except SessionExpiredError:
            return False

    def _remove_namespace(self, path: Path):
        # Rename first so the namespace disappears in one step, then delete the tree
        tombstone = path.with_name(f"{TOMBSTONE_PREFIX}{path.name}-{secrets.token_hex(4)}")
        path.rename(tombstone)
        try:
            shutil.rmtree(tombstone)
        except FileNotFoundError:
            # A concurrent sweep already cleared the tombstone
            pass
        except OSError as e:
            logger.warning(f"Leaving {tombstone.name} for the next sweep: {e}")

    def reclaim_now(self, session_id: str) -> bool:
        """Remove one namespace immediately. Returns True if something was removed."""
        try:
            path = self.namespace_path(session_id)
        except SessionExpiredError:
            return False
        if not path.exists():
            return False
        try:
            self._remove_namespace(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to reclaim session {session_id}: {e}")
            return False
        logger.info(f"Cleaned up failed session: {session_id}")
        return True

    def reclaim_expired(self, max_age: Optional[float] = None) -> List[str]:
        """Remove every namespace whose last-modified time is older than max_age seconds.

        Args:
            max_age: Age threshold in seconds (defaults to the configured TTL)

        Returns:
            List of reclaimed session ids
        """
        max_age = self.config.ttl_seconds if max_age is None else max_age
        now = self._clock()
        reclaimed = []

        try:
            entries = list(self.sessions_root.iterdir())
        except FileNotFoundError:
            self.sessions_root.mkdir(parents=True, exist_ok=True)
            return reclaimed

        for entry in entries:
            try:
                if entry.name.startswith(TOMBSTONE_PREFIX):
                    # Leftover from an interrupted removal
                    shutil.rmtree(entry)
                    continue
                if not entry.is_dir():
                    continue
                age = now - entry.stat().st_mtime
                if age > max_age:
                    self._remove_namespace(entry)
                    reclaimed.append(entry.name)
                    logger.info(f"Cleaned up old session: {entry.name}")
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to reclaim {entry.name}: {e}")

        if reclaimed:
            logger.info(f"Cleaned up {len(reclaimed)} expired sessions")
        return reclaimed

    def internal_href(self, session_id: str, relative: str) -> str:
        return build_internal_href(self.config.url_prefix, session_id, relative)

    def resolve_internal_path(self, internal_href: str) -> Path:
        """Map a session-scoped serving path back to a file in its namespace.

        Raises:
            ValueError: If the path is malformed or escapes the namespace
            SessionExpiredError: If the session is gone
        """
        prefix = self.config.url_prefix.rstrip("/") + "/"
        if not internal_href.startswith(prefix):
            raise ValueError(f"Not a session path: {internal_href}")
        session_id, _, relative = internal_href[len(prefix):].partition("/")
        session = self.get(session_id)
        if not relative:
            raise ValueError(f"Missing file name in {internal_href}")

        namespace = session.path.resolve()
        target = (namespace / relative).resolve()
        if not target.is_relative_to(namespace):
            raise ValueError(f"Path {internal_href} escapes session namespace")
        if not target.is_file():
            raise FileNotFoundError(internal_href)
        return target


class SessionReaper:
    """Background task sweeping expired namespaces on a fixed interval"""

    def __init__(
        self,
        store: SessionStore,
        interval_seconds: Optional[float] = None,
        max_age: Optional[float] = None,
        sweep_on_start: bool = True,
    ):
        self.store = store
        self.interval_seconds = interval_seconds or store.config.sweep_interval_seconds
        self.max_age = max_age
        self.sweep_on_start = sweep_on_start
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Session reaper started (interval: {self.interval_seconds:.0f} seconds)")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session reaper stopped")

    async def sweep_once(self) -> List[str]:
        return await asyncio.to_thread(self.store.reclaim_expired, self.max_age)

    async def _run(self):
        if self.sweep_on_start:
            await self._sweep_logged()
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self._sweep_logged()

    async def _sweep_logged(self):
        try:
            await self.sweep_once()
        except Exception:
            logger.exception("Error during session cleanup")
