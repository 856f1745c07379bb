"""
Per-credential run lock.

Two runs signing with the same account would race for the same nonces, so
a run takes an exclusive lock file named after the deployer address first.
"""

import os
import logging
from datetime import datetime

from .errors import RunInProgressError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_DIR = os.path.expanduser('~/.dmt/locks')


class CredentialLock:
    """Context manager holding ``<lock_dir>/<key>.lock`` for the duration of a run"""

    def __init__(self, key: str, lock_dir: str = DEFAULT_LOCK_DIR):
        self.key = key.lower()
        self.lock_dir = lock_dir
        self.path = os.path.join(lock_dir, f'{self.key}.lock')
        self.held = False

    def acquire(self):
        os.makedirs(self.lock_dir, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError as e:
            raise RunInProgressError(
                f"Another deployment run already holds {self.path}. "
                f"Remove the file only if no run is active for {self.key}.",
                lock_path=self.path,
            ) from e
        with os.fdopen(fd, 'w') as f:
            f.write(f"{os.getpid()} {datetime.now().isoformat()}\n")
        self.held = True
        logger.debug(f"Acquired run lock {self.path}")

    def release(self):
        if not self.held:
            return
        try:
            os.remove(self.path)
        except FileNotFoundError:
            logger.warning(f"Run lock {self.path} was already removed")
        self.held = False
        logger.debug(f"Released run lock {self.path}")

    def __enter__(self) -> "CredentialLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False
