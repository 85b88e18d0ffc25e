import re
import secrets
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from pathlib import Path

from carlot.core.errors import InvalidArgument, UpstreamFailure
from carlot.shared import Logger

logger = Logger(__name__).get_logger()

PUBLIC_PREFIX = "/uploads"
MAX_NAME_ATTEMPTS = 5


class BlobStore(ABC):
    """Stores listing images and hands back locators that point at them."""

    max_file_size: int | None = None

    def check_size(self, original_name: str, size: int):
        if self.max_file_size is not None and size > self.max_file_size:
            raise InvalidArgument(
                f"Image {original_name!r} exceeds the {self.max_file_size} byte limit"
            )

    @abstractmethod
    def store(self, data: bytes, original_name: str) -> str:
        """Persist the bytes and return a unique locator."""

    @abstractmethod
    def delete(self, locator: str) -> bool:
        """Best-effort removal. Never raises; returns True if a blob was removed."""

    def delete_all(self, locators: Iterable[str]) -> int:
        return sum(1 for locator in locators if self.delete(locator))


def sanitize_filename(name: str) -> str:
    # Drop any directory part a client may send, whatever its separator
    base = re.split(r"[\\/]", name or "")[-1]
    base = re.sub(r"[^A-Za-z0-9._-]", "_", base).lstrip(".")
    return base[:100] or "image"


class LocalBlobStore(BlobStore):
    """Keeps images in a directory that the app serves under ``/uploads``."""

    def __init__(
        self,
        root: Path,
        max_file_size: int,
        public_prefix: str = PUBLIC_PREFIX,
    ):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.max_file_size = max_file_size
        self.public_prefix = public_prefix.rstrip("/")
        logger.info("Images will be stored in: %s", self.root.absolute())

    def _unique_name(self, original_name: str) -> str:
        unique_suffix = f"{time.time_ns() // 1_000_000}-{secrets.randbelow(10**9)}"
        return f"{unique_suffix}-{sanitize_filename(original_name)}"

    def store(self, data: bytes, original_name: str) -> str:
        self.check_size(original_name, len(data))

        for _ in range(MAX_NAME_ATTEMPTS):
            name = self._unique_name(original_name)
            try:
                # Exclusive create: never overwrite another upload
                with open(self.root / name, "xb") as f:
                    f.write(data)
            except FileExistsError:
                logger.debug("Name collision on %s, retrying", name)
                continue
            except OSError as e:
                logger.error("Failed to save image to disk: %s", e)
                raise UpstreamFailure("Failed to save image") from e

            logger.info("Stored %d bytes for %s as %s", len(data), original_name, name)
            return f"{self.public_prefix}/{name}"

        raise UpstreamFailure("Failed to allocate a unique image name")

    def get_safe_file_path(self, locator: str) -> Path | None:
        """Map a locator back into the upload directory, refusing anything outside it."""
        prefix = self.public_prefix + "/"
        if not locator.startswith(prefix):
            return None

        name = locator[len(prefix):]
        root = self.root.resolve()
        path = (root / name).resolve()
        if path.parent != root:
            return None
        return path

    def delete(self, locator: str) -> bool:
        path = self.get_safe_file_path(locator)
        if path is None:
            logger.warning("Refusing to delete unknown locator: %s", locator)
            return False

        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Image already gone: %s", locator)
            return False
        except OSError as e:
            logger.warning("Failed to delete image %s: %s", locator, e)
            return False

        logger.info("Deleted image %s", locator)
        return True

    def exists(self, locator: str) -> bool:
        path = self.get_safe_file_path(locator)
        return path is not None and path.is_file()

    def iter_locators(self) -> Iterator[str]:
        for path in sorted(self.root.iterdir()):
            if path.is_file():
                yield f"{self.public_prefix}/{path.name}"
