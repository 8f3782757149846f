#  Site Server - Static File Resolution
#
#  Looks a request path up in the configured static directories, in
#  order, and returns an explicit result instead of raising: either the
#  file to serve or the NotFoundError to format.
#
#  Depends on: config.py, exceptions.py
#  Used by:    app.py, container.py

import errno
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from starlette.staticfiles import StaticFiles

from siteserver.config import Settings
from siteserver.exceptions import HttpError, NotFoundError

INDEX_FILE = "index.html"
MISS_ERRNOS = (errno.ENAMETOOLONG, errno.ENOTDIR, errno.ENOENT)


@dataclass(frozen=True)
class StaticResolution:
    path: str | None = None
    error: HttpError | None = None

    @property
    def found(self) -> bool:
        return self.path is not None


class StaticResolver:
    """Resolve URL paths against a list of static directories.

    Each directory is wrapped in a StaticFiles instance so path joining and
    traversal checks are Starlette's. Directories that don't exist are
    simply never matched.
    """

    def __init__(self, directories: list[Path]):
        self._directories = list(directories)
        self._lookups = [StaticFiles(directory=str(d), check_dir=False) for d in self._directories]

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticResolver":
        return cls(settings.static_paths)

    @property
    def directories(self) -> list[Path]:
        return list(self._directories)

    def resolve(self, url_path: str) -> StaticResolution:
        relative = os.path.normpath(url_path.lstrip("/")) if url_path.strip("/") else "."
        if relative == os.pardir or relative.startswith(os.pardir + os.sep):
            return StaticResolution(error=NotFoundError())

        for lookup in self._lookups:
            full_path, stat_result = self._lookup(lookup, relative)
            if stat_result is None:
                continue
            if stat.S_ISREG(stat_result.st_mode):
                return StaticResolution(path=full_path)
            if stat.S_ISDIR(stat_result.st_mode):
                index_path, index_stat = self._lookup(lookup, os.path.join(relative, INDEX_FILE))
                if index_stat is not None and stat.S_ISREG(index_stat.st_mode):
                    return StaticResolution(path=index_path)

        return StaticResolution(error=NotFoundError())

    @staticmethod
    def _lookup(lookup: StaticFiles, relative: str) -> tuple[str, os.stat_result | None]:
        # Paths the filesystem can't represent are misses, as in StaticFiles.get_response
        try:
            return lookup.lookup_path(relative)
        except ValueError:
            # embedded null byte
            return "", None
        except OSError as exc:
            if exc.errno in MISS_ERRNOS:
                return "", None
            raise
