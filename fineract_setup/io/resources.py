# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Template resource loading.

Templates are read from a base directory: either an explicit directory
(settings.templates_dir / --templates-dir) or the directory that ships
inside the package. Each resource path is read at most once per loader;
later reads are served from memory.

Example:
    Read a bundled template:
        ```python
        from fineract_setup.io.resources import ResourceLoader

        loader = ResourceLoader()
        data = loader.read("data/Offices.xls")
        ```
"""

from __future__ import annotations

from importlib.resources import files
from pathlib import Path

from fineract_setup.exceptions import ResourceNotFoundError, UnreadableResourceError
from fineract_setup.logging import get_global_logger


def bundled_templates_root() -> Path:
    """Directory containing the package's bundled resources."""
    return Path(str(files("fineract_setup")))


class ResourceLoader:
    """Reads template bytes by resource path, with pass-through caching.

    Attributes:
        base_dir: Directory that resource paths are resolved against.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else bundled_templates_root()
        self._cache: dict[str, bytes] = {}

    def resolve(self, resource: str) -> Path:
        return self.base_dir / resource

    def exists(self, resource: str) -> bool:
        return resource in self._cache or self.resolve(resource).is_file()

    def read(self, resource: str) -> bytes:
        """Return the bytes of a resource.

        Raises:
            ResourceNotFoundError: The resource does not exist.
            UnreadableResourceError: The resource exists but reading failed.
        """
        logger = get_global_logger()

        if resource in self._cache:
            logger.debug("RESOURCE", f"Using cached content for: {resource}")
            return self._cache[resource]

        path = self.resolve(resource)
        if not path.is_file():
            raise ResourceNotFoundError(f"template not found: {path}")

        logger.verbose("RESOURCE", f"Loading template: {path}")
        try:
            data = path.read_bytes()
        except OSError as err:
            raise UnreadableResourceError(f"cannot read template {path}: {err}") from err

        self._cache[resource] = data
        return data

    def clear(self) -> None:
        self._cache.clear()
