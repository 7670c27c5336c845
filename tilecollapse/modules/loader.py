"""Loading module sets from plain data or JSON files.

A module set bundles everything the solver needs from configuration: the
grid shape, the contact registry and the module prototypes. The document
format is:

    {
      "grid": {"rows": 5, "cols": 5, "cell_size": 1.0},
      "contacts": [{"type": "road", "forbidden": ["grass"]}],
      "modules": [
        {"name": "straight", "forward": "road", "right": "grass",
         "back": "road", "left": "grass"}
      ]
    }

The "grid" section and each of its keys are optional.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tilecollapse import config
from tilecollapse.errors import ConfigurationError

from .catalog import ModuleCatalog, ModulePrototype, build_catalog
from .contacts import ContactRegistry, ContactRule

if TYPE_CHECKING:
    from tilecollapse.solver.grid import Grid

logger = logging.getLogger(__name__)

_SIDES = ("forward", "right", "back", "left")


@dataclass
class ModuleSet:
    """Configuration for one generation run.

    Attributes:
        rows: Grid row count.
        cols: Grid column count.
        cell_size: Side length of one cell in world units, used at placement.
        registry: Contact rules by type name.
        prototypes: Module prototypes in catalog order.
    """

    rows: int
    cols: int
    cell_size: float
    registry: ContactRegistry
    prototypes: list[ModulePrototype]

    def build_catalog(self) -> ModuleCatalog:
        return build_catalog(self.prototypes, self.registry)

    def create_grid(self, catalog: ModuleCatalog | None = None) -> Grid:
        """Create a fresh grid of this set's shape over ``catalog``."""
        from tilecollapse.solver.grid import Grid

        return Grid(self.rows, self.cols, catalog or self.build_catalog())


def _require(data: Mapping[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in data:
        raise ConfigurationError(f"{where}: missing required key '{key}'")
    value = data[key]
    # bool is an int subclass but never a valid count or size
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ConfigurationError(
            f"{where}: '{key}' must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _parse_grid(data: Mapping[str, Any]) -> tuple[int, int, float]:
    grid = data.get("grid", {})
    if not isinstance(grid, Mapping):
        raise ConfigurationError("'grid' must be an object")

    rows = grid.get("rows", config.DEFAULT_GRID_ROWS)
    cols = grid.get("cols", config.DEFAULT_GRID_COLS)
    cell_size = grid.get("cell_size", config.DEFAULT_CELL_SIZE)

    for key, value in (("rows", rows), ("cols", cols)):
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigurationError(f"grid.{key} must be a positive integer")
    if (
        not isinstance(cell_size, int | float)
        or isinstance(cell_size, bool)
        or cell_size <= 0
    ):
        raise ConfigurationError("grid.cell_size must be a positive number")

    return rows, cols, float(cell_size)


def _parse_contacts(entries: Any) -> ContactRegistry:
    if not isinstance(entries, list):
        raise ConfigurationError("'contacts' must be a list")

    registry = ContactRegistry()
    for i, entry in enumerate(entries):
        where = f"contacts[{i}]"
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{where} must be an object")
        contact_type = _require(entry, "type", str, where)
        forbidden = entry.get("forbidden", [])
        if not isinstance(forbidden, list) or not all(
            isinstance(name, str) for name in forbidden
        ):
            raise ConfigurationError(f"{where}: 'forbidden' must be a list of names")
        registry.register(ContactRule(contact_type, frozenset(forbidden)))
    registry.validate()
    return registry


def _parse_modules(entries: Any) -> list[ModulePrototype]:
    if not isinstance(entries, list):
        raise ConfigurationError("'modules' must be a list")

    prototypes: list[ModulePrototype] = []
    for i, entry in enumerate(entries):
        where = f"modules[{i}]"
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"{where} must be an object")
        name = _require(entry, "name", str, where)
        sides = {side: _require(entry, side, str, where) for side in _SIDES}
        prototypes.append(ModulePrototype(name=name, **sides))
    return prototypes


def parse_module_set(data: Mapping[str, Any]) -> ModuleSet:
    """Build a ModuleSet from an already-decoded document.

    Contact names used by modules are not resolved here; that happens in
    ``build_catalog``, which raises ConfigurationError for unknown names.

    Raises:
        ConfigurationError: If the document does not follow the format.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError("Module set document must be an object")

    rows, cols, cell_size = _parse_grid(data)
    if "contacts" not in data:
        raise ConfigurationError("Module set is missing 'contacts'")
    if "modules" not in data:
        raise ConfigurationError("Module set is missing 'modules'")

    return ModuleSet(
        rows=rows,
        cols=cols,
        cell_size=cell_size,
        registry=_parse_contacts(data["contacts"]),
        prototypes=_parse_modules(data["modules"]),
    )


def load_module_set(path: Path | str) -> ModuleSet:
    """Read and parse a JSON module set file.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid JSON,
            or does not follow the format.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Failed to read module set {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in module set {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Module set {path} is not valid UTF-8: {e}") from e

    module_set = parse_module_set(data)
    logger.info(
        f"Loaded module set: {path} ({len(module_set.registry)} contact types, "
        f"{len(module_set.prototypes)} modules, "
        f"{module_set.rows}x{module_set.cols} grid)"
    )
    return module_set
