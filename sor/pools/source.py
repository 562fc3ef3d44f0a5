"""Pool snapshot sources.

A source supplies the raw pool snapshot that ``SOR.fetch_pools`` loads when
no pools are passed in.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from sor.models.subgraph import SubgraphPool

logger = structlog.get_logger()


class JsonFilePoolSource:
    """Reads a subgraph-style snapshot from a JSON file.

    The file holds either a list of pools or an object with a ``pools`` list.
    It is read again on every ``get_pools`` call, so rewriting the file and
    refetching picks up the new snapshot.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get_pools(self) -> list[SubgraphPool]:
        """Load the snapshot.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not a pool list (pydantic's
                ValidationError is a ValueError)
        """
        with open(self.path) as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("pools", [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of pools in {self.path}")

        pools = [SubgraphPool.model_validate(p) for p in data]
        logger.debug("pool_file_read", path=str(self.path), count=len(pools))
        return pools


__all__ = ["JsonFilePoolSource"]
