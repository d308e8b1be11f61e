"""
CSV writer and loader for entity row tables.

Output Structure:
    output/
    ├── User.csv            # One file per entity, named by external id
    ├── Group.csv
    ├── ...
    ├── report/             # Validation reports
    │   ├── validation.json
    │   └── validation.md
    └── manifest.json       # Generation manifest
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from sor_synth.models import EntityData

logger = logging.getLogger(__name__)


class CSVWriter:
    """Writes one CSV file per entity plus a generation manifest."""

    def __init__(self, output_dir: Union[str, Path]):
        """
        Initialize the CSV writer.

        Args:
            output_dir: Directory that receives the CSV files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def get_output_dir(self) -> Path:
        """Return the output directory path."""
        return self.output_dir

    def write(
        self,
        entity_data: Dict[str, EntityData],
        seed: Optional[int] = None,
    ) -> Dict[str, Path]:
        """
        Write every entity's rows.

        Args:
            entity_data: Dict of entity id -> row table
            seed: Seed recorded in the manifest

        Returns:
            Dict of entity id -> written file path
        """
        output_paths: Dict[str, Path] = {}

        for entity_id, data in entity_data.items():
            output_path = self.output_dir / data.file_name
            df = data.to_frame()
            df.to_csv(output_path, index=False, na_rep="")

            output_paths[entity_id] = output_path
            logger.info(f"Wrote {len(df)} rows to {output_path}")

        self._write_manifest(entity_data, seed)
        return output_paths

    def _write_manifest(
        self,
        entity_data: Dict[str, EntityData],
        seed: Optional[int],
    ) -> Path:
        """Write generation manifest."""
        manifest = {
            "generated_at": datetime.now().isoformat(),
            "seed": seed,
            "entities": {},
        }

        for entity_id, data in entity_data.items():
            manifest["entities"][entity_id] = {
                "external_id": data.external_id,
                "file": data.file_name,
                "rows": len(data.rows),
                "columns": len(data.headers),
                "column_list": list(data.headers),
            }

        manifest_path = self.output_dir / "manifest.json"
        with open(manifest_path, "w") as f:
            json.dump(manifest, f, indent=2, default=str)

        logger.info(f"Wrote manifest to {manifest_path}")
        return manifest_path


def load_entity_data(
    output_dir: Union[str, Path],
    entity_data: Dict[str, EntityData],
) -> int:
    """
    Replace headers and rows of each entity with its CSV file on disk.

    Every cell is read as a string; empty cells stay empty strings.

    Returns:
        Number of entity files loaded

    Raises:
        FileNotFoundError: if the directory is missing or holds none of the files
    """
    directory = Path(output_dir)
    if not directory.is_dir():
        raise FileNotFoundError(f"Output directory does not exist: {directory}")

    loaded = 0
    for entity_id, data in entity_data.items():
        path = directory / data.file_name
        if not path.exists():
            logger.warning(f"No CSV file for entity {entity_id}: {path}")
            continue

        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        data.headers = [str(c) for c in df.columns]
        data.rows = df.values.tolist()
        loaded += 1
        logger.info(f"Loaded {len(data.rows)} rows from {path}")

    if loaded == 0:
        raise FileNotFoundError(f"No entity CSV files found in {directory}")

    return loaded
