"""
Validation reporting for generated or loaded data.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from sor_synth.models import EntityData
from sor_synth.validation import RelationshipValidationResult, UniqueValueError

logger = logging.getLogger(__name__)


class ValidationReporter:
    """
    Builds a validation report from validator findings.

    Reports include:
    - Entity and row counts
    - Referential integrity findings per relationship
    - Uniqueness findings per entity
    - An integrity score over the checked rows
    """

    def __init__(
        self,
        entity_data: Dict[str, EntityData],
        relationship_results: List[RelationshipValidationResult],
        unique_errors: List[UniqueValueError],
    ):
        self.entity_data = entity_data
        self.relationship_results = relationship_results
        self.unique_errors = unique_errors

        self.report: Dict[str, Any] = {
            "generated_at": datetime.now().isoformat(),
            "summary": {},
            "entities": {},
            "referential_integrity": [],
            "uniqueness": [],
        }

    def generate_report(self) -> Dict[str, Any]:
        """
        Generate the report dictionary.

        Returns:
            Report dictionary
        """
        logger.info("Generating validation report...")

        for entity_id, data in self.entity_data.items():
            self.report["entities"][entity_id] = {
                "file": data.file_name,
                "row_count": len(data.rows),
                "column_count": len(data.headers),
            }

        self.report["referential_integrity"] = [r.to_dict() for r in self.relationship_results]
        self.report["uniqueness"] = [e.to_dict() for e in self.unique_errors]
        self.report["summary"] = self._generate_summary()

        return self.report

    def _generate_summary(self) -> Dict[str, Any]:
        checked_rows = sum(r.total_rows for r in self.relationship_results)
        invalid_rows = sum(r.invalid_rows for r in self.relationship_results)

        return {
            "total_entities": len(self.entity_data),
            "total_rows": sum(len(d.rows) for d in self.entity_data.values()),
            "relationships_with_errors": sum(1 for r in self.relationship_results if r.errors),
            "checked_rows": checked_rows,
            "invalid_rows": invalid_rows,
            "entities_with_unique_errors": len(self.unique_errors),
            "integrity_score": 1.0 - invalid_rows / checked_rows if checked_rows else 1.0,
        }

    @property
    def has_findings(self) -> bool:
        return any(r.errors for r in self.relationship_results) or bool(self.unique_errors)

    def save(self, output_dir: Path) -> tuple:
        """
        Save validation report to files.

        Args:
            output_dir: Output directory

        Returns:
            Tuple of (json_path, markdown_path)
        """
        if not self.report["summary"]:
            self.generate_report()

        report_dir = Path(output_dir) / "report"
        report_dir.mkdir(parents=True, exist_ok=True)

        json_path = report_dir / "validation.json"
        with open(json_path, "w") as f:
            json.dump(self.report, f, indent=2, default=str)

        md_path = report_dir / "validation.md"
        with open(md_path, "w") as f:
            f.write(self._generate_markdown())

        logger.info(f"Validation report saved to {report_dir}")
        return json_path, md_path

    def _generate_markdown(self) -> str:
        """Generate Markdown version of validation report."""
        summary = self.report["summary"]
        lines = [
            "# Validation Report",
            "",
            f"Generated: {self.report['generated_at']}",
            "",
            "## Summary",
            "",
            f"- **Total Entities**: {summary['total_entities']}",
            f"- **Total Rows**: {summary['total_rows']:,}",
            f"- **Relationships With Errors**: {summary['relationships_with_errors']}",
            f"- **Invalid Rows**: {summary['invalid_rows']:,} of {summary['checked_rows']:,} checked",
            f"- **Integrity Score**: {summary['integrity_score']:.2%}",
            "",
        ]

        if self.report["referential_integrity"]:
            lines.append("## Referential Integrity")
            lines.append("")
            for result in self.report["referential_integrity"]:
                lines.append(
                    f"### {result['from_entity_file']} -> {result['to_entity_file']}"
                )
                lines.append("")
                lines.append(f"- Invalid Rows: {result['invalid_rows']}/{result['total_rows']}")
                for error in result["errors"]:
                    lines.append(f"- {error}")
                lines.append("")

        if self.report["uniqueness"]:
            lines.append("## Uniqueness")
            lines.append("")
            for error in self.report["uniqueness"]:
                lines.append(f"### {error['entity_file']}")
                lines.append("")
                for message in error["messages"]:
                    lines.append(f"- {message.strip()}")
                lines.append("")

        lines.append("## Entities")
        lines.append("")
        lines.append("| Entity | File | Rows | Columns |")
        lines.append("|--------|------|------|---------|")
        for entity_id, entity in self.report["entities"].items():
            lines.append(
                f"| {entity_id} | {entity['file']} | {entity['row_count']:,} | {entity['column_count']} |"
            )
        lines.append("")

        return "\n".join(lines)
