from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from flatfile_pipeline.errors import ConversionError


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of importing one data file."""
    table_name: str
    input_path: str
    total: int
    loaded: int
    degraded: int       # rows loaded with at least one raw-string fallback

    def render_one_line(self) -> str:
        """How each line of summary is formatted for the terminal."""
        return f"{self.table_name}: total={self.total} loaded={self.loaded} degraded={self.degraded}"


def render_totals(summaries: Sequence[ImportSummary]) -> str:
    """One closing line for a multi-file import."""
    total = sum(s.total for s in summaries)
    loaded = sum(s.loaded for s in summaries)
    degraded = sum(s.degraded for s in summaries)
    return f"{len(summaries)} file(s): total={total} loaded={loaded} degraded={degraded}"


@dataclass(frozen=True)
class FileReport:
    """Dry-run findings for one data file."""
    table_name: str
    input_path: str
    records: int = 0
    structural: tuple[str, ...] = ()
    conversion: tuple[ConversionError, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return not self.structural and not self.conversion

    def render(self) -> str:
        """Multi-line report; every problem carries its table, column, row and value."""
        head = (
            f"{self.table_name}: records={self.records} "
            f"structural_errors={len(self.structural)} conversion_errors={len(self.conversion)}"
        )
        lines = [head]
        lines.extend(f"  {s}" for s in self.structural)
        for err in self.conversion:
            lines.append("")
            lines.extend(f"  {ln}" for ln in err.diagnostic.splitlines())
        return "\n".join(lines)
