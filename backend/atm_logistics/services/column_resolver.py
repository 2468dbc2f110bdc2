"""
Column resolution - maps logical import fields to sheet column indices.

Header cells are normalized (lowercase, alphanumerics only) so that
"ATM BNA ID", "atm_bna_id" and "Atm-Bna Id" all resolve to the same column.
Fields that cannot be found by header fall back to their fixed index from the
column layout, which reproduces the oldest positional sheet layout.
"""
import re
from typing import Dict, Iterable, List, Optional, Sequence

from atm_logistics.config.mapping_loader import FieldSpec, get_column_layout
from atm_logistics.services.cell_coercion import cell_as_string

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_header(value) -> str:
    text = cell_as_string(value)
    if not text:
        return ""
    return _NON_ALNUM.sub("", text.lower())


class ColumnResolver:
    """Resolves column indices from one header row."""

    def __init__(self, header_cells: Sequence):
        self.headers: List[str] = [normalize_header(cell) for cell in header_cells]
        self.index: Dict[str, int] = {}
        for position, header in enumerate(self.headers):
            if header and header not in self.index:
                self.index[header] = position

    def exact(self, key: str, fallback: int = -1) -> int:
        return self.index.get(normalize_header(key), fallback)

    def prefix(self, prefix: str, fallback: int = -1, exclude: Iterable[str] = ()) -> int:
        wanted = normalize_header(prefix)
        excluded = [normalize_header(e) for e in exclude]
        if not wanted:
            return fallback
        for position, header in enumerate(self.headers):
            if not header.startswith(wanted):
                continue
            if any(ex and header.startswith(ex) for ex in excluded):
                continue
            return position
        return fallback

    def resolve(self, spec: FieldSpec) -> int:
        """Exact keys first, then prefixes, then the fixed fallback index."""
        for key in spec.exact:
            position = self.exact(key)
            if position >= 0:
                return position
        for prefix in spec.prefix:
            position = self.prefix(prefix, exclude=spec.exclude)
            if position >= 0:
                return position
        return spec.index

    def resolve_all(self, layout: Optional[Dict[str, FieldSpec]] = None) -> Dict[str, int]:
        layout = layout if layout is not None else get_column_layout()
        return {name: self.resolve(spec) for name, spec in layout.items()}
