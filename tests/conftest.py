from __future__ import annotations

import io
from collections.abc import Callable, Sequence
from typing import Any

import pytest
from openpyxl import Workbook

XlsxFactory = Callable[..., bytes]


@pytest.fixture
def sample_csv() -> str:
    return "Handle,Variant SKU,Google Category\nh1,SKU1,Cat\nh2,,Cat2\n"


@pytest.fixture
def sample_csv_bytes(sample_csv: str) -> bytes:
    return sample_csv.encode("utf-8")


@pytest.fixture
def make_xlsx() -> XlsxFactory:
    """Return a builder for in-memory workbooks whose first sheet holds the given rows."""

    def _build(rows: Sequence[Sequence[Any]], *, extra_sheets: int = 0) -> bytes:
        wb = Workbook()
        ws = wb.active
        assert ws is not None
        ws.title = "Products"
        for row in rows:
            ws.append(list(row))
        for idx in range(extra_sheets):
            other = wb.create_sheet(title=f"Other{idx}")
            other.append(["Variant SKU"])
            other.append([f"ignored-{idx}"])
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    return _build
