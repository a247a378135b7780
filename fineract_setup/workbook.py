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

"""Workbook validation and XLS format checks.

Fineract's bulk-import endpoints expect legacy binary XLS (BIFF8)
workbooks. This module checks that template bytes really are a workbook
and decides whether they can be sent as XLS.

Format detection uses the file signature, not the file name:

- OLE2 compound document (D0 CF 11 E0 ...): XLS, read with xlrd
- ZIP container (PK 03 04): XLSX, read with openpyxl
- anything else: CorruptWorkbookError

XLSX templates are opened and checked but never rewritten: ensure_xls()
raises CorruptWorkbookError for them and the caller uploads the original
bytes under the template's XLS file part.

Example:
    Validate a template and pick what to send:
        ```python
        from fineract_setup.workbook import WorkbookValidator

        validator = WorkbookValidator()
        info = validator.validate(data)
        print(info.format, info.sheet_count)
        payload = validator.ensure_xls(data)
        ```
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

import openpyxl
import xlrd

from fineract_setup.exceptions import CorruptWorkbookError
from fineract_setup.logging import get_global_logger

OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_MAGIC = b"PK\x03\x04"


@dataclass(frozen=True)
class SheetInfo:
    name: str
    rows: int


@dataclass(frozen=True)
class WorkbookInfo:
    """What validation found in a workbook.

    Attributes:
        format: "xls" or "xlsx".
        sheets: Sheet names and row counts, in workbook order.
    """

    format: str
    sheets: tuple[SheetInfo, ...]

    @property
    def sheet_count(self) -> int:
        return len(self.sheets)


def detect_format(data: bytes) -> str:
    """Return "xls" or "xlsx" from the file signature.

    Raises:
        CorruptWorkbookError: The bytes are neither format.
    """
    if data.startswith(OLE2_MAGIC):
        return "xls"
    if data.startswith(ZIP_MAGIC):
        return "xlsx"
    raise CorruptWorkbookError("not an Excel workbook (unknown file signature)")


def _inspect_xls(data: bytes) -> tuple[SheetInfo, ...]:
    book = xlrd.open_workbook(file_contents=data, on_demand=True)
    try:
        sheets = []
        for i in range(book.nsheets):
            sheet = book.sheet_by_index(i)
            sheets.append(SheetInfo(sheet.name, sheet.nrows))
        return tuple(sheets)
    finally:
        book.release_resources()


def _row_count(ws) -> int:
    if ws.max_row is not None:
        return ws.max_row
    return sum(1 for _ in ws.iter_rows())


def _inspect_xlsx(data: bytes) -> tuple[SheetInfo, ...]:
    wb = openpyxl.load_workbook(BytesIO(data), read_only=True, data_only=True)
    try:
        return tuple(SheetInfo(ws.title, _row_count(ws)) for ws in wb.worksheets)
    finally:
        wb.close()


class WorkbookValidator:
    """Opens template bytes as a spreadsheet and checks they can be sent as XLS."""

    def inspect(self, data: bytes) -> WorkbookInfo:
        """Open the workbook and list its sheets.

        Raises:
            CorruptWorkbookError: The bytes cannot be opened as a workbook.
        """
        fmt = detect_format(data)
        try:
            sheets = _inspect_xls(data) if fmt == "xls" else _inspect_xlsx(data)
        except Exception as err:
            raise CorruptWorkbookError(f"cannot open {fmt} workbook: {err}") from err
        if not sheets:
            raise CorruptWorkbookError("workbook contains no sheets")
        return WorkbookInfo(fmt, sheets)

    def validate(self, data: bytes) -> WorkbookInfo:
        """Inspect the workbook and log its structure."""
        logger = get_global_logger()
        info = self.inspect(data)
        logger.verbose(
            "WORKBOOK", f"{info.format.upper()} workbook with {info.sheet_count} sheet(s)"
        )
        for index, sheet in enumerate(info.sheets):
            logger.debug("WORKBOOK", f"Sheet {index}: '{sheet.name}' has {sheet.rows} rows")
        return info

    def ensure_xls(self, data: bytes) -> bytes:
        """Return the workbook as XLS bytes.

        XLS input is returned unchanged.

        Raises:
            CorruptWorkbookError: The workbook is not XLS and cannot be
                rewritten as XLS.
        """
        fmt = detect_format(data)
        if fmt != "xls":
            raise CorruptWorkbookError(f"{fmt.upper()} to XLS conversion is not supported")
        get_global_logger().debug("WORKBOOK", "Already in XLS format")
        return data
