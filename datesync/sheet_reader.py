"""
Source reader for the Birthdays / Anniversaries sheets
"""

import csv
import logging
import os
from typing import List

from datesync.models import Entry

logger = logging.getLogger(__name__)

SHEET_EXTENSION = '.csv'


class SheetReader:
    """Reads two-column (name, DD/MM) sheets stored as CSV files in a directory"""

    def __init__(self, directory: str, sort_on_read: bool = True):
        self.directory = directory
        self.sort_on_read = sort_on_read

    def _sheet_path(self, source_name: str) -> str:
        return os.path.join(self.directory, source_name + SHEET_EXTENSION)

    def available_sources(self) -> List[str]:
        """List the sheet names present in the directory"""
        if not os.path.isdir(self.directory):
            return []
        return sorted(
            name[:-len(SHEET_EXTENSION)]
            for name in os.listdir(self.directory)
            if name.endswith(SHEET_EXTENSION)
        )

    def read_entries(self, source_name: str) -> List[Entry]:
        """Read all entries of a sheet, an absent sheet yields no entries"""
        path = self._sheet_path(source_name)
        if not os.path.isfile(path):
            logger.info(f"Sheet '{source_name}' not found in {self.directory}, skipping")
            return []

        rows = self._load_rows(path)

        if self.sort_on_read:
            rows.sort(key=lambda row: row[0].casefold())
            self._write_rows(path, rows)
            logger.debug(f"Sorted sheet '{source_name}' by name")

        entries = []
        for row in rows:
            raw_date = row[1] if len(row) > 1 else ''
            entries.append(Entry(name=row[0], raw_date=raw_date))

        logger.info(f"Read {len(entries)} entries from sheet '{source_name}'")
        return entries

    def _load_rows(self, path: str) -> List[List[str]]:
        rows = []
        # utf-8-sig drops the BOM of spreadsheet "CSV UTF-8" exports
        with open(path, newline='', encoding='utf-8-sig') as f:
            for row in csv.reader(f):
                cells = [cell.strip() for cell in row]
                if not any(cells):
                    continue
                rows.append(cells)
        return rows

    def _write_rows(self, path: str, rows: List[List[str]]):
        tmp_path = path + '.tmp'
        try:
            with open(tmp_path, 'w', newline='', encoding='utf-8') as f:
                csv.writer(f, lineterminator='\n').writerows(rows)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
