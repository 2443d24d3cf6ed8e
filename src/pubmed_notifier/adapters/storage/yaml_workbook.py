"""YAML workbook used as the subscription and credential tables.

The workbook is a mapping of sheet name to a list of rows. The first row of
every sheet is a header and is never interpreted::

    RSS:
      - [keyword, feed_url, target_id, dedup_state]
      - [BRCA1, "https://pubmed.ncbi.nlm.nih.gov/rss/search/...", lab, ""]
    webhooks:
      - [target_id, webhook_url]
      - [lab, "https://hooks.slack.com/services/..."]
"""

from pathlib import Path
from typing import Any

import yaml

from pubmed_notifier.core import ConfigError, CredentialStore, Subscription, SubscriptionStore

STATE_COLUMN = 3


class YamlWorkbook:
    """Sheets of rows stored in a single YAML file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            raise ConfigError(f"Workbook not found: {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in workbook {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Workbook {self.path} must map sheet names to rows")
        return data

    def read_sheet(self, sheet: str) -> list[list[str]]:
        """Return data rows of a sheet, header excluded, as strings."""
        rows = self._load().get(sheet)
        if rows is None:
            raise ConfigError(f"Sheet '{sheet}' not found in {self.path}")
        if not isinstance(rows, list):
            raise ConfigError(f"Sheet '{sheet}' must be a list of rows")

        result = []
        for row in rows[1:]:
            if not isinstance(row, list):
                raise ConfigError(f"Row {row!r} in sheet '{sheet}' is not a list")
            result.append(["" if cell is None else str(cell) for cell in row])
        return result

    def write_column(self, sheet: str, column: int, values: dict[int, str]) -> None:
        """Overwrite one column for the given data rows.

        Args:
            sheet: Sheet name
            column: Zero-based column index
            values: Data row index (header excluded) to new cell value
        """
        data = self._load()
        rows = data.get(sheet)
        if not isinstance(rows, list):
            raise ConfigError(f"Sheet '{sheet}' not found in {self.path}")

        for row_index, value in values.items():
            row = rows[row_index + 1]
            while len(row) <= column:
                row.append("")
            row[column] = value

        temp_path = self.path.with_name(f"{self.path.name}.tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, default_flow_style=None, sort_keys=False)
        temp_path.replace(self.path)


class WorkbookSubscriptionStore(SubscriptionStore):
    """Subscriptions read from rows of (keyword, feed_url, target_id, dedup_state)."""

    def __init__(self, workbook: YamlWorkbook, sheet: str = "RSS") -> None:
        self.workbook = workbook
        self.sheet = sheet

    def load(self) -> list[Subscription]:
        subscriptions = []
        for index, row in enumerate(self.workbook.read_sheet(self.sheet)):
            if not any(cell.strip() for cell in row):
                continue
            row = row + [""] * (4 - len(row))
            keyword, feed_url, target_id, dedup_state = (cell.strip() for cell in row[:4])
            if not feed_url:
                print(f"  ⚠️  Row {index + 2} of '{self.sheet}' has no feed URL, ignored")
                continue
            subscriptions.append(Subscription(
                keyword=keyword,
                feed_url=feed_url,
                target_id=target_id,
                dedup_state=dedup_state,
                row_index=index,
            ))
        return subscriptions

    def save(self, subscriptions: list[Subscription]) -> None:
        values = {s.row_index: s.dedup_state for s in subscriptions}
        self.workbook.write_column(self.sheet, STATE_COLUMN, values)


class WorkbookCredentialStore(CredentialStore):
    """Credentials read from rows of (target_id, webhook_url_or_token)."""

    def __init__(self, workbook: YamlWorkbook, sheet: str) -> None:
        self.workbook = workbook
        self.sheet = sheet

    def load(self) -> dict[str, str]:
        credentials = {}
        for row in self.workbook.read_sheet(self.sheet):
            if len(row) < 2:
                continue
            target_id, credential = row[0].strip(), row[1].strip()
            if target_id and credential:
                credentials[target_id] = credential
        return credentials
