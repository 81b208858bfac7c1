"""
Google Sheets Backend Implementation

DESIGN DECISION: Google Sheets can stand in for the relational backend
because:
1. Family members can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for one household)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)
- No row-level security: the owning-key predicate callers pass is the
  only isolation, which is why every repository always sends it

Each table is a worksheet named after it. Row 1 holds column names;
every cell holds a JSON-encoded value so types survive the round trip.
"""

import json
from typing import Any, Mapping, Optional, Sequence

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from family_finance.backend.interface import (
    BackendClient,
    BackendError,
    ConnectionError,
    Filters,
    OrderBy,
    Row,
    UnknownProcedureError,
)
from family_finance.backend.query import (
    apply_query,
    calculate_net_worth,
    matches,
    utcnow_iso,
    with_row_defaults,
)
from family_finance.backend.realtime import ChangeEvent, ChangeFeed, ChangeType
from family_finance.config import GoogleSheetsSettings, get_settings

logger = structlog.get_logger(__name__)

# Columns every table starts with
BASE_COLUMNS = ["id", "created_at", "updated_at"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_table_sheet(self, table: str) -> gspread.Worksheet:
        """Get or create the worksheet backing `table`."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(table)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=table,
                rows=self._settings.rows_per_new_sheet,
                cols=len(BASE_COLUMNS),
            )
            sheet.append_row(BASE_COLUMNS)
        return sheet


def _encode_cell(value: Any) -> str:
    if value is None:
        return ""
    return json.dumps(value, default=str, ensure_ascii=False)


def _decode_cell(cell: str) -> Any:
    if cell == "":
        return None
    try:
        return json.loads(cell)
    except ValueError:
        # hand-edited cell
        return cell


class GoogleSheetsBackend(BackendClient):
    """
    Google Sheets implementation of the backend.

    Reads pull the whole worksheet and filter in Python. Writes locate
    rows by re-reading, so row numbers are never cached between calls.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        change_feed: Optional[ChangeFeed] = None,
    ):
        super().__init__(change_feed)
        self._client = client or GoogleSheetsClient()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _read(self, table: str) -> tuple[gspread.Worksheet, list[str], list[tuple[int, Row]]]:
        """Return the sheet, its header and (sheet row number, row) pairs."""
        sheet = self._client.get_table_sheet(table)
        values = sheet.get_all_values()
        header = values[0] if values else list(BASE_COLUMNS)
        rows = []
        for idx, raw in enumerate(values[1:], start=2):  # row 1 is the header
            if not raw or not any(raw):
                continue
            row = {
                column: _decode_cell(raw[i]) if i < len(raw) else None
                for i, column in enumerate(header)
                if column
            }
            rows.append((idx, row))
        return sheet, header, rows

    def _ensure_columns(self, sheet: gspread.Worksheet, header: list[str], row: Row) -> list[str]:
        """Append header cells for columns the sheet has not seen yet."""
        header = list(header)
        for column in row:
            if column not in header:
                header.append(column)
                if sheet.col_count < len(header):
                    sheet.add_cols(len(header) - sheet.col_count)
                sheet.update_cell(1, len(header), column)
        return header

    def _to_cells(self, header: list[str], row: Row) -> list[str]:
        return [_encode_cell(row.get(column)) for column in header]

    async def select(
        self,
        table: str,
        filters: Filters,
        order: Sequence[OrderBy] = (),
        limit: Optional[int] = None,
    ) -> list[Row]:
        try:
            _, _, rows = self._read(table)
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to read {table}: {e}")
        return apply_query((row for _, row in rows), filters, order, limit)

    async def select_one(self, table: str, filters: Filters) -> Optional[Row]:
        found = await self.select(table, filters)
        if len(found) > 1:
            raise BackendError(f"Expected one row in {table}, found {len(found)}")
        return found[0] if found else None

    async def insert(self, table: str, row: Row) -> Row:
        stored = with_row_defaults(row)
        try:
            sheet, header, _ = self._read(table)
            header = self._ensure_columns(sheet, header, stored)
            sheet.append_row(self._to_cells(header, stored), value_input_option="RAW")
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to insert into {table}: {e}")

        await self.changes.publish(ChangeEvent(
            table=table, change_type=ChangeType.INSERT, new=dict(stored),
        ))
        return stored

    async def update(self, table: str, values: Row, filters: Filters) -> list[Row]:
        changed = []
        try:
            sheet, header, rows = self._read(table)
            header = self._ensure_columns(sheet, header, values)
            for idx, row in rows:
                if not matches(row, filters):
                    continue
                new = dict(row)
                new.update(values)
                if "updated_at" not in values:
                    new["updated_at"] = utcnow_iso()
                for col_idx, cell in enumerate(self._to_cells(header, new), start=1):
                    sheet.update_cell(idx, col_idx, cell)
                changed.append((row, new))
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to update {table}: {e}")

        for old, new in changed:
            await self.changes.publish(ChangeEvent(
                table=table, change_type=ChangeType.UPDATE, new=new, old=old,
            ))
        return [new for _, new in changed]

    async def delete(self, table: str, filters: Filters) -> int:
        removed = []
        try:
            sheet, _, rows = self._read(table)
            targets = [(idx, row) for idx, row in rows if matches(row, filters)]
            # bottom-up so earlier row numbers stay valid
            for idx, row in sorted(targets, key=lambda t: t[0], reverse=True):
                sheet.delete_rows(idx)
                removed.append(row)
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"Failed to delete from {table}: {e}")

        for old in removed:
            await self.changes.publish(ChangeEvent(
                table=table, change_type=ChangeType.DELETE, old=old,
            ))
        return len(removed)

    async def rpc(self, name: str, params: Mapping[str, Any]) -> list[Row]:
        if name != "calculate_net_worth":
            raise UnknownProcedureError(f"Unknown procedure: {name}")

        user_id = params.get("target_user_id")
        assets = await self.select("assets", {"user_id": user_id})
        liabilities = await self.select("liabilities", {"user_id": user_id})
        logger.debug("net_worth_aggregated", user_id=user_id,
                     assets=len(assets), liabilities=len(liabilities))
        return calculate_net_worth(user_id, assets, liabilities)
