"""Public Google Sheets CSV export client (EMBI / riesgo país sheet)."""

from app.infrastructure.http_client import ResilientHttpClient

EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export"


class SheetsClient:
    def __init__(self, http: ResilientHttpClient, sheet_id: str, gid: str = "0"):
        self.http = http
        self.sheet_id = sheet_id
        self.gid = gid

    async def fetch_csv(self) -> str:
        return await self.http.get_text(
            EXPORT_URL.format(sheet_id=self.sheet_id),
            params={"format": "csv", "gid": self.gid},
        )
