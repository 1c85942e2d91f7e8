"""IBGE client — municipality codes and municipal crop statistics.

Learn: Two public IBGE APIs are involved:
1. Localities API: /estados/{UF}/municipios → municipality id by name
2. SIDRA API: table 1612 (Produção Agrícola Municipal, temporary crops)
   /values/t/1612/n6/{municipality}/p/{year}/v/{variables}/c48/{crop}

SIDRA answers with a list of flat objects; the first one is a header
row describing the columns (D1N = territory, D2N = year, D3N = variable,
D4N = product, V = value). Values can be "-" or "..." when IBGE has no
figure, and those are skipped.

Every transport error, non-2xx status or undecodable body is raised as
ExternalServiceUnavailable. Callers decide how to fall back.
"""

from typing import Any, Optional

import httpx
import structlog
from pydantic import BaseModel

from agriscience.errors import ExternalServiceUnavailable

logger = structlog.get_logger()

# Rendimento médio (112), quantidade produzida (214), área colhida (216)
SIDRA_VARIABLES = "112,214,216"


class IbgeRecord(BaseModel):
    territory: str
    year: str
    variable: str
    crop: str
    value: float


def _parse_value(raw: Any) -> Optional[float]:
    try:
        return float(str(raw).replace(",", "."))
    except (TypeError, ValueError):
        return None


def parse_sidra_rows(rows: Any) -> list[IbgeRecord]:
    """Turn a SIDRA /values response into records, dropping the header row."""
    if not isinstance(rows, list):
        raise ExternalServiceUnavailable("Unexpected SIDRA response shape")

    records = []
    for row in rows:
        if isinstance(row, dict):
            if row.get("V") == "Valor":
                continue
            fields = (row.get("D1N"), row.get("D2N"), row.get("D3N"), row.get("D4N"), row.get("V"))
        elif isinstance(row, (list, tuple)) and len(row) >= 6:
            fields = (row[1], row[2], row[3], row[4], row[5])
        else:
            continue

        territory, year, variable, crop, raw_value = fields
        value = _parse_value(raw_value)
        if value is None:
            continue
        records.append(
            IbgeRecord(
                territory=str(territory or ""),
                year=str(year or ""),
                variable=str(variable or ""),
                crop=str(crop or ""),
                value=value,
            )
        )
    return records


class IbgeClient:
    """Async client for the IBGE localities and SIDRA APIs."""

    def __init__(
        self,
        sidra_url: str,
        localities_url: str,
        table_id: str = "1612",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.sidra_url = sidra_url.rstrip("/")
        self.localities_url = localities_url.rstrip("/")
        self.table_id = table_id
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get_json(self, url: str) -> Any:
        try:
            response = await self._http.get(url)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("ibge.request_failed", url=url, error=str(e))
            raise ExternalServiceUnavailable(f"IBGE request failed: {e}") from e

    async def get_municipality_code(self, name: str, state: str) -> Optional[str]:
        """Find a municipality id by (partial, case-insensitive) name within a state."""
        municipalities = await self._get_json(
            f"{self.localities_url}/estados/{state.upper()}/municipios"
        )
        if not isinstance(municipalities, list):
            raise ExternalServiceUnavailable("Unexpected localities response shape")

        needle = name.strip().lower()
        for municipality in municipalities:
            if not isinstance(municipality, dict) or municipality.get("id") is None:
                continue
            if needle and needle in str(municipality.get("nome", "")).lower():
                return str(municipality["id"])
        return None

    async def get_productivity_data(
        self, crop_code: str, municipality_code: str, year: int
    ) -> list[IbgeRecord]:
        url = (
            f"{self.sidra_url}/values/t/{self.table_id}/n6/{municipality_code}"
            f"/p/{year}/v/{SIDRA_VARIABLES}/c48/{crop_code}"
        )
        return parse_sidra_rows(await self._get_json(url))
