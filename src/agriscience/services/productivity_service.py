"""Productivity service — yield estimates enriched by IBGE statistics.

Learn: The estimate is simple arithmetic; the interesting part is the
fallback policy. The IBGE lookup is best-effort:

    municipality code ─┐
                       ├─ any failure / no usable figure → default yield
    SIDRA yield row ───┘

so a calculation always succeeds (and is always persisted) even when IBGE
is slow, down, or has no data for that crop/municipality/year.

    production (t) = yield (kg/ha) × area (ha) / 1000
    value          = production × price per ton
"""

from typing import Optional

import structlog

from agriscience.errors import ExternalServiceUnavailable, NotFoundError
from agriscience.schemas.catalog import Crop
from agriscience.schemas.productivity import (
    CalculateRequest,
    CalculationCreate,
    CalculationFigures,
    CalculationResult,
)
from agriscience.services.ibge import IbgeClient, IbgeRecord
from agriscience.storage.base import Storage

logger = structlog.get_logger()

SOURCE_IBGE = "IBGE SIDRA API"
SOURCE_DEFAULT = "default"

YIELD_VARIABLE_MARKERS = ("rendimento", "produtividade")


def pick_yield(records: list[IbgeRecord]) -> Optional[float]:
    """First positive yield figure among the SIDRA records, if any."""
    for record in records:
        variable = record.variable.lower()
        if any(marker in variable for marker in YIELD_VARIABLE_MARKERS) and record.value > 0:
            return record.value
    return None


class ProductivityService:
    def __init__(
        self,
        storage: Storage,
        ibge: IbgeClient,
        default_yield: float,
        price_per_ton: float,
        default_year: int,
    ):
        self.storage = storage
        self.ibge = ibge
        self.default_yield = default_yield
        self.price_per_ton = price_per_ton
        self.default_year = default_year

    async def lookup_yield(self, crop: Crop, municipality: str, state: str, year: int) -> tuple[float, str]:
        """Return (yield kg/ha, source). Never raises for upstream trouble."""
        try:
            code = await self.ibge.get_municipality_code(municipality, state)
            if code is None:
                logger.info("productivity.municipality_unknown", municipality=municipality, state=state)
                return self.default_yield, SOURCE_DEFAULT

            records = await self.ibge.get_productivity_data(crop.ibge_code, code, year)
        except ExternalServiceUnavailable as e:
            logger.warning("productivity.ibge_unavailable", error=e.message)
            return self.default_yield, SOURCE_DEFAULT

        value = pick_yield(records)
        if value is None:
            logger.info("productivity.no_ibge_yield", crop=crop.name, municipality=municipality, year=year)
            return self.default_yield, SOURCE_DEFAULT
        return value, SOURCE_IBGE

    async def calculate(self, user_id: str, request: CalculateRequest) -> CalculationResult:
        crop = await self.storage.get_crop(request.crop_id)
        if not crop or not crop.ibge_code:
            raise NotFoundError("Crop not found or no IBGE code available")

        year = request.year or self.default_year
        yield_value, source = await self.lookup_yield(crop, request.municipality, request.state, year)

        production = yield_value * request.area / 1000
        value = production * self.price_per_ton

        calculation = await self.storage.create_calculation(
            user_id,
            CalculationCreate(
                crop_id=crop.id,
                municipality=request.municipality,
                state=request.state.upper(),
                area=request.area,
                ibge_yield=yield_value,
                estimated_production=production,
                estimated_value=value,
                year=year,
            ),
        )
        logger.info(
            "productivity.calculated",
            calculation_id=calculation.id,
            crop=crop.name,
            source=source,
        )
        return CalculationResult(
            calculation=calculation,
            data=CalculationFigures(
                yield_=yield_value,
                total_production=production,
                market_value=value,
                source=source,
            ),
        )
