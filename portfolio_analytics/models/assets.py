"""Asset record model: a common base plus one variant per asset type.

Assets travel as camelCase JSON (``currentValue``, ``esgMetrics`` ...) between
the data-loading layer and the analytics core.  ``asset_from_dict`` parses
that wire shape into the dataclasses below, dispatching on ``assetType``;
``Asset.to_dict`` produces it again.

Money is plain USD floats.  IRR, total return and benchmark deltas are
fractional (0.15 = 15 %).  MOIC is a decimal multiple (1.0 = break-even).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, ClassVar

from portfolio_analytics.errors import AssetValidationError

# ---------------------------------------------------------------------------
# Enumerations (kept as plain strings on the records)
# ---------------------------------------------------------------------------

ASSET_TYPES: tuple[str, ...] = ("traditional", "real_estate", "infrastructure")
STATUSES: tuple[str, ...] = ("active", "under_review", "exited", "disposed")
RISK_RATINGS: tuple[str, ...] = ("low", "medium", "high", "critical")
COMPANY_STAGES: tuple[str, ...] = ("seed", "series_a", "series_b", "series_c", "growth", "mature")
PROPERTY_TYPES: tuple[str, ...] = (
    "office", "retail", "industrial", "residential", "mixed_use", "hospitality",
)
INFRASTRUCTURE_CATEGORIES: tuple[str, ...] = ("energy", "transport", "water", "telecom", "social")

_CATEGORY_ALIASES = {
    "telecommunications": "telecom",
    "water_utilities": "water",
    "transportation": "transport",
}

ESG_SCORE_MIN = 0.0
ESG_SCORE_MAX = 10.0

# snake_case field -> wire key, where plain camel-casing does not apply
_WIRE_OVERRIDES = {
    "certifications": "sustainabilityCertifications",
    "total_sq_ft": "totalSqFt",
}


# ---------------------------------------------------------------------------
# Wire helpers
# ---------------------------------------------------------------------------

def to_camel(name: str) -> str:
    if name in _WIRE_OVERRIDES:
        return _WIRE_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def camelize_keys(data: Any) -> Any:
    """Recursively convert snake_case dict keys to their wire spelling."""
    if isinstance(data, dict):
        return {
            (to_camel(k) if isinstance(k, str) and "_" in k else k): camelize_keys(v)
            for k, v in data.items()
        }
    return data


def _pick(data: dict, name: str, default: Any = None) -> Any:
    """Read a field from a wire dict, accepting camelCase or snake_case."""
    wire = to_camel(name)
    if wire in data:
        return data[wire]
    return data.get(name, default)


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError as exc:
            raise AssetValidationError(f"Invalid acquisition date: {value!r}") from exc
    raise AssetValidationError(f"Invalid acquisition date: {value!r}")


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise AssetValidationError(f"Invalid timestamp: {value!r}") from exc


def _finite_float(value: Any, label: str) -> float:
    """float(value), rejecting NaN/inf (``json.load`` accepts the ``NaN`` literal)."""
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise AssetValidationError(f"{label} must be numeric, got {value!r}") from exc
    if not math.isfinite(out):
        raise AssetValidationError(f"{label} must be finite, got {value!r}")
    return out


def _optional_float(value: Any, label: str) -> float | None:
    if value is None or value == "":
        return None
    return _finite_float(value, label)


def _unique(items) -> list[str]:
    seen: dict[str, None] = {}
    for item in items or []:
        seen.setdefault(str(item), None)
    return list(seen)


def _simple_to_dict(obj) -> dict:
    out = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = list(value)
        out[to_camel(f.name)] = value
    return out


def _simple_from_dict(cls, data: dict | None):
    data = data or {}
    kwargs = {}
    for f in fields(cls):
        value = _pick(data, f.name)
        if value is not None:
            kwargs[f.name] = value
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Shared sub-records
# ---------------------------------------------------------------------------

@dataclass
class Location:
    country: str
    region: str = ""
    city: str | None = None
    coordinates: tuple[float, float] | None = None  # (lat, lng)

    def __post_init__(self):
        if isinstance(self.coordinates, dict):
            self.coordinates = (float(self.coordinates["lat"]), float(self.coordinates["lng"]))
        elif self.coordinates is not None:
            lat, lng = self.coordinates
            self.coordinates = (float(lat), float(lng))

    def to_dict(self) -> dict:
        out = {"country": self.country, "region": self.region}
        if self.city is not None:
            out["city"] = self.city
        if self.coordinates is not None:
            out["coordinates"] = {"lat": self.coordinates[0], "lng": self.coordinates[1]}
        return out

    @classmethod
    def from_dict(cls, data: dict | None) -> Location:
        data = data or {}
        return cls(
            country=data.get("country", "") or "",
            region=data.get("region", "") or "",
            city=data.get("city"),
            coordinates=data.get("coordinates"),
        )


@dataclass
class PerformanceMetrics:
    irr: float = 0.0
    moic: float = 0.0
    total_return: float = 0.0
    tvpi: float | None = None
    dpi: float | None = None
    rvpi: float | None = None
    benchmark_comparison: float | None = None

    def __post_init__(self):
        self.irr = _finite_float(self.irr, "irr")
        self.moic = _finite_float(self.moic, "moic")
        self.total_return = _finite_float(self.total_return, "total_return")
        for name in ("tvpi", "dpi", "rvpi", "benchmark_comparison"):
            setattr(self, name, _optional_float(getattr(self, name), name))
        # -100% is a total loss; anything lower has no meaning as a rate
        if self.irr < -1:
            raise AssetValidationError(f"IRR must be >= -1, got {self.irr}")
        if self.moic < 0:
            raise AssetValidationError(f"MOIC must be >= 0, got {self.moic}")

    def to_dict(self) -> dict:
        return _simple_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> PerformanceMetrics:
        return _simple_from_dict(cls, data)


@dataclass
class ESGMetrics:
    """Scores on a 0-10 scale; ``None`` means the dimension was not assessed."""

    environmental_score: float | None = None
    social_score: float | None = None
    governance_score: float | None = None
    overall_score: float | None = None
    carbon_footprint: float | None = None   # tCO2e, negative for net removals
    jobs_created: int | None = None
    certifications: list[str] = field(default_factory=list)

    SCORE_FIELDS: ClassVar[tuple[str, ...]] = (
        "environmental_score", "social_score", "governance_score", "overall_score",
    )

    def __post_init__(self):
        for name in self.SCORE_FIELDS:
            value = _optional_float(getattr(self, name), name)
            if value is not None:
                value = min(max(value, ESG_SCORE_MIN), ESG_SCORE_MAX)
            setattr(self, name, value)
        self.carbon_footprint = _optional_float(self.carbon_footprint, "carbon_footprint")
        if self.jobs_created is not None:
            self.jobs_created = int(self.jobs_created)
        self.certifications = _unique(self.certifications)

    def to_dict(self) -> dict:
        return _simple_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> ESGMetrics | None:
        if not data:
            return None
        return _simple_from_dict(cls, data)


# ---------------------------------------------------------------------------
# Variant-specific metric blocks
# ---------------------------------------------------------------------------

@dataclass
class TraditionalMetrics:
    company_stage: str | None = None
    employee_count: int | None = None
    revenue: float | None = None
    ebitda: float | None = None
    ownership_percentage: float | None = None
    board_seats: int | None = None
    funding_rounds: int | None = None
    debt_to_equity: float | None = None

    def __post_init__(self):
        if self.company_stage is not None and self.company_stage not in COMPANY_STAGES:
            raise AssetValidationError(f"Unknown company stage: {self.company_stage!r}")
        for name in ("revenue", "ebitda", "ownership_percentage", "debt_to_equity"):
            setattr(self, name, _optional_float(getattr(self, name), name))
        for name in ("employee_count", "board_seats", "funding_rounds"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, int(value))

    def to_dict(self) -> dict:
        return _simple_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> TraditionalMetrics:
        return _simple_from_dict(cls, data)


@dataclass
class RealEstateMetrics:
    property_type: str | None = None
    total_sq_ft: float | None = None
    occupancy_rate: float | None = None
    cap_rate: float | None = None
    noi_yield: float | None = None
    avg_lease_length: float | None = None
    vacancy_rate: float | None = None
    avg_rent_psf: float | None = None

    def __post_init__(self):
        if self.property_type is not None and self.property_type not in PROPERTY_TYPES:
            raise AssetValidationError(f"Unknown property type: {self.property_type!r}")
        for f in fields(self):
            if f.name != "property_type":
                setattr(self, f.name, _optional_float(getattr(self, f.name), f.name))

    def to_dict(self) -> dict:
        return _simple_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> RealEstateMetrics:
        return _simple_from_dict(cls, data)


@dataclass
class InfrastructureMetrics:
    asset_category: str | None = None
    capacity_utilization: float | None = None
    availability_rate: float | None = None
    contracted_revenue: float | None = None
    maintenance_score: float | None = None
    operational_efficiency: float | None = None
    regulatory_compliance: float | None = None

    def __post_init__(self):
        if self.asset_category is not None:
            self.asset_category = _CATEGORY_ALIASES.get(self.asset_category, self.asset_category)
            if self.asset_category not in INFRASTRUCTURE_CATEGORIES:
                raise AssetValidationError(f"Unknown infrastructure category: {self.asset_category!r}")
        for f in fields(self):
            if f.name != "asset_category":
                setattr(self, f.name, _optional_float(getattr(self, f.name), f.name))

    def to_dict(self) -> dict:
        return _simple_to_dict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> InfrastructureMetrics:
        return _simple_from_dict(cls, data)


# ---------------------------------------------------------------------------
# Asset records
# ---------------------------------------------------------------------------

@dataclass
class Asset:
    """Fields shared by every asset variant."""

    id: str
    name: str
    acquisition_date: date
    acquisition_value: float
    current_value: float
    location: Location
    description: str = ""
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    esg_metrics: ESGMetrics | None = None
    status: str = "active"
    risk_rating: str = "medium"
    sector: str | None = None
    tags: list[str] = field(default_factory=list)
    last_updated: datetime | None = None
    # Unmodelled wire blocks (companyInfo, leaseInfo, ...) carried through untouched
    extra: dict[str, Any] = field(default_factory=dict)

    asset_type: ClassVar[str] = ""

    def __post_init__(self):
        if not self.id:
            raise AssetValidationError("Asset id is required")
        self.acquisition_date = _parse_date(self.acquisition_date)
        self.last_updated = _parse_timestamp(self.last_updated)
        self.acquisition_value = _finite_float(self.acquisition_value, f"{self.id}: acquisition value")
        self.current_value = _finite_float(self.current_value, f"{self.id}: current value")
        if self.acquisition_value < 0:
            raise AssetValidationError(f"{self.id}: acquisition value must be >= 0")
        if self.current_value < 0:
            raise AssetValidationError(f"{self.id}: current value must be >= 0")
        if self.status not in STATUSES:
            raise AssetValidationError(f"{self.id}: unknown status {self.status!r}")
        if self.risk_rating not in RISK_RATINGS:
            raise AssetValidationError(f"{self.id}: unknown risk rating {self.risk_rating!r}")
        if self.sector == "":
            self.sector = None
        self.tags = _unique(self.tags)

    @property
    def country(self) -> str:
        return self.location.country

    @property
    def unrealized_gain(self) -> float:
        return self.current_value - self.acquisition_value

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "name": self.name,
            "assetType": self.asset_type,
            "description": self.description,
            "acquisitionDate": self.acquisition_date.isoformat(),
            "acquisitionValue": self.acquisition_value,
            "currentValue": self.current_value,
            "location": self.location.to_dict(),
            "performance": self.performance.to_dict(),
            "status": self.status,
            "riskRating": self.risk_rating,
            "tags": list(self.tags),
            "specificMetrics": self.specific_metrics.to_dict(),
        }
        if self.esg_metrics is not None:
            out["esgMetrics"] = self.esg_metrics.to_dict()
        if self.sector is not None:
            out["sector"] = self.sector
        if self.last_updated is not None:
            out["lastUpdated"] = self.last_updated.isoformat()
        out.update(self.extra)
        return out

    def fingerprint_fields(self) -> dict:
        """Analytic payload of the record; excludes bookkeeping timestamps."""
        payload = self.to_dict()
        payload.pop("lastUpdated", None)
        return payload


@dataclass
class TraditionalAsset(Asset):
    specific_metrics: TraditionalMetrics = field(default_factory=TraditionalMetrics)
    asset_type: ClassVar[str] = "traditional"


@dataclass
class RealEstateAsset(Asset):
    specific_metrics: RealEstateMetrics = field(default_factory=RealEstateMetrics)
    asset_type: ClassVar[str] = "real_estate"


@dataclass
class InfrastructureAsset(Asset):
    specific_metrics: InfrastructureMetrics = field(default_factory=InfrastructureMetrics)
    asset_type: ClassVar[str] = "infrastructure"


ASSET_CLASSES: dict[str, type[Asset]] = {
    "traditional": TraditionalAsset,
    "real_estate": RealEstateAsset,
    "infrastructure": InfrastructureAsset,
}

_METRIC_CLASSES = {
    "traditional": TraditionalMetrics,
    "real_estate": RealEstateMetrics,
    "infrastructure": InfrastructureMetrics,
}

_KNOWN_KEYS = {
    "id", "name", "assetType", "asset_type", "description", "acquisitionDate",
    "acquisition_date", "acquisitionValue", "acquisition_value", "currentValue",
    "current_value", "location", "performance", "esgMetrics", "esg_metrics",
    "status", "riskRating", "risk_rating", "sector", "tags", "lastUpdated",
    "last_updated", "specificMetrics", "specific_metrics",
}


def asset_from_dict(data: dict) -> Asset:
    """Build the right asset variant from its wire representation."""
    asset_type = _pick(data, "asset_type")
    cls = ASSET_CLASSES.get(asset_type)
    if cls is None:
        raise AssetValidationError(f"Unknown asset type: {asset_type!r}")

    missing = [
        name for name in ("id", "name", "acquisition_date", "acquisition_value", "current_value")
        if _pick(data, name) is None
    ]
    if missing:
        raise AssetValidationError(f"Asset record missing required fields: {', '.join(missing)}")

    try:
        return cls(
            id=str(data["id"]),
            name=data["name"],
            acquisition_date=_pick(data, "acquisition_date"),
            acquisition_value=_pick(data, "acquisition_value"),
            current_value=_pick(data, "current_value"),
            location=Location.from_dict(data.get("location")),
            description=data.get("description") or "",
            performance=PerformanceMetrics.from_dict(data.get("performance")),
            esg_metrics=ESGMetrics.from_dict(_pick(data, "esg_metrics")),
            status=data.get("status") or "active",
            risk_rating=_pick(data, "risk_rating") or "medium",
            sector=data.get("sector"),
            tags=data.get("tags") or [],
            last_updated=_pick(data, "last_updated"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
            specific_metrics=_METRIC_CLASSES[asset_type].from_dict(_pick(data, "specific_metrics")),
        )
    except AssetValidationError:
        raise
    except (TypeError, ValueError) as exc:
        raise AssetValidationError(f"Malformed asset record {data.get('id')!r}: {exc}") from exc
