from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any

class LCARequest(BaseModel):
    """Input record for /api/lca. Every field is optional; unknown keys (e.g. spreadsheet headers) pass through."""
    model_config = ConfigDict(extra="allow")

    metal: Optional[Any] = Field(None, examples=["aluminium"])
    productType: Optional[Any] = Field(None, examples=["Extrusion Profile"])
    productionRoute: Optional[Any] = Field(None, examples=["recycled"])
    energySource: Optional[Any] = Field(None, examples=["renewable"])
    transportDistanceKm: Optional[Any] = Field(None, examples=[500.0])
    transportMode: Optional[Any] = Field(None, examples=["rail"])
    recycledContentPercent: Optional[Any] = Field(None, examples=[60.0])
    companyName: Optional[Any] = Field(None, examples=["Acme Metals"])
    geographicalScope: Optional[Any] = Field(None, examples=["India"])
    intendedAudience: Optional[Any] = Field(None, examples=["Engineering & Sustainability"])

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

class BatchRequest(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)

class StageImpact(BaseModel):
    gwp_kg_co2e: float
    ced_mj: float

class ImpactTotals(BaseModel):
    gwp_kg_co2e: float
    ced_mj: float
    mci_percent: float
    water_consumption_m3: float
    adp_kg_sbeq: float
    odp_kg_cfc11eq: float
    ap_kg_so2eq: float
    ep_kg_po4eq: float
    human_toxicity_kg_dcb: float
    eco_toxicity_kg_dcb: float

class ImpactAssessmentResults(BaseModel):
    by_stage: Dict[str, StageImpact]
    totals: ImpactTotals

class LCAResponse(BaseModel):
    """Full LCA report returned by /api/lca."""
    project_details: Dict[str, Any]
    scope_and_boundaries: Dict[str, Any]
    life_cycle_inventory: Dict[str, Any]
    impact_assessment_results: ImpactAssessmentResults

class BatchResponse(BaseModel):
    count: int
    results: List[LCAResponse]
    averages: Optional[Dict[str, float]] = None

class ComparisonRow(BaseModel):
    name: str
    carbon_footprint_kg_co2e: float
    energy_use_mj: float
    water_use_l: float
