from photos.variants.geometry import fit
from photos.variants.plan import build_plan
from photos.variants.schemas import (
    DerivationResult,
    DerivedArtifact,
    Dimensions,
    NamedBox,
    VariantConfig,
    VariantPlan,
    VariantSpec,
)

__all__ = [
    "DerivationResult",
    "DerivedArtifact",
    "Dimensions",
    "NamedBox",
    "VariantConfig",
    "VariantPlan",
    "VariantSpec",
    "build_plan",
    "fit",
]
