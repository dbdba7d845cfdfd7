from .base import Base
from .matrix import RiskMatrix, MatrixLikelihoodLevel, MatrixImpactLevel
from .appetite import RiskAppetite, RiskAppetiteBand
from .control import ControlFramework, FrameworkControl, InternalControl, ControlFinding
from .risk import Risk, RiskTreatment, TreatmentControl
from .asset import PrimaryAsset, SecondaryAsset
from .bia import BiaAssessment, BiaImpactTimeline
from .governance import Policy, Vendor, EvidenceItem
from .dashboard import DashboardThreshold, DashboardSnapshot
from .audit import AuditLog

__all__ = [
    "Base",
    "RiskMatrix", "MatrixLikelihoodLevel", "MatrixImpactLevel",
    "RiskAppetite", "RiskAppetiteBand",
    "ControlFramework", "FrameworkControl", "InternalControl", "ControlFinding",
    "Risk", "RiskTreatment", "TreatmentControl",
    "PrimaryAsset", "SecondaryAsset",
    "BiaAssessment", "BiaImpactTimeline",
    "Policy", "Vendor", "EvidenceItem",
    "DashboardThreshold", "DashboardSnapshot",
    "AuditLog",
]
