"""Base classes for verification checks.

Provides:
- CheckResult: Dataclass for the outcome of one check
- BaseCheck: Abstract base class for all checks
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import VerificationConfig
    from ..table import ExportedTable

CheckStatus = Literal["pass", "fail", "warn", "info"]

STATUSES = ("pass", "fail", "warn", "info")


@dataclass
class CheckResult:
    """Outcome of one check on one exported table.

    Attributes
    ----------
    check_id : str
        Check that produced the result
    status : str
        pass, fail, warn or info
    counts : Dict
        Supporting counts
    details : Dict
        Supporting lists and values
    message : str
        Human-readable summary
    """

    check_id: str
    status: CheckStatus
    counts: Dict[str, Any] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)
    message: str = ""

    def __post_init__(self):
        if self.status not in STATUSES:
            raise ValueError(f"Unknown check status: {self.status}")

    @property
    def failed(self) -> bool:
        return self.status == "fail"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "check_id": self.check_id,
            "status": self.status,
            "message": self.message,
            "counts": dict(self.counts),
            "details": dict(self.details),
        }


class BaseCheck(ABC):
    """Abstract base class for verification checks.

    All checks must implement:
    - check_id: Unique identifier
    - category: integrity or distribution
    - check(): Main check method

    Attributes
    ----------
    check_id : str
        Unique identifier for this check
    category : str
        Check category
    issue_status : str
        Status reported when the check finds a problem
    description : str
        Human-readable description
    """

    check_id: str = "BASE_CHECK"
    category: str = "general"
    issue_status: CheckStatus = "fail"
    description: str = "Base check"

    def __init__(self, config: "VerificationConfig"):
        self.config = config

    def result(
        self,
        ok: bool,
        message: str,
        counts: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> CheckResult:
        """Create a CheckResult; ``ok=False`` uses the check's issue status."""
        return CheckResult(
            check_id=self.check_id,
            status="pass" if ok else self.issue_status,
            counts=counts or {},
            details=details or {},
            message=message,
        )

    def info(
        self,
        message: str,
        counts: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> CheckResult:
        """Create an informational CheckResult."""
        return CheckResult(
            check_id=self.check_id,
            status="info",
            counts=counts or {},
            details=details or {},
            message=message,
        )

    @abstractmethod
    def check(self, table: "ExportedTable") -> CheckResult:
        """Run the check.

        Parameters
        ----------
        table : ExportedTable
            Exported table as read back from disk

        Returns
        -------
        CheckResult
            Check outcome
        """
        pass

    def is_applicable(self, table: "ExportedTable") -> bool:
        """Check if the check can run on this table.

        Override in subclasses for conditional checks.
        """
        return True
