"""Check registry for decorator-based registration of check classes."""

from typing import Dict, List, Optional, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseCheck
    from ..config import VerificationConfig


class CheckRegistry:
    """Registry for verification checks.

    Provides:
    - Decorator-based registration: @CheckRegistry.register
    - Check lookup by ID
    - Instantiation with a VerificationConfig
    """

    _checks: Dict[str, Type["BaseCheck"]] = {}

    @classmethod
    def register(cls, check_class: Type["BaseCheck"]) -> Type["BaseCheck"]:
        """Register a check class.

        Use as decorator:
            @CheckRegistry.register
            class MyCheck(BaseCheck):
                check_id = "MY_CHECK"
                ...

        Parameters
        ----------
        check_class : Type[BaseCheck]
            Check class to register

        Returns
        -------
        Type[BaseCheck]
            The registered class (unchanged)
        """
        cls._checks[check_class.check_id] = check_class
        return check_class

    @classmethod
    def get_check(cls, check_id: str) -> Optional[Type["BaseCheck"]]:
        """Get check class by ID."""
        return cls._checks.get(check_id)

    @classmethod
    def list_check_ids(cls) -> List[str]:
        """Get check IDs in registration order."""
        return list(cls._checks.keys())

    @classmethod
    def instantiate_all(
        cls,
        config: "VerificationConfig",
        skip_checks: Optional[List[str]] = None,
    ) -> List["BaseCheck"]:
        """Instantiate all registered checks in registration order.

        Parameters
        ----------
        config : VerificationConfig
            Verification configuration
        skip_checks : List[str], optional
            Check IDs to skip

        Returns
        -------
        List[BaseCheck]
            Instantiated checks
        """
        skip_checks = skip_checks or []
        return [
            check_class(config)
            for check_id, check_class in cls._checks.items()
            if check_id not in skip_checks
        ]

    @classmethod
    def summary(cls) -> Dict[str, List[str]]:
        """Get check IDs grouped by category."""
        summary: Dict[str, List[str]] = {}
        for check_id, check_class in cls._checks.items():
            summary.setdefault(check_class.category, []).append(check_id)
        return summary
