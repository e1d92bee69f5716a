"""
Locator healing tables and helpers.
"""

from qia.healing.locator_patterns import (
    BRITTLE_LOCATOR_PATTERNS,
    ROLE_FAMILIES,
    BrittleLocator,
    apply_replacement,
    clean_generated_locator,
    detect_brittle_locators,
    lines_around,
    semantic_replacement,
    structural_replacement,
)

__all__ = [
    "BRITTLE_LOCATOR_PATTERNS",
    "ROLE_FAMILIES",
    "BrittleLocator",
    "apply_replacement",
    "clean_generated_locator",
    "detect_brittle_locators",
    "lines_around",
    "semantic_replacement",
    "structural_replacement",
]
