from typing import Iterator, List, Optional, Tuple

from core.exceptions import UnknownPatternTemplateError
from models.harmonic_models import PatternDirection, PatternTemplate, PatternType, RatioBand


# Ratio bands per pattern type: (AB/XA, BC/AB, CD/BC, AD/XA), then reliability.
# Both directions of a pattern share the same bands.
_PATTERN_RATIOS = (
    (PatternType.GARTLEY,
     RatioBand(0.568, 0.618, 0.618),
     RatioBand(0.382, 0.886, 0.618),
     RatioBand(1.13, 1.618, 1.272),
     RatioBand(0.786, 0.786, 0.786),
     75, "Gartley 222 Pattern"),
    (PatternType.BUTTERFLY,
     RatioBand(0.786, 0.786, 0.786),
     RatioBand(0.382, 0.886, 0.618),
     RatioBand(1.618, 2.618, 1.618),
     RatioBand(1.27, 1.618, 1.27),
     70, "Butterfly Pattern"),
    (PatternType.BAT,
     RatioBand(0.382, 0.5, 0.382),
     RatioBand(0.382, 0.886, 0.618),
     RatioBand(1.618, 2.618, 1.618),
     RatioBand(0.886, 0.886, 0.886),
     80, "Bat Pattern"),
    (PatternType.CRAB,
     RatioBand(0.382, 0.618, 0.618),
     RatioBand(0.382, 0.886, 0.618),
     RatioBand(2.24, 3.618, 2.618),
     RatioBand(1.618, 1.618, 1.618),
     85, "Crab Pattern"),
)


def build_default_templates() -> Tuple[PatternTemplate, ...]:
    """
    Build the standard template table, one entry per (type, direction).

    Returns:
        Tuple of templates ordered by pattern type, bullish before bearish
    """
    templates = []
    for pattern_type, ab_xa, bc_ab, cd_bc, ad_xa, reliability, name in _PATTERN_RATIOS:
        for direction in (PatternDirection.BULLISH, PatternDirection.BEARISH):
            templates.append(PatternTemplate(
                pattern_type=pattern_type,
                direction=direction,
                ab_xa=ab_xa,
                bc_ab=bc_ab,
                cd_bc=cd_bc,
                ad_xa=ad_xa,
                description=f"{direction.value.capitalize()} {name}",
                reliability=reliability
            ))
    return tuple(templates)


class PatternTemplateRegistry:
    """
    Read-only table of harmonic pattern templates.

    Templates are stored in a tuple and never mutated after construction, so a
    single registry can be shared between detectors and threads.
    """

    def __init__(self, templates: Optional[Tuple[PatternTemplate, ...]] = None):
        self._templates = tuple(templates) if templates is not None else build_default_templates()

        seen = set()
        for template in self._templates:
            if template.key in seen:
                raise ValueError(f"Duplicate template for {template.pattern_type.value} "
                                 f"{template.direction.value}")
            seen.add(template.key)

    def __iter__(self) -> Iterator[PatternTemplate]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    @property
    def templates(self) -> Tuple[PatternTemplate, ...]:
        return self._templates

    def get(self, pattern_type, direction) -> PatternTemplate:
        """
        Look up the template for a pattern type and direction.

        Args:
            pattern_type: PatternType or its string value
            direction: PatternDirection or its string value

        Returns:
            Matching PatternTemplate
        """
        try:
            pattern_type = PatternType(pattern_type)
            direction = PatternDirection(direction)
        except ValueError:
            raise UnknownPatternTemplateError(f"{pattern_type}_{direction}")

        for template in self._templates:
            if template.pattern_type is pattern_type and template.direction is direction:
                return template

        raise UnknownPatternTemplateError(f"{pattern_type.value}_{direction.value}")

    def available_pattern_types(self) -> List[str]:
        """Distinct pattern type names in registry order."""
        types = []
        for template in self._templates:
            if template.pattern_type.value not in types:
                types.append(template.pattern_type.value)
        return types
