"""
Post Processor module - Generate controller code from compiled programs.

Supported formats:
- ABB RAPID (.mod / .modx)
- Universal Robots URScript (.URS)
- KUKA KRL (.SRC / .DAT)
- Staubli VAL3 (.pjx / .dtx / .pgx)
"""

from typing import Dict, Optional, Type

from robotcell.core.exceptions import PostProcessorError
from robotcell.core.manufacturer import Manufacturer
from robotcell.postprocessor.base import PostProcessorBase, PostProcessorConfig
from robotcell.postprocessor.krl import KRLPostProcessor
from robotcell.postprocessor.rapid import RapidPostProcessor
from robotcell.postprocessor.urscript import URScriptPostProcessor
from robotcell.postprocessor.val3 import VAL3PostProcessor

POSTPROCESSORS: Dict[Manufacturer, Type[PostProcessorBase]] = {
    Manufacturer.ABB: RapidPostProcessor,
    Manufacturer.UR: URScriptPostProcessor,
    Manufacturer.KUKA: KRLPostProcessor,
    Manufacturer.STAUBLI: VAL3PostProcessor,
}


def get_postprocessor(
    manufacturer: Manufacturer,
    config: Optional[PostProcessorConfig] = None,
) -> PostProcessorBase:
    """
    Post processor for a controller family.

    Raises:
        PostProcessorError: If the manufacturer has no post processor.
    """
    processor = POSTPROCESSORS.get(manufacturer)
    if processor is None:
        raise PostProcessorError(
            f"No post processor available for {manufacturer} robots.",
            details={"available": [str(m) for m in POSTPROCESSORS]},
        )
    return processor(config)


__all__ = [
    "PostProcessorBase",
    "PostProcessorConfig",
    "RapidPostProcessor",
    "URScriptPostProcessor",
    "KRLPostProcessor",
    "VAL3PostProcessor",
    "POSTPROCESSORS",
    "get_postprocessor",
]
