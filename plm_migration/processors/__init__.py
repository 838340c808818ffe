# Extract generators, one per IFS import file
from .base import BaseProcessor, ProcessingResult
from .reference_index import ReferenceIndex
from .eng_structure import EngStructureProcessor, StructureReconstructor, StructureEdge, RowAnnotation
from .master_part import MasterPartProcessor
from .master_part_all import MasterPartAllProcessor
from .technical_specs import TechnicalSpecsProcessor
from .inventory_part import InventoryPartProcessor
from .inventory_part_plan import InventoryPartPlanProcessor

PROCESSORS = {
    'master-part': MasterPartProcessor,
    'master-part-all': MasterPartAllProcessor,
    'technical-specs': TechnicalSpecsProcessor,
    'eng-structure': EngStructureProcessor,
    'inventory-part': InventoryPartProcessor,
    'inventory-plan': InventoryPartPlanProcessor,
}

__all__ = [
    'BaseProcessor', 'ProcessingResult', 'ReferenceIndex', 'EngStructureProcessor', 'StructureReconstructor',
    'StructureEdge', 'RowAnnotation', 'MasterPartProcessor', 'MasterPartAllProcessor', 'TechnicalSpecsProcessor',
    'InventoryPartProcessor', 'InventoryPartPlanProcessor', 'PROCESSORS',
]
