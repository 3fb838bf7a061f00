from datetime import date
from typing import Optional
from asset_register.data.core.sequences.virtual_sequence_generator import VirtualSequenceGenerator


class AssetTagSequence(VirtualSequenceGenerator):
    """
    Generates unique asset tags: <PREFIX>-<YYYY>-<NNNNNN>

    The year is informational; uniqueness comes from the global counter.
    """

    @classmethod
    def get_sequence_table_name(cls):
        return "_sequence_asset_tag"

    @classmethod
    def next_tag(cls, prefix: str = "AST", on: Optional[date] = None) -> str:
        on = on or date.today()
        return f"{prefix}-{on.year}-{cls.get_next_id():06d}"
