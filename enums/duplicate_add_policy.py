from enum import Enum


class DuplicateAddPolicy(str, Enum):
    """
    What add_item does with a line identical to one already in the cart.

    REJECT: refuse the add and flag it as a duplicate
    MERGE: add the quantity into the existing line
    SEPARATE: keep both lines (the duplicate detector reports them before checkout)
    """
    REJECT = "reject"
    MERGE = "merge"
    SEPARATE = "separate"

    @classmethod
    def from_string(cls, value: str) -> 'DuplicateAddPolicy':
        return cls(value.strip().lower())
